import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from app.container import get_token_store
from app.models.token.dto import TokenState
from app.services.token.token_store import TokenStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Remote session"])


class LoginRequest(BaseModel):
    username: str
    password: str


class SessionResponse(BaseModel):
    session_id: str
    token_type: str
    scope: str
    expires_in: int


class AccessTokenResponse(BaseModel):
    access_token: str
    state: TokenState


@router.post("/login", summary="Log in to the remote system")
def login(
    body: LoginRequest,
    token_store: TokenStore = Depends(get_token_store),
) -> SessionResponse:
    session_id = str(uuid4())
    pair = token_store.login(session_id, body.username, body.password)
    return SessionResponse(
        session_id=session_id,
        token_type=pair.token_type,
        scope=pair.scope,
        expires_in=pair.expires_in,
    )


@router.get("/{session_id}/token", summary="Current access token, refreshed when needed")
def get_access_token(
    session_id: str,
    token_store: TokenStore = Depends(get_token_store),
) -> AccessTokenResponse:
    access_token = token_store.get_current_access_token(session_id)
    return AccessTokenResponse(access_token=access_token, state=token_store.state(session_id))


@router.delete("/{session_id}", status_code=204, summary="Log out of the remote system")
def logout(
    session_id: str,
    token_store: TokenStore = Depends(get_token_store),
) -> Response:
    token_store.logout(session_id)
    return Response(status_code=204)

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class TokenState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    VALID = "valid"
    ABOUT_TO_EXPIRE = "about_to_expire"
    EXPIRED = "expired"


class TokenPair(BaseModel):
    """
    Access/refresh token pair issued by the remote identity endpoint. A pair is never
    changed in place, a refresh always produces a new instance.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    token_type: str
    scope: str
    issued_at: datetime
    expires_in: int = Field(gt=0)

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(seconds=self.expires_in)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_about_to_expire(self, now: datetime, safety_margin: int) -> bool:
        return now >= self.expires_at - timedelta(seconds=safety_margin)

    @classmethod
    def from_token_response(
        cls, data: Dict[str, Any], issued_at: datetime | None = None
    ) -> "TokenPair":
        return cls(
            access_token=str(data["access_token"]),
            refresh_token=str(data["refresh_token"]),
            token_type=str(data["token_type"]),
            scope=str(data["scope"]),
            expires_in=int(data["expires_in"]),
            issued_at=issued_at or datetime.now(timezone.utc),
        )

import logging
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict

from app.exceptions import UnauthenticatedError
from app.models.token.dto import TokenPair, TokenState
from app.services.api.identity_api import IdentityApi
from app.stats import TOKEN_REFRESH, get_stats

logger = logging.getLogger(__name__)


class TokenStore:
    """
    Holds the current token pair of every logged in principal and refreshes it when it
    is (about to be) expired.

    Refreshing is single-flight per principal: concurrent callers for the same principal
    serialize on that principal's lock, and whoever gets the lock after a refresh
    finds the new pair and returns it without calling the identity endpoint again.
    Different principals never block each other.
    """

    def __init__(
        self,
        identity_api: IdentityApi,
        safety_margin: int,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.__identity_api = identity_api
        self.__safety_margin = safety_margin
        self.__clock = clock or (lambda: datetime.now(timezone.utc))
        self.__pairs: Dict[str, TokenPair] = {}
        self.__locks: Dict[str, Lock] = {}
        self.__registry_lock = Lock()

    def login(self, principal: str, username: str, password: str) -> TokenPair:
        pair = self.__identity_api.login(username, password)
        with self.__lock_for(principal):
            self.__pairs[principal] = pair
        logger.info(f"Principal {principal} logged in to the remote system")
        return pair

    def logout(self, principal: str) -> None:
        with self.__lock_for(principal):
            self.__pairs.pop(principal, None)
        with self.__registry_lock:
            self.__locks.pop(principal, None)

    def get(self, principal: str) -> TokenPair | None:
        return self.__pairs.get(principal)

    def state(self, principal: str) -> TokenState:
        pair = self.__pairs.get(principal)
        if pair is None:
            return TokenState.UNAUTHENTICATED

        now = self.__clock()
        if pair.is_expired(now):
            return TokenState.EXPIRED
        if pair.is_about_to_expire(now, self.__safety_margin):
            return TokenState.ABOUT_TO_EXPIRE
        return TokenState.VALID

    def get_current_access_token(self, principal: str) -> str:
        """
        Returns a usable access token for the principal, refreshing the stored pair
        first when it is expired or about to expire.
        """
        pair = self.__pairs.get(principal)
        if pair is None:
            raise UnauthenticatedError(f"No remote session for principal {principal}")

        if not self.__needs_refresh(pair):
            return pair.access_token

        with self.__lock_for(principal):
            # Another request may have refreshed the pair while we were waiting
            current = self.__pairs.get(principal)
            if current is None:
                raise UnauthenticatedError(f"No remote session for principal {principal}")
            if not self.__needs_refresh(current):
                return current.access_token

            logger.info(f"Refreshing access token for principal {principal}")
            refreshed = self.__identity_api.refresh(current.refresh_token)
            self.__pairs[principal] = refreshed
            get_stats().inc(TOKEN_REFRESH)
            return refreshed.access_token

    def __needs_refresh(self, pair: TokenPair) -> bool:
        now = self.__clock()
        return pair.is_expired(now) or pair.is_about_to_expire(now, self.__safety_margin)

    def __lock_for(self, principal: str) -> Lock:
        with self.__registry_lock:
            lock = self.__locks.get(principal)
            if lock is None:
                lock = Lock()
                self.__locks[principal] = lock
            return lock

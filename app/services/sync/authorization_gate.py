import logging
from typing import Callable

from app.models.sync.dto import RuleSet

logger = logging.getLogger(__name__)

TokenValidator = Callable[[str], bool]


def accept_any_token(token: str) -> bool:
    return True


class AuthorizationGate:
    """
    Allows or denies a whole request based on the bearer token in its Authorization header.
    There are no per resource rules: a request is either allowed everything or nothing.
    """

    def __init__(self, token_validator: TokenValidator = accept_any_token) -> None:
        self.__token_validator = token_validator

    def build_rule_list(self, authorization: str | None) -> RuleSet:
        parts = authorization.split() if authorization else []
        if len(parts) < 2:
            logger.warning("Denying request with a missing or malformed Authorization header")
            return RuleSet.DENY_ALL

        if self.__token_validator(parts[1]):
            return RuleSet.ALLOW_ALL

        logger.info("Denying request, bearer token is not valid")
        return RuleSet.DENY_ALL

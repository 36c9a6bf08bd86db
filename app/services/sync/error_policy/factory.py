from app.services.sync.error_policy.error_policy import AdapterErrorPolicy
from app.services.sync.error_policy.policies import (
    AcceptOnErrorPolicy,
    FlagOnErrorPolicy,
    RejectOnErrorPolicy,
)


class ErrorPolicyFactory:
    def __init__(self, policy_name: str) -> None:
        self.__policy_name = policy_name

    def create_error_policy(self) -> AdapterErrorPolicy:
        match self.__policy_name:
            case "accept":
                return AcceptOnErrorPolicy()
            case "reject":
                return RejectOnErrorPolicy()
            case "flag":
                return FlagOnErrorPolicy()
            case _:
                raise ValueError(
                    "incorrect value for error_policy, supported types are 'accept', 'reject' or 'flag'. Please fix in app.conf"
                )

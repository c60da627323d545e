"""Error taxonomy for contract transactions."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of a failed transaction."""
    NOT_FOUND = "not_found"
    ROLE_MISMATCH = "role_mismatch"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    REGISTRY_NOT_INITIALIZED = "registry_not_initialized"
    INVALID_ARGUMENT = "invalid_argument"
    DUPLICATE_ID = "duplicate_id"
    UNKNOWN_FUNCTION = "unknown_function"


class ContractError(Exception):
    """Base class for every error raised by a contract transaction."""

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.key = key


class RegistryNotInitialized(ContractError):
    kind = ErrorKind.REGISTRY_NOT_INITIALIZED

    def __init__(self, index_key: str):
        super().__init__(f"{index_key} not found, ledger was never initialized", key=index_key)


class ParticipantNotFound(ContractError):
    kind = ErrorKind.NOT_FOUND
    role_label = "participant"

    def __init__(self, participant_id: str):
        super().__init__(f"{self.role_label} {participant_id} not found", key=participant_id)


class OwnerNotFound(ParticipantNotFound):
    role_label = "owner"


class VerifierNotFound(ParticipantNotFound):
    role_label = "verifier"


class RoleMismatch(ContractError):
    kind = ErrorKind.ROLE_MISMATCH
    role_label = "participant"

    def __init__(self, participant_id: str, actual_role: Optional[str] = None):
        super().__init__(
            f"{participant_id} is not identified as {self.role_label} (role: {actual_role})",
            key=participant_id,
        )
        self.actual_role = actual_role


class OwnerRoleMismatch(RoleMismatch):
    role_label = "owner"


class VerifierRoleMismatch(RoleMismatch):
    role_label = "verifier"


class PatentRequestNotFound(ContractError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, patent_id: str):
        super().__init__(f"patent request {patent_id} not found", key=patent_id)


class InvalidStateTransition(ContractError):
    kind = ErrorKind.INVALID_STATE_TRANSITION

    def __init__(self, patent_id: str, current: str, target: str):
        super().__init__(
            f"patent request {patent_id} cannot move from {current} to {target}",
            key=patent_id,
        )
        self.current = current
        self.target = target


class InvalidArgument(ContractError):
    kind = ErrorKind.INVALID_ARGUMENT


class DuplicateId(ContractError):
    kind = ErrorKind.DUPLICATE_ID

    def __init__(self, key: str):
        super().__init__(f"{key} already exists on the ledger", key=key)


class UnknownFunction(ContractError):
    kind = ErrorKind.UNKNOWN_FUNCTION

    def __init__(self, name: str):
        super().__init__(f"unknown transaction function {name}", key=name)

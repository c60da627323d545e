"""Patent request data models for the contract."""

import json
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class PatentStatus(Enum):
    """Lifecycle states of a patent request."""
    NEW = "New"
    PENDING_PUBLISH = "PendingPublish"
    REJECTED = "Rejected"
    PUBLISHING = "Publishing"
    PUBLISHED = "Published"

    @property
    def code(self) -> int:
        return STATUS_TABLE[self][0]

    @property
    def text(self) -> str:
        return STATUS_TABLE[self][1]

    @classmethod
    def from_code(cls, code: int) -> "PatentStatus":
        for status, (status_code, _) in STATUS_TABLE.items():
            if status_code == code:
                return status
        raise ValueError(f"Unknown patent status code: {code}")

    def info(self) -> "StatusInfo":
        return StatusInfo(code=self.code, text=self.text)


STATUS_TABLE = {
    PatentStatus.NEW: (1, "Patent created"),
    PatentStatus.PENDING_PUBLISH: (2, "Patent verified and pending publish"),
    PatentStatus.REJECTED: (3, "Patent verification failed"),
    PatentStatus.PUBLISHING: (15, "Patent being published"),
    PatentStatus.PUBLISHED: (6, "Patent published"),
}

# Every state maps to the states it may move to. Only verification is
# implemented, so the remaining states have no outgoing edges.
TRANSITIONS: Dict[PatentStatus, FrozenSet[PatentStatus]] = {
    PatentStatus.NEW: frozenset({PatentStatus.PENDING_PUBLISH}),
    PatentStatus.PENDING_PUBLISH: frozenset(),
    PatentStatus.REJECTED: frozenset(),
    PatentStatus.PUBLISHING: frozenset(),
    PatentStatus.PUBLISHED: frozenset(),
}


def can_transition(current: PatentStatus, target: PatentStatus) -> bool:
    """Check whether a patent request may move from one state to another."""
    return target in TRANSITIONS[current]


class StatusInfo(BaseModel):
    """Status value stored on a patent request."""
    code: int
    text: str

    @property
    def state(self) -> PatentStatus:
        return PatentStatus.from_code(self.code)


class PatentRequest(BaseModel):
    """Model for a filed patent request."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    # Records written by earlier contract versions use the *ID and patentIndustry keys
    industry: str = Field("", validation_alias=AliasChoices("industry", "patentIndustry"))
    prior_artifacts: str = Field("", validation_alias=AliasChoices("priorArtifacts", "prior_artifacts"),
                                 serialization_alias="priorArtifacts")
    details: str = ""
    owner_ids: List[str] = Field(default_factory=list,
                                 validation_alias=AliasChoices("ownerIds", "ownerIDs", "owner_ids"),
                                 serialization_alias="ownerIds")
    verifier_id: str = Field(..., validation_alias=AliasChoices("verifierId", "verifierID", "verifier_id"),
                             serialization_alias="verifierId")
    publisher_id: Optional[str] = Field(None,
                                        validation_alias=AliasChoices("publisherId", "publisherID", "publisher_id"),
                                        serialization_alias="publisherId")
    status: StatusInfo = Field(default_factory=PatentStatus.NEW.info)

    @field_validator("status", mode="before")
    @classmethod
    def _decode_legacy_status(cls, value):
        # Older records store the status as a JSON-encoded string
        if isinstance(value, str):
            return json.loads(value)
        return value

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

"""Participant data models for the contract."""

from enum import Enum
from typing import Annotated, List, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter


class ParticipantRole(str, Enum):
    """Roles a participant can be registered under."""
    OWNER = "owner"
    VERIFIER = "verifier"
    PUBLISHER = "publisher"
    AUDITOR = "auditor"

    @property
    def index_key(self) -> str:
        """Ledger key of the registry index for this role."""
        return f"{self.value}s"


class ParticipantBase(BaseModel):
    """Fields shared by every participant."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    company_name: str = Field(..., alias="companyName")
    patent_request_ids: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("patentRequestIds", "patentRequests", "patent_request_ids"),
        serialization_alias="patentRequestIds",
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class OwnerParticipant(ParticipantBase):
    role: Literal["owner"] = "owner"


class VerifierParticipant(ParticipantBase):
    role: Literal["verifier"] = "verifier"


class PublisherParticipant(ParticipantBase):
    role: Literal["publisher"] = "publisher"


class AuditorParticipant(ParticipantBase):
    role: Literal["auditor"] = "auditor"


Participant = Annotated[
    Union[OwnerParticipant, VerifierParticipant, PublisherParticipant, AuditorParticipant],
    Field(discriminator="role"),
]

participant_adapter = TypeAdapter(Participant)

PARTICIPANT_TYPES = {
    ParticipantRole.OWNER: OwnerParticipant,
    ParticipantRole.VERIFIER: VerifierParticipant,
    ParticipantRole.PUBLISHER: PublisherParticipant,
    ParticipantRole.AUDITOR: AuditorParticipant,
}


def new_participant(role: ParticipantRole, participant_id: str, company_name: str) -> ParticipantBase:
    """Create a freshly registered participant of the given role."""
    return PARTICIPANT_TYPES[role](id=participant_id, company_name=company_name)

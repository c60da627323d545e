"""Participant registry: role index lists and participant records."""

import json
from typing import List, Type

import structlog
from pydantic import ValidationError

from ..models.participant import (
    ParticipantBase,
    ParticipantRole,
    new_participant,
    participant_adapter,
)
from ..utils.errors import (
    DuplicateId,
    InvalidArgument,
    ParticipantNotFound,
    RegistryNotInitialized,
    RoleMismatch,
)
from ..utils.observability import metrics
from .base import TransactionContext

logger = structlog.get_logger(__name__)


class ParticipantRegistry:
    """Reads and writes participants and the four role indexes."""

    async def initialize(self, ctx: TransactionContext):
        """Write an empty index for every role, resetting any existing one."""
        for role in ParticipantRole:
            await ctx.put_json(role.index_key, [])
        logger.info("Participant registry initialized",
                    indexes=[role.index_key for role in ParticipantRole])

    async def register(self, ctx: TransactionContext, role: ParticipantRole,
                       participant_id: str, company_name: str) -> ParticipantBase:
        """Register a participant and append it to its role index."""
        if not participant_id:
            raise InvalidArgument("participant id must be non-empty")
        if not company_name:
            raise InvalidArgument("company name must be non-empty", key=participant_id)
        if ctx.settings.enforce_unique_ids and await ctx.exists(participant_id):
            raise DuplicateId(participant_id)

        participant = new_participant(role, participant_id, company_name)
        await ctx.put_model(participant_id, participant)

        index = await self.read_index(ctx, role)
        index.append(participant_id)
        await ctx.put_json(role.index_key, index)

        metrics.participants_registered.labels(role=role.value).inc()
        logger.info("Participant registered",
                    participant_id=participant_id,
                    role=role.value,
                    index_size=len(index))
        return participant

    async def read_index(self, ctx: TransactionContext, role: ParticipantRole) -> List[str]:
        """Load the ids registered under role."""
        data = await ctx.stub.get(role.index_key)
        if data is None:
            raise RegistryNotInitialized(role.index_key)
        # An empty value counts as an empty index
        if not data:
            return []
        return list(json.loads(data.decode("utf-8")))

    async def load(self, ctx: TransactionContext, participant_id: str, role: ParticipantRole,
                   not_found: Type[ParticipantNotFound] = ParticipantNotFound,
                   mismatch: Type[RoleMismatch] = RoleMismatch) -> ParticipantBase:
        """Load a participant that must exist with the given role."""
        record = await ctx.get_json(participant_id)
        if record is None:
            raise not_found(participant_id)

        actual_role = None
        if isinstance(record, dict):
            # Earlier contract versions tagged participants with "type"
            actual_role = record.get("role", record.get("type"))
        if actual_role != role.value:
            raise mismatch(participant_id, actual_role)
        record = {**record, "role": actual_role}

        try:
            return participant_adapter.validate_python(record)
        except ValidationError as e:
            logger.error("Malformed participant record", participant_id=participant_id, error=str(e))
            raise mismatch(participant_id, actual_role) from e

    async def save(self, ctx: TransactionContext, participant: ParticipantBase):
        """Write the full participant record back."""
        await ctx.put_model(participant.id, participant)

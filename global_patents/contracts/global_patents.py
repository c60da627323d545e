"""Global patents contract: participant registration and patent request lifecycle."""

import json
from typing import Optional

from ..config import Settings
from ..models.participant import ParticipantRole
from ..utils.error_tracking import track_errors
from ..utils.observability import track_transaction
from .base import BaseContract, TransactionContext, transaction
from .lifecycle import PatentRequestLifecycle, parse_owner_ids
from .registry import ParticipantRegistry


class GlobalPatentsContract(BaseContract):
    """Contract entry points. Arguments are strings; results are JSON strings."""

    name = "globalpatents"

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings)
        self.registry = ParticipantRegistry()
        self.lifecycle = PatentRequestLifecycle(self.registry)

    @transaction("initialize")
    @track_transaction("initialize")
    @track_errors
    async def initialize(self, ctx: TransactionContext) -> str:
        """Create the four empty role indexes. Running it again wipes them."""
        await self.registry.initialize(ctx)
        return ""

    async def register_participant(self, ctx: TransactionContext, role: ParticipantRole,
                                   participant_id: str, company_name: str) -> str:
        participant = await self.registry.register(ctx, role, participant_id, company_name)
        return participant.to_json()

    @transaction("registerOwner")
    @track_transaction("registerOwner")
    @track_errors
    async def register_owner(self, ctx: TransactionContext, owner_id: str, company_name: str) -> str:
        return await self.register_participant(ctx, ParticipantRole.OWNER, owner_id, company_name)

    @transaction("registerVerifier")
    @track_transaction("registerVerifier")
    @track_errors
    async def register_verifier(self, ctx: TransactionContext, verifier_id: str, company_name: str) -> str:
        return await self.register_participant(ctx, ParticipantRole.VERIFIER, verifier_id, company_name)

    @transaction("registerPublisher")
    @track_transaction("registerPublisher")
    @track_errors
    async def register_publisher(self, ctx: TransactionContext, publisher_id: str, company_name: str) -> str:
        return await self.register_participant(ctx, ParticipantRole.PUBLISHER, publisher_id, company_name)

    @transaction("registerAuditor")
    @track_transaction("registerAuditor")
    @track_errors
    async def register_auditor(self, ctx: TransactionContext, auditor_id: str, company_name: str) -> str:
        return await self.register_participant(ctx, ParticipantRole.AUDITOR, auditor_id, company_name)

    @transaction("createPatentRequest")
    @track_transaction("createPatentRequest")
    @track_errors
    async def create_patent_request(self, ctx: TransactionContext, patent_id: str, owner_ids_json: str,
                                    verifier_id: str, industry: str, prior_artifacts: str,
                                    details: str) -> str:
        """File a patent request; owner_ids_json is a JSON array of owner ids."""
        owner_ids = parse_owner_ids(owner_ids_json)
        request = await self.lifecycle.create(ctx, patent_id, owner_ids, verifier_id,
                                              industry, prior_artifacts, details)
        return request.to_json()

    @transaction("verifyPatentRequest")
    @track_transaction("verifyPatentRequest")
    @track_errors
    async def verify_patent_request(self, ctx: TransactionContext, patent_id: str, owner_ids_json: str,
                                    verifier_id: str, publisher_id: str) -> str:
        owner_ids = parse_owner_ids(owner_ids_json, allow_empty=True)
        request = await self.lifecycle.verify(ctx, patent_id, owner_ids, verifier_id, publisher_id)
        return request.to_json()

    @transaction("readState")
    @track_transaction("readState")
    @track_errors
    async def read_state(self, ctx: TransactionContext, key: str) -> str:
        """Return the JSON stored at key, or the JSON empty string when there is none."""
        value = await ctx.get_json(key)
        if value is None:
            value = ""
        return json.dumps(value)

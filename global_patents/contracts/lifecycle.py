"""Patent request lifecycle: filing and verification."""

import json
from typing import List

import structlog
from pydantic import ValidationError

from ..models.participant import ParticipantRole
from ..models.patent import PatentRequest, PatentStatus, can_transition
from ..utils.errors import (
    DuplicateId,
    InvalidArgument,
    InvalidStateTransition,
    OwnerNotFound,
    OwnerRoleMismatch,
    PatentRequestNotFound,
    VerifierNotFound,
    VerifierRoleMismatch,
)
from ..utils.observability import metrics
from .base import TransactionContext
from .registry import ParticipantRegistry

logger = structlog.get_logger(__name__)


def parse_owner_ids(owner_ids_json: str, allow_empty: bool = False) -> List[str]:
    """Decode a JSON array of owner ids, keeping first-seen order and dropping repeats."""
    try:
        owner_ids = json.loads(owner_ids_json) if owner_ids_json else []
    except json.JSONDecodeError as e:
        raise InvalidArgument(f"owner ids are not valid JSON: {e}") from e

    if not isinstance(owner_ids, list) or not all(isinstance(o, str) and o for o in owner_ids):
        raise InvalidArgument("owner ids must be a JSON array of non-empty strings")
    if not owner_ids and not allow_empty:
        raise InvalidArgument("at least one owner id is required")

    return list(dict.fromkeys(owner_ids))


class PatentRequestLifecycle:
    """Creates patent requests and moves them through the status table."""

    def __init__(self, registry: ParticipantRegistry):
        self.registry = registry

    async def create(self, ctx: TransactionContext, patent_id: str, owner_ids: List[str],
                     verifier_id: str, industry: str, prior_artifacts: str,
                     details: str) -> PatentRequest:
        """File a new patent request and back-reference it from every owner.

        Each owner is written as soon as it is validated. If a later owner
        fails, the earlier writes are discarded by the ledger together with
        the rest of the transaction.
        """
        if not patent_id:
            raise InvalidArgument("patent request id must be non-empty")
        if not owner_ids:
            raise InvalidArgument("at least one owner id is required", key=patent_id)
        if ctx.settings.enforce_unique_ids and await ctx.exists(patent_id):
            raise DuplicateId(patent_id)

        for owner_id in owner_ids:
            owner = await self.registry.load(ctx, owner_id, ParticipantRole.OWNER,
                                             OwnerNotFound, OwnerRoleMismatch)
            owner.patent_request_ids.append(patent_id)
            await self.registry.save(ctx, owner)

        request = PatentRequest(
            id=patent_id,
            industry=industry,
            prior_artifacts=prior_artifacts,
            details=details,
            owner_ids=owner_ids,
            verifier_id=verifier_id,
            status=PatentStatus.NEW.info(),
        )
        await ctx.put_model(patent_id, request)

        metrics.patent_requests.labels(transition="created").inc()
        logger.info("Patent request created",
                    patent_id=patent_id,
                    owner_ids=owner_ids,
                    verifier_id=verifier_id)
        return request

    async def verify(self, ctx: TransactionContext, patent_id: str, owner_ids: List[str],
                     verifier_id: str, publisher_id: str) -> PatentRequest:
        """Mark a new patent request as verified and pending publication.

        The given owner and verifier ids must be valid participants; they are
        not compared with the ids stored on the request.
        """
        request = await self.load(ctx, patent_id)

        for owner_id in owner_ids:
            await self.registry.load(ctx, owner_id, ParticipantRole.OWNER,
                                     OwnerNotFound, OwnerRoleMismatch)

        verifier = await self.registry.load(ctx, verifier_id, ParticipantRole.VERIFIER,
                                            VerifierNotFound, VerifierRoleMismatch)

        self._check_transition(request, PatentStatus.PENDING_PUBLISH)

        request.status = PatentStatus.PENDING_PUBLISH.info()
        request.publisher_id = publisher_id
        await ctx.put_model(patent_id, request)

        verifier.patent_request_ids.append(patent_id)
        await self.registry.save(ctx, verifier)

        metrics.patent_requests.labels(transition="verified").inc()
        logger.info("Patent request verified",
                    patent_id=patent_id,
                    verifier_id=verifier_id,
                    publisher_id=publisher_id,
                    status_code=request.status.code)
        return request

    async def load(self, ctx: TransactionContext, patent_id: str) -> PatentRequest:
        """Load an existing patent request."""
        record = await ctx.get_json(patent_id)
        if not isinstance(record, dict) or "status" not in record:
            raise PatentRequestNotFound(patent_id)
        try:
            return PatentRequest.model_validate(record)
        except ValidationError as e:
            logger.error("Malformed patent request record", patent_id=patent_id, error=str(e))
            raise PatentRequestNotFound(patent_id) from e

    def _check_transition(self, request: PatentRequest, target: PatentStatus):
        try:
            current = request.status.state
        except ValueError:
            raise InvalidStateTransition(request.id, f"code {request.status.code}", target.value)
        if not can_transition(current, target):
            raise InvalidStateTransition(request.id, current.value, target.value)

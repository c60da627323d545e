import pytest
import json

from global_patents.config import Settings
from global_patents.contracts.global_patents import GlobalPatentsContract
from global_patents.models.participant import ParticipantRole, OwnerParticipant, VerifierParticipant
from global_patents.utils.errors import (
    DuplicateId, ErrorKind, InvalidArgument, RegistryNotInitialized,
    OwnerNotFound, OwnerRoleMismatch,
)
from global_patents.utils.ledger import InMemoryLedger


async def execute(ledger, contract, method, *args):
    async with ledger.transaction() as stub:
        return await getattr(contract, method)(contract.context(stub, method), *args)


class TestInitialize:
    """Test registry initialization."""

    @pytest.fixture
    def contract(self):
        return GlobalPatentsContract(Settings())

    @pytest.fixture
    def ledger(self):
        return InMemoryLedger()

    @pytest.mark.asyncio
    async def test_initialize_writes_empty_indexes(self, contract, ledger):
        """Test every role index is empty after initialization."""
        await execute(ledger, contract, "initialize")

        for key in ("owners", "verifiers", "publishers", "auditors"):
            state = await execute(ledger, contract, "read_state", key)
            assert json.loads(state) == []

    @pytest.mark.asyncio
    async def test_reinitialize_resets_indexes(self, contract, ledger):
        """Test a second initialize wipes registered ids from the indexes."""
        await execute(ledger, contract, "initialize")
        await execute(ledger, contract, "register_owner", "O1", "Acme")

        await execute(ledger, contract, "initialize")

        assert json.loads(await execute(ledger, contract, "read_state", "owners")) == []
        # The participant record itself is left in place
        assert json.loads(await execute(ledger, contract, "read_state", "O1"))["id"] == "O1"


class TestRegisterParticipant:
    """Test participant registration."""

    @pytest.fixture
    def contract(self):
        return GlobalPatentsContract(Settings())

    @pytest.fixture
    async def ledger(self, contract):
        ledger = InMemoryLedger()
        await execute(ledger, contract, "initialize")
        return ledger

    @pytest.mark.asyncio
    async def test_register_owner(self, contract, ledger):
        """Test owner registration writes the record and the index entry."""
        result = await execute(ledger, contract, "register_owner", "O1", "Acme")

        assert json.loads(result) == {
            "id": "O1",
            "companyName": "Acme",
            "role": "owner",
            "patentRequestIds": [],
        }
        assert json.loads(await execute(ledger, contract, "read_state", "owners")) == ["O1"]
        assert json.loads(await execute(ledger, contract, "read_state", "O1")) == json.loads(result)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,role,index_key", [
        ("register_verifier", "verifier", "verifiers"),
        ("register_publisher", "publisher", "publishers"),
        ("register_auditor", "auditor", "auditors"),
    ])
    async def test_register_other_roles(self, contract, ledger, method, role, index_key):
        """Test each role lands in its own index only."""
        result = json.loads(await execute(ledger, contract, method, "P1", "Co"))

        assert result["role"] == role
        assert json.loads(await execute(ledger, contract, "read_state", index_key)) == ["P1"]
        assert json.loads(await execute(ledger, contract, "read_state", "owners")) == []

    @pytest.mark.asyncio
    async def test_index_keeps_registration_order(self, contract, ledger):
        """Test the index lists ids in registration order."""
        for owner_id in ("O3", "O1", "O2"):
            await execute(ledger, contract, "register_owner", owner_id, "Acme")

        assert json.loads(await execute(ledger, contract, "read_state", "owners")) == ["O3", "O1", "O2"]

    @pytest.mark.asyncio
    async def test_duplicate_registration_appends_twice(self, contract, ledger):
        """Test registering the same id twice is not idempotent by default."""
        await execute(ledger, contract, "register_owner", "O1", "Acme")
        await execute(ledger, contract, "register_owner", "O1", "Acme Renamed")

        assert json.loads(await execute(ledger, contract, "read_state", "owners")) == ["O1", "O1"]
        record = json.loads(await execute(ledger, contract, "read_state", "O1"))
        assert record["companyName"] == "Acme Renamed"

    @pytest.mark.asyncio
    async def test_duplicate_registration_across_roles(self, contract, ledger):
        """Test an id registered under two roles appears in both indexes."""
        await execute(ledger, contract, "register_owner", "X1", "Acme")
        await execute(ledger, contract, "register_verifier", "X1", "Acme")

        assert json.loads(await execute(ledger, contract, "read_state", "owners")) == ["X1"]
        assert json.loads(await execute(ledger, contract, "read_state", "verifiers")) == ["X1"]
        assert json.loads(await execute(ledger, contract, "read_state", "X1"))["role"] == "verifier"

    @pytest.mark.asyncio
    async def test_duplicate_registration_rejected_when_enforced(self, ledger):
        """Test unique id enforcement rejects a second registration."""
        contract = GlobalPatentsContract(Settings(enforce_unique_ids=True))
        await execute(ledger, contract, "register_owner", "O1", "Acme")

        with pytest.raises(DuplicateId) as exc_info:
            await execute(ledger, contract, "register_verifier", "O1", "Acme")

        assert exc_info.value.kind == ErrorKind.DUPLICATE_ID
        assert json.loads(await execute(ledger, contract, "read_state", "owners")) == ["O1"]
        assert json.loads(await execute(ledger, contract, "read_state", "verifiers")) == []

    @pytest.mark.asyncio
    async def test_register_requires_initialized_registry(self, contract):
        """Test registration fails and writes nothing before initialize."""
        ledger = InMemoryLedger()

        with pytest.raises(RegistryNotInitialized) as exc_info:
            await execute(ledger, contract, "register_owner", "O1", "Acme")

        assert exc_info.value.key == "owners"
        assert exc_info.value.kind == ErrorKind.REGISTRY_NOT_INITIALIZED
        assert ledger.committed("O1") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("participant_id,company_name", [("", "Acme"), ("O1", "")])
    async def test_register_rejects_empty_arguments(self, contract, ledger, participant_id, company_name):
        """Test id and company name must be non-empty."""
        with pytest.raises(InvalidArgument):
            await execute(ledger, contract, "register_owner", participant_id, company_name)


class TestLoadParticipant:
    """Test participant lookup with role checks."""

    @pytest.fixture
    def contract(self):
        return GlobalPatentsContract(Settings())

    @pytest.fixture
    async def ledger(self, contract):
        ledger = InMemoryLedger()
        await execute(ledger, contract, "initialize")
        await execute(ledger, contract, "register_owner", "O1", "Acme")
        await execute(ledger, contract, "register_verifier", "V1", "VerCo")
        return ledger

    @pytest.mark.asyncio
    async def test_load_returns_role_variant(self, contract, ledger):
        """Test the record decodes to the variant for its role."""
        async with ledger.transaction() as stub:
            ctx = contract.context(stub)
            owner = await contract.registry.load(ctx, "O1", ParticipantRole.OWNER)
            verifier = await contract.registry.load(ctx, "V1", ParticipantRole.VERIFIER)

        assert isinstance(owner, OwnerParticipant)
        assert isinstance(verifier, VerifierParticipant)
        assert owner.company_name == "Acme"

    @pytest.mark.asyncio
    async def test_load_missing_participant(self, contract, ledger):
        """Test a missing id raises the given not-found error."""
        async with ledger.transaction() as stub:
            with pytest.raises(OwnerNotFound) as exc_info:
                await contract.registry.load(contract.context(stub), "nobody", ParticipantRole.OWNER,
                                             OwnerNotFound, OwnerRoleMismatch)

        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_load_wrong_role(self, contract, ledger):
        """Test a participant of another role raises the given mismatch error."""
        async with ledger.transaction() as stub:
            with pytest.raises(OwnerRoleMismatch) as exc_info:
                await contract.registry.load(contract.context(stub), "V1", ParticipantRole.OWNER,
                                             OwnerNotFound, OwnerRoleMismatch)

        assert exc_info.value.kind == ErrorKind.ROLE_MISMATCH
        assert exc_info.value.actual_role == "verifier"

import pytest

from global_patents.utils.ledger import InMemoryLedger, LedgerConflictError


class TestInMemoryLedger:
    """Test the in-memory ledger used to run the contract locally."""

    @pytest.fixture
    def ledger(self):
        return InMemoryLedger({"a": b"1"})

    @pytest.mark.asyncio
    async def test_commit_applies_writes(self, ledger):
        async with ledger.transaction() as stub:
            await stub.put("b", b"2")
            assert await stub.get("b") == b"2"
            assert ledger.committed("b") is None

        assert ledger.committed("b") == b"2"
        assert ledger.version("b") == 1

    @pytest.mark.asyncio
    async def test_failure_discards_every_write(self, ledger):
        with pytest.raises(ValueError):
            async with ledger.transaction() as stub:
                await stub.put("a", b"changed")
                await stub.put("b", b"2")
                raise ValueError("boom")

        assert ledger.committed("a") == b"1"
        assert ledger.committed("b") is None

    @pytest.mark.asyncio
    async def test_put_requires_bytes(self, ledger):
        stub = ledger.begin()
        with pytest.raises(TypeError):
            await stub.put("a", "text")

    @pytest.mark.asyncio
    async def test_read_conflict_detected(self, ledger):
        reader = ledger.begin()
        assert await reader.get("a") == b"1"
        await reader.put("c", b"3")

        async with ledger.transaction() as writer:
            await writer.put("a", b"9")

        with pytest.raises(LedgerConflictError):
            ledger.commit(reader)
        assert ledger.committed("c") is None

    @pytest.mark.asyncio
    async def test_blind_writes_do_not_conflict(self, ledger):
        first = ledger.begin()
        second = ledger.begin()
        await first.put("a", b"x")
        await second.put("a", b"y")

        ledger.commit(first)
        ledger.commit(second)

        assert ledger.committed("a") == b"y"
        assert ledger.version("a") == 3

    @pytest.mark.asyncio
    async def test_closed_stub_rejects_calls(self, ledger):
        stub = ledger.begin()
        ledger.abort(stub)

        with pytest.raises(RuntimeError):
            await stub.get("a")

    @pytest.mark.asyncio
    async def test_submit_gives_up_after_max_attempts(self, ledger):
        attempts = []

        async def always_conflicts(stub):
            attempts.append(1)
            await stub.get("a")
            # Another writer commits between our read and our commit
            async with ledger.transaction() as other:
                await other.put("a", b"%d" % len(attempts))

        with pytest.raises(LedgerConflictError):
            await ledger.submit(always_conflicts, max_attempts=2)

        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_rejected_transaction_discards_writes(self, ledger):
        async with ledger.transaction() as stub:
            await stub.put("a", b"changed")
            await stub.put("b", b"2")
            stub.reject()

        assert ledger.committed("a") == b"1"
        assert ledger.committed("b") is None
        assert ledger.version("a") == 1

    @pytest.mark.asyncio
    async def test_submit_returns_rejected_result_without_commit(self, ledger):
        async def rejected(stub):
            await stub.put("b", b"2")
            stub.reject()
            return "rejected"

        assert await ledger.submit(rejected) == "rejected"
        assert ledger.committed("b") is None

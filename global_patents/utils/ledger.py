"""Ledger access interface and an in-memory ledger for local runs and tests."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


class LedgerConflictError(Exception):
    """A key read by a transaction was changed by another committed transaction."""

    def __init__(self, key: str):
        super().__init__(f"read conflict on key {key}")
        self.key = key


class LedgerStub(ABC):
    """Key-value view of the ledger handed to one transaction.

    Every call is a suspension point. Atomicity of the writes issued through
    a stub belongs to the ledger, not to the caller.
    """

    rejected = False

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Read the value stored at key, or None when absent."""

    @abstractmethod
    async def put(self, key: str, value: bytes) -> None:
        """Write value at key."""

    def reject(self) -> None:
        """Flag the transaction as rejected; the ledger must discard all of its writes."""
        self.rejected = True


class TransactionStub(LedgerStub):
    """Stub bound to one in-memory transaction: buffered writes, tracked reads."""

    def __init__(self, ledger: "InMemoryLedger"):
        self._ledger = ledger
        self.read_versions: Dict[str, int] = {}
        self.writes: Dict[str, bytes] = {}
        self.closed = False

    async def get(self, key: str) -> Optional[bytes]:
        self._check_open()
        # Reads see the transaction's own writes
        if key in self.writes:
            return self.writes[key]
        self.read_versions.setdefault(key, self._ledger.version(key))
        return self._ledger.committed(key)

    async def put(self, key: str, value: bytes) -> None:
        self._check_open()
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(f"ledger values must be bytes, got {type(value).__name__}")
        self.writes[key] = bytes(value)

    def _check_open(self):
        if self.closed:
            raise RuntimeError("transaction already committed or aborted")


class InMemoryLedger:
    """In-memory ledger with all-or-nothing commits and read-version conflict checks."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._store: Dict[str, bytes] = dict(initial or {})
        self._versions: Dict[str, int] = {key: 1 for key in self._store}

    def committed(self, key: str) -> Optional[bytes]:
        """Committed value at key."""
        return self._store.get(key)

    def version(self, key: str) -> int:
        return self._versions.get(key, 0)

    def begin(self) -> TransactionStub:
        """Open a new transaction."""
        return TransactionStub(self)

    def commit(self, stub: TransactionStub) -> None:
        """Apply every buffered write of the transaction, or none of them."""
        if stub.rejected:
            self.abort(stub)
            return

        stub._check_open()
        stub.closed = True
        for key, seen in stub.read_versions.items():
            if self.version(key) != seen:
                logger.warning("Transaction conflict", key=key,
                               read_version=seen, current_version=self.version(key))
                raise LedgerConflictError(key)

        for key, value in stub.writes.items():
            self._store[key] = value
            self._versions[key] = self.version(key) + 1

        logger.debug("Transaction committed", writes=len(stub.writes))

    def abort(self, stub: TransactionStub) -> None:
        """Discard the transaction's buffered writes."""
        stub.closed = True
        logger.debug("Transaction aborted", discarded_writes=len(stub.writes))

    @asynccontextmanager
    async def transaction(self):
        """Context manager for a transaction that commits unless it raised or was rejected."""
        stub = self.begin()
        try:
            yield stub
        except BaseException:
            self.abort(stub)
            raise
        self.commit(stub)

    async def submit(self, func: Callable[[LedgerStub], Awaitable[Any]], max_attempts: int = 3) -> Any:
        """Execute func in a transaction, re-executing it from scratch on conflict."""
        for attempt in range(1, max_attempts + 1):
            try:
                async with self.transaction() as stub:
                    result = await func(stub)
                return result
            except LedgerConflictError as e:
                logger.info("Re-executing conflicted transaction", key=e.key, attempt=attempt)
                if attempt == max_attempts:
                    raise

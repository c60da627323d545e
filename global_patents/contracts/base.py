"""Base contract class: transaction context, dispatch and result mapping."""

import json
from abc import ABC
from typing import Any, Callable, Dict, Optional

import structlog
from pydantic import BaseModel

from ..config import Settings
from ..utils.errors import ContractError, ErrorKind, UnknownFunction
from ..utils.ledger import LedgerStub
from ..utils.observability import log_error, trace_operation

logger = structlog.get_logger(__name__)


class TransactionContext:
    """Everything a transaction function may touch: the ledger stub and settings."""

    def __init__(self, stub: LedgerStub, settings: Settings, function: str = ""):
        self.stub = stub
        self.settings = settings
        self.function = function

    async def get_json(self, key: str) -> Optional[Any]:
        """Read and decode the JSON value at key; None when absent or empty."""
        data = await self.stub.get(key)
        if not data:
            return None
        return json.loads(data.decode("utf-8"))

    async def put_json(self, key: str, value: Any):
        await self.stub.put(key, json.dumps(value).encode("utf-8"))

    async def put_model(self, key: str, model: BaseModel):
        await self.stub.put(key, model.model_dump_json(by_alias=True).encode("utf-8"))

    async def exists(self, key: str) -> bool:
        return bool(await self.stub.get(key))


class TransactionResult(BaseModel):
    """Outcome of one dispatched transaction."""
    function: str
    ok: bool
    payload: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None


def transaction(name: str):
    """Mark a contract method as a transaction reachable through invoke() under name."""
    def decorator(func: Callable):
        func._transaction_name = name
        return func
    return decorator


class BaseContract(ABC):
    """Base class for all contracts executed against the ledger."""

    name = "contract"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self.transactions: Dict[str, Callable] = {}
        for attr in dir(type(self)):
            member = getattr(self, attr)
            tx_name = getattr(member, "_transaction_name", None)
            if tx_name:
                self.transactions[tx_name] = member

    def context(self, stub: LedgerStub, function: str = "") -> TransactionContext:
        """Create the context for one transaction."""
        return TransactionContext(stub, self.settings, function)

    async def invoke(self, stub: LedgerStub, function: str, *args: str) -> TransactionResult:
        """Run the named transaction and map contract errors to a typed result.

        A rejected transaction flags its stub so the ledger discards every
        write it made. Unexpected exceptions are not contract rejections and
        propagate.
        """
        handler = self.transactions.get(function)
        if handler is None:
            error = UnknownFunction(function)
            logger.warning("Unknown transaction function", contract=self.name, function=function)
            stub.reject()
            return TransactionResult(function=function, ok=False,
                                     error_kind=error.kind, message=error.message)

        ctx = self.context(stub, function)
        async with trace_operation(f"{self.name}.{function}", {"contract": self.name}):
            try:
                payload = await handler(ctx, *args)
            except ContractError as e:
                logger.info("Transaction rejected",
                            contract=self.name,
                            function=function,
                            error_kind=e.kind.value,
                            error=e.message)
                stub.reject()
                return TransactionResult(function=function, ok=False,
                                         error_kind=e.kind, message=e.message)
            except Exception as e:
                log_error("transaction_failed", e, contract=self.name, function=function)
                raise

        return TransactionResult(function=function, ok=True, payload=payload)

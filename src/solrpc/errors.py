"""Error hierarchy for RPC calls, payload decoding and confirmation polling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


class SolanaRpcError(Exception):
    """Base class for every error raised by this package."""


@dataclass
class MalformedResponseError(SolanaRpcError):
    """Neither a success nor an error envelope could be parsed."""

    message: str = "failed to parse RPC response"
    payload: Any = None

    def __str__(self) -> str:
        return self.message


@dataclass
class RpcResponseError(SolanaRpcError):
    """The node answered with a JSON-RPC error object."""

    code: int
    message: str
    data: Any = None

    def __str__(self) -> str:
        return self.message


@dataclass
class TransactionSimulationError(RpcResponseError):
    """A submitted transaction was rejected, with diagnostic logs attached."""

    logs: List[str] = field(default_factory=list)
    err: Any = None

    def __str__(self) -> str:
        return self.message


@dataclass
class DecodeError(SolanaRpcError):
    """A signature, address, hash or account payload failed to parse."""

    message: str
    value: Any = None
    cause: Optional[BaseException] = None

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (cause={self.cause})"
        return self.message


class AccountDecodeError(DecodeError):
    """Account data could not be turned into the requested structure."""


@dataclass
class AccountNotFoundError(SolanaRpcError):
    address: str

    def __str__(self) -> str:
        return f"account {self.address} not found"


@dataclass
class TransactionFailedError(SolanaRpcError):
    """The transaction landed but the node reports it as failed."""

    signature: str
    err: Any

    def __str__(self) -> str:
        return f"transaction {self.signature} failed: {self.err}"


@dataclass
class ConfirmationTimeoutError(SolanaRpcError):
    signature: str
    attempts: int
    elapsed: float

    def __str__(self) -> str:
        return (
            f"transaction {self.signature} not confirmed after "
            f"{self.attempts} attempts ({self.elapsed:.1f}s)"
        )


@dataclass
class ConfirmationCancelledError(SolanaRpcError):
    signature: str
    attempts: int

    def __str__(self) -> str:
        return f"confirmation of {self.signature} cancelled after {self.attempts} attempts"

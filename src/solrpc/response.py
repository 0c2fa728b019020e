"""Decoding of JSON-RPC response envelopes.

Every payload decodes into exactly one of :class:`RpcSuccess`,
:class:`RpcFailure` or :class:`RpcMalformed`. An ``error`` member takes
priority over ``result``, so a payload carrying a specific error is never
read as an empty success.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, TypeVar, Union

from .errors import MalformedResponseError, RpcResponseError

T = TypeVar("T")

_PARSE_ERRORS = (ValueError, KeyError, TypeError)


@dataclass(frozen=True)
class Context:
    slot: int


@dataclass(frozen=True)
class ResultWithContext(Generic[T]):
    context: Context
    value: T


@dataclass(frozen=True)
class TransactionErrorData:
    err: Any
    logs: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RpcErrorObject:
    code: int
    message: str
    data: Any = None

    @property
    def transaction_error(self) -> Optional[TransactionErrorData]:
        return self.data if isinstance(self.data, TransactionErrorData) else None


@dataclass(frozen=True)
class RpcSuccess(Generic[T]):
    value: T


@dataclass(frozen=True)
class RpcFailure:
    error: RpcErrorObject


@dataclass(frozen=True)
class RpcMalformed:
    reason: str
    payload: Any = None


DecodedResponse = Union[RpcSuccess[T], RpcFailure, RpcMalformed]


def _identity(value: Any) -> Any:
    return value


def _parse_error_data(raw: Any) -> Any:
    if isinstance(raw, dict) and isinstance(raw.get("logs"), list):
        logs = raw["logs"]
        if all(isinstance(line, str) for line in logs):
            return TransactionErrorData(err=raw.get("err"), logs=list(logs))
    return raw


def parse_error_object(raw: Any) -> Optional[RpcErrorObject]:
    if not isinstance(raw, dict):
        return None
    code = raw.get("code")
    message = raw.get("message")
    if isinstance(code, bool) or not isinstance(code, int) or not isinstance(message, str):
        return None
    return RpcErrorObject(code=code, message=message, data=_parse_error_data(raw.get("data")))


def with_context(parse_value: Callable[[Any], T] = _identity) -> Callable[[Any], ResultWithContext[T]]:
    """Parser for results wrapped as ``{"context": {"slot": n}, "value": ...}``."""

    def parse(result: Any) -> ResultWithContext[T]:
        if not isinstance(result, dict) or "context" not in result or "value" not in result:
            raise ValueError("result is not wrapped with context")
        context = result["context"]
        if not isinstance(context, dict):
            raise ValueError("context is not an object")
        slot = context.get("slot")
        if isinstance(slot, bool) or not isinstance(slot, int):
            raise ValueError("context slot is not an integer")
        return ResultWithContext(context=Context(slot=slot), value=parse_value(result["value"]))

    return parse


def decode_response(payload: Any, parse_result: Callable[[Any], T] = _identity) -> DecodedResponse:
    if not isinstance(payload, dict):
        return RpcMalformed("response is not a JSON object", payload)

    if "error" in payload:
        error = parse_error_object(payload["error"])
        if error is not None:
            return RpcFailure(error)

    if "result" in payload:
        try:
            return RpcSuccess(parse_result(payload["result"]))
        except _PARSE_ERRORS as exc:
            return RpcMalformed(f"unexpected result shape: {exc}", payload)

    return RpcMalformed("response carries neither result nor error", payload)


def unwrap(decoded: DecodedResponse) -> Any:
    if isinstance(decoded, RpcSuccess):
        return decoded.value
    if isinstance(decoded, RpcFailure):
        error = decoded.error
        raise RpcResponseError(code=error.code, message=error.message, data=error.data)
    raise MalformedResponseError(payload=decoded.payload)

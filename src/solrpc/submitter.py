"""Serialization of signed transactions and interpretation of ``sendTransaction`` replies."""

from __future__ import annotations

import base64
import logging
from typing import Any, List

import base58
from solders.signature import Signature

from .config import Encoding
from .errors import MalformedResponseError, RpcResponseError, TransactionSimulationError
from .models import parse_signature
from .response import RpcFailure, RpcSuccess, decode_response

logger = logging.getLogger(__name__)


def serialize_transaction(transaction: Any, encoding: Encoding = Encoding.BASE64) -> str:
    """Encode the wire bytes of a signed transaction (``bytes(tx)`` for solders transactions)."""
    raw = bytes(transaction)
    if encoding == Encoding.BASE64:
        return base64.b64encode(raw).decode("ascii")
    if encoding == Encoding.BASE58:
        return base58.b58encode(raw).decode("ascii")
    raise ValueError(f"transactions cannot be sent with {Encoding(encoding).value} encoding")


def _expect_signature_string(result: Any) -> str:
    if not isinstance(result, str):
        raise ValueError("sendTransaction result is not a signature string")
    return result


def log_simulation_output(logs: List[str]) -> None:
    for index, line in enumerate(logs):
        logger.debug("%d %s", index, line)


def interpret_send_response(payload: Any) -> Signature:
    decoded = decode_response(payload, _expect_signature_string)
    if isinstance(decoded, RpcSuccess):
        return parse_signature(decoded.value)

    if isinstance(decoded, RpcFailure):
        error = decoded.error
        tx_error = error.transaction_error
        if tx_error is not None:
            log_simulation_output(tx_error.logs)
            raise TransactionSimulationError(
                code=error.code,
                message=error.message,
                data=tx_error,
                logs=list(tx_error.logs),
                err=tx_error.err,
            )
        raise RpcResponseError(code=error.code, message=error.message, data=error.data)

    raise MalformedResponseError(payload=decoded.payload)

import json
from enum import Enum
from typing import Any, Dict, List, Sequence

JSONRPC_VERSION = "2.0"
REQUEST_ID_MODULUS = 2 ** 64


class RpcMethod(str, Enum):
    GET_ACCOUNT_INFO = "getAccountInfo"
    GET_MULTIPLE_ACCOUNTS = "getMultipleAccounts"
    GET_BALANCE = "getBalance"
    GET_MINIMUM_BALANCE_FOR_RENT_EXEMPTION = "getMinimumBalanceForRentExemption"
    REQUEST_AIRDROP = "requestAirdrop"
    GET_RECENT_BLOCKHASH = "getRecentBlockhash"
    GET_LATEST_BLOCKHASH = "getLatestBlockhash"
    SEND_TRANSACTION = "sendTransaction"
    GET_SIGNATURE_STATUSES = "getSignatureStatuses"
    GET_SLOT = "getSlot"
    GET_BLOCK_TIME = "getBlockTime"


def next_request_id(current: int) -> int:
    return (current + 1) % REQUEST_ID_MODULUS


def build_request(method: RpcMethod, params: Sequence[Any], request_id: int) -> Dict[str, Any]:
    """Build a JSON-RPC envelope. Params are passed through in the given order."""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": RpcMethod(method).value,
        "params": list(params),
    }


def encode_request(method: RpcMethod, params: Sequence[Any], request_id: int) -> str:
    return json.dumps(build_request(method, params, request_id), separators=(",", ":"))


def with_config(params: List[Any], config: Dict[str, Any]) -> List[Any]:
    """Append a trailing config object unless it is empty."""
    if config:
        return [*params, config]
    return params

from .client import RpcClient
from .commitment import confirmation_status, satisfies
from .config import (
    ClientSettings,
    CommitmentLevel,
    Encoding,
    Net,
    PollPolicy,
    RpcConfig,
    TransactionConfig,
    load_settings,
)
from .errors import (
    AccountDecodeError,
    AccountNotFoundError,
    ConfirmationCancelledError,
    ConfirmationTimeoutError,
    DecodeError,
    MalformedResponseError,
    RpcResponseError,
    SolanaRpcError,
    TransactionFailedError,
    TransactionSimulationError,
)
from .models import Account, AccountData, Blockhash, TransactionConfirmationStatus, TransactionStatus
from .poller import ConfirmationPoller
from .request import RpcMethod, build_request, encode_request
from .response import RpcFailure, RpcMalformed, RpcSuccess, decode_response

__all__ = [
    "Account",
    "AccountData",
    "AccountDecodeError",
    "AccountNotFoundError",
    "Blockhash",
    "ClientSettings",
    "CommitmentLevel",
    "ConfirmationCancelledError",
    "ConfirmationPoller",
    "ConfirmationTimeoutError",
    "DecodeError",
    "Encoding",
    "MalformedResponseError",
    "Net",
    "PollPolicy",
    "RpcClient",
    "RpcConfig",
    "RpcFailure",
    "RpcMalformed",
    "RpcMethod",
    "RpcResponseError",
    "RpcSuccess",
    "SolanaRpcError",
    "TransactionConfig",
    "TransactionConfirmationStatus",
    "TransactionFailedError",
    "TransactionSimulationError",
    "TransactionStatus",
    "build_request",
    "confirmation_status",
    "decode_response",
    "encode_request",
    "load_settings",
    "satisfies",
]

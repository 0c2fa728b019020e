import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


class Net(Enum):
    """Cluster the client talks to."""

    LOCALHOST = "localhost"
    TESTNET = "testnet"
    DEVNET = "devnet"
    MAINNET = "mainnet"

    @property
    def url(self) -> str:
        return _NET_URLS[self]


_NET_URLS = {
    Net.LOCALHOST: "http://localhost:8899",
    Net.TESTNET: "https://api.testnet.solana.com",
    Net.DEVNET: "https://api.devnet.solana.com",
    Net.MAINNET: "https://api.mainnet-beta.solana.com",
}


class Encoding(str, Enum):
    BASE58 = "base58"
    BASE64 = "base64"
    BASE64_ZSTD = "base64+zstd"
    JSON_PARSED = "jsonParsed"


class CommitmentLevel(str, Enum):
    """Durability guarantee, ordered from least to most durable."""

    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    @property
    def rank(self) -> int:
        return _COMMITMENT_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CommitmentLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, CommitmentLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, CommitmentLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, CommitmentLevel):
            return NotImplemented
        return self.rank >= other.rank


_COMMITMENT_ORDER = (CommitmentLevel.PROCESSED, CommitmentLevel.CONFIRMED, CommitmentLevel.FINALIZED)


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class RpcConfig:
    """Trailing config object attached to most requests."""

    encoding: Optional[Encoding] = Encoding.JSON_PARSED
    commitment: Optional[CommitmentLevel] = CommitmentLevel.CONFIRMED

    def to_params(self) -> Dict[str, str]:
        return _drop_none(
            {
                "encoding": self.encoding.value if self.encoding else None,
                "commitment": self.commitment.value if self.commitment else None,
            }
        )

    def commitment_params(self) -> Dict[str, str]:
        return _drop_none({"commitment": self.commitment.value if self.commitment else None})


@dataclass(frozen=True)
class TransactionConfig:
    skip_preflight: bool = False
    preflight_commitment: Optional[CommitmentLevel] = None
    encoding: Encoding = Encoding.BASE64

    def to_params(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "skipPreflight": self.skip_preflight,
                "preflightCommitment": self.preflight_commitment.value if self.preflight_commitment else None,
                "encoding": self.encoding.value,
            }
        )


@dataclass(frozen=True)
class AirdropConfig:
    recent_blockhash: Optional[str] = None
    commitment: Optional[CommitmentLevel] = None

    def to_params(self) -> Dict[str, str]:
        return _drop_none(
            {
                "recentBlockhash": self.recent_blockhash,
                "commitment": self.commitment.value if self.commitment else None,
            }
        )


@dataclass(frozen=True)
class PollPolicy:
    """Bounds for the confirmation loop. At least one bound must be set."""

    interval: float = 0.5
    max_attempts: Optional[int] = None
    timeout: Optional[float] = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts is None and self.timeout is None:
            raise ValueError("poll policy needs max_attempts or timeout")
        if self.interval < 0:
            raise ValueError("poll interval must not be negative")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.timeout is not None and self.timeout < 0:
            raise ValueError("poll timeout must not be negative")


@dataclass(frozen=True)
class ClientSettings:
    net: Net = Net.DEVNET
    endpoint: Optional[str] = None
    request_timeout: float = 10.0
    user_agent: str = "solrpc/0.1"
    blockhash_method: str = "getLatestBlockhash"
    poll: PollPolicy = field(default_factory=PollPolicy)

    @property
    def url(self) -> str:
        return self.endpoint or self.net.url


def _enum_value(enum_cls, raw: Any, key: str):
    if raw is None:
        return None
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"unsupported {key} {raw!r}; expected one of: {allowed}") from None


def _optional(raw: Dict[str, Any], key: str, cast, default):
    value = raw.get(key, default)
    if value is None:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, got {value!r}") from None


def settings_from_mapping(raw: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Tuple[ClientSettings, RpcConfig]:
    env = os.environ if environ is None else environ
    net = _enum_value(Net, raw.get("net", Net.DEVNET.value), "net")
    endpoint = env.get("SOLANA_RPC_URL") or raw.get("endpoint")

    poll_defaults = PollPolicy()
    poll = PollPolicy(
        interval=float(raw.get("poll_interval", poll_defaults.interval)),
        max_attempts=_optional(raw, "poll_max_attempts", int, poll_defaults.max_attempts),
        timeout=_optional(raw, "poll_timeout", float, poll_defaults.timeout),
    )

    blockhash_method = raw.get("blockhash_method", "getLatestBlockhash")
    if blockhash_method not in ("getLatestBlockhash", "getRecentBlockhash"):
        raise ValueError(f"unsupported blockhash_method {blockhash_method!r}")

    settings = ClientSettings(
        net=net,
        endpoint=endpoint,
        request_timeout=float(raw.get("request_timeout", 10.0)),
        user_agent=raw.get("user_agent", "solrpc/0.1"),
        blockhash_method=blockhash_method,
        poll=poll,
    )
    rpc_config = RpcConfig(
        encoding=_enum_value(Encoding, raw.get("encoding", Encoding.JSON_PARSED.value), "encoding"),
        commitment=_enum_value(CommitmentLevel, raw.get("commitment", CommitmentLevel.CONFIRMED.value), "commitment"),
    )
    return settings, rpc_config


def load_settings(config_path: Path, environ: Optional[Dict[str, str]] = None) -> Tuple[ClientSettings, RpcConfig]:
    with config_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{config_path} must contain a mapping")
    return settings_from_mapping(raw, environ=environ)

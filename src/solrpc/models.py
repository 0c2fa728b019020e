import base64
import binascii
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TypeVar

import base58
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from .config import Encoding
from .errors import AccountDecodeError, DecodeError

T = TypeVar("T")


def _parse_with(parser: Callable[[str], T], value: Any, what: str) -> T:
    if not isinstance(value, str):
        raise DecodeError(f"{what} is not a string", value=value)
    try:
        return parser(value)
    except Exception as exc:
        raise DecodeError(f"invalid {what}: {value!r}", value=value, cause=exc) from exc


def parse_signature(value: Any) -> Signature:
    return _parse_with(Signature.from_string, value, "signature")


def parse_pubkey(value: Any) -> Pubkey:
    return _parse_with(Pubkey.from_string, value, "address")


def parse_hash(value: Any) -> Hash:
    return _parse_with(Hash.from_string, value, "blockhash")


class TransactionConfirmationStatus(str, Enum):
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"


def _require(mapping: Dict[str, Any], key: str) -> Any:
    if key not in mapping:
        raise ValueError(f"missing field {key!r}")
    return mapping[key]


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} is not an integer")
    return value


def _as_mapping(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} is not an object")
    return value


@dataclass(frozen=True)
class AccountData:
    """Account payload as returned by the node, either encoded bytes or parsed JSON."""

    encoding: str
    payload: Any
    program: Optional[str] = None
    space: Optional[int] = None

    @classmethod
    def from_json(cls, raw: Any) -> "AccountData":
        if isinstance(raw, str):
            # legacy nodes return bare base58 binary
            return cls(encoding=Encoding.BASE58.value, payload=raw)
        if isinstance(raw, list):
            if len(raw) != 2 or not all(isinstance(item, str) for item in raw):
                raise ValueError("encoded account data must be [data, encoding]")
            return cls(encoding=raw[1], payload=raw[0])
        if isinstance(raw, dict):
            space = raw.get("space")
            return cls(
                encoding=Encoding.JSON_PARSED.value,
                payload=_require(raw, "parsed"),
                program=raw.get("program"),
                space=_as_int(space, "space") if space is not None else None,
            )
        raise ValueError("unrecognized account data shape")

    @property
    def is_parsed(self) -> bool:
        return self.encoding == Encoding.JSON_PARSED.value

    def to_bytes(self) -> bytes:
        if self.is_parsed:
            raise AccountDecodeError("account data was returned parsed, not as bytes", value=self.program)
        try:
            if self.encoding == Encoding.BASE64.value:
                return base64.b64decode(self.payload, validate=True)
            if self.encoding == Encoding.BASE58.value:
                return base58.b58decode(self.payload)
        except (binascii.Error, ValueError) as exc:
            raise AccountDecodeError(f"invalid {self.encoding} account data", value=self.payload, cause=exc) from exc
        raise AccountDecodeError(f"unsupported account data encoding {self.encoding!r}", value=self.encoding)

    def parse_into(self, decoder: Callable[[bytes], T]) -> T:
        """Decode the raw bytes with a binary layout decoder (e.g. a borsh struct's ``parse``)."""
        raw = self.to_bytes()
        try:
            return decoder(raw)
        except Exception as exc:
            raise AccountDecodeError("failed to deserialize account data", value=raw, cause=exc) from exc

    def parse_into_json(self, decoder: Callable[[Any], T]) -> T:
        if not self.is_parsed:
            raise AccountDecodeError(
                f"account data is {self.encoding}-encoded; request jsonParsed encoding", value=self.encoding
            )
        try:
            return decoder(self.payload)
        except Exception as exc:
            raise AccountDecodeError("failed to deserialize parsed account data", value=self.payload, cause=exc) from exc


@dataclass(frozen=True)
class Account:
    owner: str
    executable: bool
    lamports: int
    rent_epoch: int
    data: AccountData
    space: Optional[int] = None

    @classmethod
    def from_json(cls, raw: Any) -> "Account":
        body = _as_mapping(raw, "account")
        executable = _require(body, "executable")
        if not isinstance(executable, bool):
            raise ValueError("field 'executable' is not a boolean")
        owner = _require(body, "owner")
        if not isinstance(owner, str):
            raise ValueError("field 'owner' is not a string")
        space = body.get("space")
        return cls(
            owner=owner,
            executable=executable,
            lamports=_as_int(_require(body, "lamports"), "lamports"),
            rent_epoch=_as_int(_require(body, "rentEpoch"), "rentEpoch"),
            data=AccountData.from_json(_require(body, "data")),
            space=_as_int(space, "space") if space is not None else None,
        )


def parse_optional_account(raw: Any) -> Optional[Account]:
    return None if raw is None else Account.from_json(raw)


def parse_account_list(raw: Any) -> List[Optional[Account]]:
    if not isinstance(raw, list):
        raise ValueError("account list is not an array")
    return [parse_optional_account(item) for item in raw]


@dataclass(frozen=True)
class TransactionStatus:
    slot: int
    confirmations: Optional[int]
    status: Optional[Dict[str, Any]]
    err: Optional[Any]
    confirmation_status: Optional[TransactionConfirmationStatus]

    @classmethod
    def from_json(cls, raw: Any) -> "TransactionStatus":
        body = _as_mapping(raw, "transaction status")
        confirmations = body.get("confirmations")
        confirmation_status = body.get("confirmationStatus")
        status = body.get("status")
        if status is not None:
            status = _as_mapping(status, "legacy status")
        return cls(
            slot=_as_int(_require(body, "slot"), "slot"),
            confirmations=_as_int(confirmations, "confirmations") if confirmations is not None else None,
            status=status,
            err=body.get("err"),
            confirmation_status=(
                TransactionConfirmationStatus(confirmation_status) if confirmation_status is not None else None
            ),
        )

    @property
    def is_ok(self) -> bool:
        if self.err is not None:
            return False
        if self.status is not None and "Err" in self.status:
            return False
        return True


def parse_status_list(raw: Any) -> List[Optional[TransactionStatus]]:
    if not isinstance(raw, list):
        raise ValueError("signature status list is not an array")
    return [None if item is None else TransactionStatus.from_json(item) for item in raw]


@dataclass(frozen=True)
class Blockhash:
    blockhash: Hash
    last_valid_block_height: Optional[int] = None

    @classmethod
    def from_json(cls, raw: Any) -> "Blockhash":
        body = _as_mapping(raw, "blockhash")
        value = _require(body, "blockhash")
        if not isinstance(value, str):
            raise ValueError("field 'blockhash' is not a string")
        height = body.get("lastValidBlockHeight")
        return cls(
            blockhash=parse_hash(value),
            last_valid_block_height=_as_int(height, "lastValidBlockHeight") if height is not None else None,
        )

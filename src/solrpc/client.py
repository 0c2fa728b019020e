import asyncio
import dataclasses
import logging
from typing import Any, Callable, List, Optional, Sequence, TypeVar, Union

from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from .commitment import satisfies
from .config import AirdropConfig, ClientSettings, CommitmentLevel, Encoding, Net, PollPolicy, RpcConfig, TransactionConfig
from .errors import AccountNotFoundError
from .http_client import HttpClient
from .models import (
    Account,
    Blockhash,
    TransactionStatus,
    parse_account_list,
    parse_optional_account,
    parse_pubkey,
    parse_signature,
    parse_status_list,
)
from .poller import ConfirmationPoller
from .request import RpcMethod, build_request, next_request_id, with_config
from .response import ResultWithContext, decode_response, unwrap, with_context
from .submitter import interpret_send_response, serialize_transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")
Address = Union[Pubkey, str]


def _expect_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("result is not an integer")
    return value


def _expect_optional_int(value: Any) -> Optional[int]:
    return None if value is None else _expect_int(value)


def _expect_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("result is not a string")
    return value


class RpcClient:
    """Async client for a Solana JSON-RPC node.

    One client belongs to one logical caller. Request ids are allocated
    before each dispatch without an intervening await, so they stay unique
    per client, but ``set_commitment``/``set_encoding`` affect every
    subsequent call from any task sharing the instance.
    """

    def __init__(
        self,
        net: Optional[Net] = None,
        config: Optional[RpcConfig] = None,
        settings: Optional[ClientSettings] = None,
        http: Optional[HttpClient] = None,
    ) -> None:
        settings = settings or ClientSettings()
        if net is not None:
            settings = dataclasses.replace(settings, net=net)
        self.settings = settings
        self.config = config or RpcConfig()
        self.http = http or HttpClient(timeout=settings.request_timeout, user_agent=settings.user_agent)
        self.request_id = 0

    @property
    def url(self) -> str:
        return self.settings.url

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def set_commitment(self, commitment: Optional[CommitmentLevel]) -> None:
        self.config = dataclasses.replace(self.config, commitment=commitment)

    def set_encoding(self, encoding: Optional[Encoding]) -> None:
        self.config = dataclasses.replace(self.config, encoding=encoding)

    async def _send_raw(self, method: RpcMethod, params: List[Any]) -> Any:
        self.request_id = next_request_id(self.request_id)
        payload = build_request(method, params, self.request_id)
        logger.debug("-> %s id=%d", payload["method"], self.request_id)
        return await asyncio.to_thread(self.http.post_json, self.url, payload)

    async def _call(self, method: RpcMethod, params: List[Any], parse_result: Callable[[Any], T]) -> T:
        raw = await self._send_raw(method, params)
        return unwrap(decode_response(raw, parse_result))

    # ---------- accounts ------------------------------------------------
    async def get_account_with_context(self, pubkey: Address) -> ResultWithContext[Optional[Account]]:
        params = with_config([str(pubkey)], self.config.to_params())
        return await self._call(RpcMethod.GET_ACCOUNT_INFO, params, with_context(parse_optional_account))

    async def get_account(self, pubkey: Address) -> Account:
        result = await self.get_account_with_context(pubkey)
        if result.value is None:
            raise AccountNotFoundError(address=str(pubkey))
        return result.value

    async def get_multiple_accounts(self, pubkeys: Sequence[Address]) -> List[Optional[Account]]:
        params = with_config([[str(pubkey) for pubkey in pubkeys]], self.config.to_params())
        result = await self._call(RpcMethod.GET_MULTIPLE_ACCOUNTS, params, with_context(parse_account_list))
        return result.value

    async def get_and_deserialize_account_data(self, pubkey: Address, decoder: Callable[[bytes], T]) -> T:
        """Fetch an account and run its raw bytes through ``decoder``.

        The client's encoding must be ``base64`` or ``base58`` for the node
        to return bytes rather than parsed JSON.
        """
        account = await self.get_account(pubkey)
        return account.data.parse_into(decoder)

    async def get_and_deserialize_parsed_account_data(self, pubkey: Address, decoder: Callable[[Any], T]) -> T:
        account = await self.get_account(pubkey)
        return account.data.parse_into_json(decoder)

    async def get_owner(self, pubkey: Address) -> Pubkey:
        account = await self.get_account(pubkey)
        return parse_pubkey(account.owner)

    async def get_balance(self, pubkey: Address) -> int:
        params = with_config([str(pubkey)], self.config.commitment_params())
        result = await self._call(RpcMethod.GET_BALANCE, params, with_context(_expect_int))
        return result.value

    async def get_minimum_balance_for_rent_exemption(self, data_len: int) -> int:
        return await self._call(RpcMethod.GET_MINIMUM_BALANCE_FOR_RENT_EXEMPTION, [data_len], _expect_int)

    # ---------- cluster state -------------------------------------------
    async def request_airdrop(
        self, pubkey: Address, lamports: int, recent_blockhash: Optional[Hash] = None
    ) -> Signature:
        airdrop = AirdropConfig(
            recent_blockhash=str(recent_blockhash) if recent_blockhash is not None else None,
            commitment=self.config.commitment,
        )
        params = with_config([str(pubkey), lamports], airdrop.to_params())
        result = await self._call(RpcMethod.REQUEST_AIRDROP, params, _expect_str)
        signature = parse_signature(result)
        logger.info("requested airdrop of %d lamports to %s: %s", lamports, pubkey, signature)
        return signature

    async def get_blockhash(self) -> Blockhash:
        method = RpcMethod(self.settings.blockhash_method)
        params = with_config([], self.config.commitment_params())
        result = await self._call(method, params, with_context(Blockhash.from_json))
        return result.value

    async def get_latest_blockhash(self) -> Hash:
        return (await self.get_blockhash()).blockhash

    async def get_slot(self) -> int:
        params = with_config([], self.config.commitment_params())
        return await self._call(RpcMethod.GET_SLOT, params, _expect_int)

    async def get_block_time(self, slot: int) -> Optional[int]:
        return await self._call(RpcMethod.GET_BLOCK_TIME, [slot], _expect_optional_int)

    # ---------- transactions --------------------------------------------
    async def send_transaction_with_config(self, transaction: Any, config: TransactionConfig) -> Signature:
        encoded = serialize_transaction(transaction, config.encoding)
        raw = await self._send_raw(RpcMethod.SEND_TRANSACTION, [encoded, config.to_params()])
        return interpret_send_response(raw)

    async def send_transaction_unchecked(self, transaction: Any) -> Signature:
        """Submit without preflight simulation. Faster, but no simulation logs come back."""
        config = TransactionConfig(
            skip_preflight=True,
            preflight_commitment=CommitmentLevel.PROCESSED,
            encoding=Encoding.BASE64,
        )
        return await self.send_transaction_with_config(transaction, config)

    async def send_transaction(self, transaction: Any) -> Signature:
        config = TransactionConfig(
            skip_preflight=False,
            preflight_commitment=self.config.commitment,
            encoding=Encoding.BASE64,
        )
        return await self.send_transaction_with_config(transaction, config)

    async def get_signature_statuses(
        self, signatures: Sequence[Union[Signature, str]], search_transaction_history: bool = False
    ) -> List[Optional[TransactionStatus]]:
        params: List[Any] = [[str(signature) for signature in signatures]]
        if search_transaction_history:
            params.append({"searchTransactionHistory": True})
        result = await self._call(RpcMethod.GET_SIGNATURE_STATUSES, params, with_context(parse_status_list))
        return result.value

    async def fetch_signature_status(self, signature: Union[Signature, str]) -> Optional[TransactionStatus]:
        statuses = await self.get_signature_statuses([signature])
        if not statuses:
            return None
        return statuses[0]

    def _status_commitment(self) -> CommitmentLevel:
        return self.config.commitment or CommitmentLevel.CONFIRMED

    async def get_signature_status(self, signature: Union[Signature, str]) -> bool:
        """True once the transaction succeeded at the configured commitment level."""
        status = await self.fetch_signature_status(signature)
        return status is not None and satisfies(status, self._status_commitment()) and status.is_ok

    async def send_and_confirm_transaction(
        self,
        transaction: Any,
        policy: Optional[PollPolicy] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Signature:
        """Submit a transaction and poll until it reaches the configured commitment.

        Raises ``ConfirmationTimeoutError`` when the poll policy is exhausted
        and ``TransactionFailedError`` when the node reports the transaction
        as failed.
        """
        signature = await self.send_transaction(transaction)
        poller = ConfirmationPoller(
            fetch_status=self.fetch_signature_status,
            commitment=self._status_commitment(),
            policy=policy or self.settings.poll,
        )
        return await poller.wait(signature, cancel_event=cancel_event)

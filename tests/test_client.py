import base64
import unittest

import requests
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from solrpc.client import RpcClient
from solrpc.config import ClientSettings, CommitmentLevel, Encoding, Net, PollPolicy, RpcConfig
from solrpc.errors import (
    AccountDecodeError,
    AccountNotFoundError,
    ConfirmationTimeoutError,
    MalformedResponseError,
    RpcResponseError,
    TransactionSimulationError,
)

from .fakes import FakeHttp, error, ok, ok_with_context

SIGNATURE = str(Signature.default())
ADDRESS = Pubkey.default()
TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
ACCOUNT = {
    "owner": "BPFLoader2111111111111111111111111111111111",
    "executable": True,
    "lamports": 1141440,
    "rentEpoch": 361,
    "data": [base64.b64encode(b"\x07\x00\x00\x00").decode(), "base64"],
}
FAST_POLL = PollPolicy(interval=0.0, max_attempts=5)


class StubTransaction:
    def __bytes__(self) -> bytes:
        return b"\x01signed-transaction"


def make_client(responses, config=None, settings=None):
    http = FakeHttp(responses)
    client = RpcClient(config=config, settings=settings or ClientSettings(net=Net.DEVNET, poll=FAST_POLL), http=http)
    return client, http


class ClientConstructionTests(unittest.TestCase):
    def test_net_selects_endpoint(self) -> None:
        client = RpcClient(net=Net.MAINNET, http=FakeHttp([]))
        self.assertEqual(client.url, "https://api.mainnet-beta.solana.com")

    def test_explicit_endpoint_wins(self) -> None:
        client = RpcClient(settings=ClientSettings(endpoint="http://rpc.internal:8899"), http=FakeHttp([]))
        self.assertEqual(client.url, "http://rpc.internal:8899")

    def test_default_config(self) -> None:
        client = RpcClient(http=FakeHttp([]))
        self.assertEqual(client.config, RpcConfig(encoding=Encoding.JSON_PARSED, commitment=CommitmentLevel.CONFIRMED))

    def test_set_commitment(self) -> None:
        client = RpcClient(config=RpcConfig(commitment=None), http=FakeHttp([]))
        self.assertIsNone(client.config.commitment)
        client.set_commitment(CommitmentLevel.PROCESSED)
        self.assertEqual(client.config.commitment, CommitmentLevel.PROCESSED)


class AccountQueryTests(unittest.IsolatedAsyncioTestCase):
    async def test_get_account(self) -> None:
        client, http = make_client([ok_with_context(ACCOUNT)], config=RpcConfig(encoding=Encoding.BASE64))

        account = await client.get_account(TOKEN_PROGRAM)

        self.assertEqual(account.owner, "BPFLoader2111111111111111111111111111111111")
        self.assertTrue(account.executable)
        url, payload = http.requests[0]
        self.assertEqual(url, "https://api.devnet.solana.com")
        self.assertEqual(payload["method"], "getAccountInfo")
        self.assertEqual(payload["params"], [TOKEN_PROGRAM, {"encoding": "base64", "commitment": "confirmed"}])

    async def test_missing_account(self) -> None:
        client, _ = make_client([ok_with_context(None)])
        with self.assertRaises(AccountNotFoundError):
            await client.get_account(ADDRESS)

    async def test_get_multiple_accounts(self) -> None:
        client, http = make_client([ok_with_context([ACCOUNT, None])])

        accounts = await client.get_multiple_accounts([TOKEN_PROGRAM, ADDRESS])

        self.assertTrue(accounts[0].executable)
        self.assertIsNone(accounts[1])
        self.assertEqual(http.payloads[0]["params"][0], [TOKEN_PROGRAM, str(ADDRESS)])

    async def test_deserialize_account_bytes(self) -> None:
        client, _ = make_client([ok_with_context(ACCOUNT)])
        value = await client.get_and_deserialize_account_data(ADDRESS, lambda raw: int.from_bytes(raw, "little"))
        self.assertEqual(value, 7)

    async def test_deserialize_parsed_account(self) -> None:
        parsed = dict(ACCOUNT, data={"program": "spl-token", "parsed": {"type": "mint", "info": {"supply": "1"}}, "space": 82})
        client, _ = make_client([ok_with_context(parsed)])
        supply = await client.get_and_deserialize_parsed_account_data(ADDRESS, lambda value: int(value["info"]["supply"]))
        self.assertEqual(supply, 1)

    async def test_deserialize_failure(self) -> None:
        client, _ = make_client([ok_with_context(ACCOUNT)])
        with self.assertRaises(AccountDecodeError):
            await client.get_and_deserialize_parsed_account_data(ADDRESS, dict)

    async def test_get_owner(self) -> None:
        client, _ = make_client([ok_with_context(ACCOUNT)])
        owner = await client.get_owner(TOKEN_PROGRAM)
        self.assertEqual(str(owner), "BPFLoader2111111111111111111111111111111111")

    async def test_balance_is_idempotent_while_ids_increase(self) -> None:
        client, http = make_client([ok_with_context(5500, request_id=i) for i in (1, 2, 3)])

        balances = [await client.get_balance(ADDRESS) for _ in range(3)]

        self.assertEqual(balances, [5500, 5500, 5500])
        self.assertEqual([payload["id"] for payload in http.payloads], [1, 2, 3])
        self.assertEqual(http.payloads[0]["params"], [str(ADDRESS), {"commitment": "confirmed"}])

    async def test_rent_exemption(self) -> None:
        client, http = make_client([ok(1461600)])
        self.assertEqual(await client.get_minimum_balance_for_rent_exemption(82), 1461600)
        self.assertEqual(http.payloads[0]["params"], [82])


class ClusterQueryTests(unittest.IsolatedAsyncioTestCase):
    async def test_slot_and_block_time(self) -> None:
        client, http = make_client([ok(1234), ok(1_650_000_000)])

        slot = await client.get_slot()
        block_time = await client.get_block_time(slot)

        self.assertEqual(slot, 1234)
        self.assertEqual(block_time, 1_650_000_000)
        self.assertEqual(http.payloads[0]["params"], [{"commitment": "confirmed"}])
        self.assertEqual(http.payloads[1]["params"], [1234])

    async def test_block_time_may_be_unknown(self) -> None:
        client, _ = make_client([ok(None)])
        self.assertIsNone(await client.get_block_time(5))

    async def test_block_not_available_is_a_server_error(self) -> None:
        client, _ = make_client([error(-32004, "Block not available for slot 5")])
        with self.assertRaises(RpcResponseError):
            await client.get_block_time(5)

    async def test_latest_blockhash(self) -> None:
        value = {"blockhash": str(Hash.default()), "lastValidBlockHeight": 3090}
        client, http = make_client([ok_with_context(value)])

        blockhash = await client.get_latest_blockhash()

        self.assertEqual(blockhash, Hash.default())
        self.assertEqual(http.payloads[0]["method"], "getLatestBlockhash")

    async def test_blockhash_method_is_configurable(self) -> None:
        settings = ClientSettings(blockhash_method="getRecentBlockhash")
        value = {"blockhash": str(Hash.default()), "feeCalculator": {"lamportsPerSignature": 5000}}
        client, http = make_client([ok_with_context(value)], settings=settings)

        blockhash = await client.get_blockhash()

        self.assertIsNone(blockhash.last_valid_block_height)
        self.assertEqual(http.payloads[0]["method"], "getRecentBlockhash")

    async def test_request_airdrop(self) -> None:
        client, http = make_client([ok(SIGNATURE)])

        signature = await client.request_airdrop(ADDRESS, 5500, Hash.default())

        self.assertEqual(str(signature), SIGNATURE)
        self.assertEqual(
            http.payloads[0]["params"],
            [str(ADDRESS), 5500, {"recentBlockhash": str(Hash.default()), "commitment": "confirmed"}],
        )

    async def test_transport_errors_propagate_unchanged(self) -> None:
        failure = requests.ConnectionError("connection refused")
        client, _ = make_client([failure])
        with self.assertRaises(requests.ConnectionError) as ctx:
            await client.get_slot()
        self.assertIs(ctx.exception, failure)

    async def test_wrong_result_type_is_malformed(self) -> None:
        client, _ = make_client([ok("not-a-slot")])
        with self.assertRaises(MalformedResponseError):
            await client.get_slot()

    async def test_context_manager_closes_transport(self) -> None:
        http = FakeHttp([])
        async with RpcClient(http=http):
            pass
        self.assertTrue(http.closed)


class TransactionTests(unittest.IsolatedAsyncioTestCase):
    async def test_send_transaction_returns_signature(self) -> None:
        client, http = make_client([ok(SIGNATURE)])

        signature = await client.send_transaction(StubTransaction())

        self.assertEqual(str(signature), SIGNATURE)
        encoded, config = http.payloads[0]["params"]
        self.assertEqual(base64.b64decode(encoded), b"\x01signed-transaction")
        self.assertEqual(config, {"skipPreflight": False, "preflightCommitment": "confirmed", "encoding": "base64"})

    async def test_send_transaction_unchecked_config(self) -> None:
        client, http = make_client([ok(SIGNATURE)])
        await client.send_transaction_unchecked(StubTransaction())
        self.assertEqual(
            http.payloads[0]["params"][1],
            {"skipPreflight": True, "preflightCommitment": "processed", "encoding": "base64"},
        )

    async def test_rejected_transaction_logs_diagnostics(self) -> None:
        rejection = error(
            -32002,
            "Transaction simulation failed",
            data={"err": "AccountNotFound", "logs": ["log0", "log1"]},
        )
        client, _ = make_client([rejection])

        with self.assertLogs("solrpc.submitter", level="DEBUG") as captured:
            with self.assertRaises(TransactionSimulationError) as ctx:
                await client.send_transaction(StubTransaction())

        self.assertEqual(str(ctx.exception), "Transaction simulation failed")
        self.assertEqual([record.getMessage() for record in captured.records], ["0 log0", "1 log1"])

    async def test_signature_statuses(self) -> None:
        record = {"slot": 7, "confirmations": 3, "err": None, "status": {"Ok": None}, "confirmationStatus": "confirmed"}
        client, http = make_client([ok_with_context([record, None])])

        statuses = await client.get_signature_statuses([SIGNATURE, SIGNATURE], search_transaction_history=True)

        self.assertEqual(statuses[0].confirmations, 3)
        self.assertIsNone(statuses[1])
        self.assertEqual(http.payloads[0]["params"], [[SIGNATURE, SIGNATURE], {"searchTransactionHistory": True}])

    async def test_signature_status_respects_commitment(self) -> None:
        processed = {"slot": 7, "confirmations": 0, "err": None, "status": {"Ok": None}, "confirmationStatus": "processed"}
        client, http = make_client([ok_with_context([processed]), ok_with_context([processed]), ok_with_context([None])])

        self.assertFalse(await client.get_signature_status(SIGNATURE))
        client.set_commitment(CommitmentLevel.PROCESSED)
        self.assertTrue(await client.get_signature_status(SIGNATURE))
        self.assertFalse(await client.get_signature_status(SIGNATURE))
        self.assertEqual(http.payloads[0]["params"], [[SIGNATURE]])

    async def test_unset_commitment_checks_confirmed(self) -> None:
        processed = {"slot": 7, "confirmations": 0, "err": None, "status": {"Ok": None}, "confirmationStatus": "processed"}
        client, _ = make_client([ok_with_context([processed])], config=RpcConfig(commitment=None))
        self.assertFalse(await client.get_signature_status(SIGNATURE))

    async def test_send_and_confirm_polls_until_finalized(self) -> None:
        finalized = {"slot": 9, "confirmations": None, "err": None, "status": {"Ok": None}, "confirmationStatus": "finalized"}
        client, http = make_client(
            [
                ok(SIGNATURE),
                ok_with_context([None]),
                ok_with_context([None]),
                ok_with_context([finalized]),
            ],
            config=RpcConfig(commitment=CommitmentLevel.FINALIZED),
        )

        signature = await client.send_and_confirm_transaction(StubTransaction())

        self.assertEqual(str(signature), SIGNATURE)
        methods = [payload["method"] for payload in http.payloads]
        self.assertEqual(methods, ["sendTransaction"] + ["getSignatureStatuses"] * 3)
        self.assertEqual(http.responses, [])

    async def test_send_and_confirm_times_out(self) -> None:
        client, _ = make_client([ok(SIGNATURE), ok_with_context([None]), ok_with_context([None])])
        with self.assertRaises(ConfirmationTimeoutError):
            await client.send_and_confirm_transaction(StubTransaction(), policy=PollPolicy(interval=0.0, max_attempts=2))


if __name__ == "__main__":
    unittest.main()

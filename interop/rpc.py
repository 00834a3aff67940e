# -*- coding: utf-8 -*-
# ------------------------------------------------------------------------------
#
#   Copyright 2026 Valory AG
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.
#
# ------------------------------------------------------------------------------

"""Chain RPC client interface and open-aea backed implementation."""

import logging
import typing as t
from abc import ABC, abstractmethod
from math import ceil

from aea.crypto.base import Crypto, LedgerApi
from aea.helpers.logging import setup_logger
from hexbytes import HexBytes
from web3.datastructures import AttributeDict
from web3.exceptions import TimeExhausted, TransactionNotFound

from interop.constants import (
    DEFAULT_GAS_LIMIT,
    GAS_ESTIMATE_BUFFER,
    ON_CHAIN_INTERACT_TIMEOUT,
)
from interop.exceptions import InteropError, RpcError, StateError
from interop.interop_types import LogProof, SubmittedTx
from interop.serialization import to_hex, to_int
from interop.utils.abi import ABI, encode_call


T = t.TypeVar("T")

PROOF_NOT_AVAILABLE_MESSAGE = "Proof not yet available. Please try again later."


def wrap_rpc(
    operation: str,
    fn: t.Callable[[], T],
    message: str,
    context: t.Optional[t.Dict[str, t.Any]] = None,
) -> T:
    """Run `fn`, converting provider failures into `RpcError` with the cause chained."""
    try:
        return fn()
    except InteropError:
        raise
    except Exception as e:  # pylint: disable=broad-except
        raise RpcError(
            f"{message} {e}".strip(), operation=operation, context=context
        ) from e


def plain(value: t.Any) -> t.Any:
    """web3 response (AttributeDict, HexBytes) to plain dicts, lists and 0x strings."""
    if isinstance(value, (AttributeDict, dict)):
        return {key: plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain(item) for item in value]
    if isinstance(value, (HexBytes, bytes, bytearray)):
        return to_hex(bytes(value))
    return value


def normalize_proof(raw: t.Any) -> LogProof:
    """Normalize a `zks_getL2ToL1LogProof` result."""
    if not isinstance(raw, dict):
        raise RpcError(
            "Malformed proof: expected an object.",
            operation="rpc.get_proof",
            context={"received": type(raw).__name__},
        )
    index = raw.get("id", raw.get("index"))
    batch_number = raw.get("batch_number", raw.get("batchNumber"))
    if index is None or batch_number is None:
        raise RpcError(
            "Malformed proof: missing id or batch number.",
            operation="rpc.get_proof",
            context={"keys": sorted(raw)},
        )
    try:
        return LogProof(
            root=to_hex(raw.get("root", "0x")),
            batch_number=to_int(batch_number),
            id=to_int(index),
            proof=[to_hex(node) for node in raw.get("proof") or []],
        )
    except (TypeError, ValueError) as e:
        raise RpcError(
            "Malformed proof: invalid numeric field.",
            operation="rpc.get_proof",
        ) from e


class RpcClient(ABC):
    """Access to one chain."""

    @abstractmethod
    def chain_id(self) -> int:
        """Chain id."""

    @abstractmethod
    def get_receipt(self, tx_hash: str) -> t.Optional[t.Dict]:
        """Transaction receipt, `None` when not mined."""

    @abstractmethod
    def get_receipt_with_l2_to_l1(self, tx_hash: str) -> t.Optional[t.Dict]:
        """Receipt including the ordered `l2ToL1Logs`, `None` when not mined."""

    @abstractmethod
    def get_logs(
        self,
        address: str,
        topics: t.Sequence[t.Optional[str]],
        from_block: t.Union[int, str] = "earliest",
        to_block: t.Union[int, str] = "latest",
    ) -> t.List[t.Dict]:
        """Logs emitted by `address` matching `topics`."""

    @abstractmethod
    def get_proof(self, tx_hash: str, log_index: int) -> LogProof:
        """Inclusion proof of the `log_index`-th L2->L1 log of a transaction."""

    @abstractmethod
    def read_contract(
        self, address: str, abi: ABI, fn: str, args: t.Sequence[t.Any]
    ) -> t.Any:
        """Call the view function `fn` of a contract with `abi`."""

    @abstractmethod
    def submit_transaction(self, tx: t.Dict) -> SubmittedTx:
        """Sign and send `tx` (`to`, `data`, `value`)."""

    def submit(
        self,
        address: str,
        abi: ABI,
        fn: str,
        args: t.Sequence[t.Any],
        value: int = 0,
    ) -> SubmittedTx:
        """Send a transaction calling `fn` of a contract with `abi`."""
        return self.submit_transaction(
            {
                "to": address,
                "data": to_hex(encode_call(abi, fn, args)),
                "value": value,
            }
        )


class LedgerApiRpcClient(RpcClient):
    """RPC client on top of an open-aea ledger api."""

    def __init__(
        self,
        ledger_api: LedgerApi,
        crypto: t.Optional[Crypto] = None,
        logger: t.Optional[logging.Logger] = None,
        timeout: float = ON_CHAIN_INTERACT_TIMEOUT,
    ) -> None:
        """Initialize the client."""
        self.ledger_api = ledger_api
        self.crypto = crypto
        self.logger = logger or setup_logger(name="interop.rpc.LedgerApiRpcClient")
        self.timeout = timeout

    def chain_id(self) -> int:
        """Chain id."""
        return wrap_rpc(
            "rpc.chain_id",
            lambda: int(self.ledger_api.api.eth.chain_id),
            "Failed to fetch chain id.",
        )

    def _request(self, method: str, params: t.List[t.Any]) -> t.Any:
        response = self.ledger_api.api.provider.make_request(method, params)
        error = response.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise RpcError(
                f"{method} failed: {message}",
                operation=f"rpc.{method}",
                context={"params": params},
            )
        return response.get("result")

    def get_receipt(self, tx_hash: str) -> t.Optional[t.Dict]:
        """Transaction receipt, `None` when not mined."""

        def _fetch() -> t.Optional[t.Dict]:
            try:
                return plain(self.ledger_api.api.eth.get_transaction_receipt(tx_hash))
            except TransactionNotFound:
                return None

        return wrap_rpc(
            "rpc.get_receipt",
            _fetch,
            "Failed to fetch transaction receipt.",
            {"tx_hash": tx_hash},
        )

    def get_receipt_with_l2_to_l1(self, tx_hash: str) -> t.Optional[t.Dict]:
        """Receipt including the ordered `l2ToL1Logs`, `None` when not mined."""

        def _fetch() -> t.Optional[t.Dict]:
            receipt = self._request("eth_getTransactionReceipt", [tx_hash])
            if not receipt:
                return None
            receipt = plain(receipt)
            if not isinstance(receipt.get("l2ToL1Logs"), list):
                receipt["l2ToL1Logs"] = []
            return receipt

        return wrap_rpc(
            "rpc.get_receipt_with_l2_to_l1",
            _fetch,
            "Failed to fetch transaction receipt.",
            {"tx_hash": tx_hash},
        )

    def get_logs(
        self,
        address: str,
        topics: t.Sequence[t.Optional[str]],
        from_block: t.Union[int, str] = "earliest",
        to_block: t.Union[int, str] = "latest",
    ) -> t.List[t.Dict]:
        """Logs emitted by `address` matching `topics`."""
        return wrap_rpc(
            "rpc.get_logs",
            lambda: plain(
                self.ledger_api.api.eth.get_logs(
                    {
                        "fromBlock": from_block,
                        "toBlock": to_block,
                        "address": self.ledger_api.api.to_checksum_address(address),
                        "topics": list(topics),
                    }
                )
            ),
            "Failed to fetch logs.",
            {"address": address, "topics": list(topics)},
        )

    def get_proof(self, tx_hash: str, log_index: int) -> LogProof:
        """Inclusion proof of the `log_index`-th L2->L1 log of a transaction."""

        def _fetch() -> LogProof:
            raw = self._request("zks_getL2ToL1LogProof", [tx_hash, log_index])
            if not raw:
                raise StateError(
                    PROOF_NOT_AVAILABLE_MESSAGE,
                    operation="rpc.get_proof",
                    context={"tx_hash": tx_hash, "log_index": log_index},
                )
            return normalize_proof(raw)

        return wrap_rpc(
            "rpc.get_proof",
            _fetch,
            "Failed to fetch L2->L1 log proof.",
            {"tx_hash": tx_hash, "log_index": log_index},
        )

    def read_contract(
        self, address: str, abi: ABI, fn: str, args: t.Sequence[t.Any]
    ) -> t.Any:
        """Call the view function `fn` of a contract with `abi`."""

        def _call() -> t.Any:
            instance = self.ledger_api.api.eth.contract(
                address=self.ledger_api.api.to_checksum_address(address), abi=abi
            )
            function = getattr(instance.functions, fn)(*args)
            if self.crypto is None:
                return function.call()
            return function.call({"from": self.crypto.address})

        return wrap_rpc(
            "rpc.read_contract",
            _call,
            f"Failed to call {fn}.",
            {"address": address},
        )

    def _update_with_gas_pricing(self, tx: t.Dict) -> None:
        tx.pop("maxFeePerGas", None)
        tx.pop("gasPrice", None)
        tx.pop("maxPriorityFeePerGas", None)

        gas_pricing = self.ledger_api.try_get_gas_pricing()
        if gas_pricing is None:
            raise RpcError("Unable to retrieve gas pricing.", operation="rpc.submit")

        if "maxFeePerGas" in gas_pricing and "maxPriorityFeePerGas" in gas_pricing:
            tx["maxFeePerGas"] = gas_pricing["maxFeePerGas"]
            tx["maxPriorityFeePerGas"] = gas_pricing["maxPriorityFeePerGas"]
        elif "gasPrice" in gas_pricing:
            tx["gasPrice"] = gas_pricing["gasPrice"]
        else:
            raise RpcError("Retrieved invalid gas pricing.", operation="rpc.submit")

    def _update_with_gas_estimate(self, tx: t.Dict) -> None:
        tx["gas"] = 1
        self.ledger_api.update_with_gas_estimate(tx)
        if tx["gas"] == 1:
            self.logger.warning(
                f"[INTEROP RPC] Unable to estimate gas, using {DEFAULT_GAS_LIMIT}."
            )
            tx["gas"] = DEFAULT_GAS_LIMIT
            return
        tx["gas"] = ceil(tx["gas"] * GAS_ESTIMATE_BUFFER)

    def _wait(self, tx_hash: str) -> t.Optional[t.Dict]:
        try:
            return plain(
                self.ledger_api.api.eth.wait_for_transaction_receipt(
                    tx_hash, timeout=self.timeout
                )
            )
        except TimeExhausted:
            return None

    def submit_transaction(self, tx: t.Dict) -> SubmittedTx:
        """Sign and send `tx` (`to`, `data`, `value`)."""
        if self.crypto is None:
            raise RpcError(
                "Cannot submit transactions without a signer.",
                operation="rpc.submit_transaction",
            )
        crypto = self.crypto

        def _send() -> str:
            eth = self.ledger_api.api.eth
            full_tx = {
                "from": crypto.address,
                "to": self.ledger_api.api.to_checksum_address(tx["to"]),
                "data": tx.get("data", "0x"),
                "value": int(tx.get("value") or 0),
                "chainId": int(eth.chain_id),
                "nonce": eth.get_transaction_count(crypto.address),
            }
            self._update_with_gas_pricing(full_tx)
            self._update_with_gas_estimate(full_tx)
            signed = crypto.sign_transaction(full_tx)
            tx_hash = self.ledger_api.send_signed_transaction(signed)
            if tx_hash is None:
                raise RpcError(
                    "Transaction was not accepted by the node.",
                    operation="rpc.submit_transaction",
                    context={"to": tx["to"]},
                )
            return to_hex(tx_hash)

        tx_hash = wrap_rpc(
            "rpc.submit_transaction",
            _send,
            "Failed to send transaction.",
            {"to": tx.get("to")},
        )
        self.logger.info(f"[INTEROP RPC] Sent transaction {tx_hash} to {tx['to']}.")
        return SubmittedTx(hash=tx_hash, wait=lambda: self._wait(tx_hash))

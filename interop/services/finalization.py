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

"""Bundle finalization: status, proof and root waiting, destination execution."""

import logging
import typing as t

from aea.helpers.logging import setup_logger

from interop.constants import ZERO_HASH
from interop.data.contracts.interop_handler.contract import InteropHandler
from interop.data.contracts.interop_root_storage.contract import InteropRootStorage
from interop.exceptions import ExecutionError, InteropError, RpcError, StateError
from interop.finalization import (
    BundleReceiptInfo,
    build_finalization_info,
    is_proof_not_ready_error,
    is_receipt_not_found_error,
    parse_bundle_receipt_info,
    parse_bundle_sent_from_receipt,
    resolve_ids_from_waitable,
)
from interop.interop_types import (
    ExecutionHandle,
    InteropExpectedRoot,
    InteropFinalizationInfo,
    InteropPhase,
    InteropStatus,
    InteropWaitable,
    LogProof,
    ResolvedInteropIds,
)
from interop.rpc import RpcClient
from interop.serialization import BigInt, to_hex, to_int
from interop.settings import POLL_MS, TIMEOUT_MS, InteropAddresses
from interop.utils import Clock, Deadline, SystemClock


LIFECYCLE_PRECEDENCE = (
    InteropPhase.UNBUNDLED,
    InteropPhase.EXECUTED,
    InteropPhase.VERIFIED,
)


class FinalizationService:
    """Drive bundles from the source chain to execution on their destination."""

    def __init__(
        self,
        src_rpc: RpcClient,
        dst_rpcs: t.Dict[int, RpcClient],
        addresses: t.Optional[InteropAddresses] = None,
        clock: t.Optional[Clock] = None,
        logger: t.Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the service."""
        self.src_rpc = src_rpc
        self.dst_rpcs = dst_rpcs
        self.addresses = addresses or InteropAddresses()
        self.clock = clock or SystemClock()
        self.logger = logger or setup_logger(name="interop.services.FinalizationService")

    def dst_rpc(self, dst_chain_id: int) -> RpcClient:
        """Client of a destination chain."""
        rpc = self.dst_rpcs.get(int(dst_chain_id))
        if rpc is None:
            raise RpcError(
                f"No RPC client configured for destination chain {dst_chain_id}.",
                operation="interop.dst_rpc",
                context={"dst_chain_id": dst_chain_id},
            )
        return rpc

    # Status

    def resolve_ids(self, waitable: InteropWaitable) -> ResolvedInteropIds:
        """Known ids of a bundle, reading the source receipt for the missing ones."""
        ids = resolve_ids_from_waitable(waitable)
        if ids.bundle_hash and ids.dst_chain_id is not None:
            return ids
        if not ids.l2_src_tx_hash:
            return ids

        receipt = self.src_rpc.get_receipt(ids.l2_src_tx_hash)
        if receipt is None:
            raise StateError(
                "Source transaction receipt not found.",
                operation="interop.status.source_receipt",
                context={"l2_src_tx_hash": ids.l2_src_tx_hash},
            )
        sent = parse_bundle_sent_from_receipt(
            receipt, self.addresses.interop_center, ids.l2_src_tx_hash
        )
        ids.bundle_hash = sent["bundle_hash"]
        ids.dst_chain_id = sent["dst_chain_id"]
        return ids

    def query_lifecycle(
        self, dst_chain_id: int, bundle_hash: str
    ) -> t.Tuple[InteropPhase, t.Optional[str]]:
        """Most advanced lifecycle phase logged on the destination, with the execution tx hash."""
        rpc = self.dst_rpc(dst_chain_id)
        for phase in LIFECYCLE_PRECEDENCE:
            logs = InteropHandler.get_lifecycle_logs(
                rpc, self.addresses.interop_handler, bundle_hash, phase
            )
            if not logs:
                continue
            if phase == InteropPhase.VERIFIED:
                return phase, None
            tx_hash = logs[-1].get("transactionHash")
            return phase, to_hex(tx_hash) if tx_hash is not None else None
        return InteropPhase.SENT, None

    def derive_status(self, waitable: InteropWaitable) -> InteropStatus:
        """Current phase of a bundle."""
        ids = self.resolve_ids(waitable)
        if not ids.bundle_hash or ids.dst_chain_id is None:
            return InteropStatus(
                phase=InteropPhase.SENT if ids.l2_src_tx_hash else InteropPhase.UNKNOWN,
                l2_src_tx_hash=ids.l2_src_tx_hash,
                bundle_hash=ids.bundle_hash,
                dst_chain_id=BigInt(ids.dst_chain_id) if ids.dst_chain_id is not None else None,
                dst_exec_tx_hash=ids.dst_exec_tx_hash,
            )

        phase, dst_exec_tx_hash = self.query_lifecycle(ids.dst_chain_id, ids.bundle_hash)
        self.logger.debug(
            f"[INTEROP FINALIZATION] Bundle {ids.bundle_hash} on chain {ids.dst_chain_id} is {phase}."
        )
        return InteropStatus(
            phase=phase,
            l2_src_tx_hash=ids.l2_src_tx_hash,
            bundle_hash=ids.bundle_hash,
            dst_chain_id=BigInt(ids.dst_chain_id),
            dst_exec_tx_hash=dst_exec_tx_hash or ids.dst_exec_tx_hash,
        )

    # Waiting

    def wait_for_source_receipt(
        self, l2_src_tx_hash: str, deadline: Deadline, poll_ms: int
    ) -> t.Dict:
        """Extended source receipt, polling until the transaction is mined."""
        while True:
            deadline.check("source receipt", {"l2_src_tx_hash": l2_src_tx_hash})
            try:
                receipt = self.src_rpc.get_receipt_with_l2_to_l1(l2_src_tx_hash)
            except InteropError as e:
                if not is_receipt_not_found_error(e):
                    raise
                receipt = None
            if receipt is not None:
                return receipt
            self.logger.debug(
                f"[INTEROP FINALIZATION] Source transaction {l2_src_tx_hash} not mined yet."
            )
            deadline.sleep(poll_ms, "source receipt", {"l2_src_tx_hash": l2_src_tx_hash})

    def _wait_for_proof(
        self,
        l2_src_tx_hash: str,
        bundle_info: BundleReceiptInfo,
        deadline: Deadline,
        poll_ms: int,
    ) -> LogProof:
        context = {
            "l2_src_tx_hash": l2_src_tx_hash,
            "log_index": bundle_info.l2_to_l1_log_index,
        }
        while True:
            deadline.check("inclusion proof", context)
            try:
                return self.src_rpc.get_proof(
                    l2_src_tx_hash, bundle_info.l2_to_l1_log_index
                )
            except InteropError as e:
                if not is_proof_not_ready_error(e):
                    raise
                self.logger.debug(
                    f"[INTEROP FINALIZATION] Proof for {l2_src_tx_hash} not available yet."
                )
            deadline.sleep(poll_ms, "inclusion proof", context)

    def _wait_for_root(
        self,
        dst_chain_id: int,
        expected_root: InteropExpectedRoot,
        deadline: Deadline,
        poll_ms: int,
    ) -> None:
        rpc = self.dst_rpc(dst_chain_id)
        context = {
            "dst_chain_id": dst_chain_id,
            "root_chain_id": int(expected_root.root_chain_id),
            "batch_number": int(expected_root.batch_number),
        }
        while True:
            deadline.check("interop root", context)
            root = InteropRootStorage.get_interop_root(
                rpc,
                self.addresses.interop_root_storage,
                int(expected_root.root_chain_id),
                int(expected_root.batch_number),
            )
            if root != ZERO_HASH:
                if root == expected_root.expected_root.lower():
                    return
                raise StateError(
                    "Interop root mismatch on destination chain.",
                    operation="interop.wait",
                    context={
                        **context,
                        "expected": expected_root.expected_root,
                        "got": root,
                    },
                )
            deadline.sleep(poll_ms, "interop root", context)

    def wait_for_finalization(
        self,
        waitable: InteropWaitable,
        poll_ms: t.Optional[int] = None,
        timeout_ms: t.Optional[int] = None,
    ) -> InteropFinalizationInfo:
        """Wait until the bundle can be executed on its destination chain."""
        if poll_ms is None:
            poll_ms = POLL_MS
        if timeout_ms is None:
            timeout_ms = TIMEOUT_MS
        deadline = Deadline(self.clock, timeout_ms, "interop.wait")

        ids = resolve_ids_from_waitable(waitable)
        if not ids.l2_src_tx_hash:
            raise StateError(
                "Cannot wait for interop finalization: missing l2_src_tx_hash.",
                operation="interop.wait",
                context={"bundle_hash": ids.bundle_hash},
            )
        l2_src_tx_hash = ids.l2_src_tx_hash

        receipt = self.wait_for_source_receipt(l2_src_tx_hash, deadline, poll_ms)
        bundle_info = parse_bundle_receipt_info(
            receipt,
            self.addresses.interop_center,
            l2_src_tx_hash,
            want_bundle_hash=ids.bundle_hash,
            messenger=self.addresses.l1_messenger,
        )
        self.logger.info(
            f"[INTEROP FINALIZATION] Bundle {bundle_info.bundle_hash} sent in {l2_src_tx_hash}, waiting for proof."
        )

        proof = self._wait_for_proof(l2_src_tx_hash, bundle_info, deadline, poll_ms)
        info = build_finalization_info(
            l2_src_tx_hash, bundle_info, proof, self.addresses.interop_center
        )
        self.logger.info(
            f"[INTEROP FINALIZATION] Proof ready for batch {proof.batch_number}, waiting for root on chain {bundle_info.dst_chain_id}."
        )

        self._wait_for_root(bundle_info.dst_chain_id, info.expected_root, deadline, poll_ms)
        self.logger.info(
            f"[INTEROP FINALIZATION] Bundle {info.bundle_hash} is ready for execution."
        )
        return info

    # Execution

    def execute_bundle(self, info: InteropFinalizationInfo) -> ExecutionHandle:
        """Submit `executeBundle` on the destination chain unless already executed or unbundled."""
        dst_chain_id = int(info.dst_chain_id)
        context = {"bundle_hash": info.bundle_hash, "dst_chain_id": dst_chain_id}

        phase, _ = self.query_lifecycle(dst_chain_id, info.bundle_hash)
        if phase == InteropPhase.EXECUTED:
            raise StateError(
                "Interop bundle has already been executed.",
                operation="interop.finalize",
                context=context,
            )
        if phase == InteropPhase.UNBUNDLED:
            raise StateError(
                "Interop bundle has been unbundled and cannot be executed as a whole.",
                operation="interop.finalize",
                context=context,
            )

        rpc = self.dst_rpc(dst_chain_id)
        try:
            submitted = rpc.submit(
                self.addresses.interop_handler,
                InteropHandler.ABI,
                InteropHandler.EXECUTE_BUNDLE_FUNCTION,
                InteropHandler.execute_bundle_args(info),
            )
        except Exception as e:  # pylint: disable=broad-except
            if isinstance(e, InteropError) and not isinstance(e, RpcError):
                raise
            raise ExecutionError(
                "Failed to send executeBundle transaction on destination chain.",
                operation="interop.execute.send",
                context=context,
            ) from e
        self.logger.info(
            f"[INTEROP FINALIZATION] Sent executeBundle {submitted.hash} for bundle {info.bundle_hash}."
        )

        def wait() -> t.Dict:
            exec_context = {**context, "tx_hash": submitted.hash}
            try:
                receipt = submitted.wait()
            except Exception as e:  # pylint: disable=broad-except
                if isinstance(e, InteropError):
                    raise
                raise ExecutionError(
                    "Failed while waiting for executeBundle transaction on destination.",
                    operation="interop.execute.wait",
                    context=exec_context,
                ) from e
            if receipt is None or to_int(receipt.get("status", 0)) != 1:
                raise ExecutionError(
                    "Interop bundle execution reverted on destination.",
                    operation="interop.execute.wait",
                    context=exec_context,
                )
            return receipt

        return ExecutionHandle(hash=submitted.hash, wait=wait)

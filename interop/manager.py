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

"""Interop manager: quote, prepare, create, status, wait and finalize bundles."""

import logging
import typing as t
from dataclasses import dataclass
from pathlib import Path

from aea.crypto.base import Crypto
from aea.helpers.logging import setup_logger
from typing_extensions import assert_never

from interop.codec.address import InteropAddressCodec
from interop.codec.attributes import BundleAttributes, CallAttributes
from interop.constants import FINALIZATIONS_DIR, ZERO_HASH
from interop.data.contracts.erc20.contract import ERC20
from interop.data.contracts.interop_center.contract import InteropCenter
from interop.data.contracts.native_token_vault.contract import NativeTokenVault
from interop.exceptions import ExecutionError, ValidationError
from interop.finalization import resolve_ids_from_waitable
from interop.interop_types import (
    ApprovalNeed,
    BaseTokens,
    BuildCtx,
    BundlePlan,
    InteropFinalizationInfo,
    InteropFinalizationResult,
    InteropHandle,
    InteropParams,
    InteropPhase,
    InteropPlan,
    InteropQuote,
    InteropRoute,
    InteropStatus,
    InteropStep,
    InteropWaitable,
    SendErc20,
    WaitTarget,
)
from interop.ledger import make_rpc_client
from interop.plan import build, get_interop_attributes, get_starter_data
from interop.resolver import AssetResolver, NativeTokenVaultResolver
from interop.resource import LocalResource
from interop.route import pick_route, preflight
from interop.rpc import RpcClient
from interop.serialization import BigInt, to_int
from interop.services.finalization import FinalizationService
from interop.settings import InteropAddresses, InteropSettings
from interop.utils import Clock, Deadline, SystemClock


@dataclass
class FinalizationRecord(LocalResource):
    """Finalization info of a bundle and its last known status."""

    path: Path
    info: InteropFinalizationInfo
    status: t.Optional[InteropStatus] = None


class InteropManager:  # pylint: disable=too-many-instance-attributes
    """InteropManager"""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        src_rpc: RpcClient,
        dst_rpcs: t.Dict[int, RpcClient],
        base_tokens: t.Optional[t.Dict[int, str]] = None,
        logger: t.Optional[logging.Logger] = None,
        sender: t.Optional[str] = None,
        settings: t.Optional[InteropSettings] = None,
        resolver: t.Optional[AssetResolver] = None,
        path: t.Optional[Path] = None,
        clock: t.Optional[Clock] = None,
    ) -> None:
        """Initialize interop manager."""
        self.src_rpc = src_rpc
        self.dst_rpcs = dst_rpcs
        self.logger = logger or setup_logger(name="interop.manager.InteropManager")
        self.sender = sender
        self.settings = settings or InteropSettings()
        self.base_tokens = {
            int(chain_id): token
            for chain_id, token in (base_tokens or self.settings.get_base_tokens()).items()
        }
        self.addresses: InteropAddresses = self.settings.get_addresses()
        self.resolver = resolver or NativeTokenVaultResolver(
            src_rpc, self.addresses.native_token_vault, self.logger
        )
        self.path = path
        self.clock = clock or SystemClock()
        self.codec = InteropAddressCodec()
        self.bundle_attributes = BundleAttributes()
        self.call_attributes = CallAttributes()
        self.finalization = FinalizationService(
            src_rpc=src_rpc,
            dst_rpcs=dst_rpcs,
            addresses=self.addresses,
            clock=self.clock,
            logger=self.logger,
        )
        self._src_chain_id: t.Optional[int] = None

    @classmethod
    def from_settings(  # pylint: disable=too-many-arguments
        cls,
        src_chain_id: int,
        dst_chain_ids: t.Iterable[int],
        settings: InteropSettings,
        crypto: t.Optional[Crypto] = None,
        path: t.Optional[Path] = None,
        logger: t.Optional[logging.Logger] = None,
    ) -> "InteropManager":
        """Manager with RPC clients built from the configured RPC urls."""
        logger = logger or setup_logger(name="interop.manager.InteropManager")
        return cls(
            src_rpc=make_rpc_client(src_chain_id, settings, crypto=crypto, logger=logger),
            dst_rpcs={
                int(chain_id): make_rpc_client(
                    int(chain_id), settings, crypto=crypto, logger=logger
                )
                for chain_id in dst_chain_ids
            },
            logger=logger,
            sender=crypto.address if crypto is not None else None,
            settings=settings,
            path=path,
        )

    # Planning

    @property
    def src_chain_id(self) -> int:
        """Source chain id."""
        if self._src_chain_id is None:
            self._src_chain_id = self.src_rpc.chain_id()
        return self._src_chain_id

    def _base_token(self, chain_id: int) -> str:
        token = self.base_tokens.get(int(chain_id))
        if token is None:
            raise ValidationError(
                f"Base token of chain {chain_id} is not configured.",
                operation="interop.build_ctx",
                context={"chain_id": chain_id},
            )
        return token

    def build_ctx(self, params: InteropParams) -> BuildCtx:
        """Build context of a request."""
        return BuildCtx(
            dst_chain_id=params.dst_chain_id,
            base_tokens=BaseTokens(
                src=self._base_token(self.src_chain_id),
                dst=self._base_token(params.dst_chain_id),
            ),
            asset_router=self.addresses.asset_router,
            native_token_vault=self.addresses.native_token_vault,
            codec=self.codec,
        )

    def _build(self, params: InteropParams) -> t.Tuple[InteropRoute, BuildCtx, BundlePlan]:
        ctx = self.build_ctx(params)
        route = pick_route(params.actions, ctx.base_tokens.src, ctx.base_tokens.dst)
        preflight(route, params, ctx)
        attrs = get_interop_attributes(
            params, ctx, self.bundle_attributes, self.call_attributes
        )
        if route == InteropRoute.DIRECT:
            bundle = build(route, params, ctx, attrs)
        elif route == InteropRoute.INDIRECT:
            bundle = build(
                route, params, ctx, attrs, get_starter_data(params, ctx, self.resolver)
            )
        else:
            assert_never(route)
        return route, ctx, bundle

    @staticmethod
    def _quote(route: InteropRoute, bundle: BundlePlan) -> InteropQuote:
        return InteropQuote(
            route=route,
            approvals_needed=list(bundle.approvals),
            total_action_value=bundle.quote_extras.total_action_value,
            bridged_token_total=bundle.quote_extras.bridged_token_total,
        )

    def quote(self, params: InteropParams) -> InteropQuote:
        """Route and totals of a request."""
        route, _, bundle = self._build(params)
        self.logger.info(
            f"[INTEROP MANAGER] Quoted {len(params.actions)} action(s) to chain {params.dst_chain_id} via {route} route."
        )
        return self._quote(route, bundle)

    def _ensure_token_steps(self, params: InteropParams) -> t.List[InteropStep]:
        tokens: t.Dict[str, str] = {}
        for action in params.actions:
            if isinstance(action, SendErc20):
                tokens.setdefault(action.token.lower(), action.token)

        steps = []
        for key, token in tokens.items():
            asset_id = NativeTokenVault.get_asset_id(
                self.src_rpc, self.addresses.native_token_vault, token
            )
            if asset_id != ZERO_HASH:
                continue
            steps.append(
                InteropStep(
                    key=f"ensure-token:{key}",
                    kind="interop.ntv.ensure-token",
                    description=f"Ensure {token} is registered in the native token vault",
                    tx=NativeTokenVault.build_ensure_token_tx(
                        self.addresses.native_token_vault, token
                    ),
                )
            )
        return steps

    def _approval_steps(
        self, params: InteropParams, approvals: t.List[ApprovalNeed]
    ) -> t.List[InteropStep]:
        if not approvals:
            return []
        sender = params.sender or self.sender
        if sender is None:
            raise ValidationError(
                "A sender is required to check token allowances.",
                operation="interop.prepare",
            )

        steps = []
        for approval in approvals:
            allowance = ERC20.get_allowance(
                self.src_rpc, approval.token, sender, approval.spender
            )
            if allowance >= approval.amount:
                self.logger.info(
                    f"[INTEROP MANAGER] Allowance of {approval.spender} over {approval.token} is sufficient."
                )
                continue
            amount = int(approval.amount) - allowance
            steps.append(
                InteropStep(
                    key=f"approve:{approval.token}:{approval.spender}",
                    kind="approve",
                    description=f"Approve {approval.spender} to spend {amount} of {approval.token}",
                    tx=ERC20.build_approve_tx(approval.token, approval.spender, amount),
                )
            )
        return steps

    def prepare(self, params: InteropParams) -> InteropPlan:
        """Ordered transactions implementing a request."""
        route, _, bundle = self._build(params)
        steps = self._ensure_token_steps(params)
        steps += self._approval_steps(params, bundle.approvals)
        steps.append(
            InteropStep(
                key="sendBundle",
                kind="interop.center",
                description=f"Send interop bundle ({route} route; {len(params.actions)} actions)",
                tx=InteropCenter.build_send_bundle_tx(self.addresses.interop_center, bundle),
            )
        )
        return InteropPlan(
            route=route,
            summary=self._quote(route, bundle),
            steps=steps,
            approvals=list(bundle.approvals),
        )

    def create(self, params: InteropParams) -> InteropHandle:
        """Send every step of the plan, waiting for each to succeed."""
        plan = self.prepare(params)
        step_hashes: t.Dict[str, str] = {}
        for step in plan.steps:
            self.logger.info(f"[INTEROP MANAGER] Executing step {step.key}.")
            submitted = self.src_rpc.submit_transaction(step.tx)
            receipt = submitted.wait()
            if receipt is None or to_int(receipt.get("status", 0)) != 1:
                raise ExecutionError(
                    f"Step {step.key} failed on the source chain.",
                    operation="interop.create",
                    context={"step": step.key, "tx_hash": submitted.hash},
                )
            step_hashes[step.key] = submitted.hash
            self.logger.info(f"[INTEROP MANAGER] Step {step.key} settled in {submitted.hash}.")

        return InteropHandle(
            l2_src_tx_hash=step_hashes[plan.steps[-1].key],
            dst_chain_id=params.dst_chain_id,
            plan=plan,
            step_hashes=step_hashes,
        )

    # Lifecycle

    def status(self, waitable: InteropWaitable) -> InteropStatus:
        """Current status of a bundle."""
        return self.finalization.derive_status(waitable)

    def wait(
        self,
        waitable: InteropWaitable,
        target: WaitTarget = WaitTarget.READY,
        poll_ms: t.Optional[int] = None,
        timeout_ms: t.Optional[int] = None,
    ) -> t.Union[t.Dict, InteropFinalizationInfo, InteropStatus]:
        """
        Wait for a bundle to reach `target`.

        Returns the source receipt for `l2`, the finalization info for `ready`
        and the terminal status for `finalized`.
        """
        if poll_ms is None:
            poll_ms = self.settings.poll_ms
        if timeout_ms is None:
            timeout_ms = self.settings.timeout_ms

        if target == WaitTarget.SOURCE:
            ids = resolve_ids_from_waitable(waitable)
            if not ids.l2_src_tx_hash:
                raise ValidationError(
                    "Cannot wait for the source receipt without l2_src_tx_hash.",
                    operation="interop.wait",
                )
            deadline = Deadline(self.clock, timeout_ms, "interop.wait")
            return self.finalization.wait_for_source_receipt(
                ids.l2_src_tx_hash, deadline, poll_ms
            )
        if target == WaitTarget.READY:
            info = self.finalization.wait_for_finalization(waitable, poll_ms, timeout_ms)
            self._store(info)
            return info
        if target == WaitTarget.FINALIZED:
            return self._wait_for_terminal(waitable, poll_ms, timeout_ms)
        assert_never(target)

    def _wait_for_terminal(
        self, waitable: InteropWaitable, poll_ms: int, timeout_ms: int
    ) -> InteropStatus:
        deadline = Deadline(self.clock, timeout_ms, "interop.wait")
        ids = self.finalization.resolve_ids(waitable)
        while True:
            deadline.check("destination execution", {"bundle_hash": ids.bundle_hash})
            status = self.finalization.derive_status(ids)
            if status.phase.is_terminal:
                return status
            deadline.sleep(poll_ms, "destination execution", {"bundle_hash": ids.bundle_hash})

    def finalize(
        self,
        waitable: t.Union[InteropWaitable, InteropFinalizationInfo],
        poll_ms: t.Optional[int] = None,
        timeout_ms: t.Optional[int] = None,
    ) -> InteropFinalizationResult:
        """Wait for the bundle to be executable and execute it on the destination chain."""
        info = self._finalization_info(waitable, poll_ms, timeout_ms)

        status = self.status(info)
        if status.phase.is_terminal:
            self.logger.info(
                f"[INTEROP MANAGER] Bundle {info.bundle_hash} is already {status.phase}."
            )
            self._store(info, status)
            return InteropFinalizationResult(status=status)

        handle = self.finalization.execute_bundle(info)
        receipt = handle.wait()
        status = InteropStatus(
            phase=InteropPhase.EXECUTED,
            l2_src_tx_hash=info.l2_src_tx_hash,
            bundle_hash=info.bundle_hash,
            dst_chain_id=BigInt(info.dst_chain_id),
            dst_exec_tx_hash=handle.hash,
        )
        self._store(info, status)
        self.logger.info(
            f"[INTEROP MANAGER] Bundle {info.bundle_hash} executed in {handle.hash}."
        )
        return InteropFinalizationResult(status=status, receipt=receipt)

    # Persistence

    def _record_path(self, l2_src_tx_hash: str) -> t.Optional[Path]:
        if self.path is None:
            return None
        return self.path / FINALIZATIONS_DIR / f"{l2_src_tx_hash.lower()}.json"

    def _store(
        self, info: InteropFinalizationInfo, status: t.Optional[InteropStatus] = None
    ) -> None:
        path = self._record_path(info.l2_src_tx_hash)
        if path is None:
            return
        FinalizationRecord(path=path, info=info, status=status).store()

    def load_record(self, l2_src_tx_hash: str) -> t.Optional[FinalizationRecord]:
        """Stored finalization record of a source transaction."""
        path = self._record_path(l2_src_tx_hash)
        if path is None or not path.exists():
            return None
        return t.cast(FinalizationRecord, FinalizationRecord.load(path))

    def _finalization_info(
        self,
        waitable: t.Union[InteropWaitable, InteropFinalizationInfo],
        poll_ms: t.Optional[int],
        timeout_ms: t.Optional[int],
    ) -> InteropFinalizationInfo:
        if isinstance(waitable, InteropFinalizationInfo):
            return waitable

        ids = resolve_ids_from_waitable(waitable)
        if ids.l2_src_tx_hash:
            record = self.load_record(ids.l2_src_tx_hash)
            if record is not None:
                self.logger.info(
                    f"[INTEROP MANAGER] Resuming finalization of {ids.l2_src_tx_hash} from disk."
                )
                return record.info

        info = self.finalization.wait_for_finalization(
            waitable,
            self.settings.poll_ms if poll_ms is None else poll_ms,
            self.settings.timeout_ms if timeout_ms is None else timeout_ms,
        )
        self._store(info)
        return info

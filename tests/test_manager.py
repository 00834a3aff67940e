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

"""Tests for the interop manager."""

import typing as t
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from deepdiff import DeepDiff

from interop.constants import (
    FINALIZATIONS_DIR,
    L2_INTEROP_CENTER_ADDRESS,
    L2_NATIVE_TOKEN_VAULT_ADDRESS,
    ZERO_HASH,
)
from interop.data.contracts.erc20.contract import ERC20
from interop.data.contracts.interop_center.contract import InteropCenter
from interop.data.contracts.native_token_vault.contract import NativeTokenVault
from interop.exceptions import ExecutionError, InteropTimeoutError, ValidationError
from interop.interop_types import (
    ApprovalNeed,
    Call,
    InteropFinalizationInfo,
    InteropParams,
    InteropPhase,
    InteropRoute,
    ResolvedInteropIds,
    SendErc20,
    SendNative,
    WaitTarget,
)
from interop.manager import FinalizationRecord, InteropManager
from interop.serialization import to_bytes
from interop.utils.abi import encode_call, selector

from tests.conftest import (
    FakeClock,
    lifecycle_logs,
    make_finalization_info,
    make_source_receipt,
    submitted,
)
from tests.constants import (
    BASE_TOKEN_ASSET_ID,
    BASE_TOKENS,
    BUNDLE_HASH,
    DST_CHAIN_ID,
    DST_EXEC_TX_HASH,
    L2_SRC_TX_HASH,
    LOGGER,
    RECEIVER,
    REGISTERED_ASSET_ID,
    SENDER,
    SRC_CHAIN_ID,
    TARGET,
    TOKEN,
)


APPROVE_TX_HASH = "0x" + "c1" * 32
EXECUTED_LOG = {"transactionHash": DST_EXEC_TX_HASH}


def chain_reads(
    asset_id: bytes = REGISTERED_ASSET_ID, allowance: int = 0
) -> t.Callable[..., t.Any]:
    """`read_contract` side effect of the source chain."""

    def _read(address: str, abi: t.List, fn: str, args: t.Sequence[t.Any]) -> t.Any:
        if fn == NativeTokenVault.ASSET_ID_FUNCTION:
            return asset_id
        if fn == NativeTokenVault.BASE_TOKEN_ASSET_ID_FUNCTION:
            return BASE_TOKEN_ASSET_ID
        if fn == ERC20.ALLOWANCE_FUNCTION:
            return allowance
        raise AssertionError(f"Unexpected read {fn}")

    return _read


def native_params(amount: int = 100) -> InteropParams:
    """Single native transfer."""
    return InteropParams(
        dst_chain_id=DST_CHAIN_ID, actions=[SendNative(to="0x" + "aa" * 20, amount=amount)]
    )


def erc20_params(amount: int = 50) -> InteropParams:
    """Single token transfer."""
    return InteropParams(
        dst_chain_id=DST_CHAIN_ID,
        actions=[SendErc20(token=TOKEN, to="0x" + "aa" * 20, amount=amount)],
    )


@pytest.fixture
def manager(
    src_rpc: MagicMock, dst_rpc: MagicMock, clock: FakeClock, tmp_path: Path
) -> InteropManager:
    """Interop manager fixture"""
    src_rpc.read_contract.side_effect = chain_reads()
    return InteropManager(
        src_rpc=src_rpc,
        dst_rpcs={DST_CHAIN_ID: dst_rpc},
        base_tokens=BASE_TOKENS,
        logger=LOGGER,
        sender=SENDER,
        path=tmp_path,
        clock=clock,
    )


class TestQuote:
    """Tests for quote."""

    def test_direct(self, manager: InteropManager) -> None:
        """Test quoting a native transfer."""
        quote = manager.quote(native_params())
        assert quote.route == InteropRoute.DIRECT
        assert quote.total_action_value == 100
        assert quote.bridged_token_total == 0
        assert quote.approvals_needed == []

    def test_indirect(self, manager: InteropManager) -> None:
        """Test quoting a token transfer."""
        quote = manager.quote(erc20_params())
        assert quote.route == InteropRoute.INDIRECT
        assert quote.approvals_needed == [
            ApprovalNeed(token=TOKEN, spender=L2_NATIVE_TOKEN_VAULT_ADDRESS, amount=50)
        ]
        assert quote.bridged_token_total == 50
        assert not DeepDiff(
            quote.json,
            {
                "route": "indirect",
                "approvals_needed": [
                    {
                        "token": TOKEN,
                        "spender": L2_NATIVE_TOKEN_VAULT_ADDRESS,
                        "amount": "50",
                    }
                ],
                "total_action_value": "0",
                "bridged_token_total": "50",
            },
        )

    def test_missing_base_token(self, src_rpc: MagicMock, dst_rpc: MagicMock) -> None:
        """Test chains without a configured base token."""
        manager = InteropManager(
            src_rpc=src_rpc,
            dst_rpcs={DST_CHAIN_ID: dst_rpc},
            base_tokens={SRC_CHAIN_ID: BASE_TOKENS[SRC_CHAIN_ID]},
            logger=LOGGER,
        )
        with pytest.raises(ValidationError, match=f"Base token of chain {DST_CHAIN_ID}"):
            manager.quote(native_params())

    def test_invalid_request(self, manager: InteropManager) -> None:
        """Test preflight failures surface from quote."""
        with pytest.raises(ValidationError, match="sendNative.amount"):
            manager.quote(native_params(amount=-1))


class TestPrepare:
    """Tests for prepare."""

    def test_direct(self, manager: InteropManager, src_rpc: MagicMock) -> None:
        """Test the plan of a native transfer."""
        plan = manager.prepare(native_params())
        assert plan.route == InteropRoute.DIRECT
        assert plan.approvals == []
        assert [step.key for step in plan.steps] == ["sendBundle"]
        (step,) = plan.steps
        assert step.kind == "interop.center"
        assert step.tx["to"] == L2_INTEROP_CENTER_ADDRESS
        assert step.tx["value"] == 100
        assert step.tx["data"].startswith(
            "0x" + selector(InteropCenter.ABI, InteropCenter.SEND_BUNDLE_FUNCTION).hex()
        )
        src_rpc.read_contract.assert_not_called()

    def test_erc20_without_allowance(self, manager: InteropManager) -> None:
        """Test the plan of a token transfer without allowance."""
        plan = manager.prepare(erc20_params())
        assert plan.route == InteropRoute.INDIRECT
        assert plan.approvals == [
            ApprovalNeed(token=TOKEN, spender=L2_NATIVE_TOKEN_VAULT_ADDRESS, amount=50)
        ]
        assert [step.key for step in plan.steps] == [
            f"approve:{TOKEN}:{L2_NATIVE_TOKEN_VAULT_ADDRESS}",
            "sendBundle",
        ]
        approve = plan.steps[0]
        assert approve.kind == "approve"
        assert approve.tx == {
            "to": TOKEN,
            "data": "0x"
            + encode_call(
                ERC20.ABI, ERC20.APPROVE_FUNCTION, [L2_NATIVE_TOKEN_VAULT_ADDRESS, 50]
            ).hex(),
            "value": 0,
        }
        assert plan.steps[-1].tx["value"] == 0

    def test_partial_allowance(self, manager: InteropManager, src_rpc: MagicMock) -> None:
        """Test only the missing allowance is approved."""
        src_rpc.read_contract.side_effect = chain_reads(allowance=20)
        plan = manager.prepare(erc20_params())
        assert plan.steps[0].tx["data"] == "0x" + encode_call(
            ERC20.ABI, ERC20.APPROVE_FUNCTION, [L2_NATIVE_TOKEN_VAULT_ADDRESS, 30]
        ).hex()

    def test_sufficient_allowance(self, manager: InteropManager, src_rpc: MagicMock) -> None:
        """Test no approval when the allowance covers the transfer."""
        src_rpc.read_contract.side_effect = chain_reads(allowance=50)
        plan = manager.prepare(erc20_params())
        assert [step.key for step in plan.steps] == ["sendBundle"]
        assert len(plan.approvals) == 1

    def test_unregistered_token(self, manager: InteropManager, src_rpc: MagicMock) -> None:
        """Test unregistered tokens are registered first."""
        src_rpc.read_contract.side_effect = chain_reads(asset_id=to_bytes(ZERO_HASH))
        plan = manager.prepare(erc20_params())
        assert [step.kind for step in plan.steps] == [
            "interop.ntv.ensure-token",
            "approve",
            "interop.center",
        ]
        assert plan.steps[0].key == f"ensure-token:{TOKEN}"
        assert plan.steps[0].tx["to"] == L2_NATIVE_TOKEN_VAULT_ADDRESS

    def test_allowance_needs_sender(self, src_rpc: MagicMock, dst_rpc: MagicMock) -> None:
        """Test allowances cannot be checked without a sender."""
        src_rpc.read_contract.side_effect = chain_reads()
        manager = InteropManager(
            src_rpc=src_rpc,
            dst_rpcs={DST_CHAIN_ID: dst_rpc},
            base_tokens=BASE_TOKENS,
            logger=LOGGER,
        )
        with pytest.raises(ValidationError, match="sender is required"):
            manager.prepare(erc20_params())

    def test_request_sender(self, manager: InteropManager, src_rpc: MagicMock) -> None:
        """Test the request sender owns the allowance."""
        owner = "0x" + "d" * 40
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID,
            actions=[SendErc20(TOKEN, RECEIVER, 1), Call(TARGET, value=2)],
            sender=owner,
        )
        plan = manager.prepare(params)
        assert plan.steps[-1].tx["value"] == 2
        allowance_calls = [
            call
            for call in src_rpc.read_contract.call_args_list
            if call.args[2] == ERC20.ALLOWANCE_FUNCTION
        ]
        assert allowance_calls[0].args[3] == [owner, L2_NATIVE_TOKEN_VAULT_ADDRESS]


class TestCreate:
    """Tests for create."""

    def test_create(self, manager: InteropManager, src_rpc: MagicMock) -> None:
        """Test every step is sent in order."""
        src_rpc.submit_transaction.side_effect = [
            submitted(APPROVE_TX_HASH),
            submitted(L2_SRC_TX_HASH),
        ]
        handle = manager.create(erc20_params())
        assert handle.l2_src_tx_hash == L2_SRC_TX_HASH
        assert handle.dst_chain_id == DST_CHAIN_ID
        assert handle.step_hashes == {
            f"approve:{TOKEN}:{L2_NATIVE_TOKEN_VAULT_ADDRESS}": APPROVE_TX_HASH,
            "sendBundle": L2_SRC_TX_HASH,
        }
        sent = [call.args[0] for call in src_rpc.submit_transaction.call_args_list]
        assert sent == [step.tx for step in handle.plan.steps]

    def test_failed_step(self, manager: InteropManager, src_rpc: MagicMock) -> None:
        """Test a failed step stops the plan."""
        src_rpc.submit_transaction.side_effect = [
            submitted(APPROVE_TX_HASH, {"status": 0}),
        ]
        with pytest.raises(ExecutionError, match="failed on the source chain") as e:
            manager.create(erc20_params())
        assert e.value.context["tx_hash"] == APPROVE_TX_HASH
        assert src_rpc.submit_transaction.call_count == 1


class TestLifecycle:
    """Tests for status, wait and finalize."""

    def _record(self, manager: InteropManager) -> Path:
        assert manager.path is not None
        return manager.path / FINALIZATIONS_DIR / f"{L2_SRC_TX_HASH}.json"

    def test_status(self, manager: InteropManager) -> None:
        """Test status of a sent bundle."""
        assert manager.status(L2_SRC_TX_HASH).phase == InteropPhase.SENT

    def test_wait_source(self, manager: InteropManager) -> None:
        """Test waiting for the source receipt."""
        receipt = manager.wait(L2_SRC_TX_HASH, WaitTarget.SOURCE, poll_ms=10, timeout_ms=100)
        assert receipt == make_source_receipt()

    def test_wait_source_needs_hash(self, manager: InteropManager) -> None:
        """Test waiting for the source receipt needs its hash."""
        with pytest.raises(ValidationError, match="l2_src_tx_hash"):
            manager.wait(ResolvedInteropIds(bundle_hash=BUNDLE_HASH), WaitTarget.SOURCE)

    def test_wait_ready(self, manager: InteropManager) -> None:
        """Test waiting for finalization info persists it."""
        info = manager.wait(L2_SRC_TX_HASH, poll_ms=10, timeout_ms=100)
        assert info == make_finalization_info()
        record = manager.load_record(L2_SRC_TX_HASH)
        assert record is not None
        assert record.info == info
        assert record.status is None

    def test_wait_finalized(
        self, manager: InteropManager, dst_rpc: MagicMock, clock: FakeClock
    ) -> None:
        """Test waiting until the bundle is executed."""
        pending = lifecycle_logs({})
        executed = lifecycle_logs({InteropPhase.EXECUTED: [EXECUTED_LOG]})
        calls = []

        def _get_logs(*args: t.Any, **kwargs: t.Any) -> t.List[t.Dict]:
            calls.append(args)
            return (pending if len(calls) <= 3 else executed)(*args, **kwargs)

        dst_rpc.get_logs.side_effect = _get_logs
        status = manager.wait(L2_SRC_TX_HASH, WaitTarget.FINALIZED, poll_ms=1000, timeout_ms=5000)
        assert status.phase == InteropPhase.EXECUTED
        assert status.dst_exec_tx_hash == DST_EXEC_TX_HASH
        assert clock.sleeps == [1.0]

    @pytest.mark.parametrize(
        "target", [WaitTarget.SOURCE, WaitTarget.READY, WaitTarget.FINALIZED]
    )
    def test_wait_zero_timeout(
        self, manager: InteropManager, clock: FakeClock, target: WaitTarget
    ) -> None:
        """Test an explicit zero timeout is not replaced by the configured one."""
        with pytest.raises(InteropTimeoutError, match="Timed out after 0ms"):
            manager.wait(L2_SRC_TX_HASH, target, poll_ms=1000, timeout_ms=0)
        assert clock.sleeps == []

    def test_finalize_zero_timeout(
        self, manager: InteropManager, src_rpc: MagicMock, dst_rpc: MagicMock
    ) -> None:
        """Test finalize honours an explicit zero timeout."""
        with pytest.raises(InteropTimeoutError):
            manager.finalize(L2_SRC_TX_HASH, timeout_ms=0)
        src_rpc.get_receipt_with_l2_to_l1.assert_not_called()
        dst_rpc.submit.assert_not_called()

    def test_finalize(
        self, manager: InteropManager, dst_rpc: MagicMock
    ) -> None:
        """Test finalizing a bundle from its source transaction."""
        result = manager.finalize(L2_SRC_TX_HASH, poll_ms=10, timeout_ms=100)
        assert result.status.phase == InteropPhase.EXECUTED
        assert result.status.dst_exec_tx_hash == DST_EXEC_TX_HASH
        assert result.status.bundle_hash == make_finalization_info().bundle_hash
        assert result.receipt is not None
        dst_rpc.submit.assert_called_once()

        record = manager.load_record(L2_SRC_TX_HASH)
        assert record is not None
        assert record.status is not None
        assert record.status.phase == InteropPhase.EXECUTED
        assert not DeepDiff(record.info.json, make_finalization_info().json)

    def test_finalize_already_executed(
        self, manager: InteropManager, dst_rpc: MagicMock
    ) -> None:
        """Test finalizing an executed bundle does not submit."""
        dst_rpc.get_logs.side_effect = lifecycle_logs({InteropPhase.EXECUTED: [EXECUTED_LOG]})
        result = manager.finalize(make_finalization_info())
        assert result.status.phase == InteropPhase.EXECUTED
        assert result.receipt is None
        dst_rpc.submit.assert_not_called()

    def test_finalize_resumes_from_disk(
        self, manager: InteropManager, src_rpc: MagicMock, dst_rpc: MagicMock
    ) -> None:
        """Test a stored record skips waiting."""
        FinalizationRecord(path=self._record(manager), info=make_finalization_info()).store()
        result = manager.finalize(L2_SRC_TX_HASH)
        assert result.status.phase == InteropPhase.EXECUTED
        src_rpc.get_receipt_with_l2_to_l1.assert_not_called()
        src_rpc.get_proof.assert_not_called()
        dst_rpc.submit.assert_called_once()

    def test_finalize_info(
        self, manager: InteropManager, src_rpc: MagicMock, dst_rpc: MagicMock
    ) -> None:
        """Test finalizing from finalization info."""
        info: InteropFinalizationInfo = make_finalization_info()
        manager.finalize(info)
        src_rpc.get_receipt_with_l2_to_l1.assert_not_called()
        assert self._record(manager).exists()

    def test_without_path(self, src_rpc: MagicMock, dst_rpc: MagicMock) -> None:
        """Test records are not kept without a path."""
        manager = InteropManager(
            src_rpc=src_rpc,
            dst_rpcs={DST_CHAIN_ID: dst_rpc},
            base_tokens=BASE_TOKENS,
            logger=LOGGER,
        )
        assert manager.finalize(make_finalization_info()).status.phase == InteropPhase.EXECUTED
        assert manager.load_record(L2_SRC_TX_HASH) is None

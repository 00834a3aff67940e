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

"""Tests for bundle building."""

from unittest.mock import MagicMock

import pytest

from interop.codec import AttributesCodec, CallAttributes, format_address, format_chain
from interop.constants import L2_ASSET_ROUTER_ADDRESS, L2_NATIVE_TOKEN_VAULT_ADDRESS
from interop.exceptions import ValidationError
from interop.interop_types import (
    ApprovalNeed,
    Call,
    InteropAttributes,
    InteropParams,
    InteropRoute,
    SendErc20,
    SendNative,
    StarterData,
)
from interop.plan import (
    aggregate_approvals,
    build,
    build_direct_bundle,
    build_indirect_bundle,
    get_call_attributes,
    get_interop_attributes,
    get_starter_data,
)

from tests.conftest import make_ctx
from tests.constants import (
    DST_CHAIN_ID,
    OTHER_BASE_TOKEN,
    RECEIVER,
    SENDER,
    TARGET,
    TOKEN,
    TOKEN_MIXED_CASE,
)


PAYLOAD = b"\x01" + b"\x99" * 64


def _resolver() -> MagicMock:
    resolver = MagicMock()
    resolver.asset_router_payload.return_value = PAYLOAD
    return resolver


def _decode_all(attributes: list) -> list:
    codec = AttributesCodec()
    return [(d.name, d.args) for d in map(codec.decode, attributes)]


class TestAttributes:
    """Tests for attribute computation."""

    def test_send_native_matching_bases(self) -> None:
        """Test native transfers carry their value when base tokens match."""
        attributes = get_call_attributes(SendNative(RECEIVER, 100), make_ctx())
        assert _decode_all(attributes) == [("interopCallValue", [100])]

    def test_send_native_mismatched_bases(self) -> None:
        """Test native transfers go through the asset router when base tokens differ."""
        attributes = get_call_attributes(
            SendNative(RECEIVER, 100), make_ctx(dst=OTHER_BASE_TOKEN)
        )
        assert _decode_all(attributes) == [("indirectCall", [100])]

    def test_call(self) -> None:
        """Test calls only carry value when it is positive."""
        ctx = make_ctx()
        assert get_call_attributes(Call(TARGET), ctx) == []
        assert get_call_attributes(Call(TARGET, value=0), ctx) == []
        assert _decode_all(get_call_attributes(Call(TARGET, value=5), ctx)) == [
            ("interopCallValue", [5])
        ]

    def test_send_erc20(self) -> None:
        """Test token transfers are indirect calls without value."""
        attributes = get_call_attributes(SendErc20(TOKEN, RECEIVER, 1), make_ctx())
        assert _decode_all(attributes) == [("indirectCall", [0])]

    def test_bundle_attributes(self) -> None:
        """Test bundle attributes follow the request."""
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID,
            actions=[SendNative(RECEIVER, 1)],
            execution_only=SENDER,
            unbundling_by=RECEIVER,
        )
        attrs = get_interop_attributes(params, make_ctx())
        assert _decode_all(attrs.bundle_attributes) == [
            ("executionAddress", [format_address(SENDER)]),
            ("unbundlerAddress", [format_address(RECEIVER)]),
        ]
        assert len(attrs.call_attributes) == 1

    def test_no_bundle_attributes(self) -> None:
        """Test bundle attributes are empty by default."""
        params = InteropParams(dst_chain_id=DST_CHAIN_ID, actions=[Call(TARGET)])
        assert get_interop_attributes(params, make_ctx()).bundle_attributes == []


class TestStarterData:
    """Tests for starter data."""

    def test_matching_bases(self) -> None:
        """Test only token transfers need payloads when base tokens match."""
        resolver = _resolver()
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID,
            actions=[SendNative(RECEIVER, 1), Call(TARGET), SendErc20(TOKEN, RECEIVER, 2)],
        )
        data = get_starter_data(params, make_ctx(), resolver)
        assert data == [StarterData(), StarterData(), StarterData(PAYLOAD)]
        resolver.asset_router_payload.assert_called_once()

    def test_mismatched_bases(self) -> None:
        """Test native transfers need payloads when base tokens differ."""
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID, actions=[SendNative(RECEIVER, 1), Call(TARGET)]
        )
        data = get_starter_data(params, make_ctx(dst=OTHER_BASE_TOKEN), _resolver())
        assert data == [StarterData(PAYLOAD), StarterData()]


class TestApprovals:
    """Tests for approval aggregation."""

    def test_same_token_mixed_case(self) -> None:
        """Test one approval per token with amounts summed."""
        actions = [
            SendErc20(TOKEN_MIXED_CASE, RECEIVER, 11),
            SendNative(RECEIVER, 1),
            SendErc20(TOKEN, RECEIVER, 22),
            SendErc20(TOKEN.upper().replace("0X", "0x"), SENDER, 33),
        ]
        approvals = aggregate_approvals(actions, L2_NATIVE_TOKEN_VAULT_ADDRESS)
        assert approvals == [
            ApprovalNeed(
                token=TOKEN_MIXED_CASE,
                spender=L2_NATIVE_TOKEN_VAULT_ADDRESS,
                amount=66,
            )
        ]

    def test_distinct_tokens(self) -> None:
        """Test approvals keep first-seen order."""
        other = "0x" + "d" * 40
        approvals = aggregate_approvals(
            [SendErc20(other, RECEIVER, 1), SendErc20(TOKEN, RECEIVER, 2), SendErc20(other, RECEIVER, 3)],
            L2_NATIVE_TOKEN_VAULT_ADDRESS,
        )
        assert [(a.token, a.amount) for a in approvals] == [(other, 4), (TOKEN, 2)]


class TestBuild:
    """Tests for bundle building."""

    def test_direct_send_native(self) -> None:
        """Test a single native transfer on the direct route."""
        ctx = make_ctx()
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID, actions=[SendNative(to="0x" + "aa" * 20, amount=100)]
        )
        bundle = build(InteropRoute.DIRECT, params, ctx, get_interop_attributes(params, ctx))

        assert bundle.dst_chain == format_chain(DST_CHAIN_ID)
        assert len(bundle.starters) == 1
        (starter,) = bundle.starters
        assert starter.to == format_address("0x" + "aa" * 20)
        assert starter.data == b""
        assert _decode_all(starter.call_attributes) == [("interopCallValue", [100])]
        assert bundle.approvals == []
        assert bundle.quote_extras.total_action_value == 100
        assert bundle.quote_extras.bridged_token_total == 0

    def test_direct_call(self) -> None:
        """Test calls keep their data."""
        ctx = make_ctx()
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID,
            actions=[Call(TARGET, data=b"\xca\xfe"), Call(TARGET, value=3)],
        )
        bundle = build_direct_bundle(params, ctx, get_interop_attributes(params, ctx))
        assert [starter.data for starter in bundle.starters] == [b"\xca\xfe", b""]
        assert bundle.starters[0].call_attributes == []
        assert bundle.quote_extras.total_action_value == 3

    def test_direct_rejects_erc20(self) -> None:
        """Test token transfers cannot be built on the direct route."""
        ctx = make_ctx()
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID, actions=[SendErc20(TOKEN, RECEIVER, 1)]
        )
        with pytest.raises(ValidationError, match="sendErc20"):
            build_direct_bundle(params, ctx, get_interop_attributes(params, ctx))

    def test_attribute_count_mismatch(self) -> None:
        """Test call attributes must cover every action."""
        params = InteropParams(dst_chain_id=DST_CHAIN_ID, actions=[Call(TARGET)])
        with pytest.raises(ValidationError, match="call attributes"):
            build_direct_bundle(params, make_ctx(), InteropAttributes([], []))

    def test_indirect_send_erc20(self) -> None:
        """Test a single token transfer on the indirect route."""
        token = "0x" + "EE" * 20
        ctx = make_ctx()
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID,
            actions=[SendErc20(token=token, to="0x" + "aa" * 20, amount=50)],
        )
        bundle = build(
            InteropRoute.INDIRECT,
            params,
            ctx,
            get_interop_attributes(params, ctx),
            get_starter_data(params, ctx, _resolver()),
        )

        assert len(bundle.starters) == 1
        (starter,) = bundle.starters
        assert starter.to == format_address(L2_ASSET_ROUTER_ADDRESS)
        assert starter.data == PAYLOAD
        assert bundle.approvals == [
            ApprovalNeed(token=token, spender=L2_NATIVE_TOKEN_VAULT_ADDRESS, amount=50)
        ]
        assert bundle.quote_extras.bridged_token_total == 50
        assert bundle.quote_extras.total_action_value == 0

    def test_indirect_totals(self) -> None:
        """Test totals over a mixed request."""
        ctx = make_ctx()
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID,
            actions=[
                SendNative(RECEIVER, 10),
                Call(TARGET),
                Call(TARGET, value=5),
                SendErc20(TOKEN, RECEIVER, 100),
            ],
        )
        bundle = build_indirect_bundle(
            params,
            ctx,
            get_interop_attributes(params, ctx),
            get_starter_data(params, ctx, _resolver()),
        )
        assert bundle.quote_extras.total_action_value == 15
        assert bundle.quote_extras.bridged_token_total == 100
        router = format_address(L2_ASSET_ROUTER_ADDRESS)
        assert [starter.to == router for starter in bundle.starters] == [
            False,
            False,
            False,
            True,
        ]

    def test_indirect_mismatched_bases(self) -> None:
        """Test native transfers with a payload go through the asset router."""
        ctx = make_ctx(dst=OTHER_BASE_TOKEN)
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID, actions=[SendNative(RECEIVER, 7), Call(TARGET)]
        )
        bundle = build_indirect_bundle(
            params,
            ctx,
            get_interop_attributes(params, ctx),
            get_starter_data(params, ctx, _resolver()),
        )
        assert bundle.starters[0].to == format_address(L2_ASSET_ROUTER_ADDRESS)
        assert bundle.starters[1].to == format_address(TARGET)
        assert bundle.approvals == []

    def test_indirect_missing_payload(self) -> None:
        """Test token transfers require an asset router payload."""
        ctx = make_ctx()
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID, actions=[SendErc20(TOKEN, RECEIVER, 1)]
        )
        with pytest.raises(ValidationError, match="Missing asset router payload"):
            build(InteropRoute.INDIRECT, params, ctx, get_interop_attributes(params, ctx))

    def test_indirect_precomputed_length(self) -> None:
        """Test starter data must cover every action."""
        ctx = make_ctx()
        params = InteropParams(
            dst_chain_id=DST_CHAIN_ID, actions=[SendErc20(TOKEN, RECEIVER, 1)]
        )
        with pytest.raises(ValidationError, match="starter data"):
            build_indirect_bundle(
                params, ctx, get_interop_attributes(params, ctx), []
            )

    def test_bundle_attributes_pass_through(self) -> None:
        """Test bundle attributes are attached unchanged."""
        ctx = make_ctx()
        attrs = InteropAttributes(
            bundle_attributes=[b"\x01\x02\x03\x04"],
            call_attributes=[[CallAttributes().interop_call_value(1)]],
        )
        params = InteropParams(dst_chain_id=DST_CHAIN_ID, actions=[SendNative(RECEIVER, 1)])
        assert build_direct_bundle(params, ctx, attrs).bundle_attributes == [
            b"\x01\x02\x03\x04"
        ]

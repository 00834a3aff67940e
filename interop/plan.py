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

"""Bundle building."""

import typing as t

from typing_extensions import assert_never

from interop.codec.attributes import BundleAttributes, CallAttributes
from interop.exceptions import ValidationError
from interop.interop_types import (
    ApprovalNeed,
    BuildCtx,
    BundlePlan,
    Call,
    CallStarter,
    InteropAction,
    InteropAttributes,
    InteropParams,
    InteropRoute,
    QuoteExtras,
    SendErc20,
    SendNative,
    StarterData,
)
from interop.route import sum_action_msg_value, sum_erc20_amounts
from interop.serialization import BigInt


if t.TYPE_CHECKING:
    from interop.resolver import AssetResolver  # pragma: nocover


def get_bundle_attributes(
    params: InteropParams, builders: t.Optional[BundleAttributes] = None
) -> t.List[bytes]:
    """Bundle attributes requested by the caller."""
    builders = builders or BundleAttributes()
    attributes = []
    if params.execution_only:
        attributes.append(builders.execution_address(params.execution_only))
    if params.unbundling_by:
        attributes.append(builders.unbundler_address(params.unbundling_by))
    return attributes


def get_call_attributes(
    action: InteropAction, ctx: BuildCtx, builders: t.Optional[CallAttributes] = None
) -> t.List[bytes]:
    """Call attributes of a single action."""
    builders = builders or CallAttributes()
    if isinstance(action, SendNative):
        if ctx.base_tokens.matches:
            return [builders.interop_call_value(action.amount)]
        return [builders.indirect_call(action.amount)]
    if isinstance(action, Call):
        if action.value is not None and action.value > 0:
            return [builders.interop_call_value(action.value)]
        return []
    if isinstance(action, SendErc20):
        return [builders.indirect_call(0)]
    assert_never(action)


def get_interop_attributes(
    params: InteropParams,
    ctx: BuildCtx,
    bundle: t.Optional[BundleAttributes] = None,
    call: t.Optional[CallAttributes] = None,
) -> InteropAttributes:
    """Bundle attributes plus per-action call attributes."""
    return InteropAttributes(
        bundle_attributes=get_bundle_attributes(params, bundle),
        call_attributes=[
            get_call_attributes(action, ctx, call) for action in params.actions
        ],
    )


def get_starter_data(
    params: InteropParams, ctx: BuildCtx, resolver: "AssetResolver"
) -> t.List[StarterData]:
    """Asset-router payloads for the actions that bridge value through the vault."""
    starter_data = []
    for action in params.actions:
        if isinstance(action, SendErc20):
            starter_data.append(
                StarterData(asset_router_payload=resolver.asset_router_payload(action, ctx))
            )
        elif isinstance(action, SendNative):
            if ctx.base_tokens.matches:
                starter_data.append(StarterData())
            else:
                starter_data.append(
                    StarterData(
                        asset_router_payload=resolver.asset_router_payload(action, ctx)
                    )
                )
        elif isinstance(action, Call):
            starter_data.append(StarterData())
        else:
            assert_never(action)
    return starter_data


def aggregate_approvals(
    actions: t.Iterable[InteropAction], spender: str
) -> t.List[ApprovalNeed]:
    """One approval per token (case-insensitive), first-seen spelling, amounts summed."""
    spelling: t.Dict[str, str] = {}
    amounts: t.Dict[str, int] = {}
    for action in actions:
        if not isinstance(action, SendErc20):
            continue
        key = action.token.lower()
        spelling.setdefault(key, action.token)
        amounts[key] = amounts.get(key, 0) + action.amount
    return [
        ApprovalNeed(token=spelling[key], spender=spender, amount=BigInt(amount))
        for key, amount in amounts.items()
    ]


def _check_attributes(params: InteropParams, attrs: InteropAttributes) -> None:
    if len(attrs.call_attributes) != len(params.actions):
        raise ValidationError(
            f"Expected call attributes for {len(params.actions)} action(s), got {len(attrs.call_attributes)}.",
            operation="interop.build",
        )


def _direct_starter(
    action: InteropAction, ctx: BuildCtx, call_attributes: t.List[bytes]
) -> CallStarter:
    if isinstance(action, SendNative):
        return CallStarter(
            to=ctx.codec.format_address(action.to),
            data=b"",
            call_attributes=call_attributes,
        )
    if isinstance(action, Call):
        return CallStarter(
            to=ctx.codec.format_address(action.to),
            data=action.data or b"",
            call_attributes=call_attributes,
        )
    if isinstance(action, SendErc20):
        raise ValidationError(
            'Route "direct" does not support sendErc20 actions; use the indirect route.',
            operation="interop.build",
            context={"token": action.token},
        )
    assert_never(action)


def build_direct_bundle(
    params: InteropParams, ctx: BuildCtx, attrs: InteropAttributes
) -> BundlePlan:
    """Every action is a call straight to its target; no approvals."""
    _check_attributes(params, attrs)
    return BundlePlan(
        dst_chain=ctx.codec.format_chain(ctx.dst_chain_id),
        starters=[
            _direct_starter(action, ctx, attrs.call_attributes[i])
            for i, action in enumerate(params.actions)
        ],
        bundle_attributes=list(attrs.bundle_attributes),
        approvals=[],
        quote_extras=QuoteExtras(
            total_action_value=BigInt(sum_action_msg_value(params.actions)),
            bridged_token_total=BigInt(0),
        ),
    )


def build_indirect_bundle(
    params: InteropParams,
    ctx: BuildCtx,
    attrs: InteropAttributes,
    precomputed: t.Sequence[StarterData],
) -> BundlePlan:
    """Actions with an asset-router payload go through the asset router; others as direct."""
    _check_attributes(params, attrs)
    if len(precomputed) != len(params.actions):
        raise ValidationError(
            f"Expected starter data for {len(params.actions)} action(s), got {len(precomputed)}.",
            operation="interop.build",
        )

    router = ctx.codec.format_address(ctx.asset_router)
    starters = []
    for i, action in enumerate(params.actions):
        payload = precomputed[i].asset_router_payload
        if payload is not None:
            starters.append(
                CallStarter(
                    to=router, data=payload, call_attributes=attrs.call_attributes[i]
                )
            )
            continue
        if isinstance(action, SendErc20):
            raise ValidationError(
                "Missing asset router payload for sendErc20 action.",
                operation="interop.build",
                context={"action_index": i, "token": action.token},
            )
        starters.append(_direct_starter(action, ctx, attrs.call_attributes[i]))

    return BundlePlan(
        dst_chain=ctx.codec.format_chain(ctx.dst_chain_id),
        starters=starters,
        bundle_attributes=list(attrs.bundle_attributes),
        approvals=aggregate_approvals(params.actions, ctx.native_token_vault),
        quote_extras=QuoteExtras(
            total_action_value=BigInt(sum_action_msg_value(params.actions)),
            bridged_token_total=BigInt(sum_erc20_amounts(params.actions)),
        ),
    )


def build(
    route: InteropRoute,
    params: InteropParams,
    ctx: BuildCtx,
    attrs: InteropAttributes,
    precomputed: t.Optional[t.Sequence[StarterData]] = None,
) -> BundlePlan:
    """Build the bundle for `route`."""
    if route == InteropRoute.DIRECT:
        return build_direct_bundle(params, ctx, attrs)
    if route == InteropRoute.INDIRECT:
        return build_indirect_bundle(
            params, ctx, attrs, precomputed or [StarterData() for _ in params.actions]
        )
    assert_never(route)

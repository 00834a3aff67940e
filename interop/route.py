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

"""Route selection and preflight validation."""

import typing as t

from typing_extensions import assert_never

from interop.exceptions import ValidationError
from interop.interop_types import (
    BuildCtx,
    Call,
    InteropAction,
    InteropParams,
    InteropRoute,
    SendErc20,
    SendNative,
)


def sum_action_msg_value(actions: t.Iterable[InteropAction]) -> int:
    """Native value carried by the bundle: sendNative amounts plus positive call values."""
    total = 0
    for action in actions:
        if isinstance(action, SendNative):
            total += action.amount
        elif isinstance(action, Call):
            if action.value is not None and action.value > 0:
                total += action.value
        elif isinstance(action, SendErc20):
            continue
        else:
            assert_never(action)
    return total


def sum_erc20_amounts(actions: t.Iterable[InteropAction]) -> int:
    """Total ERC-20 amount across actions, any token."""
    return sum(action.amount for action in actions if isinstance(action, SendErc20))


def _has_erc20(actions: t.Iterable[InteropAction]) -> bool:
    return any(isinstance(action, SendErc20) for action in actions)


def pick_route(
    actions: t.Sequence[InteropAction], base_token_src: str, base_token_dst: str
) -> InteropRoute:
    """Indirect when any action is an ERC-20 transfer or the base tokens differ."""
    if _has_erc20(actions):
        return InteropRoute.INDIRECT
    if base_token_src.lower() != base_token_dst.lower():
        return InteropRoute.INDIRECT
    return InteropRoute.DIRECT


def _check_amounts(route: InteropRoute, params: InteropParams, ctx: BuildCtx) -> None:
    for index, action in enumerate(params.actions):
        context = {"route": route.value, "action_index": index}
        if isinstance(action, SendNative):
            if action.amount < 0:
                raise ValidationError(
                    "sendNative.amount must be >= 0.",
                    operation="interop.preflight",
                    context=context,
                )
        elif isinstance(action, SendErc20):
            if action.amount < 0:
                raise ValidationError(
                    "sendErc20.amount must be >= 0.",
                    operation="interop.preflight",
                    context=context,
                )
        elif isinstance(action, Call):
            if action.value is None:
                continue
            if action.value < 0:
                raise ValidationError(
                    "call.value must be >= 0 when provided.",
                    operation="interop.preflight",
                    context=context,
                )
            if (
                route == InteropRoute.INDIRECT
                and action.value > 0
                and not ctx.base_tokens.matches
            ):
                raise ValidationError(
                    "Indirect route does not support call.value when base tokens differ.",
                    operation="interop.preflight",
                    context={
                        **context,
                        "base_token_src": ctx.base_tokens.src,
                        "base_token_dst": ctx.base_tokens.dst,
                    },
                )
        else:
            assert_never(action)


def preflight_direct(params: InteropParams, ctx: BuildCtx) -> None:
    """Validate a request for the direct route."""
    if not params.actions:
        raise ValidationError(
            'Route "direct" requires at least one action.',
            operation="interop.preflight",
            context={"route": InteropRoute.DIRECT.value},
        )
    if _has_erc20(params.actions):
        raise ValidationError(
            'Route "direct" does not support ERC-20 actions; use the indirect route.',
            operation="interop.preflight",
            context={"route": InteropRoute.DIRECT.value},
        )
    if not ctx.base_tokens.matches:
        raise ValidationError(
            'Route "direct" requires matching base tokens between source and destination.',
            operation="interop.preflight",
            context={
                "route": InteropRoute.DIRECT.value,
                "base_token_src": ctx.base_tokens.src,
                "base_token_dst": ctx.base_tokens.dst,
            },
        )
    _check_amounts(InteropRoute.DIRECT, params, ctx)


def preflight_indirect(params: InteropParams, ctx: BuildCtx) -> None:
    """Validate a request for the indirect route."""
    if not params.actions:
        raise ValidationError(
            'Route "indirect" requires at least one action.',
            operation="interop.preflight",
            context={"route": InteropRoute.INDIRECT.value},
        )
    if not _has_erc20(params.actions) and ctx.base_tokens.matches:
        raise ValidationError(
            'Route "indirect" requires ERC-20 actions or mismatched base tokens; use the direct route.',
            operation="interop.preflight",
            context={"route": InteropRoute.INDIRECT.value},
        )
    _check_amounts(InteropRoute.INDIRECT, params, ctx)


def preflight(route: InteropRoute, params: InteropParams, ctx: BuildCtx) -> None:
    """Validate a request for `route`; raises `ValidationError`, no side effects."""
    if route == InteropRoute.DIRECT:
        preflight_direct(params, ctx)
    elif route == InteropRoute.INDIRECT:
        preflight_indirect(params, ctx)
    else:
        assert_never(route)

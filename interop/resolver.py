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

"""Asset identity resolution for asset-router transfers."""

import logging
import typing as t
from abc import ABC, abstractmethod

from aea.helpers.logging import setup_logger
from typing_extensions import assert_never

from interop.codec.ntv import (
    encode_asset_id,
    encode_native_token_vault_transfer_data,
    encode_second_bridge_data_v1,
)
from interop.constants import FORMAL_ETH_ADDRESS, ZERO_HASH
from interop.data.contracts.native_token_vault.contract import NativeTokenVault
from interop.exceptions import ValidationError
from interop.interop_types import BuildCtx, Call, InteropAction, SendErc20, SendNative
from interop.rpc import RpcClient


class AssetResolver(ABC):
    """Produces the asset-router payload of value-bridging actions."""

    @abstractmethod
    def asset_router_payload(self, action: InteropAction, ctx: BuildCtx) -> bytes:
        """Payload the asset router forwards for `action`."""


class NativeTokenVaultResolver(AssetResolver):
    """Resolve asset ids through the source chain's native token vault."""

    def __init__(
        self,
        rpc: RpcClient,
        native_token_vault: str,
        logger: t.Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the resolver."""
        self.rpc = rpc
        self.native_token_vault = native_token_vault
        self.logger = logger or setup_logger(name="interop.resolver.NativeTokenVaultResolver")
        self._asset_ids: t.Dict[str, str] = {}
        self._base_token_asset_id: t.Optional[str] = None

    def asset_id_of(self, token: str) -> str:
        """Asset id of `token`; tokens not yet registered get the id the vault will assign them."""
        key = token.lower()
        if key not in self._asset_ids:
            asset_id = NativeTokenVault.get_asset_id(
                self.rpc, self.native_token_vault, token
            )
            if asset_id == ZERO_HASH:
                asset_id = "0x" + encode_asset_id(
                    self.rpc.chain_id(), self.native_token_vault, token
                ).hex()
                self.logger.info(
                    f"[INTEROP RESOLVER] Token {token} is not registered, using derived asset id {asset_id}."
                )
            self._asset_ids[key] = asset_id
        return self._asset_ids[key]

    def base_token_asset_id(self) -> str:
        """Asset id of the source chain's base token."""
        if self._base_token_asset_id is None:
            self._base_token_asset_id = NativeTokenVault.get_base_token_asset_id(
                self.rpc, self.native_token_vault
            )
        return self._base_token_asset_id

    def asset_router_payload(self, action: InteropAction, ctx: BuildCtx) -> bytes:
        """Payload the asset router forwards for `action`."""
        if isinstance(action, SendErc20):
            asset_id = self.asset_id_of(action.token)
        elif isinstance(action, SendNative):
            asset_id = self.base_token_asset_id()
        elif isinstance(action, Call):
            raise ValidationError(
                "Calls are not routed through the asset router.",
                operation="resolver.asset_router_payload",
                context={"to": action.to},
            )
        else:
            assert_never(action)

        transfer_data = encode_native_token_vault_transfer_data(
            action.amount, action.to, FORMAL_ETH_ADDRESS
        )
        return encode_second_bridge_data_v1(asset_id, transfer_data)

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

"""This module contains the class to connect to the `L2NativeTokenVault` contract."""

import typing as t

from aea.configurations.base import PublicId
from aea.contracts.base import Contract

from interop.serialization import to_hex
from interop.utils.abi import encode_call


if t.TYPE_CHECKING:
    from interop.rpc import RpcClient  # pragma: nocover


NATIVE_TOKEN_VAULT_ABI = [
    {
        "type": "function",
        "name": "assetId",
        "stateMutability": "view",
        "inputs": [{"name": "token", "type": "address"}],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
    {
        "type": "function",
        "name": "BASE_TOKEN_ASSET_ID",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
    {
        "type": "function",
        "name": "ensureTokenIsRegistered",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "nativeToken", "type": "address"}],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
]


class NativeTokenVault(Contract):
    """L2 native token vault."""

    contract_id = PublicId.from_str("valory/native_token_vault:0.1.0")

    ABI = NATIVE_TOKEN_VAULT_ABI
    ASSET_ID_FUNCTION = "assetId"
    BASE_TOKEN_ASSET_ID_FUNCTION = "BASE_TOKEN_ASSET_ID"
    ENSURE_TOKEN_IS_REGISTERED_FUNCTION = "ensureTokenIsRegistered"

    @classmethod
    def get_asset_id(cls, rpc: "RpcClient", contract_address: str, token: str) -> str:
        """Registered asset id of `token`; zero hash if unregistered."""
        return to_hex(
            rpc.read_contract(contract_address, cls.ABI, cls.ASSET_ID_FUNCTION, [token])
        )

    @classmethod
    def get_base_token_asset_id(cls, rpc: "RpcClient", contract_address: str) -> str:
        """Asset id of the chain's base token."""
        return to_hex(
            rpc.read_contract(
                contract_address, cls.ABI, cls.BASE_TOKEN_ASSET_ID_FUNCTION, []
            )
        )

    @classmethod
    def build_ensure_token_tx(cls, contract_address: str, token: str) -> t.Dict:
        """Unsigned `ensureTokenIsRegistered(token)` transaction."""
        return {
            "to": contract_address,
            "data": to_hex(
                encode_call(cls.ABI, cls.ENSURE_TOKEN_IS_REGISTERED_FUNCTION, [token])
            ),
            "value": 0,
        }

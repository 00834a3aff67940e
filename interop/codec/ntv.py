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

"""Asset router payload encoding."""

import typing as t

from eth_abi import encode
from web3 import Web3

from interop.constants import NEW_ENCODING_VERSION
from interop.serialization import to_bytes


def encode_native_token_vault_transfer_data(amount: int, receiver: str, token: str) -> bytes:
    """abi.encode(uint256 amount, address receiver, address token)."""
    return encode(
        ["uint256", "address", "address"],
        [amount, Web3.to_checksum_address(receiver), Web3.to_checksum_address(token)],
    )


def encode_second_bridge_data_v1(asset_id: t.Union[str, bytes], transfer_data: bytes) -> bytes:
    """Versioned asset-router payload: 0x01 || abi.encode(bytes32 assetId, bytes transferData)."""
    return bytes([NEW_ENCODING_VERSION]) + encode(
        ["bytes32", "bytes"], [to_bytes(asset_id), transfer_data]
    )


def encode_asset_id(origin_chain_id: int, native_token_vault: str, token: str) -> bytes:
    """keccak(abi.encode(uint256 originChainId, address vault, address token))."""
    return bytes(
        Web3.keccak(
            encode(
                ["uint256", "address", "address"],
                [
                    origin_chain_id,
                    Web3.to_checksum_address(native_token_vault),
                    Web3.to_checksum_address(token),
                ],
            )
        )
    )

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

"""This module contains the class to connect to the `InteropRootStorage` contract."""

import typing as t

from aea.configurations.base import PublicId
from aea.contracts.base import Contract

from interop.serialization import to_hex


if t.TYPE_CHECKING:
    from interop.rpc import RpcClient  # pragma: nocover


INTEROP_ROOT_STORAGE_ABI = [
    {
        "type": "function",
        "name": "interopRoots",
        "stateMutability": "view",
        "inputs": [
            {"name": "chainId", "type": "uint256"},
            {"name": "batchNumber", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
]


class InteropRootStorage(Contract):
    """Destination-chain store of imported interop roots."""

    contract_id = PublicId.from_str("valory/interop_root_storage:0.1.0")

    ABI = INTEROP_ROOT_STORAGE_ABI
    INTEROP_ROOTS_FUNCTION = "interopRoots"

    @classmethod
    def get_interop_root(
        cls,
        rpc: "RpcClient",
        contract_address: str,
        chain_id: int,
        batch_number: int,
    ) -> str:
        """Root imported for `(chain_id, batch_number)`; zero hash while absent."""
        root = rpc.read_contract(
            contract_address,
            cls.ABI,
            cls.INTEROP_ROOTS_FUNCTION,
            [chain_id, batch_number],
        )
        return to_hex(root)

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

"""This module contains the class to connect to an ERC20 token."""

import typing as t

from aea.configurations.base import PublicId
from aea.contracts.base import Contract

from interop.serialization import to_hex
from interop.utils.abi import encode_call


if t.TYPE_CHECKING:
    from interop.rpc import RpcClient  # pragma: nocover


ERC20_ABI = [
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


class ERC20(Contract):
    """ERC20 token."""

    contract_id = PublicId.from_str("valory/erc20:0.1.0")

    ABI = ERC20_ABI
    APPROVE_FUNCTION = "approve"
    ALLOWANCE_FUNCTION = "allowance"

    @classmethod
    def get_allowance(
        cls, rpc: "RpcClient", contract_address: str, owner: str, spender: str
    ) -> int:
        """Allowance of `spender` over `owner`'s tokens."""
        return int(
            rpc.read_contract(
                contract_address, cls.ABI, cls.ALLOWANCE_FUNCTION, [owner, spender]
            )
        )

    @classmethod
    def build_approve_tx(cls, contract_address: str, spender: str, amount: int) -> t.Dict:
        """Unsigned `approve(spender, amount)` transaction."""
        return {
            "to": contract_address,
            "data": to_hex(
                encode_call(cls.ABI, cls.APPROVE_FUNCTION, [spender, amount])
            ),
            "value": 0,
        }

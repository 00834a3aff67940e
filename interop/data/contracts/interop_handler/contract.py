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

"""This module contains the class to connect to the `InteropHandler` contract."""

import typing as t

from aea.configurations.base import PublicId
from aea.contracts.base import Contract

from interop.interop_types import InteropFinalizationInfo, InteropPhase
from interop.serialization import to_hex
from interop.utils.abi import encode_call, event_topic, get_abi_entry


if t.TYPE_CHECKING:
    from interop.rpc import RpcClient  # pragma: nocover


def _bundle_hash_event(name: str) -> t.Dict:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [{"name": "bundleHash", "type": "bytes32", "indexed": True}],
    }


INTEROP_HANDLER_ABI = [
    {
        "type": "function",
        "name": "executeBundle",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "bundle", "type": "bytes"},
            {
                "name": "proof",
                "type": "tuple",
                "components": [
                    {"name": "chainId", "type": "uint256"},
                    {"name": "l1BatchNumber", "type": "uint256"},
                    {"name": "l2MessageIndex", "type": "uint256"},
                    {
                        "name": "message",
                        "type": "tuple",
                        "components": [
                            {"name": "txNumberInBatch", "type": "uint16"},
                            {"name": "sender", "type": "address"},
                            {"name": "data", "type": "bytes"},
                        ],
                    },
                    {"name": "proof", "type": "bytes32[]"},
                ],
            },
        ],
        "outputs": [],
    },
    _bundle_hash_event("BundleVerified"),
    _bundle_hash_event("BundleExecuted"),
    _bundle_hash_event("BundleUnbundled"),
]


class InteropHandler(Contract):
    """Destination-chain bundle executor."""

    contract_id = PublicId.from_str("valory/interop_handler:0.1.0")

    ABI = INTEROP_HANDLER_ABI
    LIFECYCLE_EVENTS = {
        InteropPhase.VERIFIED: "BundleVerified",
        InteropPhase.EXECUTED: "BundleExecuted",
        InteropPhase.UNBUNDLED: "BundleUnbundled",
    }
    EXECUTE_BUNDLE_FUNCTION = "executeBundle"

    @classmethod
    def lifecycle_topic(cls, phase: InteropPhase) -> str:
        """topic0 of the lifecycle event marking `phase`."""
        entry = get_abi_entry(cls.ABI, cls.LIFECYCLE_EVENTS[phase], "event")
        return event_topic(entry)

    @classmethod
    def get_lifecycle_logs(
        cls,
        rpc: "RpcClient",
        contract_address: str,
        bundle_hash: str,
        phase: InteropPhase,
    ) -> t.List[t.Dict]:
        """Lifecycle logs for `bundle_hash` marking `phase`."""
        return rpc.get_logs(
            contract_address, [cls.lifecycle_topic(phase), to_hex(bundle_hash)]
        )

    @classmethod
    def execute_bundle_args(cls, info: InteropFinalizationInfo) -> t.List[t.Any]:
        """Arguments of `executeBundle(bundle, proof)`."""
        return [info.encoded_data, info.proof.as_tuple()]

    @classmethod
    def build_execute_bundle_data(cls, info: InteropFinalizationInfo) -> bytes:
        """Calldata of `executeBundle`."""
        return encode_call(
            cls.ABI, cls.EXECUTE_BUNDLE_FUNCTION, cls.execute_bundle_args(info)
        )

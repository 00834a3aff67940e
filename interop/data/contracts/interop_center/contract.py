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

"""This module contains the class to connect to the `InteropCenter` contract."""

import typing as t

import eth_abi
from aea.configurations.base import PublicId
from aea.contracts.base import Contract
from eth_utils import collapse_if_tuple

from interop.interop_types import BundlePlan
from interop.serialization import to_bytes, to_hex
from interop.utils.abi import encode_call, event_topic, get_abi_entry, input_types


INTEROP_CALL_COMPONENTS = [
    {"name": "version", "type": "bytes1"},
    {"name": "shadowAccount", "type": "bool"},
    {"name": "to", "type": "address"},
    {"name": "from", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "data", "type": "bytes"},
]
BUNDLE_ATTRIBUTES_COMPONENTS = [
    {"name": "executionAddress", "type": "bytes"},
    {"name": "unbundlerAddress", "type": "bytes"},
]
INTEROP_BUNDLE_ARG = {
    "name": "interopBundle",
    "type": "tuple",
    "components": [
        {"name": "version", "type": "bytes1"},
        {"name": "sourceChainId", "type": "uint256"},
        {"name": "destinationChainId", "type": "uint256"},
        {"name": "interopBundleSalt", "type": "bytes32"},
        {"name": "calls", "type": "tuple[]", "components": INTEROP_CALL_COMPONENTS},
        {
            "name": "bundleAttributes",
            "type": "tuple",
            "components": BUNDLE_ATTRIBUTES_COMPONENTS,
        },
    ],
}
INTEROP_BUNDLE_TYPE = collapse_if_tuple(INTEROP_BUNDLE_ARG)

INTEROP_CENTER_ABI = [
    {
        "type": "function",
        "name": "sendBundle",
        "stateMutability": "payable",
        "inputs": [
            {"name": "destinationChainId", "type": "bytes"},
            {
                "name": "callStarters",
                "type": "tuple[]",
                "components": [
                    {"name": "to", "type": "bytes"},
                    {"name": "data", "type": "bytes"},
                    {"name": "callAttributes", "type": "bytes[]"},
                ],
            },
            {"name": "bundleAttributes", "type": "bytes[]"},
        ],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
    {
        "type": "event",
        "name": "InteropBundleSent",
        "anonymous": False,
        "inputs": [
            {"name": "l2l1MsgHash", "type": "bytes32", "indexed": False},
            {"name": "interopBundleHash", "type": "bytes32", "indexed": False},
            dict(INTEROP_BUNDLE_ARG, indexed=False),
        ],
    },
]


class InteropCenter(Contract):
    """Source-chain entry point for interop bundles."""

    contract_id = PublicId.from_str("valory/interop_center:0.1.0")

    ABI = INTEROP_CENTER_ABI
    BUNDLE_SENT_EVENT = "InteropBundleSent"
    SEND_BUNDLE_FUNCTION = "sendBundle"

    @classmethod
    def bundle_sent_topic(cls) -> str:
        """topic0 of `InteropBundleSent`."""
        return event_topic(get_abi_entry(cls.ABI, cls.BUNDLE_SENT_EVENT, "event"))

    @classmethod
    def build_send_bundle_data(cls, bundle: BundlePlan) -> bytes:
        """Calldata of `sendBundle(dstChain, starters, bundleAttributes)`."""
        return encode_call(
            cls.ABI,
            cls.SEND_BUNDLE_FUNCTION,
            [
                bundle.dst_chain,
                [starter.as_tuple() for starter in bundle.starters],
                list(bundle.bundle_attributes),
            ],
        )

    @classmethod
    def build_send_bundle_tx(cls, contract_address: str, bundle: BundlePlan) -> t.Dict:
        """Unsigned `sendBundle` transaction carrying the bundle's native value."""
        return {
            "to": contract_address,
            "data": to_hex(cls.build_send_bundle_data(bundle)),
            "value": int(bundle.quote_extras.total_action_value),
        }

    @classmethod
    def decode_bundle_sent(cls, data: t.Union[str, bytes]) -> t.Dict[str, t.Any]:
        """Decode the non-indexed data of an `InteropBundleSent` log."""
        l2l1_msg_hash, bundle_hash, bundle = eth_abi.decode(
            input_types(cls.ABI, cls.BUNDLE_SENT_EVENT, "event"), to_bytes(data)
        )
        version, source_chain_id, destination_chain_id, salt, calls, attributes = bundle
        return {
            "l2l1_msg_hash": to_hex(l2l1_msg_hash),
            "bundle_hash": to_hex(bundle_hash),
            "version": to_hex(version),
            "source_chain_id": source_chain_id,
            "destination_chain_id": destination_chain_id,
            "salt": to_hex(salt),
            "calls": [
                {
                    "version": to_hex(call[0]),
                    "shadow_account": call[1],
                    "to": call[2],
                    "from": call[3],
                    "value": call[4],
                    "data": call[5],
                }
                for call in calls
            ],
            "execution_address": attributes[0],
            "unbundler_address": attributes[1],
        }

    @classmethod
    def find_bundle_sent_logs(
        cls, receipt: t.Dict, contract_address: str
    ) -> t.List[t.Dict]:
        """`InteropBundleSent` logs emitted by `contract_address` in a receipt."""
        topic = cls.bundle_sent_topic()
        return [
            log
            for log in receipt.get("logs") or []
            if to_hex(log.get("address", "0x")) == contract_address.lower()
            and log.get("topics")
            and to_hex(log["topics"][0]) == topic
        ]

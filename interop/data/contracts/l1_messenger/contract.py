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

"""This module contains the class to connect to the `L1Messenger` system contract."""

import typing as t

from aea.configurations.base import PublicId
from aea.contracts.base import Contract

from interop.serialization import to_hex
from interop.utils.abi import event_topic


def _message_sent_event(sender_type: str) -> t.Dict:
    return {
        "type": "event",
        "name": "L1MessageSent",
        "anonymous": False,
        "inputs": [
            {"name": "sender", "type": sender_type, "indexed": True},
            {"name": "hash", "type": "bytes32", "indexed": True},
            {"name": "message", "type": "bytes", "indexed": False},
        ],
    }


class L1Messenger(Contract):
    """L2->L1 messenger system contract."""

    contract_id = PublicId.from_str("valory/l1_messenger:0.1.0")

    MESSAGE_SENT_EVENT = _message_sent_event("uint256")
    # Older messengers index the sender as an address.
    LEGACY_MESSAGE_SENT_EVENT = _message_sent_event("address")

    @classmethod
    def message_sent_topics(cls) -> t.Tuple[str, str]:
        """topic0 of the current and legacy `L1MessageSent` events."""
        return (
            event_topic(cls.MESSAGE_SENT_EVENT),
            event_topic(cls.LEGACY_MESSAGE_SENT_EVENT),
        )

    @classmethod
    def is_message_sent_log(cls, log: t.Dict, contract_address: str) -> bool:
        """Whether `log` is an `L1MessageSent` emitted by `contract_address`."""
        topics = log.get("topics") or []
        if not topics:
            return False
        return (
            to_hex(log.get("address", "0x")) == contract_address.lower()
            and to_hex(topics[0]) in cls.message_sent_topics()
        )

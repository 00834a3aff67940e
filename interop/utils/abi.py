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

"""ABI helpers over minimal contract ABIs."""

import typing as t

from eth_utils import (
    collapse_if_tuple,
    event_abi_to_log_topic,
    filter_abi_by_name,
    function_abi_to_4byte_selector,
)
from web3 import Web3
from web3.contract import Contract as Web3Contract

from interop.serialization import to_bytes


ABI = t.List[t.Dict[str, t.Any]]


def get_abi_entry(abi: ABI, name: str, entry_type: str = "function") -> t.Dict:
    """The single `entry_type` entry called `name`."""
    entries = [
        entry
        for entry in filter_abi_by_name(name, abi)  # type: ignore[arg-type]
        if entry.get("type") == entry_type
    ]
    if len(entries) != 1:
        raise ValueError(
            f"Expected exactly one {entry_type} named {name!r}, found {len(entries)}."
        )
    return t.cast(t.Dict, entries[0])


def contract_for(abi: ABI) -> t.Type[Web3Contract]:
    """Address-less contract factory used for offline encoding."""
    return Web3().eth.contract(abi=abi)


def selector(abi: ABI, fn: str) -> bytes:
    """4-byte selector of `fn`."""
    entry = get_abi_entry(abi, fn)
    return bytes(function_abi_to_4byte_selector(entry))  # type: ignore[arg-type]


def encode_call(abi: ABI, fn: str, args: t.Sequence[t.Any]) -> bytes:
    """Calldata of `fn(*args)`."""
    return to_bytes(contract_for(abi).encode_abi(fn, args=list(args)))


def input_types(abi: ABI, name: str, entry_type: str = "function") -> t.List[str]:
    """Canonical input types of an entry, tuples collapsed."""
    entry = get_abi_entry(abi, name, entry_type)
    return [collapse_if_tuple(arg) for arg in entry["inputs"]]


def event_topic(event_abi: t.Dict) -> str:
    """topic0 of an event."""
    return "0x" + bytes(event_abi_to_log_topic(event_abi)).hex()  # type: ignore[arg-type]


def pad_topic(value: t.Union[str, bytes, int]) -> str:
    """Left-pad an address, hash or integer to a 32-byte topic."""
    if isinstance(value, int):
        return "0x" + value.to_bytes(32, "big").hex()
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex().rjust(64, "0")
    return "0x" + value.lower()[2:].rjust(64, "0")

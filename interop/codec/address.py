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

"""Interoperable address (ERC-7930) encoding for EVM chains and accounts."""

import typing as t

from interop.constants import (
    EVM_ADDRESS_LENGTH,
    INTEROP_ADDRESS_VERSION,
    INTEROP_CHAIN_TYPE_EIP155,
    MAX_CHAIN_REFERENCE_LENGTH,
)
from interop.exceptions import ValidationError
from interop.serialization import to_bytes


_HEADER = INTEROP_ADDRESS_VERSION.to_bytes(2, "big") + INTEROP_CHAIN_TYPE_EIP155.to_bytes(
    2, "big"
)


def _chain_reference(chain_id: int) -> bytes:
    """Minimal big-endian encoding; zero has an empty reference."""
    return chain_id.to_bytes((chain_id.bit_length() + 7) // 8, "big")


def format_chain(chain_id: int) -> bytes:
    """
    Encode a chain as an interoperable address with no account part.

    Layout: version(2) | chainType(2) | chainRefLen(1) | chainRef | addrLen(1)=0
    """
    if isinstance(chain_id, bool) or not isinstance(chain_id, int):
        raise ValidationError(
            f"Chain id must be an integer, got {chain_id!r}.",
            operation="codec.format_chain",
        )
    if chain_id < 0:
        raise ValidationError(
            f"Chain id must be non-negative, got {chain_id}.",
            operation="codec.format_chain",
            context={"chain_id": chain_id},
        )

    reference = _chain_reference(chain_id)
    if len(reference) > MAX_CHAIN_REFERENCE_LENGTH:
        raise ValidationError(
            f"Chain reference is {len(reference)} bytes; at most {MAX_CHAIN_REFERENCE_LENGTH} allowed.",
            operation="codec.format_chain",
            context={"chain_id": chain_id},
        )
    return _HEADER + bytes([len(reference)]) + reference + b"\x00"


def format_address(address: t.Union[str, bytes]) -> bytes:
    """
    Encode an EVM address as an interoperable address with no chain part.

    Layout: version(2) | chainType(2) | chainRefLen(1)=0 | addrLen(1)=20 | address(20)
    """
    try:
        raw = to_bytes(address)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Invalid address {address!r}.",
            operation="codec.format_address",
        ) from e
    if len(raw) != EVM_ADDRESS_LENGTH:
        raise ValidationError(
            f"Address must be {EVM_ADDRESS_LENGTH} bytes, got {len(raw)}.",
            operation="codec.format_address",
            context={"address": address},
        )
    return _HEADER + b"\x00" + bytes([EVM_ADDRESS_LENGTH]) + raw


class InteropAddressCodec:
    """Codec injected into bundle building."""

    def format_chain(self, chain_id: int) -> bytes:
        """Encode a chain id."""
        return format_chain(chain_id)

    def format_address(self, address: t.Union[str, bytes]) -> bytes:
        """Encode an address."""
        return format_address(address)

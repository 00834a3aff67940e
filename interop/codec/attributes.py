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

"""Bundle and call attributes: a 4-byte selector followed by ABI-encoded arguments."""

import typing as t
from dataclasses import dataclass, field

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from interop.codec.address import format_address
from interop.exceptions import ValidationError
from interop.serialization import to_bytes, to_hex


UNKNOWN_ATTRIBUTE = "unknown"


@dataclass(frozen=True)
class AttributeDefinition:
    """Known attribute."""

    name: str
    types: t.Tuple[str, ...]

    @property
    def signature(self) -> str:
        """Function-style signature."""
        return f"{self.name}({','.join(self.types)})"

    @property
    def selector(self) -> bytes:
        """First 4 bytes of keccak(signature)."""
        return bytes(function_signature_to_4byte_selector(self.signature))


EXECUTION_ADDRESS = AttributeDefinition("executionAddress", ("bytes",))
UNBUNDLER_ADDRESS = AttributeDefinition("unbundlerAddress", ("bytes",))
INDIRECT_CALL = AttributeDefinition("indirectCall", ("uint256",))
INTEROP_CALL_VALUE = AttributeDefinition("interopCallValue", ("uint256",))

BUNDLE_ATTRIBUTES = (EXECUTION_ADDRESS, UNBUNDLER_ADDRESS)
CALL_ATTRIBUTES = (INDIRECT_CALL, INTEROP_CALL_VALUE)


@dataclass(frozen=True)
class DecodedAttribute:
    """Decoded attribute."""

    selector: str
    name: str
    signature: t.Optional[str] = None
    args: t.List[t.Any] = field(default_factory=list)


class AttributesCodec:
    """Encode and decode attributes."""

    def __init__(
        self,
        definitions: t.Iterable[AttributeDefinition] = BUNDLE_ATTRIBUTES + CALL_ATTRIBUTES,
    ) -> None:
        """Initialize codec."""
        self._by_name = {definition.name: definition for definition in definitions}
        self._by_selector = {
            definition.selector: definition for definition in self._by_name.values()
        }

    def encode(self, name: str, args: t.Sequence[t.Any]) -> bytes:
        """Encode attribute `name` with `args`."""
        definition = self._by_name.get(name)
        if definition is None:
            raise ValidationError(
                f"Unknown attribute {name}; expected one of {sorted(self._by_name)}.",
                operation="attributes.encode",
                context={"name": name},
            )
        if len(args) != len(definition.types):
            raise ValidationError(
                f"Attribute {definition.signature} takes {len(definition.types)} argument(s), got {len(args)}.",
                operation="attributes.encode",
                context={"name": name},
            )
        try:
            return definition.selector + encode(list(definition.types), list(args))
        except Exception as e:  # pylint: disable=broad-except
            raise ValidationError(
                f"Cannot encode arguments for {definition.signature}: {e}",
                operation="attributes.encode",
                context={"name": name},
            ) from e

    def decode(self, attribute: t.Union[str, bytes]) -> DecodedAttribute:
        """Decode an attribute; unrecognized input decodes to `unknown` with the raw bytes as argument."""
        try:
            raw = to_bytes(attribute)
        except (TypeError, ValueError):
            return DecodedAttribute(selector="0x", name=UNKNOWN_ATTRIBUTE, args=[attribute])

        selector = raw[:4]
        unknown = DecodedAttribute(
            selector=to_hex(selector), name=UNKNOWN_ATTRIBUTE, args=[to_hex(raw)]
        )
        definition = self._by_selector.get(selector)
        if definition is None or len(raw) < 4:
            return unknown
        try:
            args = decode(list(definition.types), raw[4:])
        except Exception:  # pylint: disable=broad-except
            return unknown
        return DecodedAttribute(
            selector=to_hex(selector),
            name=definition.name,
            signature=definition.signature,
            args=list(args),
        )


class BundleAttributes:
    """Bundle-level attribute builders."""

    def __init__(self, codec: t.Optional[AttributesCodec] = None) -> None:
        """Initialize builders."""
        self.codec = codec or AttributesCodec()

    def execution_address(self, executor: str) -> bytes:
        """Only `executor` may execute the bundle."""
        return self.codec.encode(EXECUTION_ADDRESS.name, [format_address(executor)])

    def unbundler_address(self, who: str) -> bytes:
        """`who` may unbundle the bundle."""
        return self.codec.encode(UNBUNDLER_ADDRESS.name, [format_address(who)])


class CallAttributes:
    """Call-level attribute builders."""

    def __init__(self, codec: t.Optional[AttributesCodec] = None) -> None:
        """Initialize builders."""
        self.codec = codec or AttributesCodec()

    def indirect_call(self, message_value: int) -> bytes:
        """Call goes through the asset router forwarding `message_value`."""
        return self.codec.encode(INDIRECT_CALL.name, [message_value])

    def interop_call_value(self, bridged_amount: int) -> bytes:
        """Call carries `bridged_amount` of base token."""
        return self.codec.encode(INTEROP_CALL_VALUE.name, [bridged_amount])


class AttributesDecoder:
    """Inspect attributes of an existing bundle."""

    def __init__(self, codec: t.Optional[AttributesCodec] = None) -> None:
        """Initialize decoder."""
        self.codec = codec or AttributesCodec()

    def call(self, attributes: t.Iterable[t.Union[str, bytes]]) -> t.List[DecodedAttribute]:
        """Decode call attributes."""
        return [self.codec.decode(attribute) for attribute in attributes]

    def bundle(self, attributes: t.Iterable[t.Union[str, bytes]]) -> t.List[DecodedAttribute]:
        """Decode bundle attributes."""
        return [self.codec.decode(attribute) for attribute in attributes]

    def summarize(
        self,
        bundle_attributes: t.Iterable[t.Union[str, bytes]] = (),
        call_attributes: t.Iterable[t.Iterable[t.Union[str, bytes]]] = (),
    ) -> t.Dict[str, t.Any]:
        """Human-readable overview of a bundle's attributes."""
        summary: t.Dict[str, t.Any] = {
            "execution_address": None,
            "unbundler_address": None,
            "calls": [],
            "unknown": [],
        }
        for decoded in self.bundle(bundle_attributes):
            if decoded.name == EXECUTION_ADDRESS.name:
                summary["execution_address"] = to_hex(decoded.args[0])
            elif decoded.name == UNBUNDLER_ADDRESS.name:
                summary["unbundler_address"] = to_hex(decoded.args[0])
            else:
                summary["unknown"].append(decoded.args[0])

        for attributes in call_attributes:
            call: t.Dict[str, t.Any] = {}
            for decoded in self.call(attributes):
                if decoded.name == INDIRECT_CALL.name:
                    call["indirect_call"] = decoded.args[0]
                elif decoded.name == INTEROP_CALL_VALUE.name:
                    call["interop_call_value"] = decoded.args[0]
                else:
                    summary["unknown"].append(decoded.args[0])
            summary["calls"].append(call)
        return summary

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

"""Types module."""

import enum
import typing as t
from dataclasses import dataclass, field

from interop.resource import LocalResource
from interop.serialization import BigInt, to_bytes


if t.TYPE_CHECKING:
    from interop.codec.address import InteropAddressCodec  # pragma: nocover


class InteropRoute(str, enum.Enum):
    """Bridging route."""

    DIRECT = "direct"
    INDIRECT = "indirect"

    def __str__(self) -> str:
        """__str__"""
        return self.value


class InteropPhase(str, enum.Enum):
    """Bundle lifecycle phase."""

    UNKNOWN = "UNKNOWN"
    SENT = "SENT"
    VERIFIED = "VERIFIED"
    EXECUTED = "EXECUTED"
    UNBUNDLED = "UNBUNDLED"

    def __str__(self) -> str:
        """__str__"""
        return self.value

    @property
    def is_terminal(self) -> bool:
        """Whether no further lifecycle transition is possible."""
        return self in (InteropPhase.EXECUTED, InteropPhase.UNBUNDLED)


class WaitTarget(str, enum.Enum):
    """How far `InteropManager.wait` drives a bundle."""

    SOURCE = "l2"
    READY = "ready"
    FINALIZED = "finalized"

    def __str__(self) -> str:
        """__str__"""
        return self.value


# Actions


@dataclass(frozen=True)
class SendNative:
    """Transfer of the source base token to `to` on the destination chain."""

    to: str
    amount: int


@dataclass(frozen=True)
class SendErc20:
    """Transfer of an ERC-20 token through the asset router."""

    token: str
    to: str
    amount: int


@dataclass(frozen=True)
class Call:
    """Arbitrary contract call on the destination chain."""

    to: str
    data: t.Optional[bytes] = None
    value: t.Optional[int] = None


InteropAction = t.Union[SendNative, SendErc20, Call]


@dataclass(frozen=True)
class InteropParams:
    """Caller request."""

    dst_chain_id: int
    actions: t.Sequence[InteropAction]
    execution_only: t.Optional[str] = None
    unbundling_by: t.Optional[str] = None
    sender: t.Optional[str] = None


# Build context and plan


@dataclass(frozen=True)
class BaseTokens:
    """Base tokens of the source and destination chains."""

    src: str
    dst: str

    @property
    def matches(self) -> bool:
        """Case-insensitive equality."""
        return self.src.lower() == self.dst.lower()


@dataclass(frozen=True)
class BuildCtx:
    """Per-request build context."""

    dst_chain_id: int
    base_tokens: BaseTokens
    asset_router: str
    native_token_vault: str
    codec: "InteropAddressCodec"


@dataclass(frozen=True)
class InteropAttributes:
    """Encoded bundle attributes plus one attribute list per action."""

    bundle_attributes: t.List[bytes]
    call_attributes: t.List[t.List[bytes]]


@dataclass(frozen=True)
class StarterData:
    """Per-action precomputed data."""

    asset_router_payload: t.Optional[bytes] = None


@dataclass(frozen=True)
class CallStarter:
    """One call of a bundle as submitted to the interop center."""

    to: bytes
    data: bytes
    call_attributes: t.List[bytes]

    def as_tuple(self) -> t.Tuple[bytes, bytes, t.List[bytes]]:
        """ABI tuple `(bytes to, bytes data, bytes[] callAttributes)`."""
        return (self.to, self.data, list(self.call_attributes))


@dataclass(frozen=True)
class ApprovalNeed(LocalResource):
    """Allowance the native token vault needs on `token`."""

    token: str
    spender: str
    amount: BigInt


@dataclass(frozen=True)
class QuoteExtras(LocalResource):
    """Totals of a bundle."""

    total_action_value: BigInt
    bridged_token_total: BigInt


@dataclass(frozen=True)
class BundlePlan:
    """Encoded bundle ready for `sendBundle`."""

    dst_chain: bytes
    starters: t.List[CallStarter]
    bundle_attributes: t.List[bytes]
    approvals: t.List[ApprovalNeed]
    quote_extras: QuoteExtras


# Lifecycle


@dataclass
class ResolvedInteropIds:
    """Identifiers of a bundle, filled in as they are discovered."""

    l2_src_tx_hash: t.Optional[str] = None
    bundle_hash: t.Optional[str] = None
    dst_chain_id: t.Optional[int] = None
    dst_exec_tx_hash: t.Optional[str] = None


@dataclass(frozen=True)
class InteropStatus(LocalResource):
    """Bundle status."""

    phase: InteropPhase
    l2_src_tx_hash: t.Optional[str] = None
    bundle_hash: t.Optional[str] = None
    dst_chain_id: t.Optional[BigInt] = None
    dst_exec_tx_hash: t.Optional[str] = None


@dataclass(frozen=True)
class InteropExpectedRoot(LocalResource):
    """Interop root the destination chain must hold before execution."""

    root_chain_id: BigInt
    batch_number: BigInt
    expected_root: str


@dataclass(frozen=True)
class L2Message(LocalResource):
    """L2->L1 message carrying the bundle."""

    tx_number_in_batch: int
    sender: str
    data: bytes

    def as_tuple(self) -> t.Tuple[int, str, bytes]:
        """ABI tuple `(uint16, address, bytes)`."""
        return (self.tx_number_in_batch, self.sender, self.data)


@dataclass(frozen=True)
class MessageInclusionProof(LocalResource):
    """Merkle proof of message inclusion in a batch."""

    chain_id: BigInt
    l1_batch_number: BigInt
    l2_message_index: BigInt
    message: L2Message
    proof: t.List[str]

    def as_tuple(self) -> t.Tuple[int, int, int, t.Tuple[int, str, bytes], t.List[bytes]]:
        """ABI tuple of `MessageInclusionProof`."""
        return (
            int(self.chain_id),
            int(self.l1_batch_number),
            int(self.l2_message_index),
            self.message.as_tuple(),
            [to_bytes(node) for node in self.proof],
        )


@dataclass(frozen=True)
class InteropFinalizationInfo(LocalResource):
    """Everything needed to execute a bundle on the destination chain."""

    l2_src_tx_hash: str
    bundle_hash: str
    dst_chain_id: BigInt
    expected_root: InteropExpectedRoot
    proof: MessageInclusionProof
    encoded_data: bytes


# RPC results


@dataclass(frozen=True)
class LogProof:
    """Inclusion proof returned by the source chain."""

    root: str
    batch_number: int
    id: int
    proof: t.List[str]


@dataclass(frozen=True)
class SubmittedTx:
    """Submitted transaction."""

    hash: str
    wait: t.Callable[[], t.Optional[t.Dict]]


@dataclass(frozen=True)
class ExecutionHandle:
    """Destination execution transaction."""

    hash: str
    wait: t.Callable[[], t.Dict]


# Orchestration


@dataclass(frozen=True)
class InteropQuote(LocalResource):
    """Quote for a request."""

    route: InteropRoute
    approvals_needed: t.List[ApprovalNeed]
    total_action_value: BigInt
    bridged_token_total: BigInt


@dataclass(frozen=True)
class InteropStep:
    """Transaction of a plan."""

    key: str
    kind: str
    description: str
    tx: t.Dict[str, t.Any]


@dataclass(frozen=True)
class InteropPlan:
    """Ordered transactions implementing a request."""

    route: InteropRoute
    summary: InteropQuote
    steps: t.List[InteropStep]
    approvals: t.List[ApprovalNeed] = field(default_factory=list)


@dataclass(frozen=True)
class InteropHandle:
    """Result of `InteropManager.create`."""

    l2_src_tx_hash: str
    dst_chain_id: int
    plan: InteropPlan
    step_hashes: t.Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class InteropFinalizationResult:
    """Result of `InteropManager.finalize`."""

    status: InteropStatus
    receipt: t.Optional[t.Dict] = None


InteropWaitable = t.Union[str, ResolvedInteropIds, InteropHandle, InteropFinalizationInfo]

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

"""Receipt parsing and finalization info helpers."""

import typing as t
from dataclasses import dataclass

from interop.constants import BUNDLE_IDENTIFIER, L1_MESSENGER_ADDRESS
from interop.data.contracts.interop_center.contract import InteropCenter
from interop.data.contracts.l1_messenger.contract import L1Messenger
from interop.exceptions import DecodingError, InteropError, StateError
from interop.interop_types import (
    InteropExpectedRoot,
    InteropFinalizationInfo,
    L2Message,
    LogProof,
    MessageInclusionProof,
    ResolvedInteropIds,
)
from interop.serialization import BigInt, to_bytes, to_hex, to_int


WORD = 32


@dataclass(frozen=True)
class BundleReceiptInfo:
    """Bundle data extracted from an extended source receipt."""

    bundle_hash: str
    dst_chain_id: int
    source_chain_id: int
    l1_message_data: bytes
    l1_message_index: int
    l2_to_l1_log_index: int
    tx_number_in_batch: int


def resolve_ids_from_waitable(waitable: t.Any) -> ResolvedInteropIds:
    """A bare string is the source tx hash; objects contribute whichever ids they carry."""
    if isinstance(waitable, str):
        return ResolvedInteropIds(l2_src_tx_hash=waitable)
    dst_chain_id = getattr(waitable, "dst_chain_id", None)
    return ResolvedInteropIds(
        l2_src_tx_hash=getattr(waitable, "l2_src_tx_hash", None),
        bundle_hash=getattr(waitable, "bundle_hash", None),
        dst_chain_id=int(dst_chain_id) if dst_chain_id is not None else None,
        dst_exec_tx_hash=getattr(waitable, "dst_exec_tx_hash", None),
    )


def is_l1_message_sent_log(log: t.Dict, messenger: str = L1_MESSENGER_ADDRESS) -> bool:
    """Whether `log` is an `L1MessageSent` of the messenger system contract."""
    return L1Messenger.is_message_sent_log(log, messenger)


def decode_single_bytes(data: t.Union[str, bytes]) -> bytes:
    """Decode `abi.encode(bytes)` checking the offset and length headers against the data."""
    raw = to_bytes(data)
    if len(raw) < WORD:
        raise DecodingError("Encoded bytes is too short to decode.")

    offset = int.from_bytes(raw[:WORD], "big")
    if len(raw) < offset + WORD:
        raise DecodingError("Encoded bytes length is out of bounds.")

    length = int.from_bytes(raw[offset : offset + WORD], "big")
    start = offset + WORD
    if len(raw) < start + length:
        raise DecodingError("Encoded bytes payload is out of bounds.")
    return raw[start : start + length]


def messenger_log_index(
    receipt: t.Dict, index: int = 0, messenger: str = L1_MESSENGER_ADDRESS
) -> int:
    """Position in `l2ToL1Logs` of the `index`-th log sent by the messenger (first one if out of range)."""
    hits = [
        position
        for position, log in enumerate(receipt.get("l2ToL1Logs") or [])
        if str((log or {}).get("sender", "")).lower() == messenger.lower()
    ]
    if not hits:
        raise StateError(
            "No L2->L1 messenger logs found in receipt.",
            operation="interop.parse_sent_log",
        )
    return hits[index] if index < len(hits) else hits[0]


def resolve_tx_index(receipt: t.Dict) -> int:
    """Index of the transaction in its batch, 0 when unknown."""
    for key in ("transactionIndex", "transaction_index", "index"):
        value = receipt.get(key)
        if value is None:
            continue
        try:
            return to_int(value)
        except (TypeError, ValueError):
            return 0
    return 0


def parse_bundle_sent_from_receipt(
    receipt: t.Dict, interop_center: str, l2_src_tx_hash: str
) -> t.Dict[str, t.Any]:
    """Bundle hash and chain ids from the first `InteropBundleSent` log of a receipt."""
    logs = InteropCenter.find_bundle_sent_logs(receipt, interop_center)
    if not logs:
        raise StateError(
            "Failed to locate InteropBundleSent event in source receipt.",
            operation="interop.parse_sent_log",
            context={"l2_src_tx_hash": l2_src_tx_hash, "interop_center": interop_center},
        )
    try:
        decoded = InteropCenter.decode_bundle_sent(logs[0]["data"])
    except Exception as e:  # pylint: disable=broad-except
        raise StateError(
            "Failed to decode InteropBundleSent event.",
            operation="interop.parse_sent_log",
            context={"l2_src_tx_hash": l2_src_tx_hash},
        ) from e
    return {
        "bundle_hash": decoded["bundle_hash"],
        "source_chain_id": decoded["source_chain_id"],
        "dst_chain_id": decoded["destination_chain_id"],
    }


def parse_bundle_receipt_info(  # pylint: disable=too-many-locals
    receipt: t.Dict,
    interop_center: str,
    l2_src_tx_hash: str,
    want_bundle_hash: t.Optional[str] = None,
    messenger: str = L1_MESSENGER_ADDRESS,
) -> BundleReceiptInfo:
    """
    Locate the bundle and the L1 message carrying it in an extended receipt.

    The message is the last `L1MessageSent` emitted before the matching
    `InteropBundleSent` log.
    """
    bundle_sent_topic = InteropCenter.bundle_sent_topic()
    l1_message_index = -1
    l1_message_data: t.Optional[bytes] = None
    found: t.Optional[t.Dict[str, t.Any]] = None

    for log in receipt.get("logs") or []:
        if is_l1_message_sent_log(log, messenger):
            l1_message_index += 1
            try:
                l1_message_data = decode_single_bytes(log.get("data", "0x"))
            except DecodingError as e:
                raise StateError(
                    "Failed to decode L1MessageSent log data for interop bundle.",
                    operation="interop.parse_sent_log",
                    context={
                        "l2_src_tx_hash": l2_src_tx_hash,
                        "l1_message_index": l1_message_index,
                    },
                ) from e
            continue

        topics = log.get("topics") or []
        if (
            to_hex(log.get("address", "0x")) != interop_center.lower()
            or not topics
            or to_hex(topics[0]) != bundle_sent_topic
        ):
            continue

        try:
            decoded = InteropCenter.decode_bundle_sent(log["data"])
        except Exception as e:  # pylint: disable=broad-except
            raise StateError(
                "Failed to decode InteropBundleSent event.",
                operation="interop.parse_sent_log",
                context={"l2_src_tx_hash": l2_src_tx_hash},
            ) from e
        if want_bundle_hash and decoded["bundle_hash"] != want_bundle_hash.lower():
            continue
        if decoded.get("source_chain_id") is None:
            raise StateError(
                "InteropBundleSent log missing source chain id.",
                operation="interop.parse_sent_log",
                context={"l2_src_tx_hash": l2_src_tx_hash},
            )
        found = decoded
        break

    if found is None:
        raise StateError(
            "Failed to locate InteropBundleSent event in source receipt.",
            operation="interop.parse_sent_log",
            context={
                "l2_src_tx_hash": l2_src_tx_hash,
                "interop_center": interop_center,
                "bundle_hash": want_bundle_hash,
            },
        )
    if l1_message_data is None:
        raise StateError(
            "Failed to locate L1MessageSent log data for interop bundle.",
            operation="interop.parse_sent_log",
            context={"l2_src_tx_hash": l2_src_tx_hash},
        )

    return BundleReceiptInfo(
        bundle_hash=found["bundle_hash"],
        dst_chain_id=found["destination_chain_id"],
        source_chain_id=found["source_chain_id"],
        l1_message_data=l1_message_data,
        l1_message_index=l1_message_index,
        l2_to_l1_log_index=messenger_log_index(receipt, l1_message_index, messenger),
        tx_number_in_batch=resolve_tx_index(receipt),
    )


def validate_bundle_payload(message_data: bytes, l2_src_tx_hash: str) -> bytes:
    """Strip the bundle identifier byte from an L1 message."""
    if len(message_data) <= 1:
        raise StateError(
            "L1MessageSent data is too short to contain bundle payload.",
            operation="interop.wait",
            context={"l2_src_tx_hash": l2_src_tx_hash},
        )
    if message_data[0] != BUNDLE_IDENTIFIER:
        raise StateError(
            "Unexpected bundle prefix in L1MessageSent data.",
            operation="interop.wait",
            context={
                "prefix": f"0x{message_data[0]:02x}",
                "expected": f"0x{BUNDLE_IDENTIFIER:02x}",
                "l2_src_tx_hash": l2_src_tx_hash,
            },
        )
    return message_data[1:]


def build_finalization_info(
    l2_src_tx_hash: str,
    bundle_info: BundleReceiptInfo,
    proof: LogProof,
    interop_center: str,
) -> InteropFinalizationInfo:
    """Combine receipt data and inclusion proof into executable finalization info."""
    if not proof.root or proof.root == "0x":
        raise StateError(
            "L2->L1 log proof missing expected root.",
            operation="interop.wait",
            context={"l2_src_tx_hash": l2_src_tx_hash},
        )
    message_data = bundle_info.l1_message_data
    encoded_data = validate_bundle_payload(message_data, l2_src_tx_hash)
    return InteropFinalizationInfo(
        l2_src_tx_hash=l2_src_tx_hash,
        bundle_hash=bundle_info.bundle_hash,
        dst_chain_id=BigInt(bundle_info.dst_chain_id),
        expected_root=InteropExpectedRoot(
            root_chain_id=BigInt(bundle_info.source_chain_id),
            batch_number=BigInt(proof.batch_number),
            expected_root=to_hex(proof.root),
        ),
        proof=MessageInclusionProof(
            chain_id=BigInt(bundle_info.source_chain_id),
            l1_batch_number=BigInt(proof.batch_number),
            l2_message_index=BigInt(proof.id),
            message=L2Message(
                tx_number_in_batch=bundle_info.tx_number_in_batch,
                sender=interop_center,
                data=message_data,
            ),
            proof=list(proof.proof),
        ),
        encoded_data=encoded_data,
    )


def _error_text(error: BaseException) -> str:
    if isinstance(error, InteropError):
        return error.message.lower()
    return str(error).lower()


def _is_batch_not_executed(text: str) -> bool:
    return "l1 batch" in text and "not" in text and "executed" in text


def is_proof_not_ready_error(error: BaseException) -> bool:
    """
    Transient: the batch holding the message has not been executed yet.

    Providers report this either in the error itself or in its cause.
    """
    text = _error_text(error)
    if "proof not yet available" in text or _is_batch_not_executed(text):
        return True
    cause = error.__cause__
    return cause is not None and _is_batch_not_executed(_error_text(cause))


def is_receipt_not_found_error(error: BaseException) -> bool:
    """Transient: the source transaction is not mined yet."""
    return "receipt not found" in _error_text(error)

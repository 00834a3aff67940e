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

"""
Fixtures for pytest

The conftest.py file serves as a means of providing fixtures for an entire
directory. Fixtures defined in a conftest.py can be used by any test in that
package without needing to import them (pytest will automatically discover them).

See https://docs.pytest.org/en/stable/reference/fixtures.html
"""

import typing as t
from unittest.mock import MagicMock

import pytest
from eth_abi import encode

from interop.codec import InteropAddressCodec
from interop.constants import (
    BUNDLE_IDENTIFIER,
    L1_MESSENGER_ADDRESS,
    L2_ASSET_ROUTER_ADDRESS,
    L2_INTEROP_CENTER_ADDRESS,
    L2_NATIVE_TOKEN_VAULT_ADDRESS,
)
from interop.data.contracts.interop_center.contract import (
    INTEROP_BUNDLE_TYPE,
    InteropCenter,
)
from interop.data.contracts.interop_handler.contract import InteropHandler
from interop.data.contracts.l1_messenger.contract import L1Messenger
from interop.interop_types import (
    BaseTokens,
    BuildCtx,
    InteropExpectedRoot,
    InteropFinalizationInfo,
    InteropPhase,
    L2Message,
    LogProof,
    MessageInclusionProof,
    SubmittedTx,
)
from interop.serialization import BigInt, to_bytes, to_hex
from interop.utils import Clock
from interop.utils.abi import pad_topic

from tests.constants import (
    BASE_TOKEN,
    BATCH_NUMBER,
    BUNDLE_HASH,
    DST_CHAIN_ID,
    DST_EXEC_TX_HASH,
    ENCODED_BUNDLE,
    L2_SRC_TX_HASH,
    L2L1_MSG_HASH,
    MESSAGE_ID,
    PROOF_NODE,
    RECEIVER,
    ROOT,
    SENDER,
    SRC_CHAIN_ID,
    TX_INDEX,
)


class FakeClock(Clock):
    """Clock advanced only by `sleep`."""

    def __init__(self, start: float = 1000.0) -> None:
        """Initialize the clock."""
        self.time = start
        self.sleeps: t.List[float] = []

    def now(self) -> float:
        """Current time in seconds."""
        return self.time

    def sleep(self, seconds: float) -> None:
        """Advance time without blocking."""
        self.sleeps.append(seconds)
        self.time += seconds


def make_ctx(src: str = BASE_TOKEN, dst: str = BASE_TOKEN) -> BuildCtx:
    """Build context for tests."""
    return BuildCtx(
        dst_chain_id=DST_CHAIN_ID,
        base_tokens=BaseTokens(src=src, dst=dst),
        asset_router=L2_ASSET_ROUTER_ADDRESS,
        native_token_vault=L2_NATIVE_TOKEN_VAULT_ADDRESS,
        codec=InteropAddressCodec(),
    )


def make_bundle_sent_log(
    bundle_hash: str = BUNDLE_HASH,
    src_chain_id: int = SRC_CHAIN_ID,
    dst_chain_id: int = DST_CHAIN_ID,
    address: str = L2_INTEROP_CENTER_ADDRESS,
) -> t.Dict:
    """`InteropBundleSent` log as returned by the node."""
    bundle = (
        b"\x01",
        src_chain_id,
        dst_chain_id,
        b"\x00" * 32,
        [(b"\x01", False, RECEIVER, SENDER, 0, b"")],
        (b"", b""),
    )
    data = encode(
        ["bytes32", "bytes32", INTEROP_BUNDLE_TYPE],
        [to_bytes(L2L1_MSG_HASH), to_bytes(bundle_hash), bundle],
    )
    return {
        "address": address,
        "topics": [InteropCenter.bundle_sent_topic()],
        "data": to_hex(data),
    }


def make_message_sent_log(
    payload: bytes = ENCODED_BUNDLE, prefix: int = BUNDLE_IDENTIFIER
) -> t.Dict:
    """`L1MessageSent` log carrying a bundle."""
    return {
        "address": L1_MESSENGER_ADDRESS,
        "topics": [
            L1Messenger.message_sent_topics()[0],
            pad_topic(L2_INTEROP_CENTER_ADDRESS),
            "0x" + "0" * 64,
        ],
        "data": to_hex(encode(["bytes"], [bytes([prefix]) + payload])),
    }


def make_source_receipt(
    bundle_hash: str = BUNDLE_HASH,
    prefix: int = BUNDLE_IDENTIFIER,
    dst_chain_id: int = DST_CHAIN_ID,
) -> t.Dict:
    """Extended source receipt of a `sendBundle` transaction."""
    return {
        "transactionHash": L2_SRC_TX_HASH,
        "transactionIndex": hex(TX_INDEX),
        "status": "0x1",
        "logs": [
            make_message_sent_log(prefix=prefix),
            make_bundle_sent_log(bundle_hash=bundle_hash, dst_chain_id=dst_chain_id),
        ],
        "l2ToL1Logs": [{"sender": L1_MESSENGER_ADDRESS, "isService": True}],
    }


def make_log_proof(root: str = ROOT) -> LogProof:
    """Inclusion proof of the bundle message."""
    return LogProof(
        root=root, batch_number=BATCH_NUMBER, id=MESSAGE_ID, proof=[PROOF_NODE]
    )


def make_finalization_info() -> InteropFinalizationInfo:
    """Finalization info of the default bundle."""
    message = bytes([BUNDLE_IDENTIFIER]) + ENCODED_BUNDLE
    return InteropFinalizationInfo(
        l2_src_tx_hash=L2_SRC_TX_HASH,
        bundle_hash=BUNDLE_HASH,
        dst_chain_id=BigInt(DST_CHAIN_ID),
        expected_root=InteropExpectedRoot(
            root_chain_id=BigInt(SRC_CHAIN_ID),
            batch_number=BigInt(BATCH_NUMBER),
            expected_root=ROOT,
        ),
        proof=MessageInclusionProof(
            chain_id=BigInt(SRC_CHAIN_ID),
            l1_batch_number=BigInt(BATCH_NUMBER),
            l2_message_index=BigInt(MESSAGE_ID),
            message=L2Message(
                tx_number_in_batch=TX_INDEX,
                sender=L2_INTEROP_CENTER_ADDRESS,
                data=message,
            ),
            proof=[PROOF_NODE],
        ),
        encoded_data=ENCODED_BUNDLE,
    )


def lifecycle_logs(
    logs: t.Dict[InteropPhase, t.List[t.Dict]],
) -> t.Callable[..., t.List[t.Dict]]:
    """`get_logs` side effect serving lifecycle logs per phase."""
    by_topic = {InteropHandler.lifecycle_topic(phase): items for phase, items in logs.items()}

    def _get_logs(address: str, topics: t.Sequence[str], *args: t.Any, **kwargs: t.Any) -> t.List[t.Dict]:
        return by_topic.get(topics[0], [])

    return _get_logs


def submitted(tx_hash: str, receipt: t.Optional[t.Dict] = None) -> SubmittedTx:
    """Submitted transaction whose wait returns `receipt`."""
    receipt = {"status": 1, "transactionHash": tx_hash} if receipt is None else receipt
    return SubmittedTx(hash=tx_hash, wait=lambda: receipt)


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock fixture"""
    return FakeClock()


@pytest.fixture
def src_rpc() -> MagicMock:
    """Source chain client with a mined bundle transaction."""
    rpc = MagicMock()
    rpc.chain_id.return_value = SRC_CHAIN_ID
    rpc.get_receipt.return_value = make_source_receipt()
    rpc.get_receipt_with_l2_to_l1.return_value = make_source_receipt()
    rpc.get_proof.return_value = make_log_proof()
    return rpc


@pytest.fixture
def dst_rpc() -> MagicMock:
    """Destination chain client with the root imported and no lifecycle logs."""
    rpc = MagicMock()
    rpc.chain_id.return_value = DST_CHAIN_ID
    rpc.get_logs.side_effect = lifecycle_logs({})
    rpc.read_contract.return_value = to_bytes(ROOT)
    rpc.submit.return_value = submitted(DST_EXEC_TX_HASH)
    return rpc


@pytest.fixture
def finalization_info() -> InteropFinalizationInfo:
    """Finalization info fixture"""
    return make_finalization_info()

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

"""Constants."""

from pathlib import Path


INTEROP = ".interop"
INTEROP_HOME = Path.cwd() / INTEROP
INTEROP_JSON = "interop.json"
FINALIZATIONS_DIR = "finalizations"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_HASH = "0x" + "0" * 64

# System contracts (identical addresses on every interop-enabled L2)
L1_MESSENGER_ADDRESS = "0x0000000000000000000000000000000000008008"
L2_BASE_TOKEN_ADDRESS = "0x000000000000000000000000000000000000800A"
L2_ASSET_ROUTER_ADDRESS = "0x0000000000000000000000000000000000010003"
L2_NATIVE_TOKEN_VAULT_ADDRESS = "0x0000000000000000000000000000000000010004"
L2_INTEROP_ROOT_STORAGE_ADDRESS = "0x0000000000000000000000000000000000010008"
L2_INTEROP_CENTER_ADDRESS = "0x000000000000000000000000000000000001000d"
L2_INTEROP_HANDLER_ADDRESS = "0x000000000000000000000000000000000001000e"

# Stand-in for the base token inside asset-router transfer payloads
FORMAL_ETH_ADDRESS = ZERO_ADDRESS

# First byte of every L2->L1 message carrying an interop bundle
BUNDLE_IDENTIFIER = 0x01

# First byte of asset-router "second bridge" payloads
NEW_ENCODING_VERSION = 0x01

# Interoperable address (ERC-7930) header
INTEROP_ADDRESS_VERSION = 0x0001
INTEROP_CHAIN_TYPE_EIP155 = 0x0000
EVM_ADDRESS_LENGTH = 20
MAX_CHAIN_REFERENCE_LENGTH = 255

DEFAULT_POLL_MS = 1_000
DEFAULT_TIMEOUT_MS = 300_000

ON_CHAIN_INTERACT_TIMEOUT = 120.0
DEFAULT_GAS_LIMIT = 1_000_000
GAS_ESTIMATE_BUFFER = 1.10


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

"""Settings for interop."""

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from interop.constants import (
    DEFAULT_POLL_MS,
    DEFAULT_TIMEOUT_MS,
    INTEROP_JSON,
    L1_MESSENGER_ADDRESS,
    L2_ASSET_ROUTER_ADDRESS,
    L2_INTEROP_CENTER_ADDRESS,
    L2_INTEROP_HANDLER_ADDRESS,
    L2_INTEROP_ROOT_STORAGE_ADDRESS,
    L2_NATIVE_TOKEN_VAULT_ADDRESS,
)
from interop.resource import LocalResource


POLL_MS = int(os.environ.get("INTEROP_POLL_MS", DEFAULT_POLL_MS))
TIMEOUT_MS = int(os.environ.get("INTEROP_TIMEOUT_MS", DEFAULT_TIMEOUT_MS))

INTEROP_JSON_VERSION = 1


@dataclass(frozen=True)
class InteropAddresses(LocalResource):
    """System contract addresses of an interop deployment."""

    interop_center: str = L2_INTEROP_CENTER_ADDRESS
    interop_handler: str = L2_INTEROP_HANDLER_ADDRESS
    interop_root_storage: str = L2_INTEROP_ROOT_STORAGE_ADDRESS
    asset_router: str = L2_ASSET_ROUTER_ADDRESS
    native_token_vault: str = L2_NATIVE_TOKEN_VAULT_ADDRESS
    l1_messenger: str = L1_MESSENGER_ADDRESS

    def with_overrides(self, overrides: Optional[Dict[str, str]]) -> "InteropAddresses":
        """Copy with some addresses replaced."""
        if not overrides:
            return self
        known = {field.name for field in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(
                f"Unknown contract(s) {sorted(unknown)} in address overrides. Expected any of {sorted(known)}."
            )
        return replace(self, **overrides)


DEFAULT_SETTINGS: Dict[str, Any] = {
    "version": INTEROP_JSON_VERSION,
    "poll_ms": POLL_MS,
    "timeout_ms": TIMEOUT_MS,
    "addresses": {},
    "rpcs": {},
    "base_tokens": {},
}


class InteropSettings(LocalResource):
    """Settings for interop."""

    _file = INTEROP_JSON

    version: int
    poll_ms: int
    timeout_ms: int
    addresses: Dict[str, str]
    rpcs: Dict[str, str]
    base_tokens: Dict[str, str]

    def __init__(self, path: Optional[Path] = None, **kwargs: Any) -> None:
        """Initialize settings, reading `interop.json` under `path` when present."""
        super().__init__(path=path)
        stored: Dict[str, Any] = {}
        if path is not None and self.file_for(path).exists():
            stored = json.loads(self.file_for(path).read_text(encoding="utf-8"))

        for key, default_value in DEFAULT_SETTINGS.items():
            setattr(self, key, kwargs.get(key, stored.get(key, default_value)))

        if self.version != INTEROP_JSON_VERSION:
            raise ValueError(
                f"Settings version {self.version} is not supported. Expected version {INTEROP_JSON_VERSION}."
            )
        if self.poll_ms <= 0 or self.timeout_ms <= 0:
            raise ValueError(
                f"Polling interval and timeout must be positive, got poll_ms={self.poll_ms} timeout_ms={self.timeout_ms}."
            )

    def get_addresses(self) -> InteropAddresses:
        """Default addresses with the configured overrides applied."""
        return InteropAddresses().with_overrides(self.addresses)

    def get_base_tokens(self) -> Dict[int, str]:
        """Base token address per chain id."""
        return {int(chain_id): token for chain_id, token in self.base_tokens.items()}

    def get_rpc(self, chain_id: int) -> Optional[str]:
        """RPC url configured for `chain_id`, `INTEROP_RPC_<chain_id>` taking precedence."""
        return os.environ.get(f"INTEROP_RPC_{chain_id}", self.rpcs.get(str(chain_id)))

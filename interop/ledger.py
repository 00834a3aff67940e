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

"""Ledger helpers."""

import logging
import typing as t
from copy import deepcopy

from aea.crypto.base import Crypto, LedgerApi
from aea.crypto.registries import make_ledger_api
from aea_ledger_ethereum import DEFAULT_GAS_PRICE_STRATEGIES

from interop.exceptions import ValidationError
from interop.rpc import LedgerApiRpcClient
from interop.settings import InteropSettings


DEFAULT_LEDGER_APIS: t.Dict[int, LedgerApi] = {}


def make_chain_ledger_api(chain_id: int, rpc: str) -> LedgerApi:
    """Ethereum ledger api for `chain_id`, cached per chain."""
    if chain_id not in DEFAULT_LEDGER_APIS:
        DEFAULT_LEDGER_APIS[chain_id] = make_ledger_api(
            "ethereum",
            address=rpc,
            chain_id=chain_id,
            gas_price_strategies=deepcopy(DEFAULT_GAS_PRICE_STRATEGIES),
        )
    return DEFAULT_LEDGER_APIS[chain_id]


def make_rpc_client(
    chain_id: int,
    settings: InteropSettings,
    crypto: t.Optional[Crypto] = None,
    logger: t.Optional[logging.Logger] = None,
) -> LedgerApiRpcClient:
    """RPC client for `chain_id` using the configured RPC url."""
    rpc = settings.get_rpc(chain_id)
    if rpc is None:
        raise ValidationError(
            f"No RPC configured for chain {chain_id}. Set INTEROP_RPC_{chain_id} or add it to the settings.",
            operation="ledger.make_rpc_client",
            context={"chain_id": chain_id},
        )
    return LedgerApiRpcClient(
        ledger_api=make_chain_ledger_api(chain_id, rpc),
        crypto=crypto,
        logger=logger,
    )

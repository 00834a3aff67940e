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

"""Exceptions."""

import enum
import typing as t


class ErrorKind(str, enum.Enum):
    """Error kind enum."""

    VALIDATION = "VALIDATION"
    RPC = "RPC"
    STATE = "STATE"
    TIMEOUT = "TIMEOUT"
    EXECUTION = "EXECUTION"

    def __str__(self) -> str:
        """__str__"""
        return self.value


class InteropError(Exception):
    """Base interop exception."""

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        operation: t.Optional[str] = None,
        context: t.Optional[t.Dict[str, t.Any]] = None,
    ) -> None:
        """Initialize the error."""
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.context = context or {}

    def __str__(self) -> str:
        """__str__"""
        text = f"[{self.kind}] {self.message}"
        if self.operation:
            text += f" (operation={self.operation})"
        if self.context:
            details = ", ".join(f"{key}={value}" for key, value in self.context.items())
            text += f" [{details}]"
        return text

    @property
    def json(self) -> t.Dict:
        """To dictionary object."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "operation": self.operation,
            "context": {key: str(value) for key, value in self.context.items()},
            "cause": str(self.__cause__) if self.__cause__ else None,
        }


class ValidationError(InteropError):
    """Bad input error."""

    kind = ErrorKind.VALIDATION


class RpcError(InteropError):
    """Chain client error."""

    kind = ErrorKind.RPC


class StateError(InteropError):
    """On-chain data absent or inconsistent."""

    kind = ErrorKind.STATE


class InteropTimeoutError(InteropError):
    """Deadline exceeded while polling."""

    kind = ErrorKind.TIMEOUT


class ExecutionError(InteropError):
    """Destination transaction reverted or failed to confirm."""

    kind = ErrorKind.EXECUTION


class DecodingError(ValueError):
    """ABI payload shorter than its offset or length header."""

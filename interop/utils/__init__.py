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

"""Helper utilities."""

import time
import typing as t
from abc import ABC, abstractmethod

from interop.exceptions import InteropTimeoutError


class Clock(ABC):
    """Time source for polling loops."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        """Suspend for `seconds`."""


class SystemClock(Clock):
    """Monotonic wall clock."""

    def now(self) -> float:
        """Current time in seconds."""
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        """Suspend for `seconds`."""
        time.sleep(seconds)


class Deadline:
    """Absolute deadline shared by every polling stage of one call."""

    def __init__(self, clock: Clock, timeout_ms: int, operation: str) -> None:
        """Initialize the deadline."""
        self.clock = clock
        self.operation = operation
        self.expires_at = clock.now() + timeout_ms / 1000
        self.timeout_ms = timeout_ms

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self.expires_at - self.clock.now())

    def check(self, stage: str, context: t.Optional[t.Dict[str, t.Any]] = None) -> None:
        """Raise `InteropTimeoutError` naming `stage` once the deadline has passed."""
        if self.clock.now() >= self.expires_at:
            raise InteropTimeoutError(
                f"Timed out after {self.timeout_ms}ms waiting for {stage}.",
                operation=self.operation,
                context={"stage": stage, **(context or {})},
            )

    def sleep(
        self, poll_ms: int, stage: str, context: t.Optional[t.Dict[str, t.Any]] = None
    ) -> None:
        """Sleep one poll interval, clamped to the deadline, then re-check it."""
        self.check(stage, context)
        self.clock.sleep(min(poll_ms / 1000, self.remaining()))
        self.check(stage, context)

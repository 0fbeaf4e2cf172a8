# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Per-handler recursion counter."""

from __future__ import annotations

UNBOUNDED = -1
DEFAULT_MAX_LOOP_COUNT = 5


class LoopCount:
    """Counts how often a handler dispatched in one execution.

    A ``max`` of :data:`UNBOUNDED` (any negative value) disables the limit.
    """

    __slots__ = ("count", "max")

    def __init__(self, max: int = DEFAULT_MAX_LOOP_COUNT) -> None:  # noqa: A002
        self.count = 0
        self.max = max

    def increment(self) -> bool:
        """Bump the count and report whether the limit is now exceeded."""
        self.count += 1
        return self.exceeded()

    def exceeded(self) -> bool:
        if self.max < 0:
            return False
        return self.count > self.max

    def set_max(self, max: int) -> None:  # noqa: A002
        self.max = max

    def clear_max(self) -> None:
        self.max = UNBOUNDED

    def __repr__(self) -> str:
        return f"LoopCount(count={self.count}, max={self.max})"

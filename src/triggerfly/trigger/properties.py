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
"""Configuration properties for trigger dispatch."""

from __future__ import annotations

from pydantic import BaseModel, Field

from triggerfly.core.config import config_properties
from triggerfly.trigger.loop_count import DEFAULT_MAX_LOOP_COUNT


@config_properties(prefix="triggerfly.trigger")
class TriggerProperties(BaseModel):
    """Defaults applied to every new :class:`TriggerScope`.

    ``default_max_loop_count`` of ``-1`` leaves implicit counters unbounded.
    """

    default_max_loop_count: int = Field(default=DEFAULT_MAX_LOOP_COUNT, ge=-1)
    id_field: str = Field(default="id", min_length=1)

# /*
# Copyright 2026 The Grove Authors.
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
# */

"""Exceptions raised by the state manager."""

from __future__ import annotations


class StateManagerError(Exception):
    """Base class for all state manager errors."""


class ValidationError(StateManagerError):
    """Raised when a cluster policy or node configuration is rejected."""


class InvalidWorkloadConfigError(ValidationError):
    """Raised for a workload config value outside the supported set."""

    def __init__(self, value: str, source: str = "node label") -> None:
        self.value = value
        self.source = source
        super().__init__(f"invalid GPU workload config {value!r} in {source}")


class ClusterError(StateManagerError, RuntimeError):
    """Raised when the cluster API rejects a request after retries."""


class UnhashableValueError(TypeError):
    """Raised when a value has no canonical form for fingerprinting."""

    def __init__(self, value: object) -> None:
        self.value_type = type(value).__name__
        super().__init__(f"cannot fingerprint value of type {self.value_type}")

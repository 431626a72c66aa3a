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

"""Apply-or-skip decisions based on the last-applied-hash annotation."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass

from state_manager.constants import LAST_APPLIED_HASH_ANNOTATION_KEY
from state_manager.hashing import HashMode, compute_fingerprint


@dataclass(frozen=True)
class ApplyDecision:
    """Outcome of comparing a desired object with its live counterpart.

    Attributes:
        state: State the object belongs to.
        kind: Kubernetes kind of the object.
        name: Object name.
        desired_hash: Fingerprint of the desired object.
        live_hash: Fingerprint recorded on the live object, or None.
        apply: Whether the object must be (re-)applied.
    """

    state: str
    kind: str
    name: str
    desired_hash: str
    live_hash: str | None
    apply: bool


def _annotations(obj: Mapping | None) -> Mapping:
    return ((obj or {}).get("metadata") or {}).get("annotations") or {}


def fingerprint(obj: Mapping, mode: HashMode | str = HashMode.FULL) -> str:
    """Fingerprint *obj*, ignoring a hash annotation it may already carry."""
    annotations = _annotations(obj)
    if LAST_APPLIED_HASH_ANNOTATION_KEY not in annotations:
        return compute_fingerprint(obj, mode)
    stripped = copy.deepcopy(dict(obj))
    del stripped["metadata"]["annotations"][LAST_APPLIED_HASH_ANNOTATION_KEY]
    if not stripped["metadata"]["annotations"]:
        del stripped["metadata"]["annotations"]
    return compute_fingerprint(stripped, mode)


def recorded_fingerprint(live: Mapping | None) -> str | None:
    return _annotations(live).get(LAST_APPLIED_HASH_ANNOTATION_KEY)


def stamp(obj: Mapping, mode: HashMode | str = HashMode.FULL) -> dict:
    """Return a deep copy of *obj* annotated with its own fingerprint."""
    stamped = copy.deepcopy(dict(obj))
    digest = fingerprint(stamped, mode)
    metadata = stamped.setdefault("metadata", {})
    metadata.setdefault("annotations", {})[LAST_APPLIED_HASH_ANNOTATION_KEY] = digest
    return stamped


def _is_stale(desired_hash: str, live_hash: str | None) -> bool:
    return live_hash is None or live_hash != desired_hash


def needs_update(desired: Mapping, live: Mapping | None, mode: HashMode | str = HashMode.FULL) -> bool:
    return _is_stale(fingerprint(desired, mode), recorded_fingerprint(live))


def decide(
    state: str,
    desired: Mapping,
    live: Mapping | None,
    mode: HashMode | str = HashMode.FULL,
) -> ApplyDecision:
    """Decide whether *desired* has to be applied over *live*.

    Args:
        state: State name the object belongs to.
        desired: Rendered desired object.
        live: Live object from the cluster, or None if it does not exist.
        mode: Hashing mode used for the fingerprint.

    Returns:
        The decision, carrying both fingerprints for reporting.
    """
    desired_hash = fingerprint(desired, mode)
    live_hash = recorded_fingerprint(live)
    metadata = desired.get("metadata") or {}
    return ApplyDecision(
        state=state,
        kind=desired.get("kind", ""),
        name=metadata.get("name", ""),
        desired_hash=desired_hash,
        live_hash=live_hash,
        apply=_is_stale(desired_hash, live_hash),
    )

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

"""kubectl-backed access to nodes, the ClusterPolicy, and managed objects."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from tenacity import RetryError, retry, retry_if_result, stop_after_attempt, wait_exponential

from state_manager import logger
from state_manager.constants import (
    DEFAULT_KUBECTL_TIMEOUT_SECONDS,
    DEFAULT_PATCH_MAX_RETRIES,
    MANIFEST_SUFFIXES,
)
from state_manager.errors import ClusterError
from state_manager.labels import LabelPatch
from state_manager.policy import ClusterPolicy
from state_manager.utils import get_files_with_suffix, load_yaml_documents, run_kubectl


# ============================================================================
# Reads
# ============================================================================

def list_nodes(
    selector: str | None = None,
    timeout: int = DEFAULT_KUBECTL_TIMEOUT_SECONDS,
) -> list[dict]:
    """List cluster nodes.

    Args:
        selector: Optional label selector (``-l``).
        timeout: Maximum seconds for the kubectl call.

    Returns:
        Node objects as dictionaries.

    Raises:
        ClusterError: If kubectl fails.
    """
    args = ["get", "nodes", "-o", "json"]
    if selector:
        args += ["-l", selector]
    ok, stdout, stderr = run_kubectl(args, timeout=timeout)
    if not ok:
        raise ClusterError(f"failed to list nodes: {stderr.strip()}")
    return json.loads(stdout).get("items", [])


def get_cluster_policy(name: str, timeout: int = DEFAULT_KUBECTL_TIMEOUT_SECONDS) -> ClusterPolicy:
    """Fetch and parse the named ClusterPolicy.

    Raises:
        ClusterError: If kubectl fails.
    """
    ok, stdout, stderr = run_kubectl(["get", "clusterpolicy", name, "-o", "json"], timeout=timeout)
    if not ok:
        raise ClusterError(f"failed to get clusterpolicy {name}: {stderr.strip()}")
    return ClusterPolicy.from_object(json.loads(stdout))


def load_cluster_policy_file(path: Path) -> ClusterPolicy:
    """Parse a ClusterPolicy from a local YAML file."""
    with open(path) as f:
        return ClusterPolicy.from_object(yaml.safe_load(f) or {})


def load_nodes_file(path: Path) -> list[dict]:
    """Read nodes saved with ``kubectl get nodes -o json`` (or YAML).

    Accepts a ``List`` object with ``items``, a bare list, or a single node.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        return data.get("items", [data] if data.get("kind") == "Node" else [])
    return list(data)


def get_live_object(
    kind: str,
    name: str,
    namespace: str | None = None,
    timeout: int = DEFAULT_KUBECTL_TIMEOUT_SECONDS,
) -> dict | None:
    """Fetch a live object, or None if it does not exist.

    Raises:
        ClusterError: If kubectl fails for any reason other than NotFound.
    """
    args = ["get", kind, name, "-o", "json"]
    if namespace:
        args += ["-n", namespace]
    ok, stdout, stderr = run_kubectl(args, timeout=timeout)
    if ok:
        return json.loads(stdout)
    if "NotFound" in stderr:
        return None
    raise ClusterError(f"failed to get {kind}/{name}: {stderr.strip()}")


def load_state_manifests(manifests_dir: Path, state_name: str) -> list[dict]:
    """Load the desired objects of one state from ``<manifests_dir>/<state_name>/``.

    A state without a manifest directory has no managed objects.
    """
    state_dir = manifests_dir / state_name
    if not state_dir.is_dir():
        logger.debug("No manifests for state %s under %s", state_name, manifests_dir)
        return []
    objects: list[dict] = []
    for path in get_files_with_suffix(state_dir, *MANIFEST_SUFFIXES):
        objects.extend(load_yaml_documents(path))
    return objects


# ============================================================================
# Writes
# ============================================================================

def patch_node_labels(
    patch: LabelPatch,
    max_retries: int = DEFAULT_PATCH_MAX_RETRIES,
    timeout: int = DEFAULT_KUBECTL_TIMEOUT_SECONDS,
) -> None:
    """Apply a label patch to its node with ``kubectl label --overwrite``.

    Args:
        patch: The patch to apply. Unchanged patches are a no-op.
        max_retries: Attempts before giving up.
        timeout: Maximum seconds per kubectl call.

    Raises:
        ClusterError: If every attempt failed.
    """
    if not patch.changed:
        return

    @retry(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_result(lambda ok: not ok),
    )
    def _attempt() -> bool:
        ok, _, stderr = run_kubectl(
            ["label", "node", patch.node, "--overwrite", *patch.as_kubectl_args()],
            timeout=timeout,
        )
        if not ok:
            logger.warning("Labelling node %s failed: %s", patch.node, stderr.strip())
        return ok

    try:
        _attempt()
    except RetryError as err:
        raise ClusterError(f"failed to label node {patch.node} after {max_retries} attempts") from err


def apply_object(
    obj: dict,
    namespace: str | None = None,
    max_retries: int = DEFAULT_PATCH_MAX_RETRIES,
    timeout: int = DEFAULT_KUBECTL_TIMEOUT_SECONDS,
) -> None:
    """Apply one object with ``kubectl apply -f -``.

    Raises:
        ClusterError: If every attempt failed.
    """
    manifest = yaml.safe_dump(obj)
    args = ["apply", "-f", "-"]
    if namespace:
        args += ["-n", namespace]

    @retry(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_result(lambda ok: not ok),
    )
    def _attempt() -> bool:
        ok, _, stderr = run_kubectl(args, timeout=timeout, stdin=manifest)
        if not ok:
            logger.warning("Applying %s failed: %s", _describe(obj), stderr.strip())
        return ok

    try:
        _attempt()
    except RetryError as err:
        raise ClusterError(f"failed to apply {_describe(obj)} after {max_retries} attempts") from err


def _describe(obj: dict) -> str:
    return f"{obj.get('kind', '?')}/{(obj.get('metadata') or {}).get('name', '?')}"

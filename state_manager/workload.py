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

"""Workload config resolution, policy validation, and runtime detection."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from state_manager import logger
from state_manager.classifier import is_gpu_node
from state_manager.constants import (
    DEFAULT_RUNTIME,
    GPU_WORKLOAD_CONFIG_LABEL_KEY,
    MSG_NRI_WITHOUT_CDI,
    RUNTIME_PREFIXES,
    Runtime,
    WorkloadConfig,
)
from state_manager.errors import InvalidWorkloadConfigError, ValidationError
from state_manager.policy import ClusterPolicySpec

_VALID_WORKLOAD_CONFIGS = frozenset(config.value for config in WorkloadConfig)


def is_valid_workload_config(value: str | None) -> bool:
    return value in _VALID_WORKLOAD_CONFIGS


def validate_cluster_policy_spec(spec: ClusterPolicySpec) -> None:
    """Reject cluster policy settings that cannot be reconciled.

    Args:
        spec: ClusterPolicy spec to validate.

    Raises:
        ValidationError: If the NRI plugin is enabled while CDI is disabled.
    """
    if spec.cdi.is_nri_plugin_enabled() and not spec.cdi.is_enabled():
        raise ValidationError(MSG_NRI_WITHOUT_CDI)


def resolve_workload_config(
    labels: Mapping[str, str] | None,
    sandbox_enabled: bool,
    default_workload: str | None = None,
) -> WorkloadConfig:
    """Resolve the workload config that applies to a node.

    Without sandbox workloads every node runs containers. Otherwise the
    node's ``nvidia.com/gpu.workload.config`` label is used, falling back
    to the policy default and finally to ``container``.

    Args:
        labels: Node labels, or None.
        sandbox_enabled: Whether sandbox workloads are enabled cluster-wide.
        default_workload: ``sandboxWorkloads.defaultWorkload`` from the policy.

    Returns:
        The resolved workload config.

    Raises:
        InvalidWorkloadConfigError: If the label or the policy default names
            an unsupported workload config.
    """
    if not sandbox_enabled:
        return WorkloadConfig.CONTAINER

    labels = labels or {}
    if GPU_WORKLOAD_CONFIG_LABEL_KEY in labels:
        value = labels[GPU_WORKLOAD_CONFIG_LABEL_KEY]
        if not is_valid_workload_config(value):
            raise InvalidWorkloadConfigError(value, source=f"label {GPU_WORKLOAD_CONFIG_LABEL_KEY}")
        return WorkloadConfig(value)

    if default_workload is None:
        return WorkloadConfig.CONTAINER
    if not is_valid_workload_config(default_workload):
        raise InvalidWorkloadConfigError(default_workload, source="sandboxWorkloads.defaultWorkload")
    return WorkloadConfig(default_workload)


def get_runtime_string(node: Mapping) -> Runtime | None:
    """Map a node's reported container runtime to a known runtime.

    Args:
        node: Kubernetes Node object as a dictionary.

    Returns:
        The runtime whose name prefixes ``status.nodeInfo.containerRuntimeVersion``
        (``<name>://<version>``), or None if it is missing or unrecognized.
    """
    node_info = (node.get("status") or {}).get("nodeInfo") or {}
    runtime_version = node_info.get("containerRuntimeVersion", "")
    runtime = next(
        (runtime for prefix, runtime in RUNTIME_PREFIXES.items() if runtime_version.startswith(prefix)),
        None,
    )
    if runtime is None:
        node_name = (node.get("metadata") or {}).get("name", "<unknown>")
        logger.warning("Node %s reports unknown container runtime %r", node_name, runtime_version)
    return runtime


def detect_cluster_runtime(nodes: Iterable[Mapping]) -> Runtime:
    """Pick the container runtime used by the cluster's GPU nodes.

    Args:
        nodes: Kubernetes Node objects.

    Returns:
        The runtime of the first GPU node reporting a known runtime, or
        containerd when no GPU node does.
    """
    for node in nodes:
        labels = (node.get("metadata") or {}).get("labels")
        if not is_gpu_node(labels):
            continue
        runtime = get_runtime_string(node)
        if runtime is not None:
            return runtime
    logger.info("No GPU node reports a known container runtime, using %s", DEFAULT_RUNTIME.value)
    return DEFAULT_RUNTIME

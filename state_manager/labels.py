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

"""Node label reconciliation: the label delta that reflects the state decision."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field

from state_manager.classifier import (
    has_common_gpu_label,
    has_gpu_labels,
    has_mig_capable_gpu,
    has_operands_disabled,
)
from state_manager.constants import (
    COMMON_GPU_LABEL_KEY,
    COMMON_GPU_LABEL_VALUE,
    KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY,
    KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY,
    LABEL_VALUE_FALSE,
    MIG_MANAGER_LABEL_KEY,
    MIG_MANAGER_LABEL_VALUE,
    WorkloadConfig,
)
from state_manager.states import GPU_STATE_LABELS, StateController, get_effective_state_labels
from state_manager.workload import resolve_workload_config

GPU_STATE_LABEL_KEYS: frozenset[str] = frozenset(
    {key for labels in GPU_STATE_LABELS.values() for key in labels}
    | {KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY, KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY, MIG_MANAGER_LABEL_KEY}
)


@dataclass(frozen=True)
class LabelPatch:
    """Labels to add or overwrite and labels to remove on one node.

    Attributes:
        node: Node name.
        add: Label keys and values to set.
        remove: Label keys to delete.
    """

    node: str
    add: dict[str, str] = field(default_factory=dict)
    remove: frozenset[str] = frozenset()

    @property
    def changed(self) -> bool:
        return bool(self.add or self.remove)

    def apply_to(self, labels: Mapping[str, str] | None) -> dict[str, str]:
        """Return a copy of *labels* with the patch applied."""
        patched = {key: value for key, value in (labels or {}).items() if key not in self.remove}
        patched.update(self.add)
        return patched

    def as_kubectl_args(self) -> list[str]:
        """Render the patch as ``kubectl label`` arguments (``k=v`` and ``k-``)."""
        return [f"{key}={self.add[key]}" for key in sorted(self.add)] + [f"{key}-" for key in sorted(self.remove)]


def remove_all_gpu_state_labels(labels: MutableMapping[str, str]) -> bool:
    """Delete every GPU state deploy label from *labels* in place.

    Args:
        labels: Node labels owned by the calling reconciliation pass.

    Returns:
        True if at least one label was removed.
    """
    removed = False
    for key in GPU_STATE_LABEL_KEYS:
        if key in labels:
            del labels[key]
            removed = True
    return removed


def _desired_state_labels(labels: Mapping[str, str], controller: StateController) -> dict[str, str]:
    workload = resolve_workload_config(
        labels,
        controller.sandbox_enabled,
        controller.spec.sandbox_workloads.default_workload,
    )
    effective = get_effective_state_labels(workload, controller.sandbox_mode) or {}
    if (
        workload is WorkloadConfig.CONTAINER
        and controller.spec.mig_manager.is_enabled()
        and has_mig_capable_gpu(labels)
    ):
        effective[MIG_MANAGER_LABEL_KEY] = MIG_MANAGER_LABEL_VALUE
    return effective


def plan_node_labels(
    node_name: str,
    labels: Mapping[str, str] | None,
    controller: StateController,
) -> LabelPatch:
    """Compute the label patch that brings a node in line with the policy.

    State labels outside the node's effective set are removed, which keeps
    the kubevirt and kata device plugin labels mutually exclusive. Values
    already present for effective keys are kept so per-node overrides such
    as ``nvidia.com/gpu.deploy.driver=false`` survive reconciliation.

    Args:
        node_name: Name of the node being planned.
        labels: Current node labels. Never mutated.
        controller: State controller for the current policy snapshot.

    Returns:
        The patch; ``patch.changed`` is False when the node is up to date.

    Raises:
        InvalidWorkloadConfigError: If the node's workload config is invalid.
    """
    current = dict(labels or {})
    desired = dict(current)

    gpu_present = has_gpu_labels(current)
    if gpu_present and not has_common_gpu_label(current):
        desired[COMMON_GPU_LABEL_KEY] = COMMON_GPU_LABEL_VALUE
    elif not gpu_present and has_common_gpu_label(current):
        desired[COMMON_GPU_LABEL_KEY] = LABEL_VALUE_FALSE
        remove_all_gpu_state_labels(desired)

    if has_common_gpu_label(desired):
        if has_operands_disabled(desired):
            remove_all_gpu_state_labels(desired)
        else:
            effective = _desired_state_labels(desired, controller)
            for key in GPU_STATE_LABEL_KEYS - effective.keys():
                desired.pop(key, None)
            for key, value in effective.items():
                desired.setdefault(key, value)

    return LabelPatch(
        node=node_name,
        add={key: value for key, value in desired.items() if current.get(key) != value},
        remove=frozenset(current.keys() - desired.keys()),
    )

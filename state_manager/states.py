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

"""State enablement: which deploy labels a node gets and which states run.

Two tables drive every decision here:

* ``GPU_STATE_LABELS`` maps a workload config to the deploy labels a node
  running that workload carries.
* ``STATE_RULES`` pairs each state name with the predicate that decides
  whether the state is deployed for a given cluster policy.

New states are added by extending the tables, never by editing an
existing predicate.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from state_manager.constants import (
    CC_MANAGER_DEPLOY_LABEL_KEY,
    DCGM_DEPLOY_LABEL_KEY,
    DCGM_EXPORTER_DEPLOY_LABEL_KEY,
    DEVICE_PLUGIN_DEPLOY_LABEL_KEY,
    DRIVER_DEPLOY_LABEL_KEY,
    GFD_DEPLOY_LABEL_KEY,
    KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY,
    KATA_MANAGER_DEPLOY_LABEL_KEY,
    KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY,
    LABEL_VALUE_TRUE,
    NODE_STATUS_EXPORTER_DEPLOY_LABEL_KEY,
    OPERATOR_VALIDATOR_DEPLOY_LABEL_KEY,
    SANDBOX_VALIDATOR_DEPLOY_LABEL_KEY,
    STATE_CC_MANAGER,
    STATE_CONTAINER_TOOLKIT,
    STATE_DCGM,
    STATE_DCGM_EXPORTER,
    STATE_DEVICE_PLUGIN,
    STATE_DRIVER,
    STATE_GPU_FEATURE_DISCOVERY,
    STATE_KATA_DEVICE_PLUGIN,
    STATE_KATA_MANAGER,
    STATE_MIG_MANAGER,
    STATE_NODE_STATUS_EXPORTER,
    STATE_OPERATOR_METRICS,
    STATE_OPERATOR_VALIDATION,
    STATE_PRE_REQUISITES,
    STATE_SANDBOX_DEVICE_PLUGIN,
    STATE_SANDBOX_VALIDATION,
    STATE_VFIO_MANAGER,
    STATE_VGPU_DEVICE_MANAGER,
    STATE_VGPU_MANAGER,
    TOOLKIT_DEPLOY_LABEL_KEY,
    VFIO_MANAGER_DEPLOY_LABEL_KEY,
    VGPU_DEVICE_MANAGER_DEPLOY_LABEL_KEY,
    VGPU_MANAGER_DEPLOY_LABEL_KEY,
    SandboxMode,
    WorkloadConfig,
)
from state_manager.policy import ClusterPolicySpec

# ============================================================================
# Node deploy labels
# ============================================================================

GPU_STATE_LABELS: dict[WorkloadConfig, dict[str, str]] = {
    WorkloadConfig.CONTAINER: {
        DRIVER_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        GFD_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        TOOLKIT_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        DEVICE_PLUGIN_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        DCGM_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        DCGM_EXPORTER_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        NODE_STATUS_EXPORTER_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        OPERATOR_VALIDATOR_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
    },
    WorkloadConfig.VM_PASSTHROUGH: {
        KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        SANDBOX_VALIDATOR_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        VFIO_MANAGER_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        KATA_MANAGER_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        CC_MANAGER_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
    },
    WorkloadConfig.VM_VGPU: {
        KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        VGPU_MANAGER_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        VGPU_DEVICE_MANAGER_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        SANDBOX_VALIDATOR_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
        CC_MANAGER_DEPLOY_LABEL_KEY: LABEL_VALUE_TRUE,
    },
}


def get_effective_state_labels(
    workload_config: WorkloadConfig | str,
    sandbox_mode: SandboxMode | str | None,
) -> dict[str, str] | None:
    """Return the deploy labels for a workload config and sandbox mode.

    The sandbox mode only matters for ``vm-passthrough``: with ``kata`` the
    kubevirt device plugin label is swapped for the kata device plugin
    label, so the two are never asserted together.

    Args:
        workload_config: Resolved workload config of the node.
        sandbox_mode: Cluster-wide sandbox mode, or None.

    Returns:
        A new label dictionary, or None for an unknown workload config.
    """
    try:
        config = WorkloadConfig(workload_config)
    except ValueError:
        return None

    labels = dict(GPU_STATE_LABELS[config])
    if config is WorkloadConfig.VM_PASSTHROUGH and sandbox_mode == SandboxMode.KATA:
        del labels[KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY]
        labels[KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY] = LABEL_VALUE_TRUE
    return labels


# ============================================================================
# State predicates
# ============================================================================

@dataclass(frozen=True)
class PolicyView:
    """Inputs every state predicate is evaluated against.

    Attributes:
        spec: ClusterPolicy spec.
        sandbox_enabled: Whether sandbox workloads are enabled.
    """

    spec: ClusterPolicySpec
    sandbox_enabled: bool


Predicate = Callable[[PolicyView], bool]


def always(_: PolicyView) -> bool:
    return True


def sandbox(view: PolicyView) -> bool:
    return view.sandbox_enabled


def component(field_name: str) -> Predicate:
    """Predicate that checks a component's ``enabled`` flag in the ClusterPolicy spec."""

    def _check(view: PolicyView) -> bool:
        return getattr(view.spec, field_name).is_enabled()

    _check.__name__ = f"component_{field_name}"
    return _check


def mode_is(mode: SandboxMode) -> Predicate:
    def _check(view: PolicyView) -> bool:
        return view.spec.sandbox_workloads.sandbox_mode() is mode

    _check.__name__ = f"sandbox_mode_{mode.value}"
    return _check


def all_of(*predicates: Predicate) -> Predicate:
    def _check(view: PolicyView) -> bool:
        return all(predicate(view) for predicate in predicates)

    return _check


@dataclass(frozen=True)
class StateRule:
    name: str
    predicate: Predicate


STATE_RULES: tuple[StateRule, ...] = (
    StateRule(STATE_PRE_REQUISITES, always),
    StateRule(STATE_OPERATOR_METRICS, always),
    StateRule(STATE_DRIVER, component("driver")),
    StateRule(STATE_CONTAINER_TOOLKIT, component("toolkit")),
    StateRule(STATE_OPERATOR_VALIDATION, always),
    StateRule(STATE_DEVICE_PLUGIN, component("device_plugin")),
    StateRule(STATE_DCGM, component("dcgm")),
    StateRule(STATE_DCGM_EXPORTER, component("dcgm_exporter")),
    StateRule(STATE_GPU_FEATURE_DISCOVERY, component("gfd")),
    StateRule(STATE_MIG_MANAGER, component("mig_manager")),
    StateRule(STATE_NODE_STATUS_EXPORTER, component("node_status_exporter")),
    StateRule(STATE_VGPU_MANAGER, all_of(sandbox, component("vgpu_manager"))),
    StateRule(STATE_VGPU_DEVICE_MANAGER, all_of(sandbox, component("vgpu_device_manager"))),
    StateRule(STATE_SANDBOX_VALIDATION, sandbox),
    StateRule(STATE_VFIO_MANAGER, all_of(sandbox, component("vfio_manager"))),
    StateRule(
        STATE_SANDBOX_DEVICE_PLUGIN,
        all_of(sandbox, mode_is(SandboxMode.KUBEVIRT), component("sandbox_device_plugin")),
    ),
    StateRule(
        STATE_KATA_DEVICE_PLUGIN,
        all_of(sandbox, mode_is(SandboxMode.KATA), component("kata_sandbox_device_plugin")),
    ),
    StateRule(STATE_KATA_MANAGER, all_of(sandbox, component("kata_manager"))),
    StateRule(STATE_CC_MANAGER, all_of(sandbox, component("cc_manager"))),
)

STATE_NAMES: tuple[str, ...] = tuple(rule.name for rule in STATE_RULES)


class StateController:
    """Evaluates the state table against one ClusterPolicy snapshot.

    Args:
        spec: ClusterPolicy spec, or None for an all-default spec.
        sandbox_enabled: Override for the sandbox master switch. Defaults to
            ``spec.sandbox_workloads.enabled``.
    """

    def __init__(self, spec: ClusterPolicySpec | None = None, sandbox_enabled: bool | None = None) -> None:
        self.spec = spec if spec is not None else ClusterPolicySpec()
        if sandbox_enabled is None:
            sandbox_enabled = self.spec.sandbox_workloads.is_enabled()
        self.sandbox_enabled = sandbox_enabled
        self._rules = {rule.name: rule for rule in STATE_RULES}

    @property
    def view(self) -> PolicyView:
        return PolicyView(spec=self.spec, sandbox_enabled=self.sandbox_enabled)

    @property
    def sandbox_mode(self) -> SandboxMode | None:
        return self.spec.sandbox_workloads.sandbox_mode()

    def is_state_enabled(self, state_name: str) -> bool:
        rule = self._rules.get(state_name)
        if rule is None:
            return False
        return rule.predicate(self.view)

    def enabled_states(self) -> list[str]:
        """Return enabled state names in deployment order."""
        view = self.view
        return [rule.name for rule in STATE_RULES if rule.predicate(view)]

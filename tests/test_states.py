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

"""Tests for state deploy labels and state enablement."""

import pytest

from state_manager.constants import (
    KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY,
    KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY,
    STATE_CC_MANAGER,
    STATE_DRIVER,
    STATE_KATA_DEVICE_PLUGIN,
    STATE_KATA_MANAGER,
    STATE_OPERATOR_VALIDATION,
    STATE_PRE_REQUISITES,
    STATE_SANDBOX_DEVICE_PLUGIN,
    STATE_SANDBOX_VALIDATION,
    STATE_VFIO_MANAGER,
    STATE_VGPU_DEVICE_MANAGER,
    STATE_VGPU_MANAGER,
    SandboxMode,
    WorkloadConfig,
)
from state_manager.policy import ClusterPolicySpec
from state_manager.states import (
    GPU_STATE_LABELS,
    STATE_NAMES,
    STATE_RULES,
    StateController,
    get_effective_state_labels,
)

SANDBOX_SCOPED_STATES = (
    STATE_VGPU_MANAGER,
    STATE_VGPU_DEVICE_MANAGER,
    STATE_SANDBOX_VALIDATION,
    STATE_VFIO_MANAGER,
    STATE_SANDBOX_DEVICE_PLUGIN,
    STATE_KATA_DEVICE_PLUGIN,
    STATE_KATA_MANAGER,
    STATE_CC_MANAGER,
)


def _everything_enabled(sandbox_enabled, mode="kata"):
    components = {name: {"enabled": True} for name in (
        "driver", "toolkit", "devicePlugin", "dcgm", "dcgmExporter", "gfd", "migManager",
        "nodeStatusExporter", "vgpuManager", "vgpuDeviceManager", "vfioManager",
        "sandboxDevicePlugin", "kataSandboxDevicePlugin", "kataManager", "ccManager",
    )}
    components["sandboxWorkloads"] = {"enabled": sandbox_enabled, "mode": mode}
    components["cdi"] = {"enabled": True}
    return ClusterPolicySpec.model_validate(components)


class TestGetEffectiveStateLabels:
    """Tests for the workload config to deploy label table."""

    def test_passthrough_kubevirt(self):
        labels = get_effective_state_labels("vm-passthrough", "kubevirt")
        assert KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY in labels
        assert KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY not in labels

    def test_passthrough_kata_swaps_device_plugin(self):
        labels = get_effective_state_labels("vm-passthrough", "kata")
        assert KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY in labels
        assert KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY not in labels

    @pytest.mark.parametrize("workload", list(WorkloadConfig))
    @pytest.mark.parametrize("mode", [None, SandboxMode.KUBEVIRT, SandboxMode.KATA])
    def test_device_plugin_keys_never_together(self, workload, mode):
        labels = get_effective_state_labels(workload, mode)
        assert not {KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY, KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY} <= labels.keys()

    def test_vgpu_ignores_kata_mode(self):
        """Only passthrough nodes switch to the kata device plugin."""
        assert get_effective_state_labels("vm-vgpu", "kata") == GPU_STATE_LABELS[WorkloadConfig.VM_VGPU]

    def test_unknown_workload_config(self):
        assert get_effective_state_labels("vm-bogus", None) is None

    def test_returns_fresh_copy(self):
        """Mutating the result never touches the shared table."""
        labels = get_effective_state_labels("container", None)
        labels.clear()
        assert GPU_STATE_LABELS[WorkloadConfig.CONTAINER]


class TestStateController:
    """Tests for table driven state enablement."""

    def test_state_names_follow_table(self):
        assert STATE_NAMES == tuple(rule.name for rule in STATE_RULES)
        assert len(set(STATE_NAMES)) == len(STATE_NAMES)

    @pytest.mark.parametrize("state", SANDBOX_SCOPED_STATES)
    def test_sandbox_states_need_sandbox_enabled(self, state):
        """Sandbox scoped states stay off with sandbox disabled, whatever else is enabled."""
        controller = StateController(_everything_enabled(sandbox_enabled=False))
        assert not controller.is_state_enabled(state)

    def test_kata_mode_scenario(self):
        spec = ClusterPolicySpec.model_validate({
            "sandboxWorkloads": {"enabled": True, "mode": "kata"},
            "kataSandboxDevicePlugin": {"enabled": True},
        })
        controller = StateController(spec)
        assert controller.is_state_enabled(STATE_KATA_DEVICE_PLUGIN)
        assert not controller.is_state_enabled(STATE_SANDBOX_DEVICE_PLUGIN)

    def test_kubevirt_mode_scenario(self, sandbox_spec):
        controller = StateController(sandbox_spec("kubevirt"))
        assert controller.is_state_enabled(STATE_SANDBOX_DEVICE_PLUGIN)
        assert not controller.is_state_enabled(STATE_KATA_DEVICE_PLUGIN)

    def test_unset_flags_mean_disabled(self):
        controller = StateController(ClusterPolicySpec())
        assert not controller.is_state_enabled(STATE_DRIVER)
        assert controller.is_state_enabled(STATE_PRE_REQUISITES)
        assert controller.is_state_enabled(STATE_OPERATOR_VALIDATION)

    def test_sandbox_override(self, sandbox_spec):
        """An explicit sandbox_enabled overrides the policy switch."""
        controller = StateController(sandbox_spec("kubevirt"), sandbox_enabled=False)
        assert not controller.is_state_enabled(STATE_SANDBOX_VALIDATION)

    def test_unknown_state(self, default_spec):
        assert not StateController(default_spec).is_state_enabled("state-unknown")

    def test_enabled_states_in_table_order(self, default_spec):
        enabled = StateController(default_spec).enabled_states()
        assert enabled == [name for name in STATE_NAMES if name in enabled]
        assert STATE_DRIVER in enabled
        assert not set(SANDBOX_SCOPED_STATES) & set(enabled)

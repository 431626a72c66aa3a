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

"""Tests for workload config resolution, policy validation, and runtime detection."""

import pytest

from state_manager.constants import Runtime, WorkloadConfig
from state_manager.errors import InvalidWorkloadConfigError, ValidationError
from state_manager.policy import ClusterPolicySpec
from state_manager.workload import (
    detect_cluster_runtime,
    get_runtime_string,
    is_valid_workload_config,
    resolve_workload_config,
    validate_cluster_policy_spec,
)

WORKLOAD_LABEL = "nvidia.com/gpu.workload.config"


class TestValidateClusterPolicySpec:
    """Tests for ClusterPolicy spec validation."""

    def test_nri_without_cdi_is_rejected(self):
        spec = ClusterPolicySpec.model_validate({"cdi": {"enabled": False, "nriPluginEnabled": True}})
        with pytest.raises(ValidationError, match="the NRI Plugin cannot be enabled when CDI is disabled"):
            validate_cluster_policy_spec(spec)

    def test_nri_with_cdi_is_accepted(self):
        spec = ClusterPolicySpec.model_validate({"cdi": {"enabled": True, "nriPluginEnabled": True}})
        validate_cluster_policy_spec(spec)

    def test_default_spec_is_accepted(self):
        validate_cluster_policy_spec(ClusterPolicySpec())


class TestResolveWorkloadConfig:
    """Tests for per-node workload config resolution."""

    def test_sandbox_disabled_is_always_container(self):
        """The node label is ignored when sandbox workloads are off."""
        labels = {WORKLOAD_LABEL: "vm-passthrough"}
        assert resolve_workload_config(labels, sandbox_enabled=False) is WorkloadConfig.CONTAINER

    def test_label_wins(self):
        labels = {WORKLOAD_LABEL: "vm-vgpu"}
        assert resolve_workload_config(labels, True, "vm-passthrough") is WorkloadConfig.VM_VGPU

    def test_policy_default_used_without_label(self):
        assert resolve_workload_config({}, True, "vm-passthrough") is WorkloadConfig.VM_PASSTHROUGH

    def test_falls_back_to_container(self):
        assert resolve_workload_config(None, True) is WorkloadConfig.CONTAINER

    def test_invalid_label_is_rejected(self):
        """Invalid values are never silently defaulted."""
        with pytest.raises(InvalidWorkloadConfigError) as exc_info:
            resolve_workload_config({WORKLOAD_LABEL: "vm-bogus"}, True)
        assert exc_info.value.value == "vm-bogus"

    def test_invalid_default_is_rejected(self):
        with pytest.raises(InvalidWorkloadConfigError):
            resolve_workload_config({}, True, "gpu-everything")

    def test_is_valid_workload_config(self):
        assert is_valid_workload_config("container")
        assert not is_valid_workload_config("Container")
        assert not is_valid_workload_config(None)


class TestRuntimeDetection:
    """Tests for container runtime detection."""

    @pytest.mark.parametrize("version,expected", [
        ("containerd://1.7.2", Runtime.CONTAINERD),
        ("docker://24.0.5", Runtime.DOCKER),
        ("cri-o://1.28.1", Runtime.CRIO),
    ])
    def test_known_runtimes(self, node_factory, version, expected):
        assert get_runtime_string(node_factory("n1", runtime=version)) is expected

    @pytest.mark.parametrize("version,expected", [
        ("docker-ee://20.10.7", Runtime.DOCKER),
        ("containerd", Runtime.CONTAINERD),
        ("cri-o-1.28", Runtime.CRIO),
    ])
    def test_runtime_matched_by_prefix(self, node_factory, version, expected):
        """The runtime name only has to prefix the reported version string."""
        assert get_runtime_string(node_factory("n1", runtime=version)) is expected

    def test_unknown_runtime_is_none(self, node_factory, caplog):
        """Unknown runtimes are reported and treated as unset."""
        with caplog.at_level("WARNING", logger="state_manager"):
            assert get_runtime_string(node_factory("n1", runtime="rkt://1.0")) is None
        assert "unknown container runtime" in caplog.text

    def test_missing_node_info(self):
        assert get_runtime_string({"metadata": {"name": "n1"}}) is None

    def test_cluster_runtime_uses_gpu_nodes(self, node_factory, gpu_labels):
        nodes = [
            node_factory("cpu", {"kubernetes.io/hostname": "cpu"}, runtime="docker://24.0.5"),
            node_factory("gpu", gpu_labels, runtime="cri-o://1.28.1"),
        ]
        assert detect_cluster_runtime(nodes) is Runtime.CRIO

    def test_cluster_runtime_default(self, node_factory):
        assert detect_cluster_runtime([node_factory("cpu")]) is Runtime.CONTAINERD

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

"""Shared fixtures for state_manager tests."""

import pytest

from state_manager.policy import ClusterPolicySpec

NVIDIA_PCI_LABEL = "feature.node.kubernetes.io/pci-10de.present"


def make_node(name, labels=None, runtime="containerd://1.7.2"):
    """Build a minimal Node object as returned by ``kubectl get nodes -o json``."""
    return {
        "apiVersion": "v1",
        "kind": "Node",
        "metadata": {"name": name, "labels": dict(labels or {})},
        "status": {"nodeInfo": {"containerRuntimeVersion": runtime}},
    }


@pytest.fixture
def gpu_labels():
    """Labels of a freshly discovered GPU node."""
    return {
        NVIDIA_PCI_LABEL: "true",
        "feature.node.kubernetes.io/kernel-version.full": "5.15.0",
        "kubernetes.io/hostname": "gpu-node-1",
    }


@pytest.fixture
def default_spec():
    """ClusterPolicy spec with the usual container components enabled."""
    return ClusterPolicySpec.model_validate({
        "driver": {"enabled": True},
        "toolkit": {"enabled": True},
        "devicePlugin": {"enabled": True},
        "dcgm": {"enabled": True},
        "dcgmExporter": {"enabled": True},
        "gfd": {"enabled": True},
        "migManager": {"enabled": True},
    })


@pytest.fixture
def sandbox_spec():
    """Sandbox-enabled spec factory keyed by sandbox mode."""
    def _make(mode="kubevirt", default_workload=None):
        return ClusterPolicySpec.model_validate({
            "sandboxWorkloads": {"enabled": True, "mode": mode, "defaultWorkload": default_workload},
            "sandboxDevicePlugin": {"enabled": True},
            "kataSandboxDevicePlugin": {"enabled": True},
            "vfioManager": {"enabled": True},
        })
    return _make


@pytest.fixture
def node_factory():
    """Return the Node object builder."""
    return make_node

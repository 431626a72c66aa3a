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

"""Label vocabulary, state names, and defaults shared by every component.

The label keys and values below are a compatibility contract with the
node-feature-discovery labels and the operand DaemonSets' node selectors.
They must not be changed.
"""

from __future__ import annotations

from enum import Enum


class WorkloadConfig(str, Enum):
    """How GPUs on a node are exposed to workloads."""

    CONTAINER = "container"
    VM_PASSTHROUGH = "vm-passthrough"
    VM_VGPU = "vm-vgpu"


class SandboxMode(str, Enum):
    """Virtualization layer used for VM based workloads."""

    KUBEVIRT = "kubevirt"
    KATA = "kata"


class Runtime(str, Enum):
    """Container runtimes the operator knows how to configure."""

    CONTAINERD = "containerd"
    DOCKER = "docker"
    CRIO = "crio"


# -- Label values --
LABEL_VALUE_TRUE = "true"
LABEL_VALUE_FALSE = "false"

# -- Node feature discovery --
NFD_LABEL_PREFIX = "feature.node.kubernetes.io/"
GPU_PCI_LABELS = (
    NFD_LABEL_PREFIX + "pci-10de.present",
    NFD_LABEL_PREFIX + "pci-0302_10de.present",
    NFD_LABEL_PREFIX + "pci-0300_10de.present",
)

# -- Hardware facts --
COMMON_GPU_LABEL_KEY = "nvidia.com/gpu.present"
COMMON_GPU_LABEL_VALUE = LABEL_VALUE_TRUE
MIG_CAPABLE_LABEL_KEY = "nvidia.com/mig.capable"
MIG_CAPABLE_LABEL_VALUE = LABEL_VALUE_TRUE
GPU_PRODUCT_LABEL_KEY = "nvidia.com/gpu.product"
VGPU_HOST_DRIVER_LABEL_KEY = "nvidia.com/vgpu.host-driver-version"
MIG_CAPABLE_PRODUCTS = ("a100", "a30", "a800", "h100", "h200", "h800", "b200")

# -- Operand control --
COMMON_OPERANDS_LABEL_KEY = "nvidia.com/gpu.deploy.operands"
COMMON_OPERANDS_LABEL_VALUE = LABEL_VALUE_TRUE
GPU_WORKLOAD_CONFIG_LABEL_KEY = "nvidia.com/gpu.workload.config"

# -- Deploy labels --
DEPLOY_LABEL_PREFIX = "nvidia.com/gpu.deploy."
DRIVER_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "driver"
GFD_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "gpu-feature-discovery"
TOOLKIT_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "container-toolkit"
DEVICE_PLUGIN_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "device-plugin"
DCGM_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "dcgm"
DCGM_EXPORTER_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "dcgm-exporter"
NODE_STATUS_EXPORTER_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "node-status-exporter"
OPERATOR_VALIDATOR_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "operator-validator"
KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "sandbox-device-plugin"
KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "kata-device-plugin"
SANDBOX_VALIDATOR_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "sandbox-validator"
VFIO_MANAGER_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "vfio-manager"
KATA_MANAGER_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "kata-manager"
CC_MANAGER_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "cc-manager"
VGPU_MANAGER_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "vgpu-manager"
VGPU_DEVICE_MANAGER_DEPLOY_LABEL_KEY = DEPLOY_LABEL_PREFIX + "vgpu-device-manager"
MIG_MANAGER_LABEL_KEY = DEPLOY_LABEL_PREFIX + "mig-manager"
MIG_MANAGER_LABEL_VALUE = LABEL_VALUE_TRUE

# Only one of these may be present on a node at a time.
SANDBOX_DEVICE_PLUGIN_LABEL_KEYS = (
    KUBEVIRT_DEVICE_PLUGIN_DEPLOY_LABEL_KEY,
    KATA_DEVICE_PLUGIN_DEPLOY_LABEL_KEY,
)

# -- State names --
STATE_PRE_REQUISITES = "pre-requisites"
STATE_OPERATOR_METRICS = "state-operator-metrics"
STATE_DRIVER = "state-driver"
STATE_CONTAINER_TOOLKIT = "state-container-toolkit"
STATE_OPERATOR_VALIDATION = "state-operator-validation"
STATE_DEVICE_PLUGIN = "state-device-plugin"
STATE_DCGM = "state-dcgm"
STATE_DCGM_EXPORTER = "state-dcgm-exporter"
STATE_GPU_FEATURE_DISCOVERY = "gpu-feature-discovery"
STATE_MIG_MANAGER = "state-mig-manager"
STATE_NODE_STATUS_EXPORTER = "state-node-status-exporter"
STATE_VGPU_MANAGER = "state-vgpu-manager"
STATE_VGPU_DEVICE_MANAGER = "state-vgpu-device-manager"
STATE_SANDBOX_VALIDATION = "state-sandbox-validation"
STATE_VFIO_MANAGER = "state-vfio-manager"
STATE_SANDBOX_DEVICE_PLUGIN = "state-sandbox-device-plugin"
STATE_KATA_DEVICE_PLUGIN = "state-kata-device-plugin"
STATE_KATA_MANAGER = "state-kata-manager"
STATE_CC_MANAGER = "state-cc-manager"

# -- Container runtime --
RUNTIME_PREFIXES = {
    "docker": Runtime.DOCKER,
    "containerd": Runtime.CONTAINERD,
    "cri-o": Runtime.CRIO,
}
DEFAULT_RUNTIME = Runtime.CONTAINERD

# -- Fingerprints --
LAST_APPLIED_HASH_ANNOTATION_KEY = "nvidia.com/last-applied-hash"
SAFE_ENCODE_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"
FNV32_OFFSET_BASIS = 0x811C9DC5
FNV32_PRIME = 0x01000193

# -- Validation messages --
MSG_NRI_WITHOUT_CDI = "the NRI Plugin cannot be enabled when CDI is disabled"

# -- Settings defaults --
DEFAULT_CLUSTER_POLICY_NAME = "cluster-policy"
DEFAULT_OPERATOR_NAMESPACE = "gpu-operator"
DEFAULT_KUBECTL_TIMEOUT_SECONDS = 30
DEFAULT_PATCH_MAX_RETRIES = 3
DEFAULT_LABEL_MAX_WORKERS = 10
MANIFEST_SUFFIXES = (".yaml", ".yml")

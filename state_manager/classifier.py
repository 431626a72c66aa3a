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

"""Hardware facts derived from node labels.

Every predicate accepts ``None`` or an empty mapping and answers ``False``
when the labels it looks for are absent.
"""

from __future__ import annotations

from collections.abc import Mapping

from state_manager.constants import (
    COMMON_GPU_LABEL_KEY,
    COMMON_GPU_LABEL_VALUE,
    COMMON_OPERANDS_LABEL_KEY,
    GPU_PCI_LABELS,
    GPU_PRODUCT_LABEL_KEY,
    LABEL_VALUE_FALSE,
    LABEL_VALUE_TRUE,
    MIG_CAPABLE_LABEL_KEY,
    MIG_CAPABLE_LABEL_VALUE,
    MIG_CAPABLE_PRODUCTS,
    MIG_MANAGER_LABEL_KEY,
    MIG_MANAGER_LABEL_VALUE,
    NFD_LABEL_PREFIX,
    VGPU_HOST_DRIVER_LABEL_KEY,
)


def has_gpu_labels(labels: Mapping[str, str] | None) -> bool:
    """Return True if NFD reports an NVIDIA PCI device on the node."""
    labels = labels or {}
    return any(labels.get(key) == LABEL_VALUE_TRUE for key in GPU_PCI_LABELS)


def has_nfd_labels(labels: Mapping[str, str] | None) -> bool:
    """Return True if node-feature-discovery has labelled the node at all."""
    return any(key.startswith(NFD_LABEL_PREFIX) for key in labels or {})


def has_common_gpu_label(labels: Mapping[str, str] | None) -> bool:
    return (labels or {}).get(COMMON_GPU_LABEL_KEY) == COMMON_GPU_LABEL_VALUE


def has_mig_manager_label(labels: Mapping[str, str] | None) -> bool:
    return (labels or {}).get(MIG_MANAGER_LABEL_KEY) == MIG_MANAGER_LABEL_VALUE


def has_vgpu_host_driver(labels: Mapping[str, str] | None) -> bool:
    return bool((labels or {}).get(VGPU_HOST_DRIVER_LABEL_KEY))


def has_mig_capable_gpu(labels: Mapping[str, str] | None) -> bool:
    """Return True if the node's GPU supports MIG partitioning.

    vGPU host nodes are never treated as MIG capable. Otherwise the
    explicit ``nvidia.com/mig.capable`` label wins when present; without
    it the GPU product name is matched against known MIG capable products.

    Args:
        labels: Node labels, or None.

    Returns:
        True if the node should be handled by the MIG manager.
    """
    labels = labels or {}
    if has_vgpu_host_driver(labels):
        return False
    if MIG_CAPABLE_LABEL_KEY in labels:
        return labels[MIG_CAPABLE_LABEL_KEY] == MIG_CAPABLE_LABEL_VALUE
    product = labels.get(GPU_PRODUCT_LABEL_KEY, "").lower()
    return any(name in product for name in MIG_CAPABLE_PRODUCTS)


def has_operands_disabled(labels: Mapping[str, str] | None) -> bool:
    """Return True if an admin opted the node out of all GPU operands."""
    return (labels or {}).get(COMMON_OPERANDS_LABEL_KEY) == LABEL_VALUE_FALSE


def is_gpu_node(labels: Mapping[str, str] | None) -> bool:
    """Return True if the node has GPU hardware or is already labelled as a GPU node."""
    return has_gpu_labels(labels) or has_common_gpu_label(labels)

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

"""ClusterPolicy custom object models.

Only the fields the decision engine reads are modelled; everything else in
the custom object is kept as extra data and ignored. Unset booleans are
treated as ``False`` throughout.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from state_manager.constants import DEFAULT_CLUSTER_POLICY_NAME, SandboxMode


class _SpecModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class ComponentSpec(_SpecModel):
    """Common fields of every operand component.

    Attributes:
        enabled: Explicit enable flag, or None when the policy leaves it unset.
    """

    enabled: bool | None = None

    def is_enabled(self) -> bool:
        return self.enabled is True


class SandboxWorkloadsSpec(_SpecModel):
    """Sandbox (VM based) workload settings.

    Attributes:
        enabled: Master switch for every sandbox scoped state.
        mode: Sandbox technology, ``kubevirt`` or ``kata``.
        default_workload: Workload config for nodes without an explicit label.
    """

    enabled: bool | None = None
    mode: str | None = None
    default_workload: str | None = None

    def is_enabled(self) -> bool:
        return self.enabled is True

    def sandbox_mode(self) -> SandboxMode | None:
        """Return the configured sandbox mode, or None if unset or unknown."""
        try:
            return SandboxMode(self.mode) if self.mode else None
        except ValueError:
            return None


class CDIConfigSpec(_SpecModel):
    """Container Device Interface settings.

    Attributes:
        enabled: Whether CDI is used to inject GPUs into containers.
        nri_plugin_enabled: Whether the NRI plugin performs the injection.
    """

    enabled: bool | None = None
    nri_plugin_enabled: bool | None = None

    def is_enabled(self) -> bool:
        return self.enabled is True

    def is_nri_plugin_enabled(self) -> bool:
        return self.nri_plugin_enabled is True


class ClusterPolicySpec(_SpecModel):
    """The ``spec`` of a ClusterPolicy object."""

    driver: ComponentSpec = Field(default_factory=ComponentSpec)
    toolkit: ComponentSpec = Field(default_factory=ComponentSpec)
    device_plugin: ComponentSpec = Field(default_factory=ComponentSpec)
    dcgm: ComponentSpec = Field(default_factory=ComponentSpec)
    dcgm_exporter: ComponentSpec = Field(default_factory=ComponentSpec)
    gfd: ComponentSpec = Field(default_factory=ComponentSpec)
    mig_manager: ComponentSpec = Field(default_factory=ComponentSpec)
    node_status_exporter: ComponentSpec = Field(default_factory=ComponentSpec)
    vgpu_manager: ComponentSpec = Field(default_factory=ComponentSpec)
    vgpu_device_manager: ComponentSpec = Field(default_factory=ComponentSpec)
    vfio_manager: ComponentSpec = Field(default_factory=ComponentSpec)
    sandbox_device_plugin: ComponentSpec = Field(default_factory=ComponentSpec)
    kata_sandbox_device_plugin: ComponentSpec = Field(default_factory=ComponentSpec)
    kata_manager: ComponentSpec = Field(default_factory=ComponentSpec)
    cc_manager: ComponentSpec = Field(default_factory=ComponentSpec)
    sandbox_workloads: SandboxWorkloadsSpec = Field(default_factory=SandboxWorkloadsSpec)
    cdi: CDIConfigSpec = Field(default_factory=CDIConfigSpec)


class ClusterPolicy(BaseModel):
    """A ClusterPolicy object as returned by the cluster API."""

    model_config = ConfigDict(extra="ignore")

    name: str = DEFAULT_CLUSTER_POLICY_NAME
    spec: ClusterPolicySpec = Field(default_factory=ClusterPolicySpec)

    @classmethod
    def from_object(cls, obj: dict) -> ClusterPolicy:
        """Build a ClusterPolicy from a raw Kubernetes object.

        Args:
            obj: Parsed ClusterPolicy manifest (``metadata`` and ``spec``).

        Returns:
            The parsed policy. Missing sections fall back to defaults.
        """
        metadata = obj.get("metadata") or {}
        return cls(
            name=metadata.get("name", DEFAULT_CLUSTER_POLICY_NAME),
            spec=ClusterPolicySpec.model_validate(obj.get("spec") or {}),
        )

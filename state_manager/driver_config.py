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

"""Normalized projections of container specs for fingerprinting.

Env vars, volume mounts and volumes are extracted from Kubernetes
manifests into small value types and sorted, so list order in a rendered
manifest never shows up as drift. Every extractor returns None rather than
an empty list when there is nothing to hash.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from state_manager.hashing import get_object_hash_ignore_empty_keys


@dataclass(frozen=True, order=True)
class EnvVar:
    name: str
    value: str = ""


@dataclass(frozen=True)
class VolumeMountConfig:
    name: str
    mount_path: str
    sub_path: str = ""
    read_only: bool = False


@dataclass(frozen=True)
class VolumeConfig:
    """Volume source reduced to the fields that matter for drift.

    Empty-dir and other ephemeral volumes only contribute their name.
    """

    name: str
    host_path: str = ""
    config_map_name: str = ""
    secret_name: str = ""


def sort_env_vars(env: Sequence[EnvVar] | None) -> list[EnvVar] | None:
    """Return a copy of *env* sorted by name, then value. Never mutates."""
    if env is None:
        return None
    return sorted(env)


def extract_env_vars(env: Sequence[Mapping] | None) -> list[EnvVar] | None:
    """Extract directly valued env vars from a container's ``env`` list.

    Entries using ``valueFrom`` are skipped: their resolved value is not
    known from the manifest alone. Empty string values are kept.

    Args:
        env: Container ``env`` entries, or None.

    Returns:
        Sorted env vars, or None when no direct entry remains.
    """
    if not env:
        return None
    result = [
        EnvVar(name=item["name"], value=item.get("value") or "")
        for item in env
        if not item.get("valueFrom")
    ]
    return sort_env_vars(result) or None


def extract_volume_mounts(mounts: Sequence[Mapping] | None) -> list[VolumeMountConfig] | None:
    """Extract volume mounts sorted by (name, mount path)."""
    if not mounts:
        return None
    result = [
        VolumeMountConfig(
            name=item["name"],
            mount_path=item.get("mountPath", ""),
            sub_path=item.get("subPath", ""),
            read_only=bool(item.get("readOnly", False)),
        )
        for item in mounts
    ]
    return sorted(result, key=lambda m: (m.name, m.mount_path))


def extract_volumes(volumes: Sequence[Mapping] | None) -> list[VolumeConfig] | None:
    """Extract volumes sorted by name, keeping only host-path, config-map and secret sources."""
    if not volumes:
        return None
    result = []
    for item in volumes:
        host_path = item.get("hostPath") or {}
        config_map = item.get("configMap") or {}
        secret = item.get("secret") or {}
        result.append(VolumeConfig(
            name=item["name"],
            host_path=host_path.get("path", ""),
            config_map_name=config_map.get("name", ""),
            secret_name=secret.get("secretName", ""),
        ))
    return sorted(result, key=lambda v: v.name)


# ============================================================================
# Driver config digest
# ============================================================================

@dataclass(frozen=True)
class DriverImage:
    repository: str = ""
    image: str = ""
    version: str = ""


@dataclass(frozen=True)
class DriverConfig:
    """Inputs that, when changed, require the driver pods to be rebuilt.

    ``image`` is embedded: its fields hash as if declared on DriverConfig.
    """

    image: DriverImage = field(default_factory=DriverImage, metadata={"embedded": True})
    driver_type: str = ""
    kernel_version: str = ""
    os_tag: str = ""
    use_precompiled: bool = False
    args: tuple[str, ...] = ()
    env: tuple[EnvVar, ...] | None = None
    volume_mounts: tuple[VolumeMountConfig, ...] | None = None
    volumes: tuple[VolumeConfig, ...] | None = None

    @classmethod
    def from_pod_spec(
        cls,
        pod_spec: Mapping,
        container_name: str = "nvidia-driver-ctr",
        **identity: str,
    ) -> DriverConfig:
        """Project a driver pod spec onto a DriverConfig.

        Args:
            pod_spec: Pod template ``spec`` of the driver DaemonSet.
            container_name: Name of the driver container within the pod.
            **identity: Node identity fields such as ``kernel_version`` and
                ``os_tag``.

        Returns:
            The projection. A missing container yields an image-less config.
        """
        containers = pod_spec.get("containers") or []
        container = next((c for c in containers if c.get("name") == container_name), {})
        repository, _, rest = container.get("image", "").rpartition("/")
        image, _, version = rest.partition(":")
        env = extract_env_vars(container.get("env"))
        mounts = extract_volume_mounts(container.get("volumeMounts"))
        volumes = extract_volumes(pod_spec.get("volumes"))
        return cls(
            image=DriverImage(repository=repository, image=image, version=version),
            args=tuple(container.get("args") or ()),
            env=tuple(env) if env else None,
            volume_mounts=tuple(mounts) if mounts else None,
            volumes=tuple(volumes) if volumes else None,
            **identity,
        )


def driver_config_digest(config: DriverConfig) -> str:
    """Return the sparse digest of a driver config."""
    return get_object_hash_ignore_empty_keys(config)

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

"""Settings, reconcile options, and config display."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from state_manager import console, logger
from state_manager.constants import (
    DEFAULT_CLUSTER_POLICY_NAME,
    DEFAULT_KUBECTL_TIMEOUT_SECONDS,
    DEFAULT_LABEL_MAX_WORKERS,
    DEFAULT_OPERATOR_NAMESPACE,
    DEFAULT_PATCH_MAX_RETRIES,
)
from state_manager.hashing import HashMode


# ============================================================================
# Configuration classes
# ============================================================================

class OperatorConfig(BaseSettings):
    """State manager settings, auto-loaded from STATE_MANAGER_* env vars.

    Attributes:
        cluster_policy_name: Name of the ClusterPolicy object to reconcile.
        namespace: Namespace the operands are deployed into.
        kubectl_timeout: Maximum seconds for a single kubectl call.
        patch_max_retries: Attempts for a node label patch or object apply.
        label_max_workers: Nodes labelled concurrently.
        hash_mode: Fingerprint mode for managed objects.
        manifests_dir: Directory holding one sub-directory of manifests per state.
    """

    model_config = SettingsConfigDict(env_prefix="STATE_MANAGER_", extra="ignore")

    cluster_policy_name: str = DEFAULT_CLUSTER_POLICY_NAME
    namespace: str = DEFAULT_OPERATOR_NAMESPACE
    kubectl_timeout: int = Field(default=DEFAULT_KUBECTL_TIMEOUT_SECONDS, ge=1, le=600)
    patch_max_retries: int = Field(default=DEFAULT_PATCH_MAX_RETRIES, ge=1, le=10)
    label_max_workers: int = Field(default=DEFAULT_LABEL_MAX_WORKERS, ge=1, le=64)
    hash_mode: HashMode = HashMode.FULL
    manifests_dir: Path | None = None


# ============================================================================
# Reconcile options
# ============================================================================

@dataclass(frozen=True)
class ReconcileOptions:
    """What a reconciliation pass is allowed to do.

    Attributes:
        dry_run: Compute patches and decisions without writing to the cluster.
        skip_labels: Skip the node labelling step.
        skip_objects: Skip the managed object step.
        node_selector: Label selector restricting the nodes considered, or None.
    """

    dry_run: bool = False
    skip_labels: bool = False
    skip_objects: bool = False
    node_selector: str | None = None


def validate_options(options: ReconcileOptions, cfg: OperatorConfig) -> None:
    """Validate option combinations.

    Raises:
        typer.BadParameter: If nothing is left to reconcile.
    """
    if options.skip_labels and options.skip_objects:
        raise typer.BadParameter("--skip-labels and --skip-objects together leave nothing to do")
    if not options.skip_objects and cfg.manifests_dir is None:
        logger.warning("No manifests directory configured; managed objects will not be reconciled")


# ============================================================================
# Display
# ============================================================================

def display_config(cfg: OperatorConfig, options: ReconcileOptions) -> None:
    """Print the settings relevant to the requested pass."""
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print(f"  cluster_policy  : {cfg.cluster_policy_name}")
    console.print(f"  namespace       : {cfg.namespace}")
    console.print(f"  dry_run         : {options.dry_run}")
    if not options.skip_labels:
        console.print("[yellow]Node labels:[/yellow]")
        console.print(f"  node_selector   : {options.node_selector or '(all nodes)'}")
        console.print(f"  max_workers     : {cfg.label_max_workers}")
    if not options.skip_objects:
        console.print("[yellow]Managed objects:[/yellow]")
        console.print(f"  manifests_dir   : {cfg.manifests_dir or '(not set)'}")
        console.print(f"  hash_mode       : {cfg.hash_mode.value}")

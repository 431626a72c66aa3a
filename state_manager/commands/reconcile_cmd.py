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

"""Reconcile subcommand (run)."""

from __future__ import annotations

from pathlib import Path

import typer

from state_manager import console
from state_manager.config import OperatorConfig, ReconcileOptions, display_config, validate_options
from state_manager.hashing import HashMode
from state_manager.reconciler import run_reconcile

app = typer.Typer(help="Run a reconciliation pass.")


@app.command()
def run(
    policy_name: str | None = typer.Option(
        None, "--policy", help="ClusterPolicy name (overrides STATE_MANAGER_CLUSTER_POLICY_NAME)"),
    policy_file: Path | None = typer.Option(
        None, "--policy-file", help="Read the ClusterPolicy from a YAML file instead of the cluster"),
    manifests_dir: Path | None = typer.Option(
        None, "--manifests-dir", help="Directory with one manifest sub-directory per state"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Operand namespace"),
    hash_mode: HashMode | None = typer.Option(None, "--hash-mode", help="Object fingerprint mode"),
    selector: str | None = typer.Option(None, "--selector", "-l", help="Node label selector"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report changes without writing them"),
    skip_labels: bool = typer.Option(False, "--skip-labels", help="Skip node labelling"),
    skip_objects: bool = typer.Option(False, "--skip-objects", help="Skip managed objects"),
) -> None:
    """Label GPU nodes and apply drifted objects for every enabled state."""
    cfg = OperatorConfig()
    overrides = {
        "cluster_policy_name": policy_name,
        "manifests_dir": manifests_dir,
        "namespace": namespace,
        "hash_mode": hash_mode,
    }
    cfg = cfg.model_copy(update={key: value for key, value in overrides.items() if value is not None})
    options = ReconcileOptions(
        dry_run=dry_run,
        skip_labels=skip_labels,
        skip_objects=skip_objects,
        node_selector=selector,
    )
    validate_options(options, cfg)
    display_config(cfg, options)

    result = run_reconcile(cfg, options, policy_file=policy_file)

    console.print(f"[green]\u2705 Reconciled {result.policy}: "
                  f"{len(result.patched_nodes)} nodes patched, "
                  f"{len(result.applied)} objects applied[/green]")
    for name, err in sorted(result.skipped.items()):
        console.print(f"[yellow]\u26a0\ufe0f  skipped {name}: {err}[/yellow]")

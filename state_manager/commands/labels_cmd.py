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

"""Node label subcommands (plan, apply)."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from state_manager import console
from state_manager.cluster import list_nodes, load_nodes_file
from state_manager.config import OperatorConfig, ReconcileOptions
from state_manager.reconciler import load_policy, plan_labels, run_reconcile
from state_manager.states import StateController
from state_manager.workload import validate_cluster_policy_spec

app = typer.Typer(help="Plan and apply GPU node labels.")


@app.command()
def plan(
    policy_file: Path | None = typer.Option(
        None, "--policy-file", help="Read the ClusterPolicy from a YAML file instead of the cluster"),
    nodes_file: Path | None = typer.Option(
        None, "--nodes-file", help="Read nodes from 'kubectl get nodes -o json' output"),
    selector: str | None = typer.Option(None, "--selector", "-l", help="Node label selector"),
) -> None:
    """Show the label changes a reconciliation pass would make."""
    cfg = OperatorConfig()
    policy = load_policy(cfg, policy_file)
    validate_cluster_policy_spec(policy.spec)
    if nodes_file is not None:
        nodes = load_nodes_file(nodes_file)
    else:
        nodes = list_nodes(selector, timeout=cfg.kubectl_timeout)

    patches, skipped = plan_labels(nodes, StateController(policy.spec), max_workers=cfg.label_max_workers)

    table = Table(title=f"Label plan ({policy.name})")
    table.add_column("Node", style="cyan")
    table.add_column("Set")
    table.add_column("Remove")
    for patch in patches:
        table.add_row(
            patch.node,
            "\n".join(f"{key}={patch.add[key]}" for key in sorted(patch.add)),
            "\n".join(sorted(patch.remove)),
        )
    for name, err in sorted(skipped.items()):
        table.add_row(name, f"[red]skipped: {err}[/red]", "")
    console.print(table)
    if not patches and not skipped:
        console.print("[green]\u2705 All nodes are up to date[/green]")


@app.command()
def apply(
    policy_file: Path | None = typer.Option(
        None, "--policy-file", help="Read the ClusterPolicy from a YAML file instead of the cluster"),
    selector: str | None = typer.Option(None, "--selector", "-l", help="Node label selector"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute patches without applying them"),
    max_workers: int | None = typer.Option(
        None, "--max-workers", min=1, help="Nodes labelled concurrently (overrides STATE_MANAGER_LABEL_MAX_WORKERS)"),
) -> None:
    """Patch node labels only; managed objects are left alone."""
    cfg = OperatorConfig()
    if max_workers is not None:
        cfg = cfg.model_copy(update={"label_max_workers": max_workers})
    options = ReconcileOptions(dry_run=dry_run, skip_objects=True, node_selector=selector)
    run_reconcile(cfg, options, policy_file=policy_file)

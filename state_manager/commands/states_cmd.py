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

"""State subcommands (list, labels)."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from state_manager import console
from state_manager.config import OperatorConfig
from state_manager.constants import SandboxMode, WorkloadConfig
from state_manager.reconciler import load_policy
from state_manager.states import STATE_NAMES, StateController, get_effective_state_labels

app = typer.Typer(help="Inspect which operand states a policy enables.")


@app.command("list")
def list_states(
    policy_file: Path | None = typer.Option(
        None, "--policy-file", help="Read the ClusterPolicy from a YAML file instead of the cluster"),
    enabled_only: bool = typer.Option(False, "--enabled-only", help="Only show enabled states"),
) -> None:
    """List every state and whether the ClusterPolicy enables it."""
    policy = load_policy(OperatorConfig(), policy_file)
    controller = StateController(policy.spec)

    table = Table(title=f"States ({policy.name})")
    table.add_column("State", style="cyan")
    table.add_column("Enabled")
    for name in STATE_NAMES:
        enabled = controller.is_state_enabled(name)
        if enabled_only and not enabled:
            continue
        table.add_row(name, "[green]yes[/green]" if enabled else "[dim]no[/dim]")
    console.print(table)


@app.command()
def labels(
    workload: WorkloadConfig = typer.Argument(..., help="GPU workload config"),
    mode: SandboxMode | None = typer.Option(None, "--mode", help="Sandbox mode"),
) -> None:
    """Print the state deploy labels a workload config maps to."""
    effective = get_effective_state_labels(workload, mode) or {}
    for key in sorted(effective):
        console.print(f"  {key}={effective[key]}")

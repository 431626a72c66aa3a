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

"""
cli.py - CLI for the GPU operand state manager.

Subcommands:
    labels     Plan and apply GPU node labels
    states     Inspect which operand states a policy enables
    hash       Compute object fingerprints and short string hashes
    reconcile  Run a full reconciliation pass

Examples:
    # Show label changes for nodes saved from the cluster
    state-manager labels plan --policy-file policy.yaml --nodes-file nodes.json

    # List the states enabled by the live ClusterPolicy
    state-manager states list

    # Reconcile labels and managed objects without writing anything
    state-manager reconcile run --manifests-dir ./assets --dry-run

For detailed usage information, run: state-manager --help
"""

from __future__ import annotations

import logging
import sys

import typer

from state_manager import console
from state_manager.commands import hash_cmd, labels_cmd, reconcile_cmd, states_cmd

app = typer.Typer(
    help="GPU operand state manager: node labels and managed object drift.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.add_typer(labels_cmd.app, name="labels")
app.add_typer(states_cmd.app, name="states")
app.add_typer(hash_cmd.app, name="hash")
app.add_typer(reconcile_cmd.app, name="reconcile")


def main() -> None:
    """Console script entry point."""
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()

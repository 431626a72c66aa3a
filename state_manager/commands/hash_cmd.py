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

"""Hash subcommands (object, string)."""

from __future__ import annotations

from pathlib import Path

import typer

from state_manager.drift import fingerprint
from state_manager.hashing import HashMode, get_string_hash
from state_manager.utils import load_yaml_documents

app = typer.Typer(help="Compute object fingerprints and short string hashes.")


@app.command("object")
def object_hash(
    manifest: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML manifest"),
    mode: HashMode = typer.Option(HashMode.FULL, "--mode", help="Hash mode"),
) -> None:
    """Print the fingerprint of every object in a manifest file."""
    for obj in load_yaml_documents(manifest):
        metadata = obj.get("metadata") or {}
        typer.echo(f"{obj.get('kind', '?')}/{metadata.get('name', '?')} {fingerprint(obj, mode)}")


@app.command("string")
def string_hash(value: str = typer.Argument(..., help="String to hash")) -> None:
    """Print the short, name-safe hash of a string."""
    typer.echo(get_string_hash(value))

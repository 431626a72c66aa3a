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

"""Utility functions for kubectl, manifest discovery, and command checks."""

from __future__ import annotations

import subprocess
from pathlib import Path

import sh
import yaml


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err


def run_kubectl(args: list[str], timeout: int = 30, stdin: str | None = None) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Args:
        args: kubectl arguments (e.g. ``["get", "nodes", "-o", "json"]``).
        timeout: Maximum seconds to wait for the command to complete.
        stdin: Text passed on standard input (e.g. a manifest for ``apply -f -``).

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
            input=stdin,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def get_files_with_suffix(base_dir: Path, *suffixes: str) -> list[Path]:
    """Return all files under *base_dir* whose name ends with one of *suffixes*.

    Subdirectories are searched recursively. Results are sorted so callers
    see manifests in a stable order.

    Raises:
        RuntimeError: If *base_dir* is not a directory.
    """
    if not base_dir.is_dir():
        raise RuntimeError(f"error traversing directory tree: {base_dir} is not a directory")
    return sorted(
        path for path in base_dir.rglob("*")
        if path.is_file() and path.name.endswith(suffixes)
    )


def load_yaml_documents(path: Path) -> list[dict]:
    """Load every non-empty YAML document from *path*."""
    with open(path) as f:
        return [doc for doc in yaml.safe_load_all(f) if doc]

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

"""Tests for the state-manager CLI."""

import json
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from state_manager.cli import app
from state_manager.constants import STATE_KATA_DEVICE_PLUGIN, STATE_SANDBOX_DEVICE_PLUGIN
from state_manager.reconciler import ReconcileResult

runner = CliRunner()


@pytest.fixture
def policy_file(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text(yaml.safe_dump({
        "apiVersion": "nvidia.com/v1",
        "kind": "ClusterPolicy",
        "metadata": {"name": "cluster-policy"},
        "spec": {
            "driver": {"enabled": True},
            "sandboxWorkloads": {"enabled": True, "mode": "kata"},
            "kataSandboxDevicePlugin": {"enabled": True},
        },
    }))
    return path


class TestCliHelp:
    """Tests for top-level help."""

    def test_help_lists_subcommands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("labels", "states", "hash", "reconcile"):
            assert name in result.output


class TestHashCommands:
    """Tests for the hash subcommands."""

    def test_string(self):
        result = runner.invoke(app, ["hash", "string", "rhcos4.14-414.92.202309282257"])
        assert result.exit_code == 0
        assert result.output.strip() == "5bbdb464cb"

    def test_object(self, tmp_path):
        manifest = tmp_path / "cm.yaml"
        manifest.write_text(yaml.safe_dump({"kind": "ConfigMap", "metadata": {"name": "cm"}}))
        result = runner.invoke(app, ["hash", "object", str(manifest), "--mode", "sparse"])
        assert result.exit_code == 0
        assert result.output.startswith("ConfigMap/cm ")


class TestStatesCommands:
    """Tests for the states subcommands."""

    def test_list_enabled_only(self, policy_file):
        with patch("state_manager.commands.states_cmd.console") as mock_console:
            result = runner.invoke(app, ["states", "list", "--policy-file", str(policy_file), "--enabled-only"])
        assert result.exit_code == 0
        table = mock_console.print.call_args.args[0]
        names = list(table.columns[0].cells)
        assert STATE_KATA_DEVICE_PLUGIN in names
        assert STATE_SANDBOX_DEVICE_PLUGIN not in names


class TestLabelsCommands:
    """Tests for the labels subcommands."""

    def test_plan_from_files(self, policy_file, tmp_path, node_factory):
        nodes_file = tmp_path / "nodes.json"
        nodes_file.write_text(json.dumps({"items": [
            node_factory("gpu", {"feature.node.kubernetes.io/pci-10de.present": "true"}),
        ]}))
        with patch("state_manager.commands.labels_cmd.console") as mock_console:
            result = runner.invoke(app, [
                "labels", "plan", "--policy-file", str(policy_file), "--nodes-file", str(nodes_file),
            ])
        assert result.exit_code == 0
        table = mock_console.print.call_args_list[0].args[0]
        assert list(table.columns[0].cells) == ["gpu"]


class TestReconcileCommand:
    """Tests for the reconcile subcommand."""

    def test_run_passes_overrides(self, policy_file, tmp_path):
        with patch("state_manager.commands.reconcile_cmd.run_reconcile",
                   return_value=ReconcileResult(policy="cluster-policy")) as mock_run:
            result = runner.invoke(app, [
                "reconcile", "run",
                "--policy-file", str(policy_file),
                "--manifests-dir", str(tmp_path),
                "--namespace", "ops",
                "--dry-run",
            ])
        assert result.exit_code == 0
        cfg, options = mock_run.call_args.args
        assert cfg.namespace == "ops"
        assert cfg.manifests_dir == tmp_path
        assert options.dry_run
        assert mock_run.call_args.kwargs["policy_file"] == policy_file

    def test_labels_apply_rejects_zero_workers(self, policy_file):
        """Worker counts below one are rejected before any cluster access."""
        with patch("state_manager.commands.labels_cmd.run_reconcile") as mock_run:
            result = runner.invoke(app, ["labels", "apply", "--policy-file", str(policy_file), "--max-workers", "0"])
        assert result.exit_code == 2
        mock_run.assert_not_called()

    def test_labels_apply_max_workers_override(self, policy_file):
        with patch("state_manager.commands.labels_cmd.run_reconcile") as mock_run:
            result = runner.invoke(app, ["labels", "apply", "--policy-file", str(policy_file), "--max-workers", "3"])
        assert result.exit_code == 0
        cfg, options = mock_run.call_args.args
        assert cfg.label_max_workers == 3
        assert options.skip_objects

    def test_skip_everything_is_rejected(self):
        result = runner.invoke(app, ["reconcile", "run", "--skip-labels", "--skip-objects"])
        assert result.exit_code != 0

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

"""One reconciliation pass: node labels, then managed objects per enabled state."""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from rich.panel import Panel

from state_manager import console, logger
from state_manager.classifier import has_nfd_labels
from state_manager.cluster import (
    apply_object,
    get_cluster_policy,
    get_live_object,
    list_nodes,
    load_cluster_policy_file,
    load_state_manifests,
    patch_node_labels,
)
from state_manager.config import OperatorConfig, ReconcileOptions
from state_manager.constants import Runtime
from state_manager.drift import ApplyDecision, decide, stamp
from state_manager.errors import ValidationError
from state_manager.labels import LabelPatch, plan_node_labels
from state_manager.policy import ClusterPolicy
from state_manager.states import StateController
from state_manager.utils import require_command
from state_manager.workload import detect_cluster_runtime, validate_cluster_policy_spec


@dataclass
class ReconcileResult:
    """Summary of one reconciliation pass.

    Attributes:
        policy: Name of the reconciled ClusterPolicy.
        enabled_states: Enabled state names in deployment order.
        runtime: Container runtime detected on the GPU nodes.
        patches: Label patches that changed a node.
        skipped: Node name to the validation error that excluded it.
        decisions: Apply-or-skip decision for every desired object.
    """

    policy: str
    enabled_states: list[str] = field(default_factory=list)
    runtime: Runtime | None = None
    patches: list[LabelPatch] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)
    decisions: list[ApplyDecision] = field(default_factory=list)

    @property
    def patched_nodes(self) -> list[str]:
        return sorted(patch.node for patch in self.patches)

    @property
    def applied(self) -> list[ApplyDecision]:
        return [decision for decision in self.decisions if decision.apply]


# ============================================================================
# Node labels
# ============================================================================

def _node_name(node: Mapping) -> str:
    return (node.get("metadata") or {}).get("name", "")


def _node_labels(node: Mapping) -> dict[str, str]:
    return dict((node.get("metadata") or {}).get("labels") or {})


def plan_labels(
    nodes: Sequence[Mapping],
    controller: StateController,
    max_workers: int = 1,
) -> tuple[list[LabelPatch], dict[str, str]]:
    """Plan label patches for all nodes in parallel.

    Args:
        nodes: Node objects; each worker plans from its own label copy.
        controller: State controller for the current policy snapshot.
        max_workers: Nodes planned concurrently.

    Returns:
        Tuple of (changed_patches, skipped_node_errors). Patches are in
        node name order.
    """
    patches: list[LabelPatch] = []
    skipped: dict[str, str] = {}
    outputs: dict[str, str] = {}
    lock = threading.Lock()

    def _plan(node: Mapping) -> LabelPatch | None:
        name = _node_name(node)
        with console.buffered() as buf:
            try:
                patch = plan_node_labels(name, _node_labels(node), controller)
            except ValidationError as err:
                console.print(f"[red]  \u2717 {name}: {err}[/red]")
                with lock:
                    skipped[name] = str(err)
                patch = None
            else:
                if patch.changed:
                    console.print(f"[yellow]  \u2022 {name}: {' '.join(patch.as_kubectl_args())}[/yellow]")
        with lock:
            outputs[name] = buf.getvalue()
        return patch

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(_plan, node) for node in nodes]
        for future in as_completed(futures):
            patch = future.result()
            if patch is not None and patch.changed:
                patches.append(patch)

    for name in sorted(outputs):
        if outputs[name]:
            console.print(outputs[name], end="")

    patches.sort(key=lambda patch: patch.node)
    return patches, skipped


def reconcile_labels(
    nodes: Sequence[Mapping],
    controller: StateController,
    cfg: OperatorConfig,
    options: ReconcileOptions,
    result: ReconcileResult,
) -> None:
    """Plan node labels and patch every node whose labels changed."""
    console.print(Panel.fit("Reconciling node labels", style="bold blue"))
    if nodes and not any(has_nfd_labels(_node_labels(node)) for node in nodes):
        logger.warning("No node carries node-feature-discovery labels; GPU nodes cannot be detected")

    patches, skipped = plan_labels(nodes, controller, max_workers=cfg.label_max_workers)
    result.skipped.update(skipped)
    for patch in patches:
        if not options.dry_run:
            patch_node_labels(patch, max_retries=cfg.patch_max_retries, timeout=cfg.kubectl_timeout)
        result.patches.append(patch)

    verb = "would be patched" if options.dry_run else "patched"
    console.print(f"[green]\u2705 {len(patches)} of {len(nodes)} nodes {verb}[/green]")
    if skipped:
        console.print(f"[yellow]\u26a0\ufe0f  {len(skipped)} nodes skipped for this pass[/yellow]")


# ============================================================================
# Managed objects
# ============================================================================

def reconcile_objects(
    controller: StateController,
    cfg: OperatorConfig,
    options: ReconcileOptions,
    result: ReconcileResult,
) -> None:
    """Apply the desired objects of every enabled state whose fingerprint drifted."""
    if cfg.manifests_dir is None:
        return
    console.print(Panel.fit("Reconciling managed objects", style="bold blue"))
    for state_name in result.enabled_states:
        for desired in load_state_manifests(cfg.manifests_dir, state_name):
            metadata = desired.get("metadata") or {}
            namespace = metadata.get("namespace") or cfg.namespace
            live = get_live_object(
                desired.get("kind", ""), metadata.get("name", ""), namespace, timeout=cfg.kubectl_timeout,
            )
            decision = decide(state_name, desired, live, cfg.hash_mode)
            result.decisions.append(decision)
            if not decision.apply:
                logger.debug("%s %s/%s unchanged", state_name, decision.kind, decision.name)
                continue
            console.print(f"[yellow]  \u2022 {state_name}: {decision.kind}/{decision.name}[/yellow]")
            if not options.dry_run:
                apply_object(
                    stamp(desired, cfg.hash_mode),
                    namespace=namespace,
                    max_retries=cfg.patch_max_retries,
                    timeout=cfg.kubectl_timeout,
                )

    console.print(f"[green]\u2705 {len(result.applied)} of {len(result.decisions)} objects out of date[/green]")


# ============================================================================
# Public API
# ============================================================================

def reconcile(
    policy: ClusterPolicy,
    nodes: Sequence[Mapping],
    cfg: OperatorConfig,
    options: ReconcileOptions,
) -> ReconcileResult:
    """Run one pass against a policy snapshot and node list.

    Args:
        policy: ClusterPolicy snapshot.
        nodes: Node objects to label.
        cfg: Settings.
        options: What the pass may do.

    Returns:
        Summary of the pass.

    Raises:
        ValidationError: If the policy itself is invalid.
        ClusterError: If a kubectl write fails after retries.
    """
    validate_cluster_policy_spec(policy.spec)
    controller = StateController(policy.spec)
    result = ReconcileResult(
        policy=policy.name,
        enabled_states=controller.enabled_states(),
        runtime=detect_cluster_runtime(nodes),
    )
    logger.info("Policy %s enables %d states, runtime %s",
                policy.name, len(result.enabled_states), result.runtime.value)

    if not options.skip_labels:
        reconcile_labels(nodes, controller, cfg, options, result)
    if not options.skip_objects:
        reconcile_objects(controller, cfg, options, result)
    return result


def run_reconcile(
    cfg: OperatorConfig,
    options: ReconcileOptions,
    policy_file: Path | None = None,
) -> ReconcileResult:
    """Fetch the policy and nodes from the cluster and run one pass.

    Args:
        cfg: Settings.
        options: What the pass may do.
        policy_file: Read the ClusterPolicy from this YAML file instead of
            the cluster.
    """
    require_command("kubectl")
    policy = load_policy(cfg, policy_file)
    nodes = list_nodes(options.node_selector, timeout=cfg.kubectl_timeout)
    return reconcile(policy, nodes, cfg, options)


def load_policy(cfg: OperatorConfig, policy_file: Path | None = None) -> ClusterPolicy:
    """Read the ClusterPolicy from *policy_file*, or from the cluster when it is None."""
    if policy_file is not None:
        return load_cluster_policy_file(policy_file)
    return get_cluster_policy(cfg.cluster_policy_name, timeout=cfg.kubectl_timeout)

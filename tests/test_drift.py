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

"""Tests for apply-or-skip decisions."""

import copy
import textwrap

from state_manager.constants import LAST_APPLIED_HASH_ANNOTATION_KEY
from state_manager.drift import decide, fingerprint, needs_update, recorded_fingerprint, stamp
from state_manager.hashing import HashMode
from state_manager.utils import load_yaml_documents

DAEMONSET = {
    "apiVersion": "apps/v1",
    "kind": "DaemonSet",
    "metadata": {"name": "nvidia-device-plugin-daemonset", "namespace": "gpu-operator"},
    "spec": {
        "template": {
            "spec": {
                "containers": [{
                    "name": "nvidia-device-plugin",
                    "image": "nvcr.io/nvidia/k8s-device-plugin:v0.15.0",
                    "env": [{"name": "PASS_DEVICE_SPECS", "value": "true"}],
                }],
            },
        },
    },
}


class TestStamp:
    """Tests for annotating objects with their fingerprint."""

    def test_stamp_adds_annotation(self):
        stamped = stamp(DAEMONSET)
        assert recorded_fingerprint(stamped) == fingerprint(DAEMONSET)
        assert "annotations" not in DAEMONSET["metadata"]

    def test_fingerprint_ignores_own_annotation(self):
        assert fingerprint(stamp(DAEMONSET)) == fingerprint(DAEMONSET)

    def test_other_annotations_count(self):
        annotated = copy.deepcopy(DAEMONSET)
        annotated["metadata"]["annotations"] = {"owner": "ops"}
        assert fingerprint(annotated) != fingerprint(DAEMONSET)
        assert "owner" in stamp(annotated)["metadata"]["annotations"]


class TestDecide:
    """Tests for the drift decision."""

    def test_missing_live_object(self):
        decision = decide("state-device-plugin", DAEMONSET, None)
        assert decision.apply
        assert decision.live_hash is None
        assert decision.kind == "DaemonSet"
        assert decision.name == "nvidia-device-plugin-daemonset"

    def test_identical_object_is_skipped(self):
        live = stamp(DAEMONSET)
        decision = decide("state-device-plugin", DAEMONSET, live)
        assert not decision.apply
        assert decision.desired_hash == decision.live_hash

    def test_changed_env_value_is_applied(self):
        live = stamp(DAEMONSET)
        desired = copy.deepcopy(DAEMONSET)
        desired["spec"]["template"]["spec"]["containers"][0]["env"][0]["value"] = "false"
        assert decide("state-device-plugin", desired, live).apply

    def test_live_without_annotation(self):
        assert needs_update(DAEMONSET, copy.deepcopy(DAEMONSET))

    def test_sparse_mode_ignores_empty_fields(self):
        live = stamp(DAEMONSET, HashMode.SPARSE)
        desired = copy.deepcopy(DAEMONSET)
        desired["status"] = {}
        assert not needs_update(desired, live, HashMode.SPARSE)
        assert needs_update(desired, stamp(DAEMONSET), HashMode.FULL)

    def test_annotation_key(self):
        assert LAST_APPLIED_HASH_ANNOTATION_KEY in stamp(DAEMONSET)["metadata"]["annotations"]


class TestYamlManifests:
    """Tests for fingerprints of manifests loaded from YAML files."""

    MANIFEST = textwrap.dedent("""\
        apiVersion: apps/v1
        kind: DaemonSet
        metadata:
          name: nvidia-driver-daemonset
          annotations:
            build-date: 2024-01-01
            released-at: 2024-01-01T12:30:00Z
        spec:
          template:
            spec:
              containers:
              - name: nvidia-driver-ctr
                image: nvcr.io/nvidia/driver:550.54.15
        """)

    def _load(self, tmp_path, text):
        path = tmp_path / "daemonset.yaml"
        path.write_text(text)
        return load_yaml_documents(path)[0]

    def test_unquoted_timestamps_are_fingerprinted(self, tmp_path):
        desired = self._load(tmp_path, self.MANIFEST)
        decision = decide("state-driver", desired, None)
        assert decision.apply
        assert decision.desired_hash == fingerprint(desired, HashMode.FULL)
        assert recorded_fingerprint(stamp(desired, HashMode.SPARSE)) == fingerprint(desired, HashMode.SPARSE)

    def test_timestamp_change_is_drift(self, tmp_path):
        live = stamp(self._load(tmp_path, self.MANIFEST))
        desired = self._load(tmp_path, self.MANIFEST.replace("2024-01-01\n", "2024-02-01\n"))
        assert decide("state-driver", desired, live).apply
        assert not decide("state-driver", self._load(tmp_path, self.MANIFEST), live).apply

    def test_needs_update_agrees_with_decide(self, tmp_path):
        desired = self._load(tmp_path, self.MANIFEST)
        for live in (None, desired, stamp(desired)):
            assert needs_update(desired, live) == decide("state-driver", desired, live).apply

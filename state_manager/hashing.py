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

"""Content fingerprints for drift detection.

Values are first rendered into a canonical text form and the text is
hashed with 32-bit FNV-1a. Two modes exist:

* full: every field of the object contributes, including zero values.
* sparse: only fields that are not effectively zero contribute, sorted by
  field name, with embedded fields flattened into their parent. Adding a
  new optional field to a tracked type therefore leaves the fingerprints
  of existing objects unchanged.

Supported values are None, bool, int, float, str, bytes, dates and times,
enums, mappings, sequences, sets, dataclasses and pydantic models. A type
can restrict which of its fields are fingerprinted by defining
``__hash_fields__``; a dataclass field declared with
``field(metadata={"embedded": True})`` is flattened in sparse mode.
Anything else raises ``UnhashableValueError``.
"""

from __future__ import annotations

import dataclasses
import datetime
import json
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel

from state_manager.constants import FNV32_OFFSET_BASIS, FNV32_PRIME, SAFE_ENCODE_ALPHABET
from state_manager.errors import UnhashableValueError

EMBEDDED = "embedded"


class HashMode(str, Enum):
    FULL = "full"
    SPARSE = "sparse"


class Fnv32a:
    """Incremental 32-bit FNV-1a hasher."""

    def __init__(self) -> None:
        self._value = FNV32_OFFSET_BASIS

    def update(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        value = self._value
        for byte in data:
            value = ((value ^ byte) * FNV32_PRIME) & 0xFFFFFFFF
        self._value = value

    def digest(self) -> int:
        return self._value


# ============================================================================
# Field enumeration
# ============================================================================

def _is_struct(value: Any) -> bool:
    return (dataclasses.is_dataclass(value) and not isinstance(value, type)) or isinstance(value, BaseModel)


def _declared_fields(obj: Any) -> Iterator[tuple[str, Any, bool]]:
    """Yield (name, value, embedded) for the fields *obj* fingerprints."""
    if isinstance(obj, BaseModel):
        entries = [(name, getattr(obj, name), False) for name in type(obj).model_fields]
    else:
        entries = [
            (f.name, getattr(obj, f.name), bool(f.metadata.get(EMBEDDED)))
            for f in dataclasses.fields(obj)
        ]
    selected = getattr(type(obj), "__hash_fields__", None)
    if selected is not None:
        by_name = {entry[0]: entry for entry in entries}
        entries = [by_name[name] for name in selected]
    yield from entries


def _struct_fields(obj: Any, flatten: bool) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    promoted: dict[str, Any] = {}
    for name, value, embedded in _declared_fields(obj):
        if flatten and embedded:
            if value is not None:
                for inner_name, inner_value in _struct_fields(value, flatten).items():
                    promoted.setdefault(inner_name, inner_value)
            continue
        fields[name] = value
    # Fields declared on the outer type shadow promoted ones.
    return {**promoted, **fields}


# ============================================================================
# Canonical form
# ============================================================================

def canonical_repr(value: Any) -> str:
    """Render *value* as deterministic text.

    Mapping keys and struct field names are sorted, so neither insertion
    nor declaration order affects the result.

    Raises:
        UnhashableValueError: For unsupported value types.
    """
    if value is None:
        return "nil"
    if isinstance(value, Enum):
        return f"({type(value).__name__}){canonical_repr(value.value)}"
    if isinstance(value, bool):
        return "(bool)true" if value else "(bool)false"
    if isinstance(value, int):
        return f"(int){value}"
    if isinstance(value, float):
        return f"(float){value!r}"
    if isinstance(value, str):
        return f"(string){json.dumps(value)}"
    if isinstance(value, bytes):
        return f"(bytes){value.hex()}"
    if isinstance(value, (datetime.date, datetime.time)):
        # YAML loads unquoted timestamps as date and datetime values.
        return f"({type(value).__name__}){value.isoformat()}"
    if _is_struct(value):
        fields = _struct_fields(value, flatten=False)
        body = ",".join(f"{name}:{canonical_repr(fields[name])}" for name in sorted(fields))
        return f"{type(value).__name__}{{{body}}}"
    if isinstance(value, Mapping):
        items = sorted(f"{canonical_repr(k)}:{canonical_repr(v)}" for k, v in value.items())
        return "map[" + ",".join(items) + "]"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(canonical_repr(item) for item in value) + "]"
    if isinstance(value, (set, frozenset)):
        return "set[" + ",".join(sorted(canonical_repr(item) for item in value)) + "]"
    raise UnhashableValueError(value)


def is_effectively_zero(value: Any) -> bool:
    """Return True for zero values and empty collections.

    ``None`` and an empty (non-None) list, dict or set are equivalent here,
    as are structs whose fields are all effectively zero.
    """
    if value is None:
        return True
    if isinstance(value, Enum):
        return is_effectively_zero(value.value)
    if isinstance(value, (bool, int, float)):
        return not value
    if isinstance(value, (str, bytes, Mapping, list, tuple, set, frozenset)):
        return len(value) == 0
    if _is_struct(value):
        return all(is_effectively_zero(v) for v in _struct_fields(value, flatten=True).values())
    return False


# ============================================================================
# Public hashing API
# ============================================================================

def get_object_hash(obj: Any) -> str:
    """Return the FNV-32a hash of the full object (all fields)."""
    hasher = Fnv32a()
    hasher.update(canonical_repr(obj))
    return str(hasher.digest())


def get_object_hash_ignore_empty_keys(obj: Any) -> str:
    """Return the FNV-32a hash of only the non-zero fields of *obj*.

    Args:
        obj: A dataclass, pydantic model, or mapping with string keys.

    Returns:
        Decimal digest string.

    Raises:
        UnhashableValueError: If *obj* has no named fields or holds an
            unsupported value.
    """
    if _is_struct(obj):
        fields = _struct_fields(obj, flatten=True)
    elif isinstance(obj, Mapping) and all(isinstance(key, str) for key in obj):
        fields = dict(obj)
    else:
        raise UnhashableValueError(obj)

    hasher = Fnv32a()
    for name in sorted(fields):
        value = fields[name]
        if not is_effectively_zero(value):
            hasher.update(f"{name}:")
            hasher.update(canonical_repr(value))
    return str(hasher.digest())


def compute_fingerprint(obj: Any, mode: HashMode | str = HashMode.FULL) -> str:
    if HashMode(mode) is HashMode.SPARSE:
        return get_object_hash_ignore_empty_keys(obj)
    return get_object_hash(obj)


def safe_encode_string(value: str) -> str:
    """Map each character onto an alphabet safe for names and labels."""
    return "".join(SAFE_ENCODE_ALPHABET[ord(ch) % len(SAFE_ENCODE_ALPHABET)] for ch in value)


def get_string_hash(value: str) -> str:
    """Return a short, label-safe digest of *value* for name suffixes."""
    hasher = Fnv32a()
    hasher.update(value)
    return safe_encode_string(str(hasher.digest()))

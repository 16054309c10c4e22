"""
Trace loader for NeuroViz.

This module turns payloads produced by the answer-generation service into an
`ExplainTrace`. Payloads may be JSON or YAML, and may be either the bare trace
or the full response envelope:

answer: "..."
explain_trace:
  stages:
    - {id: s1, label: Comprehension, description: ..., weight: 1}
  nodes:
    - {id: n1, label: ..., type: intent, importance: 0.9, stage_id: s1}
  edges:
    - {source: n1, target: n2, relation_label: supports, strength: 0.5}
  steps: [...]
  key_factors: [...]
  confidence: high

Notes:
- Missing `stages`, `nodes` or `edges` arrays are treated as empty.
- Repairs (duplicate ids, dangling edges) happen in `ExplainTrace.from_dict`.
"""

from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from .graph import ExplainTrace, TraceFormatError


def _unwrap(payload: Dict[str, Any]) -> Any:
    # Full response envelope: {"answer": ..., "explain_trace": {...}}
    if isinstance(payload, dict) and "explain_trace" in payload:
        return payload.get("explain_trace") or {}
    return payload


def compile_from_dict(payload: Dict[str, Any]) -> ExplainTrace:
    """
    Compile a parsed payload into an `ExplainTrace`.

    Args:
        payload: Parsed JSON/YAML dictionary, bare trace or response envelope

    Returns:
        ExplainTrace: The repaired snapshot
    """
    return ExplainTrace.from_dict(_unwrap(payload))


def compile_from_yaml(yaml_text: str) -> ExplainTrace:
    """Compile from YAML text into an `ExplainTrace`."""
    data = yaml.safe_load(yaml_text) or {}
    return compile_from_dict(data)


def compile_from_json(json_text: str) -> ExplainTrace:
    """Compile from JSON text into an `ExplainTrace`."""
    try:
        data = json.loads(json_text) if json_text.strip() else {}
    except json.JSONDecodeError as exc:
        raise TraceFormatError(f"Invalid JSON trace: {exc}") from exc
    return compile_from_dict(data)


def compile_from_file(path: str) -> ExplainTrace:
    """Compile from a `.json`, `.yaml` or `.yml` file path into an `ExplainTrace`."""
    with open(path, "r", encoding="utf-8") as f:
        txt = f.read()
    if path.lower().endswith(".json"):
        return compile_from_json(txt)
    return compile_from_yaml(txt)

"""
Diff helpers for comparing two prompt versions
"""
import difflib
import json
from typing import Any, Dict, List

from app.models.version import PromptVersion

EQUAL = "equal"
INSERT = "insert"
DELETE = "delete"


def canonical_json(value: Any) -> str:
    """Serialize a structured payload to a stable text form; missing payloads become {}"""
    if value is None:
        return "{}"
    return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)


def diff_text(old: str, new: str) -> List[Dict[str, str]]:
    """Character-level diff as a list of {op, text} spans

    Replacements are reported as a delete followed by an insert.
    """
    old = old or ""
    new = new or ""
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)

    spans: List[Dict[str, str]] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            spans.append({"op": EQUAL, "text": old[i1:i2]})
            continue
        if tag in ("delete", "replace"):
            spans.append({"op": DELETE, "text": old[i1:i2]})
        if tag in ("insert", "replace"):
            spans.append({"op": INSERT, "text": new[j1:j2]})
    return spans


def _field_diff(old: str, new: str) -> Dict[str, Any]:
    spans = diff_text(old, new)
    return {
        "changed": any(span["op"] != EQUAL for span in spans),
        "spans": spans,
    }


def compare_versions(older: PromptVersion, newer: PromptVersion) -> Dict[str, Any]:
    """Compare two versions field by field

    Prompt text and notes are diffed as text; variables and model settings
    are diffed after canonical JSON serialization.
    """
    return {
        "from": older.to_dict(),
        "to": newer.to_dict(),
        "prompt_text": _field_diff(older.prompt_text, newer.prompt_text),
        "variables": _field_diff(canonical_json(older.variables), canonical_json(newer.variables)),
        "model_settings": _field_diff(
            canonical_json(older.model_settings), canonical_json(newer.model_settings)
        ),
        "notes": _field_diff(older.notes or "", newer.notes or ""),
    }

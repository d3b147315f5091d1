from __future__ import annotations

import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict, Optional, Tuple


def write_json(path: Path, obj: Dict[str, Any]) -> None:
    """
    Pretty-print JSON to UTF-8 file with best-effort atomic write:
    write to temp file in same directory, then replace.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with NamedTemporaryFile("w", encoding="utf-8", dir=path.parent, delete=False) as tmp:
        json.dump(obj, tmp, ensure_ascii=False, indent=2)
        tmp.write("\n")
        tmp_path = Path(tmp.name)

    os.replace(tmp_path, path)


def safe_load_json(path: Path) -> Tuple[Optional[Any], Optional[str]]:
    """
    Returns (data, error). Exactly one of the two is None.
    """
    path = Path(path)
    if not path.exists():
        return None, f"File not found: {path}"
    try:
        return json.loads(path.read_text(encoding="utf-8")), None
    except (OSError, ValueError) as exc:
        return None, f"Failed to parse JSON: {path}: {exc}"


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse a model response that should hold a single JSON object.
    Tolerates markdown code fences around the payload.
    """
    s = (text or "").strip()
    if s.startswith("```"):
        s = s.split("\n", 1)[1] if "\n" in s else ""
        if s.rstrip().endswith("```"):
            s = s.rstrip()[:-3]
    data = json.loads(s)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data

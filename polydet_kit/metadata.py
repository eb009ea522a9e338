from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Union


def _load_json_labels(path: Path) -> List[str]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid labels JSON: {path}") from exc

    if isinstance(payload, dict):
        payload = payload.get("names", payload)
    if isinstance(payload, dict):
        try:
            payload = [payload[k] for k in sorted(payload, key=int)]
        except ValueError as exc:
            raise ValueError(f"Label ids must be integers: {path}") from exc
    if not isinstance(payload, list) or not all(isinstance(name, str) for name in payload):
        raise ValueError(f"Labels must be a list of strings: {path}")
    return list(payload)


def _load_names_block(path: Path) -> List[str]:
    """
    Parse the lightweight `names:` mapping used next to exported models:

        names:
          0: person
          1: bicycle
    """

    names: Dict[int, str] = {}
    in_names = False

    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names or ":" not in line:
                continue

            left, right = line.split(":", 1)
            left = left.strip()
            if not left.isdigit():
                # Next top-level key ends the block.
                if not raw[:1].isspace():
                    break
                continue
            names[int(left)] = right.strip().strip("'").strip('"')

    if not names:
        return []
    if sorted(names) != list(range(len(names))):
        raise ValueError(f"Label ids must be contiguous from 0: {path}")
    return [names[i] for i in range(len(names))]


def load_labels(path: Union[str, Path]) -> List[str]:
    """
    Load an ordered list of class names.

    `.json` files hold a list of names (or an id -> name object); anything else
    is read as a `names:` block. Only the length matters to the pipeline.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Labels file not found: {path}")
    if path.suffix.lower() == ".json":
        labels = _load_json_labels(path)
    else:
        labels = _load_names_block(path)
    if not labels:
        raise ValueError(f"No labels found in {path}")
    return labels

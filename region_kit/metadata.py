from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple, Union


PathLike = Union[str, Path]


def _parse_names_block(lines) -> Dict[int, str]:
    names: Dict[int, str] = {}
    in_names = False
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line == "names:":
            in_names = True
            continue
        if not in_names:
            continue

        # Parse "id: label"
        if ":" not in line:
            continue
        left, right = line.split(":", 1)
        left = left.strip()
        right = right.strip().strip("'").strip('"')
        if not left.isdigit():
            continue
        names[int(left)] = right
    return names


def load_labels(path: PathLike) -> Tuple[str, ...]:
    """
    Load the label table, indexed by class id.

    Two formats are understood:

    - a model `.labels` file: whitespace-separated names, one per class
    - a metadata file with a `names:` block of `id: label` lines

        names:
          0: person
          1: bicycle

    Gaps in a `names:` block are filled with "label #<id>".
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Label file not found: {p}")
    text = p.read_text(encoding="utf-8")
    lines = text.splitlines()

    if any(line.strip() == "names:" for line in lines):
        names = _parse_names_block(lines)
        if not names:
            return ()
        return tuple(names.get(i, f"label #{i}") for i in range(max(names) + 1))

    return tuple(text.split())

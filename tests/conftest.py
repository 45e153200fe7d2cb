from __future__ import annotations

import sys
from pathlib import Path


def _ensure_import_paths() -> None:
    # Lets `import region_kit` work from a plain checkout (no `pip install -e .`)
    # and lets test modules share `region_outputs.py`.
    tests_dir = Path(__file__).resolve().parent
    for path in (tests_dir.parent, tests_dir):
        path_str = str(path)
        if path_str not in sys.path:
            sys.path.insert(0, path_str)


_ensure_import_paths()

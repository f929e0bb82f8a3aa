# tests/test_smoke.py
import importlib
import os
import sys
from pathlib import Path

import pytest

# Avoid GUI crashes in headless CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

SRC_DIR = (Path(__file__).parent.parent / "src").resolve()
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))  # make 'frontend', 'backend', etc. top-level

IGNORE_DIR_NAMES = {"__pycache__", ".venv", "venv", ".pytest_cache", ".mypy_cache", "build", "dist"}


def discover_module_names(src_dir: Path):
    for path in src_dir.rglob("*.py"):
        if any(part in IGNORE_DIR_NAMES for part in path.parts):
            continue
        parts = list(path.relative_to(src_dir).with_suffix("").parts)
        if parts[-1] == "__init__":
            parts = parts[:-1]
        if not parts or any(p.startswith("_") for p in parts):
            continue
        yield ".".join(parts)


@pytest.mark.parametrize("module_name", sorted(set(discover_module_names(SRC_DIR))))
def test_module_imports(module_name):
    importlib.import_module(module_name)

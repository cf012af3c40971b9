from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parent
SRC_PATH = ROOT / "src"
if SRC_PATH.is_dir():
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture
def example_document() -> dict:
    return {
        "size": 2,
        "tiles": [
            {"x": 0, "y": 0, "ground": "A"},
            {"x": 1, "y": 1, "ground": "B", "building": "C"},
        ],
    }


@pytest.fixture
def project_root() -> Path:
    return ROOT

"""Shared pytest configuration for the Inkwell project."""

from __future__ import annotations

import os
import sys
from pathlib import Path
import sysconfig

import pytest

ROOT = Path(__file__).resolve().parent.parent
EXTRA_PATHS = [ROOT, ROOT / "libs/python"]
for extra in EXTRA_PATHS:
    sys.path.insert(0, str(extra))

SITE_PACKAGES = Path(sysconfig.get_paths().get("purelib", ""))
if SITE_PACKAGES and str(SITE_PACKAGES) not in sys.path:
    sys.path.append(str(SITE_PACKAGES))


@pytest.fixture
def data_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the workspace at an isolated directory with no provider configured."""

    root = tmp_path / "data"
    monkeypatch.setenv("INKWELL_DATA_ROOT", str(root))
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    for key in list(os.environ):
        if key.startswith(("OPENAI_", "ANTHROPIC_", "GOOGLE_", "GEMINI_", "NVIDIA_")):
            monkeypatch.delenv(key, raising=False)
    return root

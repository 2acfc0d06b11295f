import sys
from pathlib import Path

import pytest

# Ensure src package is importable without installation
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))


@pytest.fixture
def write_pyproject(tmp_path: Path):
    def _write(content: str) -> Path:
        path = tmp_path / "pyproject.toml"
        path.write_text(content)
        return path

    return _write

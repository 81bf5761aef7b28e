from __future__ import annotations

import sys
from pathlib import Path


def _ensure_project_on_path() -> None:
    """Make sure the installed package can locate the source tree in editable installs."""
    backend_root = Path(__file__).resolve().parents[1]
    if (backend_root / "src").is_dir():
        sys.path.insert(0, str(backend_root))


def main() -> int:
    try:
        from src.cli.app import main as entrypoint
    except ModuleNotFoundError:
        _ensure_project_on_path()
        from src.cli.app import main as entrypoint
    return entrypoint()


if __name__ == "__main__":
    raise SystemExit(main())

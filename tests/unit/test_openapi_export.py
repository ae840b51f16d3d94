from __future__ import annotations

import importlib.util
import json
from pathlib import Path

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "generate_openapi.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("generate_openapi", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_export_writes_public_and_admin_routes(tmp_path: Path) -> None:
    destination = tmp_path / "nested" / "openapi.json"

    _load_script().main(["--output", str(destination)])

    paths = json.loads(destination.read_text(encoding="utf-8"))["paths"]
    assert "/api/nomination/request-otp" in paths
    assert "/api/voting/submit" in paths
    assert "/api/withdrawal/details" in paths
    assert "/api/admin/voting-events/{event_id}/results" in paths

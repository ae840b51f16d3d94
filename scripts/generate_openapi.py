"""Write the election API's OpenAPI document to disk for the frontend client."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from elections.main import create_application

DEFAULT_DESTINATION = ROOT / "docs" / "openapi.json"


def export_openapi(destination: Path) -> dict:
    document = create_application().openapi()
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
    return document


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output", type=Path, default=DEFAULT_DESTINATION)
    args = parser.parse_args(argv)

    document = export_openapi(args.output)
    print(f"{len(document['paths'])} paths written to {args.output}")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Write the HireHub OpenAPI document to disk (default: docs/api/openapi.json)."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi import FastAPI

from hirehub.api.main import app as api_app

DEFAULT_OUTPUT = Path("docs/api/openapi.json")


def export_openapi(app: FastAPI, destination: Path) -> int:
    """Persist the schema and return how many paths it documents."""
    schema = app.openapi()
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(json.dumps(schema, indent=2, sort_keys=True) + "\n")
    return len(schema.get("paths", {}))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    args = parser.parse_args()

    paths = export_openapi(api_app, args.output)
    print(f"Wrote {paths} paths to {args.output}")


if __name__ == "__main__":
    main()

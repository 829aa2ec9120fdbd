"""Export JSON schemas for Itinerary and Segment."""

import json
import sys
from pathlib import Path

from pydantic import TypeAdapter

from tripline.models import Itinerary, Segment, ValidationReport


def export_schemas(schemas_dir: Path) -> list[Path]:
    """Write the schemas to ``schemas_dir`` and return the written paths."""
    schemas_dir.mkdir(parents=True, exist_ok=True)

    schemas = {
        "Itinerary": Itinerary.model_json_schema(),
        "Segment": TypeAdapter(Segment).json_schema(),
        "ValidationReport": ValidationReport.model_json_schema(),
    }

    written: list[Path] = []
    for name, schema in schemas.items():
        path = schemas_dir / f"{name}.schema.json"
        with open(path, "w") as f:
            json.dump(schema, f, indent=2)
        print(f"Exported {name} schema to {path}")
        written.append(path)
    return written


def main() -> None:
    """Export schemas to docs/schemas/ or the directory given as first argument."""
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("docs/schemas")
    export_schemas(target)


if __name__ == "__main__":
    main()

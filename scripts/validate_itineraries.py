"""Validate every itinerary JSON file in a directory.

Each file is checked against the Itinerary schema and then run through the
continuity validator. A file fails on a schema error or a continuity error;
warnings are printed but do not fail it.

Usage: python scripts/validate_itineraries.py [DIRECTORY]
"""

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from tripline.config import get_settings
from tripline.models import Itinerary
from tripline.scheduling.continuity import validate_itinerary
from tripline.scheduling.policy import SchedulingPolicy


@dataclass
class FileResult:
    """Validation outcome for one file."""

    file: str
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: int = 0


def validate_file(path: Path, policy: SchedulingPolicy) -> FileResult:
    """Validate a single itinerary file."""
    try:
        with open(path) as f:
            data = json.load(f)
        itinerary = Itinerary.model_validate(data)
    except (OSError, json.JSONDecodeError) as e:
        return FileResult(file=path.name, valid=False, errors=[str(e)])
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        return FileResult(file=path.name, valid=False, errors=[f"{location}: {first['msg']}"])

    report = validate_itinerary(itinerary, policy)
    return FileResult(
        file=path.name,
        valid=not report.has_errors,
        errors=[issue.message for issue in report.errors],
        warnings=len(report.warnings),
    )


def validate_directory(directory: Path, policy: SchedulingPolicy) -> list[FileResult]:
    """Validate every ``*.json`` file in ``directory``, sorted by name."""
    results: list[FileResult] = []
    for path in sorted(directory.glob("*.json")):
        result = validate_file(path, policy)
        if result.valid:
            print(f"  ✓ {result.file} ({result.warnings} warnings)")
        else:
            print(f"  ✗ {result.file}")
            for error in result.errors:
                print(f"      {error}")
        results.append(result)
    return results


def main() -> int:
    """Run validation and return the exit code."""
    directory = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("data/itineraries")
    if not directory.is_dir():
        print(f"Directory not found: {directory}")
        return 1

    policy = SchedulingPolicy.from_settings(get_settings())
    print(f"=== Validating itineraries in {directory} ===")
    results = validate_directory(directory, policy)

    invalid = [r for r in results if not r.valid]
    print("\n=== Summary ===")
    valid = len(results) - len(invalid)
    print(f"Total: {len(results)} files, {valid} valid, {len(invalid)} invalid")

    if invalid:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Eval runner - loads engine scenarios and checks their predicates."""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from tripline.errors import TriplineError
from tripline.models import CascadeMode, Itinerary, ValidationReport
from tripline.scheduling.cascade import move_segment_with_cascade
from tripline.scheduling.continuity import validate_itinerary
from tripline.scheduling.gaps import fill_gaps
from tripline.scheduling.policy import DEFAULT_POLICY
from tripline.scheduling.reorder import reorder_segments

SCENARIOS_PATH = Path(__file__).parent / "scenarios.yaml"


def load_scenarios(path: Path = SCENARIOS_PATH) -> dict[str, Any]:
    """Load scenarios from YAML."""
    with open(path) as f:
        result: dict[str, Any] = yaml.safe_load(f)
        return result


def run_operation(
    itinerary: Itinerary, operation: str, args: dict[str, Any]
) -> tuple[Any, ValidationReport | None, str | None]:
    """Run one engine operation; return (result, report, error code)."""
    try:
        if operation == "validate":
            report = validate_itinerary(itinerary, DEFAULT_POLICY)
            return report, report, None
        if operation == "fill_gaps":
            fill = fill_gaps(itinerary, DEFAULT_POLICY, args.get("auto_apply", False))
            return fill, fill.report, None
        if operation == "move":
            cascade = move_segment_with_cascade(
                itinerary,
                args["segment_id"],
                datetime.fromisoformat(args["new_start"]),
                CascadeMode(args.get("mode", "auto")),
                DEFAULT_POLICY,
            )
            return cascade, cascade.report, None
        if operation == "reorder":
            reorder = reorder_segments(itinerary, args["segment_ids"], DEFAULT_POLICY)
            return reorder, None, None
    except TriplineError as e:
        return None, None, e.code.value

    raise ValueError(f"unknown operation: {operation}")


def evaluate_predicates(env: dict[str, Any], predicates: list[dict[str, str]]) -> tuple[int, int]:
    """Evaluate predicates; return (passed, total)."""
    passed = 0
    total = len(predicates)

    for pred_data in predicates:
        predicate = pred_data["predicate"]
        description = pred_data.get("description", predicate)
        try:
            result = eval(predicate, {"__builtins__": {}, **env})
            if result:
                passed += 1
                print(f"  ✓ PASS: {description}")
            else:
                print(f"  ✗ FAIL: {description}")
        except Exception as e:
            print(f"  ✗ ERROR: {description} - {e}")

    return passed, total


def main() -> int:
    """Run eval scenarios."""
    scenarios = load_scenarios()["scenarios"]

    total_passed = 0
    total_predicates = 0

    for scenario in scenarios:
        print(f"\n=== Scenario: {scenario['scenario_id']} ===")
        print(f"Description: {scenario['description']}")

        itinerary = Itinerary.model_validate(scenario["itinerary"])
        result, report, error = run_operation(
            itinerary, scenario["operation"], scenario.get("args", {})
        )
        env = {
            "itinerary": itinerary,
            "result": result,
            "report": report,
            "error": error,
            "len": len,
        }

        passed, total = evaluate_predicates(env, scenario["must_satisfy"])
        total_passed += passed
        total_predicates += total

        print(f"Result: {passed}/{total} predicates passed")

    print("\n=== Summary ===")
    print(f"Total: {total_passed}/{total_predicates} predicates passed")

    if total_passed < total_predicates:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

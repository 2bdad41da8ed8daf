"""
Command-line interface for the bamboo fund workbench.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List

from bamboofund import __version__
from bamboofund.analysis.scenarios import SCENARIO_LIBRARY, ScenarioRunner, format_comparison_table
from bamboofund.config.loader import load_config
from bamboofund.config.schema import FLAT_FIELD_PATHS, Config, InvalidConfiguration
from bamboofund.reporting.export import export_csv, export_json
from bamboofund.reporting.formatting import format_summary, format_year_series
from bamboofund.simulation.runner import SimulationRunner
from bamboofund.validation.sanity_checks import validate_simulation_results

EXIT_INVALID_CONFIG = 2


def _parse_overrides(pairs: List[str]) -> Dict[str, Any]:
    """Parse repeated --set key=value arguments using camelCase keys."""
    overrides = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        if not sep:
            raise InvalidConfiguration(f"Override must be key=value, got '{pair}'")
        if key not in FLAT_FIELD_PATHS:
            raise InvalidConfiguration(f"Unknown configuration key: {key}")
        try:
            overrides[key] = float(raw)
        except ValueError as exc:
            raise InvalidConfiguration(f"{key}: '{raw}' is not a number") from exc
    return overrides


def _build_config(args) -> Config:
    """Load YAML (or defaults) and apply --set overrides."""
    config = load_config(args.config)
    overrides = _parse_overrides(args.set)
    if not overrides:
        return config
    flat = config.to_flat_dict()
    flat.update(overrides)
    return Config.from_flat_dict(flat)


def _print_table(rows: List[Dict[str, str]]) -> None:
    if not rows:
        return
    headers = list(rows[0].keys())
    widths = [max(len(h), *(len(r[h]) for r in rows)) for h in headers]
    print(" | ".join(h.rjust(w) for h, w in zip(headers, widths)))
    print("-+-".join("-" * w for w in widths))
    for row in rows:
        print(" | ".join(row[h].rjust(w) for h, w in zip(headers, widths)))


def cmd_run(args) -> int:
    """Run one simulation and print the summary and yearly table."""
    config = _build_config(args)
    result = SimulationRunner(config).run()

    print(f"Configuration {config.compute_hash()}")
    print()
    for label, value in format_summary(result.summary).items():
        print(f"  {label}: {value}")
    print()
    _print_table(format_year_series(result.year_series))

    if args.csv:
        export_csv(result, args.csv)
        print(f"\nWrote {args.csv}")
    if args.json:
        export_json(result, args.json)
        print(f"Wrote {args.json}")
    return 0


def cmd_scenarios(args) -> int:
    """Compare library scenarios against the base configuration."""
    config = _build_config(args)
    names = args.names or list(SCENARIO_LIBRARY.keys())
    unknown = [n for n in names if n not in SCENARIO_LIBRARY]
    if unknown:
        print(f"Unknown scenarios: {', '.join(unknown)}", file=sys.stderr)
        return 1

    comparison = ScenarioRunner(config).compare_scenarios(names, include_base=True)
    print(format_comparison_table(comparison))
    return 0


def cmd_validate(args) -> int:
    """Run the simulation and report sanity-check findings."""
    config = _build_config(args)
    result = SimulationRunner(config).run()
    warnings = validate_simulation_results(result)

    if not warnings:
        print("No issues found")
        return 0

    for w in warnings:
        line = f"[{w.severity.upper()}] {w.category}: {w.message}"
        if w.details:
            line += f" ({w.details})"
        print(line)

    return 1 if any(w.severity == "error" for w in warnings) else 0


def main(argv: List[str] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="bamboofund-workbench",
        description="Simulate a revolving microfinance fund for bamboo farmers"
    )
    parser.add_argument("--version", action="version", version=f"bamboofund {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-c", "--config", help="YAML configuration file (defaults to packaged defaults)")
    common.add_argument(
        "--set",
        action="append",
        metavar="KEY=VALUE",
        help="Override a field by camelCase key, e.g. --set carbonPricePerTon=80"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", parents=[common], help="Run a simulation")
    run_parser.add_argument("--csv", help="Write the year series to CSV")
    run_parser.add_argument("--json", help="Write the full result to JSON")
    run_parser.set_defaults(func=cmd_run)

    scenarios_parser = subparsers.add_parser("scenarios", parents=[common], help="Compare scenarios")
    scenarios_parser.add_argument("names", nargs="*", help="Scenario names (default: all)")
    scenarios_parser.set_defaults(func=cmd_scenarios)

    validate_parser = subparsers.add_parser("validate", parents=[common], help="Run sanity checks")
    validate_parser.set_defaults(func=cmd_validate)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    try:
        return args.func(args)
    except InvalidConfiguration as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_INVALID_CONFIG


if __name__ == "__main__":
    sys.exit(main())

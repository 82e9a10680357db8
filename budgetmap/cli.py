"""CLI entrypoint for the municipal budget map pipeline."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from budgetmap.api.app import feature_store_from_config, run
from budgetmap.common.config_loader import load_app_config
from budgetmap.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_NOT_FOUND, EXIT_SUCCESS
from budgetmap.common.errors import BudgetMapError
from budgetmap.common.ids import generate_run_id
from budgetmap.common.logging import build_logger, log_event
from budgetmap.pipeline.export import write_exports
from budgetmap.pipeline.locator import locate
from budgetmap.pipeline.search import search_municipalities


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("query", nargs="?", default=None, help="search text for the search command")
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lon", type=float, default=None)
    parser.add_argument("--source", default=None, help="override topology.source from config")
    parser.add_argument("--out-dir", default="./data/out")
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def run_command(args: argparse.Namespace) -> int:
    run_id = generate_run_id()
    log_dir = Path(args.log_dir) if args.log_dir else None
    logger = build_logger(run_id, log_dir=log_dir, level=args.log_level)

    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    config = load_app_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)

    if args.command == "serve":
        run(config)
        return EXIT_SUCCESS

    store = feature_store_from_config(config, args.source)
    log_event(logger, f"{args.command} start", stage=args.command, event="COMMAND_START", status="ok")

    if args.command == "decode":
        counts = write_exports(Path(args.out_dir), store.features(), store.municipalities())
        _print_json(counts)
    elif args.command == "locate":
        if args.lat is None or args.lon is None:
            raise BudgetMapError("locate needs --lat and --lon")
        record = locate((args.lat, args.lon), store.features(), resolver=store.resolve)
        if record is None:
            log_event(logger, "no municipality found at location", stage="locate", event="COMMAND_END", status="not_found")
            return EXIT_NOT_FOUND
        _print_json(record.to_dict())
    elif args.command == "search":
        matches = search_municipalities(store.municipalities(), args.query or "")
        _print_json([record.to_dict() for record in matches])
        if not matches:
            return EXIT_NOT_FOUND

    log_event(logger, f"{args.command} end", stage=args.command, event="COMMAND_END", status="ok")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except BudgetMapError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())

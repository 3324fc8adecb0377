from __future__ import annotations

import argparse
import sys
from typing import Sequence


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="runreport", description="Convergence run reporting")
    subparsers = parser.add_subparsers(dest="command")

    replay_parser = subparsers.add_parser(
        "replay",
        help="Replay a recorded event log and submit the run report",
    )
    replay_parser.add_argument("events_file", help="Path to a JSON-lines event log")
    replay_parser.add_argument("--node", required=True, help="Node name the run converged")
    replay_parser.add_argument(
        "--run-list", nargs="*", default=[], help="Run list items, e.g. recipe[base]"
    )
    replay_parser.add_argument(
        "--dry-run", action="store_true", help="Print the report without contacting the service"
    )
    replay_parser.add_argument("--output", choices=["text", "json"], default="text", help="Output format")
    replay_parser.add_argument("--config", help="Path to config file")
    replay_parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "replay":
        from runreport.cli.replay import replay_command

        sys.exit(
            replay_command(
                events_file=args.events_file,
                node_name=args.node,
                run_list=args.run_list,
                dry_run=args.dry_run,
                output_format=args.output,
                config_path=args.config,
                verbose=args.verbose,
            )
        )

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()

from __future__ import annotations

import argparse
import logging
import sys
import threading
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from crmsync.app import load_registry, run_reconciliation, tracked_windows
from crmsync.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from crmsync.domain.reconciliation import CycleResult

log = logging.getLogger(__name__)

_CANCEL = threading.Event()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--registry",
        type=str,
        required=True,
        help="module:callable returning the MappingRegistry to reconcile",
    )
    common.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output",
    )

    parser = argparse.ArgumentParser(description="Reconcile a local store with Salesforce")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser(
        "run",
        parents=[common],
        help="Run one reconciliation cycle for every mapping",
    )
    run.add_argument(
        "--lookback-hours",
        type=float,
        help="How far back mappings without a completed cycle look (default: everything)",
    )
    run.add_argument(
        "--max-workers",
        type=int,
        help="Number of mappings reconciled concurrently (default: one per mapping)",
    )

    subparsers.add_parser(
        "windows",
        parents=[common],
        help="Show the last completed window per mapping",
    )

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command != "run":
        return
    if args.lookback_hours is not None and args.lookback_hours < 0:
        raise ValueError("Lookback hours must be non-negative")
    if args.max_workers is not None and args.max_workers < 1:
        raise ValueError("Max workers must be at least 1")


def _report(results: Sequence[CycleResult]) -> bool:
    ok = True
    for result in results:
        status = "ok" if result.completed else f"incomplete ({result.error})"
        log.info(
            f"{result.mapping_key}: {status}, collected={result.collected}, "
            f"created={result.initialized.created}, "
            f"updated={result.synchronized.updated_local + result.synchronized.updated_remote}, "
            f"removed={result.cleaned.removed}, failures={len(result.failures)}"
        )
        ok = ok and result.completed
    return ok


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    if parsed_args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        registry = load_registry(parsed_args.registry)
        if parsed_args.command == "run":
            results = run_reconciliation(
                registry,
                max_workers=parsed_args.max_workers,
                initial_lookback_hours=parsed_args.lookback_hours,
                cancel=_CANCEL,
            )
            if not _report(results):
                sys.exit(1)
        elif parsed_args.command == "windows":
            for key, window_end in tracked_windows(registry).items():
                print(f"{key}\t{window_end.isoformat() if window_end else '-'}")  # noqa: T201
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Stop after the current record; a second Ctrl+C exits immediately."""
    if _CANCEL.is_set():
        log.info("Closed by user (Ctrl+C)")
        sys.exit(0)
    log.info("Cancelling after the current record (Ctrl+C again to quit)")
    _CANCEL.set()


def entrypoint() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    entrypoint()

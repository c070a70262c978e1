import argparse
from datetime import UTC, datetime
import logging

from batchbridge.config import get_settings
from batchbridge.database import build_session_factory
from batchbridge.errors import ConfigurationError
from batchbridge.pipeline import build_runner
from batchbridge.scheduler import start_scheduler


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract, remap and import records in batches")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="run one import")
    run_parser.add_argument("--run-key", required=False, help="Key recorded in the run history")

    schedule_parser = subparsers.add_parser("schedule", help="start daily scheduler")
    schedule_parser.add_argument("--run-now", action="store_true", help="also run once immediately")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(f"configuration error: {exc}")
        raise SystemExit(2) from exc

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    session_factory = build_session_factory(settings.database_url)
    if args.command == "schedule":
        start_scheduler(settings, session_factory, run_now=args.run_now)
        return

    run_key = args.run_key or f"manual-{datetime.now(UTC).strftime('%Y%m%dT%H%M%S')}"
    result = build_runner(settings, session_factory=session_factory).run(run_key=run_key)

    report = result.report
    print(
        "run_key={run_key} status={status} total={total} batches={batches} succeeded={succeeded} failed={failed}".format(
            run_key=result.run_key,
            status=result.status,
            total=report.total_records if report else 0,
            batches=report.total_batches if report else 0,
            succeeded=report.succeeded_batches if report else 0,
            failed=report.failed_batches if report else 0,
        )
    )
    if result.status == "failed":
        raise SystemExit(1)


if __name__ == "__main__":
    main()

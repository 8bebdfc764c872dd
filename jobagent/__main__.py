"""Command line entry point: ``python -m jobagent {run,list,exec}``."""
from __future__ import annotations

import argparse
import os
import sys

from jobagent.database import Base, engine
from jobagent.exceptions import JobNotFoundError
from jobagent.jobs import build_registry
from jobagent.models.db.enums import JobOrigin
from jobagent.utils import get_logger, setup_logging, utc_now

logger = get_logger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobagent", description="Maintenance job agent")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))
    parser.add_argument("--log-file", default=os.getenv("LOG_FILE", "logs/jobagent.log"))
    parser.add_argument("--create-tables", action="store_true", help="create missing tables before starting")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="start the agent and run jobs on their schedule")
    sub.add_parser("list", help="list hosted jobs and their next fire time")
    exec_parser = sub.add_parser("exec", help="run one job once and exit")
    exec_parser.add_argument("job", help="job name or job type key")
    return parser


def _list_jobs() -> int:
    registry = build_registry()
    now = utc_now()
    for job in registry:
        next_run = job.trigger.next_after(now).isoformat() if job.trigger else "manual"
        print(f"{job.type_key(registry.prefix):<32} {str(job.trigger or '-'):<14} {next_run:<27} {job.name}")
    return 0


def _exec_job(name: str) -> int:
    from jobagent.scheduling.runner import JobRunner

    registry = build_registry()
    try:
        summary = JobRunner(registry).run(name, origin=JobOrigin.MANUAL)
    except JobNotFoundError:
        print(f"Unknown job '{name}'", file=sys.stderr)
        return 2
    print(summary.model_dump_json(indent=2))
    return 0 if summary.succeeded else 1


def _run_agent() -> int:
    from jobagent.agent import MaintenanceAgent

    MaintenanceAgent(build_registry()).run_forever()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    setup_logging(log_level=args.log_level, log_file=args.log_file or None, enable_console=True)
    if args.create_tables:
        import jobagent.models.db  # noqa: F401  (register tables on Base.metadata)
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
    if args.command == "list":
        return _list_jobs()
    if args.command == "exec":
        return _exec_job(args.job)
    return _run_agent()


if __name__ == "__main__":
    sys.exit(main())

import argparse
import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from . import __version__
from .assembler import JobCreationParameters
from .behaviors import client_request_id
from .client import BatchClient
from .context import BatchAccountContext
from .errors import BatchError
from .logger import get_logger
from .models import JobRecord
from .query import JobFilterOptions
from .wire import PoolInformation

DEFAULT_MAX_COUNT = 1000


def parse_pairs(pairs: Optional[List[str]], flag: str) -> Optional[Dict[str, str]]:
    """Turn repeated KEY=VALUE arguments into a dict, keeping argument order."""
    if not pairs:
        return None
    result: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise SystemExit(f"{flag} expects KEY=VALUE, got: {pair}")
        k, v = pair.split("=", 1)
        result[k.strip()] = v.strip()
    return result


def build_context(args: argparse.Namespace) -> BatchAccountContext:
    try:
        return BatchAccountContext.from_env(
            account_name=args.account_name,
            account_url=args.account_url,
            account_key=args.account_key,
        )
    except BatchError as e:
        raise SystemExit(str(e))


def behaviors_for(args: argparse.Namespace) -> list:
    if args.client_request_id:
        return [client_request_id(args.client_request_id)]
    return []


def print_job(job: JobRecord) -> None:
    print(f"ID: {job.id}")
    print(f"  Display name: {job.display_name}")
    print(f"  State: {job.state}")
    print(f"  Priority: {job.priority}")
    pool = job.pool_information
    if pool is not None:
        print(f"  Pool: {pool.pool_id or '(auto pool)'}")
    if job.creation_time:
        print(f"  Created: {job.creation_time.isoformat()}")
    for name, value in job.metadata_dict().items():
        print(f"  Metadata {name}: {value}")
    print()


def cmd_list(args: argparse.Namespace) -> None:
    context = build_context(args)
    client = BatchClient(get_logger())
    try:
        options = JobFilterOptions(
            context=context,
            job_id=args.job_id,
            job_schedule_id=args.job_schedule_id,
            filter=args.filter,
            select=args.select,
            expand=args.expand,
            max_count=args.max_count,
            additional_behaviors=behaviors_for(args),
        )
    except ValidationError as e:
        raise SystemExit(f"Invalid list options: {e}")

    count = 0
    try:
        for job in client.list_jobs(options):
            count += 1
            if args.json:
                print(json.dumps(job.model_dump(mode="json", exclude_none=True)))
            else:
                print_job(job)
    except BatchError as e:
        raise SystemExit(str(e))
    if not args.json:
        print(f"Found {count} jobs.")


def cmd_create(args: argparse.Namespace) -> None:
    context = build_context(args)
    client = BatchClient(get_logger())

    data: Dict = {}
    if args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            raise SystemExit(f"Input file not found: {input_path}")
        with input_path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    # Flags override the input file
    if args.job_id:
        data["job_id"] = args.job_id
    if args.display_name:
        data["display_name"] = args.display_name
    if args.priority is not None:
        data["priority"] = args.priority
    if args.pool_id:
        data["pool_information"] = PoolInformation(pool_id=args.pool_id)
    metadata = parse_pairs(args.metadata, "--metadata")
    if metadata is not None:
        data["metadata"] = metadata
    env = parse_pairs(args.env, "--env")
    if env is not None:
        data["common_environment_settings"] = env

    if not data.get("job_id"):
        raise SystemExit("No job id given. Use --job-id or set job_id in --input.")

    try:
        parameters = JobCreationParameters(context=context, additional_behaviors=behaviors_for(args), **data)
    except ValidationError as e:
        raise SystemExit(f"Invalid job parameters: {e}")

    try:
        client.create_job(parameters)
    except BatchError as e:
        raise SystemExit(str(e))
    print(f"Created job: {parameters.job_id}")


def cmd_delete(args: argparse.Namespace) -> None:
    context = build_context(args)
    client = BatchClient(get_logger())
    try:
        client.delete_job(context, args.job_id, behaviors_for(args))
    except BatchError as e:
        raise SystemExit(str(e))
    print(f"Deleted job: {args.job_id}")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(prog="batchjobs", description="List, create and delete Batch jobs")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--account-name", help="Batch account name (or set BATCH_ACCOUNT_NAME)")
    parser.add_argument("--account-url", help="Batch account URL (or set BATCH_ACCOUNT_URL)")
    parser.add_argument("--account-key", help="Batch account key (or set BATCH_ACCOUNT_KEY)")
    parser.add_argument("--client-request-id", help="client-request-id header sent with every request")
    parser.add_argument("--verbose", action="store_true", help="Show which queries are sent")
    parser.add_argument("--log-dir", help="Also write a dated log file to this directory")

    subparsers = parser.add_subparsers(dest="command")
    lst = subparsers.add_parser("list", help="List jobs, or get one job by id")
    lst.add_argument("--job-id", help="Get only this job; other filters are ignored")
    lst.add_argument("--job-schedule-id", help="List only jobs created by this job schedule")
    lst.add_argument("--filter", help="OData $filter clause. Example: \"state eq 'active'\"")
    lst.add_argument("--select", help="OData $select clause")
    lst.add_argument("--expand", help="OData $expand clause")
    lst.add_argument("--max-count", type=int, default=DEFAULT_MAX_COUNT,
                     help=f"Maximum number of jobs to return (default: {DEFAULT_MAX_COUNT})")
    lst.add_argument("--json", action="store_true", help="Print one JSON object per job")
    lst.set_defaults(func=cmd_list)

    crt = subparsers.add_parser("create", help="Create a job")
    crt.add_argument("--input", help="Path to a JSON file with job parameters")
    crt.add_argument("--job-id", help="Job id (overrides --input)")
    crt.add_argument("--display-name", help="Display name")
    crt.add_argument("--priority", type=int, help="Priority, -1000 to 1000")
    crt.add_argument("--pool-id", help="Run the job on this existing pool")
    crt.add_argument("--metadata", action="append", help="KEY=VALUE metadata; repeat for more")
    crt.add_argument("--env", action="append", help="KEY=VALUE common environment setting; repeat for more")
    crt.set_defaults(func=cmd_create)

    dlt = subparsers.add_parser("delete", help="Delete a job")
    dlt.add_argument("--job-id", required=True, help="Id of the job to delete")
    dlt.set_defaults(func=cmd_delete)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    logger = get_logger(
        level="DEBUG" if args.verbose else "WARNING",
        enable_file=bool(args.log_dir),
        log_dir=Path(args.log_dir) if args.log_dir else None,
    )

    if hasattr(args, "func"):
        args.func(args)
        logger.log_metrics_summary()
        return

    parser.print_help()


if __name__ == "__main__":
    main()

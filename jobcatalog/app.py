import argparse
import json
from functools import partial
from pathlib import Path
from typing import List

from . import __version__
from .auth import AccessGate
from .catalog import JobCatalog
from .config import Settings
from .env import load_env
from .logger import get_logger
from .provider import fetch_external_jobs
from .query import JobFilters
from .schema import Job, validate_job_fields
from .service import JobService
from .storage import open_store


class App:
    """Wires the store, catalog, gate and feed together for one CLI run."""

    def __init__(self, settings: Settings, store_location: str):
        self.settings = settings
        self.store = open_store(store_location)
        self.catalog = JobCatalog(self.store).load()
        self.gate = AccessGate(self.store, settings.admin_passcode)
        fetcher = partial(fetch_external_jobs, settings.api_url or "", timeout=settings.timeout)
        self.service = JobService(self.catalog, fetcher)


def _read_json(path_str: str) -> dict:
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise SystemExit("Input must be a JSON object of job fields")
    return data


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()] if value else []


def _require_admin(app: App) -> None:
    if not app.gate.is_authenticated():
        print("Admin session required. Run 'jobcatalog login' first.")
        raise SystemExit(2)


def _print_job(job: Job, verbose: bool = False) -> None:
    remote = " (remote)" if job.remote else ""
    print(f"ID: {job.id} [{job.source}]")
    print(f"  {job.title} at {job.company}")
    print(f"  Location: {job.location}{remote}")
    print(f"  Type: {job.type} | Experience: {job.experience} | Salary: {job.salary}")
    print(f"  Posted: {job.posted}")
    if verbose:
        print(f"  URL: {job.url}")
        print(f"  Skills: {', '.join(job.skills) or '-'}")
        print(f"  Requirements: {', '.join(job.requirements) or '-'}")
        print(f"  Created: {job.created_at} | Updated: {job.updated_at}")
        print(f"  Description: {job.description}")
    print()


def cmd_sync(app: App, args: argparse.Namespace) -> None:
    if args.api_url:
        app.service.fetcher = partial(fetch_external_jobs, args.api_url, timeout=app.settings.timeout)
    if not app.service.refresh():
        print("Job feed unavailable; catalog left unchanged.")
        raise SystemExit(1)
    stats = app.catalog.stats()
    print(f"Synced. external={stats['external_count']} local={stats['local_count']} total={stats['total']}")


def cmd_list(app: App, args: argparse.Namespace) -> None:
    jobs = app.catalog.get_all()
    if not jobs:
        print("No jobs in catalog.")
        return
    print(f"Found {len(jobs)} jobs:\n")
    for job in jobs:
        _print_job(job)


def cmd_search(app: App, args: argparse.Namespace) -> None:
    remote = None
    if args.remote:
        remote = True
    elif args.onsite:
        remote = False
    filters = JobFilters(
        location=args.location,
        type=args.type,
        experience=args.experience,
        remote=remote,
        skills=_split(args.skills),
    )
    jobs = app.service.search_jobs(args.query or "", filters, refresh=args.refresh)
    if not jobs:
        print("No matching jobs.")
        return
    print(f"{len(jobs)} matching jobs:\n")
    for job in jobs:
        _print_job(job)


def cmd_show(app: App, args: argparse.Namespace) -> None:
    job = app.catalog.get_by_id(args.id)
    if job is None:
        print(f"Job not found: {args.id}")
        raise SystemExit(1)
    _print_job(job, verbose=True)


def cmd_stats(app: App, args: argparse.Namespace) -> None:
    for key, value in app.catalog.stats().items():
        print(f"{key}: {value}")


def cmd_analytics(app: App, args: argparse.Namespace) -> None:
    print(json.dumps(app.service.market_analytics(), indent=2, ensure_ascii=False))


def cmd_validate(app: App, args: argparse.Namespace) -> None:
    errors = validate_job_fields(_read_json(args.input), partial=args.partial)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def cmd_login(app: App, args: argparse.Namespace) -> None:
    if app.gate.authenticate(args.passcode):
        print("Admin session started.")
        return
    print("Invalid passcode. Access denied.")
    raise SystemExit(2)


def cmd_logout(app: App, args: argparse.Namespace) -> None:
    app.gate.logout()
    print("Logged out.")


def cmd_status(app: App, args: argparse.Namespace) -> None:
    print("Admin session: " + ("active" if app.gate.is_authenticated() else "none"))


def cmd_add(app: App, args: argparse.Namespace) -> None:
    _require_admin(app)
    data = _read_json(args.input)
    errors = validate_job_fields(data)
    if errors:
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    job = app.catalog.add(data)
    print(f"Added: {job.id}")


def cmd_update(app: App, args: argparse.Namespace) -> None:
    _require_admin(app)
    data = _read_json(args.input)
    errors = validate_job_fields(data, partial=True)
    if errors:
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    job = app.catalog.update(args.id, data)
    if job is None:
        print(f"Job not found: {args.id}")
        raise SystemExit(1)
    print(f"Updated: {job.id}")


def cmd_delete(app: App, args: argparse.Namespace) -> None:
    _require_admin(app)
    if len(args.ids) == 1:
        removed = 1 if app.catalog.delete_one(args.ids[0]) else 0
    else:
        removed = app.catalog.delete_many(args.ids)
    print(f"Deleted {removed} job(s).")


def cmd_delete_all(app: App, args: argparse.Namespace) -> None:
    _require_admin(app)
    if not args.yes:
        raise SystemExit("Refusing to delete every job without --yes")
    print(f"Deleted {app.catalog.delete_all()} job(s).")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobcatalog", description="Job catalog: feed sync, search and admin tools")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument(
        "--store",
        default=settings.store,
        help="Store location: directory, *.db SQLite file, or :memory: (default: JOBCATALOG_STORE or data)",
    )

    subparsers = parser.add_subparsers(dest="command")

    syn = subparsers.add_parser("sync", help="Replace external jobs with the current job feed")
    syn.add_argument("--api-url", help="Job feed base URL (or set JOBCATALOG_API_URL)")
    syn.set_defaults(func=cmd_sync)

    lst = subparsers.add_parser("list", help="List all jobs in the catalog")
    lst.set_defaults(func=cmd_list)

    sea = subparsers.add_parser("search", help="Search jobs by text and filters")
    sea.add_argument("--query", help="Free text matched against title, company, description and skills")
    sea.add_argument("--location", help="Location substring")
    sea.add_argument("--type", help="Exact employment type, e.g. full-time")
    sea.add_argument("--experience", help="Experience substring")
    remote = sea.add_mutually_exclusive_group()
    remote.add_argument("--remote", action="store_true", help="Only remote jobs")
    remote.add_argument("--onsite", action="store_true", help="Only non-remote jobs")
    sea.add_argument("--skills", help="Comma-separated skills; any one must match")
    sea.add_argument("--refresh", action="store_true", help="Sync from the job feed before searching")
    sea.set_defaults(func=cmd_search)

    sho = subparsers.add_parser("show", help="Show one job in full")
    sho.add_argument("--id", required=True, help="Job id")
    sho.set_defaults(func=cmd_show)

    sta = subparsers.add_parser("stats", help="Catalog statistics")
    sta.set_defaults(func=cmd_stats)

    ana = subparsers.add_parser("analytics", help="Trending skills and top companies")
    ana.set_defaults(func=cmd_analytics)

    val = subparsers.add_parser("validate", help="Validate a job JSON file for add/update")
    val.add_argument("--input", required=True, help="Path to job JSON input")
    val.add_argument("--partial", action="store_true", help="Validate as an update (fields optional)")
    val.set_defaults(func=cmd_validate)

    lin = subparsers.add_parser("login", help="Start an admin session")
    lin.add_argument("--passcode", required=True, help="Admin passcode")
    lin.set_defaults(func=cmd_login)

    lout = subparsers.add_parser("logout", help="End the admin session")
    lout.set_defaults(func=cmd_logout)

    st = subparsers.add_parser("status", help="Show whether an admin session is active")
    st.set_defaults(func=cmd_status)

    add = subparsers.add_parser("add", help="Add a job from a JSON file (admin)")
    add.add_argument("--input", required=True, help="Path to job JSON input")
    add.set_defaults(func=cmd_add)

    upd = subparsers.add_parser("update", help="Update a job from a JSON file of changed fields (admin)")
    upd.add_argument("--id", required=True, help="Job id")
    upd.add_argument("--input", required=True, help="Path to JSON with changed fields")
    upd.set_defaults(func=cmd_update)

    dele = subparsers.add_parser("delete", help="Delete one or more jobs by id (admin)")
    dele.add_argument("ids", nargs="+", help="Job ids")
    dele.set_defaults(func=cmd_delete)

    dall = subparsers.add_parser("delete-all", help="Delete every job (admin)")
    dall.add_argument("--yes", action="store_true", help="Confirm deletion")
    dall.set_defaults(func=cmd_delete_all)

    return parser


def main(argv=None):
    # Load .env if present (JOBCATALOG_API_URL, JOBCATALOG_ADMIN_PASSCODE, etc.)
    load_env()
    settings = Settings.from_env()
    get_logger().configure(
        level=settings.log_level,
        log_dir=Path(settings.log_dir),
        enable_file=settings.log_to_file,
    )

    parser = build_parser(settings)
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if not hasattr(args, "func"):
        parser.print_help()
        return

    app = App(settings, args.store)
    args.func(app, args)


if __name__ == "__main__":
    main()

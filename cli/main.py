"""MetaTest CLI - metamorphic testing command-line interface."""

import argparse
import asyncio
import json
import logging
import subprocess
import sys
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import DEFAULT_CONFIG_NAME, dump_default_config, find_project_root, load_config
from core.errors import MetaTestError


def configure_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _service(args):
    from execution.service import MetaTestService

    return MetaTestService(config=load_config(args.config))


def _print_models(descriptors, grouped: bool = False):
    if grouped:
        groups: dict = {}
        for d in descriptors:
            groups.setdefault(d.task.label, []).append(d)
        for label, items in groups.items():
            print(f"\n{label} ({len(items)})")
            for d in items:
                _print_model(d)
        return
    for d in descriptors:
        _print_model(d)


def _print_model(d):
    marker = "*" if d.is_dynamic else " "
    print(f"  {marker} {d.id:<55} {d.task.label:<20} {d.downloads:>12,}")


def _print_cycle(result, total: int):
    print(result.message)
    if result.failed_sources:
        print(f"  ({len(result.failed_sources)} sources failed: {', '.join(result.failed_sources)})")
    _print_models(result.merge.added)
    print(f"\n{total} models in catalog")


# ── Commands ──────────────────────────────────────────────────────────

def cmd_init(args):
    """Initialize a new MetaTest project."""
    root = find_project_root()
    config_path = root / DEFAULT_CONFIG_NAME
    if config_path.exists():
        print(f"  [ok] {DEFAULT_CONFIG_NAME} already exists")
    else:
        dump_default_config(config_path)
        print(f"  [ok] {DEFAULT_CONFIG_NAME} created")

    env_path = root / ".env"
    if not env_path.exists():
        env_path.write_text("# METATEST_API_URL=\n# HF_TOKEN=\n", encoding="utf-8")
        print("  [ok] .env created (set METATEST_API_URL / HF_TOKEN)")
    else:
        print("  [ok] .env already exists")


async def _models(args):
    from catalog.service import CycleStatus

    service = _service(args)
    try:
        session, result = await service.create_session()
        if result.status is CycleStatus.FAILED:
            print(result.message)
            return 1
        print(f"{len(session.catalog)} models available")
        _print_models(session.catalog, grouped=args.grouped)
        return 0
    finally:
        await service.aclose()


async def _load_more(args):
    service = _service(args)
    try:
        session, _ = await service.create_session()
        result = await session.load_more()
        _print_cycle(result, len(session.catalog))
        return 0
    finally:
        await service.aclose()


async def _search(args):
    service = _service(args)
    try:
        session, _ = await service.create_session(seed=not args.no_seed)
        result = await session.search(args.term)
        _print_cycle(result, len(session.catalog))
        return 0
    finally:
        await service.aclose()


async def _run(args):
    service = _service(args)
    try:
        result = await service.run_test(args.model, args.mr_type, args.input)
        status = "VIOLATED" if result.is_violated else "PASSED"
        print(f"[{status}] {result.verdict.verdict}")
        if result.verdict.transformed_input:
            print(f"  transformed: {result.verdict.transformed_input}")
        print(f"  record: {result.record.id}")
        return 0
    finally:
        await service.aclose()


async def _results(args):
    service = _service(args)
    try:
        is_violated = True if args.violated else (False if args.passed else None)
        results = service.get_results(
            model_id=args.model,
            mr_type=args.mr_type,
            is_violated=is_violated,
            limit=args.limit,
        )
        for r in results["results"]:
            mark = "FAIL" if r["is_violated"] else "PASS"
            print(f"  [{mark}] {r['timestamp_utc'][:19]} {r['model_id']:<40} {r['mr_type']:<12} {r['source_input'][:40]}")
        print(f"\n{results['total']} results")
        return 0
    finally:
        await service.aclose()


async def _analytics(args):
    service = _service(args)
    try:
        report = service.get_analytics(args.model)
        if args.json:
            print(json.dumps(report.to_dict(), indent=2))
            return 0

        print(f"\n{'Model':<45} {'Tests':>6} {'Viol':>6} {'MRs':>4} {'Reliab':>7}")
        print("-" * 72)
        for stat in report.overall:
            print(f"{stat.model_id:<45} {stat.total_tests:>6} {stat.total_violations:>6} "
                  f"{stat.unique_mrs:>4} {stat.reliability_score:>6}%")

        print(f"\n{'Relation':<20} {'Tests':>6} {'Viol':>6} {'Pass':>7}")
        print("-" * 42)
        for rel in report.by_relation:
            print(f"{rel.mr_type:<20} {rel.total_tests:>6} {rel.violations:>6} {rel.pass_rate:>6.0f}%")

        print(f"\nTotal tests: {report.total_tests}  violations: {report.total_violations}  "
              f"avg reliability: {report.average_reliability}%")
        for bucket in report.recent_trends():
            print(f"  {bucket.date.isoformat()}  pass {bucket.daily_passes}  fail {bucket.daily_violations}")

        low = report.low_reliability_models()
        if low:
            print("\nSome models show low reliability. Consider reviewing metamorphic violations "
                  "for fairness and consistency issues.")
        return 0
    finally:
        await service.aclose()


async def _mr_types(args):
    service = _service(args)
    try:
        for mr in await service.list_mr_types(args.category):
            print(f"  {mr.value:<12} {mr.label:<26} {mr.description}")
        return 0
    finally:
        await service.aclose()


def cmd_dashboard(args):
    """Launch the web dashboard."""
    print(f"Starting dashboard on http://{args.host}:{args.port}")
    subprocess.run([
        sys.executable, "-m", "uvicorn",
        "dashboard.app:app",
        "--host", args.host,
        "--port", str(args.port),
        "--reload" if args.reload else "--no-access-log",
    ], cwd=str(PROJECT_ROOT))


# ── Argument parser ───────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metatest",
        description="MetaTest - metamorphic testing for AI models",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", "-c", help=f"Path to {DEFAULT_CONFIG_NAME}")
    sub = parser.add_subparsers(dest="command", help="Available commands")

    sub.add_parser("init", help="Initialize a new MetaTest project", description="Initialize a new MetaTest project")

    p_models = sub.add_parser("models", help="List the backend model catalog")
    p_models.add_argument("--grouped", "-g", action="store_true", help="Group by task")

    sub.add_parser("load-more", help="Fetch more models for every task bucket")

    p_search = sub.add_parser("search", help="Search the model registry")
    p_search.add_argument("term", help="Free-text search term")
    p_search.add_argument("--no-seed", action="store_true", help="Skip loading the backend catalog first")

    p_run = sub.add_parser("run", help="Run one metamorphic test")
    p_run.add_argument("--model", "-m", help="Model id, e.g. org/name")
    p_run.add_argument("--mr-type", "-r", default="SYNONYM", help="Metamorphic relation type")
    p_run.add_argument("--input", "-i", help="Source input text")

    p_results = sub.add_parser("results", help="List recorded test outcomes")
    p_results.add_argument("--model", "-m", help="Filter by model id")
    p_results.add_argument("--mr-type", "-r", help="Filter by relation type")
    verdict = p_results.add_mutually_exclusive_group()
    verdict.add_argument("--violated", action="store_true", help="Only violations")
    verdict.add_argument("--passed", action="store_true", help="Only passes")
    p_results.add_argument("--limit", type=int, default=50, help="Maximum rows")

    p_analytics = sub.add_parser("analytics", help="Show reliability analytics")
    p_analytics.add_argument("--model", "-m", help="Scope to one model id")
    p_analytics.add_argument("--json", action="store_true", help="Print the raw report")

    p_mr = sub.add_parser("mr-types", help="List metamorphic relation types")
    p_mr.add_argument("--category", help="Filter by category")

    p_dash = sub.add_parser("dashboard", help="Launch web dashboard")
    p_dash.add_argument("--port", type=int, default=8000, help="Port number")
    p_dash.add_argument("--host", default="127.0.0.1", help="Host address")
    p_dash.add_argument("--reload", action="store_true", help="Enable auto-reload")

    return parser


ASYNC_COMMANDS = {
    "models": _models,
    "load-more": _load_more,
    "search": _search,
    "run": _run,
    "results": _results,
    "analytics": _analytics,
    "mr-types": _mr_types,
}


def main():
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    try:
        if args.command == "init":
            cmd_init(args)
        elif args.command == "dashboard":
            cmd_dashboard(args)
        else:
            sys.exit(asyncio.run(ASYNC_COMMANDS[args.command](args)))
    except MetaTestError as e:
        print(f"Error: {e}")
        sys.exit(getattr(e, "exit_code", 1))


if __name__ == "__main__":
    main()

"""Command-line interface for crawling, inspecting and searching documentation."""

import argparse
import asyncio
import json
import logging
import sys

from docweave.config import get_settings
from docweave.exceptions import DocweaveError
from docweave.models import IndexSearchFilters, SearchOptions
from docweave.services import DocumentationService


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docweave",
        description="Crawl, version and index API documentation across sources.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--sources-file", help="YAML crawler configuration (overrides SOURCES_FILE)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    crawl = subparsers.add_parser("crawl", help="Run crawl jobs once")
    target = crawl.add_mutually_exclusive_group()
    target.add_argument("--source", help="Only crawl jobs of this source id")
    target.add_argument("--job", help="Only run the job with this id")

    subparsers.add_parser("status", help="Show scheduler, store and index statistics")

    search = subparsers.add_parser("search", help="Search the index")
    search.add_argument("query", help="Free-text query")
    search.add_argument("--limit", type=int, default=10, help="Maximum results (default: 10)")
    search.add_argument("--source", action="append", dest="sources", help="Restrict to a source (repeatable)")
    search.add_argument(
        "--documents", action="store_true", help="Search stored documents instead of indexed entities"
    )
    search.add_argument("--json", action="store_true", dest="json_output", help="Output JSON")

    subparsers.add_parser("patterns", help="List integration patterns")

    serve = subparsers.add_parser("serve", help="Run the crawl scheduler until interrupted")
    serve.add_argument("--now", action="store_true", help="Run all jobs immediately on start")

    clear = subparsers.add_parser("clear", help="Delete every stored document and empty the index")
    clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    return parser


async def _run_crawl(service: DocumentationService, args: argparse.Namespace) -> int:
    if args.job:
        return 0 if await service.run_job_now(args.job) else 1
    if args.source:
        succeeded = await service.run_source_jobs(args.source)
        return 0 if succeeded else 1

    await service.run_all_jobs()
    stats = service.get_scheduler_stats()
    print(f"Jobs: {stats.total_jobs} total, {stats.failed_jobs} failed, {stats.pending_jobs} pending")
    return 0 if stats.failed_jobs == 0 else 1


def _print_status(service: DocumentationService) -> None:
    scheduler = service.get_scheduler_stats()
    store = service.get_store_stats()
    index = service.get_index_stats()

    print("Scheduler")
    print(f"  jobs: {scheduler.total_jobs} (pending {scheduler.pending_jobs}, failed {scheduler.failed_jobs})")
    print(f"  next run: {scheduler.next_run_time.isoformat() if scheduler.next_run_time else '-'}")
    for job in service.scheduler.get_jobs():
        error = f"  error: {job.last_error}" if job.last_error else ""
        print(f"    [{job.status.value:9}] {job.id} {job.url} retries={job.retry_count}{error}")

    print("Store")
    print(f"  documents: {store.total_documents}, size: {store.storage_size} bytes")
    print(f"  last updated: {store.last_updated.isoformat() if store.last_updated else '-'}")
    for source, count in sorted(store.source_breakdown.items()):
        print(f"    {source}: {count}")

    print("Index")
    print(
        f"  endpoints: {index.total_endpoints}, schemas: {index.total_schemas}, "
        f"code examples: {index.total_code_examples}, concepts: {index.total_concepts}, "
        f"relationships: {index.total_relationships}"
    )


def _print_search(service: DocumentationService, args: argparse.Namespace) -> None:
    if args.documents:
        results = service.search_documents(args.query, SearchOptions(sources=args.sources, limit=args.limit))
        if args.json_output:
            print(json.dumps([r.model_dump(mode="json", exclude={"document": {"content"}}) for r in results], indent=2))
            return
        for i, result in enumerate(results, 1):
            print(f"{i}. [{result.score:.0f}] {result.document.title} ({result.document.source})")
            print(f"   {result.document.url}")
            print(f"   {result.snippet}")
        return

    hits = service.search(args.query, IndexSearchFilters(sources=args.sources, limit=args.limit))
    if args.json_output:
        print(json.dumps([h.model_dump(mode="json") for h in hits], indent=2))
        return
    for i, hit in enumerate(hits, 1):
        print(f"{i}. [{hit.relevance_score:.2f}] {hit.type.value}: {hit.title} ({hit.source})")
        if hit.content:
            print(f"   {hit.content[:160]}")


def _print_patterns(service: DocumentationService) -> None:
    for pattern in service.get_integration_patterns():
        print(f"{pattern.name} [{pattern.difficulty}] - {', '.join(pattern.sources)}")
        print(f"  {pattern.description}")
        for step in pattern.steps:
            hint = f" ({step.endpoint_hint})" if step.endpoint_hint else ""
            print(f"  {step.order}. {step.source}: {step.action}{hint}")
        print(f"  prerequisites: {', '.join(pattern.prerequisites)}")
        print(f"  code examples: {len(pattern.code_example_ids)}")


async def _serve(service: DocumentationService, run_now: bool) -> int:
    service.start(run_immediately=run_now)
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await service.stop()


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.sources_file:
        settings = settings.model_copy(update={"sources_file": args.sources_file})

    service = DocumentationService(settings=settings)
    service.initialize()

    if args.command == "serve":
        return await _serve(service, args.now)

    try:
        if args.command == "crawl":
            return await _run_crawl(service, args)
        if args.command == "status":
            _print_status(service)
        elif args.command == "search":
            _print_search(service, args)
        elif args.command == "patterns":
            _print_patterns(service)
        elif args.command == "clear":
            if not args.yes and input("Delete all stored documentation? [y/N] ").strip().lower() != "y":
                print("Aborted")
                return 1
            print(f"Deleted {service.clear()} documents")
        return 0
    finally:
        await service.stop()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except (DocweaveError, ValueError, FileNotFoundError) as exc:
        logging.error(f"Error: {exc}")
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())

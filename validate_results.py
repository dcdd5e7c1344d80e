"""rider-reconcile – validate database results against legacy HTML result pages.

Usage:
    python validate_results.py -c toronto -y 2024
    python validate_results.py -c ottawa -y 2023 -o json > report.json
    python validate_results.py -c permanent -y 2022 -o markdown
    python validate_results.py -c niagara --all-years -o markdown --output-dir validation-reports
"""

import argparse
import contextlib
import dataclasses
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from reconcile import ValidationReport
from reconcile.chapters import all_urls_for_chapter, build_results_url, valid_chapters
from reconcile.comparator import compare_data
from reconcile.config import Settings, load_settings
from reconcile.errors import FetchError, InputError, PageNotFoundError, ReconcileError
from reconcile.extraction import LLMExtractor
from reconcile.fetcher import clear_cache, fetch_html
from reconcile.reporter import (
    OUTPUT_FORMATS,
    build_report,
    generate_json_report,
    generate_markdown_report,
    print_console_report,
)
from reconcile.store import ResultsStore

log = logging.getLogger('validate_results')

REPORT_SUFFIXES = {'console': 'txt', 'json': 'json', 'markdown': 'md'}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Validate database results against HTML source pages.',
        prog='validate_results.py',
    )
    parser.add_argument(
        '-c', '--chapter', required=True, choices=valid_chapters(),
        help='Chapter to validate',
    )
    parser.add_argument(
        '-y', '--year', type=int,
        help='Year to validate (e.g. 2024)',
    )
    parser.add_argument(
        '--all-years', action='store_true',
        help='Validate every year the chapter published results (batch mode)',
    )
    parser.add_argument(
        '--output-dir', type=Path,
        help='Directory for one report per year (batch mode)',
    )
    parser.add_argument(
        '-o', '--output', choices=OUTPUT_FORMATS, default='console',
        help='Output format (default: console)',
    )
    parser.add_argument(
        '--no-cache', action='store_true',
        help='Force re-fetch of the HTML page (ignore cache)',
    )
    parser.add_argument(
        '--clear-cache', action='store_true',
        help='Delete the cached page(s) before validating',
    )
    parser.add_argument(
        '--db', type=Path,
        help='Path to the results database (default: RECONCILE_DB_PATH or ./results.db)',
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Show detailed progress',
    )
    return parser


def run_validation(
    chapter: str,
    year: int,
    settings: Settings,
    use_cache: bool = True,
    extractor: Optional[LLMExtractor] = None,
    store: Optional[ResultsStore] = None,
) -> ValidationReport:
    """Fetch, extract, query, compare and build the report.

    Each stage runs to completion before the next one starts.

    Raises:
        InputError: Invalid chapter or year.
        FetchError: The HTML page could not be fetched.
        ExtractionError: The extractor failed or returned a malformed payload.
        DataStoreError: The database query failed.
    """
    url = build_results_url(chapter, year)
    log.info("Validating %s %d: %s", chapter, year, url)

    fetched = fetch_html(url, use_cache=use_cache, cache_dir=settings.cache_dir)
    if fetched.error:
        if fetched.not_found:
            raise PageNotFoundError(fetched.error)
        raise FetchError(fetched.error)
    if not fetched.html:
        raise FetchError(f"Empty HTML response: {url}")
    log.info("HTML %s", 'from cache' if fetched.from_cache else 'fetched fresh')

    extractor = extractor or LLMExtractor(api_key=settings.openai_api_key, model=settings.openai_model)
    source_events = extractor.extract(fetched.html)
    log.info("Found %d events in HTML", len(source_events))

    store = store or ResultsStore(settings.db_path)
    db_events = store.fetch_db_events(chapter, year)
    log.info("Found %d events in database", len(db_events))

    matches = compare_data(source_events, db_events)

    return build_report(
        chapter=chapter,
        year=year,
        url=url,
        fetched_at=datetime.now(timezone.utc).isoformat(),
        from_cache=fetched.from_cache,
        source_events=source_events,
        db_events=db_events,
        matches=matches,
    )


def write_report(report: ValidationReport, output: str) -> None:
    """Write the report to stdout in the requested format."""
    if output == 'json':
        print(generate_json_report(report))
    elif output == 'markdown':
        print(generate_markdown_report(report))
    else:
        print_console_report(report)


def report_path(output_dir: Path, chapter: str, year: int, output: str) -> Path:
    """File name of a batch report, e.g. ``2024-toronto-validation-report.md``."""
    return output_dir / f"{year}-{chapter}-validation-report.{REPORT_SUFFIXES[output]}"


def run_all_years(chapter: str, settings: Settings, output: str, output_dir: Path, use_cache: bool = True) -> int:
    """Validate every year of a chapter and write one report file per year.

    A failing year is logged and skipped; the remaining years still run.

    Returns:
        Number of years that failed.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    failed = []
    for year, _url in all_urls_for_chapter(chapter):
        log.info("Processing %s %d ...", chapter, year)
        try:
            report = run_validation(chapter, year, settings, use_cache=use_cache)
        except ReconcileError as exc:
            log.error("Failed for %s %d: %s", chapter, year, exc)
            failed.append(year)
            continue

        path = report_path(output_dir, chapter, year, output)
        with open(path, 'w', encoding='utf-8') as f, contextlib.redirect_stdout(f):
            write_report(report, output)
        log.info("Report written to %s", path)

    if failed:
        log.warning("%d of %s years failed: %s", len(failed), chapter, ', '.join(map(str, failed)))
    return len(failed)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point. Discrepancies are findings, not failures: exit 0."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
        stream=sys.stderr,
    )

    if args.year is None and not args.all_years:
        parser.error('Either --year or --all-years is required.')

    if args.year is not None and args.all_years:
        parser.error('--year and --all-years cannot be combined.')

    if args.all_years and not args.output_dir:
        parser.error('--output-dir is required with --all-years.')

    if args.all_years:
        urls = [url for _year, url in all_urls_for_chapter(args.chapter)]
    else:
        try:
            urls = [build_results_url(args.chapter, args.year)]
        except InputError as exc:
            parser.error(str(exc))

    settings = load_settings()
    if args.db:
        settings = dataclasses.replace(settings, db_path=args.db)

    if args.clear_cache:
        for url in urls:
            clear_cache(url, settings.cache_dir)
        log.info("Cleared %d cached page(s) in %s", len(urls), settings.cache_dir)

    if args.all_years:
        failed = run_all_years(args.chapter, settings, args.output, args.output_dir, use_cache=not args.no_cache)
        return 1 if failed else 0

    try:
        report = run_validation(args.chapter, args.year, settings, use_cache=not args.no_cache)
    except ReconcileError as exc:
        log.error("%s: %s", exc.__class__.__name__, exc)
        return 1

    write_report(report, args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())

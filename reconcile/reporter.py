"""Report generation for validation results (console, JSON, Markdown)."""

import dataclasses
import json
import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from reconcile import DbEvent, EventMatch, ParsedEvent, ValidationReport, ValidationSummary

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'

# Events count as matched above this confidence
MATCHED_EVENT_CONFIDENCE = 0.6

OUTPUT_FORMATS = ('console', 'json', 'markdown')

SEVERITY_TAGS = {
    'error': '[ERROR]',
    'warning': '[WARN]',
    'info': '[INFO]',
}

SEVERITY_BADGES = {
    'error': '🔴',
    'warning': '🟡',
    'info': '🔵',
}


def build_summary(
    source_events: list[ParsedEvent],
    db_events: list[DbEvent],
    matches: list[EventMatch],
) -> ValidationSummary:
    """Count events, riders and discrepancies by severity."""
    severities = [d.severity for m in matches for d in m.discrepancies]
    return ValidationSummary(
        events_in_source=len(source_events),
        events_in_db=len(db_events),
        events_matched=sum(
            1 for m in matches
            if m.db_event is not None and m.match_confidence > MATCHED_EVENT_CONFIDENCE
        ),
        riders_validated=sum(len(e.riders) for e in source_events),
        errors_found=severities.count('error'),
        warnings_found=severities.count('warning'),
        infos_found=severities.count('info'),
    )


def build_report(
    chapter: str,
    year: int,
    url: str,
    fetched_at: str,
    from_cache: bool,
    source_events: list[ParsedEvent],
    db_events: list[DbEvent],
    matches: list[EventMatch],
) -> ValidationReport:
    """Assemble a ValidationReport including its summary."""
    return ValidationReport(
        chapter=chapter,
        year=year,
        url=url,
        fetched_at=fetched_at,
        from_cache=from_cache,
        summary=build_summary(source_events, db_events, matches),
        events=matches,
    )


def _event_title(match: EventMatch) -> tuple[str, str]:
    """(date, name) of an event, preferring the database record."""
    if match.db_event is not None:
        return match.db_event.date, match.db_event.name
    return match.source_event.date, match.source_event.name


def _events_with_issues(report: ValidationReport) -> list[dict]:
    rows = []
    for match in report.events:
        if not match.discrepancies:
            continue
        event_date, event_name = _event_title(match)
        rows.append({
            'date': event_date,
            'name': event_name,
            'discrepancies': match.discrepancies,
        })
    return rows


def print_console_report(report: ValidationReport) -> None:
    """Print a report for the terminal to stdout.

    Args:
        report: The validation report.
    """
    divider = '=' * 70
    sub_divider = '-' * 40
    s = report.summary

    print()
    print(divider)
    print(f"VALIDATION REPORT: {report.chapter.upper()} {report.year}")
    print(divider)
    print(f"Source: {report.url}")
    print(f"Fetched: {report.fetched_at}{' (from cache)' if report.from_cache else ''}")
    print()
    print("SUMMARY")
    print(sub_divider)
    print(f"Events in HTML:     {s.events_in_source:>5}")
    print(f"Events in DB:       {s.events_in_db:>5}")
    print(f"Events matched:     {s.events_matched:>5}")
    print(f"Riders validated:   {s.riders_validated:>5}")
    print(f"Errors:             {s.errors_found:>5}")
    print(f"Warnings:           {s.warnings_found:>5}")
    print(f"Info:               {s.infos_found:>5}")
    print()

    events = _events_with_issues(report)
    if not events:
        print("No discrepancies found!")
    else:
        print("DISCREPANCIES")
        print(sub_divider)
        for event in events:
            print(f"\n{event['date']} - {event['name']}")
            for d in event['discrepancies']:
                print(f"  {SEVERITY_TAGS[d.severity]} {d.description}")
                if d.source_value:
                    print(f"     HTML: {d.source_value}")
                if d.db_value:
                    print(f"     DB:   {d.db_value}")

    print()
    print(divider)


def generate_json_report(report: ValidationReport) -> str:
    """Serialize a report as indented JSON."""
    return json.dumps(dataclasses.asdict(report), indent=2, ensure_ascii=False)


def generate_markdown_report(report: ValidationReport) -> str:
    """Render a report as Markdown using Jinja2.

    Args:
        report: The validation report.

    Returns:
        Markdown text.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    template = env.get_template('report.md.j2')

    return template.render(
        report=report,
        summary=report.summary,
        events=_events_with_issues(report),
        badges=SEVERITY_BADGES,
    )

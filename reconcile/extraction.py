"""Structured data extraction from legacy HTML results pages.

The LLM output is untrusted: ``parse_events_payload`` is the single place
where it is validated and converted into ParsedEvent records.
"""

import logging
import re
from typing import Any, Optional

from bs4 import BeautifulSoup, Comment
from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, ValidationError, field_validator

from reconcile import ParsedEvent, ParsedRiderResult, RiderStatus
from reconcile.config import DEFAULT_OPENAI_MODEL
from reconcile.errors import ExtractionError

log = logging.getLogger(__name__)

MAX_COMPLETION_TOKENS = 16000

SYSTEM_PROMPT = """You are a data extraction assistant for cycling event results.
You will receive HTML content from randonneuring (long-distance cycling) result pages.

Your task is to extract ALL events and rider results from the HTML.

For each event, extract:
- date: The event date in YYYY-MM-DD format
- name: The route/event name (e.g., "Merrickville 200", "Lake and Vines 300")
- distance: The distance in kilometers (extract from the name if mentioned)

For each rider in each event, extract:
- name: Full name as written
- firstName: The first name (keep hyphenated first names like "Jean-Pierre" whole)
- lastName: The last name (remaining words after the first name)
- time: Completion time in H:MM or HH:MM format, or null if DNF/DNS
- status: "finished" if they have a time, "dnf" if marked DNF, "dns" if marked DNS

IMPORTANT:
- Entries are typically "Rider Name - HH:MM" or "Rider Name - DNF"
- Names may look like "O'Callahan", "MacGregor", "Van der Berg", "de Vries"
- Times are hours:minutes ("10:30" means 10 hours 30 minutes)
- Entries marked "(unofficial)" are still included with status "finished"
- Dates may be written as "October 18, 2025" or "Apr 15, 2024"; always convert to YYYY-MM-DD

Return ONLY valid JSON in this exact format:
{"events": [{"date": "2025-04-15", "name": "Merrickville 200", "distance": 200,
  "riders": [{"name": "John Smith", "firstName": "John", "lastName": "Smith",
              "time": "10:30", "status": "finished"}]}]}"""


NOISE_TAGS = ['script', 'style', 'nav', 'header', 'footer']

_WHITESPACE_RE = re.compile(r'\s+')
_TIME_RE = re.compile(r'^(\d+):(\d+)$')


def clean_html(html: str) -> str:
    """Remove scripts, styles, navigation, headers, footers and comments."""
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup(NOISE_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()
    return _WHITESPACE_RE.sub(' ', str(soup)).strip()


def normalize_extracted_time(value: str) -> str:
    """Zero-pad the minutes of an extracted time ("13:2" -> "13:02")."""
    match = _TIME_RE.match(value.strip())
    if match:
        return f"{match.group(1)}:{match.group(2).zfill(2)}"
    return value.strip()


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class RiderPayload(BaseModel):
    """One rider entry as returned by the extractor."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    first_name: Optional[str] = Field(default=None, alias='firstName')
    last_name: Optional[str] = Field(default=None, alias='lastName')
    time: Optional[str] = None
    status: Optional[RiderStatus] = None

    @field_validator('first_name', 'last_name', 'time', mode='before')
    @classmethod
    def blank_is_missing(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator('status', mode='before')
    @classmethod
    def lowercase_status(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return value.lower() if isinstance(value, str) else value

    @field_validator('time')
    @classmethod
    def pad_minutes(cls, value: Optional[str]) -> Optional[str]:
        return normalize_extracted_time(value) if value else None

    def to_parsed(self) -> ParsedRiderResult:
        first_name = self.first_name or ''
        last_name = self.last_name or ''
        if not first_name and not last_name:
            # Fall back to splitting the full name on the first space
            first_name, _, last_name = self.name.strip().partition(' ')
        return ParsedRiderResult(
            full_name=self.name.strip(),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            time=self.time,
            status=self.status,
        )


class EventPayload(BaseModel):
    """One event entry as returned by the extractor."""

    date: str = Field(pattern=r'^\d{4}-\d{2}-\d{2}$')
    name: str
    distance: StrictInt | StrictFloat
    riders: list[RiderPayload] = Field(default_factory=list)

    @field_validator('date', 'name', mode='before')
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator('distance', mode='before')
    @classmethod
    def reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError('distance must be a number')
        return value

    def to_parsed(self) -> ParsedEvent:
        return ParsedEvent(
            date=self.date,
            name=self.name,
            distance_km=float(self.distance),
            riders=[r.to_parsed() for r in self.riders],
        )


class EventsPayload(BaseModel):
    """Top-level extractor response: ``{"events": [...]}``."""

    events: list[EventPayload]


def parse_events_payload(payload: Any) -> list[ParsedEvent]:
    """Validate an extractor payload and convert it to ParsedEvent records.

    Args:
        payload: JSON text or an already decoded object of the form
            ``{"events": [...]}``.

    Returns:
        Parsed events in payload order.

    Raises:
        ExtractionError: If the payload is not valid JSON or has the wrong shape.
    """
    try:
        if isinstance(payload, (str, bytes)):
            parsed = EventsPayload.model_validate_json(payload)
        else:
            parsed = EventsPayload.model_validate(payload)
    except ValidationError as exc:
        raise ExtractionError(
            f"Extractor response does not match the expected format: {exc.error_count()} errors\n{exc}"
        ) from exc

    return [event.to_parsed() for event in parsed.events]


class LLMExtractor:
    """Extract events from HTML with an OpenAI chat model in JSON mode."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_OPENAI_MODEL,
        client: Optional[Any] = None,
    ):
        if client is None:
            if not api_key:
                raise ExtractionError("OPENAI_API_KEY environment variable is not set")
            client = OpenAI(api_key=api_key)
        self.client = client
        self.model = model

    def extract(self, html: str) -> list[ParsedEvent]:
        """Send cleaned HTML to the model and validate its answer.

        Raises:
            ExtractionError: On API failure, empty content or a malformed payload.
        """
        cleaned = clean_html(html)
        log.info("Sending %d characters to %s", len(cleaned), self.model)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': f"Extract all events and results from this HTML:\n\n{cleaned}"},
                ],
                response_format={'type': 'json_object'},
                max_completion_tokens=MAX_COMPLETION_TOKENS,
            )
        except OpenAIError as exc:
            raise ExtractionError(f"LLM request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ExtractionError("Empty response from LLM")

        events = parse_events_payload(content)
        log.info(
            "Extracted %d events, %d riders",
            len(events), sum(len(e.riders) for e in events),
        )
        return events

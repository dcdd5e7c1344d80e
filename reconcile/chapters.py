"""Chapter table and legacy results page URLs."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from reconcile.errors import InputError

BASE_URL = 'https://www.randonneursontario.ca/result'


@dataclass(frozen=True)
class ChapterConfig:
    """URL code and the years a chapter published results."""

    code: str                       # e.g. 'tor' for Toronto
    start_year: int
    end_year: Optional[int] = None  # set when the chapter is no longer active


CHAPTER_CONFIGS: dict[str, ChapterConfig] = {
    'toronto': ChapterConfig('tor', 1997),
    'ottawa': ChapterConfig('ott', 1999),
    'simcoe': ChapterConfig('sim', 2001),
    'huron': ChapterConfig('hur', 2004),
    'permanent': ChapterConfig('perm', 2013),
    'niagara': ChapterConfig('niag', 2005, 2006),
}


def valid_chapters() -> list[str]:
    """Names of all known chapters."""
    return list(CHAPTER_CONFIGS)


def get_chapter_config(chapter: str) -> Optional[ChapterConfig]:
    """Config for a chapter, or None if it is unknown."""
    return CHAPTER_CONFIGS.get(chapter)


def validate_chapter_year(chapter: str, year: int, current_year: Optional[int] = None) -> ChapterConfig:
    """Check that results can exist for a chapter and year.

    Raises:
        InputError: Unknown chapter, or a year outside the chapter's range
            or in the future.
    """
    config = get_chapter_config(chapter)
    if config is None:
        raise InputError(
            f"Unknown chapter: {chapter}. Valid chapters: {', '.join(valid_chapters())}"
        )
    if year < config.start_year:
        raise InputError(f"No results available for {chapter} before {config.start_year}")
    if config.end_year is not None and year > config.end_year:
        raise InputError(f"No results available for {chapter} after {config.end_year}")
    if year > (current_year or date.today().year):
        raise InputError(f"Cannot fetch results for future year {year}")
    return config


def build_results_url(chapter: str, year: int, current_year: Optional[int] = None) -> str:
    """Build the legacy results page URL for a chapter and year.

    Pattern: ``{BASE_URL}/{code}res{YY}.html``.

    Raises:
        InputError: See validate_chapter_year.
    """
    config = validate_chapter_year(chapter, year, current_year)
    return f"{BASE_URL}/{config.code}res{str(year)[-2:]}.html"


def all_urls_for_chapter(chapter: str, current_year: Optional[int] = None) -> list[tuple[int, str]]:
    """Return (year, url) for every year the chapter published results."""
    config = get_chapter_config(chapter)
    if config is None:
        raise InputError(f"Unknown chapter: {chapter}")

    last_year = config.end_year or current_year or date.today().year
    return [
        (year, build_results_url(chapter, year, current_year))
        for year in range(config.start_year, last_year + 1)
    ]

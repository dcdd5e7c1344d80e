"""Tests for reconcile.chapters module."""

import pytest

from reconcile.chapters import (
    all_urls_for_chapter,
    build_results_url,
    get_chapter_config,
    valid_chapters,
    validate_chapter_year,
)
from reconcile.errors import InputError


class TestValidateChapterYear:
    """Tests for chapter/year validation."""

    def test_valid(self):
        config = validate_chapter_year('toronto', 2024, current_year=2025)
        assert config.code == 'tor'

    def test_unknown_chapter(self):
        with pytest.raises(InputError, match='Unknown chapter: atlantis'):
            validate_chapter_year('atlantis', 2024)

    def test_before_start(self):
        with pytest.raises(InputError, match='before 1997'):
            validate_chapter_year('toronto', 1996)

    def test_after_end(self):
        with pytest.raises(InputError, match='after 2006'):
            validate_chapter_year('niagara', 2007)

    def test_future_year(self):
        with pytest.raises(InputError, match='future year 2026'):
            validate_chapter_year('toronto', 2026, current_year=2025)

    def test_input_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_chapter_year('atlantis', 2024)


class TestBuildResultsUrl:
    """Tests for the legacy URL pattern."""

    def test_toronto(self):
        assert build_results_url('toronto', 2024, current_year=2025) == (
            'https://www.randonneursontario.ca/result/torres24.html'
        )

    def test_two_digit_year_padding(self):
        assert build_results_url('ottawa', 2005, current_year=2025).endswith('/ottres05.html')

    def test_invalid(self):
        with pytest.raises(InputError):
            build_results_url('permanent', 2010)


class TestChapterTable:
    """Tests for the chapter lookup helpers."""

    def test_valid_chapters(self):
        assert set(valid_chapters()) == {'toronto', 'ottawa', 'simcoe', 'huron', 'permanent', 'niagara'}

    def test_get_chapter_config(self):
        assert get_chapter_config('huron').start_year == 2004
        assert get_chapter_config('nowhere') is None

    def test_all_urls_closed_chapter(self):
        urls = all_urls_for_chapter('niagara')
        assert urls == [
            (2005, 'https://www.randonneursontario.ca/result/niagres05.html'),
            (2006, 'https://www.randonneursontario.ca/result/niagres06.html'),
        ]

    def test_all_urls_active_chapter(self):
        urls = all_urls_for_chapter('permanent', current_year=2015)
        assert [year for year, _ in urls] == [2013, 2014, 2015]

    def test_all_urls_unknown(self):
        with pytest.raises(InputError):
            all_urls_for_chapter('atlantis')

"""Tests for the validate_results command line tool."""

import json

import pytest

import validate_results
from reconcile import ParsedEvent, ParsedRiderResult
from reconcile.chapters import all_urls_for_chapter, build_results_url
from reconcile.config import Settings
from reconcile.errors import FetchError, PageNotFoundError
from reconcile.fetcher import FetchResult, cache_key
from reconcile.reporter import build_report


class _FakeExtractor:
    def __init__(self, events):
        self.events = events
        self.html = None

    def extract(self, html):
        self.html = html
        return self.events


def _settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key=None,
        openai_model='test-model',
        db_path=tmp_path / 'results.db',
        cache_dir=tmp_path / 'cache',
    )


def _source_events():
    return [
        ParsedEvent(
            date='2024-04-15', name='Spring 200', distance_km=200,
            riders=[
                ParsedRiderResult('Bob Smith', 'Bob', 'Smith', time='10:30', status='finished'),
                ParsedRiderResult('Jane Doe', 'Jane', 'Doe', time='09:05', status='finished'),
            ],
        ),
        ParsedEvent(date='2024-09-14', name='Fall 400', distance_km=400),
    ]


def _empty_report():
    return build_report('toronto', 2024, 'u', 't', False, [], [], [])


class TestRunValidation:
    """Tests for the full pipeline with a fake fetcher and extractor."""

    def test_pipeline(self, tmp_path, store, monkeypatch):
        monkeypatch.setattr(
            validate_results, 'fetch_html',
            lambda url, use_cache, cache_dir: FetchResult(html='<p>results</p>', from_cache=True),
        )
        extractor = _FakeExtractor(_source_events())

        report = validate_results.run_validation(
            'toronto', 2024, _settings(tmp_path), extractor=extractor, store=store,
        )

        assert extractor.html == '<p>results</p>'
        assert report.url.endswith('/torres24.html')
        assert report.from_cache is True
        assert [(m.source_event.date, m.source_event.name) for m in report.events] == [
            ('2024-04-15', 'Spring 200'),
            ('2024-06-01', 'Summer 300'),
            ('2024-09-14', 'Fall 400'),
        ]
        assert report.events[0].discrepancies == []
        assert [d.type for d in report.events[1].discrepancies] == ['event_missing_in_html']
        assert [d.type for d in report.events[2].discrepancies] == ['event_missing_in_db']

        s = report.summary
        assert (s.events_in_source, s.events_in_db, s.events_matched) == (2, 2, 1)
        assert (s.errors_found, s.warnings_found, s.infos_found) == (1, 1, 0)

    def test_page_not_found(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            validate_results, 'fetch_html',
            lambda url, use_cache, cache_dir: FetchResult(html='', from_cache=False, error='404', not_found=True),
        )
        with pytest.raises(PageNotFoundError):
            validate_results.run_validation('toronto', 2024, _settings(tmp_path), extractor=_FakeExtractor([]))

    def test_fetch_failure(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            validate_results, 'fetch_html',
            lambda url, use_cache, cache_dir: FetchResult(html='', from_cache=False, error='timeout'),
        )
        with pytest.raises(FetchError, match='timeout'):
            validate_results.run_validation('toronto', 2024, _settings(tmp_path), extractor=_FakeExtractor([]))

    def test_empty_page(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            validate_results, 'fetch_html',
            lambda url, use_cache, cache_dir: FetchResult(html='', from_cache=False),
        )
        with pytest.raises(FetchError, match='Empty HTML'):
            validate_results.run_validation('toronto', 2024, _settings(tmp_path), extractor=_FakeExtractor([]))


class TestMain:
    """Tests for argument handling and exit codes."""

    @pytest.fixture(autouse=True)
    def workdir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

    def test_unknown_chapter(self):
        with pytest.raises(SystemExit) as exc_info:
            validate_results.main(['-c', 'atlantis', '-y', '2024'])
        assert exc_info.value.code == 2

    def test_year_out_of_range(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            validate_results.main(['-c', 'niagara', '-y', '2010'])
        assert exc_info.value.code == 2
        assert 'after 2006' in capsys.readouterr().err

    def test_json_output(self, monkeypatch, capsys):
        calls = []

        def fake_run(chapter, year, settings, use_cache=True):
            calls.append((chapter, year, settings, use_cache))
            return _empty_report()

        monkeypatch.setattr(validate_results, 'run_validation', fake_run)
        code = validate_results.main(['-c', 'toronto', '-y', '2024', '-o', 'json', '--no-cache', '--db', 'other.db'])

        assert code == 0
        assert json.loads(capsys.readouterr().out)['chapter'] == 'toronto'
        chapter, year, settings, use_cache = calls[0]
        assert (chapter, year, use_cache) == ('toronto', 2024, False)
        assert str(settings.db_path) == 'other.db'

    def test_markdown_output(self, monkeypatch, capsys):
        monkeypatch.setattr(validate_results, 'run_validation', lambda *a, **kw: _empty_report())
        assert validate_results.main(['-c', 'toronto', '-y', '2024', '-o', 'markdown']) == 0
        assert capsys.readouterr().out.startswith('# Validation Report: toronto 2024')

    def test_pipeline_error_exit_code(self, monkeypatch, caplog):
        def failing_run(*args, **kwargs):
            raise FetchError('Failed after 3 attempts: HTTP 503')

        monkeypatch.setattr(validate_results, 'run_validation', failing_run)
        assert validate_results.main(['-c', 'toronto', '-y', '2024']) == 1
        assert 'HTTP 503' in caplog.text

    def test_year_or_all_years_required(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            validate_results.main(['-c', 'toronto'])
        assert exc_info.value.code == 2
        assert '--all-years' in capsys.readouterr().err

    def test_year_and_all_years_exclusive(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            validate_results.main(['-c', 'toronto', '-y', '2024', '--all-years', '--output-dir', str(tmp_path)])
        assert exc_info.value.code == 2

    def test_all_years_requires_output_dir(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            validate_results.main(['-c', 'niagara', '--all-years'])
        assert exc_info.value.code == 2
        assert '--output-dir' in capsys.readouterr().err

    def test_clear_cache(self, tmp_path, monkeypatch):
        cache_dir = tmp_path / 'cache'
        monkeypatch.setenv('RECONCILE_CACHE_DIR', str(cache_dir))
        url = build_results_url('toronto', 2024)
        cached = cache_dir / cache_key(url)
        other = cache_dir / cache_key(build_results_url('toronto', 2023))
        cache_dir.mkdir()
        cached.write_text('<p>old</p>')
        other.write_text('<p>keep</p>')

        seen = []

        def fake_run(chapter, year, settings, use_cache=True):
            seen.append(cached.exists())
            return _empty_report()

        monkeypatch.setattr(validate_results, 'run_validation', fake_run)
        assert validate_results.main(['-c', 'toronto', '-y', '2024', '--clear-cache']) == 0
        assert seen == [False]
        assert other.exists()


class TestAllYears:
    """Tests for batch mode over every year of a chapter."""

    @pytest.fixture(autouse=True)
    def workdir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

    def test_one_report_per_year(self, tmp_path, monkeypatch):
        years = []

        def fake_run(chapter, year, settings, use_cache=True):
            years.append(year)
            return build_report(chapter, year, 'u', 't', False, [], [], [])

        monkeypatch.setattr(validate_results, 'run_validation', fake_run)
        out = tmp_path / 'reports'
        code = validate_results.main(['-c', 'niagara', '--all-years', '-o', 'markdown', '--output-dir', str(out)])

        assert code == 0
        assert years == [2005, 2006]
        assert sorted(p.name for p in out.iterdir()) == [
            '2005-niagara-validation-report.md',
            '2006-niagara-validation-report.md',
        ]
        text = (out / '2006-niagara-validation-report.md').read_text(encoding='utf-8')
        assert text.startswith('# Validation Report: niagara 2006')

    def test_console_and_json_files(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            validate_results, 'run_validation',
            lambda chapter, year, settings, use_cache=True: build_report(chapter, year, 'u', 't', False, [], [], []),
        )
        out = tmp_path / 'reports'
        assert validate_results.main(['-c', 'niagara', '--all-years', '-o', 'json', '--output-dir', str(out)]) == 0
        assert json.loads((out / '2005-niagara-validation-report.json').read_text())['year'] == 2005

        assert validate_results.main(['-c', 'niagara', '--all-years', '--output-dir', str(out)]) == 0
        assert 'VALIDATION REPORT: NIAGARA 2006' in (out / '2006-niagara-validation-report.txt').read_text()

    def test_failed_year_does_not_stop_batch(self, tmp_path, monkeypatch, caplog):
        def fake_run(chapter, year, settings, use_cache=True):
            if year == 2005:
                raise PageNotFoundError('Page not found (404)')
            return build_report(chapter, year, 'u', 't', False, [], [], [])

        monkeypatch.setattr(validate_results, 'run_validation', fake_run)
        out = tmp_path / 'reports'
        code = validate_results.main(['-c', 'niagara', '--all-years', '-o', 'markdown', '--output-dir', str(out)])

        assert code == 1
        assert [p.name for p in out.iterdir()] == ['2006-niagara-validation-report.md']
        assert 'Failed for niagara 2005' in caplog.text

    def test_clear_cache_every_year(self, tmp_path, monkeypatch):
        cache_dir = tmp_path / 'cache'
        monkeypatch.setenv('RECONCILE_CACHE_DIR', str(cache_dir))
        cache_dir.mkdir()
        paths = [cache_dir / cache_key(url) for _year, url in all_urls_for_chapter('niagara')]
        for path in paths:
            path.write_text('<p>old</p>')

        monkeypatch.setattr(
            validate_results, 'run_validation',
            lambda chapter, year, settings, use_cache=True: build_report(chapter, year, 'u', 't', False, [], [], []),
        )
        args = ['-c', 'niagara', '--all-years', '--clear-cache', '--output-dir', str(tmp_path / 'reports')]
        assert validate_results.main(args) == 0
        assert not any(path.exists() for path in paths)

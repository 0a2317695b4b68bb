"""
Tests for the command-line interface
"""
import json
import pytest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from internal_linker.cli import load_pages, main

BASE_URL = "https://example.com"
PARAGRAPH = "Many growing teams underestimate how much email newsletter design shapes their results over time."


@pytest.fixture
def pages_json(tmp_path):
    path = tmp_path / "pages.json"
    path.write_text(json.dumps([{
        'title': 'Email Newsletter Design',
        'slug': 'email-newsletter-design',
        'description': 'A practical overview of email newsletter design for small teams.',
        'primaryKeyword': 'email newsletter design',
    }]))
    return path


@pytest.fixture
def article(tmp_path):
    path = tmp_path / "article.html"
    path.write_text(f"<h1>Title</h1><p>{PARAGRAPH}</p>")
    return path


class TestLoadPages:
    """Test page loading"""

    def test_json(self, pages_json):
        pages = load_pages(str(pages_json))
        assert pages[0].primary_keyword == 'email newsletter design'

    def test_json_wrapped(self, tmp_path):
        path = tmp_path / "pages.json"
        path.write_text(json.dumps({'pages': [{'title': 'A', 'slug': 'a'}]}))
        assert load_pages(str(path))[0].slug == 'a'

    def test_csv(self, tmp_path):
        path = tmp_path / "pages.csv"
        path.write_text(
            "title,slug,primary_keyword,secondary_keywords,topics\n"
            "Email Newsletter Design,email-newsletter-design,email newsletter design,email layout|newsletter templates,\n"
            ",brand-voice-guidelines,,,\n"
        )
        pages = load_pages(str(path))
        assert len(pages) == 2
        assert pages[0].secondary_keywords == ('email layout', 'newsletter templates')
        assert pages[0].topics == ()
        assert pages[1].title == 'Brand Voice Guidelines'


class TestCommands:
    """Test CLI commands"""

    def test_inject(self, article, pages_json, tmp_path, capsys):
        output = tmp_path / "linked.html"
        report = tmp_path / "report.csv"
        code = main([
            'inject', str(article),
            '--pages', str(pages_json),
            '--base-url', BASE_URL,
            '--output', str(output),
            '--report', str(report),
        ])
        assert code == 0
        html = output.read_text()
        assert 'href="https://example.com/email-newsletter-design/"' in html
        df = pd.read_csv(report)
        assert df.loc[0, 'anchor'] == 'email newsletter design'
        assert 'quality_overall' in df.columns
        assert "Links injected: 1/12" in capsys.readouterr().out

    def test_inject_stdout(self, article, pages_json, capsys):
        code = main(['inject', str(article), '--pages', str(pages_json), '--base-url', BASE_URL])
        assert code == 0
        assert '<a href="https://example.com/email-newsletter-design/">' in capsys.readouterr().out

    def test_inject_missing_input(self, tmp_path, pages_json, capsys):
        code = main([
            'inject', str(tmp_path / "missing.html"),
            '--pages', str(pages_json), '--base-url', BASE_URL,
        ])
        assert code == 1
        assert "not found" in capsys.readouterr().out

    def test_inject_missing_pages(self, article, tmp_path):
        code = main(['inject', str(article), '--pages', str(tmp_path / "nope.json"), '--base-url', BASE_URL])
        assert code == 1

    def test_invalid_config(self, article, pages_json, tmp_path, capsys):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({'totalTargetLinks': -1}))
        code = main([
            'inject', str(article), '--pages', str(pages_json),
            '--base-url', BASE_URL, '--config', str(config),
        ])
        assert code == 1
        assert "Invalid configuration" in capsys.readouterr().out

    def test_target_links_flag(self, article, pages_json, tmp_path):
        output = tmp_path / "linked.html"
        main([
            'inject', str(article), '--pages', str(pages_json),
            '--base-url', BASE_URL, '--target-links', '0', '--output', str(output),
        ])
        assert '<a ' not in output.read_text()

    def test_batch(self, tmp_path, pages_json):
        drafts = tmp_path / "drafts"
        drafts.mkdir()
        for name in ("one.html", "two.html"):
            (drafts / name).write_text(f"<p>{PARAGRAPH}</p>")
        out_dir = tmp_path / "linked"
        report = tmp_path / "report.json"

        code = main([
            'batch', str(drafts), '--pages', str(pages_json),
            '--base-url', BASE_URL, '--output-dir', str(out_dir), '--report', str(report),
        ])

        assert code == 0
        # State is reset per document, so each gets its own link
        for name in ("one.html", "two.html"):
            assert '<a href=' in (out_dir / name).read_text()
        rows = json.loads(report.read_text())
        assert sorted(row['source'] for row in rows) == ["one.html", "two.html"]

    def test_batch_missing_dir(self, tmp_path, pages_json):
        code = main([
            'batch', str(tmp_path / "nope"), '--pages', str(pages_json),
            '--base-url', BASE_URL, '--output-dir', str(tmp_path / "out"),
        ])
        assert code == 1

    def test_score(self, pages_json, capsys):
        code = main(['score', PARAGRAPH, '--pages', str(pages_json), '--top-k', '2'])
        assert code == 0
        out = capsys.readouterr().out
        assert '"email newsletter design"' in out

    def test_score_no_candidates(self, pages_json, capsys):
        main(['score', "Nothing here matches the page at all, not even close.", '--pages', str(pages_json)])
        assert "No candidates above threshold" in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

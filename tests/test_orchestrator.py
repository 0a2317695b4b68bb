"""
Tests for the Internal Link Orchestrator Module
"""
import pytest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bs4 import BeautifulSoup

from internal_linker.candidates import CandidateGenerator, normalize_anchor
from internal_linker.orchestrator import (
    DistributionConfig,
    InternalLinkOrchestrator,
    OrchestratorState,
    inject_internal_links,
    process_content,
)
from internal_linker.pages import PageInfo
from internal_linker.zones import DEFAULT_ZONES, DistributionZone

BASE_URL = "https://example.com"

KEYWORDS = [
    "email newsletter design",
    "keyword research tools",
    "local search rankings",
    "technical crawl audits",
    "podcast audience growth",
    "video thumbnail testing",
    "product photography lighting",
    "customer onboarding checklists",
    "pricing page experiments",
    "brand voice guidelines",
]


def keyword_page(keyword):
    return PageInfo(
        title=keyword.title(),
        slug=keyword.replace(' ', '-'),
        description=f"A practical overview of {keyword} for small teams.",
        primary_keyword=keyword,
    )


def keyword_paragraph(keyword):
    return f"Many growing teams underestimate how much {keyword} shapes their results over time."


def links(html):
    return BeautifulSoup(html, 'html.parser').find_all('a')


@pytest.fixture
def pages():
    return [keyword_page(k) for k in KEYWORDS]


@pytest.fixture
def ten_paragraphs():
    """Ten eligible paragraphs spread evenly across the default zones"""
    return '\n'.join(f"<p>{keyword_paragraph(k)}</p>" for k in KEYWORDS)


@pytest.fixture
def long_paragraph_html():
    """One paragraph of 200+ words mentioning the keyword once"""
    filler = (
        "Weekly planning sessions help every department agree on goals, owners and deadlines "
        "before the busy season arrives. Shared calendars reduce surprises, and short written "
        "summaries keep remote colleagues aligned without extra meetings. "
    ) * 5
    return (
        f"<p>{filler}Teams that invest in a documented content marketing strategy see steadier growth. "
        f"{filler}</p>"
    )


@pytest.fixture
def strategy_page():
    return PageInfo(
        title="Content Marketing Strategy Guide",
        slug="content-marketing-strategy",
        description="Plan, document and measure a content marketing strategy that grows traffic.",
        primary_keyword="content marketing strategy",
    )


class TestScenarios:
    """End-to-end document scenarios"""

    def test_all_paragraphs_too_short(self, pages):
        """Scenario A: nothing is eligible"""
        html = "<p>Short intro line.</p><p>Another brief note.</p><p>Tiny outro.</p>"
        result = process_content(html, pages, BASE_URL)
        assert result.links_injected == 0
        assert result.html == html
        assert sum(result.distribution.values()) == 0

    def test_single_long_paragraph(self, long_paragraph_html, strategy_page):
        """Scenario B: one keyword link in a long paragraph"""
        assert len(BeautifulSoup(long_paragraph_html, 'html.parser').get_text().split()) >= 200

        result = process_content(long_paragraph_html, [strategy_page], BASE_URL, {'total_target_links': 1})

        assert result.links_injected == 1
        anchors = links(result.html)
        assert len(anchors) == 1
        assert anchors[0]['href'] == "https://example.com/content-marketing-strategy/"
        text = anchors[0].get_text()
        assert 3 <= len(text.split()) <= 8
        assert "content marketing strategy" in normalize_anchor(text)

        record = result.injection_details[0]
        assert record.success
        assert record.quality_metrics['overall'] >= 75
        assert record.zone == 'INTRO'

    def test_toxic_only_anchor(self):
        """Scenario C: a generic phrase is never linked"""
        html = "<p>Want more details on this topic? Just click here and you will see everything we have.</p>"
        page = PageInfo(title="Click Here", slug="click-here", primary_keyword="click here")
        result = process_content(html, [page], BASE_URL, {'total_target_links': 5})
        assert result.links_injected == 0
        assert result.html == html

    def test_anchor_split_by_markup_falls_back(self):
        """The best phrase spans inline markup, so a later one is linked"""
        page = PageInfo(
            title="Newsletter Design Guide",
            slug="newsletter-design",
            description="Layouts and templates for newsletter design.",
            primary_keyword="newsletter design",
        )
        html = (
            "<p>Seasoned editors revisit <em>newsletter</em> design templates whenever open rates slide, "
            "and newsletter design reviews keep every issue readable.</p>"
        )

        result = process_content(html, [page], BASE_URL)

        assert result.links_injected == 1
        assert len(links(result.html)) == 1
        assert result.failed_injections
        missed = result.failed_injections[0]
        assert missed.success is False
        assert missed.anchor == "newsletter design templates"
        assert "No unlinked occurrence" in missed.reasoning
        assert all(not r.success for r in result.failed_injections)

        placed = result.injection_details[0]
        assert placed.success
        assert "newsletter design" in normalize_anchor(placed.anchor)
        assert normalize_anchor(placed.anchor) != normalize_anchor(missed.anchor)
        assert links(result.html)[0].get_text() == placed.anchor
        assert result.to_dict()['failed_injections'][0]['success'] is False

    def test_even_spread_across_zones(self, ten_paragraphs, pages):
        """Scenario D: links bounded by the budget and the zone quotas"""
        result = process_content(
            ten_paragraphs, pages, BASE_URL,
            {'total_target_links': 12, 'min_words_between_links': 0},
        )
        assert result.links_injected == min(12, 10)
        assert sum(result.distribution.values()) == result.links_injected
        assert result.distribution == {
            'INTRO': 1, 'EARLY_BODY': 2, 'MID_BODY': 3, 'LATE_BODY': 2, 'FAQ_CONCLUSION': 2
        }
        assert len(links(result.html)) == 10


class TestDistributionRules:
    """Budget, quota, spacing and uniqueness"""

    def test_global_budget(self, ten_paragraphs, pages):
        result = process_content(
            ten_paragraphs, pages, BASE_URL,
            {'total_target_links': 3, 'min_words_between_links': 0},
        )
        assert result.links_injected == 3
        # MID_BODY has the highest priority
        assert result.distribution['MID_BODY'] == 3

    def test_zero_budget(self, ten_paragraphs, pages):
        result = process_content(ten_paragraphs, pages, BASE_URL, {'total_target_links': 0})
        assert result.links_injected == 0
        assert result.html == ten_paragraphs

    def test_zone_quota(self, ten_paragraphs, pages):
        zones = [DistributionZone('ALL', 0, 100, min_links=0, max_links=2)]
        result = process_content(
            ten_paragraphs, pages, BASE_URL,
            {'zones': zones, 'min_words_between_links': 0},
        )
        assert result.links_injected == 2
        assert result.distribution == {'ALL': 2}

    def test_zone_maxima_respected(self, ten_paragraphs, pages):
        result = process_content(ten_paragraphs, pages, BASE_URL, {'min_words_between_links': 0})
        for zone in DEFAULT_ZONES:
            assert result.distribution[zone.name] <= zone.max_links

    def test_spacing(self, ten_paragraphs, pages):
        """Consecutive links in processing order keep the minimum gap"""
        result = process_content(ten_paragraphs, pages, BASE_URL, {'min_words_between_links': 30})
        positions = [r.word_position for r in result.injection_details]
        assert 2 <= len(positions) < 10
        for earlier, later in zip(positions, positions[1:]):
            assert later - earlier >= 30

    def test_default_spacing_limits_short_documents(self, ten_paragraphs, pages):
        """The first link is never blocked; the rest wait 200 words"""
        result = process_content(ten_paragraphs, pages, BASE_URL)
        assert result.links_injected == 1

    def test_unique_anchors_and_targets(self, ten_paragraphs, pages):
        result = process_content(ten_paragraphs, pages, BASE_URL, {'min_words_between_links': 0})
        anchors = [normalize_anchor(r.anchor) for r in result.injection_details]
        targets = [r.target_slug for r in result.injection_details]
        assert len(anchors) == len(set(anchors))
        assert len(targets) == len(set(targets))

    def test_repeat_targets_when_allowed(self):
        page = keyword_page("email newsletter design")
        html = (
            f"<p>{keyword_paragraph('email newsletter design')}</p>"
            "<p>Seasoned editors revisit email newsletter design whenever open rates begin to slide downward.</p>"
        )
        single = process_content(html, [page], BASE_URL, {'min_words_between_links': 0})
        repeated = process_content(
            html, [page], BASE_URL,
            {'min_words_between_links': 0, 'one_link_per_target': False},
        )
        assert single.links_injected == 1
        assert repeated.links_injected == 2
        anchors = [normalize_anchor(r.anchor) for r in repeated.injection_details]
        assert len(set(anchors)) == 2

    def test_no_nested_links(self, pages):
        """Existing links are neither wrapped nor doubled"""
        html = (
            f'<p>{keyword_paragraph("email newsletter design")} '
            f'See <a href="/old">keyword research tools</a> too.</p>'
            f'<p>{keyword_paragraph("keyword research tools")}</p>'
        )
        result = process_content(
            html, pages, BASE_URL,
            {'min_words_between_links': 0, 'max_links_per_paragraph': 3},
        )
        for anchor in links(result.html):
            assert anchor.find('a') is None
            assert anchor.find_parent('a') is None
        assert result.links_injected == 2

    def test_nested_list_items(self, pages):
        """Links placed in an outer item never detach the nested items"""
        html = (
            f'<ul><li>{keyword_paragraph("email newsletter design")}\n'
            f'<ul><li>{keyword_paragraph("keyword research tools")}</li></ul></li></ul>'
        )
        zones = [DistributionZone('ALL', 0, 100, min_links=0, max_links=5)]
        result = process_content(
            html, pages[:2], BASE_URL,
            {'zones': zones, 'min_words_between_links': 0},
        )

        anchors = links(result.html)
        assert result.links_injected == len(anchors) == 2
        assert len(result.injection_details) == 2
        hrefs = {a['href'] for a in anchors}
        assert hrefs == {
            "https://example.com/email-newsletter-design/",
            "https://example.com/keyword-research-tools/",
        }
        inner = BeautifulSoup(result.html, 'html.parser').find('ul').find('ul').find('li')
        assert inner.find('a')['href'] == "https://example.com/keyword-research-tools/"

    def test_rerun_on_own_output(self, ten_paragraphs, pages):
        """Linked paragraphs are not touched again"""
        config = {'min_words_between_links': 0}
        first = process_content(ten_paragraphs, pages, BASE_URL, config)
        second = process_content(first.html, pages, BASE_URL, config)
        assert second.links_injected == 0
        assert second.html == first.html

    def test_skip_sections(self, pages):
        html = (
            f'<div class="faq-section"><p>{keyword_paragraph("email newsletter design")}</p></div>'
            f'<nav><p>{keyword_paragraph("brand voice guidelines")}</p></nav>'
        )
        result = process_content(html, pages, BASE_URL)
        assert result.links_injected == 0

    def test_invalid_skip_selector(self, ten_paragraphs, pages):
        result = process_content(
            ten_paragraphs, pages, BASE_URL,
            {'skip_selectors': ['[[[', 'nav'], 'min_words_between_links': 0},
        )
        assert result.links_injected == 10

    def test_heading_overlap_avoided(self):
        """The anchor repeating the section heading is passed over"""
        page = keyword_page("email newsletter design")
        html = (
            "<h2>Email Newsletter Design</h2>"
            "<p>Seasoned editors revisit email newsletter design whenever open rates begin to slide downward.</p>"
        )
        config = {'anchor_config': {'max_overlap_with_heading': 0.8}}
        with_heading = process_content(html, [page], BASE_URL, config)
        without_heading = process_content(html.split('</h2>')[1], [page], BASE_URL, config)
        assert with_heading.links_injected == 1
        assert without_heading.injection_details[0].anchor == "email newsletter design"
        anchor = with_heading.injection_details[0].anchor
        assert anchor != "email newsletter design"
        assert "email newsletter design" in normalize_anchor(anchor)

        # Every candidate overlaps past the default limit, so the best one is kept
        fallback = process_content(html, [page], BASE_URL)
        assert fallback.injection_details[0].anchor == "email newsletter design"

    def test_deterministic(self, ten_paragraphs, pages):
        config = {'min_words_between_links': 20}
        first = process_content(ten_paragraphs, pages, BASE_URL, config)
        second = process_content(ten_paragraphs, pages, BASE_URL, config)
        assert first.html == second.html
        assert first.to_dict() == second.to_dict()

    def test_full_document_keeps_body_content(self, pages):
        html = (
            "<html><head><title>T</title></head><body>"
            f"<p>{keyword_paragraph('brand voice guidelines')}</p>"
            "</body></html>"
        )
        result = process_content(html, pages, BASE_URL)
        assert result.links_injected == 1
        assert result.html.startswith("<p>")
        assert 'href="https://example.com/brand-voice-guidelines/"' in result.html


class TestOrchestratorState:
    """State handling and reporting"""

    def test_fresh_state(self):
        state = OrchestratorState.fresh(DEFAULT_ZONES, 200)
        assert state.last_link_word_position == -200
        assert state.zone_links == {z.name: 0 for z in DEFAULT_ZONES}
        assert state.links_injected == 0

    def test_reuse_resets_state(self, ten_paragraphs, pages):
        orchestrator = InternalLinkOrchestrator({'min_words_between_links': 0})
        first = orchestrator.process_content(ten_paragraphs, pages, BASE_URL)
        second = orchestrator.process_content(ten_paragraphs, pages, BASE_URL)
        assert first.links_injected == second.links_injected == 10
        assert first.html == second.html

    def test_reset(self, ten_paragraphs, pages):
        orchestrator = InternalLinkOrchestrator({'min_words_between_links': 0})
        orchestrator.process_content(ten_paragraphs, pages, BASE_URL)
        assert orchestrator.state.used_anchors
        orchestrator.reset()
        assert orchestrator.state.links_injected == 0
        assert not orchestrator.state.used_anchors
        assert not orchestrator.state.used_targets
        assert orchestrator.get_distribution() == {z.name: 0 for z in DEFAULT_ZONES}

    def test_get_stats(self, ten_paragraphs, pages):
        orchestrator = InternalLinkOrchestrator({'min_words_between_links': 0})
        orchestrator.process_content(ten_paragraphs, pages, BASE_URL)
        stats = orchestrator.get_stats()
        assert stats['total_injections'] == 10
        assert stats['unique_anchors'] == 10
        assert stats['unique_targets'] == 10
        assert len(stats['history']) == 10

    def test_records(self, ten_paragraphs, pages):
        result = process_content(ten_paragraphs, pages, BASE_URL, {'min_words_between_links': 0})
        record = result.injection_details[0]
        assert record.zone == 'MID_BODY'
        assert record.target_url == f"{BASE_URL}/{record.target_slug}/"
        assert set(record.quality_metrics) == {'overall', 'semantic', 'contextual', 'natural', 'seo'}
        assert record.reasoning.startswith('Linked "')
        data = result.to_dict()
        assert data['links_injected'] == 10
        assert data['injection_details'][0]['anchor'] == record.anchor

    def test_pages_as_dicts(self, ten_paragraphs):
        pages = [keyword_page(k).to_dict() for k in KEYWORDS]
        result = process_content(ten_paragraphs, pages, BASE_URL, {'min_words_between_links': 0})
        assert result.links_injected == 10

    def test_candidates_generated_once_per_element(self, pages, monkeypatch):
        """Candidates are enumerated once and re-scored for each page"""
        calls = []
        original = CandidateGenerator.generate

        def counting(self, paragraph, page=None):
            calls.append(page)
            return original(self, paragraph, page)

        monkeypatch.setattr(CandidateGenerator, 'generate', counting)
        html = f"<p>{keyword_paragraph('brand voice guidelines')}</p>"
        result = process_content(html, pages, BASE_URL)

        assert result.links_injected == 1
        assert result.injection_details[0].target_slug == "brand-voice-guidelines"
        assert calls == [None]


class TestInjectInternalLinks:
    """Test the HTML-only convenience function"""

    def test_no_pages(self):
        html = "<p>Anything at all goes here for this quick check of behaviour.</p>"
        assert inject_internal_links(html, [], BASE_URL) == html

    def test_target_links(self, ten_paragraphs, pages):
        html = inject_internal_links(ten_paragraphs, pages, BASE_URL, target_links=1)
        assert len(links(html)) == 1

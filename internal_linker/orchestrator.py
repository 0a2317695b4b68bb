"""
Internal Link Orchestrator Module
Distributes contextual internal links across a document:
- Zone quotas and a global link budget
- Minimum word spacing between links
- One use per anchor text (and per target page by default)
- Heading-overlap avoidance when choosing anchors
"""

from typing import Any, Dict, List, Optional, Set, Union
from dataclasses import dataclass, field, fields
import logging

from .candidates import AnchorCandidate, CandidateGenerator, normalize_anchor
from .config import settings
from .config.lexicon import AnchorLexicon
from .injector import LinkInjector
from .pages import PageInfo, coerce_pages, resolve_page_url, sort_pages_by_specificity
from .parser import (
    BlockElement,
    DocumentSegmenter,
    get_nearby_heading,
    is_attached,
    normalize_whitespace,
    parse_document,
    serialize_document,
)
from .scoring import AnchorConfig, AnchorScorer, order_by_heading
from .zones import DEFAULT_ZONES, ConfigurationError, DistributionZone, ZonePlanner, check_number

logger = logging.getLogger(__name__)


@dataclass
class DistributionConfig:
    """Configuration for link distribution across a document"""
    zones: List[DistributionZone] = field(default_factory=lambda: list(DEFAULT_ZONES))
    total_target_links: int = settings.DEFAULT_TOTAL_TARGET_LINKS
    min_paragraph_length: int = settings.DEFAULT_MIN_PARAGRAPH_LENGTH
    max_links_per_paragraph: int = settings.DEFAULT_MAX_LINKS_PER_PARAGRAPH
    min_words_between_links: int = settings.DEFAULT_MIN_WORDS_BETWEEN_LINKS
    skip_selectors: List[str] = field(default_factory=lambda: list(settings.DEFAULT_SKIP_SELECTORS))
    anchor_config: AnchorConfig = field(default_factory=AnchorConfig)
    one_link_per_target: bool = settings.ONE_LINK_PER_TARGET

    ALIASES = {
        'totalTargetLinks': 'total_target_links',
        'minParagraphLength': 'min_paragraph_length',
        'maxLinksPerParagraph': 'max_links_per_paragraph',
        'minWordsBetweenLinks': 'min_words_between_links',
        'skipSections': 'skip_selectors',
        'skipSelectors': 'skip_selectors',
        'skip_sections': 'skip_selectors',
        'anchorConfig': 'anchor_config',
        'oneLinkPerTarget': 'one_link_per_target',
    }

    def __post_init__(self):
        for label in ('total_target_links', 'min_paragraph_length',
                      'max_links_per_paragraph', 'min_words_between_links'):
            check_number(label, getattr(self, label), integer=True)
        if not isinstance(self.one_link_per_target, bool):
            raise ConfigurationError(f"one_link_per_target must be true or false, got {self.one_link_per_target!r}")
        if not isinstance(self.skip_selectors, (list, tuple)) or not all(
            isinstance(selector, str) for selector in self.skip_selectors
        ):
            raise ConfigurationError(f"skip_selectors must be a list of CSS selectors, got {self.skip_selectors!r}")
        if not isinstance(self.anchor_config, AnchorConfig):
            raise ConfigurationError(f"anchor_config must be a mapping, got {self.anchor_config!r}")
        if self.total_target_links < 0:
            raise ConfigurationError("total_target_links cannot be negative")
        if self.min_paragraph_length < 0:
            raise ConfigurationError("min_paragraph_length cannot be negative")
        if self.max_links_per_paragraph < 1:
            raise ConfigurationError("max_links_per_paragraph must be at least 1")
        if self.min_words_between_links < 0:
            raise ConfigurationError("min_words_between_links cannot be negative")
        if not self.zones:
            raise ConfigurationError("At least one distribution zone is required")
        if not all(isinstance(zone, DistributionZone) for zone in self.zones):
            raise ConfigurationError("zones must be DistributionZone objects or mappings")
        names = [zone.name for zone in self.zones]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Zone names must be unique: {names}")

    def merged(self, overrides: Union['DistributionConfig', Dict[str, Any], None]) -> 'DistributionConfig':
        """
        Return a copy with partial overrides applied.

        Args:
            overrides: A full DistributionConfig (used as-is) or a mapping of
                snake_case / camelCase keys

        Returns:
            New DistributionConfig
        """
        if overrides is None:
            return self
        if isinstance(overrides, DistributionConfig):
            return overrides
        if not isinstance(overrides, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {overrides!r}")

        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in overrides.items():
            name = self.ALIASES.get(key, key)
            if name not in values:
                raise ConfigurationError(f"Unknown distribution setting: {key}")
            if name == 'zones':
                if not isinstance(value, list):
                    raise ConfigurationError(f"zones must be a list, got {value!r}")
                value = [z if isinstance(z, DistributionZone) else DistributionZone.from_dict(z) for z in value]
            elif name == 'anchor_config' and isinstance(value, dict):
                value = AnchorConfig.from_dict({**self.anchor_config.to_dict(), **value})
            values[name] = value

        return DistributionConfig(**values)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DistributionConfig':
        return cls().merged(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'zones': [zone.to_dict() for zone in self.zones],
            'total_target_links': self.total_target_links,
            'min_paragraph_length': self.min_paragraph_length,
            'max_links_per_paragraph': self.max_links_per_paragraph,
            'min_words_between_links': self.min_words_between_links,
            'skip_selectors': list(self.skip_selectors),
            'anchor_config': self.anchor_config.to_dict(),
            'one_link_per_target': self.one_link_per_target,
        }


@dataclass
class InjectionRecord:
    """Audit entry for one attempted link placement"""
    success: bool
    anchor: str
    target_url: str
    target_slug: str = ""
    zone: str = ""
    word_position: int = 0
    element_index: int = -1
    quality_metrics: Dict[str, float] = field(default_factory=dict)
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'anchor': self.anchor,
            'target_url': self.target_url,
            'target_slug': self.target_slug,
            'zone': self.zone,
            'word_position': self.word_position,
            'element_index': self.element_index,
            'quality_metrics': dict(self.quality_metrics),
            'reasoning': self.reasoning,
        }


@dataclass
class OrchestratorState:
    """Mutable state of one document pass"""
    zone_links: Dict[str, int] = field(default_factory=dict)
    total_words_processed: int = 0
    last_link_word_position: int = 0
    used_anchors: Set[str] = field(default_factory=set)
    used_targets: Set[str] = field(default_factory=set)
    links_injected: int = 0
    history: List[InjectionRecord] = field(default_factory=list)

    @classmethod
    def fresh(cls, zones: List[DistributionZone], min_words_between_links: int) -> 'OrchestratorState':
        # The first link is never blocked by spacing
        return cls(
            zone_links={zone.name: 0 for zone in zones},
            last_link_word_position=-min_words_between_links,
        )


@dataclass
class OrchestratorResult:
    """Outcome of processing one document"""
    html: str
    links_injected: int
    distribution: Dict[str, int]
    injection_details: List[InjectionRecord] = field(default_factory=list)
    failed_injections: List[InjectionRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'html': self.html,
            'links_injected': self.links_injected,
            'distribution': dict(self.distribution),
            'injection_details': [r.to_dict() for r in self.injection_details],
            'failed_injections': [r.to_dict() for r in self.failed_injections],
        }


class InternalLinkOrchestrator:
    """
    Zone-based contextual internal link distribution.

    State is per document: process_content() starts with a reset, and one
    instance must not be shared by concurrent passes.

    Usage:
        orchestrator = InternalLinkOrchestrator(DistributionConfig(total_target_links=8))
        result = orchestrator.process_content(html, pages, "https://example.com")
    """

    def __init__(
        self,
        config: Union[DistributionConfig, Dict[str, Any], None] = None,
        lexicon: Optional[AnchorLexicon] = None,
        parser_type: Optional[str] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: DistributionConfig or a partial mapping of overrides
            lexicon: Word lists and patterns used for scoring
            parser_type: BeautifulSoup parser to use ('html.parser', 'lxml', 'html5lib')
        """
        self.config = DistributionConfig().merged(config)
        self.lexicon = lexicon or AnchorLexicon()
        self.parser_type = parser_type or settings.HTML_PARSER
        self.injector = LinkInjector()
        self.state = OrchestratorState.fresh(self.config.zones, self.config.min_words_between_links)

    def reset(self, config: Optional[DistributionConfig] = None) -> None:
        """Reset state for a new document"""
        config = config or self.config
        self.state = OrchestratorState.fresh(config.zones, config.min_words_between_links)

    def _can_add_link_to_zone(self, zone: DistributionZone) -> bool:
        return self.state.zone_links.get(zone.name, 0) < zone.max_links

    def _meets_spacing_requirement(self, config: DistributionConfig) -> bool:
        state = self.state
        return state.total_words_processed - state.last_link_word_position >= config.min_words_between_links

    def process_content(
        self,
        html: str,
        target_pages: List[Union[PageInfo, Dict[str, Any]]],
        base_url: str,
        config: Union[DistributionConfig, Dict[str, Any], None] = None,
    ) -> OrchestratorResult:
        """
        Inject contextual internal links into an HTML document.

        Args:
            html: Document or fragment HTML
            target_pages: Pages that may be linked (PageInfo or dicts)
            base_url: Site URL used to build link targets from slugs
            config: Overrides for this call only

        Returns:
            OrchestratorResult with the new HTML and an injection report
        """
        active = self.config.merged(config)
        planner = ZonePlanner(active.zones)
        self.reset(active)

        pages = sort_pages_by_specificity(coerce_pages(target_pages))

        segmenter = DocumentSegmenter(
            skip_selectors=active.skip_selectors,
            min_paragraph_length=active.min_paragraph_length,
            max_links_per_paragraph=active.max_links_per_paragraph,
        )
        soup = parse_document(html, self.parser_type)
        _, eligible = segmenter.segment(soup)

        failed = []
        if not eligible or not pages or active.total_target_links == 0:
            logger.info("Nothing to link: no eligible elements, pages or link budget")
            return self._build_result(html, failed)

        generator = CandidateGenerator(
            min_words=active.anchor_config.min_words,
            max_words=active.anchor_config.max_words,
            lexicon=self.lexicon,
        )
        scorer = AnchorScorer(active.anchor_config, self.lexicon)

        by_zone = planner.assign(eligible)
        budget_spent = False

        for zone in planner.by_priority():
            zone_elements = by_zone[zone.name]
            logger.debug(f"Zone {zone.name}: {len(zone_elements)} elements")

            for element in zone_elements:
                if self.state.links_injected >= active.total_target_links:
                    budget_spent = True
                    break
                if not self._can_add_link_to_zone(zone):
                    break

                element_words = element.word_count

                if not is_attached(element.tag, soup):
                    logger.warning(f"Element {element.index} is no longer in the document, skipping")
                    self.state.total_words_processed += element_words
                    continue

                if not self._meets_spacing_requirement(active):
                    self.state.total_words_processed += element_words
                    continue

                heading = get_nearby_heading(element.tag)
                record = self._link_element(
                    element, zone, pages, base_url, heading, active, generator, scorer, failed
                )

                if record:
                    self._record_success(record, zone, element)
                    logger.info(f"Injected link in {zone.name}: \"{record.anchor}\" -> {record.target_slug}")

                self.state.total_words_processed += element_words

            if budget_spent:
                break

        logger.info(f"Total links injected: {self.state.links_injected}/{active.total_target_links}")
        logger.info(f"Distribution: {self.state.zone_links}")

        output = serialize_document(soup) if self.state.links_injected else html
        return self._build_result(output, failed)

    def _link_element(
        self,
        element: BlockElement,
        zone: DistributionZone,
        pages: List[PageInfo],
        base_url: str,
        heading: Optional[str],
        config: DistributionConfig,
        generator: CandidateGenerator,
        scorer: AnchorScorer,
        failed: List[InjectionRecord],
    ) -> Optional[InjectionRecord]:
        """Try each page, then each ranked anchor, until one link lands"""
        text = normalize_whitespace(element.text)
        anchor_config = config.anchor_config
        # Only the context topics differ between pages
        base_candidates = generator.generate(text)

        for page in pages:
            if config.one_link_per_target and page.identifier in self.state.used_targets:
                continue

            ranked = scorer.rank([c.for_page(page) for c in base_candidates], page, text)
            available = [c for c in ranked if c.normalized_text not in self.state.used_anchors]
            if not available:
                logger.debug(f"No eligible anchors for '{page.slug}' in element {element.index}")
                continue

            ordered = order_by_heading(
                available,
                heading if anchor_config.avoid_heading_duplication else None,
                anchor_config.max_overlap_with_heading,
            )
            target_url = resolve_page_url(base_url, page.slug)

            for candidate in ordered:
                outcome = self.injector.inject_into_element(element.tag, candidate.text, target_url)
                if outcome.success:
                    return self._make_record(True, candidate, page, target_url, zone, element, heading)
                failed.append(self._make_record(False, candidate, page, target_url, zone, element, heading))

        return None

    def _make_record(
        self,
        success: bool,
        candidate: AnchorCandidate,
        page: PageInfo,
        target_url: str,
        zone: DistributionZone,
        element: BlockElement,
        heading: Optional[str],
    ) -> InjectionRecord:
        word_position = self.state.total_words_processed + element.word_count // 2
        if success:
            reasoning = (
                f"Linked \"{candidate.text}\" to '{page.title}' in {zone.name}: "
                f"quality {candidate.quality_score:.1f} "
                f"(semantic {candidate.semantic_score:.0f}, natural {candidate.naturalness_score:.0f}, "
                f"seo {candidate.seo_score:.0f}), {candidate.position} in paragraph"
            )
            if heading:
                reasoning += f", under heading '{heading}'"
        else:
            reasoning = (
                f"No unlinked occurrence of \"{candidate.text}\" in element {element.index} "
                f"(phrase may span markup or already be linked)"
            )

        return InjectionRecord(
            success=success,
            anchor=candidate.text,
            target_url=target_url,
            target_slug=page.slug,
            zone=zone.name,
            word_position=word_position,
            element_index=element.index,
            quality_metrics=candidate.metrics(),
            reasoning=reasoning,
        )

    def _record_success(self, record: InjectionRecord, zone: DistributionZone, element: BlockElement) -> None:
        state = self.state
        state.links_injected += 1
        state.zone_links[zone.name] = state.zone_links.get(zone.name, 0) + 1
        # The link counts as sitting in the middle of its element
        state.last_link_word_position = record.word_position
        state.used_anchors.add(normalize_anchor(record.anchor))
        state.used_targets.add(record.target_slug)
        state.history.append(record)
        element.link_count += 1

    def _build_result(self, html: str, failed: List[InjectionRecord]) -> OrchestratorResult:
        return OrchestratorResult(
            html=html,
            links_injected=self.state.links_injected,
            distribution=self.get_distribution(),
            injection_details=list(self.state.history),
            failed_injections=failed,
        )

    def get_distribution(self) -> Dict[str, int]:
        """Links placed per zone in the current pass"""
        return dict(self.state.zone_links)

    def get_stats(self) -> Dict[str, Any]:
        """Summary of the current pass"""
        return {
            'total_injections': len(self.state.history),
            'unique_anchors': len(self.state.used_anchors),
            'unique_targets': len(self.state.used_targets),
            'history': [r.to_dict() for r in self.state.history],
        }


def process_content(
    html: str,
    target_pages: List[Union[PageInfo, Dict[str, Any]]],
    base_url: str,
    config: Union[DistributionConfig, Dict[str, Any], None] = None,
) -> OrchestratorResult:
    """
    Convenience function to link one document with a fresh orchestrator.

    Args:
        html: Document HTML
        target_pages: Pages that may be linked
        base_url: Site URL
        config: Partial DistributionConfig overrides

    Returns:
        OrchestratorResult
    """
    return InternalLinkOrchestrator(config).process_content(html, target_pages, base_url)


def inject_internal_links(
    content: str,
    available_pages: List[Union[PageInfo, Dict[str, Any]]],
    base_url: str,
    target_links: int = settings.DEFAULT_TOTAL_TARGET_LINKS,
) -> str:
    """
    Link a document and return only the HTML.

    Args:
        content: Document HTML
        available_pages: Pages that may be linked
        base_url: Site URL
        target_links: Global link budget

    Returns:
        HTML with links injected (unchanged when there are no pages)
    """
    if not available_pages:
        logger.info("No pages available for linking")
        return content

    result = process_content(content, available_pages, base_url, {'total_target_links': target_links})
    logger.info(f"Final result: {result.links_injected} links injected")
    return result.html

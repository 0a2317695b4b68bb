"""
Internal Linker - contextual internal link injection for generated articles

Modules:
- parser: Document segmentation into linkable block elements
- zones: Distribution zones and zone assignment
- candidates: Anchor phrase candidate generation
- scoring: Semantic, naturalness and SEO scoring of candidates
- injector: Safe text-to-anchor mutation
- orchestrator: Zone-based link distribution over one document
- pages: Target page model and URL helpers
- cli: Command-line interface
- api: FastAPI REST API
"""

__version__ = "1.0.0"

from .pages import (
    PageInfo,
    resolve_page_url,
    slug_from_url,
    title_from_slug,
)

from .parser import (
    BlockElement,
    DocumentSegmenter,
    get_nearby_heading,
    parse_document,
    serialize_document,
)

from .zones import (
    ConfigurationError,
    DistributionZone,
    ZonePlanner,
    DEFAULT_ZONES,
)

from .candidates import (
    AnchorCandidate,
    CandidateGenerator,
    ContextWindow,
    SemanticEntity,
)

from .scoring import (
    AnchorConfig,
    AnchorScorer,
    find_best_anchors,
    select_by_heading,
)

from .injector import (
    LinkInjector,
    InjectionOutcome,
)

from .orchestrator import (
    DistributionConfig,
    InjectionRecord,
    InternalLinkOrchestrator,
    OrchestratorResult,
    OrchestratorState,
    inject_internal_links,
    process_content,
)

from .config.lexicon import AnchorLexicon

__all__ = [
    # Version
    '__version__',

    # Pages
    'PageInfo',
    'resolve_page_url',
    'slug_from_url',
    'title_from_slug',

    # Parser
    'BlockElement',
    'DocumentSegmenter',
    'get_nearby_heading',
    'parse_document',
    'serialize_document',

    # Zones
    'ConfigurationError',
    'DistributionZone',
    'ZonePlanner',
    'DEFAULT_ZONES',

    # Candidates
    'AnchorCandidate',
    'CandidateGenerator',
    'ContextWindow',
    'SemanticEntity',

    # Scoring
    'AnchorConfig',
    'AnchorScorer',
    'AnchorLexicon',
    'find_best_anchors',
    'select_by_heading',

    # Injector
    'LinkInjector',
    'InjectionOutcome',

    # Orchestrator
    'DistributionConfig',
    'InjectionRecord',
    'InternalLinkOrchestrator',
    'OrchestratorResult',
    'OrchestratorState',
    'inject_internal_links',
    'process_content',
]

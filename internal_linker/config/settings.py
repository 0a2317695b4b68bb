"""
Application Settings for Internal Linker
"""
import os

# Logging
LOG_LEVEL = os.getenv("LINKER_LOG_LEVEL", "INFO")

# HTML parsing ('html.parser', 'lxml', 'html5lib')
HTML_PARSER = os.getenv("LINKER_HTML_PARSER", "html.parser")

# Distribution settings
DEFAULT_TOTAL_TARGET_LINKS = int(os.getenv("LINKER_TOTAL_TARGET_LINKS", "12"))
DEFAULT_MIN_PARAGRAPH_LENGTH = int(os.getenv("LINKER_MIN_PARAGRAPH_LENGTH", "60"))
DEFAULT_MAX_LINKS_PER_PARAGRAPH = int(os.getenv("LINKER_MAX_LINKS_PER_PARAGRAPH", "1"))
DEFAULT_MIN_WORDS_BETWEEN_LINKS = int(os.getenv("LINKER_MIN_WORDS_BETWEEN_LINKS", "200"))
ONE_LINK_PER_TARGET = os.getenv("LINKER_ONE_LINK_PER_TARGET", "true").lower() in ("1", "true", "yes")

DEFAULT_SKIP_SELECTORS = [
    '.sota-faq-section',
    '.sota-references-section',
    '.sota-references-wrapper',
    '[class*="faq"]',
    '[class*="reference"]',
    '.verification-footer-sota',
    '[itemtype*="FAQPage"]',
    'nav',
    'footer',
]

# Anchor settings
DEFAULT_MIN_ANCHOR_WORDS = 3
DEFAULT_MAX_ANCHOR_WORDS = 8
IDEAL_ANCHOR_WORD_RANGE = (4, 6)
MIN_ANCHOR_CHARS = 12  # Shorter cleaned phrases are never candidates
DEFAULT_MIN_QUALITY_SCORE = float(os.getenv("LINKER_MIN_QUALITY_SCORE", "75"))
DEFAULT_MAX_CANDIDATES = 15
DEFAULT_MAX_OVERLAP_WITH_HEADING = 0.4
CONTEXT_WINDOW_WORDS = 5

# Scoring weights (normalized by their sum at scoring time)
SEMANTIC_WEIGHT = 0.30
NATURALNESS_WEIGHT = 0.25
SEO_WEIGHT = 0.20

# API settings
API_HOST = os.getenv("LINKER_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("LINKER_API_PORT", "8000"))

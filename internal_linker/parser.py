"""
Document Segmenter Module
Turns an HTML document into the block elements that can receive links:
- Paragraphs and list items in document order
- Position of each element within the document (0-100%)
- Filtering of boilerplate zones and already-linked elements
"""

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError
from typing import List, Optional, Set, Tuple
from dataclasses import dataclass
import logging
import re

from .config import settings

logger = logging.getLogger(__name__)


@dataclass
class BlockElement:
    """A paragraph or list item that may receive a link"""
    index: int
    tag: Tag
    text: str
    position_percent: float
    word_count: int = 0
    link_count: int = 0

    @property
    def name(self) -> str:
        return self.tag.name


def count_words(text: str) -> int:
    """Count whitespace-delimited words"""
    return len(text.split())


def normalize_whitespace(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


def parse_document(html: str, parser_type: Optional[str] = None) -> BeautifulSoup:
    """Parse HTML into a traversable tree"""
    return BeautifulSoup(html or '', parser_type or settings.HTML_PARSER)


def serialize_document(soup: BeautifulSoup) -> str:
    """Return the body's inner HTML, or the whole fragment when there is no body"""
    body = soup.find('body')
    if body:
        return body.decode_contents()
    return soup.decode()


def is_attached(tag: Tag, soup: BeautifulSoup) -> bool:
    """Check whether a tag is still part of the document tree"""
    root = tag
    for root in tag.parents:
        pass
    return root is soup


def get_nearby_heading(element: Tag) -> Optional[str]:
    """
    Find the heading that introduces an element.

    Looks for an H2/H3 in the containing section first, then walks back
    through previous siblings for the nearest H2-H4.
    """
    section = element.find_parent(_is_section)
    if section:
        heading = section.find(['h2', 'h3'])
        if heading:
            return heading.get_text(strip=True) or None

    sibling = element.find_previous_sibling(['h2', 'h3', 'h4'])
    if sibling:
        return sibling.get_text(strip=True) or None

    return None


def _is_section(tag: Tag) -> bool:
    if tag.name in ('section', 'article'):
        return True
    if tag.name == 'div':
        classes = tag.get('class', [])
        if isinstance(classes, str):
            classes = [classes]
        return any('section' in class_name for class_name in classes)
    return False


class DocumentSegmenter:
    """
    Collects linkable block elements from a parsed document.

    Usage:
        segmenter = DocumentSegmenter(skip_selectors=['.faq'])
        all_elements, eligible = segmenter.segment(soup)
    """

    # Block elements that can receive links
    BLOCK_TAGS = ['p', 'li']

    def __init__(
        self,
        skip_selectors: Optional[List[str]] = None,
        min_paragraph_length: int = settings.DEFAULT_MIN_PARAGRAPH_LENGTH,
        max_links_per_paragraph: int = settings.DEFAULT_MAX_LINKS_PER_PARAGRAPH,
    ):
        """
        Initialize the segmenter.

        Args:
            skip_selectors: CSS selectors marking boilerplate zones (FAQ, references, nav)
            min_paragraph_length: Minimum text length (characters) of an eligible element
            max_links_per_paragraph: Elements already holding this many links are skipped
        """
        self.skip_selectors = list(settings.DEFAULT_SKIP_SELECTORS if skip_selectors is None else skip_selectors)
        self.min_paragraph_length = min_paragraph_length
        self.max_links_per_paragraph = max_links_per_paragraph
        self._invalid_selectors: Set[str] = set()

    def segment(self, soup: BeautifulSoup) -> Tuple[List[BlockElement], List[BlockElement]]:
        """
        Enumerate block elements and filter the eligible ones.

        Args:
            soup: Parsed document

        Returns:
            Tuple of (all_elements, eligible_elements), both in document order
        """
        tags = soup.find_all(self.BLOCK_TAGS)
        total = len(tags)

        all_elements = []
        for index, tag in enumerate(tags):
            text = tag.get_text()
            all_elements.append(BlockElement(
                index=index,
                tag=tag,
                text=text,
                # Measured against the unfiltered list so zones reflect true position
                position_percent=index / total * 100,
                word_count=count_words(text),
                link_count=len(tag.find_all('a')),
            ))

        eligible = [el for el in all_elements if self.is_eligible(el)]

        logger.info(f"Found {len(eligible)} linkable elements out of {total}")
        return all_elements, eligible

    def is_eligible(self, element: BlockElement) -> bool:
        """Check whether an element may receive a new link"""
        if self.should_skip(element.tag):
            return False
        if len(element.text) < self.min_paragraph_length:
            return False
        if element.link_count >= self.max_links_per_paragraph:
            return False
        return True

    def should_skip(self, tag: Tag) -> bool:
        """Check if the element sits inside a skipped section"""
        for selector in self.skip_selectors:
            if selector in self._invalid_selectors:
                continue
            try:
                if tag.css.closest(selector) is not None:
                    return True
            except SelectorSyntaxError:
                # Invalid selector never matches
                self._invalid_selectors.add(selector)
                logger.warning(f"Ignoring invalid skip selector: {selector!r}")
        return False

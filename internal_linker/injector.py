"""
Link Injector Module
Wraps the first unlinked occurrence of an anchor phrase in an <a> tag
"""

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString
from typing import FrozenSet
from dataclasses import dataclass
import html as html_lib
import logging
import re

from .parser import DocumentSegmenter

logger = logging.getLogger(__name__)

# Text under these tags (below the element being linked) is never linked
PROTECTED_TAGS = frozenset(['a'] + DocumentSegmenter.BLOCK_TAGS)


@dataclass
class InjectionOutcome:
    """Result of a single injection attempt"""
    html: str
    success: bool
    offset: int = -1  # character offset of the match in the input HTML or element text


def build_text_pattern(anchor: str) -> re.Pattern:
    """Case-insensitive, word-bounded pattern for an anchor phrase in plain text"""
    phrase = r'\s+'.join(re.escape(word) for word in anchor.split())
    return re.compile(rf'(?<!\w){phrase}(?!\w)', re.IGNORECASE)


def build_anchor_pattern(anchor: str) -> re.Pattern:
    """
    Case-insensitive, word-bounded pattern for an anchor phrase.

    Matches only inside a text run (after the start or a '>' with no '<' in
    between) and never text already wrapped in an <a>.
    """
    words = [re.escape(html_lib.escape(word, quote=False)) for word in anchor.split()]
    phrase = r'\s+'.join(words)
    return re.compile(
        rf'(^|>)([^<]*?)\b({phrase})\b(?![^<]*</a>)',
        re.IGNORECASE,
    )


OPEN_ANCHOR_RE = re.compile(r'<a[\s>]', re.IGNORECASE)
CLOSE_ANCHOR_RE = re.compile(r'</a\s*>', re.IGNORECASE)


def _inside_open_anchor(fragment: str, position: int) -> bool:
    """True when an <a> opened before position is still unclosed (nested markup)"""
    before = fragment[:position]
    return len(OPEN_ANCHOR_RE.findall(before)) > len(CLOSE_ANCHOR_RE.findall(before))


class LinkInjector:
    """
    Performs text-to-anchor mutation on HTML fragments.

    Usage:
        injector = LinkInjector()
        outcome = injector.inject(inner_html, "content marketing strategy", url)
    """

    def __init__(self, protected_tags: FrozenSet[str] = PROTECTED_TAGS):
        self.protected_tags = frozenset(protected_tags)

    def inject(self, fragment: str, anchor: str, target_url: str) -> InjectionOutcome:
        """
        Replace the first unlinked occurrence of the anchor.

        Args:
            fragment: HTML fragment (usually an element's inner HTML)
            anchor: Phrase to link
            target_url: Link destination

        Returns:
            InjectionOutcome; success is False when no unlinked match exists
        """
        if not anchor.strip():
            return InjectionOutcome(html=fragment, success=False)

        pattern = build_anchor_pattern(anchor)
        match = pattern.search(fragment)
        while match and _inside_open_anchor(fragment, match.start(3)):
            match = pattern.search(fragment, match.end())
        if not match:
            return InjectionOutcome(html=fragment, success=False)

        href = html_lib.escape(target_url, quote=True)
        replacement = f'{match.group(1)}{match.group(2)}<a href="{href}">{match.group(3)}</a>'
        new_html = fragment[:match.start()] + replacement + fragment[match.end():]

        return InjectionOutcome(html=new_html, success=True, offset=match.start(3))

    def inject_into_element(self, element: Tag, anchor: str, target_url: str) -> InjectionOutcome:
        """
        Inject into a parsed element in place.

        Walks the element's text nodes and splits the first one holding an
        unlinked match around a new <a> tag. Descendant tags are never
        replaced, so other elements collected from the same tree stay attached.
        Text inside links and inside nested paragraphs or list items is skipped.

        Returns:
            InjectionOutcome; offset is the match position in the element's text
        """
        if not anchor.strip() or element.find_parent('a') is not None:
            return InjectionOutcome(html=element.decode_contents(), success=False)

        pattern = build_text_pattern(anchor)
        offset = 0

        for node in list(element.descendants):
            if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
                continue

            text = str(node)
            match = None if self._is_protected(node, element) else pattern.search(text)
            if not match:
                offset += len(text)
                continue

            link = Tag(name='a', attrs={'href': target_url})
            link.string = match.group(0)

            pieces = []
            if match.start():
                pieces.append(NavigableString(text[:match.start()]))
            pieces.append(link)
            if match.end() < len(text):
                pieces.append(NavigableString(text[match.end():]))
            node.replace_with(*pieces)

            logger.debug(f"Linked '{anchor}' -> {target_url}")
            return InjectionOutcome(html=element.decode_contents(), success=True, offset=offset + match.start())

        return InjectionOutcome(html=element.decode_contents(), success=False)

    def _is_protected(self, node: NavigableString, element: Tag) -> bool:
        """True when the text sits in a link or a nested block below the element"""
        parent = node.parent
        while parent is not None and parent is not element:
            if parent.name in self.protected_tags:
                return True
            parent = parent.parent
        return False

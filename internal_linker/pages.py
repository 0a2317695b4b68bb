"""
Target Page Module
Describes the pages that links can point to and how their URLs are built
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union
from urllib.parse import urlparse
import re


@dataclass(frozen=True)
class PageInfo:
    """A page that may receive internal links"""
    title: str
    slug: str
    description: str = ""
    primary_keyword: str = ""
    secondary_keywords: Tuple[str, ...] = field(default_factory=tuple)
    category: str = ""
    topics: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Lists are accepted but stored as tuples so the page stays hashable
        object.__setattr__(self, 'secondary_keywords', tuple(self.secondary_keywords or ()))
        object.__setattr__(self, 'topics', tuple(self.topics or ()))
        if not self.title or self.title == 'Untitled' or self.title.startswith('http'):
            object.__setattr__(self, 'title', title_from_slug(self.slug))

    @property
    def identifier(self) -> str:
        """Key used to track which targets were already linked"""
        return self.slug

    @property
    def title_word_count(self) -> int:
        return len(self.title.split())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PageInfo':
        """Build a PageInfo from a snake_case or camelCase mapping"""
        def pick(*keys, default=None):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return default

        slug = pick('slug', default='')
        if not slug and pick('url'):
            slug = slug_from_url(pick('url'))

        return cls(
            title=pick('title', default='') or '',
            slug=slug,
            description=pick('description', default='') or '',
            primary_keyword=pick('primary_keyword', 'primaryKeyword', default='') or '',
            secondary_keywords=_as_list(pick('secondary_keywords', 'secondaryKeywords', default=[])),
            category=pick('category', default='') or '',
            topics=_as_list(pick('topics', default=[])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'slug': self.slug,
            'description': self.description,
            'primary_keyword': self.primary_keyword,
            'secondary_keywords': list(self.secondary_keywords),
            'category': self.category,
            'topics': list(self.topics),
        }


def _as_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split('|') if part.strip()]
    return [str(v) for v in value]


def coerce_pages(pages: List[Union[PageInfo, Dict[str, Any]]]) -> List[PageInfo]:
    """Accept PageInfo objects or plain dictionaries"""
    return [p if isinstance(p, PageInfo) else PageInfo.from_dict(p) for p in pages]


def slug_from_url(url: str) -> str:
    """
    Extract the last path segment from a URL.

    Args:
        url: Absolute URL, path, or bare slug

    Returns:
        The slug
    """
    parsed = urlparse(url)
    path = parsed.path if parsed.scheme and parsed.netloc else url
    segments = [s for s in path.strip('/').split('/') if s]
    return segments[-1] if segments else url


def title_from_slug(slug: str) -> str:
    """Turn 'my-page-slug' into 'My Page Slug'"""
    if not slug:
        return "Untitled Page"
    words = re.split(r'[-_]+', slug_from_url(slug))
    return ' '.join(w[:1].upper() + w[1:] for w in words if w) or "Untitled Page"


def resolve_page_url(base_url: str, slug: str) -> str:
    """
    Build the link target for a page.

    Absolute URLs pass through; otherwise the slug is appended to the base URL
    with a trailing slash.
    """
    parsed = urlparse(slug)
    if parsed.scheme in ('http', 'https') and parsed.netloc:
        return slug
    slug = slug.strip('/')
    base = (base_url or '').rstrip('/')
    return f"{base}/{slug}/"


def sort_pages_by_specificity(pages: List[PageInfo]) -> List[PageInfo]:
    """Longer (more specific) titles first; ties keep their input order"""
    return sorted(pages, key=lambda p: -p.title_word_count)

"""
Candidate Generator Module
Enumerates bounded-length phrases from an element's text as possible anchors
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, replace
from collections import Counter
import re

from .config import settings
from .config.lexicon import AnchorLexicon
from .pages import PageInfo

TAG_RE = re.compile(r'<[^>]*>')
SENTENCE_SPLIT_RE = re.compile(r'[.!?]+')
EDGE_PUNCT_RE = re.compile(r'^[^\w]+|[^\w]+$')
NON_WORD_RE = re.compile(r'[^\w\s]')


@dataclass
class SemanticEntity:
    """A topic-like noun phrase found inside an anchor"""
    text: str
    type: str = "topic"
    confidence: float = 0.85
    synonyms: List[str] = field(default_factory=list)
    related_concepts: List[str] = field(default_factory=list)


@dataclass
class ContextWindow:
    """Text surrounding a candidate phrase"""
    before: str = ""
    target: str = ""
    after: str = ""
    sentence: str = ""
    paragraph_theme: str = ""
    document_topics: List[str] = field(default_factory=list)


@dataclass
class AnchorCandidate:
    """A phrase considered for conversion into a link"""
    text: str
    normalized_text: str
    word_count: int
    start: int = 0
    position: str = "middle"  # early, middle, late
    context: ContextWindow = field(default_factory=ContextWindow)
    entities: List[SemanticEntity] = field(default_factory=list)
    semantic_score: float = 0.0
    naturalness_score: float = 0.0
    seo_score: float = 0.0
    contextual_fit: float = 0.0
    quality_score: float = 0.0

    def for_page(self, page: PageInfo) -> 'AnchorCandidate':
        """Unscored copy carrying the page's topics, for scoring against that page"""
        return replace(
            self,
            context=replace(self.context, document_topics=list(page.topics)),
            semantic_score=0.0,
            naturalness_score=0.0,
            seo_score=0.0,
            contextual_fit=0.0,
            quality_score=0.0,
        )

    def metrics(self) -> Dict[str, float]:
        """Snapshot of the scores, rounded for reporting"""
        return {
            'overall': round(self.quality_score, 2),
            'semantic': round(self.semantic_score, 2),
            'contextual': round(self.contextual_fit, 2),
            'natural': round(self.naturalness_score, 2),
            'seo': round(self.seo_score, 2),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'normalized_text': self.normalized_text,
            'word_count': self.word_count,
            'position': self.position,
            'sentence': self.context.sentence,
            'paragraph_theme': self.context.paragraph_theme,
            'entities': [e.text for e in self.entities],
            **self.metrics(),
        }


def strip_tags(text: str) -> str:
    return TAG_RE.sub(' ', text).strip()


def normalize_anchor(text: str) -> str:
    """Lower-case, drop punctuation, collapse whitespace"""
    return ' '.join(NON_WORD_RE.sub('', text.lower()).split())


def position_class(start: int, total_tokens: int) -> str:
    ratio = start / total_tokens if total_tokens else 0
    if ratio < 0.3:
        return "early"
    if ratio > 0.7:
        return "late"
    return "middle"


class CandidateGenerator:
    """
    Generates every window of min_words..max_words tokens as a candidate.

    Usage:
        generator = CandidateGenerator(min_words=3, max_words=8)
        candidates = generator.generate(paragraph_text, page)
    """

    def __init__(
        self,
        min_words: int = settings.DEFAULT_MIN_ANCHOR_WORDS,
        max_words: int = settings.DEFAULT_MAX_ANCHOR_WORDS,
        min_chars: int = settings.MIN_ANCHOR_CHARS,
        context_words: int = settings.CONTEXT_WINDOW_WORDS,
        lexicon: Optional[AnchorLexicon] = None,
    ):
        self.min_words = min_words
        self.max_words = max_words
        self.min_chars = min_chars
        self.context_words = context_words
        self.lexicon = lexicon or AnchorLexicon()

    def generate(self, paragraph: str, page: Optional[PageInfo] = None) -> List[AnchorCandidate]:
        """
        Enumerate phrase candidates from a paragraph.

        Args:
            paragraph: Element text (tags are stripped if present)
            page: Target page; its topics are attached to the context window

        Returns:
            Unscored candidates in generation order (length, then offset)
        """
        text = strip_tags(paragraph)
        words = text.split()
        if len(words) < self.min_words:
            return []

        sentences = [s for s in SENTENCE_SPLIT_RE.split(text) if len(s.strip()) > 20]
        lowered_sentences = [s.lower() for s in sentences]
        theme = self.paragraph_theme(text)
        topics = list(page.topics) if page else []

        candidates = []
        for length in range(self.min_words, self.max_words + 1):
            for start in range(0, len(words) - length + 1):
                phrase_words = words[start:start + length]
                phrase = EDGE_PUNCT_RE.sub('', ' '.join(phrase_words)).strip()
                if len(phrase) < self.min_chars:
                    continue

                sentence = self._containing_sentence(phrase, sentences, lowered_sentences) or text

                candidates.append(AnchorCandidate(
                    text=phrase,
                    normalized_text=normalize_anchor(phrase),
                    word_count=len(phrase.split()),
                    start=start,
                    position=position_class(start, len(words)),
                    context=ContextWindow(
                        before=' '.join(words[max(0, start - self.context_words):start]),
                        target=phrase,
                        after=' '.join(words[start + length:start + length + self.context_words]),
                        sentence=sentence,
                        paragraph_theme=theme,
                        document_topics=topics,
                    ),
                    entities=self.extract_entities(phrase),
                ))

        return candidates

    @staticmethod
    def _containing_sentence(phrase: str, sentences: List[str], lowered: List[str]) -> Optional[str]:
        needle = phrase.lower()
        for sentence, sentence_lower in zip(sentences, lowered):
            if needle in sentence_lower:
                return sentence
        return None

    def paragraph_theme(self, text: str, top_n: int = 3) -> str:
        """The most frequent meaningful words of a paragraph"""
        words = [
            w for w in text.lower().split()
            if len(w) > 4 and w not in self.lexicon.stopwords
        ]
        # Counter keeps first-seen order for ties
        return ' '.join(word for word, _ in Counter(words).most_common(top_n))

    def extract_entities(self, text: str) -> List[SemanticEntity]:
        """Find topic noun phrases using the lexicon's topic patterns"""
        entities = []
        for pattern in self.lexicon.topic_patterns:
            for match in pattern.finditer(text):
                term = match.group(0).strip()
                entities.append(SemanticEntity(
                    text=term,
                    synonyms=self._lookup(term, self.lexicon.synonyms),
                    related_concepts=self._lookup(term, self.lexicon.related_concepts),
                ))
        return entities

    @staticmethod
    def _lookup(term: str, table: Dict[str, List[str]]) -> List[str]:
        term_lower = term.lower()
        found = []
        for key, values in table.items():
            if key in term_lower:
                found.extend(values)
        return found

"""
Anchor Scoring Module
Rates anchor candidates on semantic relevance, naturalness and SEO value
and keeps the best ones
"""

from typing import Any, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, asdict, fields
import logging
import re

from .candidates import AnchorCandidate, CandidateGenerator
from .config import settings
from .config.lexicon import AnchorLexicon
from .pages import PageInfo
from .zones import ConfigurationError, check_number

logger = logging.getLogger(__name__)

WORD_RE = re.compile(r"[\w'-]+")


@dataclass
class AnchorConfig:
    """Configuration for candidate generation and scoring"""
    min_words: int = settings.DEFAULT_MIN_ANCHOR_WORDS
    max_words: int = settings.DEFAULT_MAX_ANCHOR_WORDS
    ideal_word_range: Tuple[int, int] = settings.IDEAL_ANCHOR_WORD_RANGE
    min_quality_score: float = settings.DEFAULT_MIN_QUALITY_SCORE
    semantic_weight: float = settings.SEMANTIC_WEIGHT
    naturalness_weight: float = settings.NATURALNESS_WEIGHT
    seo_weight: float = settings.SEO_WEIGHT
    max_candidates: int = settings.DEFAULT_MAX_CANDIDATES
    max_overlap_with_heading: float = settings.DEFAULT_MAX_OVERLAP_WITH_HEADING
    avoid_heading_duplication: bool = True

    def __post_init__(self):
        if not isinstance(self.ideal_word_range, (list, tuple)) or len(self.ideal_word_range) != 2:
            raise ConfigurationError(f"ideal_word_range must be a pair of word counts, got {self.ideal_word_range!r}")
        self.ideal_word_range = tuple(self.ideal_word_range)
        for label in ('min_words', 'max_words', 'max_candidates'):
            check_number(label, getattr(self, label), integer=True)
        for bound in self.ideal_word_range:
            check_number('ideal_word_range', bound, integer=True)
        for label in ('min_quality_score', 'semantic_weight', 'naturalness_weight',
                      'seo_weight', 'max_overlap_with_heading'):
            check_number(label, getattr(self, label))
        if not isinstance(self.avoid_heading_duplication, bool):
            raise ConfigurationError("avoid_heading_duplication must be true or false")
        if self.min_words < 1 or self.max_words < self.min_words:
            raise ConfigurationError(
                f"Invalid anchor word bounds: {self.min_words}..{self.max_words}"
            )
        weights = (self.semantic_weight, self.naturalness_weight, self.seo_weight)
        if any(w < 0 for w in weights) or sum(weights) <= 0:
            raise ConfigurationError(f"Scoring weights must be non-negative with a positive sum: {weights}")
        if self.max_candidates < 1:
            raise ConfigurationError("max_candidates must be at least 1")

    @property
    def weight_total(self) -> float:
        return self.semantic_weight + self.naturalness_weight + self.seo_weight

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnchorConfig':
        if not isinstance(data, dict):
            raise ConfigurationError(f"Anchor settings must be a mapping, got {data!r}")
        aliases = {
            'minWords': 'min_words', 'minAnchorWords': 'min_words',
            'maxWords': 'max_words', 'maxAnchorWords': 'max_words',
            'idealWordRange': 'ideal_word_range',
            'minQualityScore': 'min_quality_score',
            'semanticWeight': 'semantic_weight',
            'naturalWeight': 'naturalness_weight',
            'naturalnessWeight': 'naturalness_weight',
            'seoWeight': 'seo_weight',
            'maxCandidates': 'max_candidates',
            'maxOverlapWithHeading': 'max_overlap_with_heading',
            'avoidHeadingDuplication': 'avoid_heading_duplication',
        }
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown anchor setting: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['ideal_word_range'] = list(self.ideal_word_range)
        return data


class AnchorScorer:
    """
    Scores and ranks anchor candidates for a target page.

    Usage:
        scorer = AnchorScorer()
        ranked = scorer.rank(candidates, page, paragraph_text)
    """

    def __init__(self, config: Optional[AnchorConfig] = None, lexicon: Optional[AnchorLexicon] = None):
        self.config = config or AnchorConfig()
        self.lexicon = lexicon or AnchorLexicon()

    def _meaningful_words(self, text: str) -> Set[str]:
        return {
            w for w in WORD_RE.findall(text.lower())
            if len(w) > 2 and w not in self.lexicon.stopwords
        }

    def _reference_terms(self, page: PageInfo, paragraph: str) -> List[Tuple[Set[str], int]]:
        """Meaningful words of title, description and paragraph with their weights"""
        return [
            (self._meaningful_words(page.title), 40),
            (self._meaningful_words(page.description or ''), 25),
            (self._meaningful_words(paragraph), 20),
        ]

    def semantic_score(
        self,
        anchor: str,
        page: PageInfo,
        paragraph: str,
        reference_terms: Optional[List[Tuple[Set[str], int]]] = None,
    ) -> float:
        """Word overlap with title, description and paragraph plus keyword bonus"""
        anchor_lower = anchor.lower()
        anchor_words = self._meaningful_words(anchor)
        if reference_terms is None:
            reference_terms = self._reference_terms(page, paragraph)

        score = 0.0
        if anchor_words:
            for terms, weight in reference_terms:
                overlap = len(anchor_words & terms)
                score += overlap / len(anchor_words) * weight

        if page.primary_keyword and page.primary_keyword.lower() in anchor_lower:
            score += 15
        for keyword in page.secondary_keywords:
            if keyword and keyword.lower() in anchor_lower:
                score += 5

        return min(100.0, score)

    def naturalness_score(self, anchor: str, sentence: str) -> float:
        """How well the phrase reads as an anchor inside its sentence"""
        score = 50.0
        words = anchor.split()
        if not words:
            return 0.0

        ideal_low, ideal_high = self.config.ideal_word_range
        count = len(words)
        if ideal_low <= count <= ideal_high:
            score += 15
        elif count in (ideal_low - 1, ideal_high + 1):
            score += 8
        elif count < 3:
            score -= 20
        elif count > 8:
            score -= 15

        anchor_lower = anchor.lower()
        sentence_lower = sentence.lower()
        anchor_pos = sentence_lower.find(anchor_lower)
        if anchor_pos > -1:
            if anchor_pos > 10:
                score += 8
            if anchor_pos < len(sentence_lower) - len(anchor) - 5:
                score += 5

        first_word = words[0].lower()
        last_word = words[-1].lower()

        score += 10 if first_word not in self.lexicon.stopwords else -15
        score += 8 if last_word not in self.lexicon.stopwords else -10

        if first_word in self.lexicon.descriptive_verbs:
            score += 12

        return max(0.0, min(100.0, score))

    def seo_score(self, anchor: str, page: PageInfo) -> float:
        """SEO value of the phrase; 0 for generic anchors like 'click here'"""
        if self.lexicon.find_toxic(anchor):
            return 0.0

        score = 40.0
        anchor_lower = anchor.lower()

        for pattern, boost in self.lexicon.seo_power_patterns:
            if pattern.search(anchor):
                score += boost

        if page.primary_keyword:
            keyword = page.primary_keyword.lower()
            if keyword in anchor_lower:
                score += 20
            else:
                keyword_words = keyword.split()
                matches = sum(1 for w in keyword_words if w in anchor_lower)
                score += matches / len(keyword_words) * 10

        meaningful = [
            w for w in anchor.split()
            if w.lower() not in self.lexicon.stopwords and len(w) > 3
        ]
        if len(meaningful) >= 3:
            score += 10

        return min(100.0, score)

    def quality_score(self, semantic: float, naturalness: float, seo: float) -> float:
        """Weighted average normalized by the weights actually applied"""
        config = self.config
        weighted = (
            semantic * config.semantic_weight
            + naturalness * config.naturalness_weight
            + seo * config.seo_weight
        )
        return weighted / config.weight_total

    def score(
        self,
        candidate: AnchorCandidate,
        page: PageInfo,
        paragraph: str,
        reference_terms: Optional[List[Tuple[Set[str], int]]] = None,
    ) -> AnchorCandidate:
        """Fill in the candidate's sub-scores and composite score"""
        candidate.semantic_score = self.semantic_score(candidate.text, page, paragraph, reference_terms)
        candidate.naturalness_score = self.naturalness_score(candidate.text, candidate.context.sentence)
        candidate.seo_score = self.seo_score(candidate.text, page)
        candidate.contextual_fit = candidate.semantic_score * 0.7 + candidate.naturalness_score * 0.3
        candidate.quality_score = self.quality_score(
            candidate.semantic_score,
            candidate.naturalness_score,
            candidate.seo_score,
        )
        return candidate

    def rank(
        self,
        candidates: List[AnchorCandidate],
        page: PageInfo,
        paragraph: str,
    ) -> List[AnchorCandidate]:
        """
        Score, filter, sort and de-duplicate candidates.

        Args:
            candidates: Unscored candidates in generation order
            page: Target page
            paragraph: Text of the element the candidates came from

        Returns:
            At most max_candidates candidates, best first
        """
        reference_terms = self._reference_terms(page, paragraph)
        accepted = []
        for candidate in candidates:
            self.score(candidate, page, paragraph, reference_terms)
            if candidate.seo_score == 0:
                continue
            if candidate.quality_score < self.config.min_quality_score:
                continue
            accepted.append(candidate)

        # sort() is stable, so ties keep generation order
        accepted.sort(key=lambda c: c.quality_score, reverse=True)

        seen = set()
        ranked = []
        for candidate in accepted:
            if candidate.normalized_text in seen:
                continue
            seen.add(candidate.normalized_text)
            ranked.append(candidate)

        logger.debug(f"{len(ranked)} of {len(candidates)} candidates qualify for '{page.slug}'")
        return ranked[:self.config.max_candidates]


def heading_overlap(candidate: AnchorCandidate, heading: str) -> float:
    """Share of the candidate's longer words that also appear in the heading"""
    heading_words = {w for w in heading.lower().split() if len(w) > 3}
    anchor_words = [w for w in candidate.normalized_text.split() if len(w) > 3]
    overlap = sum(1 for w in anchor_words if w in heading_words)
    return overlap / max(len(anchor_words), 1)


def select_by_heading(
    candidates: List[AnchorCandidate],
    heading: Optional[str],
    max_overlap: float = settings.DEFAULT_MAX_OVERLAP_WITH_HEADING,
) -> Optional[AnchorCandidate]:
    """
    Pick the best candidate that does not repeat the nearby heading.

    Falls back to the top candidate when every candidate overlaps too much.
    """
    if not candidates:
        return None
    if heading and max_overlap < 1:
        for candidate in candidates:
            if heading_overlap(candidate, heading) <= max_overlap:
                return candidate
    return candidates[0]


def order_by_heading(
    candidates: List[AnchorCandidate],
    heading: Optional[str],
    max_overlap: float = settings.DEFAULT_MAX_OVERLAP_WITH_HEADING,
) -> List[AnchorCandidate]:
    """Selected candidate first, the rest in rank order for retries"""
    chosen = select_by_heading(candidates, heading, max_overlap)
    if chosen is None:
        return []
    return [chosen] + [c for c in candidates if c is not chosen]


def find_best_anchors(
    paragraph: str,
    page: PageInfo,
    config: Optional[AnchorConfig] = None,
    lexicon: Optional[AnchorLexicon] = None,
) -> List[AnchorCandidate]:
    """
    Convenience function to generate and rank candidates for one paragraph.

    Args:
        paragraph: Paragraph text
        page: Target page
        config: AnchorConfig object

    Returns:
        Ranked candidates
    """
    config = config or AnchorConfig()
    lexicon = lexicon or AnchorLexicon()
    generator = CandidateGenerator(config.min_words, config.max_words, lexicon=lexicon)
    scorer = AnchorScorer(config, lexicon)
    text = ' '.join(paragraph.split())
    return scorer.rank(generator.generate(text, page), page, text)

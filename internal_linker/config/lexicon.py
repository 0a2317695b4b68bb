"""
Word Lists and Pattern Tables for Anchor Scoring
Tune these to change how anchors are judged without touching scoring logic
"""

import re
from typing import Optional

# Words that make weak anchor boundaries and carry no topical meaning
STOPWORDS = frozenset([
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of',
    'with', 'by', 'from', 'as', 'is', 'was', 'are', 'were', 'been', 'be', 'have',
    'has', 'had', 'do', 'does', 'did', 'will', 'would', 'could', 'should', 'may',
    'might', 'must', 'shall', 'can', 'need', 'this', 'that', 'these', 'those',
    'it', 'its', 'they', 'their', 'what', 'which', 'who', 'when', 'where', 'why',
    'how', 'all', 'each', 'every', 'both', 'few', 'more', 'most', 'other', 'some',
    'such', 'no', 'nor', 'not', 'only', 'own', 'same', 'so', 'than', 'too', 'very',
    'just', 'also', 'now', 'here', 'there', 'into', 'through', 'during', 'before',
    'after', 'above', 'below', 'between', 'under', 'again', 'further', 'then',
    'once', 'any', 'about', 'over', 'being', 'you', 'your', 'we', 'our', 'us',
])

# Generic anchors that are always rejected
TOXIC_ANCHORS = frozenset([
    'click here', 'read more', 'learn more', 'find out more', 'check it out',
    'this article', 'this guide', 'this post', 'this page', 'this link',
    'here', 'link', 'website', 'site', 'more info', 'more information',
    'click', 'tap here', 'go here', 'see more', 'view more', 'continue reading',
])

# (regex, boost) pairs for high-value phrasing
SEO_POWER_PATTERNS = [
    (r'\b(complete|comprehensive|ultimate|definitive)\s+guide\b', 15),
    (r'\b(step[- ]by[- ]step|how[- ]to)\s+\w+', 12),
    (r'\b(best|top|proven|effective)\s+(practices|strategies|techniques|methods)', 14),
    (r'\b(beginner|advanced|expert|professional)\s+\w+', 10),
    (r'\b(optimize|boost|improve|increase|maximize)\s+\w+', 11),
    (r'\b\d{4}\s+(guide|tips|strategies)', 8),
    (r'\b(essential|critical|important|key)\s+\w+', 9),
]

# Action words that open compelling anchors
DESCRIPTIVE_VERBS = frozenset([
    'implementing', 'optimizing', 'building', 'creating', 'developing', 'mastering',
    'understanding', 'leveraging', 'scaling', 'automating', 'streamlining',
    'maximizing', 'improving', 'enhancing', 'accelerating', 'transforming',
])

# Noun-phrase shapes recognised as topic entities
TOPIC_PATTERNS = [
    r'\b(?:[a-z]+\s+){1,3}(?:strategy|technique|method|approach|framework|system|process)\b',
    r'\b(?:[a-z]+\s+){1,2}(?:marketing|optimization|development|management|analysis)\b',
    r'\b(?:content|email|social|digital|search|conversion)\s+[a-z]+\b',
]

SYNONYMS = {
    'strategy': ['approach', 'method', 'technique', 'tactic'],
    'optimization': ['improvement', 'enhancement', 'refinement'],
    'marketing': ['promotion', 'advertising', 'outreach'],
    'development': ['creation', 'building', 'implementation'],
    'guide': ['tutorial', 'walkthrough', 'handbook'],
}

RELATED_CONCEPTS = {
    'seo': ['search rankings', 'organic traffic', 'keyword optimization'],
    'content': ['blogging', 'copywriting', 'content strategy'],
    'email': ['newsletters', 'automation', 'subscriber engagement'],
    'conversion': ['landing pages', 'cta optimization', 'user experience'],
}


class AnchorLexicon:
    """
    Bundle of the word lists and pattern tables used by candidate generation
    and scoring. Pass a custom instance to swap any table.
    """

    def __init__(
        self,
        stopwords=STOPWORDS,
        toxic_anchors=TOXIC_ANCHORS,
        seo_power_patterns=SEO_POWER_PATTERNS,
        descriptive_verbs=DESCRIPTIVE_VERBS,
        topic_patterns=TOPIC_PATTERNS,
        synonyms=SYNONYMS,
        related_concepts=RELATED_CONCEPTS,
    ):
        self.stopwords = frozenset(w.lower() for w in stopwords)
        self.toxic_anchors = frozenset(t.lower() for t in toxic_anchors)
        self.descriptive_verbs = frozenset(v.lower() for v in descriptive_verbs)
        self.synonyms = dict(synonyms)
        self.related_concepts = dict(related_concepts)
        self.seo_power_patterns = [
            (re.compile(pattern, re.IGNORECASE), boost) for pattern, boost in seo_power_patterns
        ]
        self.topic_patterns = [re.compile(pattern, re.IGNORECASE) for pattern in topic_patterns]
        # Whole-word match so 'site' does not reject 'website design'
        self._toxic_patterns = [
            (toxic, re.compile(r'\b' + re.escape(toxic) + r'\b'))
            for toxic in sorted(self.toxic_anchors)
        ]

    def is_stopword(self, word: str) -> bool:
        return word.lower() in self.stopwords

    def find_toxic(self, text: str) -> Optional[str]:
        """Return the first toxic phrase found in the text, or None"""
        lowered = text.lower()
        for toxic, pattern in self._toxic_patterns:
            if pattern.search(lowered):
                return toxic
        return None

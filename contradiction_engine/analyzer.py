"""
Text Analyzer - Lexical profile of a document
=============================================

Deterministic, pattern-based statistics reported next to the findings:
1. Sentences (the extractor's units, with offsets)
2. Word totals and the most frequent words
3. Surface entities: dates, monetary amounts, capitalized names
4. Statistics: counts, averages, lexical diversity, Flesch reading ease
5. Structure: headers, lists, tables, quotes, section titles
6. Sentiment: polarity word counts

Nothing here feeds detection; the profile is informational only.
"""

import logging
import re
from collections import Counter
from typing import List, Tuple

from .extractor import split_units
from .schemas import (
    EntitiesOutput,
    SectionOutput,
    SentenceOutput,
    SentimentOutput,
    StructureOutput,
    TextAnalysisOutput,
    TextStatisticsOutput,
    WordCountOutput,
    WordStatsOutput,
)

logger = logging.getLogger(__name__)

__all__ = ['TextAnalyzer', 'analyze_text', 'count_syllables']


TOP_WORDS = 20
SENTIMENT_THRESHOLD = 0.2

WORD_STRIP_PATTERN = re.compile(r'[^\w\s]')
PARAGRAPH_PATTERN = re.compile(r'\n\s*\n')
WHITESPACE_PATTERN = re.compile(r'\s')
ALPHA_WORD_PATTERN = re.compile(r'\b[a-z]+\b')
NON_WORD_PATTERN = re.compile(r'\W+')

DATE_PATTERNS = [
    re.compile(r'\b\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}\b'),
    re.compile(
        r'\b(?:january|february|march|april|may|june|july|august|september|october|november|december)'
        r'\s+\d{1,2},?\s+\d{4}\b',
        re.IGNORECASE,
    ),
    re.compile(r'\b\d{4}[/\-]\d{1,2}[/\-]\d{1,2}\b'),
]
AMOUNT_PATTERN = re.compile(r'\$[\d,]+(?:\.\d{2})?|\b\d+(?:\.\d{2})?\s*(?:dollars|usd|eur|gbp)\b', re.IGNORECASE)
NAME_PATTERN = re.compile(r'\b[A-Z][a-z]+\s+[A-Z][a-z]+\b')

# Header and list patterns stay on one line
HEADER_PATTERN = re.compile(r'^#{1,6}\s+|^[A-Z][A-Za-z \t]*:[ \t]*$', re.MULTILINE)
SECTION_PATTERN = re.compile(r'^(?:#{1,6}[ \t]+(.+)|([A-Z][A-Za-z \t]*)(?::[ \t]*)?)$', re.MULTILINE)
BULLET_PATTERN = re.compile(r'^[ \t]*[-*•][ \t]+', re.MULTILINE)
NUMBERED_PATTERN = re.compile(r'^[ \t]*\d+[.)][ \t]+', re.MULTILINE)
TABLE_PATTERN = re.compile(r'\|.*\|')
QUOTE_PATTERN = re.compile(r'"[^"]+"|\'[^\']+\'')

SYLLABLE_SUFFIX_PATTERN = re.compile(r'(?:[^laeiouy]es|ed|[^laeiouy]e)$')
VOWEL_GROUP_PATTERN = re.compile(r'[aeiouy]{1,2}')

POSITIVE_WORDS = {
    'good', 'great', 'excellent', 'positive', 'agree', 'correct', 'true',
    'confirmed', 'approved', 'success', 'benefit', 'advantage', 'valid',
}
NEGATIVE_WORDS = {
    'bad', 'poor', 'negative', 'disagree', 'incorrect', 'false', 'fraud',
    'denied', 'rejected', 'failure', 'problem', 'issue', 'invalid', 'contradiction',
}


def count_syllables(word: str) -> int:
    """Estimate syllables in one word (vowel groups after trimming silent endings)."""
    word = word.lower()
    if len(word) <= 3:
        return 1
    word = SYLLABLE_SUFFIX_PATTERN.sub('', word)
    if word.startswith('y'):
        word = word[1:]
    return len(VOWEL_GROUP_PATTERN.findall(word)) or 1


class TextAnalyzer:
    """Compute a ``TextAnalysisOutput`` for one document. Stateless."""

    def analyze(self, text: str) -> TextAnalysisOutput:
        sentences = self.sentences(text)
        words = WORD_STRIP_PATTERN.sub('', text.lower()).split()
        frequency = Counter(words)

        analysis = TextAnalysisOutput(
            sentences=sentences,
            words=WordStatsOutput(
                total=len(words),
                unique=len(frequency),
                top_words=tuple(
                    WordCountOutput(word=word, count=count)
                    for word, count in frequency.most_common(TOP_WORDS)
                ),
            ),
            entities=self.entities(text),
            statistics=self.statistics(text, len(sentences), len(words), len(frequency)),
            structure=self.structure(text),
            sentiment=self.sentiment(text),
        )
        logger.debug(f"Text analysis: {len(sentences)} sentences, {len(words)} words")
        return analysis

    @staticmethod
    def sentences(text: str) -> Tuple[SentenceOutput, ...]:
        return tuple(
            SentenceOutput(text=unit, index=i, word_count=len(unit.split()), position=start)
            for i, (start, _end, unit) in enumerate(split_units(text))
        )

    @staticmethod
    def entities(text: str) -> EntitiesOutput:
        dates = [m.group() for pattern in DATE_PATTERNS for m in pattern.finditer(text)]
        amounts = [m.group() for m in AMOUNT_PATTERN.finditer(text)]
        # Names keep first-seen order without repeats
        names = list(dict.fromkeys(m.group() for m in NAME_PATTERN.finditer(text)))
        return EntitiesOutput(dates=tuple(dates), amounts=tuple(amounts), names=tuple(names))

    @staticmethod
    def readability(text: str, sentence_count: int, word_count: int) -> int:
        """Flesch reading ease, rounded and clamped to 0-100."""
        if sentence_count == 0 or word_count == 0:
            return 0
        syllables = sum(count_syllables(w) for w in ALPHA_WORD_PATTERN.findall(text.lower()))
        score = 206.835 - 1.015 * (word_count / sentence_count) - 84.6 * (syllables / word_count)
        return max(0, min(100, round(score)))

    def statistics(self, text: str, sentence_count: int, word_count: int, unique_count: int) -> TextStatisticsOutput:
        no_spaces = len(WHITESPACE_PATTERN.sub('', text))
        paragraphs = [p for p in PARAGRAPH_PATTERN.split(text) if p.strip()]
        return TextStatisticsOutput(
            character_count=len(text),
            character_count_no_spaces=no_spaces,
            word_count=word_count,
            unique_word_count=unique_count,
            sentence_count=sentence_count,
            paragraph_count=len(paragraphs),
            average_word_length=round(no_spaces / word_count, 4) if word_count else 0.0,
            average_sentence_length=round(word_count / sentence_count, 4) if sentence_count else 0.0,
            lexical_diversity=round(unique_count / word_count, 4) if word_count else 0.0,
            readability_score=self.readability(text, sentence_count, word_count),
        )

    @staticmethod
    def structure(text: str) -> StructureOutput:
        sections: List[SectionOutput] = []
        for match in SECTION_PATTERN.finditer(text):
            title = (match.group(1) or match.group(2)).strip()
            if title:
                sections.append(SectionOutput(title=title, position=match.start()))

        return StructureOutput(
            has_headers=bool(HEADER_PATTERN.search(text)),
            has_bullet_points=bool(BULLET_PATTERN.search(text)),
            has_numbered_list=bool(NUMBERED_PATTERN.search(text)),
            has_tables=bool(TABLE_PATTERN.search(text)),
            has_quotes=bool(QUOTE_PATTERN.search(text)),
            sections=tuple(sections),
        )

    @staticmethod
    def sentiment(text: str) -> SentimentOutput:
        words = NON_WORD_PATTERN.split(text.lower())
        positive = sum(1 for w in words if w in POSITIVE_WORDS)
        negative = sum(1 for w in words if w in NEGATIVE_WORDS)

        total = positive + negative
        score = (positive - negative) / total if total else 0.0
        if score > SENTIMENT_THRESHOLD:
            label = 'positive'
        elif score < -SENTIMENT_THRESHOLD:
            label = 'negative'
        else:
            label = 'neutral'

        return SentimentOutput(
            sentiment=label,
            score=round(score, 4),
            positive_count=positive,
            negative_count=negative,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

_analyzer = TextAnalyzer()


def analyze_text(text: str) -> TextAnalysisOutput:
    """Lexical profile of ``text`` (sentences, words, entities, statistics, structure, sentiment)."""
    return _analyzer.analyze(text)

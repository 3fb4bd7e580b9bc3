"""
Statement Extractor - Extract atomic statements from free text
==============================================================

Simple, rule-based statement extraction:
1. Split text into sentence-like units (with character offsets)
2. Tokenize each unit
3. Extract category statements:
   - TEMPORAL: event + before/after/during + date or anchor event
   - NUMERICAL: currency/percent/count bound to a quantity label
   - LOGICAL: entity + predicate class + polarity (negation markers)
   - CERTAINTY: definite / possible / uncertain register
4. Return immutable Statement objects

Sensitivity widens the lexicons tier by tier (low ⊂ medium ⊂ high). It only
changes how many statements, and therefore candidates, are produced.
Extraction never raises on odd input: unmatched units yield nothing.
"""

import calendar
import logging
import re
from bisect import bisect_left, bisect_right, insort
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Dict, List, Optional, Tuple, Union

from .models import (
    CertaintyPayload,
    LogicalPayload,
    NumericPayload,
    Payload,
    Statement,
    TemporalPayload,
)
from .schemas import (
    CertaintyRegister,
    ContradictionCategory,
    SensitivityLevel,
    TemporalDirection,
)

logger = logging.getLogger(__name__)

__all__ = [
    'StatementExtractor',
    'extract_statements',
    'get_extractor',
    'split_units',
]


LEVELS = {
    SensitivityLevel.LOW: 0,
    SensitivityLevel.MEDIUM: 1,
    SensitivityLevel.HIGH: 2,
}

CATEGORY_ORDER = {
    ContradictionCategory.TEMPORAL: 0,
    ContradictionCategory.NUMERICAL: 1,
    ContradictionCategory.LOGICAL: 2,
    ContradictionCategory.CERTAINTY: 3,
}


# =============================================================================
# Lexicons
# =============================================================================

MONTHS = {
    'january': 1, 'february': 2, 'march': 3, 'april': 4, 'may': 5, 'june': 6,
    'july': 7, 'august': 8, 'september': 9, 'october': 10, 'november': 11,
    'december': 12,
}

MONTH_ABBREVIATIONS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'jun': 6, 'jul': 7, 'aug': 8,
    'sep': 9, 'sept': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

# Direction markers that govern a date or anchor event, by tier
DIRECTION_MARKERS = [
    {
        'before': TemporalDirection.BEFORE,
        'prior to': TemporalDirection.BEFORE,
        'after': TemporalDirection.AFTER,
        'following': TemporalDirection.AFTER,
    },
    {
        'by': TemporalDirection.BEFORE,
        'until': TemporalDirection.BEFORE,
        'on or before': TemporalDirection.BEFORE,
        'since': TemporalDirection.AFTER,
        'on or after': TemporalDirection.AFTER,
        'during': TemporalDirection.DURING,
        'on': TemporalDirection.DURING,
        'in': TemporalDirection.DURING,
    },
    {
        'no later than': TemporalDirection.BEFORE,
        'earlier than': TemporalDirection.BEFORE,
        'till': TemporalDirection.BEFORE,
        'no earlier than': TemporalDirection.AFTER,
        'later than': TemporalDirection.AFTER,
        'subsequent to': TemporalDirection.AFTER,
        'as of': TemporalDirection.DURING,
    },
]

# Nouns that name a quantity ("payment amount", "interest rate"), by tier
QUANTITY_LABELS = [
    {
        'amount', 'payment', 'price', 'cost', 'fee', 'sum', 'salary', 'balance',
        'deposit', 'rent', 'loan', 'debt', 'value', 'compensation', 'damages',
        'fine', 'budget', 'revenue', 'invoice', 'refund', 'wage', 'bonus',
        'settlement', 'premium',
    },
    {
        'rate', 'interest', 'share', 'stake', 'percentage', 'tax', 'commission',
        'discount', 'penalty', 'profit', 'loss', 'income', 'expense', 'expenses',
        'charge', 'number',
    },
    {
        'figure', 'count', 'quantity', 'sales', 'turnover', 'valuation', 'total',
    },
]

ALL_QUANTITY_LABELS = set().union(*QUANTITY_LABELS)

# Labels that can head a quantity but never qualify another one
# ("total payment amount" is keyed as "payment amount")
STANDALONE_LABELS = {'total', 'figure', 'count', 'number', 'quantity'}

# Largest window (in characters) a direction marker can occupy before a date
DIRECTION_WINDOW = 64

CURRENCY_SYMBOLS = {'$': 'usd', '€': 'eur', '£': 'gbp'}
CURRENCY_WORDS = {
    'dollars': 'usd', 'dollar': 'usd', 'usd': 'usd',
    'euros': 'eur', 'euro': 'eur', 'eur': 'eur',
    'pounds': 'gbp', 'gbp': 'gbp',
}
MULTIPLIERS = {
    'thousand': 1e3, 'k': 1e3, 'million': 1e6, 'm': 1e6, 'billion': 1e9, 'bn': 1e9,
}
WORD_NUMBERS = {
    'one': 1, 'two': 2, 'three': 3, 'four': 4, 'five': 5, 'six': 6,
    'seven': 7, 'eight': 8, 'nine': 9, 'ten': 10, 'eleven': 11, 'twelve': 12,
}
COUNT_NOUNS = {
    'time', 'times', 'occasion', 'occasions', 'instance', 'instances',
    'witness', 'witnesses', 'employee', 'employees', 'payment', 'payments',
    'meeting', 'meetings', 'visit', 'visits', 'call', 'calls', 'unit', 'units',
    'day', 'days', 'week', 'weeks', 'month', 'months', 'year', 'years',
    'hour', 'hours', 'share', 'shares', 'person', 'persons', 'people',
}

NEGATIONS = [
    {
        'not', 'never', "n't", "wasn't", "weren't", "isn't", "aren't", "didn't",
        "doesn't", "don't", "hasn't", "haven't", "hadn't", 'cannot', "can't",
        "won't", "wouldn't", "couldn't",
    },
    {'no'},
    set(),
]

# "failed to attend", "refused to sign"
NEGATING_VERBS = [set(), set(), {'failed', 'refused', 'declined', 'neglected'}]

AUXILIARIES = {
    'am', 'is', 'are', 'was', 'were', 'be', 'been', 'being', 'has', 'have',
    'had', 'do', 'does', 'did', 'will', 'would', 'shall', 'should', 'can',
    'could', 'may', 'might', 'must',
}
BE_FORMS = {'am', 'is', 'are', 'was', 'were', 'be', 'been', 'being'}

SKIPPABLE_ADVERBS = {
    'also', 'then', 'later', 'subsequently', 'allegedly', 'reportedly',
    'actually', 'definitely', 'certainly', 'possibly', 'probably', 'clearly',
    'already', 'still', 'ever', 'indeed', 'personally', 'physically', 'only',
    'absolutely', 'undoubtedly', 'surely', 'apparently',
}

DETERMINERS = {
    'the', 'a', 'an', 'this', 'that', 'these', 'those', 'his', 'her', 'their',
    'its', 'our', 'my', 'your', 'any', 'every', 'each', 'some', 'all', 'no',
}
SUBJECT_DETERMINERS = {'the', 'this', 'that', 'these', 'those', 'his', 'her', 'their', 'its'}

PREPOSITIONS = {
    'at', 'in', 'on', 'to', 'for', 'with', 'from', 'into', 'of', 'about',
    'over', 'under', 'between', 'through', 'by', 'during', 'before', 'after',
    'since', 'until', 'following', 'than', 'as', 'upon', 'within', 'without',
}

STOPWORDS = DETERMINERS | PREPOSITIONS | AUXILIARIES | {
    'it', 'he', 'she', 'they', 'we', 'i', 'you', 'him', 'them', 'us', 'me',
    'who', 'whom', 'which', 'what', 'whose', 'there', 'here', 'and', 'or',
    'but', 'if', 'then', 'so', 'not', 'never', 'also', 'both', 'either',
    'neither', 'none', 'nobody', 'nothing', 'such', 'same', 'other',
    'another', 'one', 'someone', 'anyone', 'everyone', 'when', 'where',
    'while', 'because', 'however', 'although', 'nor', 'yes',
}

# Certainty register lexicons, by tier. Checked uncertain -> possible -> definite.
CERTAINTY_MARKERS = {
    CertaintyRegister.UNCERTAIN: [
        ['uncertain', 'unclear', 'unsure', 'not sure', 'doubtful'],
        ['not certain', 'do not know', "don't know", 'unknown'],
        ['cannot recall', "can't recall", 'do not remember', "don't remember",
         'not clear', 'questionable'],
    ],
    CertaintyRegister.POSSIBLE: [
        ['maybe', 'perhaps', 'possibly', 'possible', 'might'],
        ['may', 'probably', 'likely'],
        ['could', 'appears to', 'seems', 'seemed', 'presumably', 'apparently', 'allegedly'],
    ],
    CertaintyRegister.DEFINITE: [
        ['definitely', 'certainly', 'absolutely', 'undoubtedly'],
        ['clearly', 'always', 'surely', 'without doubt', 'beyond doubt', 'no doubt', 'impossible'],
        ['confirmed', 'unquestionably', 'obviously', 'in fact', 'indeed'],
    ],
}

STATE, INTRANSITIVE, TRANSITIVE = 'state', 'intransitive', 'transitive'

# (tier, predicate class, kind, forms, passive participles, inherently negative)
PREDICATES = [
    (0, 'presence', STATE, ('present',), (), False),
    (0, 'presence', TRANSITIVE, ('attend', 'attends', 'attended'), ('attended',), False),
    (0, 'signing', TRANSITIVE, ('sign', 'signs', 'signed'), ('signed',), False),
    (0, 'payment', TRANSITIVE, ('pay', 'pays', 'paid'), ('paid',), False),
    (0, 'receipt', TRANSITIVE, ('receive', 'receives', 'received'), ('received',), False),
    (0, 'sending', TRANSITIVE, ('send', 'sends', 'sent'), ('sent',), False),
    (0, 'delivery', TRANSITIVE, ('deliver', 'delivers', 'delivered'), ('delivered',), False),
    (0, 'occurrence', INTRANSITIVE,
     ('occur', 'occurs', 'occurred', 'happen', 'happens', 'happened'), (), False),
    (1, 'presence', STATE, ('absent',), (), True),
    (1, 'presence', INTRANSITIVE, ('arrive', 'arrives', 'arrived'), (), False),
    (1, 'presence', TRANSITIVE, ('visit', 'visits', 'visited'), ('visited',), False),
    (1, 'meeting', TRANSITIVE, ('meet', 'meets', 'met'), ('met',), False),
    (1, 'approval', TRANSITIVE, ('approve', 'approves', 'approved'), ('approved',), False),
    (1, 'issuance', TRANSITIVE, ('issue', 'issues', 'issued'), ('issued',), False),
    (1, 'occurrence', TRANSITIVE, ('hold', 'holds', 'held'), ('held',), False),
    (1, 'signing', TRANSITIVE, ('execute', 'executes', 'executed'), ('executed',), False),
    (1, 'payment', TRANSITIVE, ('transfer', 'transfers', 'transferred'), ('transferred',), False),
    (2, 'occurrence', TRANSITIVE,
     ('begin', 'begins', 'began', 'start', 'starts', 'started'), ('begun', 'started'), False),
    (2, 'occurrence', TRANSITIVE, ('make', 'makes', 'made'), ('made',), False),
    (2, 'completion', TRANSITIVE,
     ('complete', 'completes', 'completed', 'finish', 'finishes', 'finished'),
     ('completed', 'finished'), False),
    (2, 'presence', TRANSITIVE, ('witness', 'witnessed'), ('witnessed',), False),
    (2, 'reporting', TRANSITIVE, ('report', 'reports', 'reported'), ('reported',), False),
]

TAKE_PLACE_FORMS = {'take', 'takes', 'took', 'taken'}


# =============================================================================
# Units and tokens
# =============================================================================

# A unit ends at terminal punctuation followed by whitespace, at a blank line,
# or at the end of the text.
UNIT_PATTERN = re.compile(r'\S.*?(?:[.!?]+(?=\s|$)|(?=\n[ \t]*\n)|$)', re.DOTALL)

TOKEN_PATTERN = re.compile(r"[A-Za-z][A-Za-z'’\-]*|[$€£]?\d[\d,]*(?:\.\d+)?%?")


def split_units(text: str) -> List[Tuple[int, int, str]]:
    """
    Split text into sentence-like units.

    Returns:
        List of (start, end, unit_text) with offsets into ``text``
    """
    units = []
    for match in UNIT_PATTERN.finditer(text):
        unit = match.group().rstrip()
        if unit:
            units.append((match.start(), match.start() + len(unit), unit))
    return units


@dataclass(frozen=True)
class Token:
    text: str
    norm: str
    start: int
    end: int
    possessive: bool = False

    @property
    def is_word(self) -> bool:
        return self.text[0].isalpha()

    @property
    def is_capitalized(self) -> bool:
        return self.text[0].isupper()


def tokenize(text: str) -> List[Token]:
    tokens = []
    for match in TOKEN_PATTERN.finditer(text):
        raw = match.group()
        norm = raw.lower().replace('’', "'")
        possessive = False
        if norm.endswith("'s") and len(norm) > 2:
            norm = norm[:-2]
            possessive = True
        elif norm.endswith("'"):
            norm = norm[:-1]
            possessive = True
        tokens.append(Token(raw, norm, match.start(), match.end(), possessive))
    return tokens


def singularize(word: str) -> str:
    if len(word) <= 3:
        return word
    if word.endswith('ies'):
        return word[:-3] + 'y'
    if word.endswith(('sses', 'shes', 'ches', 'xes')):
        return word[:-2]
    if word.endswith('s') and not word.endswith('ss'):
        return word[:-1]
    return word


@dataclass(frozen=True)
class PredicateMatch:
    """An event/state predicate with its grammatical participants."""
    predicate: str
    actor: Optional[str]
    theme: Optional[str]
    negated: bool
    marker: Optional[str]
    scope: Optional[str]
    start: int

    @property
    def entity(self) -> Optional[str]:
        return self.actor or self.theme

    @property
    def event_key(self) -> Optional[str]:
        participant = self.theme or self.actor
        return f"{participant}:{self.predicate}" if participant else None


@dataclass(frozen=True)
class _Draft:
    category: ContradictionCategory
    subject: str
    payload: Payload
    position: int


# =============================================================================
# Extractor
# =============================================================================

class StatementExtractor:
    """
    Extract statements from free text.

    One instance per sensitivity level; instances hold only compiled,
    read-only lexicons and are safe to share between threads.
    """

    def __init__(self, sensitivity: Union[SensitivityLevel, str] = SensitivityLevel.MEDIUM):
        self.sensitivity = SensitivityLevel(sensitivity)
        self.level = LEVELS[self.sensitivity]

        self.direction_markers: Dict[str, TemporalDirection] = {}
        for tier in DIRECTION_MARKERS[:self.level + 1]:
            self.direction_markers.update(tier)

        self.quantity_labels = set().union(*QUANTITY_LABELS[:self.level + 1])
        self.negations = set().union(*NEGATIONS[:self.level + 1])
        self.negating_verbs = set().union(*NEGATING_VERBS[:self.level + 1])

        self.predicates: Dict[str, Tuple[str, str, bool, bool]] = {}
        for tier, pclass, kind, forms, participles, negative in PREDICATES:
            if tier > self.level:
                continue
            for form in forms:
                self.predicates[form] = (pclass, kind, form in participles, negative)

        self._build_date_patterns()
        self._build_direction_patterns()
        self._build_numeric_patterns()
        self._build_certainty_patterns()

    # -------------------------------------------------------------------------
    # Pattern construction
    # -------------------------------------------------------------------------

    def _build_date_patterns(self):
        self.month_lookup = dict(MONTHS)
        if self.level >= 2:
            self.month_lookup.update(MONTH_ABBREVIATIONS)
        month_re = '|'.join(sorted(self.month_lookup, key=len, reverse=True))

        self.date_patterns = [
            (re.compile(
                rf'\b(?P<month>{month_re})\.?\s+(?P<day>\d{{1,2}})(?:st|nd|rd|th)?,?\s+(?P<year>\d{{4}})\b',
                re.IGNORECASE), 'named'),
            (re.compile(
                rf'\b(?P<day>\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?(?P<month>{month_re})\.?,?\s+(?P<year>\d{{4}})\b',
                re.IGNORECASE), 'named'),
            (re.compile(r'\b(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})\b'), 'numeric'),
        ]
        if self.level >= 1:
            self.date_patterns += [
                (re.compile(r'\b(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{4}|\d{2})\b'), 'numeric'),
                (re.compile(rf'\b(?P<month>{month_re})\.?,?\s+(?P<year>\d{{4}})\b', re.IGNORECASE), 'named'),
                (re.compile(
                    r'\b(?:in|during|before|after|by|until|since)\s+(?P<year>(?:19|20)\d{2})\b'
                    r'(?!\s*(?:%|percent|dollars|euros|pounds))',
                    re.IGNORECASE), 'year'),
            ]

    def _build_direction_patterns(self):
        alternatives = '|'.join(
            re.escape(marker) for marker in sorted(self.direction_markers, key=len, reverse=True)
        )
        # Marker immediately before a date
        self.direction_before_date = re.compile(
            rf'\b(?P<marker>{alternatives})\s+(?:the\s+)?(?:date\s+of\s+)?$', re.IGNORECASE
        )
        # Marker followed by a named anchor event ("after the meeting")
        event_markers = '|'.join(
            re.escape(m) for m, d in sorted(self.direction_markers.items(), key=lambda kv: -len(kv[0]))
            if m in ('before', 'after', 'prior to', 'following', 'during', 'subsequent to')
        )
        self.direction_event = re.compile(
            rf'\b(?P<marker>{event_markers})\s+(?:the|his|her|their|its)\s+(?P<event>[A-Za-z]+)\b',
            re.IGNORECASE
        ) if self.level >= 1 and event_markers else None

    def _build_numeric_patterns(self):
        multipliers = r'(?:\s*(?P<mult>thousand|million|billion|bn|k|m)\b)?'
        self.currency_patterns = [
            re.compile(r'(?P<sym>[$€£])\s?(?P<num>\d[\d,]*(?:\.\d+)?)' + multipliers, re.IGNORECASE),
            re.compile(
                r'\b(?P<num>\d[\d,]*(?:\.\d+)?)' + multipliers +
                r'\s*(?P<word>dollars?|usd|euros?|eur|pounds|gbp)\b',
                re.IGNORECASE
            ),
        ]
        self.percent_pattern = re.compile(
            r'\b(?P<num>\d+(?:\.\d+)?)\s*(?:%|percent\b|per cent\b)', re.IGNORECASE
        ) if self.level >= 1 else None
        count_words = '|'.join(WORD_NUMBERS)
        self.count_pattern = re.compile(
            rf'\b(?P<num>\d+|{count_words})\s+(?P<noun>[A-Za-z]+)\b', re.IGNORECASE
        ) if self.level >= 1 else None

    def _build_certainty_patterns(self):
        self.certainty_patterns = []
        for register in (CertaintyRegister.UNCERTAIN, CertaintyRegister.POSSIBLE, CertaintyRegister.DEFINITE):
            markers = [m for tier in CERTAINTY_MARKERS[register][:self.level + 1] for m in tier]
            alternatives = '|'.join(re.escape(m) for m in sorted(markers, key=len, reverse=True))
            self.certainty_patterns.append(
                (register, re.compile(rf"(?<![\w'])(?:{alternatives})(?![\w'])", re.IGNORECASE))
            )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def extract(self, text: str) -> List[Statement]:
        """
        Extract statements from free text.

        Args:
            text: Sanitized document text

        Returns:
            Statements ordered by unit, then category, then position
        """
        if not text or not text.strip():
            return []

        statements = []
        for unit_index, (start, end, unit) in enumerate(split_units(text)):
            for draft in self.extract_unit(unit):
                statements.append(Statement(
                    id=f"stmt_{len(statements) + 1:04d}",
                    text=unit,
                    start=start,
                    end=end,
                    unit_index=unit_index,
                    category=draft.category,
                    subject=draft.subject,
                    payload=draft.payload,
                ))

        logger.debug(f"Extracted {len(statements)} statements ({self.sensitivity.value} sensitivity)")
        return statements

    def extract_unit(self, unit: str) -> List[_Draft]:
        """Extract statement drafts from a single unit of text."""
        tokens = tokenize(unit)
        if not tokens:
            return []

        dates = self._find_dates(unit)
        masked = self._mask(unit, [(s, e) for s, e, _, _, _ in dates])
        predicates = self._find_predicates(tokens)

        drafts: List[_Draft] = []
        drafts.extend(self._temporal(unit, tokens, dates, predicates))
        drafts.extend(self._numerical(masked, tokens))
        drafts.extend(self._logical(predicates))
        drafts.extend(self._certainty(masked, tokens, predicates))

        drafts.sort(key=lambda d: (CATEGORY_ORDER[d.category], d.position))
        return drafts

    # -------------------------------------------------------------------------
    # Dates
    # -------------------------------------------------------------------------

    def _find_dates(self, unit: str) -> List[Tuple[int, int, str, int, int]]:
        """Find dates as (start, end, label, first_ordinal, last_ordinal)."""
        found = []
        for pattern, kind in self.date_patterns:
            for match in pattern.finditer(unit):
                resolved = self._resolve_date(match, kind)
                if resolved:
                    start = match.start('year') if kind == 'year' else match.start()
                    found.append((start, match.end('year') if kind == 'year' else match.end()) + resolved)

        # Keep the longest match at each position, drop overlaps
        found.sort(key=lambda d: (d[0], -(d[1] - d[0])))
        dates = []
        last_end = -1
        for item in found:
            if item[0] >= last_end:
                dates.append(item)
                last_end = item[1]
        return dates

    def _resolve_date(self, match: re.Match, kind: str) -> Optional[Tuple[str, int, int]]:
        groups = match.groupdict()
        try:
            year = int(groups['year'])
            if year < 100:
                year += 2000 if year < 50 else 1900

            if kind == 'year':
                return (f"{year}", date(year, 1, 1).toordinal(), date(year, 12, 31).toordinal())

            month_raw = groups['month']
            if month_raw.isdigit():
                month, day = int(month_raw), int(groups['day'])
                if month > 12 and day <= 12:
                    # Day-first numeric date
                    month, day = day, month
            else:
                month = self.month_lookup[month_raw.lower()]
                day = int(groups['day']) if groups.get('day') else None

            if day is None:
                last = calendar.monthrange(year, month)[1]
                return (
                    f"{year}-{month:02d}",
                    date(year, month, 1).toordinal(),
                    date(year, month, last).toordinal(),
                )

            ordinal = date(year, month, day).toordinal()
            return (f"{year}-{month:02d}-{day:02d}", ordinal, ordinal)

        except (ValueError, KeyError):
            return None

    @staticmethod
    def _mask(unit: str, spans: List[Tuple[int, int]]) -> str:
        chars = list(unit)
        for start, end in spans:
            chars[start:end] = ' ' * (end - start)
        return ''.join(chars)

    # -------------------------------------------------------------------------
    # Predicates and noun phrases
    # -------------------------------------------------------------------------

    def _is_content_word(self, token: Token) -> bool:
        return (
            token.is_word
            and token.norm not in STOPWORDS
            and token.norm not in MONTHS
            and token.norm not in self.predicates
            and token.norm not in self.negations
        )

    def _noun_phrase_head(self, tokens: List[Token], k: int) -> Optional[str]:
        """Head noun of the phrase starting at token ``k`` (skipping determiners)."""
        while k < len(tokens) and tokens[k].norm in DETERMINERS:
            k += 1
        head = None
        while k < len(tokens) and self._is_content_word(tokens[k]):
            head = tokens[k].norm
            if tokens[k].possessive:
                break
            k += 1
        return singularize(head) if head else None

    def _scope_after(self, tokens: List[Token], k: int) -> Optional[str]:
        """Object or location governed by a predicate ending before token ``k``."""
        if k < len(tokens) and tokens[k].norm in ('at', 'in', 'on', 'to', 'for', 'with', 'from', 'into', 'of'):
            k += 1
        return self._noun_phrase_head(tokens, k)

    def _find_predicates(self, tokens: List[Token]) -> List[PredicateMatch]:
        matches = []
        for i, token in enumerate(tokens):
            end = i
            if token.norm in TAKE_PLACE_FORMS and i + 1 < len(tokens) and tokens[i + 1].norm == 'place':
                pclass, kind, participle, negative = 'occurrence', INTRANSITIVE, False, False
                end = i + 1
            elif token.norm in self.predicates and not token.possessive:
                pclass, kind, participle, negative = self.predicates[token.norm]
            else:
                continue

            match = self._resolve_predicate(tokens, i, end, pclass, kind, participle, negative)
            if match:
                matches.append(match)
        return matches

    def _resolve_predicate(
        self,
        tokens: List[Token],
        i: int,
        end: int,
        pclass: str,
        kind: str,
        participle: bool,
        negative: bool,
    ) -> Optional[PredicateMatch]:
        negated = negative
        marker = tokens[i].norm if negative else None
        has_be = False

        # Walk back over auxiliaries, negations and adverbs to the subject
        j = i - 1
        while j >= 0:
            norm = tokens[j].norm
            if norm in self.negations and norm != 'no':
                negated = not negated
                marker = norm
            elif norm == 'to' and j > 0 and tokens[j - 1].norm in self.negating_verbs:
                negated = not negated
                marker = tokens[j - 1].norm
                j -= 1
            elif norm in AUXILIARIES:
                has_be = has_be or norm in BE_FORMS
            elif norm.endswith("n't") and norm[:-3] in AUXILIARIES | {'ca', 'wo'}:
                negated = not negated
                marker = norm
            elif norm not in SKIPPABLE_ADVERBS:
                break
            j -= 1

        if j < 0 or not self._is_content_word(tokens[j]):
            return None
        if kind == STATE and not has_be:
            return None

        subject = tokens[j].norm
        # Multi-word proper names ("John Smith")
        if tokens[j].is_capitalized and j > 0 and tokens[j - 1].is_capitalized and self._is_content_word(tokens[j - 1]):
            subject = f"{tokens[j - 1].norm} {subject}"
        elif not tokens[j].is_capitalized:
            subject = singularize(subject)

        # "No payment was received"
        if j > 0 and tokens[j - 1].norm == 'no' and 'no' in self.negations:
            negated = not negated
            marker = 'no'

        scope = self._scope_after(tokens, end + 1)

        if kind == TRANSITIVE and has_be and participle:
            actor, theme = None, subject
        elif kind == TRANSITIVE:
            actor, theme = subject, scope
        elif kind == INTRANSITIVE:
            actor, theme = None, subject
        else:
            actor, theme = subject, None

        return PredicateMatch(
            predicate=pclass,
            actor=actor,
            theme=theme,
            negated=negated,
            marker=marker,
            scope=scope,
            start=tokens[i].start,
        )

    # -------------------------------------------------------------------------
    # TEMPORAL
    # -------------------------------------------------------------------------

    def _temporal(
        self,
        unit: str,
        tokens: List[Token],
        dates: List[Tuple[int, int, str, int, int]],
        predicates: List[PredicateMatch],
    ) -> List[_Draft]:
        references = []

        for start, end, label, first, last in dates:
            # Markers sit right before the date; search a bounded window
            marker = self.direction_before_date.search(unit, max(0, start - DIRECTION_WINDOW), start)
            if not marker:
                continue
            direction = self.direction_markers[marker.group('marker').lower()]
            references.append((marker.start(), TemporalPayload(
                direction=direction,
                anchor_label=label,
                anchor_start=first,
                anchor_end=last,
            )))

        if self.direction_event:
            date_starts = [d[0] for d in dates]
            for match in self.direction_event.finditer(unit):
                event = match.group('event').lower()
                if event in MONTHS or event in STOPWORDS:
                    continue
                k = bisect_right(date_starts, match.start('event')) - 1
                if k >= 0 and match.start('event') < dates[k][1]:
                    continue
                direction = self.direction_markers[match.group('marker').lower()]
                references.append((match.start(), TemporalPayload(
                    direction=direction,
                    anchor_label=singularize(event),
                    anchor_event=singularize(event),
                )))

        if not references:
            return []

        keyed = [p for p in predicates if p.event_key]
        keyed_starts = [p.start for p in keyed]
        fallback = self._determined_subject(tokens) if self.level >= 2 else None

        drafts = []
        seen = set()
        for position, payload in references:
            subject = self._event_subject(keyed, keyed_starts, fallback, position)
            if not subject or (payload.anchor_event and subject.startswith(f"{payload.anchor_event}:")):
                continue
            if (subject, payload) in seen:
                continue
            seen.add((subject, payload))
            drafts.append(_Draft(ContradictionCategory.TEMPORAL, subject, payload, position))
        return drafts

    @staticmethod
    def _event_subject(
        keyed: List[PredicateMatch],
        keyed_starts: List[int],
        fallback: Optional[Tuple[int, str]],
        position: int,
    ) -> Optional[str]:
        """The event a temporal reference at ``position`` constrains."""
        k = bisect_left(keyed_starts, position)
        if k > 0:
            return keyed[k - 1].event_key
        if k < len(keyed):
            return keyed[k].event_key
        # "The hearing was after May 1, 2024."
        if fallback and fallback[0] < position:
            return f"{fallback[1]}:occurrence"
        return None

    def _determined_subject(self, tokens: List[Token]) -> Optional[Tuple[int, str]]:
        """Offset and head of the first determined noun phrase in a unit."""
        for k, token in enumerate(tokens):
            if token.norm in SUBJECT_DETERMINERS:
                head = self._noun_phrase_head(tokens, k)
                if head:
                    return token.start, head
        return None

    # -------------------------------------------------------------------------
    # NUMERICAL
    # -------------------------------------------------------------------------

    def _numerical(self, masked: str, tokens: List[Token]) -> List[_Draft]:
        drafts = []
        seen = set()
        # Claimed spans, sorted by start and never overlapping
        claimed: List[Tuple[int, int]] = []
        starts = [t.start for t in tokens]
        ends = [t.end for t in tokens]
        entity = self._first_entity(tokens)

        def add(start: int, end: int, value: float, unit: str, label: Optional[str], raw: str):
            k = bisect_left(claimed, (start, start))
            if k < len(claimed) and claimed[k][0] < end:
                return
            if k > 0 and claimed[k - 1][1] > start:
                return
            insort(claimed, (start, end))
            if label is None:
                if self.level < 2:
                    return
                label = 'amount' if unit in ('usd', 'eur', 'gbp') else 'quantity'
            key = f"{label}:{unit}"
            if key in seen:
                return
            seen.add(key)
            drafts.append(_Draft(
                ContradictionCategory.NUMERICAL,
                key,
                NumericPayload(value=value, unit=unit, label=label, raw=raw.strip()),
                start,
            ))

        for pattern in self.currency_patterns:
            for match in pattern.finditer(masked):
                value = self._parse_number(match.group('num'), match.group('mult'))
                if value is None:
                    continue
                groups = match.groupdict()
                unit = CURRENCY_SYMBOLS[groups['sym']] if groups.get('sym') else CURRENCY_WORDS[groups['word'].lower()]
                add(match.start(), match.end(), value, unit,
                    self._quantity_label(tokens, starts, ends, match.start(), match.end()), match.group())

        if self.percent_pattern:
            for match in self.percent_pattern.finditer(masked):
                value = self._parse_number(match.group('num'))
                if value is None:
                    continue
                add(match.start(), match.end(), value, 'percent',
                    self._quantity_label(tokens, starts, ends, match.start(), match.end()), match.group())

        if self.count_pattern:
            for match in self.count_pattern.finditer(masked):
                noun = match.group('noun').lower()
                if noun not in COUNT_NOUNS:
                    continue
                raw_num = match.group('num').lower()
                value = float(WORD_NUMBERS[raw_num]) if raw_num in WORD_NUMBERS else self._parse_number(raw_num)
                if value is None:
                    continue
                label = self._quantity_label(tokens, starts, ends, match.start(), match.end())
                if label is None and entity and entity[0] < match.start():
                    label = entity[1]
                add(match.start(), match.end(), value, singularize(noun), label, match.group())

        return drafts

    @staticmethod
    def _parse_number(raw: str, multiplier: Optional[str] = None) -> Optional[float]:
        try:
            value = float(raw.replace(',', ''))
        except ValueError:
            return None
        if multiplier:
            value *= MULTIPLIERS[multiplier.lower()]
        return value

    def _quantity_label(
        self,
        tokens: List[Token],
        starts: List[int],
        ends: List[int],
        start: int,
        end: int,
    ) -> Optional[str]:
        """
        Nearest quantity label: the closest one before the number, else just after.

        The head noun must be active at this sensitivity. Qualifying nouns in
        front of it ("payment amount") come from the full lexicon, so a key
        reads the same at every level. Standalone words ("total") never
        qualify another label.
        """
        hi = bisect_right(ends, start)
        for k in range(hi - 1, max(hi - 8, 0) - 1, -1):
            if tokens[k].norm in self.quantity_labels:
                words = [singularize(tokens[k].norm)]
                m = k - 1
                while (m >= 0 and tokens[m].norm in ALL_QUANTITY_LABELS
                       and tokens[m].norm not in STANDALONE_LABELS):
                    words.insert(0, singularize(tokens[m].norm))
                    m -= 1
                return ' '.join(words)

        lo = bisect_left(starts, end)
        for k in range(lo, min(lo + 4, len(tokens))):
            if tokens[k].norm in self.quantity_labels:
                return singularize(tokens[k].norm)
        return None

    def _first_entity(self, tokens: List[Token]) -> Optional[Tuple[int, str]]:
        """Offset and name of the first proper or possessive noun in a unit."""
        for token in tokens:
            if self._is_content_word(token) and (token.is_capitalized or token.possessive):
                return token.start, token.norm
        return None

    # -------------------------------------------------------------------------
    # LOGICAL
    # -------------------------------------------------------------------------

    def _logical(self, predicates: List[PredicateMatch]) -> List[_Draft]:
        drafts = []
        seen = set()
        for match in predicates:
            entity = match.entity
            if not entity:
                continue
            subject = f"{entity}:{match.predicate}"
            if subject in seen:
                continue
            seen.add(subject)
            drafts.append(_Draft(
                ContradictionCategory.LOGICAL,
                subject,
                LogicalPayload(
                    negated=match.negated,
                    entity=entity,
                    predicate=match.predicate,
                    scope=match.scope,
                    marker=match.marker,
                ),
                match.start,
            ))
        return drafts

    # -------------------------------------------------------------------------
    # CERTAINTY
    # -------------------------------------------------------------------------

    def _certainty(self, masked: str, tokens: List[Token], predicates: List[PredicateMatch]) -> List[_Draft]:
        for register, pattern in self.certainty_patterns:
            match = pattern.search(masked)
            if not match:
                continue
            subject = self._claim_subject(tokens, match.group().lower())
            if not subject and predicates:
                subject = predicates[0].entity
            if not subject:
                return []
            return [_Draft(
                ContradictionCategory.CERTAINTY,
                subject,
                CertaintyPayload(register=register, marker=match.group().lower()),
                match.start(),
            )]
        return []

    def _claim_subject(self, tokens: List[Token], marker: str) -> Optional[str]:
        """
        Entity a sentence is about: the first determined noun ("the defendant")
        or mid-sentence proper name, falling back to a sentence-initial word.
        """
        marker_words = set(marker.split())
        fallback = None
        for k, token in enumerate(tokens):
            if token.norm in marker_words:
                continue
            if token.norm in SUBJECT_DETERMINERS:
                head = self._noun_phrase_head(tokens, k)
                if head and head not in marker_words:
                    return head
            elif self._is_content_word(token) and token.norm not in marker_words:
                if k > 0 and token.is_capitalized:
                    return token.norm
                if k == 0 and fallback is None:
                    fallback = singularize(token.norm)
        return fallback


# =============================================================================
# Singletons & Convenience Functions
# =============================================================================

@lru_cache(maxsize=None)
def get_extractor(sensitivity: SensitivityLevel = SensitivityLevel.MEDIUM) -> StatementExtractor:
    """Get shared extractor instance for a sensitivity level"""
    return StatementExtractor(SensitivityLevel(sensitivity))


def extract_statements(
    text: str,
    sensitivity: Union[SensitivityLevel, str] = SensitivityLevel.MEDIUM,
) -> List[Statement]:
    """
    Convenience function to extract statements from text.

    Args:
        text: Document text
        sensitivity: low | medium | high

    Returns:
        List of Statement objects
    """
    return get_extractor(SensitivityLevel(sensitivity)).extract(text)

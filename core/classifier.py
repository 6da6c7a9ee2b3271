"""Rule-based classification of corrections into catalog grammar rules.

Each detector compares the lower-cased original and corrected text and returns
its own best ClassificationResult or None. Structural evidence (surface
patterns in the diff) scores 0.7-0.95; description keywords are consulted only
when a detector found nothing structural and score 0.5-0.65.
"""

import logging
import re

from .grammar_rules import GRAMMAR_RULES, get_rule
from .models import ClassificationResult, GrammarRule
from .utils import normalize_text, tokenize

logger = logging.getLogger(__name__)

ENCOURAGEMENT = ("Nice work spotting this one! It doesn't match a rule we track yet, "
                 "so keep writing and the patterns will become clearer.")

MASCULINE_DETERMINERS = {'le', 'un', 'ce', 'mon', 'ton', 'son'}
FEMININE_DETERMINERS = {'la', 'une', 'cette', 'ma', 'ta', 'sa'}

ETRE_PARTICIPLES = ('allé', 'venu', 'arrivé', 'parti', 'entré', 'sorti', 'monté', 'descendu',
                    'né', 'mort', 'resté', 'tombé', 'retourné', 'devenu')

ETRE_AUXILIARY = re.compile(
    r'\b(je suis|tu es|il est|elle est|on est|nous sommes|vous êtes|ils sont|elles sont)\s+(\w+)'
)

# Subject pronoun -> expected present-tense ending of a regular -er verb
ER_ENDINGS = {
    'je': 'e', "j'": 'e', 'tu': 'es', 'il': 'e', 'elle': 'e', 'on': 'e',
    'nous': 'ons', 'vous': 'ez', 'ils': 'ent', 'elles': 'ent'
}
_ER_SUFFIXES = ('ent', 'ons', 'ez', 'es', 'e')

IRREGULAR_ADJECTIVES = [
    ('beau', 'belle'), ('beau', 'beaux'), ('belle', 'belles'),
    ('nouveau', 'nouvelle'), ('nouveau', 'nouveaux'), ('nouvelle', 'nouvelles'),
    ('vieux', 'vieille'), ('vieux', 'vieilles'),
]

OBJECT_PRONOUNS = {'le', 'la', 'les', 'me', 'te', 'nous', 'vous', 'lui', 'leur'}

CONTRACTION_PATTERNS = [
    (re.compile(r'\bà\s+le\b'), re.compile(r'\bau\b'), 'contraction-au'),
    (re.compile(r'\bde\s+le\b'), re.compile(r'\bdu\b'), 'contraction-du'),
    (re.compile(r'\bà\s+les\b'), re.compile(r'\baux\b'), 'contraction-aux'),
    (re.compile(r'\bde\s+les\b'), re.compile(r'\bdes\b'), 'contraction-des'),
]

PREPOSITION_CHANGES = [
    (re.compile(r'\bà\b'), re.compile(r'\ben\b')),
    (re.compile(r'\ben\b'), re.compile(r'\bau\b')),
    (re.compile(r'\bde\b'), re.compile(r'\bà\b')),
]

PARTITIVE = re.compile(r"\bdu\b|\bde la\b|\bde l'|\bdes\b")
NEGATION_NE = re.compile(r"\bne\b|\bn'")
NEGATION_PAS = re.compile(r'\bpas\b')
NE_PAS_ADJACENT = re.compile(r'\bne\s+pas\b')


def _match(rule_id: str, confidence: float, source: str, **details) -> ClassificationResult:
    return ClassificationResult(rule_id, confidence, {'source': source, **details})


def _has_keyword(description: str, *keywords: str) -> bool:
    return any(keyword in description for keyword in keywords)


def _has_word(description: str, *words: str) -> bool:
    tokens = set(re.findall(r"[\w'.]+", description))
    return any(word in tokens for word in words)


def detect_contraction(original: str, corrected: str, description: str) -> ClassificationResult | None:
    """à le -> au, de le -> du, à les -> aux, de les -> des."""
    for pattern, correction, rule_id in CONTRACTION_PATTERNS:
        if pattern.search(original) and correction.search(corrected):
            return _match(rule_id, 0.95, 'structural', pattern=pattern.pattern)

    if _has_keyword(description, 'contract') or _has_word(description, 'au', 'du', 'aux'):
        for pattern, _, rule_id in CONTRACTION_PATTERNS:
            if pattern.search(original):
                return _match(rule_id, 0.65, 'description')
    return None


def detect_gender_article(original: str, corrected: str, description: str) -> ClassificationResult | None:
    original_words = tokenize(original)
    corrected_words = tokenize(corrected)

    for i, (orig_word, corr_word) in enumerate(zip(original_words, corrected_words)):
        noun = original_words[i + 1] if i + 1 < len(original_words) else ''
        if orig_word in MASCULINE_DETERMINERS and corr_word in FEMININE_DETERMINERS:
            return _match('gender-article-feminine', 0.85, 'structural',
                          wrong_article=orig_word, correct_article=corr_word, noun=noun)
        if orig_word in FEMININE_DETERMINERS and corr_word in MASCULINE_DETERMINERS:
            return _match('gender-article-masculine', 0.85, 'structural',
                          wrong_article=orig_word, correct_article=corr_word, noun=noun)

    if _has_keyword(description, 'gender', 'article', 'masculine', 'feminine'):
        if 'feminine' in description:
            return _match('gender-article-feminine', 0.5, 'description')
        return _match('gender-article-masculine', 0.5, 'description')
    return None


def _er_stem(word: str) -> str:
    for suffix in _ER_SUFFIXES:
        if word.endswith(suffix) and len(word) > len(suffix) + 1:
            # mangeons / mange share the stem "mang"
            return word[:-len(suffix)].rstrip('e')
    return word


def detect_verb_conjugation(original: str, corrected: str, description: str) -> ClassificationResult | None:
    orig_match = ETRE_AUXILIARY.search(original)
    corr_match = ETRE_AUXILIARY.search(corrected)
    if orig_match and corr_match:
        orig_participle = orig_match.group(2)
        corr_participle = corr_match.group(2)
        if orig_participle != corr_participle:
            base = next((p for p in ETRE_PARTICIPLES if corr_participle.startswith(p)), None)
            if base:
                return _match('passe-compose-etre', 0.9, 'structural',
                              wrong_form=orig_participle, correct_form=corr_participle,
                              subject=orig_match.group(1))

    original_words = tokenize(original)
    corrected_words = tokenize(corrected)
    for i in range(1, min(len(original_words), len(corrected_words))):
        subject = corrected_words[i - 1]
        orig_verb, corr_verb = original_words[i], corrected_words[i]
        if subject != original_words[i - 1] or subject not in ER_ENDINGS or orig_verb == corr_verb:
            continue
        if corr_verb.endswith(ER_ENDINGS[subject]) and _er_stem(orig_verb) == _er_stem(corr_verb):
            return _match('present-tense-regular-er', 0.85, 'structural',
                          wrong_form=orig_verb, correct_form=corr_verb, subject=subject)

    if _has_keyword(description, 'conjugat', 'verb', 'tense'):
        if _has_keyword(description, 'passé', 'past'):
            return _match('passe-compose-etre', 0.6, 'description')
        return _match('present-tense-regular-er', 0.5, 'description')
    return None


def detect_adjective_agreement(original: str, corrected: str, description: str) -> ClassificationResult | None:
    for orig_word, corr_word in zip(tokenize(original), tokenize(corrected)):
        if orig_word == corr_word:
            continue
        if corr_word in (orig_word + 'e', orig_word + 'es'):
            return _match('adjective-agreement', 0.85, 'structural',
                          wrong_form=orig_word, correct_form=corr_word, agreement='feminine/plural')
        if corr_word == orig_word + 's':
            return _match('adjective-agreement', 0.85, 'structural',
                          wrong_form=orig_word, correct_form=corr_word, agreement='plural')
        for masculine, feminine in IRREGULAR_ADJECTIVES:
            if {orig_word, corr_word} == {masculine, feminine}:
                return _match('adjective-agreement', 0.9, 'structural',
                              wrong_form=orig_word, correct_form=corr_word, agreement='irregular')

    if _has_keyword(description, 'adjective', 'agreement', 'accord'):
        return _match('adjective-agreement', 0.6, 'description')
    return None


def detect_preposition(original: str, corrected: str, description: str) -> ClassificationResult | None:
    for before, after in PREPOSITION_CHANGES:
        if before.search(original) and after.search(corrected):
            return _match('prepositions-place', 0.7, 'structural', preposition_change=True)

    if _has_keyword(description, 'preposition') or _has_word(description, 'à', 'de', 'en'):
        return _match('prepositions-place', 0.5, 'description')
    return None


def detect_negation(original: str, corrected: str, description: str) -> ClassificationResult | None:
    corrected_negated = NEGATION_NE.search(corrected) and NEGATION_PAS.search(corrected)
    if corrected_negated and NEGATION_PAS.search(original):
        if not NEGATION_NE.search(original):
            return _match('negation-ne-pas', 0.9, 'structural', issue='missing ne')
        if NE_PAS_ADJACENT.search(original) and not NE_PAS_ADJACENT.search(corrected):
            return _match('negation-ne-pas', 0.85, 'structural', issue='pas placed before the verb')

    if _has_keyword(description, 'negation', 'negative', 'ne...pas', 'ne ... pas'):
        return _match('negation-ne-pas', 0.65, 'description')
    return None


def detect_partitive_article(original: str, corrected: str, description: str) -> ClassificationResult | None:
    if PARTITIVE.search(corrected) and not PARTITIVE.search(original):
        return _match('partitive-article', 0.75, 'structural', issue='missing partitive article')

    if _has_keyword(description, 'partitive', 'article partitif'):
        return _match('partitive-article', 0.65, 'description')
    return None


def detect_pronoun(original: str, corrected: str, description: str) -> ClassificationResult | None:
    original_words = tokenize(original)
    corrected_words = tokenize(corrected)
    if original_words != corrected_words and sorted(original_words) == sorted(corrected_words):
        for pronoun in OBJECT_PRONOUNS:
            if pronoun in original_words and original_words.index(pronoun) != corrected_words.index(pronoun):
                return _match('direct-object-pronouns', 0.85, 'structural',
                              pronoun=pronoun, issue='pronoun placement')

    if _has_keyword(description, 'pronoun', 'pronom'):
        return _match('direct-object-pronouns', 0.6, 'description')
    return None


# Ties on confidence go to the detector listed first.
DETECTOR_PRIORITY = (
    ('contraction', detect_contraction),
    ('gender_article', detect_gender_article),
    ('verb_conjugation', detect_verb_conjugation),
    ('adjective_agreement', detect_adjective_agreement),
    ('preposition', detect_preposition),
    ('negation', detect_negation),
    ('partitive_article', detect_partitive_article),
    ('pronoun', detect_pronoun),
)


def classify(original: str, corrected: str, description: str = '') -> ClassificationResult:
    """Map a correction to the best-matching catalog rule.

    Never raises. Empty original or corrected text returns a null result
    without running any detector.
    """
    original = normalize_text(original)
    corrected = normalize_text(corrected)
    description = normalize_text(description)
    if not original or not corrected:
        return ClassificationResult.no_match()

    best = ClassificationResult.no_match()
    for name, detector in DETECTOR_PRIORITY:
        try:
            result = detector(original, corrected, description)
        except Exception as e:
            logger.error(f"Detector {name} failed on {original!r} -> {corrected!r}: {e}")
            continue
        if result is None or result.rule_id not in GRAMMAR_RULES:
            continue
        if result.confidence > best.confidence:
            result.evidence['detector'] = name
            best = result

    if best.matched:
        logger.debug(f"Classified {original!r} as {best.rule_id} ({best.confidence})")
    return best


class AnalyzedError:
    """An upstream correction enriched with its classification."""

    def __init__(self, index: int, example: str, suggestion: str, issue: str,
                 classification: ClassificationResult):
        self.index = index
        self.example = example
        self.suggestion = suggestion
        self.issue = issue
        self.classification = classification

    @property
    def rule(self) -> GrammarRule | None:
        return get_rule(self.classification.rule_id)

    @property
    def encouragement(self) -> str | None:
        """Generic encouragement shown in place of a grammar explanation for unmatched errors."""
        return None if self.rule else ENCOURAGEMENT

    def to_dict(self) -> dict:
        rule = self.rule
        return {
            'index': self.index,
            'issue': self.issue,
            'example': self.example,
            'suggestion': self.suggestion,
            'rule_id': self.classification.rule_id,
            'confidence': self.classification.confidence,
            'evidence': self.classification.evidence,
            'rule': rule.to_dict() if rule else None,
            'encouragement': self.encouragement
        }


def analyze_errors(corrections: list[dict] | None) -> list[AnalyzedError]:
    """Classify a batch of upstream {issue?, example, suggestion} corrections.
    Entries that are not dicts are skipped."""
    analyzed = []
    for position, correction in enumerate(corrections or [], start=1):
        if not isinstance(correction, dict):
            logger.warning(f"Skipping malformed correction #{position}: {correction!r}")
            continue
        example = correction.get('example') or ''
        suggestion = correction.get('suggestion') or ''
        issue = correction.get('issue') or ''
        analyzed.append(AnalyzedError(
            index=position,
            example=example,
            suggestion=suggestion,
            issue=issue,
            classification=classify(example, suggestion, issue)
        ))
    return analyzed

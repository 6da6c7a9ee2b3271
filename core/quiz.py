"""Quiz generation, answer validation and hints."""

import logging
import random
import re

from .config import APPLICATION_POINTS, DEFAULT_QUIZ_RULES, MAX_MASTERY_LEVEL, MIN_MASTERY_LEVEL, RECOGNITION_POINTS
from .grammar_rules import get_rule
from .models import Category, ClassificationResult, GrammarRule, QuestionType, QuizItem
from .utils import normalize_answer

logger = logging.getLogger(__name__)

GENERIC_DISTRACTORS = (
    'This rule has many exceptions',
    'Usage varies by region',
    'Both forms are equally correct',
)

RULE_DISTRACTORS = {
    Category.CONTRACTIONS: (
        'Articles never contract with prepositions in French',
        'Contractions are optional depending on formality',
        'Only plural articles contract with prepositions',
    ),
    Category.GENDER_AGREEMENT: (
        'All nouns ending in -e are feminine',
        'Articles must match the first letter of the noun',
        'Gender agreement is only required in written French',
    ),
    Category.VERB_CONJUGATION: (
        'All verbs use avoir in passé composé',
        'Past participles never change form',
        'Subject agreement is optional in compound tenses',
    ),
    Category.ADJECTIVE_AGREEMENT: (
        'Adjectives in French never change form',
        'Agreement is only needed for irregular adjectives',
        'Feminine adjectives always end in -e',
    ),
    Category.PREPOSITIONS: (
        'All countries use the preposition "à"',
        'Prepositions in French are interchangeable',
        'Use "en" for all geographical locations',
    ),
    Category.NEGATION: (
        'Only "pas" is needed for negation',
        'Negation comes after the verb in French',
        '"Ne" is optional in spoken French',
    ),
}

ARTICLE_TOKENS = {'le', 'la', 'un', 'une', 'les', 'des'}

# Token most relevant to a category when blanking a sentence
KEY_TOKENS = {
    Category.CONTRACTIONS: {'au', 'du', 'aux', 'des'},
    Category.GENDER_AGREEMENT: ARTICLE_TOKENS,
    Category.ARTICLES: ARTICLE_TOKENS | {'du'},
}

ARTICLE_ALTERNATIVES = {
    'le': ('la', 'les', 'un'),
    'la': ('le', 'les', 'une'),
    'un': ('une', 'le', 'des'),
    'une': ('un', 'la', 'des'),
    'les': ('le', 'la', 'des'),
    'des': ('les', 'un', 'une'),
}

BLANK_ALTERNATIVES = {
    Category.CONTRACTIONS: {
        'au': ('à le', 'à la', 'aux'),
        'du': ('de le', 'de la', 'des'),
        'aux': ('à les', 'au', 'à la'),
        'des': ('de les', 'du', 'de la'),
    },
    Category.GENDER_AGREEMENT: ARTICLE_ALTERNATIVES,
    Category.ARTICLES: {**ARTICLE_ALTERNATIVES, 'du': ('de la', 'des', 'de')},
}

CONTRACTION_EXPANSIONS = (
    (re.compile(r'\baux\b'), ('à les', 'au', 'à la')),
    (re.compile(r'\bau\b'), ('à le', 'à la', 'aux')),
    (re.compile(r'\bdu\b'), ('de le', 'de la', 'des')),
    (re.compile(r'\bdes\b'), ('de les', 'du', 'de la')),
)

ARTICLE_SWAPS = (
    (re.compile(r'\ble\b'), 'la'),
    (re.compile(r'\bla\b'), 'le'),
    (re.compile(r'\bun\b'), 'une'),
    (re.compile(r'\bune\b'), 'un'),
)

PARTICIPLE_ENDING = re.compile(r'é(e?)s?$')

GENERIC_HINTS = {
    QuestionType.RULE_EXPLANATION: 'Think about the fundamental grammar rule being applied.',
    QuestionType.APPLICATION: 'Apply the same rule pattern you learned.',
    QuestionType.ERROR_IDENTIFICATION: 'Look carefully at articles, verb forms, and word agreements.',
}


def _contraction_alternatives(answer: str) -> list[str]:
    for pattern, expansions in CONTRACTION_EXPANSIONS:
        if pattern.search(answer):
            return [pattern.sub(expansion, answer, count=1) for expansion in expansions]
    return []


def _article_alternatives(answer: str) -> list[str]:
    return [pattern.sub(swap, answer, count=1) for pattern, swap in ARTICLE_SWAPS]


def _verb_alternatives(answer: str) -> list[str]:
    return [PARTICIPLE_ENDING.sub('er', answer), PARTICIPLE_ENDING.sub('é', answer)]


def _generic_alternatives(answer: str) -> list[str]:
    return [f'{answer} (incorrect form)', 'Both forms are correct']


APPLICATION_ALTERNATIVES = {
    Category.CONTRACTIONS: _contraction_alternatives,
    Category.GENDER_AGREEMENT: _article_alternatives,
    Category.VERB_CONJUGATION: _verb_alternatives,
}


def _generic_blank_alternatives(word: str) -> list[str]:
    return [word + 's', word + 'e', word[:-1]]


class QuizGenerator:
    """Builds level-gated quiz items for a classified error.

    All shuffling and random selection goes through ``rng`` so a seeded
    ``random.Random`` yields reproducible quizzes.
    """

    def __init__(self, rng: random.Random = None):
        self.rng = rng or random.Random()

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}-{self.rng.getrandbits(48):012x}"

    def _finalize_options(self, correct: str, candidates: list[str], limit: int = 3) -> list[str]:
        """Dedupe candidates (by normalized form), drop any equal to the correct
        answer, keep ``limit`` of them and shuffle in the correct answer."""
        seen = {normalize_answer(correct)}
        distractors = []
        for candidate in candidates:
            key = normalize_answer(candidate)
            if not key or key in seen:
                continue
            seen.add(key)
            distractors.append(candidate)
        options = [correct] + distractors[:limit]
        self.rng.shuffle(options)
        return options

    def _resolve_rule(self, classification) -> GrammarRule | None:
        if classification is None:
            return None
        rule_id = classification.rule_id if isinstance(classification, ClassificationResult) else classification
        return get_rule(rule_id)

    # Question builders. Each returns None when the rule lacks the material.

    def rule_explanation(self, rule: GrammarRule, original: str = '', corrected: str = '') -> QuizItem:
        candidates = list(RULE_DISTRACTORS.get(rule.category, GENERIC_DISTRACTORS))
        if rule.related_rules:
            related = get_rule(rule.related_rules[0])
            if related and related.statement != rule.statement:
                candidates.append(related.statement)
        self.rng.shuffle(candidates)

        if original and corrected:
            prompt = f'Why is "{corrected}" correct instead of "{original}"?'
        else:
            prompt = 'Which statement correctly describes this rule?'

        return QuizItem(
            id=self._new_id('rule'),
            type=QuestionType.RULE_EXPLANATION,
            difficulty_level=2,
            prompt=prompt,
            options=self._finalize_options(rule.statement, candidates),
            correct_answer=rule.statement,
            explanation=f"{rule.statement}. {rule.explanation}",
            points=RECOGNITION_POINTS,
            rule_id=rule.id
        )

    def application(self, rule: GrammarRule) -> QuizItem | None:
        if rule.practice_items:
            practice = self.rng.choice(rule.practice_items)
            prompt, answer, hint = practice.prompt, practice.answer, practice.hint
        else:
            pairs = [ex for ex in rule.examples if ex.incorrect and ex.correct]
            if not pairs:
                return None
            example = self.rng.choice(pairs)
            prompt, answer, hint = f"Fix this sentence: {example.incorrect}", example.correct, None

        options = None
        if 'Transform:' in prompt or 'Fix:' in prompt:
            build = APPLICATION_ALTERNATIVES.get(rule.category, _generic_alternatives)
            options = self._finalize_options(answer, build(answer))
            if len(options) < 2:
                options = self._finalize_options(answer, _generic_alternatives(answer))

        return QuizItem(
            id=self._new_id('apply'),
            type=QuestionType.APPLICATION,
            difficulty_level=3,
            prompt=prompt,
            options=options,
            correct_answer=answer,
            explanation=f"The correct answer applies the rule: {rule.statement}",
            points=APPLICATION_POINTS,
            hint=hint or (rule.hints[0] if rule.hints else None),
            rule_id=rule.id
        )

    def error_identification(self, rule: GrammarRule) -> QuizItem | None:
        if len(rule.examples) < 2:
            return None
        incorrect_examples = rule.incorrect_examples
        if not incorrect_examples:
            return None

        incorrect = self.rng.choice(incorrect_examples)
        correct_sentences = [s for s in rule.correct_examples if s != incorrect][:2]
        options = self._finalize_options(incorrect, correct_sentences, limit=2)
        if len(options) < 2:
            return None

        return QuizItem(
            id=self._new_id('identify'),
            type=QuestionType.ERROR_IDENTIFICATION,
            difficulty_level=1,
            prompt=f"Which sentence has a {rule.category.display_name} error?",
            options=options,
            correct_answer=incorrect,
            explanation=f'"{incorrect}" contains an error. {rule.statement}',
            points=RECOGNITION_POINTS,
            rule_id=rule.id
        )

    def sentence_construction(self, rule: GrammarRule) -> QuizItem | None:
        examples = [ex for ex in rule.examples if ex.correct]
        if not examples:
            return None
        example = self.rng.choice(examples)
        words = example.correct.split()

        key_tokens = KEY_TOKENS.get(rule.category, set())
        index = next((i for i, w in enumerate(words) if w.lower().strip('.,!?;') in key_tokens), None)
        if index is None:
            index = len(words) // 2

        blank = words[index].strip('.,!?;')
        sentence = ' '.join('____' if i == index else w for i, w in enumerate(words))

        alternatives = BLANK_ALTERNATIVES.get(rule.category, {}).get(blank.lower())
        candidates = list(alternatives) if alternatives else _generic_blank_alternatives(blank)

        return QuizItem(
            id=self._new_id('construct'),
            type=QuestionType.FILL_BLANK,
            difficulty_level=4,
            prompt=f"Fill in the blank: {sentence}",
            options=self._finalize_options(blank, candidates),
            correct_answer=blank,
            explanation=f'The correct word is "{blank}". {rule.statement}',
            points=APPLICATION_POINTS,
            translation=example.translation,
            rule_id=rule.id
        )

    def default_quiz(self) -> list[QuizItem]:
        """A single 'which sentence is correct' item drawn from a basic rule."""
        rule = get_rule(self.rng.choice(DEFAULT_QUIZ_RULES))
        example = self.rng.choice([ex for ex in rule.examples if ex.correct])
        wrong = rule.incorrect_examples
        if not wrong:
            build = APPLICATION_ALTERNATIVES.get(rule.category, _generic_alternatives)
            wrong = build(example.correct)

        return [QuizItem(
            id=self._new_id('default'),
            type=QuestionType.ERROR_IDENTIFICATION,
            difficulty_level=1,
            prompt='Which sentence is grammatically correct?',
            options=self._finalize_options(example.correct, wrong),
            correct_answer=example.correct,
            explanation=rule.statement,
            points=RECOGNITION_POINTS,
            translation=example.translation,
            rule_id=rule.id
        )]

    def generate(self, classification, mastery_level: int,
                 original: str = '', corrected: str = '') -> list[QuizItem]:
        """Generate the quiz for a classification at the learner's mastery level.

        Args:
            classification: ClassificationResult or rule id; None or an unknown
                rule yields the default quiz
            mastery_level: 1-4, clamped into range
            original: the learner's sentence, used in explanation prompts
            corrected: the corrected sentence
        """
        rule = self._resolve_rule(classification)
        if rule is None:
            return self.default_quiz()

        try:
            level = max(MIN_MASTERY_LEVEL, min(MAX_MASTERY_LEVEL, int(mastery_level)))
        except (TypeError, ValueError):
            level = MIN_MASTERY_LEVEL
        builders = {
            1: (lambda: self.error_identification(rule),),
            2: (lambda: self.error_identification(rule),
                lambda: self.rule_explanation(rule, original, corrected)),
            3: (lambda: self.rule_explanation(rule, original, corrected),
                lambda: self.application(rule)),
            4: (lambda: self.application(rule),
                lambda: self.sentence_construction(rule)),
        }[level]

        items = [item for item in (build() for build in builders) if item is not None]
        logger.debug(f"Generated {len(items)} question(s) for {rule.id} at level {level}")
        return items

    def generate_mixed(self, classification, count: int = 3,
                       original: str = '', corrected: str = '') -> list[QuizItem]:
        """Up to ``count`` items from all question types in random order."""
        rule = self._resolve_rule(classification)
        if rule is None:
            return self.default_quiz()

        builders = [
            lambda: self.rule_explanation(rule, original, corrected),
            lambda: self.application(rule),
            lambda: self.error_identification(rule),
            lambda: self.sentence_construction(rule),
        ]
        self.rng.shuffle(builders)

        items = []
        for build in builders:
            if len(items) >= count:
                break
            item = build()
            if item is not None:
                items.append(item)
        return items


def validate_answer(question: QuizItem, user_answer: str) -> dict:
    """Check an answer by normalized strict equality.

    Returns:
        dict with keys correct, feedback, points, correct_answer
    """
    if question is None or not (user_answer or '').strip():
        return {
            'correct': False,
            'feedback': 'Please provide an answer.',
            'points': 0,
            'correct_answer': question.correct_answer if question else None
        }

    is_correct = normalize_answer(user_answer) == normalize_answer(question.correct_answer)
    if is_correct:
        feedback = f"Correct! {question.explanation}"
    else:
        feedback = f'Not quite. The correct answer is "{question.correct_answer}". {question.explanation}'

    return {
        'correct': is_correct,
        'feedback': feedback,
        'points': question.points if is_correct else 0,
        'correct_answer': question.correct_answer
    }


def generate_hint(question: QuizItem) -> str:
    if question.hint:
        return question.hint
    if question.type == QuestionType.FILL_BLANK:
        if question.translation:
            return f"Translation: {question.translation}"
        return 'Consider the context of the sentence.'
    return GENERIC_HINTS.get(question.type, 'Review the rule explanation if you need help.')

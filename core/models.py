"""Domain models for the grammar coach."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Category(str, Enum):
    """Grammar rule category."""

    CONTRACTIONS = 'contractions'
    GENDER_AGREEMENT = 'gender-agreement'
    VERB_CONJUGATION = 'verb-conjugation'
    ADJECTIVE_AGREEMENT = 'adjective-agreement'
    PREPOSITIONS = 'prepositions'
    PRONOUNS = 'pronouns'
    NEGATION = 'negation'
    ARTICLES = 'articles'

    @property
    def display_name(self) -> str:
        return self.value.replace('-', ' ')


class Difficulty(str, Enum):
    BEGINNER = 'beginner'
    INTERMEDIATE = 'intermediate'


class QuestionType(str, Enum):
    ERROR_IDENTIFICATION = 'error_identification'
    RULE_EXPLANATION = 'rule_explanation'
    APPLICATION = 'application'
    FILL_BLANK = 'fill_blank'


@dataclass(frozen=True)
class RuleExample:
    correct: str
    incorrect: Optional[str] = None
    translation: Optional[str] = None
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'correct': self.correct,
            'incorrect': self.incorrect,
            'translation': self.translation,
            'note': self.note
        }


@dataclass(frozen=True)
class PracticeItem:
    prompt: str
    answer: str
    hint: Optional[str] = None

    def to_dict(self) -> dict:
        return {'prompt': self.prompt, 'answer': self.answer, 'hint': self.hint}


@dataclass(frozen=True)
class GrammarRule:
    """One grammar phenomenon with its correct and incorrect surface forms."""

    id: str
    category: Category
    statement: str
    explanation: str
    examples: tuple[RuleExample, ...] = ()
    exceptions: tuple[str, ...] = ()
    common_mistakes: tuple[str, ...] = ()
    related_rules: tuple[str, ...] = ()
    difficulty: Difficulty = Difficulty.BEGINNER
    practice_items: tuple[PracticeItem, ...] = ()
    hints: tuple[str, ...] = ()

    @property
    def incorrect_examples(self) -> list[str]:
        return [ex.incorrect for ex in self.examples if ex.incorrect]

    @property
    def correct_examples(self) -> list[str]:
        return [ex.correct for ex in self.examples if ex.correct]

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'category': self.category.value,
            'statement': self.statement,
            'explanation': self.explanation,
            'examples': [ex.to_dict() for ex in self.examples],
            'exceptions': list(self.exceptions),
            'common_mistakes': list(self.common_mistakes),
            'related_rules': list(self.related_rules),
            'difficulty': self.difficulty.value,
            'practice_items': [p.to_dict() for p in self.practice_items],
            'hints': list(self.hints)
        }


class ClassificationResult:
    """Best catalog match for a correction, or no match."""

    def __init__(self, rule_id: str | None, confidence: float, evidence: dict = None):
        self.rule_id = rule_id
        self.confidence = confidence
        self.evidence = evidence or {}

    @classmethod
    def no_match(cls) -> 'ClassificationResult':
        return cls(None, 0.0)

    @property
    def matched(self) -> bool:
        return self.rule_id is not None

    def to_dict(self) -> dict:
        return {
            'rule_id': self.rule_id,
            'confidence': self.confidence,
            'evidence': self.evidence
        }

    def __repr__(self) -> str:
        return f"ClassificationResult(rule_id={self.rule_id!r}, confidence={self.confidence})"


class QuizItem:
    """A single generated quiz question."""

    def __init__(self, id: str, type: QuestionType, difficulty_level: int, prompt: str,
                 correct_answer: str, explanation: str, points: int,
                 options: list[str] | None = None, hint: str | None = None,
                 translation: str | None = None, rule_id: str | None = None):
        self.id = id
        self.type = type
        self.difficulty_level = difficulty_level
        self.prompt = prompt
        self.correct_answer = correct_answer
        self.explanation = explanation
        self.points = points
        self.options = options
        self.hint = hint
        self.translation = translation
        self.rule_id = rule_id

    @property
    def is_multiple_choice(self) -> bool:
        return bool(self.options)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'type': self.type.value,
            'difficulty_level': self.difficulty_level,
            'prompt': self.prompt,
            'options': list(self.options) if self.options else None,
            'correct_answer': self.correct_answer,
            'explanation': self.explanation,
            'points': self.points,
            'hint': self.hint,
            'translation': self.translation,
            'rule_id': self.rule_id
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'QuizItem':
        return cls(
            id=data['id'],
            type=QuestionType(data['type']),
            difficulty_level=data['difficulty_level'],
            prompt=data['prompt'],
            correct_answer=data['correct_answer'],
            explanation=data['explanation'],
            points=data['points'],
            options=data.get('options'),
            hint=data.get('hint'),
            translation=data.get('translation'),
            rule_id=data.get('rule_id')
        )

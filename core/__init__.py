from .models import (
    Category, Difficulty, QuestionType,
    RuleExample, PracticeItem, GrammarRule,
    ClassificationResult, QuizItem
)
from .interfaces import Storage, Clock
from .utils import SystemClock, normalize_text, normalize_answer
from .grammar_rules import GRAMMAR_RULES, get_rule, get_all_rules
from .classifier import classify, analyze_errors, AnalyzedError
from .quiz import QuizGenerator, validate_answer, generate_hint
from .progress import RuleMasteryRecord, UserProgress, ProgressTracker, experience_required
from .history import AnalysisHistory
from .config import (
    MIN_MASTERY_LEVEL, MAX_MASTERY_LEVEL,
    PROMOTE_ACCURACY, PROMOTE_MIN_ATTEMPTS,
    DEMOTE_ACCURACY, DEMOTE_MIN_ATTEMPTS,
    RECOGNITION_POINTS, APPLICATION_POINTS, LANGUAGE
)

__all__ = [
    'Category', 'Difficulty', 'QuestionType',
    'RuleExample', 'PracticeItem', 'GrammarRule',
    'ClassificationResult', 'QuizItem',
    'Storage', 'Clock', 'SystemClock',
    'normalize_text', 'normalize_answer',
    'GRAMMAR_RULES', 'get_rule', 'get_all_rules',
    'classify', 'analyze_errors', 'AnalyzedError',
    'QuizGenerator', 'validate_answer', 'generate_hint',
    'RuleMasteryRecord', 'UserProgress', 'ProgressTracker', 'experience_required',
    'AnalysisHistory',
    'MIN_MASTERY_LEVEL', 'MAX_MASTERY_LEVEL',
    'PROMOTE_ACCURACY', 'PROMOTE_MIN_ATTEMPTS',
    'DEMOTE_ACCURACY', 'DEMOTE_MIN_ATTEMPTS',
    'RECOGNITION_POINTS', 'APPLICATION_POINTS', 'LANGUAGE'
]

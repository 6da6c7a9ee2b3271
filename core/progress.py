"""Per-user mastery tracking: rule levels, streaks, experience and recommendations."""

import functools
import logging
import math
import threading
import weakref
from datetime import date, datetime, timedelta

from .config import (
    MIN_MASTERY_LEVEL, MAX_MASTERY_LEVEL,
    PROMOTE_ACCURACY, PROMOTE_MIN_ATTEMPTS,
    DEMOTE_ACCURACY, DEMOTE_MIN_ATTEMPTS,
    WEAK_ACCURACY_THRESHOLD, WEAK_MIN_ATTEMPTS, WEAK_ACCURACY_BAND, WEAK_RULES_LIMIT,
    XP_BASE, XP_EXPONENT,
    STREAK_CELEBRATION_DAYS, PROGRESSION_MASTERED_COUNT,
    REVIEW_FUNDAMENTALS_MIN_QUIZZES, REVIEW_FUNDAMENTALS_ACCURACY,
    RECENT_ACTIVITY_LIMIT, PROGRESS_KEY_PREFIX
)
from .grammar_rules import get_rule
from .interfaces import Clock, Storage
from .utils import SystemClock

logger = logging.getLogger(__name__)


def experience_required(level: int) -> int:
    """Total experience needed to reach an account level."""
    return math.floor(XP_BASE * level ** XP_EXPONENT)


def _percent(correct: int, total: int) -> int:
    return round(correct / total * 100) if total > 0 else 0


class RuleMasteryRecord:
    """Attempt history and mastery level for one rule."""

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        self.attempts = 0
        self.correct = 0
        self.level = MIN_MASTERY_LEVEL
        self.last_practiced_at = None
        self.total_points = 0

    @property
    def accuracy(self) -> float:
        return self.correct / self.attempts if self.attempts > 0 else 0.0

    @property
    def is_mastered(self) -> bool:
        return self.accuracy >= PROMOTE_ACCURACY and self.attempts >= PROMOTE_MIN_ATTEMPTS

    @property
    def is_weak(self) -> bool:
        return self.accuracy < WEAK_ACCURACY_THRESHOLD and self.attempts >= WEAK_MIN_ATTEMPTS

    @property
    def status(self) -> str:
        if self.attempts == 0:
            return 'new'
        if self.is_mastered:
            return 'mastered'
        if self.accuracy < DEMOTE_ACCURACY:
            return 'struggling'
        return 'progressing'

    def record(self, correct: bool, points: int, now: datetime) -> None:
        """Count one attempt and move the level by at most one step."""
        self.attempts += 1
        if correct:
            self.correct += 1
            self.total_points += points
        self.last_practiced_at = now.isoformat()

        if self.accuracy >= PROMOTE_ACCURACY and self.attempts >= PROMOTE_MIN_ATTEMPTS:
            self.level = min(MAX_MASTERY_LEVEL, self.level + 1)
        elif self.accuracy < DEMOTE_ACCURACY and self.attempts >= DEMOTE_MIN_ATTEMPTS:
            self.level = max(MIN_MASTERY_LEVEL, self.level - 1)

    def to_dict(self) -> dict:
        return {
            'attempts': self.attempts,
            'correct': self.correct,
            'level': self.level,
            'last_practiced_at': self.last_practiced_at,
            'total_points': self.total_points
        }

    @classmethod
    def from_dict(cls, rule_id: str, data: dict) -> 'RuleMasteryRecord':
        record = cls(rule_id)
        record.attempts = int(data.get('attempts', 0))
        record.correct = int(data.get('correct', 0))
        record.level = int(data.get('level', MIN_MASTERY_LEVEL))
        record.last_practiced_at = data.get('last_practiced_at')
        if record.last_practiced_at:
            datetime.fromisoformat(record.last_practiced_at)
        record.total_points = int(data.get('total_points', 0))
        if not 0 <= record.correct <= record.attempts:
            raise ValueError(f"Invalid counts for {rule_id}: {record.correct}/{record.attempts}")
        if not MIN_MASTERY_LEVEL <= record.level <= MAX_MASTERY_LEVEL:
            raise ValueError(f"Invalid mastery level for {rule_id}: {record.level}")
        return record


class UserProgress:
    """Everything persisted about one learner."""

    def __init__(self):
        self.rules_mastery = {}  # rule_id -> RuleMasteryRecord
        self.total_quizzes = 0
        self.total_correct = 0
        self.streak_days = 0
        self.last_practice_date = None  # ISO date of the last attempt
        self.level = 1
        self.experience = 0

    def record_attempt(self, rule_id: str, correct: bool, points: int, now: datetime) -> dict:
        """Apply one answered question to the rule record, streak and account level.

        Returns:
            dict with keys level_up, new_level, points_earned, streak
        """
        points = max(0, points)
        record = self.rules_mastery.get(rule_id)
        if record is None:
            record = RuleMasteryRecord(rule_id)
            self.rules_mastery[rule_id] = record
        previous_level = record.level
        record.record(correct, points, now)
        if record.level != previous_level:
            logger.info(f"Rule {rule_id} moved from level {previous_level} to {record.level}")

        self.total_quizzes += 1
        if correct:
            self.total_correct += 1
            self.experience += points

        self._update_streak(now.date())

        level_up = False
        if correct and self.experience >= experience_required(self.level + 1):
            self.level += 1
            level_up = True

        return {
            'level_up': level_up,
            'new_level': self.level,
            'points_earned': points if correct else 0,
            'streak': self.streak_days
        }

    def _update_streak(self, today: date) -> None:
        last = date.fromisoformat(self.last_practice_date[:10]) if self.last_practice_date else None
        if last == today:
            pass
        elif last is not None and last == today - timedelta(days=1):
            self.streak_days += 1
        else:
            self.streak_days = 1
        self.last_practice_date = today.isoformat()

    def get_rule_mastery(self, rule_id: str) -> int:
        record = self.rules_mastery.get(rule_id)
        return record.level if record else MIN_MASTERY_LEVEL

    def get_weak_rules(self, limit: int = WEAK_RULES_LIMIT) -> list[str]:
        """Rules below 70% accuracy with at least two attempts, weakest first.
        Accuracies within 0.1 of each other are ordered by attempts, most first."""
        def compare(a, b):
            if abs(a.accuracy - b.accuracy) > WEAK_ACCURACY_BAND:
                return -1 if a.accuracy < b.accuracy else 1
            return b.attempts - a.attempts

        weak = [record for record in self.rules_mastery.values() if record.is_weak]
        weak.sort(key=functools.cmp_to_key(compare))
        return [record.rule_id for record in weak[:limit]]

    def get_mastered_rules(self) -> list[str]:
        return [rule_id for rule_id, record in self.rules_mastery.items() if record.is_mastered]

    def get_rule_performance(self, rule_id: str) -> dict:
        record = self.rules_mastery.get(rule_id) or RuleMasteryRecord(rule_id)
        return {
            'rule_id': rule_id,
            'attempts': record.attempts,
            'correct': record.correct,
            'accuracy': _percent(record.correct, record.attempts),
            'level': record.level,
            'last_practiced_at': record.last_practiced_at,
            'total_points': record.total_points,
            'status': record.status
        }

    def get_user_stats(self) -> dict:
        return {
            'total_quizzes': self.total_quizzes,
            'total_correct': self.total_correct,
            'accuracy': _percent(self.total_correct, self.total_quizzes),
            'streak': self.streak_days,
            'level': self.level,
            'experience': self.experience,
            'experience_to_next_level': experience_required(self.level + 1),
            'last_practice_date': self.last_practice_date,
            'rules_count': len(self.rules_mastery)
        }

    def get_category_performance(self) -> dict:
        """Correct/attempt totals grouped by rule category."""
        performance = {}
        for rule_id, record in self.rules_mastery.items():
            rule = get_rule(rule_id)
            category = rule.category.value if rule else 'other'
            totals = performance.setdefault(category, {'correct': 0, 'total': 0})
            totals['correct'] += record.correct
            totals['total'] += record.attempts
        for totals in performance.values():
            totals['accuracy'] = _percent(totals['correct'], totals['total'])
        return performance

    def get_recent_activity(self, limit: int = RECENT_ACTIVITY_LIMIT) -> list[dict]:
        practiced = [r for r in self.rules_mastery.values() if r.last_practiced_at]
        practiced.sort(key=lambda r: datetime.fromisoformat(r.last_practiced_at), reverse=True)
        return [{
            'rule_id': r.rule_id,
            'last_practiced_at': r.last_practiced_at,
            'accuracy': _percent(r.correct, r.attempts),
            'attempts': r.attempts
        } for r in practiced[:limit]]

    def get_recommendations(self) -> list[dict]:
        """Advice derived from the current state. Never persisted."""
        recommendations = []
        weak_rules = self.get_weak_rules(3)
        mastered = self.get_mastered_rules()
        stats = self.get_user_stats()

        if weak_rules:
            plural = 's' if len(weak_rules) > 1 else ''
            recommendations.append({
                'type': 'focus',
                'priority': 'high',
                'message': f"Focus on improving {len(weak_rules)} challenging rule{plural}",
                'action': 'review-weak-rules',
                'data': weak_rules
            })

        if self.streak_days >= STREAK_CELEBRATION_DAYS:
            recommendations.append({
                'type': 'achievement',
                'priority': 'medium',
                'message': f"Amazing! You've maintained a {self.streak_days}-day streak!",
                'action': 'celebrate'
            })
        elif self.streak_days == 0:
            recommendations.append({
                'type': 'motivation',
                'priority': 'medium',
                'message': 'Start a new learning streak today!',
                'action': 'practice-daily'
            })

        if len(mastered) >= PROGRESSION_MASTERED_COUNT:
            recommendations.append({
                'type': 'progression',
                'priority': 'medium',
                'message': f"You've mastered {len(mastered)} rules! Try advanced exercises.",
                'action': 'increase-difficulty'
            })

        if (stats['total_quizzes'] >= REVIEW_FUNDAMENTALS_MIN_QUIZZES
                and stats['accuracy'] < REVIEW_FUNDAMENTALS_ACCURACY):
            recommendations.append({
                'type': 'strategy',
                'priority': 'high',
                'message': 'Consider reviewing grammar explanations before practicing',
                'action': 'review-fundamentals'
            })

        return recommendations

    def get_progress_summary(self) -> dict:
        return {
            'stats': self.get_user_stats(),
            'mastered_rules_count': len(self.get_mastered_rules()),
            'struggling_rules_count': len(self.get_weak_rules()),
            'category_performance': self.get_category_performance(),
            'recent_activity': self.get_recent_activity(),
            'recommendations': self.get_recommendations()
        }

    def to_dict(self) -> dict:
        return {
            'rules_mastery': {rule_id: r.to_dict() for rule_id, r in self.rules_mastery.items()},
            'total_quizzes': self.total_quizzes,
            'total_correct': self.total_correct,
            'streak_days': self.streak_days,
            'last_practice_date': self.last_practice_date,
            'level': self.level,
            'experience': self.experience
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'UserProgress':
        """Rebuild progress from stored JSON. Raises ValueError on malformed data."""
        if not isinstance(data, dict):
            raise ValueError(f"Progress must be an object, got {type(data).__name__}")
        progress = cls()
        try:
            progress.rules_mastery = {
                rule_id: RuleMasteryRecord.from_dict(rule_id, record)
                for rule_id, record in data.get('rules_mastery', {}).items()
            }
            progress.total_quizzes = int(data.get('total_quizzes', 0))
            progress.total_correct = int(data.get('total_correct', 0))
            progress.streak_days = int(data.get('streak_days', 0))
            progress.last_practice_date = data.get('last_practice_date')
            if progress.last_practice_date:
                date.fromisoformat(progress.last_practice_date[:10])
            progress.level = max(1, int(data.get('level', 1)))
            progress.experience = max(0, int(data.get('experience', 0)))
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Malformed progress data: {e}") from e
        if not 0 <= progress.total_correct <= progress.total_quizzes:
            raise ValueError(f"Invalid totals: {progress.total_correct}/{progress.total_quizzes}")
        if progress.streak_days < 0:
            raise ValueError(f"Invalid streak: {progress.streak_days}")
        return progress


class ProgressTracker:
    """Loads and saves UserProgress through a Storage backend.

    Attempts for the same user are serialized with a per-user lock so
    concurrent requests cannot lose updates.
    """

    def __init__(self, storage: Storage, clock: Clock = None):
        self.storage = storage
        self.clock = clock or SystemClock()
        self._locks = weakref.WeakValueDictionary()  # dropped once no caller holds the lock
        self._locks_guard = threading.Lock()

    def _key(self, user_id: str) -> str:
        return f"{PROGRESS_KEY_PREFIX}{user_id}"

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(user_id, threading.Lock())

    def load(self, user_id: str) -> UserProgress:
        """Load a user's progress, starting fresh if none is stored or it is unreadable."""
        try:
            data = self.storage.get(self._key(user_id))
            if data is None:
                return UserProgress()
            return UserProgress.from_dict(data)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Corrupt progress for user {user_id}, starting fresh: {e}")
            return UserProgress()

    def save(self, user_id: str, progress: UserProgress) -> None:
        self.storage.set(self._key(user_id), progress.to_dict())

    def reset(self, user_id: str) -> UserProgress:
        with self._lock_for(user_id):
            self.storage.delete(self._key(user_id))
        logger.info(f"Reset progress for user {user_id}")
        return UserProgress()

    def record_attempt(self, user_id: str, rule_id: str, correct: bool, points: int = 0) -> dict:
        with self._lock_for(user_id):
            progress = self.load(user_id)
            result = progress.record_attempt(rule_id, correct, points, self.clock.now())
            self.save(user_id, progress)
        if result['level_up']:
            logger.info(f"User {user_id} reached level {result['new_level']}")
        return result

    def export_progress(self, user_id: str) -> dict:
        return self.load(user_id).to_dict()

    def import_progress(self, user_id: str, data: dict) -> UserProgress:
        """Replace a user's progress with a backup. Raises ValueError if the backup is malformed."""
        progress = UserProgress.from_dict(data)
        with self._lock_for(user_id):
            self.save(user_id, progress)
        logger.info(f"Imported progress for user {user_id} ({len(progress.rules_mastery)} rules)")
        return progress

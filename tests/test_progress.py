"""Unit tests for mastery tracking."""

import threading
import unittest
from datetime import datetime

from core.progress import RuleMasteryRecord, UserProgress, ProgressTracker, experience_required
from core.config import MIN_MASTERY_LEVEL, MAX_MASTERY_LEVEL

from mocks import MockStorage, FixedClock

NOW = datetime(2024, 3, 10, 9, 30)


def progress_with(**rules) -> UserProgress:
    """Build progress with rule records given as rule_id=(correct, attempts)."""
    progress = UserProgress()
    for rule_id, (correct, attempts) in rules.items():
        record = RuleMasteryRecord(rule_id)
        record.correct = correct
        record.attempts = attempts
        progress.rules_mastery[rule_id] = record
    return progress


class TestExperienceCurve(unittest.TestCase):

    def test_thresholds(self):
        self.assertEqual(experience_required(1), 100)
        self.assertEqual(experience_required(2), 282)
        self.assertEqual(experience_required(3), 519)
        self.assertEqual(experience_required(4), 800)


class TestRecordAttempt(unittest.TestCase):
    """Tests for counting attempts and the per-rule level state machine."""

    def setUp(self):
        self.progress = UserProgress()

    def test_first_attempt_creates_record(self):
        result = self.progress.record_attempt('contraction-au', True, 10, NOW)
        record = self.progress.rules_mastery['contraction-au']
        self.assertEqual(record.attempts, 1)
        self.assertEqual(record.correct, 1)
        self.assertEqual(record.total_points, 10)
        self.assertEqual(record.last_practiced_at, NOW.isoformat())
        self.assertEqual(result, {'level_up': False, 'new_level': 1, 'points_earned': 10, 'streak': 1})

    def test_counts_match_calls(self):
        outcomes = [True, False, True, True, False, False, True, True, True, False, True]
        for correct in outcomes:
            self.progress.record_attempt('adjective-agreement', correct, 10, NOW)
        record = self.progress.rules_mastery['adjective-agreement']
        self.assertEqual(record.attempts, len(outcomes))
        self.assertEqual(record.correct, sum(outcomes))
        self.assertEqual(self.progress.total_quizzes, len(outcomes))
        self.assertEqual(self.progress.total_correct, sum(outcomes))

    def test_negative_points_never_lower_experience(self):
        self.progress.record_attempt('contraction-au', True, 10, NOW)
        result = self.progress.record_attempt('contraction-au', True, -10, NOW)
        self.assertEqual(result['points_earned'], 0)
        self.assertEqual(self.progress.experience, 10)
        self.assertEqual(self.progress.rules_mastery['contraction-au'].total_points, 10)

    def test_five_correct_promotes(self):
        levels = []
        for _ in range(5):
            self.progress.record_attempt('contraction-au', True, 10, NOW)
            levels.append(self.progress.get_rule_mastery('contraction-au'))
        self.assertEqual(levels, [1, 1, 1, 1, 2])

    def test_no_promotion_before_five_attempts(self):
        for _ in range(4):
            self.progress.record_attempt('contraction-au', True, 10, NOW)
        self.assertEqual(self.progress.get_rule_mastery('contraction-au'), MIN_MASTERY_LEVEL)

    def test_no_demotion_before_three_attempts(self):
        self.progress.rules_mastery['negation-ne-pas'] = RuleMasteryRecord('negation-ne-pas')
        self.progress.rules_mastery['negation-ne-pas'].level = 3
        self.progress.record_attempt('negation-ne-pas', False, 10, NOW)
        self.progress.record_attempt('negation-ne-pas', False, 10, NOW)
        self.assertEqual(self.progress.get_rule_mastery('negation-ne-pas'), 3)
        self.progress.record_attempt('negation-ne-pas', False, 10, NOW)
        self.assertEqual(self.progress.get_rule_mastery('negation-ne-pas'), 2)

    def test_level_moves_at_most_one_step(self):
        previous = MIN_MASTERY_LEVEL
        for i in range(40):
            self.progress.record_attempt('partitive-article', i % 7 != 0, 10, NOW)
            level = self.progress.get_rule_mastery('partitive-article')
            self.assertLessEqual(abs(level - previous), 1)
            self.assertTrue(MIN_MASTERY_LEVEL <= level <= MAX_MASTERY_LEVEL)
            previous = level

    def test_level_capped_at_max(self):
        for _ in range(30):
            self.progress.record_attempt('contraction-au', True, 10, NOW)
        self.assertEqual(self.progress.get_rule_mastery('contraction-au'), MAX_MASTERY_LEVEL)

    def test_wrong_answer_earns_nothing(self):
        result = self.progress.record_attempt('contraction-au', False, 15, NOW)
        self.assertEqual(result['points_earned'], 0)
        self.assertEqual(self.progress.experience, 0)
        self.assertEqual(self.progress.rules_mastery['contraction-au'].total_points, 0)

    def test_unknown_rule_mastery(self):
        self.assertEqual(self.progress.get_rule_mastery('never-seen'), 1)


class TestStreak(unittest.TestCase):
    """Calendar-day streak rules."""

    def setUp(self):
        self.progress = UserProgress()

    def test_first_attempt_starts_streak(self):
        self.assertEqual(self.progress.record_attempt('contraction-au', True, 10, NOW)['streak'], 1)
        self.assertEqual(self.progress.last_practice_date, '2024-03-10')

    def test_same_day_unchanged(self):
        self.progress.streak_days = 4
        self.progress.last_practice_date = '2024-03-10'
        result = self.progress.record_attempt('contraction-au', True, 10, datetime(2024, 3, 10, 23, 59))
        self.assertEqual(result['streak'], 4)

    def test_yesterday_increments(self):
        for previous in [0, 1, 6]:
            self.progress.streak_days = previous
            self.progress.last_practice_date = '2024-03-09'
            result = self.progress.record_attempt('contraction-au', True, 10, NOW)
            self.assertEqual(result['streak'], previous + 1)

    def test_calendar_day_not_24_hours(self):
        self.progress.streak_days = 2
        self.progress.last_practice_date = '2024-03-09'
        result = self.progress.record_attempt('contraction-au', True, 10, datetime(2024, 3, 10, 0, 5))
        self.assertEqual(result['streak'], 3)

    def test_two_day_gap_resets(self):
        self.progress.streak_days = 9
        self.progress.last_practice_date = '2024-03-08'
        self.assertEqual(self.progress.record_attempt('contraction-au', True, 10, NOW)['streak'], 1)

    def test_month_boundary(self):
        self.progress.streak_days = 3
        self.progress.last_practice_date = '2024-02-29'
        result = self.progress.record_attempt('contraction-au', True, 10, datetime(2024, 3, 1, 8))
        self.assertEqual(result['streak'], 4)


class TestAccountLevel(unittest.TestCase):
    """Experience and account level-ups."""

    def test_level_up_when_crossing_threshold(self):
        progress = UserProgress()
        progress.experience = 280
        result = progress.record_attempt('contraction-au', True, 10, NOW)
        self.assertTrue(result['level_up'])
        self.assertEqual(result['new_level'], 2)

    def test_no_level_up_below_threshold(self):
        progress = UserProgress()
        progress.experience = 200
        result = progress.record_attempt('contraction-au', True, 10, NOW)
        self.assertFalse(result['level_up'])
        self.assertEqual(progress.level, 1)

    def test_one_level_per_attempt(self):
        progress = UserProgress()
        progress.experience = 5000
        result = progress.record_attempt('contraction-au', True, 10, NOW)
        self.assertEqual(result['new_level'], 2)
        result = progress.record_attempt('contraction-au', True, 10, NOW)
        self.assertEqual(result['new_level'], 3)

    def test_wrong_answer_never_levels(self):
        progress = UserProgress()
        progress.experience = 5000
        self.assertFalse(progress.record_attempt('contraction-au', False, 10, NOW)['level_up'])


class TestQueries(unittest.TestCase):
    """Weak, mastered, performance and summary queries."""

    def test_weak_rules_scenario(self):
        progress = progress_with(A=(3, 10), B=(4, 10))
        self.assertEqual(progress.get_weak_rules(1), ['A'])

    def test_weak_rules_filter(self):
        progress = progress_with(good=(8, 10), single=(0, 1), weak=(1, 2))
        self.assertEqual(progress.get_weak_rules(), ['weak'])

    def test_weak_rules_band_orders_by_attempts(self):
        # 0.40 and 0.45 are within the band, so more attempts first
        progress = progress_with(few=(2, 5), many=(9, 20), worst=(0, 4))
        self.assertEqual(progress.get_weak_rules(), ['worst', 'many', 'few'])

    def test_weak_rules_limit(self):
        progress = progress_with(a=(0, 2), b=(0, 3), c=(0, 4))
        self.assertEqual(len(progress.get_weak_rules(2)), 2)

    def test_mastered_rules(self):
        progress = progress_with(done=(9, 10), almost=(4, 4), shaky=(8, 10))
        self.assertEqual(progress.get_mastered_rules(), ['done'])

    def test_rule_performance_status(self):
        progress = progress_with(m=(5, 5), s=(1, 4), p=(3, 4), q=(4, 4))
        self.assertEqual(progress.get_rule_performance('m')['status'], 'mastered')
        self.assertEqual(progress.get_rule_performance('s')['status'], 'struggling')
        self.assertEqual(progress.get_rule_performance('p')['status'], 'progressing')
        self.assertEqual(progress.get_rule_performance('q')['status'], 'progressing')
        self.assertEqual(progress.get_rule_performance('never')['status'], 'new')

    def test_rule_performance_fields(self):
        perf = progress_with(r=(2, 3)).get_rule_performance('r')
        self.assertEqual(perf['accuracy'], 67)
        self.assertEqual(perf['attempts'], 3)
        self.assertEqual(perf['level'], 1)

    def test_user_stats(self):
        progress = UserProgress()
        progress.record_attempt('contraction-au', True, 10, NOW)
        progress.record_attempt('contraction-du', False, 10, NOW)
        stats = progress.get_user_stats()
        self.assertEqual(stats['total_quizzes'], 2)
        self.assertEqual(stats['accuracy'], 50)
        self.assertEqual(stats['experience'], 10)
        self.assertEqual(stats['experience_to_next_level'], 282)
        self.assertEqual(stats['rules_count'], 2)

    def test_empty_stats(self):
        stats = UserProgress().get_user_stats()
        self.assertEqual(stats['accuracy'], 0)
        self.assertEqual(stats['streak'], 0)

    def test_category_performance(self):
        progress = progress_with(**{'contraction-au': (3, 4), 'contraction-du': (1, 4), 'made-up': (1, 1)})
        perf = progress.get_category_performance()
        self.assertEqual(perf['contractions'], {'correct': 4, 'total': 8, 'accuracy': 50})
        self.assertEqual(perf['other']['total'], 1)

    def test_recent_activity_newest_first(self):
        progress = UserProgress()
        progress.record_attempt('contraction-au', True, 10, datetime(2024, 3, 1, 10))
        progress.record_attempt('negation-ne-pas', True, 10, datetime(2024, 3, 5, 10))
        progress.record_attempt('contraction-du', True, 10, datetime(2024, 3, 3, 10))
        activity = progress.get_recent_activity()
        self.assertEqual([a['rule_id'] for a in activity],
                         ['negation-ne-pas', 'contraction-du', 'contraction-au'])
        self.assertEqual(len(progress.get_recent_activity(limit=1)), 1)


class TestRecommendations(unittest.TestCase):

    def actions(self, progress):
        return [r['action'] for r in progress.get_recommendations()]

    def test_new_user_gets_motivation(self):
        self.assertEqual(self.actions(UserProgress()), ['practice-daily'])

    def test_focus_on_weak_rules(self):
        progress = progress_with(a=(0, 3))
        progress.streak_days = 2
        recs = progress.get_recommendations()
        self.assertEqual(recs[0]['type'], 'focus')
        self.assertEqual(recs[0]['priority'], 'high')
        self.assertEqual(recs[0]['data'], ['a'])
        self.assertEqual(recs[0]['message'], 'Focus on improving 1 challenging rule')

    def test_long_streak_celebrated(self):
        progress = UserProgress()
        progress.streak_days = 7
        self.assertEqual(self.actions(progress), ['celebrate'])

    def test_progression_after_five_mastered(self):
        progress = progress_with(**{f'r{i}': (5, 5) for i in range(5)})
        progress.streak_days = 1
        self.assertIn('increase-difficulty', self.actions(progress))

    def test_review_fundamentals(self):
        progress = UserProgress()
        progress.streak_days = 1
        progress.total_quizzes = 20
        progress.total_correct = 11
        self.assertIn('review-fundamentals', self.actions(progress))
        progress.total_correct = 12
        self.assertNotIn('review-fundamentals', self.actions(progress))

    def test_summary_includes_recommendations(self):
        summary = progress_with(a=(0, 3)).get_progress_summary()
        self.assertEqual(summary['struggling_rules_count'], 1)
        self.assertEqual(summary['mastered_rules_count'], 0)
        self.assertTrue(summary['recommendations'])
        self.assertIn('stats', summary)


class TestSerialization(unittest.TestCase):

    def test_roundtrip(self):
        progress = UserProgress()
        progress.record_attempt('contraction-au', True, 10, NOW)
        restored = UserProgress.from_dict(progress.to_dict())
        self.assertEqual(restored.to_dict(), progress.to_dict())

    def test_from_dict_defaults(self):
        progress = UserProgress.from_dict({})
        self.assertEqual(progress.level, 1)
        self.assertEqual(progress.rules_mastery, {})

    def test_from_dict_rejects_bad_counts(self):
        with self.assertRaises(ValueError):
            UserProgress.from_dict({'rules_mastery': {'a': {'attempts': 1, 'correct': 2}}})

    def test_from_dict_rejects_bad_totals(self):
        for data in [{'total_quizzes': 3, 'total_correct': 5}, {'total_correct': -1},
                     {'streak_days': -2}]:
            with self.assertRaises(ValueError):
                UserProgress.from_dict(data)

    def test_from_dict_rejects_bad_types(self):
        for data in [[], 'text', {'rules_mastery': {'a': 'oops'}}, {'total_quizzes': 'many'},
                     {'last_practice_date': 'yesterday'}]:
            with self.assertRaises(ValueError):
                UserProgress.from_dict(data)


class TestProgressTracker(unittest.TestCase):
    """Persistence boundary tests."""

    def setUp(self):
        self.storage = MockStorage()
        self.clock = FixedClock(NOW)
        self.tracker = ProgressTracker(self.storage, self.clock)

    def test_record_attempt_persists(self):
        self.tracker.record_attempt('alice', 'contraction-au', True, 10)
        self.assertEqual(self.storage.set_calls, ['progress:alice'])
        self.assertEqual(self.tracker.load('alice').rules_mastery['contraction-au'].attempts, 1)

    def test_users_are_isolated(self):
        self.tracker.record_attempt('alice', 'contraction-au', True, 10)
        self.assertEqual(self.tracker.load('bob').total_quizzes, 0)

    def test_streak_uses_clock(self):
        self.tracker.record_attempt('alice', 'contraction-au', True, 10)
        self.clock.advance(days=1)
        self.assertEqual(self.tracker.record_attempt('alice', 'contraction-au', True, 10)['streak'], 2)
        self.clock.advance(days=2)
        self.assertEqual(self.tracker.record_attempt('alice', 'contraction-au', True, 10)['streak'], 1)

    def test_corrupt_storage_starts_fresh(self):
        self.storage.corrupt_keys.add('progress:alice')
        with self.assertLogs('core.progress', level='WARNING'):
            progress = self.tracker.load('alice')
        self.assertEqual(progress.total_quizzes, 0)

    def test_invalid_payload_starts_fresh(self):
        self.storage.data['progress:alice'] = {'rules_mastery': {'a': {'attempts': 1, 'correct': 5}}}
        with self.assertLogs('core.progress', level='WARNING'):
            result = self.tracker.record_attempt('alice', 'contraction-au', True, 10)
        self.assertEqual(result['streak'], 1)
        self.assertEqual(list(self.storage.data['progress:alice']['rules_mastery']), ['contraction-au'])

    def test_reset(self):
        self.tracker.record_attempt('alice', 'contraction-au', True, 10)
        self.tracker.reset('alice')
        self.assertNotIn('progress:alice', self.storage.data)
        self.assertEqual(self.tracker.load('alice').total_quizzes, 0)

    def test_export_import(self):
        self.tracker.record_attempt('alice', 'contraction-au', True, 10)
        backup = self.tracker.export_progress('alice')
        self.tracker.import_progress('bob', backup)
        self.assertEqual(self.tracker.export_progress('bob'), backup)

    def test_import_rejects_bad_data(self):
        with self.assertRaises(ValueError):
            self.tracker.import_progress('bob', {'level': 'high'})
        self.assertNotIn('progress:bob', self.storage.data)

    def test_user_locks_are_released(self):
        for user in ['alice', 'bob', 'carol']:
            self.tracker.record_attempt(user, 'contraction-au', True, 10)
        self.assertEqual(len(self.tracker._locks), 0)

    def test_concurrent_attempts_are_not_lost(self):
        def answer():
            for _ in range(25):
                self.tracker.record_attempt('alice', 'contraction-au', True, 10)

        threads = [threading.Thread(target=answer) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(self.tracker.load('alice').rules_mastery['contraction-au'].attempts, 100)


if __name__ == '__main__':
    unittest.main()

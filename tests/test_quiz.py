"""Unit tests for quiz generation and answer validation."""

import random
import unittest

from core.classifier import classify
from core.config import APPLICATION_POINTS, DEFAULT_QUIZ_RULES, RECOGNITION_POINTS
from core.grammar_rules import get_all_rules, get_rule
from core.models import ClassificationResult, QuestionType, QuizItem
from core.quiz import QuizGenerator, validate_answer, generate_hint
from core.utils import normalize_answer

EXPECTED_POINTS = {
    QuestionType.ERROR_IDENTIFICATION: RECOGNITION_POINTS,
    QuestionType.RULE_EXPLANATION: RECOGNITION_POINTS,
    QuestionType.APPLICATION: APPLICATION_POINTS,
    QuestionType.FILL_BLANK: APPLICATION_POINTS,
}


def make_question(**overrides) -> QuizItem:
    fields = dict(
        id='q-1', type=QuestionType.APPLICATION, difficulty_level=3,
        prompt='Transform: à le parc → __________', correct_answer='au parc',
        explanation='à + le = au', points=15
    )
    fields.update(overrides)
    return QuizItem(**fields)


class WellFormedQuizMixin:
    """Checks that hold for every emitted item."""

    def assert_well_formed(self, item: QuizItem):
        self.assertTrue(item.prompt)
        self.assertTrue(item.explanation)
        self.assertGreater(item.points, 0)
        if item.type in EXPECTED_POINTS and not item.id.startswith('default'):
            self.assertEqual(item.points, EXPECTED_POINTS[item.type], item.type)
        rule = get_rule(item.rule_id)
        if rule:
            self.assertIn(rule.statement, item.explanation)
        if item.options is not None:
            self.assertGreaterEqual(len(item.options), 2, item.prompt)
            self.assertEqual(item.options.count(item.correct_answer), 1, item.options)
            self.assertEqual(len(set(item.options)), len(item.options), item.options)
            normalized = [normalize_answer(o) for o in item.options]
            self.assertEqual(len(set(normalized)), len(normalized), item.options)


class TestGenerateGating(unittest.TestCase, WellFormedQuizMixin):
    """Question types offered at each mastery level."""

    def setUp(self):
        self.generator = QuizGenerator(random.Random(7))
        self.classification = ClassificationResult('contraction-au', 0.95)

    def types(self, level):
        return [item.type for item in self.generator.generate(self.classification, level)]

    def test_level_1_identification_only(self):
        self.assertEqual(self.types(1), [QuestionType.ERROR_IDENTIFICATION])

    def test_level_2_identification_and_explanation(self):
        self.assertEqual(self.types(2), [QuestionType.ERROR_IDENTIFICATION, QuestionType.RULE_EXPLANATION])

    def test_level_3_explanation_and_application(self):
        self.assertEqual(self.types(3), [QuestionType.RULE_EXPLANATION, QuestionType.APPLICATION])

    def test_level_4_application_and_construction(self):
        self.assertEqual(self.types(4), [QuestionType.APPLICATION, QuestionType.FILL_BLANK])

    def test_levels_are_clamped(self):
        self.assertEqual(self.types(0), self.types(1))
        self.assertEqual(self.types(9), [QuestionType.APPLICATION, QuestionType.FILL_BLANK])

    def test_unusable_levels_fall_back_to_1(self):
        for level in [None, 'expert', []]:
            self.assertEqual(self.types(level), [QuestionType.ERROR_IDENTIFICATION])

    def test_empty_generators_are_dropped(self):
        # No incorrect examples to identify
        items = self.generator.generate(ClassificationResult('gender-article-masculine', 0.85), 1)
        self.assertEqual(items, [])

    def test_accepts_rule_id(self):
        items = self.generator.generate('negation-ne-pas', 1)
        self.assertEqual(items[0].rule_id, 'negation-ne-pas')

    def test_explanation_prompt_uses_sentences(self):
        item = self.generator.generate(self.classification, 3, 'Je vais à le parc', 'Je vais au parc')[0]
        self.assertEqual(item.prompt, 'Why is "Je vais au parc" correct instead of "Je vais à le parc"?')


class TestGenerateWellFormed(unittest.TestCase, WellFormedQuizMixin):
    """Every rule, level and seed yields well-formed items."""

    def test_all_rules_all_levels(self):
        for seed in range(15):
            generator = QuizGenerator(random.Random(seed))
            for rule in get_all_rules():
                for level in range(1, 5):
                    for item in generator.generate(ClassificationResult(rule.id, 0.9), level):
                        self.assert_well_formed(item)
                        self.assertEqual(item.rule_id, rule.id)

    def test_mixed_quiz(self):
        for seed in range(15):
            generator = QuizGenerator(random.Random(seed))
            for rule in get_all_rules():
                items = generator.generate_mixed(ClassificationResult(rule.id, 0.9), count=3)
                self.assertLessEqual(len(items), 3)
                self.assertGreater(len(items), 0)
                for item in items:
                    self.assert_well_formed(item)

    def test_mixed_quiz_count(self):
        generator = QuizGenerator(random.Random(3))
        items = generator.generate_mixed(ClassificationResult('contraction-au', 0.95), count=10)
        self.assertEqual(len(items), 4)
        self.assertEqual(len({item.type for item in items}), 4)

    def test_identification_target_is_a_real_incorrect_example(self):
        generator = QuizGenerator(random.Random(11))
        for _ in range(20):
            item = generator.error_identification(get_rule('contraction-du'))
            self.assertIn(item.correct_answer, get_rule('contraction-du').incorrect_examples)
            self.assertEqual(item.prompt, 'Which sentence has a contractions error?')

    def test_transform_practice_is_multiple_choice(self):
        rule = get_rule('contraction-aux')
        item = QuizGenerator(random.Random(1)).application(rule)
        self.assertEqual(item.correct_answer, 'aux étudiants')
        self.assertIn('à les étudiants', item.options)

    def test_free_text_practice_has_no_options(self):
        rule = get_rule('negation-ne-pas')
        item = QuizGenerator(random.Random(1)).application(rule)
        self.assertIsNone(item.options)
        self.assertFalse(item.is_multiple_choice)

    def test_application_without_material(self):
        self.assertIsNone(QuizGenerator(random.Random(1)).application(get_rule('gender-article-feminine')))

    def test_construction_blanks_contraction(self):
        generator = QuizGenerator(random.Random(5))
        for _ in range(10):
            item = generator.sentence_construction(get_rule('contraction-au'))
            self.assertEqual(item.correct_answer, 'au')
            self.assertIn('____', item.prompt)
            self.assertIn('à le', item.options)
            self.assertIsNotNone(item.translation)

    def test_seeded_generators_are_reproducible(self):
        classification = ClassificationResult('adjective-agreement', 0.85)
        first = [i.to_dict() for i in QuizGenerator(random.Random(99)).generate_mixed(classification)]
        second = [i.to_dict() for i in QuizGenerator(random.Random(99)).generate_mixed(classification)]
        self.assertEqual(first, second)


class TestDefaultQuiz(unittest.TestCase, WellFormedQuizMixin):
    """Null or unknown classifications fall back to a basic quiz."""

    def test_null_classification(self):
        for seed in range(20):
            generator = QuizGenerator(random.Random(seed))
            for classification in [None, ClassificationResult.no_match(),
                                   ClassificationResult('no-such-rule', 0.9)]:
                items = generator.generate(classification, 2)
                self.assertEqual(len(items), 1)
                item = items[0]
                self.assert_well_formed(item)
                self.assertIn(item.rule_id, DEFAULT_QUIZ_RULES)
                self.assertEqual(item.prompt, 'Which sentence is grammatically correct?')

    def test_null_classification_mixed(self):
        items = QuizGenerator(random.Random(0)).generate_mixed(None)
        self.assertEqual(len(items), 1)

    def test_unmatched_classify_result(self):
        items = QuizGenerator(random.Random(0)).generate(classify('bonjour', 'bonsoir'), 1)
        self.assertEqual(len(items), 1)


class TestValidateAnswer(unittest.TestCase):
    """Tests for answer checking."""

    def test_normalized_match(self):
        result = validate_answer(make_question(correct_answer='au parc'), 'Au Parc!')
        self.assertTrue(result['correct'])
        self.assertEqual(result['points'], 15)
        self.assertTrue(result['feedback'].startswith('Correct!'))

    def test_wrong_answer(self):
        result = validate_answer(make_question(), 'à le parc')
        self.assertFalse(result['correct'])
        self.assertEqual(result['points'], 0)
        self.assertEqual(result['correct_answer'], 'au parc')
        self.assertIn('"au parc"', result['feedback'])

    def test_not_fuzzy(self):
        self.assertFalse(validate_answer(make_question(), 'au  parc')['correct'])
        self.assertFalse(validate_answer(make_question(), 'au parcs')['correct'])

    def test_empty_answer(self):
        for answer in ['', '   ', None]:
            result = validate_answer(make_question(), answer)
            self.assertFalse(result['correct'])
            self.assertEqual(result['feedback'], 'Please provide an answer.')
            self.assertEqual(result['points'], 0)


class TestGenerateHint(unittest.TestCase):
    """Tests for hints."""

    def test_own_hint_wins(self):
        self.assertEqual(generate_hint(make_question(hint='ends in -eau')), 'ends in -eau')

    def test_fill_blank_uses_translation(self):
        question = make_question(type=QuestionType.FILL_BLANK, translation='I go to the park')
        self.assertEqual(generate_hint(question), 'Translation: I go to the park')
        self.assertEqual(generate_hint(make_question(type=QuestionType.FILL_BLANK)),
                         'Consider the context of the sentence.')

    def test_per_type_fallback(self):
        question = make_question(type=QuestionType.ERROR_IDENTIFICATION)
        self.assertEqual(generate_hint(question), 'Look carefully at articles, verb forms, and word agreements.')


class TestQuizItemSerialization(unittest.TestCase):
    """Tests for QuizItem to_dict/from_dict."""

    def test_from_dict_restores_type(self):
        item = QuizItem.from_dict(make_question(options=['au parc', 'à le parc']).to_dict())
        self.assertEqual(item.type, QuestionType.APPLICATION)
        self.assertEqual(item.options, ['au parc', 'à le parc'])
        self.assertIsNone(item.hint)


if __name__ == '__main__':
    unittest.main()

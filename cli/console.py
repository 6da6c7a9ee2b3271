"""Console UI for the grammaire application."""

from core.config import LANGUAGE, MAX_MASTERY_LEVEL
from cli.api_client import GrammarAPIClient


class ConsoleUI:
    """Console user interface for the grammar coach."""

    def __init__(self, client: GrammarAPIClient):
        self.client = client

    def print_error_analysis(self, error: dict):
        """Print the rule behind a correction, or encouragement when none matched."""
        print('\n' + '=' * 60)
        print(f'Your sentence:  {error["example"]}')
        print(f'Corrected:      {error["suggestion"]}')
        print('=' * 60)

        rule = error.get('rule')
        if not rule:
            print(f'\n{error["encouragement"]}\n')
            return

        print(f'\nRule: {rule["statement"]}')
        print(f'  {rule["explanation"]}')
        if rule['common_mistakes']:
            print(f'  Common mistake: {rule["common_mistakes"][0]}')
        print(f'\nMastery: level {error["mastery_level"]}/{MAX_MASTERY_LEVEL} '
              f'(confidence {error["confidence"]:.0%})')

    def print_question(self, question: dict, number: int, total: int):
        print('-' * 40)
        print(f'Question {number}/{total} ({question["points"]} points)')
        print(f'\n{question["prompt"]}')
        if question.get('options'):
            for i, option in enumerate(question['options'], start=1):
                print(f'  {i}. {option}')
        if question.get('translation') and question['type'] != 'fill_blank':
            print(f'  ({question["translation"]})')

    def print_answer_result(self, result: dict):
        print(('\n✓ ' if result['correct'] else '\n✗ ') + result['feedback'])
        if result['recorded']:
            print(f"Points earned: {result['points_earned']} | Streak: {result['streak']} day(s)")
        if result.get('level_up'):
            print(f"\n*** LEVEL UP! Now at level {result['new_level']} ***\n")

    def print_stats(self, stats: dict):
        """Print account stats."""
        print('\n' + '=' * 50)
        print('STATS')
        print('=' * 50)
        print(f'Level: {stats["level"]} ({stats["experience"]}/{stats["experience_to_next_level"]} XP)')
        print(f'Quizzes: {stats["total_quizzes"]} ({stats["accuracy"]}% correct)')
        print(f'Streak: {stats["streak"]} day(s)')
        print(f'Rules practiced: {stats["rules_count"]}')
        print('=' * 50 + '\n')

    def print_progress(self, summary: dict):
        """Print progress summary and recommendations."""
        self.print_stats(summary['stats'])
        print(f'Mastered rules: {summary["mastered_rules_count"]}')
        print(f'Rules needing work: {summary["struggling_rules_count"]}')
        for category, perf in summary['category_performance'].items():
            print(f'  {category}: {perf["correct"]}/{perf["total"]} ({perf["accuracy"]}%)')
        if summary['recommendations']:
            print('\nRecommendations:')
            for rec in summary['recommendations']:
                marker = '!' if rec['priority'] == 'high' else '-'
                print(f'  {marker} {rec["message"]}')
        print()

    def print_history(self, data: dict, limit: int = 10):
        """Print the most recent saved analyses."""
        entries = data['entries']
        if not entries:
            print('No saved analyses yet.\n')
            return
        print(f"\nHistory ({data['total']} saved):")
        for entry in entries[:limit]:
            print(f"  {entry['timestamp'][:16].replace('T', ' ')}  {entry['summary']}")
            for error in entry['errors']:
                print(f"      {error['example']} -> {error['suggestion']}")
        print()

    def ask_question(self, question: dict, number: int, total: int) -> bool:
        """Ask one question until answered. Returns False if the user wants to exit."""
        self.print_question(question, number, total)
        options = question.get('options') or []

        while True:
            user_input = input('==> ').strip()

            if user_input.lower() == 'exit':
                return False

            if user_input.lower() == 'hint':
                try:
                    print(f"Hint: {self.client.get_hint(question['id'])['hint']}")
                except Exception as e:
                    print(f"Error getting hint: {e}")
                continue

            if user_input == '':
                continue

            # Numbered choice
            if user_input.isdigit() and 1 <= int(user_input) <= len(options):
                user_input = options[int(user_input) - 1]

            try:
                self.print_answer_result(self.client.submit_answer(question['id'], user_input))
            except Exception as e:
                print(f"Error submitting answer: {e}")
            return True

    def review_weak_rules(self):
        """Quiz the user on their weakest rules."""
        weak = self.client.get_weak_rules()['rules']
        if not weak:
            print('No weak rules right now. Keep writing!')
            return

        print(f'Reviewing {len(weak)} rule(s): {", ".join(weak)}')
        for rule_id in weak:
            quiz = self.client.get_quiz(rule_id, mixed=True)['questions']
            for number, question in enumerate(quiz, start=1):
                if not self.ask_question(question, number, len(quiz)):
                    return
        self.print_stats(self.client.get_stats())

    def run(self):
        """Run the main application loop."""
        # Check server connection
        try:
            health = self.client.health_check()
            print(f"Connected to grammaire server ({health['rules']} rules)")
        except Exception:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        stats = self.client.get_stats()
        print(f"Restored: level {stats['level']}, {stats['total_quizzes']} quizzes, {stats['streak']}-day streak")

        print(f'\nStarting {LANGUAGE} grammar practice!')
        print('Enter a sentence you wrote, then its correction.')
        print('Commands: "stats", "progress", "history", "exit" to quit; "hint" during a question\n')

        while True:
            original = input('Your sentence: ').strip()

            if original.lower() == 'exit':
                print('Goodbye!')
                return
            elif original.lower() == 'stats':
                try:
                    self.print_stats(self.client.get_stats())
                except Exception as e:
                    print(f"Error getting stats: {e}")
                continue
            elif original.lower() == 'progress':
                try:
                    self.print_progress(self.client.get_progress())
                except Exception as e:
                    print(f"Error getting progress: {e}")
                continue
            elif original.lower() == 'history':
                try:
                    self.print_history(self.client.get_history())
                except Exception as e:
                    print(f"Error getting history: {e}")
                continue
            elif original == '':
                continue

            corrected = input('Corrected: ').strip()
            issue = input('What was wrong (optional): ').strip()

            try:
                analysis = self.client.analyze(original, corrected, issue or None)
            except Exception as e:
                print(f"Error analyzing correction: {e}")
                continue

            for error in analysis['errors']:
                self.print_error_analysis(error)
                quiz = error['quiz']
                for number, question in enumerate(quiz, start=1):
                    if not self.ask_question(question, number, len(quiz)):
                        print('Goodbye!')
                        return

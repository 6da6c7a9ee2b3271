"""Configuration constants for the grammar coach."""

LANGUAGE = 'French'

MIN_MASTERY_LEVEL = 1
MAX_MASTERY_LEVEL = 4

# Promotion criteria (per rule)
PROMOTE_ACCURACY = 0.9        # Trailing accuracy needed to move up a level
PROMOTE_MIN_ATTEMPTS = 5      # Attempts required before promotion is possible

# Demotion criteria (per rule)
DEMOTE_ACCURACY = 0.5         # Trailing accuracy below this moves down a level
DEMOTE_MIN_ATTEMPTS = 3       # Attempts required before demotion is possible

# Weak rule selection
WEAK_ACCURACY_THRESHOLD = 0.7
WEAK_MIN_ATTEMPTS = 2
WEAK_ACCURACY_BAND = 0.1      # Accuracies closer than this are ordered by attempts
WEAK_RULES_LIMIT = 5

# Quiz points
RECOGNITION_POINTS = 10       # error identification, rule explanation
APPLICATION_POINTS = 15       # application, sentence construction
MIXED_QUIZ_SIZE = 3

# Account experience curve: floor(XP_BASE * level ** XP_EXPONENT)
XP_BASE = 100
XP_EXPONENT = 1.5

# Recommendations
STREAK_CELEBRATION_DAYS = 7
PROGRESSION_MASTERED_COUNT = 5
REVIEW_FUNDAMENTALS_MIN_QUIZZES = 20
REVIEW_FUNDAMENTALS_ACCURACY = 60  # percent
RECENT_ACTIVITY_LIMIT = 10

# Rules used for the fallback quiz when nothing could be classified
DEFAULT_QUIZ_RULES = ['contraction-au', 'gender-article-masculine', 'negation-ne-pas']

# Storage
PROGRESS_KEY_PREFIX = 'progress:'
DEFAULT_USER_ID = 'default'
MAX_PENDING_QUESTIONS = 200   # Unanswered questions remembered per user
MAX_PENDING_USERS = 1000      # Users with unanswered questions kept in memory

# Analysis history
HISTORY_KEY_PREFIX = 'history:'
HISTORY_LIMIT = 100           # Saved analyses kept per user, oldest dropped first

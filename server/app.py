"""FastAPI server for the grammar coach."""

import logging
import os
import random
from datetime import date

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from core.classifier import analyze_errors, classify
from core.config import (
    DEFAULT_USER_ID, LANGUAGE, MAX_PENDING_QUESTIONS, MAX_PENDING_USERS,
    MIXED_QUIZ_SIZE, WEAK_RULES_LIMIT
)
from core.grammar_rules import get_all_rules, get_related_rules, get_rule, search_rules
from core.history import AnalysisHistory
from core.interfaces import Clock, Storage
from core.models import ClassificationResult, QuizItem
from core.progress import ProgressTracker
from core.quiz import QuizGenerator, generate_hint, validate_answer

from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class ClassifyRequest(BaseModel):
    original: str
    corrected: str
    description: str = ""


class ClassifyResponse(BaseModel):
    rule_id: Optional[str]
    confidence: float
    evidence: dict
    rule: Optional[dict]


class CorrectionItem(BaseModel):
    issue: Optional[str] = None
    example: str
    suggestion: str


class AnalyzeRequest(BaseModel):
    corrections: list[CorrectionItem]
    user_id: str = DEFAULT_USER_ID


class QuizRequest(BaseModel):
    rule_id: Optional[str] = None
    classification: Optional[ClassifyRequest] = None
    mixed: bool = False
    count: int = MIXED_QUIZ_SIZE
    user_id: str = DEFAULT_USER_ID


class AnswerRequest(BaseModel):
    question_id: str
    answer: str
    user_id: str = DEFAULT_USER_ID


class AnswerResponse(BaseModel):
    correct: bool
    feedback: str
    points: int
    correct_answer: Optional[str]
    rule_id: Optional[str]
    recorded: bool
    level_up: bool = False
    new_level: Optional[int] = None
    points_earned: int = 0
    streak: Optional[int] = None


class UserRequest(BaseModel):
    user_id: str = DEFAULT_USER_ID


class ImportRequest(BaseModel):
    progress: dict
    user_id: str = DEFAULT_USER_ID


# Global state (in production, use proper DI)
storage: Storage = None
tracker: ProgressTracker = None
quiz_generator: QuizGenerator = None
history: AnalysisHistory = None

# Questions handed out and not yet answered: user_id -> {question_id: QuizItem}
issued_questions: dict[str, dict[str, QuizItem]] = {}


def init_services(new_storage: Storage, clock: Clock = None, rng: random.Random = None) -> None:
    """Wire storage, tracker, history and quiz generator. Tests call this with fakes."""
    global storage, tracker, quiz_generator, history
    storage = new_storage
    tracker = ProgressTracker(storage, clock)
    history = AnalysisHistory(storage, clock)
    quiz_generator = QuizGenerator(rng)
    issued_questions.clear()


def remember_questions(user_id: str, items: list[QuizItem]) -> None:
    """Keep issued questions so answers can be checked server-side."""
    if not items:
        return
    # Most recently active user last
    pending = issued_questions.pop(user_id, {})
    issued_questions[user_id] = pending
    for item in items:
        pending[item.id] = item
    while len(pending) > MAX_PENDING_QUESTIONS:
        del pending[next(iter(pending))]
    while len(issued_questions) > MAX_PENDING_USERS:
        dropped = next(iter(issued_questions))
        del issued_questions[dropped]
        logger.info(f"Dropped unanswered questions for idle user {dropped}")


def forget_question(user_id: str, question_id: str) -> None:
    pending = issued_questions.get(user_id, {})
    pending.pop(question_id, None)
    if not pending:
        issued_questions.pop(user_id, None)


def find_question(user_id: str, question_id: str) -> QuizItem:
    question = issued_questions.get(user_id, {}).get(question_id)
    if question is None:
        raise HTTPException(status_code=404, detail=f"Unknown question: {question_id}")
    return question


app = FastAPI(title="Grammaire API", description=f"{LANGUAGE} grammar coaching API")


@app.on_event("startup")
async def startup():
    """Initialize storage on startup."""
    # File storage by default, set GRAMMAIRE_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('GRAMMAIRE_STORAGE', 'file')
    if storage_type == 'postgres':
        init_services(PostgresStorage(os.environ.get('DATABASE_URL')))
        logger.info("Using PostgreSQL storage")
    else:
        init_services(FileStorage(os.environ.get('GRAMMAIRE_STATE_DIR')))
        logger.info(f"Using file storage in {storage.state_dir}")


@app.get("/")
async def root():
    return {"name": "grammaire", "language": LANGUAGE, "rules": len(get_all_rules())}


# Rule Catalog Endpoints
@app.get("/api/rules")
async def list_rules(category: str = None):
    rules = get_all_rules()
    if category:
        rules = [r for r in rules if r.category.value == category]
    return {"rules": [r.to_dict() for r in rules]}


@app.get("/api/rules/search")
async def search(q: str = ""):
    return {"rules": [r.to_dict() for r in search_rules(q)]}


@app.get("/api/rules/{rule_id}")
async def rule_detail(rule_id: str):
    rule = get_rule(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail=f"Unknown rule: {rule_id}")
    return rule.to_dict()


@app.get("/api/rules/{rule_id}/related")
async def related_rules(rule_id: str):
    if get_rule(rule_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown rule: {rule_id}")
    return {"rules": [r.to_dict() for r in get_related_rules(rule_id)]}


@app.get("/api/rules/{rule_id}/performance")
async def rule_performance(rule_id: str, user_id: str = DEFAULT_USER_ID):
    return tracker.load(user_id).get_rule_performance(rule_id)


# Classification & Quiz Endpoints
@app.post("/api/classify", response_model=ClassifyResponse)
async def classify_correction(request: ClassifyRequest):
    result = classify(request.original, request.corrected, request.description)
    rule = get_rule(result.rule_id)
    return ClassifyResponse(
        rule_id=result.rule_id,
        confidence=result.confidence,
        evidence=result.evidence,
        rule=rule.to_dict() if rule else None
    )


@app.post("/api/analyze")
async def analyze(request: AnalyzeRequest):
    """Classify a batch of corrections and build a level-gated quiz for each."""
    try:
        progress = tracker.load(request.user_id)
        analyzed = analyze_errors([c.model_dump() for c in request.corrections])

        errors = []
        for error in analyzed:
            rule_id = error.classification.rule_id
            level = progress.get_rule_mastery(rule_id) if error.rule else None
            quiz = quiz_generator.generate(error.classification, level or 1, error.example, error.suggestion)
            remember_questions(request.user_id, quiz)
            errors.append({
                **error.to_dict(),
                'mastery_level': level,
                'performance': progress.get_rule_performance(rule_id) if error.rule else None,
                'quiz': [item.to_dict() for item in quiz]
            })

        entry = history.save(request.user_id, errors) if errors else None
        logger.info(f"Analyzed {len(errors)} correction(s) for {request.user_id}")
        return {"errors": errors, "history_id": entry["id"] if entry else None}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in analyze: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail=f"Internal error: {type(e).__name__}: {str(e)}")


@app.post("/api/quiz")
async def create_quiz(request: QuizRequest):
    original = corrected = ""
    if request.classification:
        original = request.classification.original
        corrected = request.classification.corrected
        classification = classify(original, corrected, request.classification.description)
    elif request.rule_id:
        if get_rule(request.rule_id) is None:
            raise HTTPException(status_code=404, detail=f"Unknown rule: {request.rule_id}")
        classification = ClassificationResult(request.rule_id, 1.0)
    else:
        classification = None

    if request.mixed:
        items = quiz_generator.generate_mixed(classification, max(1, request.count), original, corrected)
    else:
        level = tracker.load(request.user_id).get_rule_mastery(classification.rule_id) if classification else 1
        items = quiz_generator.generate(classification, level, original, corrected)

    remember_questions(request.user_id, items)
    return {
        "rule_id": classification.rule_id if classification else None,
        "questions": [item.to_dict() for item in items]
    }


@app.post("/api/answer", response_model=AnswerResponse)
async def submit_answer(request: AnswerRequest):
    """Check an answer to an issued question and record the attempt."""
    try:
        question = find_question(request.user_id, request.question_id)
        result = validate_answer(question, request.answer)

        # Empty answers are not attempts
        if not request.answer.strip() or question.rule_id is None:
            return AnswerResponse(**result, rule_id=question.rule_id, recorded=False)

        attempt = tracker.record_attempt(request.user_id, question.rule_id, result['correct'], question.points)
        forget_question(request.user_id, question.id)
        return AnswerResponse(**result, **attempt, rule_id=question.rule_id, recorded=True)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in submit_answer: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail=f"Internal error: {type(e).__name__}: {str(e)}")


@app.get("/api/questions/{question_id}/hint")
async def question_hint(question_id: str, user_id: str = DEFAULT_USER_ID):
    return {"hint": generate_hint(find_question(user_id, question_id))}


# Progress Endpoints
@app.get("/api/progress")
async def get_progress(user_id: str = DEFAULT_USER_ID):
    return tracker.load(user_id).get_progress_summary()


@app.get("/api/stats")
async def get_stats(user_id: str = DEFAULT_USER_ID):
    return tracker.load(user_id).get_user_stats()


@app.get("/api/weak-rules")
async def weak_rules(user_id: str = DEFAULT_USER_ID, limit: int = WEAK_RULES_LIMIT):
    rule_ids = tracker.load(user_id).get_weak_rules(limit)
    return {"rules": rule_ids}


@app.get("/api/mastered-rules")
async def mastered_rules(user_id: str = DEFAULT_USER_ID):
    return {"rules": tracker.load(user_id).get_mastered_rules()}


@app.post("/api/progress/reset")
async def reset_progress(request: UserRequest):
    progress = tracker.reset(request.user_id)
    issued_questions.pop(request.user_id, None)
    return {"success": True, "stats": progress.get_user_stats()}


@app.get("/api/progress/export")
async def export_progress(user_id: str = DEFAULT_USER_ID):
    return {"user_id": user_id, "progress": tracker.export_progress(user_id)}


@app.post("/api/progress/import")
async def import_progress(request: ImportRequest):
    try:
        progress = tracker.import_progress(request.user_id, request.progress)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid progress data: {e}")
    return {"success": True, "stats": progress.get_user_stats()}


# History Endpoints
@app.get("/api/history")
async def list_history(user_id: str = DEFAULT_USER_ID, q: str = None,
                       start: date = None, end: date = None):
    """Saved analyses, newest first, optionally matching q and saved between start and end."""
    entries = history.search(user_id, q) if q else history.get_history(user_id)
    if start or end:
        in_range = {e['id'] for e in history.filter_by_date(user_id, start, end)}
        entries = [e for e in entries if e.get('id') in in_range]
    return {"entries": entries, "total": history.count(user_id)}


@app.get("/api/history/{entry_id}")
async def history_entry(entry_id: str, user_id: str = DEFAULT_USER_ID):
    entry = history.get_entry(user_id, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown history entry: {entry_id}")
    return entry


@app.delete("/api/history/{entry_id}")
async def delete_history_entry(entry_id: str, user_id: str = DEFAULT_USER_ID):
    if not history.delete_entry(user_id, entry_id):
        raise HTTPException(status_code=404, detail=f"Unknown history entry: {entry_id}")
    return {"success": True}


@app.delete("/api/history")
async def clear_history(user_id: str = DEFAULT_USER_ID):
    history.clear(user_id)
    logger.info(f"Cleared history for {user_id}")
    return {"success": True}


def create_app():
    """Factory function for creating the app (useful for testing)."""
    return app

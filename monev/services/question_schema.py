"""
Question schema helpers: normalisation, structural checks and lookups.

A schema is an ordered list of category dicts, each owning an ordered list
of question dicts. The wire shape is the one the questionnaire frontend
renders::

    {"id": "cat_1", "title": "...", "description": "...",
     "questions": [{"id": "q1", "text": "...", "type": "likert", "options": []}]}
"""

import logging
from typing import List, Optional, Tuple

from config import QUESTION_TYPES, QUESTION_TYPE_LIKERT, QUESTION_TYPE_CHOICE
from utils import clean_text

logger = logging.getLogger(__name__)


def normalize_type(question_type) -> str:
    """Missing or unknown types are read as Likert, like legacy rows."""
    if isinstance(question_type, str) and question_type.strip().lower() in QUESTION_TYPES:
        return question_type.strip().lower()
    return QUESTION_TYPE_LIKERT


def normalize_question(question: dict) -> dict:
    question_type = normalize_type(question.get('type'))
    options = []
    if question_type == QUESTION_TYPE_CHOICE:
        options = [str(option) for option in (question.get('options') or [])]
    return {
        'id': clean_text(question.get('id')),
        'text': question.get('text') or '',
        'type': question_type,
        'options': options,
    }


def normalize_category(category: dict) -> dict:
    return {
        'id': clean_text(category.get('id')),
        'title': category.get('title') or '',
        'description': category.get('description') or '',
        'questions': [normalize_question(q) for q in (category.get('questions') or [])],
    }


def check_schema(categories) -> List[str]:
    """
    Check a raw schema payload and return every problem found.

    An empty list means the schema can be stored.
    """
    if not isinstance(categories, list):
        return ["Categories must be a list"]

    errors = []
    seen_categories = set()
    # Answers are keyed by question id across the whole schema
    seen_questions = set()

    for c_idx, category in enumerate(categories, start=1):
        if not isinstance(category, dict):
            errors.append(f"Category #{c_idx} must be an object")
            continue

        category_id = clean_text(category.get('id'))
        label = f"Category #{c_idx}"
        if not category_id:
            errors.append(f"{label} has no id")
        elif category_id in seen_categories:
            errors.append(f"{label} reuses category id '{category_id}'")
        seen_categories.add(category_id)

        if not clean_text(category.get('title')):
            errors.append(f"{label} has an empty title")

        questions = category.get('questions') or []
        if not isinstance(questions, list):
            errors.append(f"{label} questions must be a list")
            continue

        for q_idx, question in enumerate(questions, start=1):
            q_label = f"{label}, question #{q_idx}"
            if not isinstance(question, dict):
                errors.append(f"{q_label} must be an object")
                continue

            question_id = clean_text(question.get('id'))
            if not question_id:
                errors.append(f"{q_label} has no id")
            elif question_id in seen_questions:
                errors.append(f"{q_label} reuses question id '{question_id}'")
            seen_questions.add(question_id)

            options = question.get('options')
            if options is not None and not isinstance(options, list):
                errors.append(f"{q_label} options must be a list")
            elif normalize_type(question.get('type')) == QUESTION_TYPE_CHOICE and not options:
                errors.append(f"{q_label} is a choice question without options")

    return errors


def iter_questions(categories):
    """Yield ``(category, question)`` pairs in display order."""
    for category in categories:
        for question in category.get('questions', []):
            yield category, question


def find_question(categories, question_id) -> Tuple[Optional[dict], Optional[str]]:
    """Find a question by id and return it with its category title."""
    for category, question in iter_questions(categories):
        if question['id'] == question_id:
            return question, category.get('title', '')
    return None, None

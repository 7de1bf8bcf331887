"""
Gatekeeping for evaluation forms before they are stored.

One submission is accepted per lecturer NIP, subject, class code and
semester, and every question of every category must be answered. All
problems are collected and reported together.
"""

import logging
from typing import List

from config import (
    LIKERT_MIN, LIKERT_MAX, QUESTION_TYPE_LIKERT, QUESTION_TYPE_CHOICE,
)
from monev.errors import (
    AnswerCodecError, FormError, IncompleteIdentity, IncompleteAnswers, InvalidAnswer,
    DuplicateSubmission,
)
from monev.services.answer_codec import to_score
from monev.services.question_schema import iter_questions, normalize_type
from utils import clean_text, normalize_nip

logger = logging.getLogger(__name__)


def get_answers(form) -> dict:
    # Older clients posted the map as "ratings"
    answers = form.get('answers')
    if answers is None:
        answers = form.get('ratings')
    return answers if isinstance(answers, dict) else {}


def submission_key(submission) -> tuple:
    """The identity a lecturer may submit only once for."""
    return (
        normalize_nip(submission.get('nip')),
        clean_text(submission.get('subject')),
        clean_text(submission.get('classCode')),
        clean_text(submission.get('semester')),
    )


def find_duplicate(form, prior_submissions):
    key = submission_key(form)
    for submission in prior_submissions:
        if submission_key(submission) == key:
            return submission
    return None


def is_valid_likert(value) -> bool:
    try:
        score = to_score(value)
    except AnswerCodecError:
        return False
    return LIKERT_MIN <= score <= LIKERT_MAX


def count_answered(answers, required_ids) -> int:
    """Count required questions whose key is present with a non-None value."""
    return sum(1 for qid in required_ids if qid in answers and answers[qid] is not None)


def check_submission(form, categories, prior_submissions) -> List[FormError]:
    errors = []

    if not clean_text(form.get('lecturerName')):
        errors.append(IncompleteIdentity('lecturerName', "Please select the lecturer name."))
    if not clean_text(form.get('subject')):
        errors.append(IncompleteIdentity('subject', "Please select the subject taught."))

    answers = get_answers(form)
    questions = [question for _, question in iter_questions(categories)]
    required_ids = [question['id'] for question in questions]

    answered = count_answered(answers, required_ids)
    if answered < len(required_ids):
        errors.append(IncompleteAnswers(answered, len(required_ids)))

    for question in questions:
        value = answers.get(question['id'])
        if value is None:
            continue
        question_type = normalize_type(question.get('type'))
        if question_type == QUESTION_TYPE_LIKERT and not is_valid_likert(value):
            errors.append(InvalidAnswer(
                question['id'],
                f"Answer for '{question.get('text') or question['id']}' must be a score "
                f"from {LIKERT_MIN} to {LIKERT_MAX}."
            ))
        elif question_type == QUESTION_TYPE_CHOICE and str(value) not in question.get('options', []):
            errors.append(InvalidAnswer(
                question['id'],
                f"Answer for '{question.get('text') or question['id']}' is not one of the options."
            ))

    if find_duplicate(form, prior_submissions) is not None:
        errors.append(DuplicateSubmission())

    if errors:
        logger.info(f"Submission for NIP {normalize_nip(form.get('nip'))} rejected: {len(errors)} problem(s)")
    return errors


def validate_submission(form, categories, prior_submissions) -> List[str]:
    """Return the human readable problems; the form may be stored iff empty."""
    return [str(error) for error in check_submission(form, categories, prior_submissions)]

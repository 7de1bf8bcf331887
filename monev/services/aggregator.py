"""
Per-question statistics for the admin dashboard, exports and reports.

Everything here is a read-only projection over submission dicts as returned
by ``SubmissionStore.get_all()``; nothing is cached.
"""

import logging
from typing import List

from config import (
    LIKERT_MIN, LIKERT_MAX, LIKERT_LABELS, QUESTION_TYPE_CHOICE, QUESTION_TYPE_TEXT,
)
from monev.errors import AnswerCodecError
from monev.services.answer_codec import to_score
from monev.services.question_schema import normalize_type

logger = logging.getLogger(__name__)


def collect_answers(question_id, submissions) -> list:
    """Answers given to one question, skipping missing, None and empty values."""
    collected = []
    for submission in submissions:
        answers = submission.get('answers') or {}
        if question_id not in answers:
            continue
        value = answers[question_id]
        if value is None or value == '':
            continue
        collected.append(value)
    return collected


def likert_scores(answers) -> List[int]:
    scores = []
    for value in answers:
        try:
            score = to_score(value)
        except AnswerCodecError:
            continue
        if LIKERT_MIN <= score <= LIKERT_MAX:
            scores.append(score)
    return scores


def mean(scores):
    if not scores:
        return 0
    return round(sum(scores) / len(scores), 2)


def summarize_question(question, submissions) -> dict:
    """
    Summarize the answers to ``question`` across ``submissions``.

    Likert (or untyped) questions yield ``counts`` for every score 1-5 and the
    ``mean`` of valid scores. Choice questions yield ``counts`` for every value
    actually observed, including options removed since. Text questions yield
    the raw ``responses``.
    """
    question_type = normalize_type(question.get('type'))
    answers = collect_answers(question['id'], submissions)
    summary = {
        'questionId': question['id'],
        'text': question.get('text', ''),
        'type': question_type,
        'totalResponses': len(answers),
    }

    if question_type == QUESTION_TYPE_CHOICE:
        counts = {}
        for value in answers:
            label = str(value)
            counts[label] = counts.get(label, 0) + 1
        summary['counts'] = counts

    elif question_type == QUESTION_TYPE_TEXT:
        summary['responses'] = [str(value) for value in answers]

    else:
        scores = likert_scores(answers)
        counts = {score: 0 for score in range(LIKERT_MIN, LIKERT_MAX + 1)}
        for score in scores:
            counts[score] += 1
        summary['counts'] = counts
        summary['labels'] = dict(LIKERT_LABELS)
        summary['mean'] = mean(scores)

    return summary


def summarize_schema(categories, submissions) -> dict:
    """Summaries for every question, grouped by category, in display order."""
    result = []
    for category in categories:
        questions = []
        pooled_scores = []
        for question in category.get('questions', []):
            summary = summarize_question(question, submissions)
            if summary['type'] not in (QUESTION_TYPE_CHOICE, QUESTION_TYPE_TEXT):
                pooled_scores.extend(likert_scores(collect_answers(question['id'], submissions)))
            questions.append(summary)
        result.append({
            'id': category['id'],
            'title': category.get('title', ''),
            'mean': mean(pooled_scores),
            'questions': questions,
        })

    logger.debug(f"Summarized {len(result)} categories over {len(submissions)} submissions")
    return {
        'totalSubmissions': len(submissions),
        'categories': result,
    }

"""
Convert answers between their form value and the submission_answers row.

Likert answers live in ``rating`` and Choice/Text answers in ``answer_text``.
Every row carries ``question_type`` so a Choice answer of "5" is never read
back as a Likert score. Rows written before the tag existed have no type and
are read as Likert.
"""

from collections import namedtuple

from config import QUESTION_TYPES, QUESTION_TYPE_LIKERT
from monev.errors import AnswerCodecError

StoredAnswer = namedtuple('StoredAnswer', ['question_type', 'rating', 'answer_text'])


def _known_type(question_type):
    if question_type in QUESTION_TYPES:
        return question_type
    return None


def to_score(value):
    """Coerce a Likert value (int, integral float or numeric string) to int."""
    if isinstance(value, bool):
        raise AnswerCodecError(f"Likert answer must be a number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise AnswerCodecError(f"Likert answer must be a whole number, got {value!r}")
        return int(value)
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        raise AnswerCodecError(f"Likert answer must be a number, got {value!r}")
    if not number.is_integer():
        raise AnswerCodecError(f"Likert answer must be a whole number, got {value!r}")
    return int(number)


def encode(question_type, raw):
    """Turn a form value into a StoredAnswer for the owning question's type."""
    question_type = _known_type(question_type) or QUESTION_TYPE_LIKERT
    if question_type == QUESTION_TYPE_LIKERT:
        return StoredAnswer(question_type, to_score(raw), None)
    return StoredAnswer(question_type, None, '' if raw is None else str(raw))


def decode(question_type, stored):
    """
    Turn a stored row back into the answer value.

    ``stored`` is a StoredAnswer, a sqlite Row or a dict with the
    ``question_type``, ``rating`` and ``answer_text`` keys. The tag written
    with the row wins over ``question_type``, which is only consulted for
    untagged rows.
    """
    if isinstance(stored, StoredAnswer):
        stored = stored._asdict()
    stored_type = _known_type(stored['question_type'])
    rating = stored['rating']
    answer_text = stored['answer_text']

    effective_type = stored_type or _known_type(question_type) or QUESTION_TYPE_LIKERT

    if effective_type != QUESTION_TYPE_LIKERT:
        if answer_text is not None:
            return answer_text
        return '' if rating is None else str(rating)

    # Legacy rows wrote rating 0 next to the text of a non-numeric answer
    if rating is not None and not (int(rating) == 0 and answer_text):
        return int(rating)
    if answer_text is None:
        return None
    try:
        return to_score(answer_text)
    except AnswerCodecError:
        # Legacy rows kept the raw text for anything non-numeric
        return answer_text

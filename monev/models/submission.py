import logging
import sqlite3

from .database import get_db
from monev.errors import DuplicateSubmission, PersistenceError
from monev.services import answer_codec
from monev.services.question_schema import iter_questions
from monev.services.validator import get_answers
from utils import clean_text, generate_id, normalize_nip, utc_now_iso

logger = logging.getLogger(__name__)


def _row_to_dict(row):
    return {
        'id': row['id'],
        'timestamp': row['timestamp'],
        'nip': row['nip'],
        'lecturerName': row['lecturer_name'],
        'subject': row['subject_name'],
        'classCode': row['class_code'],
        'semester': row['semester'],
        'positiveFeedback': row['positive_feedback'],
        'constructiveFeedback': row['constructive_feedback'],
        'answers': {},
    }


def _question_types(cursor):
    cursor.execute('SELECT id, type FROM questions')
    return {row['id']: row['type'] for row in cursor.fetchall()}


class SubmissionStore:
    @staticmethod
    def get_all():
        """Get every submission, newest first, with decoded answers."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM submissions ORDER BY timestamp DESC, rowid DESC')
            submissions = [_row_to_dict(row) for row in cursor.fetchall()]
            by_id = {submission['id']: submission for submission in submissions}

            types = _question_types(cursor)
            cursor.execute('''
                SELECT submission_id, question_id, question_type, rating, answer_text
                FROM submission_answers
                ORDER BY id ASC
            ''')
            for row in cursor.fetchall():
                submission = by_id.get(row['submission_id'])
                if submission is None:
                    continue
                submission['answers'][row['question_id']] = answer_codec.decode(
                    types.get(row['question_id']), row
                )

        return submissions

    @staticmethod
    def get_by_id(submission_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT * FROM submissions WHERE id = ?', (submission_id,))
            row = cursor.fetchone()
            if not row:
                return None
            submission = _row_to_dict(row)

            types = _question_types(cursor)
            cursor.execute('''
                SELECT question_id, question_type, rating, answer_text
                FROM submission_answers
                WHERE submission_id = ?
                ORDER BY id ASC
            ''', (submission_id,))
            for answer in cursor.fetchall():
                submission['answers'][answer['question_id']] = answer_codec.decode(
                    types.get(answer['question_id']), answer
                )
        return submission

    @staticmethod
    def add(form, categories):
        """
        Store a validated form and return the stored submission.

        Only answers to questions of ``categories`` are kept; each is encoded
        with its question's type. The id and timestamp are generated unless
        the client already sent them.
        """
        submission_id = clean_text(form.get('id')) or generate_id('sub')
        timestamp = clean_text(form.get('timestamp')) or utc_now_iso()
        answers = get_answers(form)

        answer_rows = []
        for _, question in iter_questions(categories):
            value = answers.get(question['id'])
            if value is None:
                continue
            stored = answer_codec.encode(question['type'], value)
            answer_rows.append((submission_id, question['id'], stored.question_type,
                                stored.rating, stored.answer_text))

        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('SELECT 1 FROM submissions WHERE id = ?', (submission_id,))
                if cursor.fetchone():
                    # Reused client id
                    fresh_id = generate_id('sub')
                    logger.warning(f"Submission id {submission_id} already taken, using {fresh_id}")
                    submission_id = fresh_id
                    answer_rows = [(submission_id,) + row[1:] for row in answer_rows]

                cursor.execute('''
                    INSERT INTO submissions
                    (id, timestamp, nip, lecturer_name, subject_name, class_code,
                     semester, positive_feedback, constructive_feedback)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ''', (
                    submission_id,
                    timestamp,
                    normalize_nip(form.get('nip')),
                    clean_text(form.get('lecturerName')),
                    clean_text(form.get('subject')),
                    clean_text(form.get('classCode')),
                    clean_text(form.get('semester')),
                    form.get('positiveFeedback') or '',
                    form.get('constructiveFeedback') or '',
                ))

                cursor.executemany('''
                    INSERT INTO submission_answers
                    (submission_id, question_id, question_type, rating, answer_text)
                    VALUES (?, ?, ?, ?, ?)
                ''', answer_rows)
        except sqlite3.IntegrityError as e:
            # Unique nip/subject/class/semester
            logger.warning(f"Rejected duplicate submission {submission_id}: {e}")
            raise DuplicateSubmission() from e
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

        logger.info(f"Stored submission {submission_id} with {len(answer_rows)} answers")
        return SubmissionStore.get_by_id(submission_id)

    @staticmethod
    def delete(submission_id):
        """Delete a submission; its answers go with it."""
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('DELETE FROM submission_answers WHERE submission_id = ?', (submission_id,))
                cursor.execute('DELETE FROM submissions WHERE id = ?', (submission_id,))
                deleted = cursor.rowcount > 0
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

        if deleted:
            logger.info(f"Deleted submission {submission_id}")
        return deleted

    @staticmethod
    def count():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM submissions')
            return cursor.fetchone()[0]

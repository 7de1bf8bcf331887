import logging
import sqlite3

from .database import get_db
from config import DEFAULT_SUBJECTS
from monev.errors import ValidationError, PersistenceError
from utils import clean_text, generate_id

logger = logging.getLogger(__name__)


class SubjectStore:
    @staticmethod
    def get_all():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT id, name FROM subjects ORDER BY sort_order ASC, name ASC')
            return [{'id': row['id'], 'name': row['name']} for row in cursor.fetchall()]

    @staticmethod
    def replace_all(subjects):
        if not isinstance(subjects, list):
            raise ValidationError("Subjects must be a list")

        errors = []
        rows = []
        for idx, subject in enumerate(subjects):
            if not isinstance(subject, dict) or not clean_text(subject.get('name')):
                errors.append(f"Subject #{idx + 1} has no name")
                continue
            rows.append((clean_text(subject.get('id')) or generate_id('mk'),
                         clean_text(subject['name']), idx))
        if errors:
            raise ValidationError(errors)

        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('DELETE FROM subjects')
                cursor.executemany('INSERT INTO subjects (id, name, sort_order) VALUES (?, ?, ?)', rows)
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

        logger.info(f"Subject list replaced with {len(rows)} entries")

    @staticmethod
    def seed_defaults():
        """Insert the default PDB subject when no subject exists yet."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM subjects')
            if cursor.fetchone()[0]:
                return False
            cursor.executemany(
                'INSERT INTO subjects (id, name, sort_order) VALUES (?, ?, ?)',
                [(s['id'], s['name'], idx) for idx, s in enumerate(DEFAULT_SUBJECTS)]
            )
        logger.info("Default subjects seeded")
        return True

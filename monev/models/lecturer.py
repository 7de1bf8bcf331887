import logging
import sqlite3

from .database import get_db
from monev.errors import ValidationError, PersistenceError
from utils import normalize_nip, clean_text, generate_id

logger = logging.getLogger(__name__)


def _row_to_dict(row):
    return {
        'id': row['id'],
        'nip': row['nip'],
        'name': row['name'],
        'department': row['department'],
    }


class LecturerStore:
    @staticmethod
    def get_all():
        """Get the whole roster ordered by name."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT id, nip, name, department
                FROM lecturers
                ORDER BY name COLLATE NOCASE ASC
            ''')
            return [_row_to_dict(row) for row in cursor.fetchall()]

    @staticmethod
    def get_by_nip(nip):
        """Get a lecturer by NIP, the key lecturers log in with."""
        nip = normalize_nip(nip)
        if not nip:
            return None

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT id, nip, name, department
                FROM lecturers
                WHERE nip = ?
            ''', (nip,))

            row = cursor.fetchone()
            return _row_to_dict(row) if row else None

    @staticmethod
    def prepare(lecturers):
        """
        Validate a roster payload and return cleaned lecturer dicts.

        Raises ValidationError listing every problem.
        """
        if not isinstance(lecturers, list):
            raise ValidationError("Lecturers must be a list")

        errors = []
        cleaned = []
        seen_ids = set()
        seen_nips = set()

        for idx, lecturer in enumerate(lecturers, start=1):
            if not isinstance(lecturer, dict):
                errors.append(f"Lecturer #{idx} must be an object")
                continue

            entry = {
                'id': clean_text(lecturer.get('id')) or generate_id('L'),
                'nip': normalize_nip(lecturer.get('nip')),
                'name': clean_text(lecturer.get('name')),
                'department': clean_text(lecturer.get('department')),
            }
            if not entry['name']:
                errors.append(f"Lecturer #{idx} has no name")
            if entry['id'] in seen_ids:
                errors.append(f"Lecturer #{idx} reuses id '{entry['id']}'")
            if entry['nip']:
                if entry['nip'] in seen_nips:
                    errors.append(f"Lecturer #{idx} reuses NIP '{entry['nip']}'")
                seen_nips.add(entry['nip'])
            seen_ids.add(entry['id'])
            cleaned.append(entry)

        if errors:
            raise ValidationError(errors)
        return cleaned

    @staticmethod
    def replace_all(lecturers):
        """Replace the roster in one transaction; the old roster survives a failure."""
        cleaned = LecturerStore.prepare(lecturers)

        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('DELETE FROM lecturers')
                cursor.executemany('''
                    INSERT INTO lecturers (id, nip, name, department)
                    VALUES (?, ?, ?, ?)
                ''', [(l['id'], l['nip'], l['name'], l['department']) for l in cleaned])
        except sqlite3.Error as e:
            raise PersistenceError(f"Database Update Failed: {e}") from e

        logger.info(f"Lecturer roster replaced with {len(cleaned)} entries")
        return cleaned

    @staticmethod
    def count():
        """Get total number of lecturers."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM lecturers')
            return cursor.fetchone()[0]

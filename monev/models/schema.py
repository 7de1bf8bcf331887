import json
import logging
import sqlite3

from .database import get_db
from monev.errors import ValidationError, PersistenceError
from monev.services.question_schema import check_schema, normalize_category, normalize_type

logger = logging.getLogger(__name__)


class SchemaStore:
    @staticmethod
    def load_schema():
        """Load every category with its questions, both in display order."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT id, title, description
                FROM categories
                ORDER BY sort_order ASC, title ASC
            ''')
            categories = [
                {
                    'id': row['id'],
                    'title': row['title'],
                    'description': row['description'],
                    'questions': [],
                }
                for row in cursor.fetchall()
            ]
            by_id = {category['id']: category for category in categories}

            cursor.execute('''
                SELECT id, category_id, text, type, options
                FROM questions
                ORDER BY sort_order ASC
            ''')
            for row in cursor.fetchall():
                category = by_id.get(row['category_id'])
                if category is None:
                    continue
                category['questions'].append({
                    'id': row['id'],
                    'text': row['text'],
                    'type': normalize_type(row['type']),
                    'options': json.loads(row['options']) if row['options'] else [],
                })

        return categories

    @staticmethod
    def replace_schema(categories):
        """
        Replace the whole question bank atomically.

        Raises ValidationError (nothing written) when the payload is
        malformed, and PersistenceError (previous schema kept) when the
        write fails.
        """
        errors = check_schema(categories)
        if errors:
            raise ValidationError(errors)

        normalized = [normalize_category(category) for category in categories]

        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute('DELETE FROM questions')
                cursor.execute('DELETE FROM categories')

                for c_order, category in enumerate(normalized):
                    cursor.execute('''
                        INSERT INTO categories (id, title, description, sort_order)
                        VALUES (?, ?, ?, ?)
                    ''', (category['id'], category['title'], category['description'], c_order))

                    cursor.executemany('''
                        INSERT INTO questions (id, category_id, text, type, options, sort_order)
                        VALUES (?, ?, ?, ?, ?, ?)
                    ''', [
                        (
                            question['id'],
                            category['id'],
                            question['text'],
                            question['type'],
                            json.dumps(question['options']) if question['options'] else None,
                            q_order,
                        )
                        for q_order, question in enumerate(category['questions'])
                    ])
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

        logger.info(f"Question schema replaced: {len(normalized)} categories, "
                    f"{sum(len(c['questions']) for c in normalized)} questions")
        return normalized

import sqlite3
import os
from contextlib import contextmanager
import logging

import config

logger = logging.getLogger(__name__)

DATABASE_PATH = config.DATABASE_PATH

def get_db_path():
    """Get the database path and ensure the directory exists."""
    db_dir = os.path.dirname(DATABASE_PATH)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)
    return DATABASE_PATH

@contextmanager
def get_db():
    """Context manager for database connections.

    One connection is one transaction: it commits when the block exits
    normally and rolls back on any exception.
    """
    conn = None
    try:
        conn = sqlite3.connect(get_db_path())
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        yield conn
        conn.commit()
    except Exception as e:
        if conn:
            conn.rollback()
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn:
            conn.close()

def init_db():
    """Initialize the database with all required tables."""
    with get_db() as conn:
        cursor = conn.cursor()

        # Lecturers roster
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS lecturers (
                id TEXT PRIMARY KEY,
                nip TEXT NOT NULL DEFAULT '',
                name TEXT NOT NULL,
                department TEXT NOT NULL DEFAULT ''
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_lecturers_nip
            ON lecturers(nip)
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS subjects (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                sort_order INTEGER NOT NULL DEFAULT 0
            )
        ''')

        # Question bank
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS categories (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                sort_order INTEGER NOT NULL DEFAULT 0
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS questions (
                id TEXT NOT NULL,
                category_id TEXT NOT NULL
                    REFERENCES categories(id) ON DELETE CASCADE,
                text TEXT NOT NULL DEFAULT '',
                type TEXT NOT NULL DEFAULT 'likert',
                options TEXT DEFAULT NULL,
                sort_order INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (category_id, id)
            )
        ''')

        # Question ids are unique across the whole schema
        cursor.execute('''
            CREATE UNIQUE INDEX IF NOT EXISTS idx_questions_id
            ON questions(id)
        ''')

        # Submissions, one per nip/subject/class/semester
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS submissions (
                id TEXT PRIMARY KEY,
                timestamp TEXT NOT NULL,
                nip TEXT NOT NULL DEFAULT '',
                lecturer_name TEXT NOT NULL,
                subject_name TEXT NOT NULL,
                class_code TEXT NOT NULL DEFAULT '',
                semester TEXT NOT NULL DEFAULT '',
                positive_feedback TEXT NOT NULL DEFAULT '',
                constructive_feedback TEXT NOT NULL DEFAULT '',
                UNIQUE(nip, subject_name, class_code, semester)
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_submissions_timestamp
            ON submissions(timestamp)
        ''')

        # Answers carry their own type tag so numeric-looking text survives
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS submission_answers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                submission_id TEXT NOT NULL
                    REFERENCES submissions(id) ON DELETE CASCADE,
                question_id TEXT NOT NULL,
                question_type TEXT DEFAULT NULL,
                rating INTEGER DEFAULT NULL,
                answer_text TEXT DEFAULT NULL
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_answers_submission
            ON submission_answers(submission_id)
        ''')

        logger.info("Database initialized successfully")

"""Test infrastructure: a temporary sqlite file per test, sample schema and forms, Flask client."""

import copy

import pytest

from monev.models import database, init_db

# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------
SAMPLE_SCHEMA = [
    {
        'id': 'cat_1',
        'title': 'Persiapan',
        'description': 'Kesiapan perangkat pembelajaran',
        'questions': [
            {'id': 'q1', 'text': 'RPS tersedia sebelum perkuliahan', 'type': 'likert'},
            {'id': 'q2', 'text': 'Materi diunggah tepat waktu', 'type': 'likert'},
        ],
    },
    {
        'id': 'cat_2',
        'title': 'Pelaksanaan',
        'questions': [
            {'id': 'q3', 'text': 'Metode perkuliahan', 'type': 'choice',
             'options': ['Luring', 'Daring', 'Hybrid']},
            {'id': 'q4', 'text': 'Catatan pelaksanaan', 'type': 'text'},
        ],
    },
]

SAMPLE_FORM = {
    'nip': '198001012005011001',
    'lecturerName': 'Dr. Budi Santoso',
    'subject': 'Pembelajaran Dasar Bersama (PDB)',
    'classCode': 'A1',
    'semester': 'Ganjil 2024/2025',
    'answers': {'q1': 5, 'q2': 4, 'q3': 'Daring', 'q4': 'Berjalan lancar'},
    'positiveFeedback': 'Mahasiswa aktif',
    'constructiveFeedback': '',
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point the stores at an empty database file for this test."""
    path = str(tmp_path / 'monev.db')
    monkeypatch.setattr(database, 'DATABASE_PATH', path)
    init_db()
    return path


@pytest.fixture
def schema():
    return copy.deepcopy(SAMPLE_SCHEMA)


@pytest.fixture
def make_form():
    """Build a complete form; keyword arguments override top-level fields."""
    def _make(**overrides):
        form = copy.deepcopy(SAMPLE_FORM)
        form.update(overrides)
        return form
    return _make


@pytest.fixture
def flask_app(db_path, tmp_path, monkeypatch):
    from app import app
    from routes import admin_routes

    monkeypatch.setattr(admin_routes, 'UPLOAD_FOLDER', str(tmp_path / 'uploads'))
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()

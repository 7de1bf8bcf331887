import os

# Database configuration
DATABASE_PATH = os.environ.get(
    'MONEV_DATABASE_PATH',
    os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'monev.db')
)

# Server configuration
HOST = os.environ.get('MONEV_HOST', '0.0.0.0')
PORT = int(os.environ.get('MONEV_PORT', '5000'))
PORTS_TO_TRY = [PORT, 8080, 8000, 3000, 5001]

# Admin access code (not hardened, single shared literal)
ADMIN_PASSWORD = os.environ.get('MONEV_ADMIN_PASSWORD', '112233')

API_VERSION = '1.3'

# Upload configuration
UPLOAD_FOLDER = 'uploads'
ALLOWED_EXTENSIONS = {'xlsx', 'xls'}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

# Question types
QUESTION_TYPE_LIKERT = 'likert'
QUESTION_TYPE_CHOICE = 'choice'
QUESTION_TYPE_TEXT = 'text'
QUESTION_TYPES = (QUESTION_TYPE_LIKERT, QUESTION_TYPE_CHOICE, QUESTION_TYPE_TEXT)

LIKERT_MIN = 1
LIKERT_MAX = 5
LIKERT_LABELS = {
    1: "Sangat Kurang",
    2: "Kurang",
    3: "Cukup",
    4: "Baik",
    5: "Sangat Baik",
}

DEFAULT_SUBJECTS = [
    {'id': 'mk_pdb_01', 'name': 'Pembelajaran Dasar Bersama (PDB)'},
]

# Lecturer spreadsheet columns (export headers, then accepted import aliases)
LECTURER_SHEET_NAME = 'Data Dosen'
LECTURER_EXPORT_HEADERS = ['NIP', 'Name', 'Department', 'System ID']
LECTURER_COLUMN_ALIASES = {
    'nip': ['nip'],
    'name': ['name', 'nama lengkap', 'nama'],
    'department': ['department', 'unit / departemen', 'departemen', 'unit'],
    'id': ['system id', 'id sistem (jangan ubah)', 'id'],
}

RESULTS_SHEET_NAME = 'Hasil Monev Lengkap'

# Client side caches
CACHE_DIR = os.path.join(os.path.expanduser('~'), '.monev')
FALLBACK_CACHE_FILE = 'monev_pdb_data_fallback.json'
DRAFT_CACHE_FILE = 'monev_pdb_form_data.json'
DRAFT_MAX_AGE_HOURS = 72
REQUEST_TIMEOUT = 15

"""
Service for lecturer roster import/export and results export as Excel files.
"""

import io
import logging
from datetime import datetime
from typing import Tuple, List

import pandas as pd

from config import (
    LECTURER_COLUMN_ALIASES, LECTURER_EXPORT_HEADERS, LECTURER_SHEET_NAME,
    LIKERT_LABELS, QUESTION_TYPE_LIKERT, RESULTS_SHEET_NAME,
)
from monev.models.lecturer import LecturerStore
from monev.services.question_schema import iter_questions
from utils import clean_text, normalize_nip, generate_id

logger = logging.getLogger(__name__)

# Required headers for lecturer Excel file
REQUIRED_HEADERS = ['name']

def _resolve_columns(columns) -> dict:
    """Map each lecturer field to the first matching spreadsheet column."""
    resolved = {}
    for field, aliases in LECTURER_COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in columns:
                resolved[field] = alias
                break
    return resolved

def read_lecturer_excel(file) -> Tuple[bool, str, List[dict]]:
    """
    Read lecturers from an uploaded Excel file.

    Accepts a path or a file object. Rows without a name are skipped.

    Returns:
        Tuple of (is_valid, error_message, lecturers)
    """
    try:
        # Read everything as text so NIPs keep their leading zeros
        df = pd.read_excel(file, dtype=str)

        if df.empty:
            return False, "Excel file is empty", []

        df.columns = df.columns.astype(str).str.strip().str.lower()
        columns = _resolve_columns(set(df.columns))

        missing_headers = [h for h in REQUIRED_HEADERS if h not in columns]
        if missing_headers:
            return False, f"Missing required columns: {', '.join(missing_headers)}. Required: NIP, Name, Department", []

        lecturers = []
        for _, row in df.iterrows():
            name = clean_text(row[columns['name']])
            if not name:
                continue
            lecturers.append({
                'id': clean_text(row[columns['id']]) if 'id' in columns else '',
                'nip': normalize_nip(clean_text(row[columns['nip']])) if 'nip' in columns else '',
                'name': name,
                'department': clean_text(row[columns['department']]) if 'department' in columns else '',
            })

        if not lecturers:
            return False, "No valid lecturer records found in the Excel file", []

        return True, "", lecturers

    except Exception as e:
        logger.error(f"Error reading lecturer Excel file: {e}")
        return False, f"Error reading Excel file: {str(e)}", []

def merge_lecturers(current: List[dict], imported: List[dict]) -> Tuple[List[dict], int, int]:
    """
    Merge imported lecturers into the current roster by NIP.

    A matching NIP updates name and department in place, anything else is
    appended, and lecturers missing from the import are kept.

    Returns:
        Tuple of (merged_roster, updated_count, added_count)
    """
    merged = [dict(lecturer) for lecturer in current]
    index_by_nip = {normalize_nip(l.get('nip')): idx for idx, l in enumerate(merged) if normalize_nip(l.get('nip'))}
    used_ids = {l.get('id') for l in merged}
    updated_count = 0
    added_count = 0

    for lecturer in imported:
        nip = normalize_nip(lecturer.get('nip'))
        if nip and nip in index_by_nip:
            existing = merged[index_by_nip[nip]]
            existing['name'] = lecturer['name']
            existing['department'] = lecturer.get('department', '')
            updated_count += 1
            continue

        lecturer_id = lecturer.get('id')
        if not lecturer_id or lecturer_id in used_ids:
            lecturer_id = generate_id('L')
        used_ids.add(lecturer_id)

        merged.append({
            'id': lecturer_id,
            'nip': nip,
            'name': lecturer['name'],
            'department': lecturer.get('department', ''),
        })
        if nip:
            index_by_nip[nip] = len(merged) - 1
        added_count += 1

    return merged, updated_count, added_count

def process_lecturer_excel(file) -> Tuple[bool, str, dict]:
    """
    Read an uploaded roster and merge it into the stored lecturers.

    Returns:
        Tuple of (success, message, stats_dict)
    """
    is_valid, error_msg, imported = read_lecturer_excel(file)
    if not is_valid:
        return False, error_msg, {}

    merged, updated_count, added_count = merge_lecturers(LecturerStore.get_all(), imported)
    LecturerStore.replace_all(merged)

    stats = {
        'total': len(imported),
        'updated': updated_count,
        'added': added_count,
    }
    message = f"Import finished. Updated: {updated_count}, added: {added_count}."
    logger.info(message)
    return True, message, stats

def _workbook_bytes(df: pd.DataFrame, sheet_name: str) -> io.BytesIO:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine='openpyxl') as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    buf.seek(0)
    return buf

def export_lecturers(lecturers: List[dict]) -> io.BytesIO:
    """Build the roster workbook in the same layout the importer reads."""
    rows = [
        [l.get('nip', ''), l.get('name', ''), l.get('department', ''), l.get('id', '')]
        for l in lecturers
    ]
    df = pd.DataFrame(rows, columns=LECTURER_EXPORT_HEADERS)
    return _workbook_bytes(df, LECTURER_SHEET_NAME)

def _format_timestamp(timestamp):
    try:
        return datetime.fromisoformat(timestamp).strftime('%d/%m/%Y %H:%M:%S')
    except (TypeError, ValueError):
        return timestamp or ''

def format_answer(question, value):
    """Render one answer for a spreadsheet cell."""
    if value is None or value == '':
        return '-'
    if question.get('type') == QUESTION_TYPE_LIKERT and isinstance(value, int) and not isinstance(value, bool):
        return f"{value} - {LIKERT_LABELS.get(value, '')}"
    return str(value)

def results_rows(categories: List[dict], submissions: List[dict]) -> Tuple[List[str], List[list]]:
    """Flatten submissions to one row each, one column per question."""
    question_columns = [
        (f"[{category.get('title', '')}] {question.get('text', '')}", question)
        for category, question in iter_questions(categories)
    ]
    columns = (['Time', 'NIP', 'Lecturer Name', 'Subject', 'Class Code', 'Semester']
               + [header for header, _ in question_columns]
               + ['Positive Notes', 'Obstacles'])

    rows = []
    for submission in submissions:
        answers = submission.get('answers') or {}
        row = [
            _format_timestamp(submission.get('timestamp')),
            submission.get('nip', ''),
            submission.get('lecturerName', ''),
            submission.get('subject', ''),
            submission.get('classCode', ''),
            submission.get('semester', ''),
        ]
        row.extend(format_answer(question, answers.get(question['id'])) for _, question in question_columns)
        row.append(submission.get('positiveFeedback') or '-')
        row.append(submission.get('constructiveFeedback') or '-')
        rows.append(row)

    return columns, rows

def export_results(categories: List[dict], submissions: List[dict]) -> io.BytesIO:
    columns, rows = results_rows(categories, submissions)
    df = pd.DataFrame(rows, columns=columns)
    logger.info(f"Exporting {len(rows)} submissions")
    return _workbook_bytes(df, RESULTS_SHEET_NAME)

def create_sample_excel() -> io.BytesIO:
    """
    Create a sample roster workbook with the correct format.
    """
    sample_data = {
        'NIP': ['198001012005011001', '198502022010012002'],
        'Name': ['Dr. Budi Santoso', 'Prof. Siti Aminah'],
        'Department': ['Fakultas Kedokteran', 'Fakultas Ekonomi dan Bisnis'],
        'System ID': ['', ''],
    }

    df = pd.DataFrame(sample_data)
    logger.info("Sample lecturer Excel file created")
    return _workbook_bytes(df, LECTURER_SHEET_NAME)

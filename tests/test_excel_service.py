"""Spreadsheet helpers: roster parsing and merging, results layout."""

from io import BytesIO

import pandas as pd

from monev.services.excel_service import format_answer, merge_lecturers, read_lecturer_excel, results_rows
from utils import normalize_nip


def _xlsx(data):
    buf = BytesIO()
    pd.DataFrame(data).to_excel(buf, index=False, engine='openpyxl')
    buf.seek(0)
    return buf


class TestReadLecturerExcel:
    def test_indonesian_headers(self):
        ok, message, lecturers = read_lecturer_excel(_xlsx({
            'NIP': ['0012345'],
            'Nama Lengkap': ['Dr. Budi'],
            'Unit / Departemen': ['FK'],
            'ID Sistem (Jangan Ubah)': ['L1'],
        }))

        assert ok, message
        assert lecturers == [{'id': 'L1', 'nip': '0012345', 'name': 'Dr. Budi', 'department': 'FK'}]

    def test_rows_without_name_are_skipped(self):
        ok, _, lecturers = read_lecturer_excel(_xlsx({'Name': ['A', None], 'NIP': ['1', '2']}))
        assert ok
        assert [l['nip'] for l in lecturers] == ['1']

    def test_missing_name_column(self):
        ok, message, lecturers = read_lecturer_excel(_xlsx({'NIP': ['1']}))
        assert not ok
        assert lecturers == []
        assert 'name' in message

    def test_unreadable_file(self):
        ok, message, _ = read_lecturer_excel(BytesIO(b'not a workbook'))
        assert not ok
        assert message.startswith('Error reading Excel file')


class TestMergeLecturers:
    def test_update_append_and_keep(self):
        current = [
            {'id': 'L1', 'nip': '111', 'name': 'Old', 'department': 'X'},
            {'id': 'L2', 'nip': '222', 'name': 'Kept', 'department': 'Y'},
        ]
        imported = [
            {'id': '', 'nip': '111', 'name': 'New', 'department': 'Z'},
            {'id': '', 'nip': '333', 'name': 'Added', 'department': 'W'},
        ]

        merged, updated, added = merge_lecturers(current, imported)

        assert (updated, added) == (1, 1)
        assert merged[0] == {'id': 'L1', 'nip': '111', 'name': 'New', 'department': 'Z'}
        assert merged[1]['name'] == 'Kept'
        assert merged[2]['id'].startswith('L_')
        assert current[0]['name'] == 'Old'

    def test_colliding_id_is_replaced(self):
        merged, _, added = merge_lecturers(
            [{'id': 'L1', 'nip': '111', 'name': 'A', 'department': ''}],
            [{'id': 'L1', 'nip': '999', 'name': 'B', 'department': ''}],
        )
        assert added == 1
        assert merged[1]['id'] != 'L1'

    def test_repeated_nip_in_import_updates_once_added(self):
        merged, updated, added = merge_lecturers([], [
            {'nip': '5', 'name': 'First'},
            {'nip': '5', 'name': 'Second'},
        ])
        assert (updated, added) == (1, 1)
        assert [l['name'] for l in merged] == ['Second']


class TestResultsRows:
    def test_layout(self, schema):
        submissions = [{
            'timestamp': '2024-09-01T08:30:00+00:00',
            'nip': '1', 'lecturerName': 'Budi', 'subject': 'PDB', 'classCode': 'A1',
            'semester': 'Ganjil 2024/2025',
            'answers': {'q1': 4, 'q3': 'Hybrid'},
            'positiveFeedback': 'Bagus', 'constructiveFeedback': '',
        }]

        columns, rows = results_rows(schema, submissions)

        assert columns[6:10] == [
            '[Persiapan] RPS tersedia sebelum perkuliahan',
            '[Persiapan] Materi diunggah tepat waktu',
            '[Pelaksanaan] Metode perkuliahan',
            '[Pelaksanaan] Catatan pelaksanaan',
        ]
        assert columns[-2:] == ['Positive Notes', 'Obstacles']
        assert rows[0][0] == '01/09/2024 08:30:00'
        assert rows[0][6:] == ['4 - Baik', '-', 'Hybrid', '-', 'Bagus', '-']

    def test_format_answer(self):
        likert = {'type': 'likert'}
        assert format_answer(likert, 1) == '1 - Sangat Kurang'
        assert format_answer(likert, 'legacy text') == 'legacy text'
        assert format_answer({'type': 'choice'}, '5') == '5'
        assert format_answer(likert, None) == '-'


class TestNormalizeNip:
    def test_spreadsheet_float(self):
        assert normalize_nip(198001012005011.0) == '198001012005011'

    def test_inner_whitespace(self):
        assert normalize_nip(' 19800101 2005 ') == '198001012005'

    def test_none(self):
        assert normalize_nip(None) == ''

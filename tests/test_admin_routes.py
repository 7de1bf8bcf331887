"""Admin endpoints: login, roster spreadsheets, results export, analytics and the PDF report."""

from io import BytesIO

import pandas as pd
import pytest

from monev.models import LecturerStore


def make_roster_xlsx(rows, columns=('NIP', 'Name', 'Department')):
    buf = BytesIO()
    pd.DataFrame(rows, columns=list(columns)).to_excel(buf, index=False, engine='openpyxl')
    buf.seek(0)
    return buf


@pytest.fixture
def with_submission(client, schema, make_form):
    client.post('/api?action=update_categories', json=schema)
    resp = client.post('/api?action=add_submission', json=make_form())
    assert resp.status_code == 200
    return client


class TestLogin:
    def test_correct_password(self, client):
        assert client.post('/admin/login', json={'password': '112233'}).get_json() == {'success': True}

    def test_wrong_password(self, client):
        resp = client.post('/admin/login', data={'password': 'nope'})
        assert resp.status_code == 401
        assert resp.get_json()['success'] is False


class TestLecturerUpload:
    def test_merge_by_nip(self, client):
        LecturerStore.replace_all([
            {'id': 'L1', 'nip': '198001012005011001', 'name': 'Budi', 'department': 'FK'},
            {'id': 'L9', 'nip': '197001012000011009', 'name': 'Kept', 'department': 'FT'},
        ])
        upload = make_roster_xlsx([
            ['198001012005011001', 'Dr. Budi Santoso', 'Fakultas Kedokteran'],
            ['198502022010012002', 'Prof. Siti Aminah', 'FEB'],
            ['199001012015011003', None, 'FH'],
        ])

        resp = client.post('/admin/lecturers/upload', data={'file': (upload, 'dosen.xlsx')},
                           content_type='multipart/form-data')
        body = resp.get_json()

        assert resp.status_code == 200
        assert (body['updated'], body['added']) == (1, 1)
        roster = {l['nip']: l for l in LecturerStore.get_all()}
        assert len(roster) == 3
        assert roster['198001012005011001']['id'] == 'L1'
        assert roster['198001012005011001']['name'] == 'Dr. Budi Santoso'
        assert roster['197001012000011009']['name'] == 'Kept'

    def test_wrong_extension(self, client):
        resp = client.post('/admin/lecturers/upload', data={'file': (BytesIO(b'a,b'), 'dosen.csv')},
                           content_type='multipart/form-data')
        assert resp.status_code == 400

    def test_no_file(self, client):
        resp = client.post('/admin/lecturers/upload', data={}, content_type='multipart/form-data')
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'No file uploaded'

    def test_missing_name_column(self, client):
        upload = make_roster_xlsx([['1', 'FK']], columns=('NIP', 'Department'))
        resp = client.post('/admin/lecturers/upload', data={'file': (upload, 'dosen.xlsx')},
                           content_type='multipart/form-data')
        assert resp.status_code == 400
        assert 'Missing required columns' in resp.get_json()['message']


class TestExports:
    def test_lecturer_export_layout(self, client):
        LecturerStore.replace_all([{'id': 'L1', 'nip': '0012', 'name': 'Budi', 'department': 'FK'}])

        resp = client.get('/admin/lecturers/export')
        df = pd.read_excel(BytesIO(resp.data), dtype=str)

        assert resp.status_code == 200
        assert list(df.columns) == ['NIP', 'Name', 'Department', 'System ID']
        assert df.iloc[0].tolist() == ['0012', 'Budi', 'FK', 'L1']

    def test_sample_workbook(self, client):
        df = pd.read_excel(BytesIO(client.get('/admin/lecturers/sample').data), dtype=str)
        assert 'Name' in df.columns
        assert len(df) == 2

    def test_results_export(self, with_submission):
        resp = with_submission.get('/admin/results/export')
        df = pd.read_excel(BytesIO(resp.data), dtype=str)

        assert resp.status_code == 200
        assert list(df.columns[:6]) == ['Time', 'NIP', 'Lecturer Name', 'Subject', 'Class Code', 'Semester']
        assert df.iloc[0]['[Persiapan] RPS tersedia sebelum perkuliahan'] == '5 - Sangat Baik'
        assert df.iloc[0]['[Pelaksanaan] Metode perkuliahan'] == 'Daring'
        assert df.iloc[0]['Obstacles'] == '-'


class TestAnalytics:
    def test_question_summary(self, with_submission):
        body = with_submission.get('/admin/analytics?question_id=q1').get_json()
        assert body['categoryTitle'] == 'Persiapan'
        assert body['counts']['5'] == 1
        assert body['mean'] == 5

    def test_unknown_question(self, with_submission):
        assert with_submission.get('/admin/analytics?question_id=zz').status_code == 404

    def test_schema_summary(self, with_submission):
        body = with_submission.get('/admin/analytics').get_json()
        assert body['totalSubmissions'] == 1
        assert body['categories'][0]['mean'] == 4.5

    def test_pdf_report(self, with_submission):
        resp = with_submission.get('/admin/report?download=1')
        assert resp.status_code == 200
        assert resp.headers['Content-Type'] == 'application/pdf'
        assert resp.headers['Content-Disposition'].startswith('attachment')
        assert resp.data.startswith(b'%PDF')

"""JSON API at /api?action=... through the Flask test client."""

import pytest

from monev.services.notifier import notifier

LECTURERS = [
    {'id': 'L1', 'nip': '198001012005011001', 'name': 'Dr. Budi Santoso', 'department': 'FK'},
    {'id': 'L2', 'nip': '198502022010012002', 'name': 'Prof. Siti Aminah', 'department': 'FEB'},
]


@pytest.fixture
def seeded(client, schema):
    assert client.post('/api?action=update_categories', json=schema).status_code == 200
    assert client.post('/api?action=update_lecturers', json=LECTURERS).status_code == 200
    return client


def _app_data(client):
    resp = client.get('/api?action=get_app_data')
    assert resp.status_code == 200
    return resp.get_json()


class TestStatus:
    def test_status_without_action(self, client):
        data = client.get('/api').get_json()
        assert data['status'] == 'online'
        assert data['version'] == '1.3'

    def test_unknown_action(self, client):
        resp = client.get('/api?action=drop_everything')
        assert resp.status_code == 404
        assert resp.get_json() == {'error': 'Action not found'}

    def test_post_only_action_over_get(self, client):
        assert client.get('/api?action=add_submission').status_code == 404

    def test_cors_headers(self, client):
        assert client.get('/api').headers['Access-Control-Allow-Origin'] == '*'


class TestAppData:
    def test_fresh_database(self, client):
        data = _app_data(client)
        assert data['lecturers'] == []
        assert data['categories'] == []
        assert data['submissions'] == []
        assert data['subjects'][0]['id'] == 'mk_pdb_01'

    def test_updates_are_visible(self, seeded, schema):
        data = _app_data(seeded)
        assert [l['id'] for l in data['lecturers']] == ['L1', 'L2']
        assert [c['id'] for c in data['categories']] == ['cat_1', 'cat_2']

    def test_update_subjects(self, client):
        resp = client.post('/api?action=update_subjects', json=[{'id': 's1', 'name': 'Anatomi'}])
        assert resp.get_json() == {'success': True}
        assert _app_data(client)['subjects'] == [{'id': 's1', 'name': 'Anatomi'}]


class TestAddSubmission:
    def test_success(self, seeded, make_form):
        resp = seeded.post('/api?action=add_submission', json=make_form())
        body = resp.get_json()

        assert resp.status_code == 200
        assert body['success'] is True
        submissions = _app_data(seeded)['submissions']
        assert [s['id'] for s in submissions] == [body['id']]
        assert submissions[0]['answers']['q1'] == 5

    def test_duplicate_is_409(self, seeded, make_form):
        seeded.post('/api?action=add_submission', json=make_form())
        resp = seeded.post('/api?action=add_submission', json=make_form())

        assert resp.status_code == 409
        assert resp.get_json()['error'] == 'You have already submitted this questionnaire.'
        assert len(_app_data(seeded)['submissions']) == 1

    def test_incomplete_is_400(self, seeded, make_form):
        resp = seeded.post('/api?action=add_submission', json=make_form(answers={'q1': 5}))
        body = resp.get_json()

        assert resp.status_code == 400
        assert body['errors'] == ['Please answer every question (1/4 answered).']
        assert _app_data(seeded)['submissions'] == []

    def test_invalid_json(self, seeded):
        resp = seeded.post('/api?action=add_submission', data='{"nip": ', content_type='application/json')
        assert resp.status_code == 400
        assert resp.get_json() == {'error': 'Invalid JSON'}

    def test_non_object_body(self, seeded):
        resp = seeded.post('/api?action=add_submission', json=['not', 'a', 'form'])
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Invalid data format'


class TestDeleteSubmission:
    def test_delete_removes_from_data_and_analytics(self, seeded, make_form):
        submission_id = seeded.post('/api?action=add_submission', json=make_form()).get_json()['id']
        before = seeded.get('/admin/analytics?question_id=q1').get_json()
        assert before['totalResponses'] == 1

        resp = seeded.post('/api?action=delete_submission', json={'id': submission_id})

        assert resp.get_json() == {'success': True}
        assert _app_data(seeded)['submissions'] == []
        after = seeded.get('/admin/analytics?question_id=q1').get_json()
        assert after['totalResponses'] == 0
        assert after['mean'] == 0

    def test_missing_id(self, client):
        resp = client.post('/api?action=delete_submission', json={})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Invalid Request'


class TestReplaceEndpoints:
    def test_lecturers_must_be_a_list(self, client):
        resp = client.post('/api?action=update_lecturers', json={'name': 'X'})
        assert resp.status_code == 400

    def test_invalid_lecturer_roster(self, seeded):
        resp = seeded.post('/api?action=update_lecturers', json=[{'nip': '1', 'name': ''}])
        assert resp.status_code == 400
        assert resp.get_json()['errors'] == ['Lecturer #1 has no name']
        assert len(_app_data(seeded)['lecturers']) == 2

    def test_invalid_schema_lists_errors(self, seeded):
        resp = seeded.post('/api?action=update_categories', json=[{'id': 'c', 'title': ''}])
        body = resp.get_json()
        assert resp.status_code == 400
        assert body['errors'] == ['Category #1 has an empty title']
        assert [c['id'] for c in _app_data(seeded)['categories']] == ['cat_1', 'cat_2']


class TestVerifyNip:
    def test_known_nip(self, seeded):
        body = seeded.get('/api?action=verify_nip&nip=198001012005011001').get_json()
        assert body['valid'] is True
        assert body['lecturer']['name'] == 'Dr. Budi Santoso'
        assert body['alreadySubmitted'] is False

    def test_unknown_nip(self, seeded):
        body = seeded.get('/api?action=verify_nip&nip=111111').get_json()
        assert body['valid'] is False

    def test_too_short(self, seeded):
        assert seeded.get('/api?action=verify_nip&nip=12').get_json() == {
            'valid': False, 'message': 'Invalid NIP'
        }

    def test_already_submitted(self, seeded, make_form):
        form = make_form()
        seeded.post('/api?action=add_submission', json=form)

        body = seeded.get('/api', query_string={
            'action': 'verify_nip', 'nip': form['nip'], 'subject': form['subject'],
            'classCode': form['classCode'], 'semester': form['semester'],
        }).get_json()

        assert body['valid'] is True
        assert body['alreadySubmitted'] is True


class TestRevision:
    def test_every_write_bumps_revision(self, seeded, make_form):
        start = seeded.get('/api?action=get_revision').get_json()['revision']
        seeded.post('/api?action=add_submission', json=make_form())
        seeded.post('/api?action=update_subjects', json=[{'name': 'PDB'}])

        assert seeded.get('/api?action=get_revision').get_json()['revision'] == start + 2
        assert notifier.revision == start + 2

    def test_rejected_write_does_not_bump(self, seeded, make_form):
        start = notifier.revision
        seeded.post('/api?action=add_submission', json=make_form(lecturerName=''))
        assert notifier.revision == start

import logging
import sqlite3

from flask import Blueprint, request, jsonify

from config import API_VERSION
from monev.errors import DuplicateSubmission, PersistenceError, ValidationError
from monev.models import LecturerStore, SchemaStore, SubjectStore, SubmissionStore
from monev.services.notifier import notifier
from monev.services.validator import check_submission, find_duplicate
from utils import clean_text, normalize_nip

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__)


def error_response(message, status, **extra):
    payload = {'error': message}
    payload.update(extra)
    return jsonify(payload), status


@api_bp.errorhandler(ValidationError)
def handle_validation_error(e):
    return error_response(str(e), 400, errors=e.errors)


@api_bp.errorhandler(DuplicateSubmission)
def handle_duplicate(e):
    return error_response(str(e), 409, errors=[str(e)])


@api_bp.errorhandler(PersistenceError)
def handle_persistence_error(e):
    logger.error(f"Write failed and was rolled back: {e}")
    return error_response(str(e), 500)


@api_bp.errorhandler(sqlite3.Error)
def handle_database_error(e):
    logger.error(f"Database error: {e}")
    return error_response(str(e), 500)


class InvalidJson(Exception):
    pass


@api_bp.errorhandler(InvalidJson)
def handle_invalid_json(e):
    return error_response('Invalid JSON', 400)


def get_json_body():
    """Parsed JSON body; raises InvalidJson when it is missing or malformed."""
    data = request.get_json(silent=True)
    if data is None:
        raise InvalidJson()
    return data


# --- GET actions ---

def get_app_data():
    return jsonify({
        'lecturers': LecturerStore.get_all(),
        'subjects': SubjectStore.get_all(),
        'categories': SchemaStore.load_schema(),
        'submissions': SubmissionStore.get_all(),
    })


def verify_nip():
    """Look up a lecturer by NIP and, if the form identity is given, warn about an existing submission."""
    nip = normalize_nip(request.args.get('nip', ''))
    if len(nip) < 3:
        return jsonify({'valid': False, 'message': 'Invalid NIP'})

    lecturer = LecturerStore.get_by_nip(nip)
    if not lecturer:
        return jsonify({
            'valid': False,
            'message': 'NIP not found in the lecturer database.'
        })

    result = {
        'valid': True,
        'message': 'NIP verified successfully!',
        'lecturer': lecturer,
        'alreadySubmitted': False,
    }

    subject = clean_text(request.args.get('subject'))
    if subject:
        form = {
            'nip': nip,
            'subject': subject,
            'classCode': request.args.get('classCode', ''),
            'semester': request.args.get('semester', ''),
        }
        if find_duplicate(form, SubmissionStore.get_all()) is not None:
            result['alreadySubmitted'] = True
            result['message'] = 'You have already submitted this questionnaire.'

    return jsonify(result)


def get_revision():
    return jsonify({'revision': notifier.revision})


# --- POST actions ---

def add_submission():
    data = get_json_body()
    if not isinstance(data, dict):
        return error_response('Invalid data format', 400)

    categories = SchemaStore.load_schema()
    problems = check_submission(data, categories, SubmissionStore.get_all())
    if problems:
        status = 409 if any(isinstance(p, DuplicateSubmission) for p in problems) else 400
        messages = [str(p) for p in problems]
        return error_response(messages[0], status, errors=messages)

    submission = SubmissionStore.add(data, categories)
    notifier.notify('add_submission')
    return jsonify({'success': True, 'id': submission['id']})


def delete_submission():
    data = get_json_body()
    if not isinstance(data, dict) or not clean_text(data.get('id')):
        return error_response('Invalid Request', 400)

    SubmissionStore.delete(clean_text(data['id']))
    notifier.notify('delete_submission')
    return jsonify({'success': True})


def update_lecturers():
    lecturers = get_json_body()
    if not isinstance(lecturers, list):
        return error_response('Invalid data format or empty input', 400)

    LecturerStore.replace_all(lecturers)
    notifier.notify('update_lecturers')
    return jsonify({'success': True})


def update_categories():
    categories = get_json_body()
    if not isinstance(categories, list):
        return error_response('Invalid data format', 400)

    SchemaStore.replace_schema(categories)
    notifier.notify('update_categories')
    return jsonify({'success': True})


def update_subjects():
    subjects = get_json_body()
    if not isinstance(subjects, list):
        return error_response('Invalid data format', 400)

    SubjectStore.replace_all(subjects)
    notifier.notify('update_subjects')
    return jsonify({'success': True})


GET_ACTIONS = {
    'get_app_data': get_app_data,
    'verify_nip': verify_nip,
    'get_revision': get_revision,
}

POST_ACTIONS = {
    'add_submission': add_submission,
    'delete_submission': delete_submission,
    'update_lecturers': update_lecturers,
    'update_categories': update_categories,
    'update_subjects': update_subjects,
}


@api_bp.route('/api', methods=['GET', 'POST'])
def api():
    action = request.args.get('action', '')

    if not action and request.method == 'GET':
        return jsonify({
            'status': 'online',
            'message': 'Monev PDB API Connected.',
            'version': API_VERSION,
        })

    actions = GET_ACTIONS if request.method == 'GET' else POST_ACTIONS
    handler = actions.get(action)
    if handler is None:
        return error_response('Action not found', 404)

    logger.info(f"{request.method} /api?action={action}")
    return handler()

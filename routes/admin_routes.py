from flask import Blueprint, request, jsonify, send_file, make_response
from werkzeug.utils import secure_filename
import os
import logging
from monev.errors import ValidationError, PersistenceError
from monev.models import LecturerStore, SchemaStore, SubmissionStore
from monev.services.aggregator import summarize_question, summarize_schema
from monev.services.excel_service import (
    process_lecturer_excel, export_lecturers, export_results, create_sample_excel
)
from monev.services.notifier import notifier
from monev.services.question_schema import find_question
from report_generator import generate_analytics_report
from config import ADMIN_PASSWORD, UPLOAD_FOLDER, ALLOWED_EXTENSIONS, MAX_FILE_SIZE
from utils import allowed_file, generate_id

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

@admin_bp.route('/admin/login', methods=['POST'])
def admin_login():
    data = request.get_json(silent=True) or request.form
    password = data.get('password')
    if password == ADMIN_PASSWORD:
        return jsonify({'success': True})
    logger.warning("Rejected admin login attempt")
    return jsonify({'success': False, 'message': 'Incorrect access code'}), 401

@admin_bp.route('/admin/lecturers/upload', methods=['POST'])
def upload_lecturers_excel():
    """Merge lecturers from an Excel file into the roster by NIP."""
    # Check if file was uploaded
    if 'file' not in request.files:
        return jsonify({
            'success': False,
            'message': 'No file uploaded'
        }), 400

    file = request.files['file']

    if file.filename == '':
        return jsonify({
            'success': False,
            'message': 'No file selected'
        }), 400

    if not allowed_file(file.filename, ALLOWED_EXTENSIONS):
        return jsonify({
            'success': False,
            'message': 'Invalid file type. Please upload an Excel file (.xlsx or .xls)'
        }), 400

    # Check file size
    file.seek(0, os.SEEK_END)
    file_size = file.tell()
    file.seek(0)

    if file_size > MAX_FILE_SIZE:
        return jsonify({
            'success': False,
            'message': f'File too large. Maximum size is {MAX_FILE_SIZE / (1024*1024):.0f}MB'
        }), 400

    # Unique name per upload
    os.makedirs(UPLOAD_FOLDER, exist_ok=True)
    filename = f"{generate_id('upload')}_{secure_filename(file.filename)}"
    filepath = os.path.join(UPLOAD_FOLDER, filename)
    file.save(filepath)

    try:
        success, message, stats = process_lecturer_excel(filepath)
    except (ValidationError, PersistenceError) as e:
        logger.error(f"Error importing lecturers: {e}")
        return jsonify({
            'success': False,
            'message': f'Error importing lecturers: {str(e)}'
        }), 400 if isinstance(e, ValidationError) else 500
    finally:
        try:
            os.remove(filepath)
        except OSError as e:
            logger.warning(f"Could not remove upload {filepath}: {e}")

    if not success:
        return jsonify({'success': False, 'message': message}), 400

    notifier.notify('import_lecturers')
    return jsonify({
        'success': True,
        'message': message,
        'updated': stats['updated'],
        'added': stats['added'],
    })

@admin_bp.route('/admin/lecturers/export', methods=['GET'])
def export_lecturers_excel():
    buf = export_lecturers(LecturerStore.get_all())
    return send_file(buf, as_attachment=True, download_name='Data_Dosen_PDB.xlsx',
                     mimetype=XLSX_MIMETYPE)

@admin_bp.route('/admin/lecturers/sample', methods=['GET'])
def download_lecturer_sample():
    return send_file(create_sample_excel(), as_attachment=True,
                     download_name='sample_lecturers.xlsx', mimetype=XLSX_MIMETYPE)

@admin_bp.route('/admin/results/export', methods=['GET'])
def export_results_excel():
    buf = export_results(SchemaStore.load_schema(), SubmissionStore.get_all())
    return send_file(buf, as_attachment=True, download_name='Hasil_Monev_PDB_Lengkap.xlsx',
                     mimetype=XLSX_MIMETYPE)

@admin_bp.route('/admin/analytics', methods=['GET'])
def analytics():
    """Per-question statistics, or the whole schema when no question is given."""
    categories = SchemaStore.load_schema()
    submissions = SubmissionStore.get_all()

    question_id = request.args.get('question_id', '').strip()
    if not question_id:
        return jsonify(summarize_schema(categories, submissions))

    question, category_title = find_question(categories, question_id)
    if question is None:
        return jsonify({'error': f'Question {question_id} not found'}), 404

    summary = summarize_question(question, submissions)
    summary['categoryTitle'] = category_title
    return jsonify(summary)

@admin_bp.route('/admin/report', methods=['GET'])
def analytics_report():
    """Render the analytics PDF; ?download=1 serves it as an attachment."""
    summary = summarize_schema(SchemaStore.load_schema(), SubmissionStore.get_all())
    try:
        pdf_buffer = generate_analytics_report(summary, semester=request.args.get('semester', ''))
    except Exception as e:
        logger.error(f"PDF Generation Error: {str(e)}")
        return jsonify({'error': f'Error generating PDF report: {str(e)}'}), 500

    response = make_response(pdf_buffer.getvalue())
    response.headers['Content-Type'] = 'application/pdf'
    disposition = 'attachment' if request.args.get('download') else 'inline'
    response.headers['Content-Disposition'] = f'{disposition}; filename=Laporan_Monev_PDB.pdf'
    return response

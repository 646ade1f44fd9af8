import atexit
import logging
import os
import time

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.utils import secure_filename

from config import Config, get_config
from ingest import SchemaError, ValidationError, ingest_rows, read_spreadsheet_rows
from logging_setup import configure_logging
from participant_store import ParticipantStore, PersistenceError
from query import DEFAULT_LIMIT, DEFAULT_PAGE, distinct_values, search_participants

logger = logging.getLogger(__name__)

EXCEL_MIME_TYPES = {
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}
EXCEL_EXTENSIONS = ('.xls', '.xlsx')

api = Blueprint('api', __name__, url_prefix='/api')


def get_store() -> ParticipantStore:
    return current_app.config['PARTICIPANT_STORE']


def is_excel_upload(file) -> bool:
    return file.mimetype in EXCEL_MIME_TYPES or (file.filename or '').lower().endswith(EXCEL_EXTENSIONS)


def keep_upload(file, folder):
    """Save a copy of the raw upload as <epoch ms>-<name> and rewind the stream."""
    os.makedirs(folder, exist_ok=True)
    filename = f"{int(time.time() * 1000)}-{secure_filename(file.filename) or 'upload.xlsx'}"
    path = os.path.join(folder, filename)
    file.save(path)
    file.stream.seek(0)
    return path


# ---------- API ROUTES ----------

@api.route('/upload', methods=['POST'])
def upload():
    file = request.files.get('excelFile')
    if file is None or not file.filename:
        return jsonify({'error': 'No file uploaded'}), 400
    if not is_excel_upload(file):
        return jsonify({'error': 'Invalid file type. Only Excel files (.xls, .xlsx) are allowed.'}), 400

    try:
        upload_folder = current_app.config.get('UPLOAD_FOLDER')
        if upload_folder:
            saved = keep_upload(file, upload_folder)
            logger.info("Saved upload %s to %s", file.filename, saved)

        rows = read_spreadsheet_rows(file.stream, file.filename, file.mimetype)
        result = ingest_rows(rows, get_store())

    except SchemaError as e:
        return jsonify({'error': str(e), 'missingColumns': e.missing_columns}), 400
    except ValidationError as e:
        return jsonify({'error': str(e), 'validationErrors': [str(err) for err in e.errors]}), 400
    except Exception as e:
        logger.exception("Error processing Excel file %s", file.filename)
        return jsonify({'error': 'Error processing Excel file', 'details': str(e)}), 500

    if not result.persisted:
        logger.warning("Upload %s stored in memory only; data file write failed", file.filename)

    return jsonify({
        'message': f"Successfully processed {result.total_rows} records",
        'insertedRecords': result.inserted,
        'duplicatesSkipped': result.duplicates_skipped,
    })


@api.route('/participants', methods=['GET'])
def list_participants():
    """Search participants. Query params: p_no, mobile_no, name, trade, gender, page, limit"""
    page = request.args.get('page', DEFAULT_PAGE, type=int)
    limit = request.args.get('limit', DEFAULT_LIMIT, type=int)
    if limit < 1:
        limit = DEFAULT_LIMIT

    result = search_participants(
        get_store().all(),
        p_no=request.args.get('p_no'),
        mobile_no=request.args.get('mobile_no'),
        name=request.args.get('name'),
        trade=request.args.get('trade'),
        gender=request.args.get('gender'),
        page=page,
        limit=limit,
    )
    return jsonify(result)


@api.route('/participants/<p_no>', methods=['GET'])
def get_participant(p_no):
    participant = get_store().find_by_p_no(p_no)
    if participant is None:
        return jsonify({'error': 'Participant not found'}), 404
    return jsonify(participant)


@api.route('/trades', methods=['GET'])
def trades():
    return jsonify(distinct_values(get_store().all(), 'trade'))


@api.route('/genders', methods=['GET'])
def genders():
    return jsonify(distinct_values(get_store().all(), 'gender'))


# ---------- ERROR HANDLERS ----------

def route_not_found(e):
    return jsonify({'error': 'Route not found'}), 404


def file_too_large(e):
    return jsonify({'error': 'File too large'}), 413


def http_error(e):
    return jsonify({'error': e.description}), e.code


def unhandled_error(e):
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify({'error': 'Something went wrong!'}), 500


def save_on_exit(store: ParticipantStore):
    """Write out participants still only held in memory when the server stops."""
    if not store.unsaved:
        return
    try:
        store.save()
    except PersistenceError:
        logger.exception("Could not save participants on shutdown")


def create_app(config: Config = None, store: ParticipantStore = None) -> Flask:
    """Build the Flask app around `store`, loading one from config.data_file if not given."""
    config = config or get_config()
    if store is None:
        store = ParticipantStore(config.data_file)
        store.load()

    app = Flask(__name__, static_folder=None)
    app.config['PARTICIPANT_STORE'] = store
    app.config['UPLOAD_FOLDER'] = config.upload_folder
    app.config['MAX_CONTENT_LENGTH'] = config.max_content_length

    app.register_blueprint(api)
    app.register_error_handler(404, route_not_found)
    # unsupported methods on a known path are reported like unknown routes
    app.register_error_handler(405, route_not_found)
    app.register_error_handler(413, file_too_large)
    app.register_error_handler(HTTPException, http_error)
    app.register_error_handler(Exception, unhandled_error)
    return app


if __name__ == '__main__':
    config = get_config()
    configure_logging(config.log_level)
    app = create_app(config)
    atexit.register(save_on_exit, app.config['PARTICIPANT_STORE'])
    logger.info("Server is running on port %s", config.port)
    app.run(host=config.host, port=config.port, debug=config.debug)

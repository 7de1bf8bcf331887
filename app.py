import os
import logging
from rich.logging import RichHandler
from flask import Flask
import matplotlib
matplotlib.use("Agg")

from monev.models import init_db, get_db_path, SubjectStore
from routes.api_routes import api_bp
from routes.admin_routes import admin_bp

from config import HOST, PORT, UPLOAD_FOLDER, MAX_FILE_SIZE
from asgiref.wsgi import WsgiToAsgi

# Configure rich logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)

logging.root.handlers = [
    RichHandler(rich_tracebacks=True, show_path=True, tracebacks_show_locals=False,
                log_time_format="[%b %d, %Y, %I:%M:%S %p]",
                )
]
logger = logging.getLogger("monev_pdb")

app = Flask(__name__)
app.secret_key = os.environ.get('SECRET_KEY', 'change_me_in_production')
app.config['MAX_CONTENT_LENGTH'] = MAX_FILE_SIZE

# Register blueprints
app.register_blueprint(api_bp)
app.register_blueprint(admin_bp)

# Ensure upload folder exists
os.makedirs(UPLOAD_FOLDER, exist_ok=True)

asgi_app = WsgiToAsgi(app)

_initialized_paths = set()


def prepare_database():
    """Create the tables and seed the default subject once per database file."""
    path = get_db_path()
    if path in _initialized_paths:
        return
    init_db()
    SubjectStore.seed_defaults()
    _initialized_paths.add(path)
    logger.info(f"Database ready at {path}")


@app.before_request
def ensure_database():
    prepare_database()


@app.after_request
def add_cors_headers(response):
    # Any origin may call the API
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response


if __name__ == "__main__":
    logger.info("Initializing database...")
    prepare_database()

    import uvicorn
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(asgi_app, host=HOST, port=PORT, log_config=None)

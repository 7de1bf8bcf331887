"""
Small helpers shared by the stores, the routes and the spreadsheet service.
"""
import uuid
import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

def normalize_nip(nip):
    """Normalize a NIP by trimming it and removing inner whitespace.

    NIPs are kept as strings so leading zeros survive.
    """
    if nip is None:
        return ''
    if isinstance(nip, float) and nip.is_integer():
        # Spreadsheets hand long digit strings back as floats
        nip = int(nip)
    return ''.join(str(nip).split())

def clean_text(value):
    """Return a stripped string, treating None and NaN as empty."""
    if value is None:
        return ''
    if isinstance(value, float) and value != value:
        return ''
    return str(value).strip()

def generate_id(prefix):
    """Generate a unique identifier such as ``sub_3f2a9c1e5b7d``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"

def utc_now_iso():
    return datetime.now(timezone.utc).isoformat(timespec='seconds')

def allowed_file(filename, allowed_extensions):
    """Check if file has an allowed extension."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_extensions

from .database import init_db, get_db, get_db_path
from .lecturer import LecturerStore
from .subject import SubjectStore
from .schema import SchemaStore
from .submission import SubmissionStore

__all__ = ['init_db', 'get_db', 'get_db_path', 'LecturerStore', 'SubjectStore',
           'SchemaStore', 'SubmissionStore']

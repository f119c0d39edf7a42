import os
import tempfile

SECRET_KEY = "test-secret"

SQLALCHEMY_DATABASE_URI = "sqlite://"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), "employee_dashboard_uploads")

AUTO_INIT_DB = True
AUTO_SEED_DB = False

import os
import tempfile

# Configure the app before anything imports gameshelf.core.config.
_TMP_DIR = tempfile.mkdtemp(prefix="gameshelf-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/test.db"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["REFRESH_COOKIE_SECURE"] = "false"
os.environ["SEED_CONSOLES"] = "false"
os.environ["ALLOW_ADMIN_SIGNUP"] = "false"
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret"
os.environ["LOG_LEVEL"] = "WARNING"

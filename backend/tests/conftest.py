"""
Point the app at a throwaway SQLite database and upload dir before anything imports app.config.
"""
import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="quiz-engine-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["OPENROUTER_API_KEY"] = ""
os.environ.setdefault("SECRET_KEY", "test-secret-key")

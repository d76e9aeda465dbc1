from dotenv import load_dotenv
import os

load_dotenv()

SECRET = os.getenv("SECRET", "change-me")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./assessments.db")
SCHEMA_SEARCH_PATH = os.getenv("SCHEMA_SEARCH_PATH")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# NOTE: exact origins used by the frontend dev server (no trailing slash)
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]

JWT_LIFETIME_SECONDS = int(os.getenv("JWT_LIFETIME_SECONDS", "3600"))

# submit-time tuning
SUBMIT_COMPLETION_ATTEMPTS = int(os.getenv("SUBMIT_COMPLETION_ATTEMPTS", "3"))
SUBMIT_RETRY_DELAY_SECONDS = float(os.getenv("SUBMIT_RETRY_DELAY_SECONDS", "0.1"))
SUBMIT_GRACE_SECONDS = int(os.getenv("SUBMIT_GRACE_SECONDS", "30"))

import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    """
    Runtime configuration loaded from environment variables (.env supported).
    """
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///culture_app.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Celery
    CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    # Completion API
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_MAX_TOKENS = int(os.getenv("OPENAI_MAX_TOKENS", "1500"))
    OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
    OPENAI_TIMEOUT_SECONDS = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "60"))

    # Culture score cache
    CULTURE_SCORE_FRESHNESS_HOURS = int(os.getenv("CULTURE_SCORE_FRESHNESS_HOURS", "24"))

    # Branding assets
    UPLOADS_DIR = os.getenv("UPLOADS_DIR", os.path.join(BASE_DIR, "..", "uploads"))
    DEFAULT_LOGO_PATH = os.getenv("DEFAULT_LOGO_PATH", os.path.join(BASE_DIR, "assets", "default-logo.png"))

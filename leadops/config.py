"""
Centralized configuration — all env vars and scoring constants.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Scoring ───────────────────────────────────────────────────────────────────
SCORING_CONFIG_PATH = os.getenv('SCORING_CONFIG_PATH')  # None = bundled YAML
CLIENT_LOCK_TTL = int(os.getenv('CLIENT_LOCK_TTL', 900))

# ── Auth ─────────────────────────────────────────────────────────────────────
API_TOKEN = os.getenv('API_TOKEN')
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')

# ── Recompute modes ──────────────────────────────────────────────────────────
MODE_FULL = 'full'
MODE_SCORES_ONLY = 'scores_only'
RECOMPUTE_MODES = [MODE_FULL, MODE_SCORES_ONLY]

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = Path(os.environ.get("MANGANIME_DATA_DIR", BASE_DIR / "data"))
DB_PATH = DATA_DIR / "app.db"

STORAGE_BACKEND = os.environ.get("MANGANIME_STORAGE", "sqlite")

READING_HISTORY_KEY = "manganime-reading-history"
READING_HISTORY_LIMIT = 50
READING_HISTORY_TABLE = "reading_history"

SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_KEY = os.environ.get("SUPABASE_KEY") or os.environ.get("SUPABASE_ANON_KEY", "")

SYNC_MAX_ATTEMPTS = int(os.environ.get("MANGANIME_SYNC_ATTEMPTS", "2"))
SYNC_BASE_DELAY = 0.5

MANGADEX_USER_AGENT = "Manganime/1.0"

LOG_LEVEL = os.environ.get("MANGANIME_LOG_LEVEL", "INFO")

# packlist/config.py
import os
from pathlib import Path
from typing import List

BASE_DIR = Path(__file__).resolve().parent.parent

# When set, documents live in SQL (see packlist.db); otherwise in db.json
DATABASE_URL = os.getenv("DATABASE_URL")

DATA_FILE = Path(os.getenv("PACKLIST_DATA_FILE", str(BASE_DIR / "data" / "db.json")))

CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "30"))

PAGE_SIZE = int(os.getenv("PAGE_SIZE", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def allowed_origins() -> List[str]:
    raw = os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,https://packing-lists.netlify.app",
    )
    return [o.strip() for o in raw.split(",") if o.strip()]

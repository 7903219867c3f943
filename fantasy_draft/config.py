# fantasy_draft/config.py
import os
from pathlib import Path

DATA_DIR = Path(__file__).parent.parent / "data"
CATALOG_DIR = DATA_DIR / "catalog"

# Ledger database (one per session)
DB_PATH = Path(os.environ.get("FANTASY_DRAFT_DB", DATA_DIR / "draft.db"))

BOOTSTRAP_URL = "https://fantasy.premierleague.com/api/bootstrap-static/"
PHOTO_URL = "https://resources.premierleague.com/premierleague25/photos/players/110x140/{code}.png"

# ----------------------------
# Draft setup
# ----------------------------
MIN_TEAMS = 2
MAX_TEAMS = 12
SETTINGS_ID = "draft-settings"

# Advisory only, never enforced
POSITION_LIMITS = {"GK": 2, "DEF": 5, "MID": 5, "FWD": 3}
SQUAD_SIZE = 15

# ----------------------------
# Player table
# ----------------------------
PAGE_SIZE = 50
MAX_PREDICATES = 5

DEFAULT_VISIBLE_COLUMNS = (
    "image",
    "web_name",
    "position",
    "team",
    "goals_scored",
    "assists",
    "total_points",
    "points_per_game",
)

# Shown first, in this order, when present
KEY_COLUMNS = (
    "rank_score",
    "image",
    "web_name",
    "position",
    "team",
    "now_cost",
    "total_points",
    "points_per_game",
)

# Numeric-looking identifiers that must not be offered for ranking/filtering
NON_NUMERIC_COLUMNS = ("id", "team_code")

# ----------------------------
# Image proxy
# ----------------------------
ALLOWED_IMAGE_HOSTS = frozenset({"resources.premierleague.com"})
IMAGE_CACHE_CONTROL = "public, immutable, max-age=31536000, s-maxage=31536000"

# scripts/data_fetching/fetch_bootstrap.py
import argparse
import json

from fantasy_draft.api_client import fetch_bootstrap_static
from fantasy_draft.catalog import POSITION_FILES, catalog_from_bootstrap, split_by_position
from fantasy_draft.config import CATALOG_DIR

parser = argparse.ArgumentParser(description="Build per-position catalog files from bootstrap-static")
parser.add_argument("--refresh", action="store_true", help="Re-download instead of using the cache")
args = parser.parse_args()

# 1. Fetch raw data
data = fetch_bootstrap_static(force_refresh=args.refresh)

# 2. Parse players
players = catalog_from_bootstrap(data)
print(f"Parsed {len(players)} players successfully")

# 3. Write one file per position
CATALOG_DIR.mkdir(parents=True, exist_ok=True)
for position, records in split_by_position(players).items():
    path = CATALOG_DIR / POSITION_FILES[position]
    with open(path, "w") as f:
        json.dump(records, f, indent=2)
    print(f"✅ Saved {len(records)} {position} players to {path}")

# 4. Show a few players
for player in players[:5]:
    print(f"{player.web_name} ({player.team}, {player.position}): {player.total_points} pts")

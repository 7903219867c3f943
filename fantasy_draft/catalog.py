# fantasy_draft/catalog.py
import json
import logging
from pathlib import Path

from fantasy_draft.config import CATALOG_DIR, PHOTO_URL
from fantasy_draft.models.player import POSITION_MAP, POSITIONS, Player

logger = logging.getLogger(__name__)

# One fixture file per position
POSITION_FILES = {"GK": "gk.json", "DEF": "def.json", "MID": "mid.json", "FWD": "fwd.json"}

_SCALARS = (str, int, float, bool, type(None))


def _scalar_fields(raw: dict) -> dict:
    return {k: v for k, v in raw.items() if isinstance(v, _SCALARS)}


def load_position_files(directory=CATALOG_DIR) -> list[Player]:
    """Load gk/def/mid/fwd fixture files, tagging every record with its position."""
    directory = Path(directory)
    players = []
    for position in POSITIONS:
        with open(directory / POSITION_FILES[position]) as f:
            records = json.load(f)
        players.extend(Player(**{**_scalar_fields(raw), "position": position}) for raw in records)
    logger.info("Loaded %d catalog players from %s", len(players), directory)
    return players


def catalog_from_bootstrap(data: dict) -> list[Player]:
    """Build the catalog from a bootstrap-static payload (elements + teams)."""
    teams = {t["id"]: t["name"] for t in data["teams"]}

    players = []
    for raw in data["elements"]:
        fields = _scalar_fields(raw)
        fields["team"] = teams.get(raw["team"], str(raw["team"]))
        fields["image"] = PHOTO_URL.format(code=raw.get("code", raw.get("id")))
        fields["position"] = POSITION_MAP.get(raw.get("element_type"))
        # bootstrap ids clash with the derived draft id
        fields["element_id"] = fields.pop("id", None)
        try:
            players.append(Player(**fields))
        except ValueError as e:
            logger.warning("Failed to parse player ID %s: %s", raw.get("id"), e)

    logger.info("Parsed %d players successfully", len(players))
    return players


def split_by_position(players: list[Player]) -> dict[str, list[dict]]:
    """Inverse of load_position_files: raw records grouped per position file."""
    out: dict[str, list[dict]] = {pos: [] for pos in POSITIONS}
    for p in players:
        if p.position in out:
            row = p.to_row()
            row.pop("position", None)
            out[p.position].append(row)
    return out

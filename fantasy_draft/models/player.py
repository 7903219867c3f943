# fantasy_draft/models/player.py
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

Position = Literal["GK", "DEF", "MID", "FWD"]
POSITIONS = ("GK", "DEF", "MID", "FWD")
POSITION_MAP = {1: "GK", 2: "DEF", 3: "MID", 4: "FWD"}  # bootstrap element_type codes

# A single extra catalog attribute. Missing values are stored as None.
StatValue = Union[bool, int, float, str, None]


def _field_keys(model: type[BaseModel]) -> set[str]:
    keys = set()
    for name, field in model.model_fields.items():
        keys.add(name)
        if field.alias:
            keys.add(field.alias)
    return keys


class Player(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, populate_by_name=True)

    first_name: str  # First name of the player
    second_name: str  # Last name of the player
    web_name: str  # Common display name (e.g., "Saka")
    team: str  # Club name (e.g., "Arsenal")
    now_cost: Union[int, float]  # Price in tenths of a million (e.g., 61 = 6.1M)
    total_points: int  # Cumulative fantasy points this season
    points_per_game: str  # Avg. points per game, string like "4.6"
    image: str  # Absolute photo URL
    position: Optional[Position] = None  # Attached by the catalog loader

    # Every other catalog attribute (goals_scored, assists, form, ...)
    stats: dict[str, StatValue] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def collect_stats(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known = _field_keys(cls)
        stats = dict(data.get("stats") or {})
        fixed = {}
        for key, value in data.items():
            if key == "stats":
                continue
            if key in known:
                fixed[key] = value
            else:
                stats[key] = value
        fixed["stats"] = stats
        return fixed

    def to_row(self) -> dict[str, Any]:
        """Flatten into a single record, extra attributes first."""
        row = dict(self.stats)
        row.update(self.model_dump(by_alias=True, exclude={"stats"}))
        return row


def player_id_for(web_name: str, team: str) -> str:
    return f"{web_name}-{team}"


class DraftPlayer(Player):
    id: str  # "<web_name>-<team>", stable for the session
    is_drafted: bool = Field(default=False, alias="isDrafted")
    drafted_by: Optional[str] = Field(default=None, alias="draftedBy")  # DraftTeam.id

    @model_validator(mode="after")
    def check_draft_state(self) -> "DraftPlayer":
        if self.is_drafted != (self.drafted_by is not None):
            raise ValueError(
                f"player {self.id!r}: isDrafted={self.is_drafted} "
                f"but draftedBy={self.drafted_by!r}"
            )
        return self

    @classmethod
    def from_player(cls, player: Player) -> "DraftPlayer":
        known = _field_keys(cls)
        # A raw catalog "id" would otherwise shadow the derived one
        stats = {k: v for k, v in player.stats.items() if k not in known}
        return cls(
            **player.model_dump(exclude={"stats"}),
            stats=stats,
            id=player_id_for(player.web_name, player.team),
            is_drafted=False,
            drafted_by=None,
        )

    def drafted(self, team_id: str) -> "DraftPlayer":
        return self.model_copy(update={"is_drafted": True, "drafted_by": team_id})

    def undrafted(self) -> "DraftPlayer":
        return self.model_copy(update={"is_drafted": False, "drafted_by": None})

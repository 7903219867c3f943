# fantasy_draft/models/team.py
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from fantasy_draft.models.player import Position


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DraftTeam(BaseModel):
    id: str  # "team-1", "team-2", ... in setup order
    name: str  # Display name entered at setup
    owner: str  # Same as name for now
    players: list[str] = Field(default_factory=list)  # Player ids; replica of draftedBy, may drift
    created_at: datetime = Field(default_factory=utcnow)

    def with_player(self, player_id: str) -> "DraftTeam":
        if player_id in self.players:
            return self
        return self.model_copy(update={"players": [*self.players, player_id]})

    def without_player(self, player_id: str) -> "DraftTeam":
        return self.model_copy(
            update={"players": [pid for pid in self.players if pid != player_id]}
        )


class DraftSettings(BaseModel):
    teams: list[DraftTeam]  # Snapshot taken at setup
    current_pick: int = 0  # Kept for compatibility, picks are not ordered
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class PositionRanking(BaseModel):
    position: Position
    weights: dict[str, float]  # stat name -> weight in [0, 100]
    updated_at: Optional[datetime] = Field(default_factory=utcnow)

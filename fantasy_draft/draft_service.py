# fantasy_draft/draft_service.py
"""
Draft actions on top of the ledger store.

The service keeps an in-memory snapshot of players, teams and settings and
replaces it with a full reload after every mutation. Rosters and summaries are
always computed from each player's `drafted_by` back-reference, never from the
`DraftTeam.players` replica stored alongside the team.
"""
import logging
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel

from fantasy_draft.config import MAX_TEAMS, MIN_TEAMS, POSITION_LIMITS, SQUAD_SIZE
from fantasy_draft.errors import DraftSetupError
from fantasy_draft.ledger import LedgerStore
from fantasy_draft.models.player import POSITIONS, DraftPlayer, Player, Position, player_id_for
from fantasy_draft.models.team import DraftSettings, DraftTeam, PositionRanking, utcnow

logger = logging.getLogger(__name__)


class TeamSummary(BaseModel):
    team_id: str
    team: str  # Team name
    players_count: int
    positions: dict[str, int]  # GK/DEF/MID/FWD -> count
    is_complete: bool  # players_count == SQUAD_SIZE
    over_limit: dict[str, bool]  # advisory, per position


class DraftSummary(BaseModel):
    total_players: int
    drafted_players: int
    available_players: int
    total_teams: int
    current_pick: int
    is_active: bool
    team_summaries: list[TeamSummary]


class DraftService:
    def __init__(self, store: LedgerStore):
        self.store = store
        self.players: list[DraftPlayer] = []
        self.teams: list[DraftTeam] = []
        self.settings: Optional[DraftSettings] = None

    # ----------------------------
    # Loading
    # ----------------------------

    def load_all(self, reconcile: bool = False) -> None:
        if reconcile:
            self.reconcile_rosters()
        self.players = self.store.get_all_players()
        self.teams = self.store.get_all_teams()
        self.settings = self.store.get_settings()

    def initialize(self) -> None:
        """Open the ledger and load whatever is already persisted."""
        self.store.init()
        self.load_all(reconcile=True)

    @property
    def is_setup_complete(self) -> bool:
        return len(self.teams) > 0

    # ----------------------------
    # Setup
    # ----------------------------

    def initialize_players(self, catalog: Iterable[Player]) -> None:
        draft_players = [DraftPlayer.from_player(p) for p in catalog]
        self.store.upsert_players(draft_players)
        logger.info("Initialised %d draft players", len(draft_players))
        self.load_all()

    def create_teams(self, names: Sequence[str]) -> None:
        valid = [name.strip() for name in names if name and name.strip()]
        if len(valid) < MIN_TEAMS:
            raise DraftSetupError(f"At least {MIN_TEAMS} named teams are required, got {len(valid)}")
        if len(valid) > MAX_TEAMS:
            raise DraftSetupError(f"At most {MAX_TEAMS} teams are allowed, got {len(valid)}")

        now = utcnow()
        teams = [
            DraftTeam(id=f"team-{i}", name=name, owner=name, players=[], created_at=now)
            for i, name in enumerate(valid, start=1)
        ]
        settings = DraftSettings(teams=teams, current_pick=0, is_active=True, created_at=now, updated_at=now)

        self.store.upsert_teams(teams)
        self.store.save_settings(settings)
        logger.info("Created %d teams: %s", len(teams), ", ".join(valid))
        self.load_all()

    # ----------------------------
    # Draft actions
    # ----------------------------

    def _find_player(self, player_id: str) -> Optional[DraftPlayer]:
        return next((p for p in self.players if p.id == player_id), None)

    def draft_player(self, player_id: str, team_id: str) -> None:
        """Assign a player to a team, moving them off any other team first.

        All legs commit together; a failure in any leg leaves the ledger as it
        was before the call.
        """
        try:
            with self.store.transaction():
                current = self.store.get_player(player_id)
                if current.drafted_by and current.drafted_by != team_id:
                    old_team = current.drafted_by
                    self.store.undraft(player_id)
                    self.store.remove_player_from_team(old_team, player_id)
                    logger.info("Moving %s from %s to %s", player_id, old_team, team_id)
                self.store.draft(player_id, team_id)
                self.store.add_player_to_team(team_id, player_id)
        finally:
            self.load_all()
        logger.info("Drafted %s to %s", player_id, team_id)

    def undraft_player(self, player_id: str) -> None:
        if self._find_player(player_id) is None:
            return
        try:
            with self.store.transaction():
                current = self.store.get_player(player_id)
                if not current.drafted_by:
                    return
                self.store.undraft(player_id)
                self.store.remove_player_from_team(current.drafted_by, player_id)
        finally:
            self.load_all()
        logger.info("Undrafted %s from %s", player_id, current.drafted_by)

    def assign_player(self, player_id: str, team_id: Optional[str]) -> None:
        if team_id:
            self.draft_player(player_id, team_id)
        else:
            self.undraft_player(player_id)

    def reset_draft(self) -> None:
        self.store.clear_all()
        self.load_all()

    def reconcile_rosters(self) -> int:
        """Rebuild stored team rosters from player back-references.

        Players pointing at a team that no longer exists are undrafted.
        Returns the number of records rewritten.
        """
        repaired = 0
        with self.store.transaction():
            players = self.store.get_all_players()
            teams = {t.id: t for t in self.store.get_all_teams()}

            orphans = [p for p in players if p.drafted_by and p.drafted_by not in teams]
            for p in orphans:
                logger.warning("Player %s points at missing team %s; undrafting", p.id, p.drafted_by)
                self.store.undraft(p.id)
            repaired += len(orphans)

            for team in teams.values():
                expected = [p.id for p in players if p.drafted_by == team.id]
                if set(expected) != set(team.players):
                    logger.warning("Roster replica for %s drifted; rebuilding", team.id)
                    self.store.upsert_teams([team.model_copy(update={"players": expected})])
                    repaired += 1
        return repaired

    # ----------------------------
    # Derived reads
    # ----------------------------

    @property
    def available_players(self) -> list[DraftPlayer]:
        return [p for p in self.players if not p.is_drafted]

    @property
    def drafted_players(self) -> list[DraftPlayer]:
        return [p for p in self.players if p.is_drafted]

    def get_team_roster(self, team_id: str) -> list[DraftPlayer]:
        return [p for p in self.players if p.drafted_by == team_id]

    def get_draft_summary(self) -> DraftSummary:
        team_summaries = []
        for team in self.teams:
            roster = self.get_team_roster(team.id)
            positions = {pos: sum(1 for p in roster if p.position == pos) for pos in POSITIONS}
            team_summaries.append(
                TeamSummary(
                    team_id=team.id,
                    team=team.name,
                    players_count=len(roster),
                    positions=positions,
                    is_complete=len(roster) == SQUAD_SIZE,
                    over_limit={pos: positions[pos] > POSITION_LIMITS[pos] for pos in POSITIONS},
                )
            )

        return DraftSummary(
            total_players=len(self.players),
            drafted_players=len(self.drafted_players),
            available_players=len(self.available_players),
            total_teams=len(self.teams),
            current_pick=self.settings.current_pick if self.settings else 0,
            is_active=self.settings.is_active if self.settings else False,
            team_summaries=team_summaries,
        )

    def annotate_catalog(self, catalog: Iterable[Player]) -> list[dict]:
        """Catalog rows with the ledger's draft flags overlaid."""
        by_id = {p.id: p for p in self.players}
        rows = []
        for player in catalog:
            row = player.to_row()
            match = by_id.get(player_id_for(player.web_name, player.team))
            row["isDrafted"] = match.is_drafted if match else False
            row["draftedBy"] = match.drafted_by if match else None
            rows.append(row)
        return rows

    # ----------------------------
    # Saved ranking weights
    # ----------------------------

    def save_position_ranking(self, position: Position, weights: dict[str, float]) -> None:
        self.store.save_position_ranking(PositionRanking(position=position, weights=weights))

    def get_position_ranking(self, position: Position) -> Optional[PositionRanking]:
        return self.store.get_position_ranking(position)

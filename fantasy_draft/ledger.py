# fantasy_draft/ledger.py
"""
Draft ledger: durable record of players, teams and draft settings (SQLite).

Each collection is a table of JSON documents keyed by id. The players table
also carries the drafted status and owning team as indexed columns so they
can be looked up without decoding every document.

Every public operation runs in its own transaction. Callers that need several
operations to commit together wrap them in `store.transaction()`; the inner
operations then become savepoints of that outer transaction.

Usage:
    store = LedgerStore("draft.db")
    store.init()
    store.upsert_players(players)
    store.draft("Saka-Arsenal", "team-1")
"""
import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Optional

from fantasy_draft.config import SETTINGS_ID
from fantasy_draft.errors import NotFoundError, StorageUnavailableError
from fantasy_draft.models.player import DraftPlayer, Position
from fantasy_draft.models.team import DraftSettings, DraftTeam, PositionRanking

logger = logging.getLogger(__name__)

COLLECTIONS = ("players", "teams", "settings", "position_rankings")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS players (
    id TEXT PRIMARY KEY,
    is_drafted INTEGER NOT NULL DEFAULT 0,
    drafted_by TEXT,
    doc TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_players_is_drafted ON players(is_drafted);
CREATE INDEX IF NOT EXISTS idx_players_drafted_by ON players(drafted_by);

CREATE TABLE IF NOT EXISTS teams (
    id TEXT PRIMARY KEY,
    doc TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS settings (
    id TEXT PRIMARY KEY,
    doc TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS position_rankings (
    id TEXT PRIMARY KEY,
    doc TEXT NOT NULL
);
"""


class LedgerStore:
    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._savepoint_seq = 0

    # ------------------------
    # Connection
    # ------------------------

    def init(self) -> None:
        """Open the database and create collections/indexes if absent.

        Safe to call more than once; later calls are no-ops.
        """
        if self._conn is not None:
            return
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            # Transactions are managed explicitly in transaction()
            conn = sqlite3.connect(self.db_path, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.executescript(_SCHEMA)
        except (sqlite3.Error, OSError) as e:
            raise StorageUnavailableError(
                f"Could not open draft ledger at {self.db_path}: {e}"
            ) from e
        self._conn = conn
        logger.debug("Opened draft ledger at %s", self.db_path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "LedgerStore":
        self.init()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageUnavailableError("Draft ledger not initialised; call init() first")
        return self._conn

    @contextlib.contextmanager
    def transaction(self):
        """
        Scoped transaction yielding a cursor.

        - outermost: BEGIN ... COMMIT, ROLLBACK on error
        - nested: SAVEPOINT ... RELEASE, ROLLBACK TO on error
        """
        conn = self.conn
        cur = conn.cursor()
        nested = conn.in_transaction
        sp_name = None
        try:
            if nested:
                self._savepoint_seq += 1
                sp_name = f"sp_{self._savepoint_seq}"
                cur.execute(f"SAVEPOINT {sp_name};")
            else:
                cur.execute("BEGIN;")

            yield cur

            if sp_name:
                cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            else:
                cur.execute("COMMIT;")
        except Exception:
            if sp_name:
                try:
                    cur.execute(f"ROLLBACK TO SAVEPOINT {sp_name};")
                finally:
                    cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            elif conn.in_transaction:
                cur.execute("ROLLBACK;")
            raise
        finally:
            cur.close()

    # ------------------------
    # Players
    # ------------------------

    @staticmethod
    def _put_player(cur: sqlite3.Cursor, player: DraftPlayer) -> None:
        cur.execute(
            """
            INSERT OR REPLACE INTO players (id, is_drafted, drafted_by, doc)
            VALUES (?, ?, ?, ?);
            """,
            (
                player.id,
                int(player.is_drafted),
                player.drafted_by,
                player.model_dump_json(by_alias=True),
            ),
        )

    @staticmethod
    def _get_player(cur: sqlite3.Cursor, player_id: str) -> DraftPlayer:
        row = cur.execute("SELECT doc FROM players WHERE id = ?;", (player_id,)).fetchone()
        if row is None:
            raise NotFoundError("players", player_id)
        return DraftPlayer.model_validate_json(row["doc"])

    def upsert_players(self, players: Iterable[DraftPlayer]) -> None:
        """Full-record replace by id."""
        players = list(players)
        with self.transaction() as cur:
            for player in players:
                self._put_player(cur, player)
        logger.debug("Upserted %d players", len(players))

    def get_player(self, player_id: str) -> DraftPlayer:
        with self.transaction() as cur:
            return self._get_player(cur, player_id)

    def get_all_players(self) -> list[DraftPlayer]:
        with self.transaction() as cur:
            rows = cur.execute("SELECT doc FROM players;").fetchall()
        return [DraftPlayer.model_validate_json(r["doc"]) for r in rows]

    def get_by_drafted_status(self, is_drafted: bool) -> list[DraftPlayer]:
        with self.transaction() as cur:
            rows = cur.execute(
                "SELECT doc FROM players WHERE is_drafted = ?;", (int(is_drafted),)
            ).fetchall()
        return [DraftPlayer.model_validate_json(r["doc"]) for r in rows]

    def get_players_by_team(self, team_id: str) -> list[DraftPlayer]:
        with self.transaction() as cur:
            rows = cur.execute(
                "SELECT doc FROM players WHERE drafted_by = ?;", (team_id,)
            ).fetchall()
        return [DraftPlayer.model_validate_json(r["doc"]) for r in rows]

    def draft(self, player_id: str, team_id: str) -> None:
        """Mark a player as drafted by a team.

        Does not check whether the player is already drafted elsewhere.
        """
        with self.transaction() as cur:
            player = self._get_player(cur, player_id)
            self._put_player(cur, player.drafted(team_id))
        logger.debug("Ledger: %s drafted by %s", player_id, team_id)

    def undraft(self, player_id: str) -> None:
        with self.transaction() as cur:
            player = self._get_player(cur, player_id)
            self._put_player(cur, player.undrafted())
        logger.debug("Ledger: %s undrafted", player_id)

    # ------------------------
    # Teams
    # ------------------------

    @staticmethod
    def _put_team(cur: sqlite3.Cursor, team: DraftTeam) -> None:
        cur.execute(
            "INSERT OR REPLACE INTO teams (id, doc) VALUES (?, ?);",
            (team.id, team.model_dump_json()),
        )

    @staticmethod
    def _get_team(cur: sqlite3.Cursor, team_id: str) -> DraftTeam:
        row = cur.execute("SELECT doc FROM teams WHERE id = ?;", (team_id,)).fetchone()
        if row is None:
            raise NotFoundError("teams", team_id)
        return DraftTeam.model_validate_json(row["doc"])

    def upsert_teams(self, teams: Iterable[DraftTeam]) -> None:
        teams = list(teams)
        with self.transaction() as cur:
            for team in teams:
                self._put_team(cur, team)
        logger.debug("Upserted %d teams", len(teams))

    def get_team(self, team_id: str) -> DraftTeam:
        with self.transaction() as cur:
            return self._get_team(cur, team_id)

    def get_all_teams(self) -> list[DraftTeam]:
        with self.transaction() as cur:
            rows = cur.execute("SELECT doc FROM teams;").fetchall()
        return [DraftTeam.model_validate_json(r["doc"]) for r in rows]

    def add_player_to_team(self, team_id: str, player_id: str) -> None:
        with self.transaction() as cur:
            team = self._get_team(cur, team_id)
            self._put_team(cur, team.with_player(player_id))

    def remove_player_from_team(self, team_id: str, player_id: str) -> None:
        with self.transaction() as cur:
            team = self._get_team(cur, team_id)
            self._put_team(cur, team.without_player(player_id))

    # ------------------------
    # Settings / rankings
    # ------------------------

    def save_settings(self, settings: DraftSettings) -> None:
        with self.transaction() as cur:
            cur.execute(
                "INSERT OR REPLACE INTO settings (id, doc) VALUES (?, ?);",
                (SETTINGS_ID, settings.model_dump_json()),
            )

    def get_settings(self) -> Optional[DraftSettings]:
        with self.transaction() as cur:
            row = cur.execute(
                "SELECT doc FROM settings WHERE id = ?;", (SETTINGS_ID,)
            ).fetchone()
        if row is None:
            return None
        return DraftSettings.model_validate_json(row["doc"])

    def save_position_ranking(self, ranking: PositionRanking) -> None:
        with self.transaction() as cur:
            cur.execute(
                "INSERT OR REPLACE INTO position_rankings (id, doc) VALUES (?, ?);",
                (ranking.position, ranking.model_dump_json()),
            )

    def get_position_ranking(self, position: Position) -> Optional[PositionRanking]:
        with self.transaction() as cur:
            row = cur.execute(
                "SELECT doc FROM position_rankings WHERE id = ?;", (position,)
            ).fetchone()
        if row is None:
            return None
        return PositionRanking.model_validate_json(row["doc"])

    # ------------------------
    # Reset
    # ------------------------

    def clear_all(self) -> None:
        """Wipe every collection."""
        with self.transaction() as cur:
            for table in COLLECTIONS:
                cur.execute(f"DELETE FROM {table};")
        logger.info("Cleared all draft ledger collections")

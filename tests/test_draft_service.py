import pytest

from conftest import make_player
from fantasy_draft.draft_service import DraftService
from fantasy_draft.errors import DraftSetupError, NotFoundError


def roster_ids(service, team_id):
    return {p.id for p in service.get_team_roster(team_id)}


def test_initialize_players_wraps_catalog(service, catalog):
    assert len(service.players) == len(catalog)
    assert all(not p.is_drafted and p.drafted_by is None for p in service.players)
    assert {p.id for p in service.players} >= {"Saka-Arsenal", "Haaland-Man City"}


def test_create_teams(service):
    assert [(t.id, t.name, t.owner) for t in sorted(service.teams, key=lambda t: t.id)] == [
        ("team-1", "Alice", "Alice"),
        ("team-2", "Bob", "Bob"),
    ]
    assert service.settings.is_active is True
    assert [t.name for t in service.settings.teams] == ["Alice", "Bob"]
    assert service.is_setup_complete


def test_create_teams_skips_blank_names(store):
    service = DraftService(store)
    service.initialize()
    service.create_teams(["  Alice ", "", "   ", "Bob", "Carol"])
    assert sorted(t.name for t in service.teams) == ["Alice", "Bob", "Carol"]
    assert {t.id for t in service.teams} == {"team-1", "team-2", "team-3"}


@pytest.mark.parametrize("names", [[], ["Alice"], ["Alice", " ", ""], [f"T{i}" for i in range(13)]])
def test_create_teams_rejects_bad_team_count(store, names):
    service = DraftService(store)
    service.initialize()
    with pytest.raises(DraftSetupError):
        service.create_teams(names)
    assert service.teams == []


def test_draft_then_undraft(service):
    service.draft_player("Saka-Arsenal", "team-1")
    assert roster_ids(service, "team-1") == {"Saka-Arsenal"}

    service.undraft_player("Saka-Arsenal")

    saka = next(p for p in service.players if p.id == "Saka-Arsenal")
    assert saka.is_drafted is False
    assert saka.drafted_by is None
    assert "Saka-Arsenal" not in roster_ids(service, "team-1")
    assert service.store.get_team("team-1").players == []


def test_undraft_of_available_player_is_noop(service):
    service.undraft_player("Saka-Arsenal")
    service.undraft_player("Nobody-Arsenal")
    assert service.drafted_players == []


def test_reassignment_moves_player(service):
    service.draft_player("Salah-Liverpool", "team-1")
    service.draft_player("Salah-Liverpool", "team-2")

    salah = next(p for p in service.players if p.id == "Salah-Liverpool")
    assert salah.drafted_by == "team-2"
    assert "Salah-Liverpool" not in roster_ids(service, "team-1")
    assert "Salah-Liverpool" in roster_ids(service, "team-2")
    assert service.store.get_team("team-1").players == []
    assert service.store.get_team("team-2").players == ["Salah-Liverpool"]


def test_redraft_to_same_team_keeps_single_entry(service):
    service.draft_player("Saka-Arsenal", "team-1")
    service.draft_player("Saka-Arsenal", "team-1")
    assert service.store.get_team("team-1").players == ["Saka-Arsenal"]


def test_failed_reassignment_leaves_ledger_unchanged(service):
    service.draft_player("Saka-Arsenal", "team-1")

    with pytest.raises(NotFoundError):
        service.draft_player("Saka-Arsenal", "team-9")

    saka = service.store.get_player("Saka-Arsenal")
    assert saka.drafted_by == "team-1"
    assert roster_ids(service, "team-1") == {"Saka-Arsenal"}
    assert service.store.get_team("team-1").players == ["Saka-Arsenal"]


def test_draft_unknown_player_propagates_not_found(service):
    with pytest.raises(NotFoundError):
        service.draft_player("Nobody-Arsenal", "team-1")
    assert service.store.get_team("team-1").players == []


def test_roster_ignores_corrupted_team_replica(service):
    service.draft_player("Saka-Arsenal", "team-1")
    service.draft_player("Haaland-Man City", "team-2")

    # Corrupt the stored replica directly
    team1 = service.store.get_team("team-1")
    service.store.upsert_teams([team1.model_copy(update={"players": ["Haaland-Man City", "Ghost-Nowhere"]})])
    service.load_all()

    assert roster_ids(service, "team-1") == {"Saka-Arsenal"}
    assert roster_ids(service, "team-2") == {"Haaland-Man City"}


def test_reconcile_rebuilds_replica_and_orphans(service):
    service.draft_player("Saka-Arsenal", "team-1")
    team1 = service.store.get_team("team-1")
    service.store.upsert_teams([team1.model_copy(update={"players": ["Ghost-Nowhere"]})])
    service.store.draft("Salah-Liverpool", "team-7")  # team does not exist

    repaired = service.reconcile_rosters()
    service.load_all()

    assert repaired == 2
    assert service.store.get_team("team-1").players == ["Saka-Arsenal"]
    assert service.store.get_player("Salah-Liverpool").is_drafted is False
    assert service.reconcile_rosters() == 0


def test_available_and_drafted_partition(service):
    service.draft_player("Saka-Arsenal", "team-1")
    service.draft_player("Raya-Arsenal", "team-2")

    assert {p.id for p in service.drafted_players} == {"Saka-Arsenal", "Raya-Arsenal"}
    assert len(service.available_players) == len(service.players) - 2


def test_draft_summary(service):
    service.draft_player("Saka-Arsenal", "team-1")
    service.draft_player("Salah-Liverpool", "team-1")
    service.draft_player("Raya-Arsenal", "team-2")

    summary = service.get_draft_summary()
    assert summary.total_players == 5
    assert summary.drafted_players == 3
    assert summary.available_players == 2
    assert summary.total_teams == 2
    assert summary.is_active is True

    by_team = {ts.team_id: ts for ts in summary.team_summaries}
    assert by_team["team-1"].players_count == 2
    assert by_team["team-1"].positions == {"GK": 0, "DEF": 0, "MID": 2, "FWD": 0}
    assert by_team["team-2"].positions["GK"] == 1
    assert not by_team["team-1"].is_complete
    assert not any(by_team["team-1"].over_limit.values())


def test_position_limits_are_advisory(store):
    service = DraftService(store)
    service.initialize()
    service.initialize_players([make_player(f"Keeper{i}", position="GK") for i in range(3)])
    service.create_teams(["Alice", "Bob"])

    for i in range(3):
        service.draft_player(f"Keeper{i}-Arsenal", "team-1")

    team1 = next(ts for ts in service.get_draft_summary().team_summaries if ts.team_id == "team-1")
    assert team1.positions["GK"] == 3
    assert team1.over_limit["GK"] is True


def test_reset_then_setup_again(service, catalog):
    service.draft_player("Saka-Arsenal", "team-1")

    service.reset_draft()
    assert service.store.get_all_players() == []
    assert service.store.get_all_teams() == []
    assert service.players == [] and service.teams == [] and service.settings is None
    assert not service.is_setup_complete

    service.initialize_players(catalog)
    service.create_teams(["Carol", "Dave"])
    assert len(service.players) == len(catalog)
    assert all(not p.is_drafted for p in service.players)
    service.draft_player("Saka-Arsenal", "team-2")
    assert roster_ids(service, "team-2") == {"Saka-Arsenal"}


def test_state_reloads_from_store(service, store):
    service.draft_player("Saka-Arsenal", "team-1")

    other = DraftService(store)
    other.initialize()
    assert roster_ids(other, "team-1") == {"Saka-Arsenal"}


def test_assign_player(service):
    service.assign_player("Saka-Arsenal", "team-1")
    assert roster_ids(service, "team-1") == {"Saka-Arsenal"}
    service.assign_player("Saka-Arsenal", None)
    assert roster_ids(service, "team-1") == set()


def test_annotate_catalog(service, catalog):
    service.draft_player("Saka-Arsenal", "team-2")
    rows = service.annotate_catalog(catalog + [make_player("Newcomer")])

    by_name = {r["web_name"]: r for r in rows}
    assert by_name["Saka"]["isDrafted"] is True
    assert by_name["Saka"]["draftedBy"] == "team-2"
    assert by_name["Salah"]["isDrafted"] is False
    assert by_name["Newcomer"]["draftedBy"] is None
    assert by_name["Saka"]["goals_scored"] == 12


def test_saved_position_ranking(service):
    service.save_position_ranking("FWD", {"goals_scored": 70, "assists": 30})
    assert service.get_position_ranking("FWD").weights == {"goals_scored": 70, "assists": 30}


def test_reassignment_uses_ledger_state_not_stale_snapshot(service, store):
    stale = DraftService(store)
    stale.initialize()

    service.draft_player("Saka-Arsenal", "team-1")
    stale.draft_player("Saka-Arsenal", "team-2")

    assert store.get_player("Saka-Arsenal").drafted_by == "team-2"
    assert store.get_team("team-1").players == []
    assert store.get_team("team-2").players == ["Saka-Arsenal"]


def test_undraft_uses_ledger_state_not_stale_snapshot(service, store):
    stale = DraftService(store)
    stale.initialize()

    service.draft_player("Saka-Arsenal", "team-1")
    stale.undraft_player("Saka-Arsenal")

    assert store.get_player("Saka-Arsenal").is_drafted is False
    assert store.get_team("team-1").players == []

import pytest

from fantasy_draft.draft_service import DraftService
from fantasy_draft.ledger import LedgerStore
from fantasy_draft.models.player import Player


def make_player(web_name, team="Arsenal", position="MID", **stats):
    fields = {
        "first_name": web_name,
        "second_name": web_name,
        "web_name": web_name,
        "team": team,
        "now_cost": 55,
        "total_points": 10,
        "points_per_game": "4.0",
        "image": f"https://resources.premierleague.com/p/{web_name}.png",
        "position": position,
    }
    fields.update(stats)
    return Player(**fields)


@pytest.fixture
def catalog():
    return [
        make_player("Raya", "Arsenal", "GK", goals_scored=0, assists=0),
        make_player("Saliba", "Arsenal", "DEF", goals_scored=2, assists=1),
        make_player("Saka", "Arsenal", "MID", goals_scored=12, assists=9),
        make_player("Salah", "Liverpool", "MID", goals_scored=20, assists=11),
        make_player("Haaland", "Man City", "FWD", goals_scored=25, assists=4),
    ]


@pytest.fixture
def store(tmp_path):
    store = LedgerStore(tmp_path / "draft.db")
    store.init()
    yield store
    store.close()


@pytest.fixture
def service(store, catalog):
    service = DraftService(store)
    service.initialize()
    service.initialize_players(catalog)
    service.create_teams(["Alice", "Bob"])
    return service

import pandas as pd

from fantasy_draft.export import export_csv, format_column_header, save_csv


def test_format_column_header():
    assert format_column_header("points_per_game") == "Points Per Game"
    assert format_column_header("web_name") == "Web Name"
    assert format_column_header("ICT_index") == "Ict Index"
    assert format_column_header("rank_score") == "Rank Score"


def test_export_csv_header_and_rows():
    filtered = pd.DataFrame(
        [
            {"web_name": "Saka", "team": "Arsenal", "total_points": 150, "news": None},
            {"web_name": "Salah", "team": "Liverpool", "total_points": 200, "news": None},
        ],
        dtype=object,
    )
    text = export_csv(filtered, ["web_name", "total_points", "news"])
    assert text.split("\n") == [
        "Web Name,Total Points,News",
        "Saka,150,",
        "Salah,200,",
    ]


def test_export_csv_quotes_only_when_needed():
    filtered = pd.DataFrame(
        [{"web_name": 'Bruno "B" F', "news": "Knee injury, 75%", "note": "line1\nline2", "team": "Man Utd"}],
        dtype=object,
    )
    text = export_csv(filtered, ["web_name", "news", "note", "team"])
    assert text == 'Web Name,News,Note,Team\n"Bruno ""B"" F","Knee injury, 75%","line1\nline2",Man Utd'


def test_export_csv_missing_column_is_empty():
    filtered = pd.DataFrame([{"web_name": "Saka"}], dtype=object)
    assert export_csv(filtered, ["web_name", "rank_score"]) == "Web Name,Rank Score\nSaka,"


def test_save_csv(tmp_path):
    filtered = pd.DataFrame([{"web_name": "Saka"}], dtype=object)
    path = save_csv(filtered, ["web_name"], tmp_path / "out.csv")
    assert path.read_text(encoding="utf-8") == "Web Name\nSaka"


def test_export_csv_writes_lowercase_booleans():
    filtered = pd.DataFrame(
        [{"web_name": "Saka", "isDrafted": True}, {"web_name": "Salah", "isDrafted": False}],
        dtype=object,
    )
    assert export_csv(filtered, ["web_name", "isDrafted"]).split("\n") == [
        "Web Name,Isdrafted",
        "Saka,true",
        "Salah,false",
    ]

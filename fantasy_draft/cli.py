# fantasy_draft/cli.py
import argparse
import locale
import logging
import sys
from pathlib import Path

import pandas as pd

from fantasy_draft.api_client import fetch_bootstrap_static, fetch_image
from fantasy_draft.catalog import catalog_from_bootstrap, load_position_files
from fantasy_draft.config import CATALOG_DIR, DB_PATH, MAX_TEAMS, POSITION_LIMITS, SQUAD_SIZE
from fantasy_draft.draft_service import DraftService
from fantasy_draft.errors import DraftSetupError, LedgerError
from fantasy_draft.export import format_column_header, save_csv
from fantasy_draft.ledger import LedgerStore
from fantasy_draft.query import Predicate, TableState

logger = logging.getLogger("fantasy_draft")


# ----------------------------
# Helpers
# ----------------------------
def load_catalog(args):
    if args.bootstrap:
        return catalog_from_bootstrap(fetch_bootstrap_static(force_refresh=args.refresh))
    return load_position_files(args.catalog_dir)


def ask_team_names():
    import questionary

    names = []
    while len(names) < MAX_TEAMS:
        name = questionary.text(f"Team {len(names) + 1} name (blank to finish):").ask()
        if not name or not name.strip():
            break
        names.append(name.strip())
    return names


def parse_predicate(text):
    """'goals_scored:gte:10' -> Predicate"""
    column, operator, value = (text.split(":", 2) + ["", ""])[:3]
    if operator not in ("gte", "lte"):
        raise argparse.ArgumentTypeError(f"Operator must be gte or lte, got {operator!r}")
    return Predicate(column=column, operator=operator, value=value)


def parse_weight(text):
    column, _, weight = text.partition("=")
    return column, weight


def build_table_state(args):
    state = TableState()
    state.set_position(args.position)
    state.set_team(args.team)
    if args.sort:
        state.set_sort(args.sort, "desc" if args.desc else "asc")
    for predicate in args.filter or []:
        state.controls.predicates.append(predicate)
    state.set_logic(args.logic)
    for column, weight in args.weight or []:
        state.set_weight(column, weight)
    state.set_page(args.page)
    return state


def query(service, args):
    state = build_table_state(args)
    rows = [p.to_row() for p in (service.available_players if args.available else service.players)]
    result = state.run(rows)

    if state.controls.weights and not state.apply_ranking():
        print(f"⚠️ Ranking weights add up to {state.total_weight:g}, not 100; rank_score hidden (add --show rank_score)")
    if args.all_columns:
        state.show_all_columns(result.columns)
    for column in args.show or []:
        state.visibility[column] = True
    for column in args.hide or []:
        state.visibility[column] = False
    return state, result


# ----------------------------
# Commands
# ----------------------------
def cmd_setup(service, args):
    if service.is_setup_complete:
        print("⚠️ Draft already set up. Run `reset` first to start over.")
        return 1

    if not service.players:
        service.initialize_players(load_catalog(args))

    names = args.team_name or ask_team_names()
    service.create_teams(names)
    print(f"✅ Draft ready: {len(service.players)} players, {len(service.teams)} teams")
    for team in service.teams:
        print(f"  {team.id}: {team.name}")
    return 0


def cmd_draft(service, args):
    service.draft_player(args.player_id, args.team_id)
    print(f"✅ {args.player_id} -> {args.team_id}")
    return 0


def cmd_undraft(service, args):
    service.undraft_player(args.player_id)
    print(f"✅ {args.player_id} released")
    return 0


def cmd_pick(service, args):
    from InquirerPy import inquirer
    import questionary

    if not service.is_setup_complete:
        print("⚠️ No teams yet. Run `setup` first.")
        return 1

    by_label = {
        f"{p.web_name} ({p.team}, {p.position})"
        + (f" [{p.drafted_by}]" if p.drafted_by else ""): p.id
        for p in sorted(service.players, key=lambda p: p.second_name)
    }
    label = inquirer.fuzzy(message="Select a player:", choices=list(by_label)).execute()
    team_choices = [questionary.Choice(t.name, value=t.id) for t in service.teams]
    team_choices.append(questionary.Choice("(no team)", value=None))
    team_id = questionary.select("Assign to:", choices=team_choices).ask()

    service.assign_player(by_label[label], team_id)
    print(f"✅ {label} -> {team_id or 'released'}")
    return 0


def cmd_roster(service, args):
    roster = service.get_team_roster(args.team_id)
    if not roster:
        print("No players drafted yet")
        return 0
    df = pd.DataFrame([p.to_row() for p in roster])
    print(df[["id", "web_name", "team", "position", "now_cost", "total_points"]].sort_values("position").to_string(index=False))
    return 0


def cmd_summary(service, args):
    summary = service.get_draft_summary()
    print(
        f"Players: {summary.total_players} total, {summary.drafted_players} drafted, "
        f"{summary.available_players} available. Teams: {summary.total_teams}"
    )
    for ts in summary.team_summaries:
        marker = "✅" if ts.is_complete else "  "
        counts = "  ".join(
            f"{pos} {ts.positions[pos]}/{limit}" + ("!" if ts.over_limit[pos] else "")
            for pos, limit in POSITION_LIMITS.items()
        )
        print(f"{marker} {ts.team:<20} {ts.players_count:>2}/{SQUAD_SIZE}  {counts}")
    return 0


def cmd_reset(service, args):
    if not args.yes:
        import questionary

        if not questionary.confirm("Reset the draft? All teams and picks will be lost.", default=False).ask():
            return 0
    service.reset_draft()
    print("✅ Draft reset. Run `setup` to start again.")
    return 0


def cmd_browse(service, args):
    state, result = query(service, args)
    columns = state.visible_columns(result.columns)
    page = result.frame[[c for c in columns if c in result.frame.columns]]
    page = page.rename(columns=format_column_header)
    print(page.to_string(index=False))
    shown = 0 if result.total_count == 0 else result.start_index + 1
    print(f"\nShowing {shown}-{result.end_index} of {result.total_count} (page {result.page}/{result.total_pages})")
    if args.numeric:
        print("Numeric columns: " + ", ".join(result.numeric_columns))
    return 0


def cmd_export(service, args):
    state, result = query(service, args)
    path = save_csv(result.filtered, state.visible_columns(result.columns), args.output)
    print(f"✅ Exported {result.total_count} players to {path}")
    return 0


def cmd_image(service, args):
    response = fetch_image(args.url)
    if not response.ok:
        print(f"⚠️ {response.status}: {response.body.decode(errors='replace')}")
        return 1
    Path(args.output).write_bytes(response.body)
    print(f"✅ Saved {len(response.body)} bytes ({response.headers['Content-Type']}) to {args.output}")
    return 0


# ----------------------------
# Main Execution
# ----------------------------
def add_query_arguments(parser):
    parser.add_argument("--position", default="ALL", choices=["ALL", "GK", "DEF", "MID", "FWD"])
    parser.add_argument("--team", default="ALL", help="Club name to filter on")
    parser.add_argument("--filter", type=parse_predicate, action="append", help="column:gte|lte:value (max 5)")
    parser.add_argument("--logic", default="AND", choices=["AND", "OR"])
    parser.add_argument("--sort", help="Column to sort by")
    parser.add_argument("--desc", action="store_true", help="Sort descending")
    parser.add_argument("--weight", type=parse_weight, action="append", help="column=weight for rank_score")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--available", action="store_true", help="Only undrafted players")
    parser.add_argument("--all-columns", action="store_true")
    parser.add_argument("--show", action="append", help="Extra column to show")
    parser.add_argument("--hide", action="append", help="Column to hide")


def build_parser():
    parser = argparse.ArgumentParser(prog="fantasy-draft")
    parser.add_argument("--db", type=Path, default=DB_PATH, help="Draft ledger database")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("setup", help="Load players and create teams")
    p.add_argument("--team-name", action="append", help="Team name (repeat 2-12 times); prompts if omitted")
    p.add_argument("--catalog-dir", type=Path, default=CATALOG_DIR)
    p.add_argument("--bootstrap", action="store_true", help="Build the catalog from bootstrap-static")
    p.add_argument("--refresh", action="store_true", help="Re-download bootstrap-static")
    p.set_defaults(func=cmd_setup)

    p = sub.add_parser("draft", help="Assign a player to a team")
    p.add_argument("player_id")
    p.add_argument("team_id")
    p.set_defaults(func=cmd_draft)

    p = sub.add_parser("undraft", help="Release a player")
    p.add_argument("player_id")
    p.set_defaults(func=cmd_undraft)

    p = sub.add_parser("pick", help="Interactively assign a player")
    p.set_defaults(func=cmd_pick)

    p = sub.add_parser("roster", help="Show a team's players")
    p.add_argument("team_id")
    p.set_defaults(func=cmd_roster)

    p = sub.add_parser("summary", help="Draft overview per team")
    p.set_defaults(func=cmd_summary)

    p = sub.add_parser("reset", help="Wipe all draft data")
    p.add_argument("--yes", action="store_true", help="Skip confirmation")
    p.set_defaults(func=cmd_reset)

    p = sub.add_parser("browse", help="Filter, rank and page through players")
    add_query_arguments(p)
    p.add_argument("--numeric", action="store_true", help="List rankable/filterable columns")
    p.set_defaults(func=cmd_browse)

    p = sub.add_parser("export", help="Write the filtered players to CSV")
    add_query_arguments(p)
    p.add_argument("-o", "--output", default="players-export.csv")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("image", help="Download a player photo from the allowed host")
    p.add_argument("url")
    p.add_argument("-o", "--output", required=True)
    p.set_defaults(func=cmd_image)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        logger.debug("Unsupported locale; sorting text by code point")

    store = LedgerStore(args.db)
    try:
        service = DraftService(store)
        service.initialize()
        return args.func(service, args)
    except (LedgerError, DraftSetupError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())

"""Command line front end for managing tournament brackets."""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from .config import AppConfig, read_config
from .models import Tournament
from .registry import parse_entry_lines
from .repository import TournamentRepository
from .service import BracketService
from .storage import build_store
from .validation import BracketError, NoEntrantsFoundError

MUTATING_COMMANDS = frozenset(
    {"create", "add", "winner", "advance", "delete", "save"}
)


def _add_entry_sources(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--entry",
        action="append",
        dest="entries",
        default=[],
        help="Entrant name (repeat for multiple)",
    )
    parser.add_argument(
        "--entries-file",
        type=Path,
        help="Plain text file with one entrant name per line",
    )
    parser.add_argument(
        "--import",
        type=Path,
        dest="import_file",
        help="CSV or XLSX file with a 'Players' column",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bracket-maker",
        description="Create and run single-elimination tournament brackets",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Local JSON store (overrides BRACKET_STORE_PATH)",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip cloud stores and only use the local JSON file",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List tournaments")
    list_cmd.add_argument(
        "--deleted", action="store_true", help="List deleted tournaments instead"
    )

    create = commands.add_parser("create", help="Create a tournament")
    create.add_argument("name", help="Tournament name")
    _add_entry_sources(create)
    create.add_argument(
        "--seed",
        action="append",
        dest="seeds",
        default=None,
        help="Seed name in priority order (2-4; defaults to the first four entries)",
    )

    add = commands.add_parser("add", help="Add late entries to a Round 1 bracket")
    add.add_argument("tournament", help="Tournament id or name")
    _add_entry_sources(add)

    winner = commands.add_parser("winner", help="Record or clear a match winner")
    winner.add_argument("tournament", help="Tournament id or name")
    winner.add_argument("match", help="Match id or label such as R1M2")
    winner.add_argument(
        "winner", nargs="?", default=None, help="Winner name or id (omit to clear)"
    )

    advance = commands.add_parser("advance", help="Generate the next round")
    advance.add_argument("tournament", help="Tournament id or name")

    delete = commands.add_parser("delete", help="Move a tournament to deleted")
    delete.add_argument("tournament", help="Tournament id or name")
    delete.add_argument(
        "--yes", action="store_true", help="Confirm the deletion without prompting"
    )

    show = commands.add_parser("show", help="Print the bracket of a tournament")
    show.add_argument("tournament", help="Tournament id or name")

    standings = commands.add_parser("standings", help="Print standings")
    standings.add_argument(
        "tournament", nargs="?", default=None, help="Tournament id or name"
    )

    commands.add_parser("winners", help="List champions of completed tournaments")
    commands.add_parser(
        "save", help="Write the collection again, retrying an unsynced cloud save"
    )

    export = commands.add_parser("export", help="Export standings as CSV")
    export.add_argument("tournament", help="Tournament id or name")
    export.add_argument("-o", "--output", type=Path, help="Write to this file")
    return parser


def collect_entries(service: BracketService, args: argparse.Namespace) -> list[str]:
    names: list[str] = list(args.entries)
    if args.entries_file is not None:
        try:
            text = args.entries_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise NoEntrantsFoundError(
                f"Could not read {args.entries_file}: {exc}"
            ) from exc
        names.extend(parse_entry_lines(text))
    if args.import_file is not None:
        names.extend(service.import_entries(args.import_file))
    return names


def _summary(tournament: Tournament) -> str:
    status = tournament.status.value
    if tournament.is_completed:
        status = f"{status}, champion {tournament.entrant_name(tournament.champion)}"
    return (
        f"{tournament.id}  {tournament.name}  "
        f"({len(tournament.entrants)} entrants, round {tournament.max_round()}, "
        f"{status})"
    )


def run_command(service: BracketService, args: argparse.Namespace) -> None:
    repository = service.repository
    if args.command == "list":
        entries = repository.deleted if args.deleted else repository.tournaments
        if not entries:
            print("No tournaments.")
        for tournament in entries:
            print(_summary(tournament))
    elif args.command == "create":
        tournament = service.create_tournament(
            args.name, collect_entries(service, args), args.seeds
        )
        print(f"Created {_summary(tournament)}")
        print(service.bracket_text(tournament.id))
    elif args.command == "add":
        added = service.add_entries(args.tournament, collect_entries(service, args))
        print(f"Added {len(added)} entries")
        print(service.bracket_text(args.tournament))
    elif args.command == "winner":
        service.record_winner(args.tournament, args.match, args.winner)
        print(service.bracket_text(args.tournament))
    elif args.command == "advance":
        tournament = service.advance_round(args.tournament)
        if tournament.is_completed:
            print(f"Champion: {tournament.entrant_name(tournament.champion)}")
        else:
            print(service.bracket_text(tournament.id))
    elif args.command == "delete":
        if not args.yes:
            raise BracketError("Pass --yes to confirm the deletion")
        deleted = service.delete_tournament(args.tournament)
        print(f"Moved {deleted.name} to deleted")
    elif args.command == "show":
        print(service.bracket_text(args.tournament))
    elif args.command == "standings":
        keys = (
            [args.tournament]
            if args.tournament
            else [entry.id for entry in repository.tournaments]
        )
        if not keys:
            print("No tournaments yet.")
            return
        print("\n\n".join(service.standings_text(key) for key in keys))
    elif args.command == "winners":
        lines = service.winners()
        print("\n".join(lines) if lines else "No completed tournaments yet.")
    elif args.command == "export":
        content = service.standings_csv(args.tournament)
        if args.output is None:
            sys.stdout.write(content)
        else:
            args.output.write_text(content, encoding="utf-8")
            print(f"Wrote {args.output}")
    elif args.command == "save":
        pending = len(repository.tournaments) + len(repository.deleted)
        print(f"Saving {pending} tournaments")


def build_service(config: AppConfig) -> BracketService:
    repository = TournamentRepository(build_store(config))
    return BracketService(repository, rng=random.Random(config.random_seed))


async def main_async(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = read_config()
    if args.store is not None or args.offline:
        config = replace(
            config,
            store_path=args.store or config.store_path,
            cloud_enabled=config.cloud_enabled and not args.offline,
        )
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    service = build_service(config)
    await service.load()
    try:
        run_command(service, args)
    except BracketError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.command in MUTATING_COMMANDS:
        result = await service.save()
        print(result.message, file=sys.stderr if not result.primary else sys.stdout)
        if args.command == "save" and not result.saved:
            return 1
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    sys.exit(asyncio.run(main_async(argv)))


if __name__ == "__main__":
    main()

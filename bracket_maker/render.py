from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence

from .models import Match, Tournament

_STAGE_LABELS = {
    1: "Finals",
    2: "Semi Finals",
    4: "Quarter Finals",
    8: "Pre quarters",
}


def stage_label(match_count: int) -> str | None:
    return _STAGE_LABELS.get(match_count)


def _real(matches: Iterable[Match]) -> list[Match]:
    return [match for match in matches if match.slot_a or match.slot_b]


def round_title(round_no: int, matches: Sequence[Match]) -> str:
    return stage_label(len(_real(matches))) or f"Round {round_no}"


def _winner_text(tournament: Tournament, match: Match) -> str:
    if match.winner is None:
        return "TBD"
    return tournament.entrant_name(match.winner, empty="TBD")


def render_bracket(tournament: Tournament) -> str:
    lines: list[str] = []
    for round_no, matches in tournament.rounds():
        lines.append(round_title(round_no, matches))
        for index, match in enumerate(matches, start=1):
            side_a = tournament.entrant_name(match.slot_a)
            side_b = tournament.entrant_name(match.slot_b)
            lines.append(f"  [R{round_no}M{index}] {side_a} vs {side_b}")
            if match.is_bye:
                lines.append(f"    -> Advanced: {_winner_text(tournament, match)}")
            else:
                lines.append(f"    -> Winner: {_winner_text(tournament, match)}")
        lines.append("")
    if lines and not lines[-1]:
        lines.pop()
    if tournament.champion:
        lines.append(f"Champion: {tournament.entrant_name(tournament.champion)}")
    return "\n".join(line.rstrip() for line in lines)


def standings_subtitle(tournament: Tournament) -> str:
    if tournament.is_completed:
        champion = tournament.entrant_name(tournament.champion, empty="TBD")
        return f"Completed • Champion: {champion}"
    current = tournament.max_round() or 1
    title = round_title(current, tournament.round_matches(current))
    return f"Active • Current: {title}"


def render_standings(tournament: Tournament) -> str:
    lines = [tournament.name, standings_subtitle(tournament), ""]
    for round_no, matches in tournament.rounds():
        title = round_title(round_no, matches)
        lines.append(title)
        for index, match in enumerate(matches, start=1):
            side_a = tournament.entrant_name(match.slot_a)
            side_b = tournament.entrant_name(match.slot_b)
            result = _winner_text(tournament, match)
            if title == "Finals":
                lines.append(f"  {side_a} vs {side_b} — {result}")
            else:
                lines.append(f"  Match {index}: {side_a} vs {side_b} — {result}")
        lines.append("")
    return "\n".join(lines).rstrip()


def winners_lines(tournaments: Iterable[Tournament]) -> list[str]:
    lines: list[str] = []
    for tournament in tournaments:
        if not tournament.is_completed:
            continue
        champion = tournament.entrant_name(tournament.champion, empty="TBD")
        lines.append(f"{tournament.name}: {champion}")
    return lines


def export_standings_csv(tournament: Tournament) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(
        ["round", "stage", "match", "entrant_a", "entrant_b", "winner", "status"]
    )
    for round_no, matches in tournament.rounds():
        title = round_title(round_no, matches)
        for index, match in enumerate(matches, start=1):
            writer.writerow(
                [
                    round_no,
                    title,
                    index,
                    tournament.entrant_name(match.slot_a, empty=""),
                    tournament.entrant_name(match.slot_b, empty=""),
                    tournament.entrant_name(match.winner, empty=""),
                    match.status.value,
                ]
            )
    return buffer.getvalue()


__all__ = [
    "export_standings_csv",
    "render_bracket",
    "render_standings",
    "round_title",
    "stage_label",
    "standings_subtitle",
    "winners_lines",
]

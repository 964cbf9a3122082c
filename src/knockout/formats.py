"""
Plain-text renderings of tournament state, shared by the chat commands,
the CLI and the HTTP status page.
"""
from typing import Optional, Sequence

from knockout.elimination import round_name_for
from knockout.models import Match, Player, Round, Tournament


def format_match(match: Match) -> str:
    if match.is_bye:
        line = f"- Match {match.id}: {match.player1} advances automatically (bye)"
    else:
        line = f"- Match {match.id}: {match.player1} vs {match.player2}"
        if match.table_id:
            line += f" (Table: {match.table_id})"
    if match.winner and not match.is_bye:
        line += f" (Winner: {match.winner})"
    return line


def format_round(tournament: Tournament, round_index: int) -> str:
    round_ = tournament.rounds[round_index]
    lines = [f"Round {round_index + 1} - {round_name_for(tournament, round_index)}:"]
    lines.extend(format_match(match) for match in round_.matches)
    return "\n".join(lines)


def current_status(tournament: Optional[Tournament]) -> str:
    """Summary of the tournament and its current round."""
    if tournament is None:
        return "No tournament in progress."

    lines = [
        f"Tournament status (ID: {tournament.id}):",
        f"Status: {tournament.status}",
        f"Current round: {tournament.current_round + 1}",
    ]
    if tournament.current is not None:
        lines.append(f"Progress: {summarize_round(tournament.current)}")
    lines.append("")
    if tournament.current is not None:
        lines.append(format_round(tournament, tournament.current_round))
    if tournament.champion:
        lines.append("")
        lines.append(f"Champion: {tournament.champion}")
    return "\n".join(lines)


def format_bracket(tournament: Optional[Tournament]) -> str:
    """Every round played so far, oldest first."""
    if tournament is None:
        return "No tournament in progress."
    sections = [format_round(tournament, index) for index in range(len(tournament.rounds))]
    if tournament.champion:
        sections.append(f"Champion: {tournament.champion}")
    return "\n\n".join(sections)


def format_start_announcement(tournament: Tournament) -> str:
    lines = [f"Tournament ID: {tournament.id}", "", "Players:"]
    lines.extend(f"{i}. {name}" for i, name in enumerate(tournament.players, start=1))
    lines.append("")
    lines.append(format_round(tournament, 0))
    return "\n".join(lines)


def format_players(players: Sequence[Player]) -> str:
    if not players:
        return "No players"
    return "\n".join(f"{i}. {player.username}" for i, player in enumerate(players, start=1))


def format_tables(table_ids: Sequence[str]) -> str:
    if not table_ids:
        return "No tables"
    return "\n".join(f"{i}. {table_id}" for i, table_id in enumerate(table_ids, start=1))


def format_round_advance(tournament: Tournament, previous_round: int) -> Optional[str]:
    """Announcement after a result, or None if the bracket did not move."""
    if tournament.champion:
        return f"Tournament {tournament.id} is complete. Champion: {tournament.champion}"
    if tournament.current_round != previous_round:
        return "Next round is ready!\n" + format_round(tournament, tournament.current_round)
    return None


def summarize_round(round_: Round) -> str:
    done = sum(1 for match in round_.matches if match.is_resolved)
    return f"{done}/{len(round_.matches)} matches decided"

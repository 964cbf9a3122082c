"""
Single elimination bracket generation and management.

Rounds advance behind a barrier: the next round is only paired once every
match of the current round has a winner.
"""
import math
import random
from typing import List, Optional, Sequence

from knockout.allocation import TableAllocator
from knockout.errors import (
    InsufficientPlayers,
    InvalidWinner,
    MatchAlreadyDecided,
    MatchNotFound,
    NoActiveTournament,
    NoTablesAvailable,
    RoundNotResolved,
)
from knockout.models import Match, Round, Tournament, TournamentStatus


def get_round_name(players_in_round: int) -> str:
    """Get the name of a round based on number of bracket slots."""
    if players_in_round == 2:
        return "Final"
    elif players_in_round == 4:
        return "Semifinal"
    elif players_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {players_in_round}"


def calculate_bracket_size(num_players: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_players <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_players))


def calculate_byes(num_players: int) -> int:
    """Calculate number of byes needed."""
    bracket_size = calculate_bracket_size(num_players)
    return bracket_size - num_players


def total_rounds(num_players: int) -> int:
    """Number of rounds needed to produce a champion."""
    if num_players < 2:
        return 0
    return int(math.log2(calculate_bracket_size(num_players)))


def round_name_for(tournament: Tournament, round_index: int) -> str:
    bracket_size = calculate_bracket_size(len(tournament.players))
    return get_round_name(bracket_size >> round_index)


def shuffle_players(names: Sequence[str], rng: Optional[random.Random] = None) -> List[str]:
    """
    Return a uniformly shuffled copy of ``names``.

    Pass a seeded ``random.Random`` to get a reproducible order.
    """
    rng = rng or random.Random()
    shuffled = list(names)
    # Fisher-Yates, walking down from the end
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _next_match_id(tournament: Tournament) -> str:
    match_id = f"M{tournament.next_match_number}"
    tournament.next_match_number += 1
    return match_id


def create_round(tournament: Tournament, entrants: Sequence[str]) -> Round:
    """
    Pair ``entrants`` in order into a new round.

    Two-player matches come first, each on the next table from the
    allocator. The players left over after filling the bracket up to the
    next power of two get a bye: a match with no opponent, no table and the
    player already set as winner.
    """
    if len(entrants) < 2:
        raise InsufficientPlayers(len(entrants))

    num_byes = calculate_byes(len(entrants))
    paired = len(entrants) - num_byes
    allocator = TableAllocator(tournament.tables, tournament.next_table_index)

    matches = []
    for i in range(0, paired, 2):
        matches.append(Match(
            id=_next_match_id(tournament),
            player1=entrants[i],
            player2=entrants[i + 1],
            table_id=allocator.allocate(),
        ))
    for name in entrants[paired:]:
        matches.append(Match(id=_next_match_id(tournament), player1=name, winner=name))

    tournament.next_table_index = allocator.index
    return Round(matches)


def build_bracket(players: Sequence[str], tables: Sequence[str], tournament_id: str = "T1") -> Tournament:
    """
    Build a tournament and its first round.

    ``players`` must already be in seed order (see ``shuffle_players``).
    Nothing is created when validation fails.
    """
    if len(players) < 2:
        raise InsufficientPlayers(len(players))
    if not tables:
        raise NoTablesAvailable()
    # winners are matched case-insensitively, so names must differ the same way
    if len({_normalize(p) for p in players}) != len(players):
        raise ValueError("Player names must be unique ignoring case and surrounding spaces")

    tournament = Tournament(
        id=tournament_id,
        players=list(players),
        tables=list(tables),
        status=TournamentStatus.PENDING,
    )
    tournament.rounds.append(create_round(tournament, tournament.players))
    tournament.current_round = 0
    tournament.status = TournamentStatus.ONGOING
    return tournament


def is_round_resolved(tournament: Tournament) -> bool:
    current = tournament.current
    return current is not None and current.is_resolved


def _link_to_next_round(finished: Round, next_round: Round):
    """Point each finished match at the next-round match its winner plays in."""
    paired = sum(2 for match in next_round.matches if not match.is_bye)
    for index, match in enumerate(finished.matches):
        if index < paired:
            target = next_round.matches[index // 2]
        else:
            target = next_round.matches[paired // 2 + (index - paired)]
        match.next_match_id = target.id


def _progress(tournament: Tournament):
    """Advance past every fully resolved round; mark the tournament complete at the end."""
    while tournament.status == TournamentStatus.ONGOING and is_round_resolved(tournament):
        finished = tournament.current
        winners = finished.winners
        if len(winners) == 1:
            tournament.status = TournamentStatus.COMPLETE
            return
        next_round = create_round(tournament, winners)
        _link_to_next_round(finished, next_round)
        tournament.rounds.append(next_round)
        tournament.current_round += 1


def _require_active(tournament: Optional[Tournament]) -> Tournament:
    if tournament is None or tournament.status != TournamentStatus.ONGOING:
        raise NoActiveTournament()
    return tournament


def advance_round(tournament: Optional[Tournament]) -> Tournament:
    """
    Explicitly move to the next round.

    Raises RoundNotResolved while any current match is still open.
    """
    tournament = _require_active(tournament)
    pending = sum(1 for match in tournament.current.matches if not match.is_resolved)
    if pending:
        raise RoundNotResolved(pending)
    _progress(tournament)
    return tournament


def _normalize(name: Optional[str]) -> str:
    return (name or '').strip().lower()


def record_result(tournament: Optional[Tournament], match_id: str, winner_name: str) -> Tournament:
    """
    Store the winner of one match and advance the bracket if the round is done.

    The winner is matched case-insensitively and ignoring surrounding
    whitespace, but the stored name is the one already on the match.
    State is untouched when an error is raised.
    """
    tournament = _require_active(tournament)

    round_index, match = tournament.find_match(match_id)
    if match is None:
        raise MatchNotFound(match_id)

    wanted = _normalize(winner_name)
    canonical = next((p for p in match.participants if _normalize(p) == wanted), None)
    if canonical is None:
        raise InvalidWinner(winner_name, match.participants)

    if round_index < tournament.current_round:
        if canonical == match.winner:
            return tournament
        raise MatchAlreadyDecided(match.id)

    match.winner = canonical
    _progress(tournament)
    return tournament

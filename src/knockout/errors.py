"""Exceptions raised by the knockout bracket logic."""


class TournamentError(Exception):
    """Base class for every recoverable bracket error.

    The message is meant to be shown to the user as-is.
    """

    pass


class InsufficientPlayers(TournamentError):
    def __init__(self, count: int):
        self.count = count
        super().__init__(f"At least 2 players are needed to start a tournament (got {count}).")


class NoTablesAvailable(TournamentError):
    def __init__(self):
        super().__init__("No tables available.")


class NoActiveTournament(TournamentError):
    def __init__(self):
        super().__init__("No tournament in progress.")


class MatchNotFound(TournamentError):
    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found.")


class InvalidWinner(TournamentError):
    def __init__(self, winner: str, participants):
        self.winner = winner
        self.participants = list(participants)
        super().__init__(
            f"Winner must be one of the match players: {' or '.join(self.participants)} (got {winner!r})."
        )


class RoundNotResolved(TournamentError):
    def __init__(self, pending: int):
        self.pending = pending
        super().__init__(f"The current round still has {pending} unfinished match(es).")


class MatchAlreadyDecided(TournamentError):
    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match {match_id} belongs to a finished round and can no longer change.")

"""
Data models for a single elimination tournament: players, tables, matches,
rounds and the tournament itself.
"""
from typing import Dict, List, Optional


def _blank_to_none(value):
    # Older stores wrote '' for unset fields; treat both the same.
    if value is None or value == '':
        return None
    return value


class TournamentStatus:
    PENDING = 'pending'
    ONGOING = 'ongoing'
    COMPLETE = 'complete'

    ORDER = (PENDING, ONGOING, COMPLETE)


class Player:
    def __init__(self, id, username):
        self.id = id
        self.username = username

    def to_dict(self) -> Dict:
        return {'id': self.id, 'username': self.username}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Player':
        return cls(id=data['id'], username=data['username'])

    def __eq__(self, other):
        return isinstance(other, Player) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Player(id={self.id}, username={self.username})"


class Table:
    def __init__(self, id, available=True):
        self.id = id
        self.available = available

    def to_dict(self) -> Dict:
        return {'id': self.id, 'available': self.available}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Table':
        return cls(id=data['id'], available=data.get('available', True))

    def __eq__(self, other):
        return isinstance(other, Table) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Table(id={self.id}, available={self.available})"


class Match:
    def __init__(self, id, player1, player2=None, winner=None, table_id=None, next_match_id=None):
        self.id = id
        self.player1 = player1
        self.player2 = player2  # None means a bye
        self.winner = winner
        self.table_id = table_id
        self.next_match_id = next_match_id

    @property
    def is_bye(self) -> bool:
        return self.player2 is None

    @property
    def is_resolved(self) -> bool:
        return self.winner is not None

    @property
    def participants(self) -> List[str]:
        if self.is_bye:
            return [self.player1]
        return [self.player1, self.player2]

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'player1': self.player1,
            'player2': self.player2,
            'winner': self.winner,
            'table_id': self.table_id,
            'next_match_id': self.next_match_id,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            id=data['id'],
            player1=data['player1'],
            player2=_blank_to_none(data.get('player2')),
            winner=_blank_to_none(data.get('winner')),
            table_id=_blank_to_none(data.get('table_id')),
            next_match_id=_blank_to_none(data.get('next_match_id')),
        )

    def __eq__(self, other):
        return isinstance(other, Match) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Match(id={self.id}, player1={self.player1}, player2={self.player2}, "
                f"winner={self.winner}, table_id={self.table_id})")


class Round:
    def __init__(self, matches=None):
        self.matches = matches if matches else []

    @property
    def is_resolved(self) -> bool:
        return all(match.is_resolved for match in self.matches)

    @property
    def winners(self) -> List[str]:
        """Winners in match order. Only meaningful once the round is resolved."""
        return [match.winner for match in self.matches if match.is_resolved]

    @property
    def entrants(self) -> int:
        return sum(len(match.participants) for match in self.matches)

    def to_dict(self) -> Dict:
        return {'matches': [match.to_dict() for match in self.matches]}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Round':
        return cls(matches=[Match.from_dict(m) for m in (data.get('matches') or [])])

    def __eq__(self, other):
        return isinstance(other, Round) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Round(matches={self.matches})"


class Tournament:
    def __init__(self, id, players=None, tables=None, status=TournamentStatus.PENDING,
                 rounds=None, current_round=0, next_table_index=0, next_match_number=1):
        self.id = id
        self.players = players if players else []  # shuffled order, kept for audit
        self.tables = tables if tables else []  # table ids snapshotted at start
        self.status = status
        self.rounds = rounds if rounds else []
        self.current_round = current_round
        self.next_table_index = next_table_index
        self.next_match_number = next_match_number

    @property
    def current(self) -> Optional[Round]:
        if not self.rounds:
            return None
        return self.rounds[self.current_round]

    @property
    def is_complete(self) -> bool:
        return self.status == TournamentStatus.COMPLETE

    @property
    def champion(self) -> Optional[str]:
        if not self.is_complete:
            return None
        return self.rounds[-1].matches[0].winner

    def find_match(self, match_id: str):
        """Return (round_index, match) for ``match_id`` or (None, None)."""
        wanted = match_id.strip().upper()
        for index, round_ in enumerate(self.rounds):
            for match in round_.matches:
                if match.id.upper() == wanted:
                    return index, match
        return None, None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'status': self.status,
            'current_round': self.current_round,
            'players': list(self.players),
            'tables': list(self.tables),
            'next_table_index': self.next_table_index,
            'next_match_number': self.next_match_number,
            'rounds': [round_.to_dict() for round_ in self.rounds],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Tournament':
        status = data.get('status') or TournamentStatus.PENDING
        if status not in TournamentStatus.ORDER:
            raise ValueError(f"Unknown tournament status: {status}")
        return cls(
            id=data['id'],
            players=list(data.get('players') or []),
            tables=list(data.get('tables') or []),
            status=status,
            rounds=[Round.from_dict(r) for r in (data.get('rounds') or [])],
            current_round=data.get('current_round', 0),
            next_table_index=data.get('next_table_index', 0),
            next_match_number=data.get('next_match_number', 1),
        )

    def __eq__(self, other):
        return isinstance(other, Tournament) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Tournament(id={self.id}, status={self.status}, "
                f"current_round={self.current_round}, rounds={len(self.rounds)})")

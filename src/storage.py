"""
Flat-file storage for players, tables and tournaments.

Layout of the data directory:
    players.yaml       roster
    tables.csv         table ids and availability
    tournaments.yaml   every tournament, oldest first
    confirmations.yaml pending confirmation codes
    .lock              FileLock guarding load-mutate-save cycles
"""
import csv
import logging
import os
import random
import uuid
from contextlib import contextmanager
from typing import List, Optional

import yaml
from filelock import FileLock

from knockout.elimination import build_bracket, shuffle_players
from knockout.errors import NoActiveTournament
from knockout.models import Player, Table, Tournament, TournamentStatus

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LOCK_TIMEOUT = float(os.environ.get('TOURNAMENT_LOCK_TIMEOUT', '10'))

PLAYERS_FILENAME = 'players.yaml'
TABLES_FILENAME = 'tables.csv'
TOURNAMENTS_FILENAME = 'tournaments.yaml'
CONFIRMATIONS_FILENAME = 'confirmations.yaml'
TABLE_FIELDS = ['table_id', 'available']


class StorageError(Exception):
    """Roster conflicts and unreadable data files."""

    pass


class Database:
    def __init__(self, players=None, tables=None, tournaments=None):
        self.players: List[Player] = players if players else []
        self.tables: List[Table] = tables if tables else []
        self.tournaments: List[Tournament] = tournaments if tournaments else []

    @property
    def table_ids(self) -> List[str]:
        return [table.id for table in self.tables]

    def __repr__(self):
        return (f"Database(players={len(self.players)}, tables={len(self.tables)}, "
                f"tournaments={len(self.tournaments)})")


def _data_dir(data_dir: str = None) -> str:
    return data_dir or DATA_DIR


def _path(filename: str, data_dir: str = None) -> str:
    return os.path.join(_data_dir(data_dir), filename)


def _read_yaml(path: str):
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f'Failed to parse {path}: {e}')
        raise StorageError(f'Data file {os.path.basename(path)} is corrupted') from e


def _write_yaml(path: str, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def load_players(data_dir: str = None) -> List[Player]:
    """Load the player roster from YAML."""
    data = _read_yaml(_path(PLAYERS_FILENAME, data_dir))
    if not data:
        return []
    return [Player.from_dict(p) for p in data.get('players') or []]


def save_players(players: List[Player], data_dir: str = None):
    _write_yaml(_path(PLAYERS_FILENAME, data_dir), {'players': [p.to_dict() for p in players]})


def load_tables(data_dir: str = None) -> List[Table]:
    """Load tables from CSV."""
    tables = []
    path = _path(TABLES_FILENAME, data_dir)
    if not os.path.exists(path):
        return tables
    with open(path, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)
        for row in reader:
            table_id = (row.get('table_id') or '').strip()
            if not table_id:
                logger.warning(f'Skipping table row without id in {path}: {row}')
                continue
            available = (row.get('available') or 'true').strip().lower() != 'false'
            tables.append(Table(id=table_id, available=available))
    return tables


def save_tables(tables: List[Table], data_dir: str = None):
    path = _path(TABLES_FILENAME, data_dir)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=TABLE_FIELDS)
        writer.writeheader()
        for table in tables:
            writer.writerow({
                'table_id': table.id,
                'available': 'true' if table.available else 'false',
            })


def load_tournaments(data_dir: str = None) -> List[Tournament]:
    data = _read_yaml(_path(TOURNAMENTS_FILENAME, data_dir))
    if not data:
        return []
    try:
        return [Tournament.from_dict(t) for t in data.get('tournaments') or []]
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f'Invalid tournament record in {TOURNAMENTS_FILENAME}: {e}')
        raise StorageError(f'Data file {TOURNAMENTS_FILENAME} is corrupted') from e


def save_tournaments(tournaments: List[Tournament], data_dir: str = None):
    _write_yaml(_path(TOURNAMENTS_FILENAME, data_dir),
                {'tournaments': [t.to_dict() for t in tournaments]})


def load_confirmations(data_dir: str = None) -> List[dict]:
    """Pending confirmation codes, so a code survives between CLI runs."""
    data = _read_yaml(_path(CONFIRMATIONS_FILENAME, data_dir))
    if not data:
        return []
    return list(data.get('pending') or [])


def save_confirmations(entries: List[dict], data_dir: str = None):
    _write_yaml(_path(CONFIRMATIONS_FILENAME, data_dir), {'pending': entries})


def load_database(data_dir: str = None) -> Database:
    return Database(
        players=load_players(data_dir),
        tables=load_tables(data_dir),
        tournaments=load_tournaments(data_dir),
    )


def save_database(db: Database, data_dir: str = None):
    save_players(db.players, data_dir)
    save_tables(db.tables, data_dir)
    save_tournaments(db.tournaments, data_dir)


def data_lock(data_dir: str = None) -> FileLock:
    directory = _data_dir(data_dir)
    os.makedirs(directory, exist_ok=True)
    return FileLock(os.path.join(directory, '.lock'), timeout=LOCK_TIMEOUT)


@contextmanager
def transaction(data_dir: str = None, readonly: bool = False):
    """
    Load the database under the data lock and save it back on success.

    Nothing is written if the body raises, so a failed command never
    leaves a half-applied change on disk.
    """
    with data_lock(data_dir):
        db = load_database(data_dir)
        yield db
        if not readonly:
            save_database(db, data_dir)
            logger.debug(f'Saved {db!r} to {_data_dir(data_dir)}')


# ---------------------------------------------------------------------------
# Roster and table management
# ---------------------------------------------------------------------------

def _player_key(username: str) -> str:
    return ' '.join(username.split()).lower()


def _find_player_index(db: Database, username: str) -> Optional[int]:
    wanted = _player_key(username)
    for index, player in enumerate(db.players):
        if _player_key(player.username) == wanted:
            return index
    return None


def add_player(db: Database, username: str) -> Player:
    username = ' '.join(username.split())
    if not username:
        raise StorageError('Player name cannot be empty')
    if _find_player_index(db, username) is not None:
        raise StorageError(f'Player {username} already exists')
    player = Player(id=str(uuid.uuid4()), username=username)
    db.players.append(player)
    logger.info(f'Added player {username}')
    return player


def remove_player(db: Database, username: str) -> Player:
    index = _find_player_index(db, username)
    if index is None:
        raise StorageError(f'Player {username.strip()} not found')
    player = db.players.pop(index)
    logger.info(f'Removed player {player.username}')
    return player


def _next_table_number(db: Database) -> int:
    highest = 0
    for table in db.tables:
        if table.id.startswith('T') and table.id[1:].isdigit():
            highest = max(highest, int(table.id[1:]))
    return highest + 1


def add_tables(db: Database, count: int) -> List[Table]:
    if count <= 0:
        raise StorageError('Number of tables must be positive')
    first = _next_table_number(db)
    new_tables = [Table(id=f'T{first + i}') for i in range(count)]
    db.tables.extend(new_tables)
    logger.info(f'Added {count} table(s)')
    return new_tables


def remove_tables(db: Database, count: int) -> List[Table]:
    """Remove the last ``count`` tables."""
    if count <= 0:
        raise StorageError('Number of tables must be positive')
    if count > len(db.tables):
        raise StorageError(f'Not enough tables to remove (have {len(db.tables)})')
    keep = len(db.tables) - count
    removed = [db.tables[i] for i in range(keep, len(db.tables))]
    db.tables = [db.tables[i] for i in range(keep)]
    logger.info(f'Removed {count} table(s)')
    return removed


# ---------------------------------------------------------------------------
# Tournaments
# ---------------------------------------------------------------------------

def latest_tournament(db: Database) -> Optional[Tournament]:
    return db.tournaments[-1] if db.tournaments else None


def active_tournament(db: Database) -> Tournament:
    tournament = latest_tournament(db)
    if tournament is None or tournament.status != TournamentStatus.ONGOING:
        raise NoActiveTournament()
    return tournament


def start_tournament(db: Database, rng: Optional[random.Random] = None) -> Tournament:
    """Shuffle the roster and build a new bracket on every available table."""
    current = latest_tournament(db)
    if current is not None and current.status == TournamentStatus.ONGOING:
        raise StorageError(f'Tournament {current.id} is still in progress')
    names = shuffle_players([p.username for p in db.players], rng)
    table_ids = [t.id for t in db.tables if t.available]
    tournament = build_bracket(names, table_ids, tournament_id=f'T{len(db.tournaments) + 1}')
    db.tournaments.append(tournament)
    logger.info(f'Started tournament {tournament.id} with {len(names)} players on {len(table_ids)} table(s)')
    return tournament


def clear_tournaments(db: Database) -> int:
    count = len(db.tournaments)
    db.tournaments = []
    logger.info(f'Cleared {count} tournament(s)')
    return count

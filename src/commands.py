"""
Chat command dispatcher.

Turns ``!smashbot <command> ...`` text into storage and bracket operations
and returns a Reply for whatever transport delivers it (CLI, HTTP).
"""
import logging
import os
import random
from typing import Optional

import storage
from confirmations import ConfirmationError, ConfirmationStore
from knockout.elimination import advance_round, record_result
from knockout.errors import TournamentError
from knockout.formats import (
    current_status,
    format_bracket,
    format_players,
    format_round_advance,
    format_start_announcement,
    format_tables,
)

logger = logging.getLogger(__name__)

COMMAND_PREFIX = os.environ.get('COMMAND_PREFIX', '!smashbot')

HELP_TEXT = """Available commands:
Players:
  {p} add player <username>      : add a new player
  {p} remove player <username>   : remove a player (asks for confirmation)
  {p} list player                : list all players

Tables:
  {p} add tables <number>        : add tables
  {p} remove tables <number>     : remove the last tables (asks for confirmation)
  {p} list tables                : list all tables

Tournament:
  {p} tournament start           : shuffle the players and start a tournament
  {p} tournament status          : show the current round
  {p} tournament bracket         : show every round so far
  {p} tournament advance         : move to the next round once every match is decided
  {p} tournament clear           : delete all tournaments (asks for confirmation)
  {p} match result <match_id> <winner_name> : record the winner of a match

Other:
  {p} confirm <code>             : confirm a pending destructive command
  {p} help                       : show this message"""

USAGE_HINT = 'Unknown command. Use {p} help'


class Reply:
    def __init__(self, title, description, ok=True):
        self.title = title
        self.description = description
        self.ok = ok

    def to_dict(self) -> dict:
        return {'title': self.title, 'description': self.description, 'success': self.ok}

    def __repr__(self):
        return f"Reply(title={self.title!r}, ok={self.ok})"


def _error(description: str) -> Reply:
    return Reply('Error', description, ok=False)


def _parse_count(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


class CommandDispatcher:
    def __init__(self, data_dir: str = None, confirmations: ConfirmationStore = None,
                 rng: random.Random = None, prefix: str = COMMAND_PREFIX):
        self.data_dir = data_dir
        if confirmations is None:
            confirmations = ConfirmationStore(data_dir=data_dir, persist=True)
        self.confirmations = confirmations
        self.rng = rng
        self.prefix = prefix

    def handle(self, text: str) -> Reply:
        args = text.split()
        if args and args[0] == self.prefix:
            args = args[1:]
        if not args:
            return _error(USAGE_HINT.format(p=self.prefix))

        logger.debug(f'Handling command: {args}')
        try:
            return self._dispatch(args)
        except (TournamentError, storage.StorageError, ConfirmationError) as e:
            logger.info(f'Command {" ".join(args)!r} failed: {e}')
            return _error(str(e))

    def _dispatch(self, args) -> Reply:
        command = [a.lower() for a in args[:2]]

        if command == ['help']:
            return Reply('Help', HELP_TEXT.format(p=self.prefix))
        if command == ['add', 'player'] and len(args) >= 3:
            return self.add_player(' '.join(args[2:]))
        if command == ['remove', 'player'] and len(args) >= 3:
            return self._ask_confirmation('remove_player', {'username': ' '.join(args[2:])},
                                          f"Remove player {' '.join(args[2:])}")
        if command == ['list', 'player'] and len(args) == 2:
            return self.list_players()
        if command == ['add', 'tables'] and len(args) == 3:
            count = _parse_count(args[2])
            if count is None:
                return _error('Invalid number of tables')
            return self.add_tables(count)
        if command == ['remove', 'tables'] and len(args) == 3:
            count = _parse_count(args[2])
            if count is None:
                return _error('Invalid number of tables')
            return self._ask_confirmation('remove_tables', {'count': count}, f'Remove {count} table(s)')
        if command == ['list', 'tables'] and len(args) == 2:
            return self.list_tables()
        if command[:1] == ['tournament'] and len(args) == 2:
            sub = command[1]
            if sub == 'start':
                return self.start_tournament()
            if sub == 'status':
                return self.tournament_status()
            if sub == 'bracket':
                return self.tournament_bracket()
            if sub == 'advance':
                return self.advance()
            if sub == 'clear':
                return self._ask_confirmation('clear_tournaments', {}, 'Delete every tournament')
        if command == ['match', 'result'] and len(args) >= 4:
            return self.match_result(args[2], ' '.join(args[3:]))
        if command[:1] == ['confirm'] and len(args) == 2:
            return self.confirm(args[1])

        return _error(USAGE_HINT.format(p=self.prefix))

    # -- confirmation flow ---------------------------------------------------

    def _ask_confirmation(self, action: str, payload: dict, summary: str) -> Reply:
        code = self.confirmations.request(action, payload)
        return Reply(
            'Confirmation required',
            f'{summary}? Reply with `{self.prefix} confirm {code}` '
            f'within {int(self.confirmations.ttl)} seconds.',
        )

    def confirm(self, code: str) -> Reply:
        pending = self.confirmations.confirm(code)
        if pending.action == 'remove_player':
            return self.remove_player(pending.payload['username'])
        if pending.action == 'remove_tables':
            return self.remove_tables(pending.payload['count'])
        if pending.action == 'clear_tournaments':
            return self.clear_tournaments()
        raise ConfirmationError(f'Unsupported action: {pending.action}')

    # -- players and tables --------------------------------------------------

    def add_player(self, username: str) -> Reply:
        with storage.transaction(self.data_dir) as db:
            player = storage.add_player(db, username)
        return Reply('Success', f'Player {player.username} added!')

    def remove_player(self, username: str) -> Reply:
        with storage.transaction(self.data_dir) as db:
            player = storage.remove_player(db, username)
        return Reply('Success', f'Player {player.username} removed!')

    def list_players(self) -> Reply:
        with storage.transaction(self.data_dir, readonly=True) as db:
            return Reply('Players', format_players(db.players))

    def add_tables(self, count: int) -> Reply:
        with storage.transaction(self.data_dir) as db:
            storage.add_tables(db, count)
        return Reply('Success', f'{count} table(s) added!')

    def remove_tables(self, count: int) -> Reply:
        with storage.transaction(self.data_dir) as db:
            storage.remove_tables(db, count)
        return Reply('Success', f'{count} table(s) removed!')

    def list_tables(self) -> Reply:
        with storage.transaction(self.data_dir, readonly=True) as db:
            return Reply('Tables', format_tables(db.table_ids))

    # -- tournament ----------------------------------------------------------

    def start_tournament(self) -> Reply:
        with storage.transaction(self.data_dir) as db:
            tournament = storage.start_tournament(db, self.rng)
            announcement = format_start_announcement(tournament)
        return Reply('Tournament started', announcement)

    def tournament_status(self) -> Reply:
        with storage.transaction(self.data_dir, readonly=True) as db:
            return Reply('Tournament status', current_status(storage.latest_tournament(db)))

    def tournament_bracket(self) -> Reply:
        with storage.transaction(self.data_dir, readonly=True) as db:
            return Reply('Bracket', format_bracket(storage.latest_tournament(db)))

    def advance(self) -> Reply:
        with storage.transaction(self.data_dir) as db:
            tournament = storage.active_tournament(db)
            previous = tournament.current_round
            advance_round(tournament)
            message = format_round_advance(tournament, previous) or current_status(tournament)
        return Reply('Tournament advanced', message)

    def match_result(self, match_id: str, winner_name: str) -> Reply:
        with storage.transaction(self.data_dir) as db:
            tournament = storage.active_tournament(db)
            previous = tournament.current_round
            record_result(tournament, match_id, winner_name)
            follow_up = format_round_advance(tournament, previous)
        description = 'Match result recorded!'
        if follow_up:
            description += '\n\n' + follow_up
        return Reply('Success', description)

    def clear_tournaments(self) -> Reply:
        with storage.transaction(self.data_dir) as db:
            count = storage.clear_tournaments(db)
        return Reply('Success', f'{count} tournament(s) cleared.')

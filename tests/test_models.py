"""
Unit tests for the data models (Player, Table, Match, Round, Tournament).
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from knockout.models import Player, Table, Match, Round, Tournament, TournamentStatus


class TestPlayerAndTable:
    """Tests for the roster models."""

    def test_player_round_trip(self):
        player = Player(id="abc", username="Alice")
        assert Player.from_dict(player.to_dict()) == player

    def test_player_repr(self):
        assert "Alice" in repr(Player(id="abc", username="Alice"))

    def test_table_defaults_to_available(self):
        table = Table(id="T1")
        assert table.available is True

    def test_table_from_dict_without_availability(self):
        """Older records without the flag load as available."""
        assert Table.from_dict({'id': 'T3'}).available is True


class TestMatch:
    """Tests for the Match model."""

    def test_two_player_match(self):
        match = Match(id="M1", player1="A", player2="B", table_id="T1")
        assert not match.is_bye
        assert not match.is_resolved
        assert match.participants == ["A", "B"]

    def test_bye_match(self):
        match = Match(id="M2", player1="C", winner="C")
        assert match.is_bye
        assert match.is_resolved
        assert match.participants == ["C"]
        assert match.table_id is None

    def test_round_trip_keeps_every_field(self):
        match = Match(id="M1", player1="A", player2="B", winner="B", table_id="T2", next_match_id="M5")
        assert Match.from_dict(match.to_dict()) == match

    def test_unset_fields_serialize_as_none(self):
        data = Match(id="M1", player1="A").to_dict()
        assert data['player2'] is None
        assert data['winner'] is None
        assert data['table_id'] is None
        assert data['next_match_id'] is None

    def test_blank_strings_load_as_none(self):
        """Files that stored '' for unset values still load cleanly."""
        match = Match.from_dict({'id': 'M1', 'player1': 'A', 'player2': 'B',
                                 'winner': '', 'table_id': '', 'next_match_id': ''})
        assert match.winner is None
        assert match.table_id is None
        assert match.next_match_id is None
        assert not match.is_resolved


class TestRound:
    """Tests for the Round model."""

    def test_round_resolved_only_when_every_match_has_winner(self):
        round_ = Round([
            Match(id="M1", player1="A", player2="B", winner="A"),
            Match(id="M2", player1="C", player2="D"),
        ])
        assert not round_.is_resolved
        round_.matches[1].winner = "D"
        assert round_.is_resolved
        assert round_.winners == ["A", "D"]

    def test_entrants_counts_byes_once(self):
        round_ = Round([
            Match(id="M1", player1="A", player2="B"),
            Match(id="M2", player1="C", winner="C"),
        ])
        assert round_.entrants == 3

    def test_empty_round(self):
        assert Round().matches == []


class TestTournament:
    """Tests for the Tournament model."""

    def _sample(self):
        return Tournament(
            id="T1",
            players=["A", "B", "C"],
            tables=["T1"],
            status=TournamentStatus.ONGOING,
            rounds=[Round([
                Match(id="M1", player1="A", player2="B", table_id="T1"),
                Match(id="M2", player1="C", winner="C"),
            ])],
            next_table_index=1,
            next_match_number=3,
        )

    def test_round_trip(self):
        tournament = self._sample()
        assert Tournament.from_dict(tournament.to_dict()) == tournament

    def test_current_round(self):
        tournament = self._sample()
        assert tournament.current is tournament.rounds[0]

    def test_current_is_none_without_rounds(self):
        assert Tournament(id="T1").current is None

    def test_champion_only_when_complete(self):
        tournament = Tournament(
            id="T1", players=["A", "B"], tables=["T1"], status=TournamentStatus.ONGOING,
            rounds=[Round([Match(id="M1", player1="A", player2="B", winner="B")])],
        )
        assert tournament.champion is None
        tournament.status = TournamentStatus.COMPLETE
        assert tournament.champion == "B"

    def test_find_match_is_case_insensitive(self):
        tournament = self._sample()
        index, match = tournament.find_match(" m2 ")
        assert index == 0
        assert match.player1 == "C"

    def test_find_match_missing(self):
        assert self._sample().find_match("M99") == (None, None)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            Tournament.from_dict({'id': 'T1', 'status': 'paused'})

    def test_defaults_when_fields_missing(self):
        tournament = Tournament.from_dict({'id': 'T9'})
        assert tournament.status == TournamentStatus.PENDING
        assert tournament.rounds == []
        assert tournament.next_match_number == 1

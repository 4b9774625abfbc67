"""
Unit Tests for the Leaderboard

Tests cover:
1. Weighted, normalised scoring
2. Ranking and tie breaks
3. Window and season selection
4. Empty and degenerate groups
"""

from datetime import timedelta

import pytest

from conftest import START, W1, W2
from points.leaderboard import CURRENT_LIMIT, FINAL_LIMIT, Totals, score
from points.models import GameEvent, LeaderboardWindow
from points.season import season_id


def add_event(storage, wallet, profit, volume, at):
    event = GameEvent(wallet=wallet, profit=profit, volume=volume, occurred_at=at, season=season_id(at))
    storage.append_game_event(event, int(profit))


class TestScoring:
    """Tests for score computation."""

    def test_two_player_scores(self, service, storage):
        add_event(storage, "A", 50, 25, START - timedelta(hours=2))
        add_event(storage, "A", 50, 25, START - timedelta(hours=1))
        add_event(storage, "B", 50, 100, START - timedelta(hours=1))

        board = service.get_leaderboard("48h")

        a, b = board.entries
        assert (a.wallet, a.rank) == ("A", 1)
        assert (b.wallet, b.rank) == ("B", 2)
        assert a.score == pytest.approx(0.85)
        assert b.score == pytest.approx(0.65)
        assert (a.profit, a.volume, a.rounds) == (100, 50, 2)
        assert a.points == 100

    def test_scores_within_unit_interval(self):
        totals = [Totals("a", 10, 1, 1), Totals("b", 0, 500, 7), Totals("c", 3, 3, 3)]

        for _, value in score(totals):
            assert 0.0 <= value <= 1.0

    def test_leader_on_every_axis_scores_one(self):
        (_, top), (_, other) = score([Totals("a", 10, 10, 2), Totals("b", 5, 5, 1)])

        assert top == pytest.approx(1.0)
        assert other == pytest.approx(0.5)

    def test_zero_maximum_zeroes_axis(self):
        scored = score([Totals("a", 0, 10, 1), Totals("b", 0, 5, 1)])

        # No profit anywhere: only volume and rounds contribute
        assert scored[0][1] == pytest.approx(0.5)
        assert scored[1][1] == pytest.approx(0.15 + 0.2)

    def test_empty_group(self, service):
        assert service.get_leaderboard().entries == []
        assert service.get_final_leaderboard().entries == []


class TestRanking:
    """Tests for rank assignment."""

    def test_ranks_are_contiguous(self, service, storage):
        for i in range(12):
            add_event(storage, f"wallet-{i:02d}", i, i + 1, START - timedelta(minutes=i))

        entries = service.get_leaderboard().entries

        assert [e.rank for e in entries] == list(range(1, 13))
        assert [e.score for e in entries] == sorted((e.score for e in entries), reverse=True)

    def test_ties_break_by_wallet(self, service, storage):
        add_event(storage, W2, 10, 10, START - timedelta(minutes=2))
        add_event(storage, W1, 10, 10, START - timedelta(minutes=1))

        entries = service.get_leaderboard().entries

        assert [e.wallet for e in entries] == [W1, W2]
        assert [e.rank for e in entries] == [1, 2]

    def test_current_view_limited(self, service, storage):
        for i in range(CURRENT_LIMIT + 5):
            add_event(storage, f"wallet-{i:03d}", 1, 1, START - timedelta(seconds=i))

        assert len(service.get_leaderboard().entries) == CURRENT_LIMIT

    def test_final_view_limited(self, service, storage, clock):
        for i in range(FINAL_LIMIT + 5):
            add_event(storage, f"wallet-{i:03d}", 1, 1, START - timedelta(seconds=i))
        clock.advance(days=7)

        assert len(service.get_final_leaderboard().entries) == FINAL_LIMIT


class TestWindows:
    """Tests for time window and season selection."""

    def test_48h_window_excludes_older_events(self, service, storage, clock):
        # Monday 2026-10-19 11:00 and Wednesday 2026-10-21 11:00
        add_event(storage, W1, 10, 10, START - timedelta(hours=49))
        add_event(storage, W2, 10, 10, START - timedelta(hours=1))

        board = service.get_leaderboard("48h")

        assert board.window == LeaderboardWindow.HOURS_48
        assert [e.wallet for e in board.entries] == [W2]

    def test_7d_window_stays_in_current_season(self, service, storage):
        add_event(storage, W1, 10, 10, START - timedelta(days=3))  # previous season
        add_event(storage, W2, 10, 10, START - timedelta(hours=50))

        board = service.get_leaderboard("7d")

        assert board.window == LeaderboardWindow.DAYS_7
        assert board.season == "2026-10-19"
        assert [e.wallet for e in board.entries] == [W2]

    def test_unknown_window_defaults_to_48h(self, service):
        assert service.get_leaderboard("30d").window == LeaderboardWindow.HOURS_48
        assert service.get_leaderboard(None).window == LeaderboardWindow.HOURS_48

    def test_final_view_uses_whole_season(self, service, storage, clock):
        add_event(storage, W1, 10, 10, START - timedelta(days=2))  # 2026-10-19 season start
        add_event(storage, W2, 10, 10, START - timedelta(days=3))  # previous season
        clock.advance(days=7)

        board = service.get_final_leaderboard()

        assert board.view == "final"
        assert board.season == "2026-10-19"
        assert [e.wallet for e in board.entries] == [W1]

    def test_final_view_for_named_season(self, service, storage):
        add_event(storage, W2, 10, 10, START - timedelta(days=3))

        board = service.get_final_leaderboard("2026-10-12")

        assert [e.wallet for e in board.entries] == [W2]

"""
Tests for rank computation, best-rank tracking and the leaderboard.
"""
import random
import pytest

from evergreeners.models import User
from evergreeners.repositories.user_repository import UserRepository
from evergreeners.services.rank_service import RankService, compute_rank, reconcile_best_rank
from evergreeners.tests.conftest import make_user


class TestComputeRank:
    """Tests for compute_rank"""

    def test_counts_strictly_greater_scores(self):
        """Rank is one plus the number of higher scores"""
        assert compute_rank(5, [10, 7, 5, 3, 1]) == 3

    def test_ties_share_rank(self):
        """Equal scores get the same rank"""
        assert compute_rank(5, [5, 5, 5]) == 1
        assert compute_rank(5, [9, 5, 5]) == 2

    def test_empty_population_is_first(self):
        """With no peers a positive score ranks first"""
        assert compute_rank(1, []) == 1

    def test_non_positive_score_is_unranked(self):
        """Zero and negative scores are unranked, not rank 0"""
        assert compute_rank(0, [3, 2]) is None
        assert compute_rank(-1, []) is None
        assert compute_rank(None, [1]) is None


class TestReconcileBestRank:
    """Tests for reconcile_best_rank"""

    def test_first_rank_becomes_best(self):
        assert reconcile_best_rank(7, None) == 7

    def test_better_rank_replaces_best(self):
        assert reconcile_best_rank(2, 5) == 2

    def test_worse_rank_keeps_best(self):
        assert reconcile_best_rank(9, 5) == 5

    def test_unranked_keeps_best(self):
        """Losing a rank never clears the recorded best"""
        assert reconcile_best_rank(None, 4) == 4
        assert reconcile_best_rank(None, None) is None

    def test_never_worsens(self):
        """Best rank is non-increasing over any sequence of observations"""
        rng = random.Random(3)
        best = None
        for _ in range(200):
            current = rng.choice([None] + list(range(1, 50)))
            new_best = reconcile_best_rank(current, best)
            if best is not None:
                assert new_best is not None and new_best <= best
            best = new_best


class TestBestRankPersistence:
    """Tests for the conditional best-rank update"""

    def test_improve_only_when_better(self, db_session):
        """The conditional update only writes improvements"""
        make_user(db_session, "u1", best_rank=None)
        repo = UserRepository()

        assert repo.improve_best_rank(db_session, "u1", 5) is True
        assert repo.improve_best_rank(db_session, "u1", 8) is False
        assert repo.improve_best_rank(db_session, "u1", 5) is False
        assert repo.improve_best_rank(db_session, "u1", 2) is True

        assert repo.get_by_id(db_session, "u1").best_rank == 2

    def test_rank_user_tracks_best(self, db_session):
        """rank_user overwrites current rank and keeps the best one"""
        me = make_user(db_session, "me", streak=5)
        make_user(db_session, "other", streak=3)
        service = RankService(db_session)

        assert service.rank_user(me) == 1
        assert me.current_rank == 1
        assert me.best_rank == 1

        make_user(db_session, "newcomer", streak=10)
        assert service.rank_user(me) == 2

        db_session.refresh(me)
        assert me.current_rank == 2
        assert me.best_rank == 1

    def test_zero_streak_is_unranked(self, db_session):
        """A user without a streak has no current rank"""
        me = make_user(db_session, "me", streak=0, best_rank=3)

        assert RankService(db_session).rank_user(me) is None

        db_session.refresh(me)
        assert me.current_rank is None
        assert me.best_rank == 3


class TestLeaderboard:
    """Tests for get_leaderboard"""

    @pytest.fixture
    def population(self, db_session):
        make_user(db_session, "a", username="alice", streak=10, total_commits=100, weekly_commits=1)
        make_user(db_session, "b", username="bob", streak=10, total_commits=300, weekly_commits=9)
        make_user(db_session, "c", username="carol", streak=5, total_commits=50, weekly_commits=4)
        make_user(db_session, "d", username="dave", streak=0, total_commits=0, weekly_commits=0)
        make_user(db_session, "e", username="eve", is_public=False, streak=20, total_commits=5)

    def test_public_users_ordered_with_shared_ranks(self, db_session, population):
        """Top list holds public users only, ties share a rank"""
        board = RankService(db_session).get_leaderboard("streak")

        assert [u.username for u in board.users] == ["alice", "bob", "carol", "dave"]
        assert [u.rank for u in board.users] == [1, 1, 3, None]

    def test_commits_and_weekly_filters(self, db_session, population):
        """Other filters order by their own column"""
        service = RankService(db_session)

        assert service.get_leaderboard("commits").users[0].username == "bob"
        assert service.get_leaderboard("weekly").users[0].username == "bob"

    def test_unknown_filter_falls_back_to_streak(self, db_session, population):
        board = RankService(db_session).get_leaderboard("bogus")

        assert board.filter == "streak"

    def test_viewer_in_list_uses_list_rank(self, db_session, population):
        """A viewer shown in the list gets the same rank as their row"""
        board = RankService(db_session).get_leaderboard("streak", viewer_id="c")

        assert board.current_user_rank.rank == 3

    def test_private_viewer_ranked_against_everyone(self, db_session, population):
        """A viewer outside the list is ranked by a strict-greater count"""
        board = RankService(db_session).get_leaderboard("streak", viewer_id="e")

        assert board.current_user_rank.username == "eve"
        assert board.current_user_rank.rank == 1

    def test_list_rank_ignores_private_users(self, db_session, population):
        """A private user above the viewer lowers the stored rank but not the list rank"""
        board = RankService(db_session).get_leaderboard("streak", viewer_id="a")
        alice = db_session.query(User).filter(User.id == "a").one()

        assert board.current_user_rank.rank == 1
        assert RankService(db_session).rank_user(alice) == 2

    def test_limit(self, db_session, population):
        board = RankService(db_session).get_leaderboard("streak", limit=2)

        assert len(board.users) == 2

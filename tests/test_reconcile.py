"""Tests for reconcile.py — which remote items must be downloaded."""

import random

import pytest

from greader_sync.reconcile import fetch_ratio, reconcile, should_fetch_globally, starred_delta


class TestReconcile:
    def test_full_mode_example(self):
        result = reconcile(
            remote_all={"1", "2", "3", "4"},
            remote_unread={"1", "2"},
            local_read={"3"},
            local_unread={"1"},
            unread_only=False,
        )
        assert result == {"2", "4"}

    def test_unread_only_example(self):
        result = reconcile(
            remote_all=None,
            remote_unread={"1", "2"},
            local_read={"3"},
            local_unread={"1"},
            unread_only=True,
        )
        assert result == {"2"}

    def test_item_marked_unread_remotely_is_refetched(self):
        result = reconcile({"1", "2"}, {"1"}, local_read={"1"}, local_unread=set(), unread_only=False)
        assert result == {"1", "2"}

    def test_item_marked_read_remotely_is_refetched(self):
        result = reconcile({"1"}, set(), local_read=set(), local_unread={"1"}, unread_only=False)
        assert result == {"1"}

    def test_moved_to_read_is_ignored_in_unread_only_mode(self):
        result = reconcile(None, set(), local_read=set(), local_unread={"1"}, unread_only=True)
        assert result == set()

    def test_moved_to_unread_counts_in_unread_only_mode(self):
        result = reconcile(None, {"1"}, local_read={"1"}, local_unread=set(), unread_only=True)
        assert result == {"1"}

    def test_everything_known_and_unchanged(self):
        result = reconcile({"1", "2"}, {"1"}, local_read={"2"}, local_unread={"1"}, unread_only=False)
        assert result == set()

    def test_inputs_are_not_mutated(self):
        remote_all, remote_unread = {"1", "2"}, {"1"}
        local_read, local_unread = {"1"}, {"2"}
        reconcile(remote_all, remote_unread, local_read, local_unread, unread_only=False)
        assert remote_all == {"1", "2"}
        assert local_read == {"1"}

    @pytest.mark.parametrize("unread_only", [False, True])
    def test_known_ids_only_return_when_their_state_moved(self, unread_only):
        rng = random.Random(1234)
        universe = [str(i) for i in range(12)]
        for _ in range(300):
            remote_all = {i for i in universe if rng.random() < 0.6}
            remote_unread = {i for i in remote_all if rng.random() < 0.5}
            local = [i for i in universe if rng.random() < 0.6]
            local_read = {i for i in local if rng.random() < 0.5}
            local_unread = set(local) - local_read
            remote_read = remote_all - remote_unread

            result = reconcile(
                None if unread_only else remote_all,
                remote_unread,
                local_read,
                local_unread,
                unread_only,
            )

            moved = local_read & remote_unread
            if not unread_only:
                moved |= local_unread & remote_read
            known = local_read | local_unread
            assert result & known == moved & known
            assert result <= (remote_unread if unread_only else remote_all) | moved


class TestStarredDelta:
    def test_symmetric_difference(self):
        assert starred_delta(remote_starred={"b", "c"}, local_starred={"a", "b"}) == {"a", "c"}

    def test_no_difference(self):
        assert starred_delta({"a"}, {"a"}) == set()


class TestStrategy:
    def test_ratio_exactly_at_threshold_is_per_feed(self):
        assert should_fetch_globally(3, 10, 0.3) is False

    def test_ratio_above_threshold_is_global(self):
        assert should_fetch_globally(4, 10, 0.3) is True

    def test_ratio_below_threshold_is_per_feed(self):
        assert should_fetch_globally(1, 10, 0.3) is False

    def test_empty_account_never_fetches_globally(self):
        assert fetch_ratio(0, 0) == 0.0
        assert should_fetch_globally(0, 0, 0.3) is False

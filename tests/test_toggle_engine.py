import threading

import pytest

from mythboard.core.config import ReactionPolicy
from mythboard.core.errors import InvalidReactionType, ReactionToggleError
from mythboard.core.identity import Identity
from mythboard.core.locks import KeyedLock
from mythboard.core.targets import Target
from mythboard.services.reactions import ReactionToggleEngine

A = Identity("user_a")
B = Identity("user_b")
POST = Target.post("post-1")
IMAGE = Target.image("https://cdn.example.com/posts/post-1/1.jpg")


@pytest.fixture
def single(reaction_repo):
    return ReactionToggleEngine(reaction_repo, ReactionPolicy.SINGLE, locks=KeyedLock())


@pytest.fixture
def multi(reaction_repo):
    return ReactionToggleEngine(reaction_repo, ReactionPolicy.MULTI, locks=KeyedLock())


class TestSingleReaction:
    def test_first_select_inserts(self, single, reaction_repo):
        summary = single.select(A, POST, "👍")
        assert summary.counts_by_type == {"👍": 1}
        assert summary.total_count == 1
        assert summary.mine == ["👍"]
        assert len(reaction_repo.rows) == 1

    def test_same_type_again_removes(self, single, reaction_repo):
        single.select(A, POST, "👍")
        summary = single.select(A, POST, "👍")
        assert summary.counts_by_type == {}
        assert summary.total_count == 0
        assert summary.mine == []
        assert reaction_repo.rows == []

    def test_other_type_updates_in_place(self, single, reaction_repo):
        single.select(A, POST, "👍")
        row_id = reaction_repo.rows[0].id
        summary = single.select(A, POST, "😱")
        assert summary.counts_by_type == {"😱": 1}
        assert summary.mine == ["😱"]
        assert [row.id for row in reaction_repo.rows] == [row_id]

    @pytest.mark.parametrize("times", [1, 2, 3, 4, 7])
    def test_parity_of_repeated_selects(self, single, times):
        for _ in range(times):
            summary = single.select(A, POST, "❤️")
        if times % 2:
            assert summary.mine == ["❤️"]
        else:
            assert summary.mine == []

    def test_identities_are_independent(self, single):
        single.select(A, IMAGE, "😂")
        summary = single.select(B, IMAGE, "😂")
        assert summary.counts_by_type == {"😂": 2}
        assert single.active_types(A, IMAGE) == ["😂"]
        assert single.active_types(B, IMAGE) == ["😂"]

    def test_post_and_image_targets_do_not_mix(self, single):
        single.select(A, POST, "👍")
        assert single.summary(IMAGE, A).counts_by_type == {}


class TestMultiReaction:
    def test_types_accumulate(self, multi, reaction_repo):
        multi.select(A, POST, "👍")
        summary = multi.select(A, POST, "❤️")
        assert summary.counts_by_type == {"👍": 1, "❤️": 1}
        assert summary.mine == ["👍", "❤️"]
        assert len(reaction_repo.rows) == 2

    def test_each_type_toggles_alone(self, multi):
        multi.select(A, POST, "👍")
        multi.select(A, POST, "❤️")
        summary = multi.select(A, POST, "👍")
        assert summary.counts_by_type == {"❤️": 1}
        assert summary.mine == ["❤️"]

    @pytest.mark.parametrize("times", [1, 2, 5, 6])
    def test_parity_per_type(self, multi, times):
        multi.select(A, POST, "😮")
        for _ in range(times):
            summary = multi.select(A, POST, "😢")
        assert ("😢" in summary.mine) == bool(times % 2)
        assert "😮" in summary.mine


class TestFailures:
    def test_unknown_type_is_refused_before_the_store(self, single, reaction_repo):
        with pytest.raises(InvalidReactionType):
            single.select(A, POST, "🍕")
        assert reaction_repo.calls == []

    def test_failed_write_reloads_counts(self, single, reaction_repo):
        single.select(B, POST, "👍")
        reaction_repo.fail_on.add("insert")
        with pytest.raises(ReactionToggleError) as exc_info:
            single.select(A, POST, "👍")
        error = exc_info.value
        assert error.status_code == 503
        assert error.summary.counts_by_type == {"👍": 1}
        assert error.summary.mine == []

    def test_failed_delete_keeps_store_truth(self, single, reaction_repo):
        single.select(A, POST, "👍")
        reaction_repo.fail_on.add("remove_or_update")
        with pytest.raises(ReactionToggleError) as exc_info:
            single.select(A, POST, "👍")
        assert exc_info.value.summary.mine == ["👍"]

    def test_no_retry(self, single, reaction_repo):
        reaction_repo.fail_on.add("insert")
        with pytest.raises(ReactionToggleError):
            single.select(A, POST, "👍")
        assert reaction_repo.calls.count("insert") == 1

    def test_unreadable_counts_are_empty(self, single, reaction_repo):
        single.select(A, POST, "👍")
        reaction_repo.fail_on.add("count_by_target")
        summary = single.summary(POST, A)
        assert summary.counts_by_type == {}
        assert summary.total_count == 0


class TestConcurrency:
    def test_toggles_from_one_identity_serialize(self, single, reaction_repo):
        reaction_repo.delay = 0.01
        errors = []

        def toggle():
            try:
                single.select(A, POST, "👍")
            except ReactionToggleError as e:
                errors.append(e)

        threads = [threading.Thread(target=toggle) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        # six toggles: back to Unreacted, and never two rows at once
        assert reaction_repo.rows == []

    def test_locks_are_released(self, reaction_repo):
        locks = KeyedLock()
        engine = ReactionToggleEngine(reaction_repo, locks=locks)
        engine.select(A, POST, "👍")
        reaction_repo.fail_on.add("find_own")
        with pytest.raises(ReactionToggleError):
            engine.select(A, POST, "👍")
        assert len(locks) == 0

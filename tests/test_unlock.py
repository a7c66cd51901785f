from itertools import combinations

from genesis.models import Level
from genesis.unlock import is_axiom_locked, is_level_complete, is_level_locked


def _all_subsets(ids: list[str]) -> list[set[str]]:
    return [set(combo) for size in range(len(ids) + 1) for combo in combinations(ids, size)]


def test_first_level_and_first_axiom_never_locked(levels: list[Level]) -> None:
    assert is_level_locked(levels, 0, set()) is False
    for level in levels:
        assert is_axiom_locked(level, 0, set()) is False


def test_axiom_lock_follows_immediate_predecessor(levels: list[Level]) -> None:
    level = levels[2]
    ids = [axiom.id for axiom in level.axioms]
    for studied in _all_subsets(ids):
        for index in range(1, len(ids)):
            assert is_axiom_locked(level, index, studied) is (ids[index - 1] not in studied)


def test_level_lock_follows_previous_level_only(levels: list[Level]) -> None:
    all_ids = [axiom.id for level in levels for axiom in level.axioms]
    for studied in _all_subsets(all_ids[:5]):
        for index in range(1, len(levels)):
            previous_ids = {axiom.id for axiom in levels[index - 1].axioms}
            assert is_level_locked(levels, index, studied) is (not previous_ids <= studied)


def test_level_unlocks_without_transitive_check(levels: list[Level]) -> None:
    studied = {"B1", "B2"}
    assert is_level_locked(levels, 1, studied) is True
    assert is_level_locked(levels, 2, studied) is False


def test_unstudying_relocks_successors_without_clearing_them(levels: list[Level]) -> None:
    studied = {"A1", "A2", "A3", "B1"}
    assert is_axiom_locked(levels[0], 2, studied) is False
    assert is_level_locked(levels, 1, studied) is False

    studied.discard("A2")
    assert is_axiom_locked(levels[0], 2, studied) is True
    assert is_level_locked(levels, 1, studied) is True
    assert "A3" in studied
    assert "B1" in studied


def test_level_completion(levels: list[Level]) -> None:
    level = levels[0]
    assert is_level_complete(level, {"A1", "A2", "A3", "B1"}) is True
    assert is_level_complete(level, {"A1", "A3"}) is False


def test_invalid_index_raises(levels: list[Level]) -> None:
    for call in (
        lambda: is_level_locked(levels, 3, set()),
        lambda: is_level_locked(levels, -1, set()),
        lambda: is_axiom_locked(levels[0], 3, set()),
    ):
        try:
            call()
            raise AssertionError("Expected IndexError.")
        except IndexError:
            pass

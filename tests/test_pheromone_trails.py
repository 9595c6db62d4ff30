"""
tests/test_pheromone_trails.py
──────────────────────────────
Pheromone layer test suite.

Group 1 — PheromoneTrail unit tests
    Evaporation, reinforcement, bounds, traversal statistics, strength.

Group 2 — PheromoneStore unit tests
    Eager construction, default level, bulk evaporation, path reinforcement,
    matrix export.
"""

from __future__ import annotations

import itertools

import numpy as np
import pytest

from pathfinder.pheromone import (
    PheromoneStore,
    PheromoneTrail,
    TAU_DEFAULT,
    TAU_INITIAL,
    TAU_MAX,
    TAU_MIN,
    edges,
)


def _make_trail(level: float = TAU_INITIAL) -> PheromoneTrail:
    return PheromoneTrail(from_module="a", to_module="b", pheromone_level=level)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 1 — PheromoneTrail
# ─────────────────────────────────────────────────────────────────────────────

class TestPheromoneTrail:

    def test_evaporate_multiplies_by_one_minus_rate(self):
        t = _make_trail(1.0)
        t.evaporate(0.1)
        assert t.pheromone_level == pytest.approx(0.9)

    def test_evaporate_never_below_floor(self):
        t = _make_trail(1.0)
        for _ in range(1000):
            t.evaporate(0.1)
        assert t.pheromone_level == pytest.approx(TAU_MIN)

    def test_evaporate_strictly_decreases_until_floor(self):
        """Repeated evaporate(r) with 0 < r < 1 strictly decreases until TAU_MIN."""
        t = _make_trail(5.0)
        previous = t.pheromone_level
        while previous > TAU_MIN:
            t.evaporate(0.25)
            assert t.pheromone_level < previous or t.pheromone_level == TAU_MIN
            previous = t.pheromone_level
        assert t.pheromone_level == TAU_MIN

    def test_reinforce_adds_amount(self):
        t = _make_trail(1.0)
        t.reinforce(0.75)
        assert t.pheromone_level == pytest.approx(1.75)

    def test_reinforce_clamps_to_ceiling(self):
        t = _make_trail(9.5)
        t.reinforce(100.0)
        assert t.pheromone_level == TAU_MAX

    def test_negative_reinforce_clamps_to_floor(self):
        t = _make_trail(0.5)
        t.reinforce(-3.0)
        assert t.pheromone_level == TAU_MIN

    def test_bounds_hold_under_random_sequence(self):
        """Any mix of evaporate/reinforce keeps the level in [TAU_MIN, TAU_MAX]."""
        rng = np.random.default_rng(0)
        t = _make_trail()
        for _ in range(2000):
            if rng.random() < 0.5:
                t.evaporate(float(rng.uniform(0.01, 0.99)))
            else:
                t.reinforce(float(rng.uniform(-2.0, 5.0)))
            assert TAU_MIN <= t.pheromone_level <= TAU_MAX

    def test_record_traversal_counts_and_rate(self):
        t = _make_trail()
        t.record_traversal(80.0, 30, True)
        t.record_traversal(40.0, 50, False)
        assert t.traversal_count == 2
        assert t.success_rate == pytest.approx(0.5)
        assert t.total_score == pytest.approx(120.0)
        assert t.average_score == pytest.approx(60.0)

    @pytest.mark.parametrize(
        "outcomes",
        sorted(set(itertools.permutations([True, True, True, False, False]))),
    )
    def test_success_rate_is_k_over_n_in_any_order(self, outcomes):
        t = _make_trail()
        for ok in outcomes:
            t.record_traversal(75.0, 20, ok)
        assert t.success_rate == pytest.approx(3 / 5)

    def test_success_rate_exact_over_many_traversals(self):
        rng = np.random.default_rng(11)
        t = _make_trail()
        outcomes = [bool(x) for x in rng.random(97) < 0.37]
        for ok in outcomes:
            t.record_traversal(50.0, 10, ok)
        assert t.success_rate == pytest.approx(sum(outcomes) / len(outcomes))

    def test_completion_time_uses_halving_recurrence(self):
        """average ← (old + new) // 2, starting from 0."""
        t = _make_trail()
        t.record_traversal(70.0, 40, True)
        assert t.average_completion_time == 20
        t.record_traversal(70.0, 60, True)
        assert t.average_completion_time == 40
        t.record_traversal(70.0, 41, True)
        assert t.average_completion_time == 40

    def test_record_traversal_does_not_touch_pheromone(self):
        t = _make_trail(2.0)
        t.record_traversal(100.0, 10, True)
        assert t.pheromone_level == 2.0

    def test_average_score_zero_without_traversals(self):
        assert _make_trail().average_score == 0.0

    def test_trail_strength(self):
        t = _make_trail(2.0)
        t.record_traversal(90.0, 10, True)
        t.record_traversal(30.0, 10, False)
        assert t.trail_strength() == pytest.approx(2.0 * 1.5)

    def test_key(self):
        assert _make_trail().key == ("a", "b")


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 2 — PheromoneStore
# ─────────────────────────────────────────────────────────────────────────────

class TestPheromoneStore:

    def test_one_trail_per_ordered_distinct_pair(self):
        store = PheromoneStore(["a", "b", "c", "d"])
        assert len(store) == 4 * 3
        assert ("a", "b") in store and ("b", "a") in store
        assert ("a", "a") not in store

    def test_initial_levels(self):
        store = PheromoneStore(["a", "b", "c"], initial_level=2.5)
        assert all(t.pheromone_level == 2.5 for t in store)

    def test_default_level_for_missing_pair(self):
        store = PheromoneStore(["a", "b"])
        assert store.level("a", "a") == TAU_DEFAULT
        assert store.level("a", "zzz") == TAU_DEFAULT
        assert store.level(None, "b") == TAU_DEFAULT
        assert store.level("a", "b") == TAU_INITIAL

    def test_evaporate_all_hits_every_trail(self):
        store = PheromoneStore(["a", "b", "c"])
        store.evaporate_all(0.2)
        assert np.allclose([t.pheromone_level for t in store], 0.8)

    def test_reinforce_path_touches_only_path_edges(self):
        store = PheromoneStore(["a", "b", "c", "d"])
        count = store.reinforce_path(["a", "b", "c"], 0.5)
        assert count == 2
        assert store.level("a", "b") == pytest.approx(1.5)
        assert store.level("b", "c") == pytest.approx(1.5)
        assert store.level("c", "b") == pytest.approx(1.0)
        assert store.level("a", "c") == pytest.approx(1.0)

    def test_reinforce_path_skips_self_pairs(self):
        store = PheromoneStore(["a", "b"])
        assert store.reinforce_path(["a", "a", "b"], 1.0) == 1
        assert store.level("a", "b") == pytest.approx(2.0)

    def test_as_matrix_shape_and_diagonal(self):
        store = PheromoneStore(["a", "b", "c"])
        store.reinforce_path(["a", "c"], 1.0)
        m = store.as_matrix()
        assert m.shape == (3, 3)
        assert np.all(np.diag(m) == 0.0)
        assert m[0, 2] == pytest.approx(2.0)
        assert m[2, 0] == pytest.approx(1.0)

    def test_as_matrix_is_a_copy(self):
        store = PheromoneStore(["a", "b"])
        m = store.as_matrix()
        m[0, 1] = 999.0
        assert store.level("a", "b") == TAU_INITIAL

    def test_empty_store_rejected(self):
        with pytest.raises(ValueError):
            PheromoneStore([])

    def test_edges_helper(self):
        assert edges(["a", "b", "b", "c"]) == [("a", "b"), ("b", "c")]

    def test_repr_smoke(self):
        assert "trails=2" in repr(PheromoneStore(["a", "b"]))

"""
Tests for the trial loop and the ensemble driver.
"""

import math

import numpy as np
import pytest

from rts_sim import (
    Brownian,
    BulkTarget,
    CircularSystem,
    ConstStep,
    ExponentialInteraction,
    HorizonExceeded,
    InteractingSearcher,
    LennardJonesInteraction,
    LinkedList,
    MergeableSearcher,
    Position,
    RandomSource,
    SearchSimulator,
    SimulationConfig,
    StepTooLarge,
    TrialPhase,
    run_model,
    utils,
)
from rts_sim.simulation import (
    apply_interactions,
    first_passage_time,
    merge_contacts,
    seed_searchers,
)


def annulus_mfpt(R: float, a: float, D: float = 1.0) -> float:
    """Mean FPT to an absorbing disk of radius a inside a reflecting disk of radius R."""
    return (R**4 * math.log(R / a) / (R**2 - a**2) - (3.0 * R**2 - a**2) / 4.0) / (2.0 * D)


def make_config(**overrides) -> SimulationConfig:
    data = {
        "system": {"size": 3.0, "dim": 2},
        "target": {"size": 1.0},
        "searcher": {"kind": "independent", "num_searcher": 1},
        "time": {"dt": 1e-2},
        "num_ensemble": 50,
        "seed": 1231412314,
        "verbose": False,
    }
    for key, value in overrides.items():
        if isinstance(value, dict):
            data[key] = {**data.get(key, {}), **value}
        else:
            data[key] = value
    return SimulationConfig.from_dict(data)


def mergeable(x, y, radius=0.05):
    return MergeableSearcher(Brownian(1.0), Position([x, y]), radius=radius, alpha=1.0)


def test_merge_contacts_merges_touching_pairs():
    searchers = LinkedList(
        [mergeable(0.0, 0.0), mergeable(0.05, 0.0), mergeable(5.0, 5.0), mergeable(5.09, 5.0)]
    )
    assert merge_contacts(searchers) == 2
    assert list(searchers.indices()) == [0, 2]
    assert searchers.get(0).size == 2
    assert searchers.get(2).size == 2
    assert searchers.get(0).diffusion == pytest.approx(0.5)
    assert merge_contacts(searchers) == 0


def test_merge_contacts_does_not_chain_through_deleted():
    searchers = LinkedList([mergeable(0.0, 0.0), mergeable(0.08, 0.0), mergeable(0.16, 0.0)])
    assert merge_contacts(searchers) == 1
    assert list(searchers.indices()) == [0, 2]
    assert searchers.get(0).size == 2


def test_seed_searchers_revives_merged_slots():
    rng = RandomSource(4)
    system = CircularSystem(5.0, 2)
    target = BulkTarget(Position([0.0, 0.0]), 1.0)
    searchers = LinkedList([mergeable(2.0, 0.0), mergeable(2.01, 0.0), mergeable(-3.0, 0.0)])
    merge_contacts(searchers)
    assert len(searchers) == 2
    seed_searchers(system, target, searchers, rng)
    assert len(searchers) == 3
    assert all(s.size == 1 for s in searchers)
    assert all(system.contains(s.pos) and not target.contains(s.pos) for s in searchers)


def test_apply_interactions_is_repulsive_and_balanced():
    inter = ExponentialInteraction(2, 1.0, 1.0)
    searchers = LinkedList(
        [
            InteractingSearcher(Brownian(1.0), Position([0.0, 0.0]), interaction=inter),
            InteractingSearcher(Brownian(1.0), Position([1.0, 0.0]), interaction=inter),
        ]
    )
    moves = [Position.zeros(2), Position.zeros(2)]
    apply_interactions(searchers, moves, 0.1, Position.zeros(2))
    push = inter.force(1.0) * 0.1
    np.testing.assert_allclose(moves[0].coords, [-push, 0.0])
    np.testing.assert_allclose(moves[1].coords, [push, 0.0])


def test_apply_interactions_skips_coincident_pair():
    """Coincident searchers have no direction to push along, so they add no force."""
    inter = LennardJonesInteraction(0.1, 1.0)
    searchers = LinkedList(
        [
            InteractingSearcher(Brownian(1.0), Position([2.0, 0.0]), interaction=inter),
            InteractingSearcher(Brownian(1.0), Position([2.0, 0.0]), interaction=inter),
            InteractingSearcher(Brownian(1.0), Position([2.0, 0.5]), interaction=inter),
        ]
    )
    moves = [Position.zeros(2) for _ in range(3)]
    apply_interactions(searchers, moves, 0.01, Position.zeros(2))
    push = inter.force(0.5) * 0.01
    np.testing.assert_allclose(moves[0].coords, [0.0, -push])
    np.testing.assert_allclose(moves[1].coords, [0.0, -push])
    np.testing.assert_allclose(moves[2].coords, [0.0, 2.0 * push])


def test_lennard_jones_ensemble_from_shared_start():
    config = make_config(
        searcher={"kind": "lennard_jones", "num_searcher": 2, "init": "2:0", "ptl_size": 0.1},
        num_ensemble=5,
    )
    result = SearchSimulator(config).run()
    assert result.num_trials == 5
    assert np.all(result.fpts > 0.0)
    assert np.all(np.isfinite(result.fpts))


def test_first_passage_time_is_multiple_of_dt():
    rng = RandomSource(10)
    system = CircularSystem(3.0, 2)
    target = BulkTarget(Position([0.0, 0.0]), 1.0)
    searchers = LinkedList([mergeable(1.5, 0.0)])
    fpt = first_passage_time(system, target, searchers, ConstStep(0.01), rng)
    assert fpt > 0.0
    assert fpt / 0.01 == pytest.approx(round(fpt / 0.01), abs=1e-6)


def test_first_passage_time_reports_merges():
    rng = RandomSource(10)
    system = CircularSystem(3.0, 2)
    target = BulkTarget(Position([0.0, 0.0]), 1.0)
    searchers = LinkedList([mergeable(2.5, 0.0, radius=0.5), mergeable(2.5, 0.01, radius=0.5)])
    counts = []
    fpt = first_passage_time(
        system, target, searchers, ConstStep(0.01), rng, merge=True, on_merge=counts.append
    )
    assert fpt > 0.0
    assert counts == [1]
    assert len(searchers) == 1
    assert next(iter(searchers)).size == 2


class PhaseRecorder(SearchSimulator):
    def __init__(self, config):
        super().__init__(config)
        self.merge_phases = []

    def _record_merges(self, count):
        super()._record_merges(count)
        self.merge_phases.append(self.phase)


def test_simulator_enters_merged_phase():
    config = make_config(
        searcher={"kind": "mergeable", "num_searcher": 2, "init": "2.5:0", "radius": 0.5},
        num_ensemble=3,
    )
    simulator = PhaseRecorder(config)
    simulator.run_trial()
    assert simulator.merge_phases == [TrialPhase.MERGED]
    assert simulator.trial_merges == 1
    assert simulator.phase is TrialPhase.FOUND

    simulator.run_trial()
    assert simulator.trial_merges == 1

    independent = SearchSimulator(make_config())
    independent.run_trial()
    assert independent.trial_merges == 0


def test_horizon_exceeded():
    config = make_config(
        system={"size": 10.0},
        searcher={"init": "9:0"},
        time={"tmax": 0.05},
    )
    simulator = SearchSimulator(config)
    with pytest.raises(HorizonExceeded):
        simulator.run_trial()


def test_step_too_large_propagates():
    config = make_config(system={"size": 1.0}, target={"size": 0.1}, time={"dt": 1e6})
    simulator = SearchSimulator(config)
    with pytest.raises(StepTooLarge):
        simulator.run_trial()


def test_single_searcher_matches_annulus_theory():
    """Small disk so the ensemble is cheap; dt = 1e-2 adds a small positive bias."""
    config = make_config(num_ensemble=800)
    result = SearchSimulator(config).run()
    expected = annulus_mfpt(3.0, 1.0)
    assert expected == pytest.approx(2.312, abs=1e-3)
    assert result.mfpt == pytest.approx(2.4, rel=0.2)


def test_ensemble_is_reproducible_and_tracks_phase():
    config = make_config(num_ensemble=20)
    first = SearchSimulator(config)
    assert first.phase is TrialPhase.IDLE
    a = first.run()
    assert first.phase is TrialPhase.FINISHED
    b = SearchSimulator(config).run()
    np.testing.assert_array_equal(a.fpts, b.fpts)
    assert a.num_trials == 20
    assert a.meta["trial_seed"] == config.trial_seed()

    other = SearchSimulator(make_config(num_ensemble=20, idx_set=1)).run()
    assert not np.array_equal(a.fpts, other.fpts)


def test_more_mergeable_searchers_find_faster():
    one = run_model(make_config(searcher={"kind": "mergeable"}, num_ensemble=300))
    four = run_model(
        make_config(searcher={"kind": "mergeable", "num_searcher": 4}, num_ensemble=300)
    )
    assert four.mfpt < one.mfpt


def test_interacting_ensemble_runs():
    config = make_config(
        searcher={"kind": "exponential", "num_searcher": 3, "gamma": 0.5, "strength": 1.0},
        num_ensemble=30,
    )
    result = SearchSimulator(config).run()
    assert np.all(result.fpts > 0.0)
    assert np.all(np.isfinite(result.fpts))


def test_run_streams_to_writer(tmp_path):
    config = make_config(num_ensemble=15)
    path = tmp_path / "fpt.dat"
    with utils.FptWriter(path, config.describe()) as writer:
        result = SearchSimulator(config).run(writer=writer)
    description, fpts = utils.read_fpt_file(path)
    assert description["num_ensemble"] == "15"
    np.testing.assert_allclose(fpts, result.fpts, rtol=1e-5)


def test_run_model_accepts_dict(capsys):
    result = run_model(
        {
            "system": {"size": 3.0},
            "num_ensemble": 10,
            "verbose": True,
        }
    )
    assert result.num_trials == 10
    assert "[rts] Trial 10/10" in capsys.readouterr().out


####################################################################################################
# Full-size reference scenarios
####################################################################################################


@pytest.mark.slow
def test_scenario_single_searcher_reference():
    num_ensemble = 10_000
    config = make_config(system={"size": 10.0}, num_ensemble=num_ensemble)
    result = SearchSimulator(config).run()
    assert abs(result.mfpt / 80.0462 - 1.0) < num_ensemble ** -0.2


@pytest.mark.slow
def test_scenario_two_mergeable_searchers_reference():
    num_ensemble = 1000
    config = make_config(
        system={"size": 10.0},
        searcher={"kind": "mergeable", "num_searcher": 2, "radius": 0.05, "alpha": 1.0},
        num_ensemble=num_ensemble,
    )
    result = SearchSimulator(config).run()
    assert abs(result.mfpt / 62.7514 - 1.0) < num_ensemble ** -0.2

"""Tests for the generation orchestrator: ticks, frames, generation end and roster."""

import sys
import os
import dataclasses
import tempfile
import numpy as np

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from config import EvolutionConfig, SimulationConfig, SpeedConfig
from orchestrator import GenerationOrchestrator, GenerationState, WorldSnapshot


class FakeClock:
    """Advances by a fixed step every time it is read."""

    def __init__(self, step=0.0):
        self.t = 0.0
        self.step = step

    def __call__(self):
        self.t += self.step
        return self.t


def make_orchestrator(population=4, seed=0, clock=None, speed=None, max_generation_ticks=None, **callbacks):
    config = SimulationConfig(
        evolution=EvolutionConfig(population_size=population, max_generation_ticks=max_generation_ticks),
        speed=speed or SpeedConfig(),
        seed=seed,
    )
    return GenerationOrchestrator(config, clock=clock or FakeClock(), **callbacks)


def test_initial_population():
    orch = make_orchestrator(population=6)
    assert orch.state is GenerationState.IDLE
    orch.start_generation()
    assert orch.state is GenerationState.RUNNING
    assert orch.generation == 1
    assert len(orch.population) == 6
    assert orch.alive_count == 6
    assert all(a.birth_tick == 0 for a in orch.population)


def test_generation_end_fires_once():
    """Both creatures die in the first tick of a 5-tick frame; the end fires once."""
    results = []
    orch = make_orchestrator(population=2, on_generation_ended=results.append)
    orch.start_generation()
    for agent in orch.population:
        agent.energy = 0.05

    ran = orch.run_frame(ticks=5)

    assert ran == 5
    assert orch.alive_count == 0
    assert len(results) == 1
    assert orch.state is GenerationState.ENDED

    # Later frames do nothing and never fire again
    assert orch.run_frame(ticks=5) == 0
    assert len(results) == 1

    result = results[0]
    assert result.generation == 1
    assert result.survivors == ()
    assert len(result.top_performers) == 2
    print("✓ test_generation_end_fires_once passed")


def test_generation_result_is_read_only():
    results = []
    orch = make_orchestrator(on_generation_ended=results.append)
    orch.start_generation()
    orch.end_generation()

    stats = results[0].stats
    try:
        stats['kills'] = 99
        assert False, "Result stats should be read-only"
    except TypeError:
        pass
    assert stats['kills'] == orch.stats['kills'][-1] == 0
    assert orch.last_result.stats is stats


def test_end_is_checked_per_frame_not_per_tick():
    results = []
    orch = make_orchestrator(population=2, on_generation_ended=results.append)
    orch.start_generation()
    orch.population[0].energy = 0.05

    orch.run_frame(ticks=5)

    assert orch.tick == 5
    assert len(results) == 1
    assert results[0].ticks == 5
    assert len(results[0].survivors) == 1


def test_end_generation_twice_is_a_contract_violation():
    orch = make_orchestrator()
    orch.start_generation()
    orch.end_generation()
    try:
        orch.end_generation()
        assert False, "Should not end a generation twice"
    except AssertionError:
        pass


def test_frame_budget_cuts_batch_short():
    """Each clock read costs 5 ms; the check at tick 200 sees 10 ms > 8 ms."""
    orch = make_orchestrator(clock=FakeClock(step=0.005))
    orch.start_generation()
    ran = orch.run_frame(ticks=1000)
    assert ran == 200
    assert orch.tick == 200


def test_frame_requests_are_capped():
    orch = make_orchestrator(speed=SpeedConfig(max_ticks_per_frame=20))
    orch.start_generation()
    assert orch.run_frame(ticks=500) == 20

    orch = make_orchestrator(speed=SpeedConfig(max_speed=True, max_ticks_per_frame=50))
    orch.start_generation()
    assert orch.run_frame() == 50

    orch = make_orchestrator(speed=SpeedConfig(ticks_per_frame=3))
    orch.start_generation()
    assert orch.run_frame() == 3


def test_population_updated_receives_snapshots():
    snapshots = []
    orch = make_orchestrator(on_population_updated=snapshots.append)
    orch.start_generation()
    orch.run_frame(ticks=2)

    assert len(snapshots) == 1
    snap = snapshots[0]
    assert isinstance(snap, WorldSnapshot)
    assert snap.tick == 2
    assert len(snap.agents) == 4
    assert snap.alive_count == orch.alive_count


def test_snapshots_are_immutable_copies():
    orch = make_orchestrator()
    orch.start_generation()
    snap = orch.snapshot()
    before = snap.agents[0].position

    try:
        snap.agents[0].energy = 0.0
        assert False, "Snapshots should be frozen"
    except dataclasses.FrozenInstanceError:
        pass

    orch.population[0].pos[0] += 50.0
    assert snap.agents[0].position == before


def test_next_generation():
    orch = make_orchestrator(population=6)
    orch.start_generation()
    orch.run_frame(ticks=3)
    for i, agent in enumerate(orch.population):
        agent.fitness = float(i)
    orch.end_generation()
    assert [a.fitness for a in orch.top_performers] == [5.0, 4.0, 3.0, 2.0, 1.0, 0.0]

    orch.next_generation()

    assert orch.generation == 2
    assert orch.state is GenerationState.RUNNING
    assert len(orch.population) == 6
    assert all(a.fitness == 0.0 for a in orch.population)
    assert all(a.birth_tick == 3 for a in orch.population)
    assert sum(a.id.startswith('offspring-') for a in orch.population) == 5
    assert orch.projectiles == []


def test_next_generation_requires_ended_generation():
    orch = make_orchestrator()
    orch.start_generation()
    try:
        orch.next_generation()
        assert False, "Should require an ended generation"
    except AssertionError:
        pass


def test_pinned_creatures_carry_over():
    orch = make_orchestrator(population=6)
    orch.start_generation()
    pinned, moved = orch.population[0], orch.population[1]
    orch.pin(pinned.id)
    orch.pin(moved.id)
    orch.transfer(moved.id, 'forest')
    unsaved = orch.population[2]
    orch.save(unsaved.id)
    orch.unsave(unsaved.id)

    orch.end_generation()
    orch.next_generation()

    ids = [a.id for a in orch.population]
    assert ids[0] == f"{pinned.id}-gen2"
    assert f"{moved.id}-gen2" not in ids
    assert f"{unsaved.id}-gen2" not in ids
    assert orch.population[0].is_pinned
    assert len(orch.population) == 6

    try:
        orch.pin('nobody')
        assert False, "Should raise KeyError"
    except KeyError:
        pass


def test_viewport_changes_spawn_bounds():
    orch = make_orchestrator(population=6)
    orch.start_generation()
    orch.set_viewport(400, 300)
    orch.end_generation()
    orch.next_generation()
    for agent in orch.population:
        assert agent.pos[0] <= 400 - 17 and agent.pos[1] <= 300 - 17


def test_seeded_runs_are_identical():
    a = make_orchestrator(population=5, seed=7)
    b = make_orchestrator(population=5, seed=7)
    for orch in (a, b):
        orch.start_generation()
        orch.run_frame(ticks=40)

    for x, y in zip(a.population, b.population):
        assert x.name == y.name
        np.testing.assert_array_equal(x.pos, y.pos)
        assert x.energy == y.energy
        assert x.fitness == y.fitness
    assert len(a.projectiles) == len(b.projectiles)


def test_max_generation_ticks():
    orch = make_orchestrator(population=6, max_generation_ticks=10)
    result = orch.run_generation()
    assert result.ticks == 10
    assert orch.state is GenerationState.ENDED


def test_run_generation_max_frames():
    orch = make_orchestrator(population=4)
    result = orch.run_generation(max_frames=3)
    assert result.ticks == 3
    assert orch.state is GenerationState.ENDED


def test_run_and_save_stats():
    orch = make_orchestrator(population=4, max_generation_ticks=5)
    results = orch.run(3)

    assert [r.generation for r in results] == [1, 2, 3]
    assert orch.stats['generation'] == [1, 2, 3]
    assert orch.stats['ticks'] == [5, 5, 5]
    assert all(r.stats['max_fitness'] >= r.stats['mean_fitness'] >= r.stats['min_fitness'] >= 0
               for r in results)
    assert all(len(r.top_genomes) == 4 and all(g.validate() for g in r.top_genomes) for r in results)

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, 'stats.npz')
        orch.save_stats(path)
        with np.load(path) as data:
            assert set(data.files) == set(orch.stats)
            assert list(data['generation']) == [1, 2, 3]
    print("✓ test_run_and_save_stats passed")


if __name__ == "__main__":
    print("Running orchestrator.py tests...\n")

    test_initial_population()
    test_generation_end_fires_once()
    test_generation_result_is_read_only()
    test_end_is_checked_per_frame_not_per_tick()
    test_end_generation_twice_is_a_contract_violation()
    test_frame_budget_cuts_batch_short()
    test_frame_requests_are_capped()
    test_population_updated_receives_snapshots()
    test_snapshots_are_immutable_copies()
    test_next_generation()
    test_next_generation_requires_ended_generation()
    test_pinned_creatures_carry_over()
    test_viewport_changes_spawn_bounds()
    test_seeded_runs_are_identical()
    test_max_generation_ticks()
    test_run_generation_max_frames()
    test_run_and_save_stats()

    print("\n✅ All orchestrator.py tests passed!")

import csv
import json

import pytest

from flocking.app.headless import run_headless
from flocking.sim.core.config import SimulationConfig


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_basic_log_header(tmp_path):
    log_path = tmp_path / "basic.csv"
    run_headless(steps=2, seed=1, log_path=log_path, deterministic_log=True, log_format="basic", population=8)
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == [
        "tick",
        "agents",
        "obstacles",
        "virtual_agents",
        "avg_speed",
        "max_speed",
        "neighbor_checks",
        "step_ms",
    ]
    assert rows[1][0] == "1"
    assert rows[1][1] == "8"
    assert rows[1][6] == str(8 * 7)
    assert rows[1][7] == "0.000"


def test_headless_detailed_log_tracks_flock_shape(tmp_path):
    log_path = tmp_path / "detailed.csv"
    config = SimulationConfig(initial_population=6, spawn_extent=10.0, initial_target=(0.0, 0.0))
    run_headless(steps=3, seed=2, log_path=log_path, deterministic_log=True, log_format="detailed", config=config)
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    idx = {name: i for i, name in enumerate(header)}
    for name in ("centroid_x", "centroid_y", "target_distance", "spread", "min_separation", "target_enabled"):
        assert name in idx
    first = rows[1]
    assert float(first[idx["spread"]]) > 0.0
    assert float(first[idx["min_separation"]]) > 0.0
    assert first[idx["target_enabled"]] == "1"
    assert int(first[idx["soft_boundary_agents"]]) == 0


def test_headless_is_deterministic_for_seed(tmp_path):
    first = tmp_path / "a.csv"
    second = tmp_path / "b.csv"
    run_headless(steps=3, seed=4, log_path=first, deterministic_log=True, population=10)
    run_headless(steps=3, seed=4, log_path=second, deterministic_log=True, population=10)
    assert _read_csv(first) == _read_csv(second)


def test_headless_leaves_caller_config_untouched():
    config = SimulationConfig(seed=11, initial_population=3, spawn_extent=5.0)
    simulation = run_headless(steps=1, seed=777, log_path=None, config=config, population=5)
    assert (config.seed, config.initial_population) == (11, 3)
    assert (simulation.config.seed, simulation.config.initial_population) == (777, 5)
    assert len(simulation.get_agents()) == 5


def test_headless_summary_output(tmp_path):
    summary_path = tmp_path / "summary.json"
    simulation = run_headless(
        steps=4,
        seed=3,
        log_path=None,
        deterministic_log=True,
        summary_path=summary_path,
        population=5,
        dt=0.5,
    )
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["agents"] == 5
    assert payload["dt"] == pytest.approx(0.1)
    assert payload["log_format"] == "basic"
    assert payload["step_ms"] == {"min": 0.0, "max": 0.0, "avg": 0.0}
    assert "average_speed" in payload
    assert simulation.tick == 4
    assert not simulation.is_running()


def test_headless_rejects_unknown_format(tmp_path):
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=tmp_path / "x.csv", log_format="verbose", population=1)

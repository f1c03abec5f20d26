import os

import pandas as pd
import pytest

from qpack_sim.net_simulator import CompressionSimulator
from qpack_sim.plot import plot_block_log
from qpack_sim.scheme import QPACKScheme
from qpack_sim.simulate import main
from qpack_sim.workload import generate_requests


@pytest.fixture
def requests():
    return generate_requests(300, seed=1)


def check_delivery(simulator, requests):
    assert len(simulator.callbacks) == len(requests)
    decoded = {cb.request_index: cb.headers for cb in simulator.callbacks}
    assert [decoded[i] for i in range(len(requests))] == requests
    assert simulator.stats.acks == len(requests)
    assert simulator.scheme.commit_epoch == len(requests) - 1
    assert simulator.scheme.acks.pending == []
    assert simulator.scheme.closed


def test_generate_requests_is_seeded():
    assert generate_requests(10, seed=3) == generate_requests(10, seed=3)
    assert len(generate_requests(10)) == 10


def test_in_order_network_has_no_hol_blocking(requests):
    simulator = CompressionSimulator(requests, jitter_ms=0, requests_per_ms=2)
    stats = simulator.simulate(summary=False)
    check_delivery(simulator, requests)
    assert simulator.scheme.get_hol_block_count() == 0
    assert stats.requests == len(requests)
    assert stats.packets == len(requests) // 2
    assert 0 < stats.compression_ratio() < 1


def test_reordering_network_with_small_table(requests):
    simulator = CompressionSimulator(
        requests, scheme=QPACKScheme(512), prop_delay_ms=10, jitter_ms=30,
        requests_per_ms=3, seed=5)
    stats = simulator.simulate(summary=False)
    check_delivery(simulator, requests)
    # a small table keeps evicting, so some blocks must wait
    assert stats.ooo_allowed < stats.requests
    assert simulator.scheme.get_hol_block_count() > 0
    assert stats.max_queue_buffer_bytes > 0
    assert len(stats.hol_delays_ms) == len(requests)


def test_simulation_must_finish(requests):
    simulator = CompressionSimulator(requests, prop_delay_ms=25)
    with pytest.raises(RuntimeError):
        simulator.simulate(max_dur_ms=10, summary=False)


def test_block_log_and_plot(tmp_path, requests):
    save_dir = str(tmp_path)
    simulator = CompressionSimulator(requests[:50], save_dir, jitter_ms=20)
    simulator.simulate(summary=False)
    df = pd.read_csv(os.path.join(save_dir, "block_log.csv"))
    assert (df['event'] == 'sent').sum() == 50
    assert (df['event'] == 'decoded').sum() == 50
    assert (df['event'] == 'acked').sum() == 50
    assert df[df['event'] == 'acked']['commit_epoch'].is_monotonic_increasing
    plot_block_log(simulator.recorder.log_fname, save_dir)
    assert os.path.exists(os.path.join(save_dir, "qpack_block_log.jpg"))


def test_cli(tmp_path, capsys):
    main(["--requests", "50", "--table-size", "256", "--jitter-ms", "15",
          "--save-dir", str(tmp_path)])
    out = capsys.readouterr().out
    assert "requests: 50" in out
    assert os.path.exists(os.path.join(str(tmp_path), "block_log.csv"))

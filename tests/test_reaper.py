"""
Tests del `Reaper`: barrido único, hilo periódico y parada limpia.
"""
from __future__ import annotations

import threading
import time

import pytest

from fileshare.catalog import Reaper
from fileshare.config import Config, ConfigError


def _wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


# ════════════════════════════════════════════════════════════════════════════
# Frontera de edad con umbral 30s y margen 1s
# ════════════════════════════════════════════════════════════════════════════
def test_sweep_age_boundary(store, cfg, clock) -> None:
    reaper = Reaper(store, cfg)
    store.advertise("p1", "fresh.txt", "10.0.0.5", 6000)
    clock.advance(29)

    assert reaper.sweep() == 0
    assert len(store.search("fresh")) == 1

    clock.advance(3)  # 32s
    assert reaper.sweep() == 1
    assert store.search("fresh") == []


def test_reaper_reads_config(store, tmp_path) -> None:
    cfg = Config(db_path=str(tmp_path / "x.db"), stale_file_age="10", reap_grace="0.5", reap_interval="7")
    reaper = Reaper(store, cfg)
    assert (reaper.threshold_s, reaper.grace_s, reaper.interval_s) == (10, 0.5, 7)


@pytest.mark.parametrize(
    "overrides",
    [
        {"stale_file_age": "abc"},
        {"reap_grace": "soon"},
        {"reap_interval": "0"},
        {"reap_interval": "-1"},
    ],
)
def test_malformed_config_is_fatal(store, tmp_path, overrides) -> None:
    cfg = Config(db_path=str(tmp_path / "x.db"), **overrides)
    with pytest.raises(ConfigError):
        Reaper(store, cfg)


# ════════════════════════════════════════════════════════════════════════════
# Hilo periódico
# ════════════════════════════════════════════════════════════════════════════
def test_background_thread_purges_and_stops(store, cfg, clock) -> None:
    reaper = Reaper(store, cfg)
    store.advertise("p1", "movie.mp4", "10.0.0.5", 6000)
    clock.advance(120)

    reaper.start()
    try:
        assert reaper.running
        assert _wait_for(lambda: store.search("movie") == [])
    finally:
        reaper.stop(timeout=5)

    assert not reaper.running


def test_start_twice_is_noop(store, cfg) -> None:
    reaper = Reaper(store, cfg)
    reaper.start()
    first = reaper._thread
    reaper.start()
    assert reaper._thread is first
    reaper.stop(timeout=5)


def test_stop_waits_for_inflight_sweep(cfg) -> None:
    started = threading.Event()
    release = threading.Event()
    finished = []

    class _SlowStore:
        def purge_older_than(self, threshold_s, grace_s=0.0):
            started.set()
            release.wait(5)
            finished.append(True)
            return 0

    reaper = Reaper(_SlowStore(), cfg)
    reaper.start()
    assert started.wait(5)

    stopper = threading.Thread(target=reaper.stop, kwargs={"timeout": 5})
    stopper.start()
    time.sleep(0.05)
    assert stopper.is_alive()  # sigue esperando al barrido

    release.set()
    stopper.join(5)
    assert finished == [True]
    assert not reaper.running


def test_sweep_errors_do_not_kill_the_thread(cfg) -> None:
    calls = []

    class _FlakyStore:
        def purge_older_than(self, threshold_s, grace_s=0.0):
            calls.append(threshold_s)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return 0

    reaper = Reaper(_FlakyStore(), cfg)
    reaper.start()
    try:
        assert _wait_for(lambda: len(calls) >= 2)
    finally:
        reaper.stop(timeout=5)

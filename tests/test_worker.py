"""Tests for the per-thread post loop and the dispatcher that fans it out."""

from __future__ import annotations

import json
import logging
import random
import threading

import pytest

from mock_client.producer import FailureKind, Outcome, Transport
from mock_client.scheduler import resolve
from mock_client.worker import Dispatcher, Worker


class _FakeTransport(Transport):
    def __init__(self, outcome: Outcome | None = None) -> None:
        self.url = "http://collector.test/api/readings/add"
        self.outcome = outcome or Outcome.response(200)
        self.payloads: list[bytes] = []
        self.thread = threading.current_thread()
        self.closed = False

    def submit(self, payload: bytes) -> Outcome:
        self.payloads.append(payload)
        return self.outcome

    def close(self) -> None:
        self.closed = True


class _StopLoop(Exception):
    pass


class _RecordingSleep:
    def __init__(self, limit: int | None = None) -> None:
        self.calls: list[float] = []
        self.limit = limit

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.limit is not None and len(self.calls) >= self.limit:
            raise _StopLoop


def test_bounded_worker_skips_sleep_after_last_post() -> None:
    schedule = resolve(post_amount=5, time_per_post=0.25)
    transport = _FakeTransport()
    sleep = _RecordingSleep()
    worker = Worker(schedule, 0, transport, random.Random(1), sleep)

    worker.run()

    assert len(transport.payloads) == 5
    assert sleep.calls == [0.25] * 4
    assert worker.posts_made == 5
    assert worker.posts_failed == 0


def test_single_post_never_sleeps() -> None:
    transport = _FakeTransport()
    sleep = _RecordingSleep()
    Worker(resolve(), 0, transport, random.Random(1), sleep).run()
    assert len(transport.payloads) == 1
    assert sleep.calls == []


def test_failed_posts_do_not_stop_the_loop(caplog: pytest.LogCaptureFixture) -> None:
    transport = _FakeTransport(Outcome.failed(FailureKind.CONNECTION, detail="refused"))
    worker = Worker(resolve(post_amount=3, time_per_post=0.0), 4, transport, random.Random(1), _RecordingSleep())

    with caplog.at_level(logging.ERROR):
        worker.run()

    assert len(transport.payloads) == 3
    assert worker.posts_failed == 3
    errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert errors == ["[Thread 4]: Response error from Ambi backend: request error"] * 3


def test_error_status_is_counted_as_failed(caplog: pytest.LogCaptureFixture) -> None:
    transport = _FakeTransport(Outcome.response(503))
    worker = Worker(resolve(post_amount=2, time_per_post=0.0), 1, transport, random.Random(1), _RecordingSleep())
    with caplog.at_level(logging.ERROR):
        worker.run()
    assert worker.posts_failed == 2
    assert "[Thread 1]: Response from Ambi backend: 503" in caplog.text


def test_indefinite_worker_always_sleeps() -> None:
    schedule = resolve(time_per_post=1.5)
    assert schedule.loop_indefinitely
    transport = _FakeTransport(Outcome.failed(FailureKind.TIMEOUT))
    sleep = _RecordingSleep(limit=4)

    with pytest.raises(_StopLoop):
        Worker(schedule, 0, transport, random.Random(1), sleep).run()

    assert len(transport.payloads) == 4
    assert sleep.calls == [1.5] * 4


def test_posted_payload_is_an_encoded_reading() -> None:
    transport = _FakeTransport()
    Worker(resolve(), 0, transport, random.Random(3), _RecordingSleep()).run()
    body = json.loads(transport.payloads[0])
    assert set(body) == {"temperature", "humidity", "pressure", "dust_concentration", "air_purity"}


def test_single_thread_runs_on_calling_thread() -> None:
    transports: list[_FakeTransport] = []

    def factory() -> _FakeTransport:
        transport = _FakeTransport()
        transports.append(transport)
        return transport

    Dispatcher(resolve(post_amount=2, time_per_post=0.0), factory, sleep=_RecordingSleep()).run()

    (transport,) = transports
    assert transport.thread is threading.current_thread()
    assert len(transport.payloads) == 2
    assert transport.closed


def test_single_thread_fault_reaches_caller() -> None:
    def factory() -> _FakeTransport:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        Dispatcher(resolve(), factory, sleep=_RecordingSleep()).run()


def test_all_threads_are_joined_before_returning() -> None:
    transports: list[_FakeTransport] = []
    rngs: list[random.Random] = []

    def factory() -> _FakeTransport:
        transport = _FakeTransport()
        transports.append(transport)
        return transport

    def rng_factory() -> random.Random:
        rng = random.Random()
        rngs.append(rng)
        return rng

    sleep = _RecordingSleep()
    Dispatcher(resolve(post_amount=2, time_per_post=0.0, num_threads=3), factory, rng_factory, sleep).run()

    assert len(transports) == 3
    assert sum(len(t.payloads) for t in transports) == 6
    assert all(t.closed for t in transports)
    assert len({id(t.thread) for t in transports}) == 3
    assert all(t.thread is not threading.current_thread() for t in transports)
    assert len({id(r) for r in rngs}) == 3
    assert len(sleep.calls) == 3


def test_failing_thread_does_not_affect_the_others() -> None:
    transports: dict[str, _FakeTransport] = {}

    def factory() -> _FakeTransport:
        name = threading.current_thread().name
        outcome = Outcome.failed(FailureKind.UNSPECIFIED) if name == "worker-2" else None
        transport = _FakeTransport(outcome)
        transports[name] = transport
        return transport

    Dispatcher(resolve(post_amount=3, time_per_post=0.0, num_threads=4), factory, sleep=_RecordingSleep()).run()

    assert sorted(transports) == ["worker-0", "worker-1", "worker-2", "worker-3"]
    assert all(len(t.payloads) == 3 for t in transports.values())


def test_crashing_thread_is_reported_and_the_rest_are_joined(caplog: pytest.LogCaptureFixture) -> None:
    transports: list[_FakeTransport] = []

    def factory() -> _FakeTransport:
        if threading.current_thread().name == "worker-2":
            raise RuntimeError("no connection for you")
        transport = _FakeTransport()
        transports.append(transport)
        return transport

    with caplog.at_level(logging.ERROR):
        Dispatcher(resolve(post_amount=2, time_per_post=0.0, num_threads=4), factory, sleep=_RecordingSleep()).run()

    assert len(transports) == 3
    assert all(len(t.payloads) == 2 for t in transports)
    assert "[Thread 2]: Worker crashed" in caplog.text

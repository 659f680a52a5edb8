"""
Delayed capture trigger and the latest-frame worker.
"""
from __future__ import annotations
import threading
import time

from nidscan.capture.scheduler import CaptureScheduler, LatestFrameWorker


def test_armed_trigger_fires_once():
    fired = threading.Event()
    sch = CaptureScheduler(fired.set, delay_s=0.05)
    assert sch.arm() is True
    assert sch.arm() is False          # already pending
    assert fired.wait(2.0)
    assert sch.fired == 1
    assert not sch.pending
    assert sch.capturing
    assert sch.arm() is False          # capture in progress until reset()
    sch.reset()
    assert not sch.capturing


def test_cancel_discards_pending_trigger():
    fired = threading.Event()
    sch = CaptureScheduler(fired.set, delay_s=0.2)
    sch.arm()
    assert sch.pending
    assert sch.cancel() is True
    assert not sch.pending
    assert not fired.wait(0.5)
    assert sch.fired == 0
    assert sch.cancelled == 1
    assert sch.cancel() is False       # nothing left to cancel


def test_rearm_after_cancel():
    fired = threading.Event()
    sch = CaptureScheduler(fired.set, delay_s=0.05)
    sch.arm()
    sch.cancel()
    assert sch.arm() is True
    assert fired.wait(2.0)


def test_failing_capture_reopens_scheduler():
    done = threading.Event()

    def boom():
        done.set()
        raise RuntimeError("camera gone")

    sch = CaptureScheduler(boom, delay_s=0.01)
    sch.arm()
    assert done.wait(2.0)
    for _ in range(100):
        if not sch.capturing:
            break
        time.sleep(0.01)
    assert not sch.capturing
    assert sch.arm() is True
    sch.shutdown()


def test_worker_keeps_only_latest_frame():
    started = threading.Event()
    release = threading.Event()
    seen = []

    def process(frame):
        if frame == 0:
            started.set()
            release.wait(2.0)
        seen.append(frame)
        return frame

    results = []
    worker = LatestFrameWorker(process, on_result=results.append)
    try:
        worker.submit(0)
        assert started.wait(2.0)
        for i in range(1, 5):
            worker.submit(i)
        release.set()
        assert worker.wait_idle(2.0)
    finally:
        worker.stop(2.0)

    assert seen == [0, 4]
    assert results == [0, 4]
    assert worker.dropped == 3
    assert worker.processed == 2


def test_worker_survives_processing_errors():
    def process(frame):
        if frame == "bad":
            raise ValueError("broken frame")
        return frame

    results = []
    worker = LatestFrameWorker(process, on_result=results.append)
    try:
        worker.submit("bad")
        assert worker.wait_idle(2.0)
        worker.submit("good")
        assert worker.wait_idle(2.0)
    finally:
        worker.stop(2.0)
    assert results == ["good"]
    assert worker.errors == 1

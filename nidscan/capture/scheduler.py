# nidscan/capture/scheduler.py
"""
Threading pieces around the live path:

- CaptureScheduler: one pending, cancelable, delayed capture trigger.
- LatestFrameWorker: runs frame analysis on its own thread, keeping only
  the newest submitted frame (older, not-yet-started frames are dropped).
"""
from __future__ import annotations
import sys
import threading
from typing import Any, Callable, Optional


class CaptureScheduler:
    """
    arm() starts a one-shot timer unless one is pending or a capture is in
    progress; cancel() discards a pending trigger; reset() re-opens the
    scheduler once the caller is done with a capture.
    """

    def __init__(self, on_fire: Callable[[], Any], delay_s: float = 1.0, debug: bool = False):
        self._on_fire = on_fire
        self.delay_s = float(delay_s)
        self.debug = debug
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._capturing = False
        self.fired = 0
        self.cancelled = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def capturing(self) -> bool:
        with self._lock:
            return self._capturing

    def arm(self) -> bool:
        """Schedule a capture; returns True only if a new timer was started."""
        with self._lock:
            if self._timer is not None or self._capturing:
                return False
            t = threading.Timer(self.delay_s, self._fire)
            t.daemon = True
            self._timer = t
        t.start()
        if self.debug:
            print(f"[capture] armed ({self.delay_s:.2f}s)")
        return True

    def cancel(self) -> bool:
        """Drop a pending trigger; returns True if one was pending."""
        with self._lock:
            t, self._timer = self._timer, None
            if t is None:
                return False
            self.cancelled += 1
        t.cancel()
        if self.debug:
            print("[capture] cancelled")
        return True

    def reset(self) -> None:
        """Capture finished (saved or failed): allow the next arm()."""
        with self._lock:
            self._capturing = False

    def shutdown(self) -> None:
        self.cancel()
        self.reset()

    def _fire(self) -> None:
        with self._lock:
            # cancel() raced us and already cleared the slot
            if self._timer is not threading.current_thread():
                return
            self._timer = None
            self._capturing = True
            self.fired += 1
        if self.debug:
            print("[capture] fire")
        try:
            self._on_fire()
        except Exception as e:
            print(f"[capture] Capture error: {e} → re-arming.", file=sys.stderr)
            self.reset()


class LatestFrameWorker:
    """Single worker thread with a one-slot mailbox ("keep only latest")."""

    def __init__(self, process: Callable[[Any], Any],
                 on_result: Optional[Callable[[Any], Any]] = None):
        self._process = process
        self._on_result = on_result
        self._cond = threading.Condition()
        self._slot: Any = None
        self._has_frame = False
        self._busy = False
        self._stop = threading.Event()
        self.processed = 0
        self.dropped = 0
        self.errors = 0
        self._thread = threading.Thread(target=self._run, name="nidscan-frames", daemon=True)
        self._thread.start()

    def submit(self, frame: Any) -> None:
        with self._cond:
            if self._has_frame:
                self.dropped += 1
            self._slot = frame
            self._has_frame = True
            self._cond.notify()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the mailbox is empty and nothing is in flight."""
        with self._cond:
            return self._cond.wait_for(lambda: not self._has_frame and not self._busy, timeout)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        with self._cond:
            self._cond.notify_all()
        self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._has_frame or self._stop.is_set())
                if self._stop.is_set():
                    return
                frame, self._slot = self._slot, None
                self._has_frame = False
                self._busy = True
            try:
                result = self._process(frame)
                if self._on_result is not None:
                    self._on_result(result)
                self.processed += 1
            except Exception as e:
                self.errors += 1
                print(f"[pipeline] Frame error: {e} (continuing)", file=sys.stderr)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

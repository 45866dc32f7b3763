"""
Cancellation token and stop conditions for optimization runs.

Stop conditions are polled once per round, before the round starts. An in-flight
fan-out or judge call is never interrupted; it runs to completion or natural failure.
"""

import logging
import os
import signal
import threading
import time
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class StopperProtocol(Protocol):
    """
    Protocol for stop condition objects.

    A stopper is a callable that returns True once no further round should start.
    """

    def __call__(self, run_state) -> bool:
        """
        Check if the optimization should stop.

        Args:
            run_state: The current RunState (population, history, next round number)

        Returns:
            True if the loop should stop before the next round, False otherwise.
        """
        ...


class CancellationToken(StopperProtocol):
    # cooperative cancellation flag; cancel() may be called from any thread or a signal handler

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def __call__(self, run_state=None) -> bool:
        return self._event.is_set()


class TimeoutStopCondition(StopperProtocol):
    # stops once timeout_seconds have passed since construction

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        self._started = time.monotonic()

    def __call__(self, run_state) -> bool:
        return time.monotonic() - self._started > self.timeout_seconds


class FileStopper(StopperProtocol):
    # stops when a sentinel file appears, e.g. `touch .stop_optimizer`

    def __init__(self, stop_file_path: str):
        self.stop_file_path = stop_file_path

    def __call__(self, run_state) -> bool:
        return os.path.exists(self.stop_file_path)


class NoDecisiveRoundStopper(StopperProtocol):
    # stops after N consecutive rounds in which the phrasing did not decide the winner

    def __init__(self, max_consecutive_non_decisive: int):
        self.max_consecutive_non_decisive = max_consecutive_non_decisive

    def __call__(self, run_state) -> bool:
        streak = 0
        for record in reversed(run_state.history):
            if record.verdict.prompt_was_decisive:
                break
            streak += 1
        return streak >= self.max_consecutive_non_decisive


class SignalStopper(StopperProtocol):
    # first SIGINT/SIGTERM requests a stop at the next round boundary; a repeat goes to the previous handler

    def __init__(self, signals=None, escalate_on_repeat: bool = True):
        self.signals = signals or [signal.SIGINT, signal.SIGTERM]
        self.escalate_on_repeat = escalate_on_repeat
        self._stop_requested = False
        self._previous_handlers = {}
        self._install()

    def _install(self):
        def _request_stop(signum, frame):
            if self._stop_requested and self.escalate_on_repeat:
                self._escalate(signum, frame)
                return
            self._stop_requested = True

        for sig in self.signals:
            try:
                self._previous_handlers[sig] = signal.signal(sig, _request_stop)
            except (OSError, ValueError):
                # not on the main thread, or unsupported on this platform
                pass

    def _escalate(self, signum, frame):
        previous = self._previous_handlers.get(signum)
        if callable(previous):
            previous(signum, frame)
            return
        # SIG_DFL / SIG_IGN / None: hand the signal back to the OS disposition
        signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        signal.raise_signal(signum)

    def __call__(self, run_state) -> bool:
        return self._stop_requested

    def cleanup(self):
        """Restore the handlers that were active before this stopper was created."""
        for sig, handler in self._previous_handlers.items():
            try:
                signal.signal(sig, handler)
            except (OSError, ValueError):
                pass
        self._previous_handlers.clear()


class CompositeStopper(StopperProtocol):
    # combines several stop conditions with "any" or "all" semantics

    def __init__(self, *stoppers: Callable[[Any], bool], mode: str = "any"):
        if mode not in ("any", "all"):
            raise ValueError(f"Unknown mode: {mode}")
        self.stoppers = stoppers
        self.mode = mode

    def __call__(self, run_state) -> bool:
        checks = (stopper(run_state) for stopper in self.stoppers)
        return any(checks) if self.mode == "any" else all(checks)


def should_stop(stoppers: Sequence[Callable[[Any], bool]] | None, run_state) -> bool:
    """Poll every stopper; one that raises is logged and counts as "keep going"."""
    for stopper in stoppers or ():
        try:
            if stopper(run_state):
                return True
        except Exception as e:
            logger.warning(f"Stop condition {stopper} failed: {e}")
    return False

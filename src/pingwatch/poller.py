# --- Future imports ---
from __future__ import annotations

# --- Standard library imports ---
import time
import signal
import threading
from typing import Callable

# --- Project imports ---
from .logger import get_logger
from .telemetry import Reporter
from .scheduling_policy import SchedulingPolicy
from .models import (
    PollConfig,
    PollOutcome,
    PollPhase,
    PollReport,
    PollState,
    ProbeResult,
    ProbeTarget,
)


class ShutdownSignal:
    """
    Cooperative stop flag set from SIGINT/SIGTERM.

    The handler only flips the flag: an in-flight probe or recovery call
    runs to completion, the inter-tick sleep is cut short, and the loop
    exits before the next tick.
    """

    def __init__(self):
        self._event = threading.Event()
        self.signum: int | None = None

    def install(self, signals=(signal.SIGINT, signal.SIGTERM)) -> None:
        for signum in signals:
            signal.signal(signum, self._handle)

    def _handle(self, signum, frame) -> None:
        self.signum = signum
        self._event.set()

    def request(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; True if shutdown was requested meanwhile."""
        return self._event.wait(seconds)


class PollController:
    """
    Bounded (or unbounded) reachability poll loop with a recovery action.

    Responsibilities:
    • Probe the target once per tick, never concurrently
    • Invoke the actuator exactly once per failed probe
    • Own and update the PollState counters
    • Stop on success (wait mode), deadline, or shutdown

    Non-responsibilities:
    • No retries inside a probe or recovery call
    • No argument or environment validation
    """

    def __init__(
        self,
        prober,
        actuator,
        reporter: Reporter | None = None,
        shutdown: ShutdownSignal | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        # --- Dependencies ---
        self.prober = prober
        self.actuator = actuator
        self.reporter = reporter or Reporter()
        self.shutdown = shutdown or ShutdownSignal()
        self.clock = clock
        self.logger = get_logger("poller")

        # --- Runtime State ---
        self.phase = PollPhase.IDLE

    def _enter(self, phase: PollPhase) -> None:
        self.logger.debug(f"{self.phase} → {phase}")
        self.phase = phase

    def _recover(self, target: ProbeTarget, state: PollState) -> None:
        self._enter(PollPhase.RECOVERING)
        result = self.actuator.recover(target)
        state.record_recovery(result)
        self.reporter.recovery(self.actuator.label, result, state)
        self._enter(PollPhase.IDLE)

    def _finish(self, outcome: PollOutcome, state: PollState) -> PollReport:
        self._enter(PollPhase.DONE)
        elapsed = state.elapsed(self.clock())

        if outcome is PollOutcome.TIMEOUT:
            self.reporter.timeout(state, elapsed)
        elif outcome is PollOutcome.CANCELLED:
            self.reporter.cancelled(state, elapsed)

        return PollReport(outcome=outcome, state=state, elapsed=elapsed)

    def run(self, target: ProbeTarget, config: PollConfig) -> PollReport:
        """
        Run the loop until it reaches a terminal outcome.

        Returns:
            PollReport with SUCCESS (wait mode, target answered), TIMEOUT
            (bounded mode, deadline passed) or CANCELLED (shutdown).
        """
        policy = SchedulingPolicy(config)
        state = PollState(started_at=self.clock())
        self.phase = PollPhase.IDLE

        if config.force_recovery and not self.shutdown.is_set():
            self.logger.info("Forced recovery requested")
            self._recover(target, state)

        while not self.shutdown.is_set():
            tick_start = self.clock()
            elapsed = state.elapsed(tick_start)

            if policy.expired(elapsed):
                return self._finish(PollOutcome.TIMEOUT, state)

            # --- Probe ---
            self._enter(PollPhase.PROBING)
            result = self.prober.probe(target, config.probe_timeout)
            state.record_probe(result)
            elapsed = state.elapsed(self.clock())
            self.reporter.probe(
                target, result, state, elapsed,
                expected_failure=config.until_reachable,
            )

            if result is ProbeResult.REACHABLE:
                if config.until_reachable:
                    self.reporter.success(target, state, elapsed)
                    return self._finish(PollOutcome.SUCCESS, state)
                self._enter(PollPhase.IDLE)
            elif self.shutdown.is_set():
                # Stop arrived during the probe: no new side effects
                break
            else:
                self._recover(target, state)

            if config.verbose:
                self.reporter.statistics(state, state.elapsed(self.clock()), config)

            # --- Sleep until next tick ---
            now = self.clock()
            delay = policy.next_sleep(now - tick_start, state.elapsed(now))
            self.logger.debug(f"💤 Sleeping ... {delay:.2f} s")
            if delay > 0 and self.shutdown.wait(delay):
                break

        return self._finish(PollOutcome.CANCELLED, state)

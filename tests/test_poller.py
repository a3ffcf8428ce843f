import pytest
import logging

from pingwatch.logger import setup_logging
from pingwatch.poller import PollController, ShutdownSignal
from pingwatch.models import (
    PollConfig,
    PollOutcome,
    PollPhase,
    ProbeResult,
    ProbeTarget,
    RecoveryResult,
)

UP = ProbeResult.REACHABLE
DOWN = ProbeResult.UNREACHABLE


# ========
# FIXTURES
# ========

class FakeClock:
    """Monotonic clock that only moves when something sleeps or probes."""
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

class FakeShutdown(ShutdownSignal):
    """Shutdown whose wait() advances the fake clock instead of blocking."""
    def __init__(self, clock: FakeClock, stop_after_waits: int | None = None):
        super().__init__()
        self.clock = clock
        self.sleeps = []
        self.stop_after_waits = stop_after_waits

    def wait(self, seconds: float) -> bool:
        self.sleeps.append(seconds)
        self.clock.now += seconds
        if self.stop_after_waits is not None and len(self.sleeps) >= self.stop_after_waits:
            self.request()
        return self.is_set()

class ScriptedProber:
    """Returns scripted results, then repeats the last one forever."""
    def __init__(self, clock: FakeClock, results, cost: float = 0.0):
        self.clock = clock
        self.results = list(results)
        self.cost = cost
        self.calls = []

    def probe(self, target, timeout):
        self.calls.append((self.clock.now, timeout))
        self.clock.now += self.cost
        index = min(len(self.calls) - 1, len(self.results) - 1)
        return self.results[index]

class FakeActuator:
    label = "fake-recovery"

    def __init__(self, log: list, success: bool = True):
        self.log = log
        self.success = success
        self.calls = 0

    def recover(self, target):
        self.calls += 1
        self.log.append("recover")
        if self.success:
            return RecoveryResult.ok("fake")
        return RecoveryResult.failure("fake: exit status 1")

@pytest.fixture(autouse=True)
def configure_logging():
    setup_logging()
    yield   # allow test to run

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def target():
    return ProbeTarget(address="192.168.1.6", mac="aa:bb:cc:dd:ee:ff", interface="eth0")

def make_controller(clock, results, success=True, cost=0.0, stop_after_waits=None):
    events = []
    prober = ScriptedProber(clock, results, cost=cost)
    original_probe = prober.probe

    def probe(target, timeout):
        events.append("probe")
        return original_probe(target, timeout)

    prober.probe = probe
    actuator = FakeActuator(events, success=success)
    shutdown = FakeShutdown(clock, stop_after_waits=stop_after_waits)
    controller = PollController(prober, actuator, shutdown=shutdown, clock=clock)
    return controller, prober, actuator, shutdown, events


# ============================
# TEST GROUP: Wait-mode scenarios
# ============================

def test_reachable_immediately(clock, target):
    """Target up on first probe → one probe, success, zero recoveries"""
    controller, prober, actuator, shutdown, _ = make_controller(clock, [UP])
    config = PollConfig(interval=4, probe_timeout=1, deadline=300)

    report = controller.run(target, config)

    assert report.outcome is PollOutcome.SUCCESS
    assert report.state.attempts == 1
    assert report.state.recoveries == 0
    assert actuator.calls == 0
    assert shutdown.sleeps == []
    assert controller.phase is PollPhase.DONE

def test_unreachable_three_ticks_then_reachable(clock, target):
    """Three failed probes → exactly three recoveries, failure count reset"""
    controller, _, actuator, _, _ = make_controller(clock, [DOWN, DOWN, DOWN, UP])
    config = PollConfig(interval=1, probe_timeout=0.5, deadline=300)

    report = controller.run(target, config)

    assert report.outcome is PollOutcome.SUCCESS
    assert actuator.calls == 3
    assert report.state.recoveries == 3
    assert report.state.attempts == 4
    assert report.state.failures == 3
    assert report.state.consecutive_failures == 0

def test_always_unreachable_hits_deadline(clock, target):
    """deadline=10s, interval=4s → 2–3 probes, then timeout"""
    controller, prober, actuator, _, _ = make_controller(clock, [DOWN])
    config = PollConfig(interval=4, probe_timeout=1, deadline=10)

    report = controller.run(target, config)

    assert report.outcome is PollOutcome.TIMEOUT
    assert 2 <= len(prober.calls) <= 3
    assert actuator.calls == len(prober.calls)
    assert report.state.consecutive_failures > 0
    assert report.elapsed == pytest.approx(10)

@pytest.mark.parametrize(
    "deadline, interval",
    [
        (1, 4),
        (3, 4),
        (0.5, 60),
    ],
)
def test_deadline_shorter_than_interval(clock, target, deadline, interval):
    """D < I → at most one probe before the timeout"""
    controller, prober, _, shutdown, _ = make_controller(clock, [DOWN])
    config = PollConfig(interval=interval, probe_timeout=0.25, deadline=deadline)

    report = controller.run(target, config)

    assert report.outcome is PollOutcome.TIMEOUT
    assert len(prober.calls) <= 1
    # Sleep is capped at the deadline, never a full interval
    assert sum(shutdown.sleeps) == pytest.approx(deadline)

def test_probe_uses_configured_timeout(clock, target):
    controller, prober, _, _, _ = make_controller(clock, [UP])
    controller.run(target, PollConfig(interval=4, probe_timeout=1.5, deadline=30))

    assert prober.calls == [(0.0, 1.5)]


# =============================
# TEST GROUP: Counter invariants
# =============================

@pytest.mark.parametrize(
    "results",
    [
        [UP],
        [DOWN, UP],
        [DOWN, DOWN, UP],
        [DOWN, UP, DOWN, DOWN, DOWN, UP],
    ],
)
def test_failure_count_zero_after_success(clock, target, results):
    """Any sequence ending in success finishes with consecutive failures at 0"""
    controller, _, actuator, _, _ = make_controller(clock, results)
    report = controller.run(target, PollConfig(interval=2, probe_timeout=1))

    assert report.outcome is PollOutcome.SUCCESS
    assert report.state.consecutive_failures == 0
    assert actuator.calls == results.count(DOWN)

@pytest.mark.parametrize("failures", [1, 2, 5, 9])
def test_one_recovery_per_failed_probe(clock, target, failures):
    """N consecutive failures → actuator invoked exactly N times, interleaved"""
    controller, _, actuator, _, events = make_controller(clock, [DOWN] * failures + [UP])
    controller.run(target, PollConfig(interval=2, probe_timeout=1))

    assert actuator.calls == failures
    assert events == ["probe", "recover"] * failures + ["probe"]

def test_transient_failure_resets_without_hysteresis(clock, target):
    """DOWN, UP, DOWN in monitor mode → current failures is 1, not 2"""
    controller, _, _, _, _ = make_controller(
        clock, [DOWN, UP, DOWN], stop_after_waits=3
    )
    config = PollConfig(interval=2, probe_timeout=1, until_reachable=False)

    report = controller.run(target, config)

    assert report.outcome is PollOutcome.CANCELLED
    assert report.state.attempts == 3
    assert report.state.failures == 2
    assert report.state.consecutive_failures == 1

def test_failed_recovery_is_not_counted_and_loop_continues(clock, target):
    controller, _, actuator, _, _ = make_controller(clock, [DOWN, DOWN, UP], success=False)
    report = controller.run(target, PollConfig(interval=2, probe_timeout=1, deadline=60))

    assert report.outcome is PollOutcome.SUCCESS
    assert actuator.calls == 2
    assert report.state.recovery_attempts == 2
    assert report.state.recoveries == 0

def test_repeated_reachable_probes_only_touch_attempts(clock, target):
    """Probing an already reachable target just bumps attempts"""
    controller, _, actuator, _, _ = make_controller(clock, [UP], stop_after_waits=4)
    report = controller.run(
        target, PollConfig(interval=5, probe_timeout=1, until_reachable=False)
    )

    assert report.state.attempts == 4
    assert report.state.failures == 0
    assert report.state.consecutive_failures == 0
    assert report.state.recoveries == 0
    assert actuator.calls == 0


# ==========================
# TEST GROUP: Forced recovery
# ==========================

def test_force_recovers_before_first_probe(clock, target):
    controller, _, actuator, _, events = make_controller(clock, [UP])
    config = PollConfig(interval=4, probe_timeout=1, deadline=300, force_recovery=True)

    report = controller.run(target, config)

    assert events == ["recover", "probe"]
    assert report.outcome is PollOutcome.SUCCESS
    assert report.state.recoveries == 1

def test_force_only_applies_once(clock, target):
    controller, _, _, _, events = make_controller(clock, [UP], stop_after_waits=2)
    config = PollConfig(
        interval=4, probe_timeout=1, force_recovery=True, until_reachable=False
    )

    controller.run(target, config)

    assert events == ["recover", "probe", "probe"]


# ===============================
# TEST GROUP: Scheduling & shutdown
# ===============================

def test_sleep_subtracts_probe_time(clock, target):
    """Ticks start `interval` apart: probe runtime is deducted from the sleep"""
    controller, prober, _, shutdown, _ = make_controller(
        clock, [DOWN, DOWN, UP], cost=1.0
    )
    controller.run(target, PollConfig(interval=4, probe_timeout=2))

    assert shutdown.sleeps == [3.0, 3.0]
    assert [start for start, _ in prober.calls] == [0.0, 4.0, 8.0]

def test_unbounded_monitor_runs_until_shutdown(clock, target):
    controller, prober, _, _, _ = make_controller(clock, [UP], stop_after_waits=25)
    config = PollConfig(interval=60, probe_timeout=5, until_reachable=False)

    report = controller.run(target, config)

    assert report.outcome is PollOutcome.CANCELLED
    assert len(prober.calls) == 25
    assert report.elapsed == pytest.approx(25 * 60)

def test_shutdown_before_start_skips_probing(clock, target):
    controller, prober, actuator, shutdown, _ = make_controller(clock, [DOWN])
    shutdown.request()

    report = controller.run(target, PollConfig(interval=4, probe_timeout=1))

    assert report.outcome is PollOutcome.CANCELLED
    assert prober.calls == []
    assert actuator.calls == 0

@pytest.mark.parametrize("until_reachable", [True, False])
def test_shutdown_during_failed_ping_skips_recovery(clock, target, until_reachable):
    """Stop requested mid-ping → the ping finishes and no recovery follows"""
    controller, prober, actuator, shutdown, events = make_controller(clock, [DOWN])
    original = prober.probe

    def ping_then_stop(t, timeout):
        shutdown.request()
        return original(t, timeout)

    prober.probe = ping_then_stop
    config = PollConfig(interval=4, probe_timeout=1, until_reachable=until_reachable)

    report = controller.run(target, config)

    assert report.outcome is PollOutcome.CANCELLED
    assert events == ["probe"]
    assert actuator.calls == 0
    assert report.state.recoveries == 0
    assert shutdown.sleeps == []

def test_shutdown_before_start_skips_forced_recovery(clock, target):
    controller, _, actuator, shutdown, _ = make_controller(clock, [UP])
    shutdown.request()

    report = controller.run(
        target, PollConfig(interval=4, probe_timeout=1, force_recovery=True)
    )

    assert report.outcome is PollOutcome.CANCELLED
    assert actuator.calls == 0

def test_shutdown_during_recovery_finishes_in_flight_call(clock, target):
    """A stop requested mid-recovery lets that call finish, then no more ticks"""
    controller, prober, actuator, shutdown, _ = make_controller(clock, [DOWN])
    original = actuator.recover

    def recover_then_stop(t):
        result = original(t)
        shutdown.request()
        return result

    actuator.recover = recover_then_stop
    report = controller.run(target, PollConfig(interval=4, probe_timeout=1))

    assert report.outcome is PollOutcome.CANCELLED
    assert len(prober.calls) == 1
    assert report.state.recoveries == 1

def test_shutdown_signal_handler_sets_flag():
    shutdown = ShutdownSignal()
    shutdown._handle(15, None)

    assert shutdown.is_set()
    assert shutdown.signum == 15
    assert shutdown.wait(0) is True


# =====================
# TEST GROUP: Reporting
# =====================

def test_timeout_logged_as_error(clock, target, caplog):
    controller, _, _, _, _ = make_controller(clock, [DOWN])
    with caplog.at_level(logging.DEBUG):
        controller.run(target, PollConfig(interval=4, probe_timeout=1, deadline=8))

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "Timeout reached after 2 attempt(s)" in errors[0].getMessage()

def test_monitor_failures_warn_and_recovery_failures_warn(clock, target, caplog):
    controller, _, _, _, _ = make_controller(clock, [DOWN], success=False, stop_after_waits=1)
    with caplog.at_level(logging.INFO):
        controller.run(target, PollConfig(interval=4, probe_timeout=1, until_reachable=False))

    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any("UNREACHABLE" in m for m in warnings)
    assert any("RECOVERY" in m and "FAILED" in m for m in warnings)

def test_quiet_run_prints_no_info(clock, target, capsys):
    """Without verbosity only WARN/ERROR reach the terminal, on stderr"""
    setup_logging(level=logging.WARNING)
    controller, _, _, _, _ = make_controller(clock, [DOWN, UP])
    controller.run(target, PollConfig(interval=4, probe_timeout=1, deadline=60))

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""

def test_verbose_run_prints_statistics(clock, target, capsys):
    setup_logging(level=logging.INFO)
    controller, _, _, _, _ = make_controller(clock, [DOWN, UP])
    controller.run(target, PollConfig(interval=4, probe_timeout=1, deadline=60, verbose=True))

    out = capsys.readouterr().out
    assert "STATS" in out
    assert "remaining=" in out
    assert "is responding after 2 attempt(s)" in out

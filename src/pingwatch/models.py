# --- Future imports ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum, auto
from dataclasses import dataclass, field


class ProbeResult(Enum):
    REACHABLE = auto()
    UNREACHABLE = auto()

    def __str__(self) -> str:
        return self.name

class PollOutcome(Enum):
    SUCCESS = auto()
    TIMEOUT = auto()
    CANCELLED = auto()

    def __str__(self) -> str:
        return self.name

class PollPhase(Enum):
    """
    Controller phases.

    • IDLE        : waiting for the next tick
    • PROBING     : single reachability check in flight
    • RECOVERING  : corrective action in flight
    • DONE        : loop finished (success, timeout or cancellation)
    """
    IDLE = auto()
    PROBING = auto()
    RECOVERING = auto()
    DONE = auto()

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ProbeTarget:
    """
    What is being checked for reachability.

    `mac` and `interface` are only consumed by recovery actions;
    `port` switches probing from ICMP to a TCP connect.
    """
    address: str
    mac: str | None = None
    interface: str | None = None
    port: int | None = None


@dataclass(frozen=True)
class PollConfig:
    """
    Loop timing and behavior, fixed for the lifetime of one run.

    `deadline=None` runs until cancelled. `until_reachable=True` stops on
    the first successful probe (wait mode); otherwise the loop keeps
    monitoring after success.
    """
    interval: float
    probe_timeout: float
    deadline: float | None = None
    verbose: bool = False
    force_recovery: bool = False
    until_reachable: bool = True

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError("Interval must be a positive number")
        if self.probe_timeout <= 0:
            raise ValueError("Probe timeout must be a positive number")
        if self.deadline is not None and self.deadline <= 0:
            raise ValueError("Timeout must be a positive number")
        if self.probe_timeout >= self.interval:
            raise ValueError(
                f"Probe timeout ({self.probe_timeout}s) must be shorter "
                f"than the interval ({self.interval}s)"
            )

    @property
    def bounded(self) -> bool:
        return self.deadline is not None


@dataclass(frozen=True)
class RecoveryResult:
    success: bool
    reason: str | None = None
    details: tuple[str, ...] = ()

    @classmethod
    def ok(cls, *details: str) -> RecoveryResult:
        return cls(success=True, details=details)

    @classmethod
    def failure(cls, reason: str, *details: str) -> RecoveryResult:
        return cls(success=False, reason=reason, details=details)


@dataclass
class PollState:
    """
    Run-time counters, owned by the poll controller.

    Invariants:
      - consecutive_failures resets only on a reachable probe
      - recoveries counts actuator calls that were issued successfully
    """
    started_at: float
    attempts: int = 0
    consecutive_failures: int = 0
    failures: int = 0
    recovery_attempts: int = 0
    recoveries: int = 0

    def record_probe(self, result: ProbeResult) -> None:
        self.attempts += 1
        if result is ProbeResult.REACHABLE:
            self.consecutive_failures = 0
        else:
            self.consecutive_failures += 1
            self.failures += 1

    def record_recovery(self, result: RecoveryResult) -> None:
        self.recovery_attempts += 1
        if result.success:
            self.recoveries += 1

    def elapsed(self, now: float) -> float:
        return now - self.started_at


@dataclass(frozen=True)
class PollReport:
    outcome: PollOutcome
    state: PollState = field(compare=False)
    elapsed: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.outcome is PollOutcome.SUCCESS

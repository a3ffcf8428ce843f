# --- Future imports ---
from __future__ import annotations

# --- Standard library imports ---
import logging

# --- Project imports ---
from .logger import get_logger
from .models import PollConfig, PollState, ProbeResult, ProbeTarget, RecoveryResult


def tlog(
    logger: logging.Logger,
    emoji: str,
    subsystem: str,
    state: str,
    primary: str = "—--",
    meta: str | None = None,
    level: int = logging.INFO,
) -> None:
    """
    Emit a standardized telemetry log "tlog" line.

    Format:
        SUBSYSTEM STATE PRIMARY | meta data
    """
    msg = f"{subsystem:<8} {state:<12} {primary:<16}"
    if meta:
        msg += f" | {meta}"

    logger.log(level, f"{emoji} {msg}", stacklevel=2)


class Reporter:
    """
    Turns poll loop events into single log lines.

    Stateless: everything it prints comes from its arguments. Verbosity is
    the logger level, so INFO lines vanish unless `-v` was given while
    WARN/ERROR always reach stderr.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or get_logger("poller")

    def startup(self, title: str, fields: dict[str, object]) -> None:
        self.logger.info(title)
        for name, value in fields.items():
            self.logger.info(f"- {name}: {value}")

    def probe(
        self,
        target: ProbeTarget,
        result: ProbeResult,
        state: PollState,
        elapsed: float,
        expected_failure: bool = False,
    ) -> None:
        if result is ProbeResult.REACHABLE:
            tlog(
                self.logger, "💚", "PROBE", "REACHABLE", target.address,
                meta=f"attempt={state.attempts} | elapsed={elapsed:.0f}s",
            )
            return

        # In wait mode a silent target is the normal case until it wakes up
        tlog(
            self.logger, "🔴", "PROBE", "UNREACHABLE", target.address,
            meta=f"failure #{state.consecutive_failures}",
            level=logging.INFO if expected_failure else logging.WARNING,
        )

    def recovery(self, label: str, result: RecoveryResult, state: PollState) -> None:
        if result.success:
            tlog(
                self.logger, "♻️ ", "RECOVERY", "ISSUED", label,
                meta=f"attempt={state.recovery_attempts} | total={state.recoveries}",
            )
        else:
            tlog(
                self.logger, "🟡", "RECOVERY", "FAILED", label,
                meta=result.reason,
                level=logging.WARNING,
            )

    def statistics(self, state: PollState, elapsed: float, config: PollConfig) -> None:
        meta = (
            f"attempts={state.attempts} | recoveries={state.recoveries} "
            f"| current_failures={state.consecutive_failures}"
        )
        if config.bounded:
            meta += f" | remaining={max(0.0, config.deadline - elapsed):.0f}s"
        tlog(self.logger, "📊", "STATS", "UPTIME", f"{elapsed:.0f}s", meta=meta)

    def success(self, target: ProbeTarget, state: PollState, elapsed: float) -> None:
        self.logger.info(
            f"✅ {target.address} is responding after {state.attempts} "
            f"attempt(s) ({elapsed:.0f}s, {state.recoveries} recovery action(s))"
        )

    def timeout(self, state: PollState, elapsed: float) -> None:
        self.logger.error(
            f"Timeout reached after {state.attempts} attempt(s) ({elapsed:.0f}s)"
        )

    def cancelled(self, state: PollState, elapsed: float) -> None:
        self.logger.warning(
            f"Shutdown requested; stopped after {state.attempts} attempt(s) "
            f"({elapsed:.0f}s, {state.recoveries} recovery action(s))"
        )

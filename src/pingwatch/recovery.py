# --- Standard library imports ---
import subprocess
from typing import Iterable, Sequence

# --- Project imports ---
from .config import Config
from .logger import get_logger
from .models import ProbeTarget, RecoveryResult


logger = get_logger("recovery")


class CommandAction:
    """
    One fire-and-forget corrective command.

    Success means the command was issued and exited 0, not that the
    target is back. The next probe decides that.
    """

    def __init__(self, name: str, argv: Sequence[str], timeout: float | None = None):
        self.name = name
        self.argv = list(argv)
        self.timeout = timeout if timeout is not None else Config.COMMAND_TIMEOUT

    @property
    def executable(self) -> str:
        return self.argv[0]

    def run(self) -> RecoveryResult:
        try:
            result = subprocess.run(
                self.argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return RecoveryResult.failure(f"{self.name}: timed out after {self.timeout}s")
        except OSError as e:
            return RecoveryResult.failure(f"{self.name}: {e.strerror or e}")

        if result.returncode != 0:
            stderr = (result.stderr or "").strip().splitlines()
            hint = f" ({stderr[-1]})" if stderr else ""
            return RecoveryResult.failure(
                f"{self.name}: exit status {result.returncode}{hint}"
            )

        return RecoveryResult.ok(self.name)

    def __repr__(self) -> str:
        return f"CommandAction({self.name!r}, {self.argv!r})"


class RecoveryActuator:
    """
    Runs a set of independent, best-effort sub-actions for one corrective goal.

    Every sub-action is attempted, even after one fails. The actuator
    succeeds when at least one sub-action was issued successfully.
    """

    def __init__(self, actions: Iterable[CommandAction], label: str = "recovery"):
        self.actions = list(actions)
        self.label = label
        if not self.actions:
            raise ValueError("A recovery actuator needs at least one action")

    @property
    def required_tools(self) -> tuple[str, ...]:
        return tuple(action.executable for action in self.actions)

    def recover(self, target: ProbeTarget) -> RecoveryResult:
        issued = []
        errors = []

        for action in self.actions:
            result = action.run()
            if result.success:
                issued.append(action.name)
                logger.debug(f"{action.name} issued for {target.address}")
            else:
                errors.append(result.reason)
                logger.debug(f"{action.name} failed for {target.address}: {result.reason}")

        if issued:
            # Partial failure: the reporter only sees overall success
            for reason in errors:
                logger.warning(f"Recovery sub-action failed: {reason}")
            return RecoveryResult.ok(*issued, *errors)
        return RecoveryResult.failure("; ".join(errors), *errors)


# ------------------------------------------------------------
# Factories
# ------------------------------------------------------------

def wake_on_lan_actuator(mac: str, interface: str) -> RecoveryActuator:
    """
    Send both a raw-ethernet (etherwake) and a UDP broadcast (wakeonlan)
    magic packet; NICs differ in which one they honor.
    """
    return RecoveryActuator(
        [
            CommandAction("etherwake", ["etherwake", "-i", interface, mac]),
            CommandAction("wakeonlan", ["wakeonlan", mac]),
        ],
        label="wake-on-lan",
    )

def wireguard_actuator(interface: str) -> RecoveryActuator:
    unit = Config.WireGuard.UNIT_TEMPLATE.format(interface=interface)
    return RecoveryActuator(
        [CommandAction("systemctl restart", ["systemctl", "restart", unit])],
        label=f"restart {unit}",
    )

# --- Standard library imports ---
import socket
import subprocess

# --- Project imports ---
from .logger import get_logger
from .models import ProbeResult, ProbeTarget


logger = get_logger("prober")


class PingProber:
    """
    Single ICMP echo against the target address.

    "Not reachable" is a normal return value; this never raises for it.
    """

    def __init__(self, executable: str = "ping"):
        self.executable = executable

    @property
    def required_tools(self) -> tuple[str, ...]:
        return (self.executable,)

    def command(self, target: ProbeTarget, timeout: float) -> list[str]:
        return [
            self.executable, "-c", "1", "-W", _format_seconds(timeout), target.address
        ]

    def probe(self, target: ProbeTarget, timeout: float) -> ProbeResult:
        try:
            result = subprocess.run(
                self.command(target, timeout),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=timeout + 1,
            )
        except subprocess.TimeoutExpired:
            logger.debug(f"ping to {target.address} overran {timeout}s")
            return ProbeResult.UNREACHABLE
        except OSError as e:
            logger.warning(f"Unable to run {self.executable}: {e}")
            return ProbeResult.UNREACHABLE

        if result.returncode == 0:
            return ProbeResult.REACHABLE
        return ProbeResult.UNREACHABLE


class TcpProber:
    """
    TCP connect (Layer 4) against `target.port`, avoiding ICMP so no
    admin privileges are required.
    """

    required_tools: tuple[str, ...] = ()

    def __init__(self, port: int):
        self.port = port

    def probe(self, target: ProbeTarget, timeout: float) -> ProbeResult:
        port = target.port or self.port
        try:
            with socket.create_connection((target.address, port), timeout=timeout):
                return ProbeResult.REACHABLE
        except OSError:
            return ProbeResult.UNREACHABLE


def build_prober(target: ProbeTarget):
    """Pick the prober matching the target: TCP when a port is set, ICMP otherwise."""
    if target.port:
        return TcpProber(target.port)
    return PingProber()


def _format_seconds(value: float) -> str:
    # ping -W accepts fractions on iputils, keep integers tidy
    if float(value).is_integer():
        return str(int(value))
    return str(value)

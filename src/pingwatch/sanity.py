# --- Standard library imports ---
from typing import Iterable

# --- Project imports ---
from .logger import get_logger
from .models import ProbeTarget
from .utils import (
    ensure_sbin_on_path,
    interface_exists,
    is_root,
    is_valid_address,
    is_valid_mac,
    missing_tools,
)

# Define the logger once for the entire module
logger = get_logger("sanity")


def check_address(address: str) -> None:
    if not is_valid_address(address):
        raise ValueError(
            f"Invalid IP address or hostname: {address!r}. "
            "Expected an IPv4 address (XXX.XXX.XXX.XXX), an IPv6 address, "
            "or a hostname such as nas.local"
        )

def check_mac(mac: str) -> None:
    if not is_valid_mac(mac):
        raise ValueError(
            f"Invalid MAC address format: {mac!r}. Expected format: XX:XX:XX:XX:XX:XX"
        )

def check_interface(interface: str) -> None:
    if not interface_exists(interface):
        raise ValueError(f"Interface {interface} does not exist")

def check_tools(tools: Iterable[str]) -> None:
    ensure_sbin_on_path()
    missing = missing_tools(tools)
    if missing:
        raise ValueError(
            f"Required command(s) not found: {', '.join(missing)}. "
            "Please install them first."
        )

def check_root() -> None:
    if not is_root():
        raise ValueError("This command must be run as root")

def run_wake_checks(target: ProbeTarget, tools: Iterable[str]) -> None:
    """
    Validate Wake-on-LAN inputs and environment before entering the poll loop.
    Raises ValueError on the first fatal problem.
    """
    check_mac(target.mac)
    check_address(target.address)
    check_interface(target.interface)
    check_tools(tools)
    logger.debug("🧩 Wake-on-LAN sanity checks passed")

def run_wireguard_checks(target: ProbeTarget, tools: Iterable[str]) -> None:
    """
    Validate WireGuard monitor inputs and environment.
    Raises ValueError on the first fatal problem.
    """
    check_root()
    check_tools(tools)
    check_interface(target.interface)
    check_address(target.address)
    logger.debug("🧩 WireGuard sanity checks passed")

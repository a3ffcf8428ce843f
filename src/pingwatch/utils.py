# --- Standard library imports ---
import os
import re
import shutil
import socket
import subprocess
from typing import Iterable

# --- Project imports ---
from .logger import get_logger


# Define the logger once for the entire module
logger = get_logger("utils")

MAC_PATTERN = re.compile(r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$")
HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
SBIN_DIRS = ("/usr/sbin", "/sbin")


def is_valid_ip(ip: str) -> bool:
    """
    Validate an IPv4 or IPv6 address using socket.

    Args:
        ip: Address string to validate.

    Returns:
        True if the address parses for either family, False otherwise.
    """
    for family in (socket.AF_INET, socket.AF_INET6):
        try:
            socket.inet_pton(family, ip)
            return True
        except (OSError, TypeError):
            continue
    return False

def is_valid_hostname(name: str) -> bool:
    """
    RFC-1123 hostname check.

    The last label must not be purely numeric, so dotted-quad typos such
    as `192.168.1.256` are not mistaken for hostnames.
    """
    if not name or len(name) > 253:
        return False
    labels = name.rstrip(".").split(".")
    if labels[-1].isdigit():
        return False
    return all(HOSTNAME_LABEL.match(label) for label in labels)

def is_valid_address(address: str) -> bool:
    return is_valid_ip(address) or is_valid_hostname(address)

def is_valid_mac(mac: str) -> bool:
    return bool(mac) and MAC_PATTERN.match(mac) is not None

def interface_exists(interface: str) -> bool:
    """Return True if `ip link show <interface>` knows the interface."""
    try:
        result = subprocess.run(
            ["ip", "link", "show", interface],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        logger.debug(f"ip link lookup failed: {e}")
        return False
    return result.returncode == 0

def ensure_sbin_on_path() -> None:
    """Append sbin directories to PATH; etherwake and friends live there."""
    parts = os.environ.get("PATH", "").split(os.pathsep)
    missing = [d for d in SBIN_DIRS if d not in parts]
    if missing:
        os.environ["PATH"] = os.pathsep.join([p for p in parts if p] + missing)
        logger.debug(f"PATH extended with {', '.join(missing)}")

def missing_tools(tools: Iterable[str]) -> list[str]:
    """Return the subset of `tools` not found on PATH, in input order."""
    missing = []
    for tool in tools:
        if tool not in missing and shutil.which(tool) is None:
            missing.append(tool)
    return missing

def is_root() -> bool:
    return os.geteuid() == 0

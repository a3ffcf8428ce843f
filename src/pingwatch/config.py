# --- Standard library imports ---
import os

# --- Third-party imports ---
from dotenv import load_dotenv


# Load .env once
load_dotenv()

def _env_float(name: str, default: float) -> float:
    """Read a numeric env var, falling back to `default` when malformed."""
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default

class Config:
    """Centralized config for polling defaults and external tool wiring"""

    # --- Observability Policy ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

    # --- Network Policy (NOT user configurable) ---
    API_TIMEOUT = 8       # seconds
    COMMAND_TIMEOUT = 30  # seconds, upper bound for any recovery command

    # --- Wake-on-LAN waiter ---
    class Wake:
        TIMEOUT = _env_float("WAKE_TIMEOUT", 300)
        INTERVAL = _env_float("WAKE_INTERVAL", 4)
        PROBE_TIMEOUT = _env_float("WAKE_PROBE_TIMEOUT", 1)

    # --- WireGuard reconnect monitor ---
    class WireGuard:
        INTERVAL = _env_float("WG_INTERVAL", 60)
        PROBE_TIMEOUT = _env_float("WG_PROBE_TIMEOUT", 5)
        UNIT_TEMPLATE = os.getenv("WG_UNIT_TEMPLATE", "wg-quick@{interface}")

    # --- Cloudflare real-IP list ---
    class Cloudflare:
        IPS_BASE_URL = os.getenv("CF_IPS_BASE_URL", "https://www.cloudflare.com")
        OUTPUT_FILE = os.getenv("CF_REALIP_OUTPUT", "./cf_real-ip.conf")

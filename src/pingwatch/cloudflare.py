# --- Standard library imports ---
import os
import ipaddress
import tempfile
from pathlib import Path

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config
from .logger import get_logger


logger = get_logger("cloudflare")

IP_LIST_PATHS = ("ips-v4", "ips-v6")


class CloudflareRealIP:
    """
    Builds an nginx `set_real_ip_from` include from Cloudflare's published
    edge ranges.
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or Config.Cloudflare.IPS_BASE_URL).rstrip("/")
        self.timeout = timeout or Config.API_TIMEOUT

    def fetch_ranges(self, path: str) -> list[str]:
        """
        Download one published list and return its valid CIDR entries.

        Raises:
            requests.RequestException on HTTP/transport failure.
            ValueError if the list holds no usable range.
        """
        url = f"{self.base_url}/{path}"
        resp = requests.get(url, timeout=self.timeout)
        resp.raise_for_status()

        ranges = []
        for line in resp.text.splitlines():
            entry = line.strip()
            if not entry:
                continue
            try:
                ipaddress.ip_network(entry, strict=False)
            except ValueError:
                logger.warning(f"Skipping invalid range from {url}: {entry!r}")
                continue
            ranges.append(entry)

        if not ranges:
            raise ValueError(f"No IP ranges returned from {url}")

        logger.info(f"Fetched {len(ranges)} range(s) from {url}")
        return ranges

    def fetch_all(self) -> list[str]:
        ranges = []
        for path in IP_LIST_PATHS:
            ranges.extend(self.fetch_ranges(path))
        return ranges


def render_real_ip_config(ranges: list[str]) -> str:
    return "".join(f"set_real_ip_from {cidr};\n" for cidr in ranges)

def write_atomic(path: Path, content: str) -> None:
    """
    Write `content` to `path` via a temp file in the same directory, so
    readers never see a half-written config.
    """
    path = Path(path)
    if not path.parent.exists():
        logger.info(f"Creating output directory: {path.parent}")
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w") as handle:
            handle.write(content)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

def update_real_ip_config(output: Path, client: CloudflareRealIP | None = None) -> int:
    """
    Fetch both lists, render and write the include file.

    Returns:
        Number of ranges written.
    """
    client = client or CloudflareRealIP()
    ranges = client.fetch_all()
    write_atomic(Path(output), render_real_ip_config(ranges))
    logger.info(f"Configuration file generated: {output} ({len(ranges)} ranges)")
    return len(ranges)

# --- Standard library imports ---
import sys
import logging
import argparse
from pathlib import Path

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config
from .logger import get_logger, setup_logging
from .telemetry import Reporter
from .prober import build_prober
from .poller import PollController, ShutdownSignal
from .recovery import wake_on_lan_actuator, wireguard_actuator
from .sanity import run_wake_checks, run_wireguard_checks
from .models import PollConfig, PollOutcome, ProbeTarget
from .cloudflare import CloudflareRealIP, update_real_ip_config


logger = get_logger("cli")


class ArgumentParser(argparse.ArgumentParser):
    """argparse with exit status 1 on bad arguments."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def positive_number(label: str):
    def parse(value: str) -> float:
        try:
            number = float(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"{label} must be a positive number")
        if number <= 0:
            raise argparse.ArgumentTypeError(f"{label} must be a positive number")
        return number
    return parse

def port_number(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("Port must be an integer between 1 and 65535")
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError("Port must be an integer between 1 and 65535")
    return port


# --- Parsers ---
def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-W", "--probe-timeout", type=positive_number("Probe timeout"),
                        help="per-probe timeout in seconds")
    parser.add_argument("-p", "--port", type=port_number,
                        help="probe with a TCP connect to PORT instead of ping")
    parser.add_argument("-v", "--verbose", action="store_true", help="verbose output")
    parser.add_argument("-f", "--force", action="store_true",
                        help="run the recovery action once before the first probe")

def build_wake_parser(parser=None) -> argparse.ArgumentParser:
    parser = parser or ArgumentParser(
        prog="wake-wait",
        description="Send Wake-on-LAN packets until a host answers.",
        epilog="Example: wake-wait FF:FF:FF:FF:FF:FF 192.168.1.6 eth0",
    )
    parser.add_argument("mac", metavar="MAC_ADDRESS")
    parser.add_argument("address", metavar="IP_ADDRESS")
    parser.add_argument("interface", metavar="INTERFACE")
    parser.add_argument("-t", "--timeout", type=positive_number("Timeout"),
                        default=Config.Wake.TIMEOUT,
                        help="maximum time to wait in seconds (default: %(default)s)")
    parser.add_argument("-i", "--interval", type=positive_number("Interval"),
                        default=Config.Wake.INTERVAL,
                        help="interval between attempts in seconds (default: %(default)s)")
    _add_common_options(parser)
    parser.set_defaults(probe_timeout_default=Config.Wake.PROBE_TIMEOUT, handler=run_wake)
    return parser

def build_wireguard_parser(parser=None) -> argparse.ArgumentParser:
    parser = parser or ArgumentParser(
        prog="wg-reconnect",
        description="Monitor a WireGuard tunnel and restart it when a peer stops answering.",
        epilog="Example: wg-reconnect -i 30 wg0 8.8.8.8",
    )
    parser.add_argument("interface", metavar="INTERFACE")
    parser.add_argument("address", metavar="TARGET_IP")
    parser.add_argument("-i", "--interval", type=positive_number("Interval"),
                        default=Config.WireGuard.INTERVAL,
                        help="check interval in seconds (default: %(default)s)")
    parser.add_argument("-t", "--timeout", type=positive_number("Timeout"), default=None,
                        help="stop monitoring after this many seconds (default: run forever)")
    _add_common_options(parser)
    parser.set_defaults(
        probe_timeout_default=Config.WireGuard.PROBE_TIMEOUT, handler=run_wireguard
    )
    return parser

def build_cf_parser(parser=None) -> argparse.ArgumentParser:
    parser = parser or ArgumentParser(
        prog="cf-realip",
        description="Generate an nginx real-IP include from Cloudflare's IP ranges.",
        epilog="Example: cf-realip -o /etc/nginx/conf.d/cf_real-ip.conf",
    )
    parser.add_argument("-o", "--output", type=Path, default=Path(Config.Cloudflare.OUTPUT_FILE),
                        help="output file path (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="store_true", help="verbose output")
    parser.set_defaults(handler=run_cf_realip)
    return parser

def build_parser() -> argparse.ArgumentParser:
    parser = ArgumentParser(prog="pingwatch", description="Reachability polling with recovery actions.")
    sub = parser.add_subparsers(dest="command", required=True, parser_class=ArgumentParser)
    build_wake_parser(sub.add_parser("wake", help="wake a host and wait until it answers"))
    build_wireguard_parser(sub.add_parser("wg-monitor", help="keep a WireGuard tunnel alive"))
    build_cf_parser(sub.add_parser("cf-realip", help="write Cloudflare real-IP nginx config"))
    return parser


# --- Runners ---
def _configure_logging(verbose: bool) -> None:
    level = getattr(logging, Config.LOG_LEVEL.upper(), logging.WARNING)
    if verbose:
        level = min(level, logging.INFO)
    setup_logging(level=level)

def _poll_config(args, until_reachable: bool) -> PollConfig:
    probe_timeout = args.probe_timeout
    if probe_timeout is None:
        # Only an explicit -W may collide with the interval
        probe_timeout = min(args.probe_timeout_default, args.interval / 2)
    return PollConfig(
        interval=args.interval,
        probe_timeout=probe_timeout,
        deadline=args.timeout,
        verbose=args.verbose,
        force_recovery=args.force,
        until_reachable=until_reachable,
    )

def _run_loop(target, config, prober, actuator) -> PollOutcome:
    shutdown = ShutdownSignal()
    shutdown.install()
    controller = PollController(prober, actuator, reporter=Reporter(), shutdown=shutdown)
    return controller.run(target, config).outcome

def run_wake(args) -> int:
    target = ProbeTarget(
        address=args.address, mac=args.mac, interface=args.interface, port=args.port
    )
    try:
        config = _poll_config(args, until_reachable=True)
        prober = build_prober(target)
        actuator = wake_on_lan_actuator(target.mac, target.interface)
        run_wake_checks(target, actuator.required_tools + prober.required_tools)
    except ValueError as e:
        logger.error(str(e))
        return 1

    Reporter().startup("Starting wake-on-LAN for device:", {
        "MAC Address": target.mac,
        "IP Address": target.address,
        "Interface": target.interface,
        "Timeout": f"{config.deadline:g} seconds",
        "Interval": f"{config.interval:g} seconds",
        "Probe Timeout": f"{config.probe_timeout:g} seconds",
    })

    outcome = _run_loop(target, config, prober, actuator)
    return 0 if outcome is PollOutcome.SUCCESS else 1

def run_wireguard(args) -> int:
    target = ProbeTarget(address=args.address, interface=args.interface, port=args.port)
    try:
        config = _poll_config(args, until_reachable=False)
        prober = build_prober(target)
        actuator = wireguard_actuator(target.interface)
        run_wireguard_checks(target, ("ip",) + actuator.required_tools + prober.required_tools)
    except ValueError as e:
        logger.error(str(e))
        return 1

    Reporter().startup("Starting WireGuard connection monitor:", {
        "Interface": target.interface,
        "Target IP": target.address,
        "Check Interval": f"{config.interval:g} seconds",
        "Ping Timeout": f"{config.probe_timeout:g} seconds",
        "Deadline": f"{config.deadline:g} seconds" if config.bounded else "none",
        "Force Restart": config.force_recovery,
    })

    outcome = _run_loop(target, config, prober, actuator)
    # An operator stop is the normal end of an unbounded monitor
    return 1 if outcome is PollOutcome.TIMEOUT else 0

def run_cf_realip(args) -> int:
    logger.info("Fetching Cloudflare IP ranges...")
    logger.info(f"Output file: {args.output}")
    try:
        count = update_real_ip_config(args.output, CloudflareRealIP())
    except requests.RequestException as e:
        logger.error(f"Failed to fetch Cloudflare IP ranges ({e.__class__.__name__}: {e})")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"Failed to write to output file {args.output}: {e}")
        return 1

    logger.info(f"Total IP ranges: {count}")
    if args.verbose:
        logger.info("Configuration file contents:\n" + Path(args.output).read_text())
    return 0


# --- Entry points ---
def _dispatch(parser: argparse.ArgumentParser, argv) -> int:
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.handler(args)

def main(argv=None) -> int:
    return _dispatch(build_parser(), argv)

def wake_main(argv=None) -> int:
    return _dispatch(build_wake_parser(), argv)

def wireguard_main(argv=None) -> int:
    return _dispatch(build_wireguard_parser(), argv)

def cf_realip_main(argv=None) -> int:
    return _dispatch(build_cf_parser(), argv)

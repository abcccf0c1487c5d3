import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from check_dns_cloudflare import __version__
from check_dns_cloudflare.config import RESOLVERS, Settings, build_check
from check_dns_cloudflare.errors import (
    ConfigurationError,
    ReconciliationFailure,
    ResolutionError,
    UpstreamError,
)
from reconcile.models import CRITICAL, EXIT_CODES, UNKNOWN, CheckResult
from reporting.assembler import Assemble
from reporting.targets import InvalidTarget, clean_expected, require_hostname, require_query_type

"""
The command-line interface (a Nagios plugin) for the Cloudflare DNS check.
The flow mirrors the HTTP API:
  1) Validate + normalize the hostname and options
  2) Build the check (cache store, Cloudflare client, resolver) and run it
  3) Print the Nagios status line (or the assembled JSON) and exit with the status code
"""

PLUGIN_NAME = "DNS CLOUDFLARE"

logger = logging.getLogger(__name__)


class _PluginArgumentParser(argparse.ArgumentParser):
    # Nagios treats exit code 2 as CRITICAL, so usage errors must exit UNKNOWN.
    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        print(f"{PLUGIN_NAME} UNKNOWN: Invalid command line arguments provided. {message}")
        raise SystemExit(EXIT_CODES[UNKNOWN])


# Parse the command-line arguments
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = _PluginArgumentParser(
        prog="check_dns_cloudflare",
        description="Check that a hostname's DNS matches its Cloudflare configuration",
    )
    p.add_argument("-H", "--hostname", required=True, help="The name to query")
    p.add_argument("-s", "--dns-server", help="The DNS server to query. Cannot be used with --only-api")
    p.add_argument("-d", "--only-dns", action="store_true", help="Only do the DNS part of the check")
    p.add_argument("-o", "--only-api", action="store_true", help="Only do the API part of the check")
    p.add_argument("-z", "--zone", help="Cloudflare zone to query. Defaults to the zone containing the host")
    p.add_argument(
        "-a",
        "--expected-address",
        action="append",
        default=[],
        help="If proxied, the expected API lookup result. If not proxied, the expected DNS lookup result. "
        "Repeat the flag or comma-separate values. Without expected values an empty DNS answer is CRITICAL",
    )
    p.add_argument(
        "-q",
        "--querytype",
        help="DNS record type for non-proxied lookups (A, AAAA, SRV, TXT, MX, ANY; default A). "
        "Proxied lookups always look up A and AAAA",
    )
    p.add_argument("-t", "--timeout", type=int, default=10, help="Seconds before the check times out")
    p.add_argument(
        "--cache-path",
        help="Cache location for API results. Defaults to the first usable of $NAGIOS_PLUGIN_STATE_DIRECTORY, "
        "/usr/local/nagios/var, or the temp directory",
    )
    p.add_argument("--resolver", choices=RESOLVERS, default="dig", help="How live DNS is queried")
    p.add_argument("--json", dest="as_json", action="store_true", help="Output JSON")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Log progress to stderr (-vv for debug)")
    p.add_argument("-V", "--version", action="version", version=f"check_dns_cloudflare {__version__}")
    return p.parse_args(argv)


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(stream=sys.stderr, level=level, format="%(levelname)s %(name)s: %(message)s")


def validate_args(args: argparse.Namespace) -> argparse.Namespace:
    """
    Normalize hostname/query type and reject conflicting options.

    Raises:
        ConfigurationError: for option combinations that make no sense.
        InvalidTarget: for a malformed hostname or query type.
    """
    if args.only_api and (args.only_dns or args.dns_server):
        raise ConfigurationError("Cannot use DNS options with --only-api flag")
    if args.only_dns and args.zone:
        raise ConfigurationError("Cannot use --zone with --only-dns flag")
    if args.timeout <= 0:
        raise ConfigurationError("--timeout must be a positive number of seconds")

    args.hostname = require_hostname(args.hostname)
    args.querytype = require_query_type(args.querytype)
    args.expected_address = clean_expected(args.expected_address)
    if args.zone:
        args.zone = require_hostname(args.zone)
    return args


def run_check(args: argparse.Namespace, settings: Settings) -> CheckResult:
    check = build_check(
        settings,
        timeout=args.timeout,
        resolver=args.resolver,
        cache_path=args.cache_path,
        only_dns=args.only_dns,
        dns_server=args.dns_server,
    )
    return check.check_host(
        args.hostname,
        expected=args.expected_address,
        query_type=args.querytype,
        zone=args.zone,
        dns_server=args.dns_server,
        only_api=args.only_api,
        only_dns=args.only_dns,
    )


def status_line(status: str, messages: List[str]) -> str:
    return f"{PLUGIN_NAME} {status.upper()}: {', '.join(messages) if messages else status.upper()}"


def print_human(response: Dict[str, Any]) -> None:
    """
    Print the Nagios status line followed by one line per problem.

    Args:
        response: Response dict from Assemble.build().
    """
    status = response.get("status", UNKNOWN)
    findings = response.get("findings") or []

    messages = [f.get("detail", "") for f in findings if f.get("severity") == status and f.get("detail")]
    print(status_line(status, messages))

    for f in findings:
        if f.get("severity") == "ok":
            continue
        print(f"- [{f.get('severity', 'unknown')}] {f.get('issue', '')}: {f.get('detail', '')}")
        rec = f.get("recommendation")
        if rec:
            print(f"    Recommendation: {rec}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entrypoint.

    Returns:
        Nagios exit code (0 ok, 1 warning, 2 critical, 3 unknown).
    """
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        args = validate_args(args)
        result = run_check(args, Settings.from_env())
    except (ConfigurationError, InvalidTarget, UpstreamError, ResolutionError) as e:
        logger.debug("Check aborted", exc_info=True)
        print(status_line(UNKNOWN, [str(e)]))
        return EXIT_CODES[UNKNOWN]

    response = Assemble().build(
        target=args.hostname,
        result=result,
        meta={"version": __version__, "source": "cli"},
    )
    if args.as_json:
        print(json.dumps(response, indent=2))
    else:
        print_human(response)

    try:
        result.raise_for_status()
    except ReconciliationFailure as e:
        logger.info("Check failed: %s", e)
        return EXIT_CODES[CRITICAL]
    return result.exit_code


if __name__ == "__main__":
    raise SystemExit(main())

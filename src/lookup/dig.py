"""
Resolver backed by the `dig` command line tool.

Proxied lookups ask for A and AAAA in one invocation, which relies on
DiG 9.x "multiple query" support:

    dig +short +time=10 [@server] host -t A host -t AAAA
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from check_dns_cloudflare.errors import ResolutionError
from .runner import CommandRunner


def normalize_answers(lines: Iterable[str]) -> List[str]:
    """Drop blank lines, strip one trailing '.', and sort lexically."""
    out: List[str] = []
    for line in lines:
        s = line.strip()
        if not s:
            continue
        if s.endswith("."):
            s = s[:-1]
        out.append(s)
    return sorted(out)


def split_output(text: str) -> List[str]:
    return text.replace("\r\n", "\n").split("\n")


class DigResolver:
    """Runs `dig +short` and returns the normalized answer lines."""

    name = "dig"

    def __init__(
        self,
        timeout: int = 10,
        server: Optional[str] = None,
        runner: Optional[CommandRunner] = None,
    ) -> None:
        self.timeout = int(timeout)
        self.server = server
        # dig retries (+tries=3 by default), so give the process room beyond +time.
        self.runner = runner or CommandRunner(timeout_seconds=self.timeout * 4)

    def build_args(self, hostname: str, qtypes: Sequence[str], server: Optional[str] = None) -> List[str]:
        args = ["+short", f"+time={self.timeout}"]
        server = server or self.server
        if server:
            args.append(f"@{server}")
        for qtype in qtypes:
            args.extend([hostname, "-t", qtype])
        return args

    def lookup(self, hostname: str, qtypes: Sequence[str], server: Optional[str] = None) -> List[str]:
        """
        Resolve hostname for every query type in a single dig run.

        Raises:
            ResolutionError: dig is not installed, timed out, or exited non-zero.
        """
        path = self.runner.which("dig")
        if not path:
            raise ResolutionError("Could not find 'dig' command on PATH")

        res = self.runner.dig(self.build_args(hostname, qtypes, server), path=path)
        if res.timed_out:
            raise ResolutionError(res.stderr or "dig timed out")
        if not res.ok:
            detail = (res.stderr or res.stdout).strip().splitlines()
            raise ResolutionError(
                f"Error running dig (exit {res.returncode}): {detail[-1] if detail else 'no output'}"
            )

        return normalize_answers(split_output(res.stdout))

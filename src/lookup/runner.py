import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    cmd: List[str]
    stdout: str
    stderr: str = ""
    returncode: int = 0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.returncode == 0


class CommandRunner:
    """Small wrapper around subprocess.run with timeouts and consistent output."""

    def __init__(self, timeout_seconds: int = 20):
        self.timeout_seconds = int(timeout_seconds)

    def which(self, program: str) -> Optional[str]:
        return shutil.which(program)

    def run(self, cmd: Sequence[str], timeout_seconds: Optional[int] = None) -> CommandResult:
        cmd_list = list(cmd)
        t = self.timeout_seconds if timeout_seconds is None else int(timeout_seconds)
        logger.info("Executing `%s`", " ".join(cmd_list))
        try:
            p = subprocess.run(cmd_list, capture_output=True, text=True, timeout=t)
            return CommandResult(cmd=cmd_list, stdout=p.stdout or "", stderr=p.stderr or "", returncode=p.returncode)
        except subprocess.TimeoutExpired:
            return CommandResult(
                cmd=cmd_list, stdout="", stderr=f"[timeout after {t}s] {' '.join(cmd_list)}", returncode=-1, timed_out=True
            )

    def dig(self, args: Sequence[str], timeout_seconds: Optional[int] = None, path: str = "dig") -> CommandResult:
        return self.run([path, *list(args)], timeout_seconds=timeout_seconds)

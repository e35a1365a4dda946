from __future__ import annotations
import os
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence
from .logging_setup import get_logger

log = get_logger("dsp.installer.proc")

TIMEOUT_RETURNCODE = 124
NOT_FOUND_RETURNCODE = 127

@dataclass(frozen=True)
class CommandResult:
    args: List[str]
    returncode: int
    output: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

def mask_command(cmd: Sequence[str]) -> List[str]:
    """
    Return a copy of cmd where everything after '+login' up to the next
    '+command' is redacted, except the anonymous user name.
    """
    tokens = list(map(str, cmd))
    for idx, t in enumerate(tokens):
        if t != "+login":
            continue
        j = idx + 1
        while j < len(tokens) and not tokens[j].startswith("+"):
            if not (j == idx + 1 and tokens[j] == "anonymous"):
                tokens[j] = "<REDACTED>"
            j += 1
    return tokens

def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data

def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        proc.kill()

def run_command(cmd: Sequence[str], *, cwd: Optional[Path] = None, env: Optional[dict] = None,
                timeout: Optional[float] = None) -> CommandResult:
    """
    Run cmd to completion and capture combined stdout/stderr.

    Never raises for a non-zero exit. With a timeout the command runs in its
    own process group and the whole group is killed when the bound expires;
    the result then has timed_out=True and returncode 124.
    """
    args = [str(c) for c in cmd]
    log.info("Running: %s", " ".join(mask_command(args)))
    try:
        proc = subprocess.Popen(
            args,
            cwd=str(cwd) if cwd else None,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            start_new_session=timeout is not None,
        )
    except OSError as e:
        log.error("Could not start %s: %s", args[0], e)
        return CommandResult(args=args, returncode=NOT_FOUND_RETURNCODE, output=str(e))

    try:
        out, _ = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        log.warning("%s did not exit within %ss, killing it.", args[0], timeout)
        _kill_group(proc)
        out, _ = proc.communicate()
        result = CommandResult(args=args, returncode=TIMEOUT_RETURNCODE, output=_decode(out), timed_out=True)
    else:
        result = CommandResult(args=args, returncode=proc.returncode, output=_decode(out))

    if result.output:
        log.debug("output: %s", result.output[-4000:])
    log.debug("%s exited with rc=%s", args[0], result.returncode)
    return result

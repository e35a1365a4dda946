"""
negotiator.py — Steam login / Steam Guard negotiation
-----------------------------------------------------
Decides whether the install can proceed non-interactively. When credentials
are given without a Steam Guard code, a short bounded login probe is run to
find out whether Steam Guard is going to ask for one.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Pattern, Tuple
from .config import InstallConfig
from .process_runner import CommandResult
from .logging_setup import get_logger

log = get_logger("dsp.installer.negotiator")

SECOND_FACTOR_INDICATORS: Pattern[str] = re.compile(
    r"Steam Guard|SteamGuard|two-factor|2fa|authenticator|code", re.IGNORECASE
)


class LoginOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    SECOND_FACTOR_REQUIRED = "second_factor_required"
    FAILED = "failed"


class NegotiationPath(str, Enum):
    ANONYMOUS = "anonymous"
    TOKEN = "token"
    PROBE = "probe"


@dataclass(frozen=True)
class LoginAttemptResult:
    outcome: LoginOutcome
    path: NegotiationPath
    reason: str = ""
    output: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome is LoginOutcome.SUCCEEDED


Classifier = Callable[[CommandResult], Tuple[LoginOutcome, str]]


def classify_probe(result: CommandResult, indicators: Pattern[str] = SECOND_FACTOR_INDICATORS) -> Tuple[LoginOutcome, str]:
    """
    Map a probe result to an outcome.

    A clean exit wins. A timeout and an indicator match are treated the same
    way, including a network stall that happens to hit the timeout.
    """
    if result.ok:
        return LoginOutcome.SUCCEEDED, "login succeeded without Steam Guard"
    if result.timed_out:
        return LoginOutcome.SECOND_FACTOR_REQUIRED, "login probe timed out waiting for input"
    match = indicators.search(result.output or "")
    if match:
        return LoginOutcome.SECOND_FACTOR_REQUIRED, f"output mentions {match.group(0)!r}"
    return LoginOutcome.FAILED, f"login failed (rc={result.returncode})"


def negotiate(config: InstallConfig, probe: Callable[[], CommandResult],
              classifier: Classifier = classify_probe) -> LoginAttemptResult:
    """Run the login decision. `probe` is only called on the credentials-without-code path."""
    if config.anonymous:
        log.info("Steam user/password not provided. Attempting anonymous install.")
        return LoginAttemptResult(LoginOutcome.SUCCEEDED, NegotiationPath.ANONYMOUS, "anonymous login")

    log.info("Steam user provided: %s", config.steam_user)
    if config.has_second_factor:
        log.info("STEAM_AUTH provided: performing non-interactive login and install.")
        return LoginAttemptResult(LoginOutcome.SUCCEEDED, NegotiationPath.TOKEN, "Steam Guard code supplied")

    log.info("Steam credentials provided but no STEAM_AUTH (2FA) code.")
    log.info("Attempting a short login to trigger Steam Guard (email/authenticator).")
    result = probe()
    outcome, reason = classifier(result)
    if outcome is LoginOutcome.SUCCEEDED:
        log.info("Steam login succeeded without 2FA. Proceeding with install.")
    elif outcome is LoginOutcome.SECOND_FACTOR_REQUIRED:
        log.warning("Steam Guard likely required (%s).", reason)
    return LoginAttemptResult(outcome, NegotiationPath.PROBE, reason, result.output)


RECOVERY_TEMPLATE = """\
Steam login requires Steam Guard (2FA). The installer attempted a short login to trigger the Steam Guard flow,
but did not provide a code to avoid hanging the container.

What you can do next:
1) Provide STEAM_AUTH (the current Steam Guard code from your authenticator) as a server variable and re-run the installer (reinstall).
   - This will perform a non-interactive login and continue installation automatically.

OR

2) Perform an interactive login manually (on a host or container where you can interact):
   - cd {steamcmd_dir}
   - ./steamcmd.sh
   - At the prompt: login <your_steam_username>
   - Enter your password and Steam Guard code when prompted.
   - Then run:
       force_install_dir {install_root}
       app_update {app_id} validate
       quit

Notes:
- If Steam sends the code via email, check that account's email.
- Avoid leaving the installer to wait for input in a non-interactive environment (it will hang the container).
"""


def write_recovery_instructions(path: Path, *, app_id: str, install_root: Path, steamcmd_dir: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        RECOVERY_TEMPLATE.format(app_id=app_id, install_root=install_root, steamcmd_dir=steamcmd_dir),
        encoding="utf-8",
    )
    log.info("Instructions written to %s", path)
    return path

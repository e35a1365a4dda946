from __future__ import annotations
import shutil
from typing import Optional
from .config import InstallConfig
from .emulator import install_goldberg
from .errors import EXIT_FAILURE, EXIT_OK, ExternalToolError, InstallerError, SecondFactorRequired
from .fs_layout import build_layout, ensure_dirs
from .mods import ModInstaller
from .negotiator import LoginAttemptResult, LoginOutcome, negotiate, write_recovery_instructions
from .net import HttpClient
from .planner import Plan, build_plan
from .settings import Settings
from .steamcmd import SteamCMD
from .thunderstore import ThunderstoreClient
from .logging_setup import get_logger

log = get_logger("dsp.installer.orch")

CLEANUP_NAMES = ("icon.png", "manifest.json", "README.md")

class Installer:
    def __init__(self, settings: Settings, config: InstallConfig, *,
                 steamcmd: Optional[SteamCMD] = None,
                 http: Optional[HttpClient] = None,
                 thunderstore: Optional[ThunderstoreClient] = None):
        self.settings = settings
        self.config = config
        self.layout = build_layout(settings)
        self.http = http or HttpClient(timeout=settings.http_timeout)
        self.steamcmd = steamcmd or SteamCMD(settings, self.layout, http=self.http)
        self.thunderstore = thunderstore or ThunderstoreClient(settings.thunderstore_url, http=self.http)

    def plan(self) -> Plan:
        return build_plan(self.settings, self.layout, self.config)

    def run(self) -> int:
        """Run every stage; returns the process exit code."""
        try:
            self.execute()
        except InstallerError as e:
            if isinstance(e, ExternalToolError) and e.output:
                log.error("SteamCMD output:\n%s", e.output[-4000:])
            log.error("%s", e)
            return e.exit_code
        except Exception as e:
            log.exception("Unexpected failure: %s", e)
            return EXIT_FAILURE
        return EXIT_OK

    def execute(self) -> None:
        ensure_dirs(self.layout)
        # only a halted run may leave this behind
        self.layout.recovery_file.unlink(missing_ok=True)
        self.steamcmd.bootstrap()

        login = self.negotiate()
        self.acquire(login)
        self.install_mods()
        self.cleanup()

        log.info("-----------------------------------------")
        log.info("Installation completed.")
        log.info("-----------------------------------------")

    # ---------------------------------------------------------------------- #
    def negotiate(self) -> LoginAttemptResult:
        result = negotiate(
            self.config,
            probe=lambda: self.steamcmd.probe_login(self.config, timeout=self.settings.login_probe_timeout),
        )
        if result.succeeded:
            return result
        if result.outcome is LoginOutcome.SECOND_FACTOR_REQUIRED:
            write_recovery_instructions(
                self.layout.recovery_file,
                app_id=self.config.app_id,
                install_root=self.layout.install_root,
                steamcmd_dir=self.layout.steamcmd_dir,
            )
            log.warning("Re-run the installer with STEAM_AUTH provided (preferred) or perform interactive login as described.")
            raise SecondFactorRequired(f"Steam Guard code required: {result.reason}")
        raise ExternalToolError(
            f"SteamCMD login failed for an unexpected reason ({result.reason}).",
            output=result.output,
        )

    def acquire(self, login: LoginAttemptResult) -> None:
        log.info("Installing app %s (login path: %s)", self.config.app_id, login.path.value)
        self.steamcmd.install_app(self.config)
        missing = self.steamcmd.install_client_libraries()
        if missing:
            log.warning("steamclient.so not installed for %s; continuing without it.", ", ".join(missing))
        install_goldberg(self.settings, self.layout, self.config, self.http)

    def install_mods(self) -> None:
        installer = ModInstaller(self.settings, self.layout, self.config, self.thunderstore)
        installer.install_loader()
        if self.config.has_profile:
            installer.install_profile(self.config.profile_code)

    def cleanup(self) -> None:
        root = self.layout.install_root
        targets = [self.layout.loader_pack] + [root / n for n in CLEANUP_NAMES]
        namespace, _, name = self.settings.loader_package.partition("/")
        targets += sorted(root.glob(f"{namespace}-{name}-*"))
        for path in targets:
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                elif path.exists() or path.is_symlink():
                    path.unlink()
            except OSError as e:
                log.warning("Cleanup of %s failed: %s", path, e)

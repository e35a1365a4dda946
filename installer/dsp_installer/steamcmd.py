from __future__ import annotations
import os
import shutil
from typing import Callable, List, Optional
from .archives import extract_tar
from .config import InstallConfig
from .errors import ExternalToolError
from .fs_layout import Layout
from .net import HttpClient
from .process_runner import CommandResult, run_command
from .settings import Settings
from .logging_setup import get_logger

log = get_logger("dsp.installer.steamcmd")

FORCE_WINDOWS_PLATFORM = ["+@sSteamCmdForcePlatformType", "windows"]

def login_args(config: InstallConfig) -> List[str]:
    if config.anonymous:
        return ["+login", "anonymous"]
    args = ["+login", config.steam_user, config.steam_password]
    if config.steam_auth:
        args.append(config.steam_auth)
    return args

def app_update_args(config: InstallConfig, layout: Layout) -> List[str]:
    args: List[str] = ["+force_install_dir", str(layout.install_root)]
    args += login_args(config)
    if config.windows_install:
        args += FORCE_WINDOWS_PLATFORM
    args += ["+app_update", config.app_id]
    if config.beta_id:
        args += ["-beta", config.beta_id]
    if config.beta_password:
        args += ["-betapassword", config.beta_password]
    args += list(config.install_flags)
    args += ["validate", "+quit"]
    return args

class SteamCMD:
    def __init__(self, settings: Settings, layout: Layout, *, http: Optional[HttpClient] = None,
                 runner: Callable[..., CommandResult] = run_command):
        self.settings = settings
        self.layout = layout
        self.http = http or HttpClient(timeout=settings.http_timeout)
        self.runner = runner

    def _env(self) -> dict:
        env = dict(os.environ)
        env["HOME"] = str(self.layout.install_root)
        return env

    def _run(self, args: List[str], timeout: Optional[float] = None) -> CommandResult:
        cmd = [str(self.layout.steamcmd_sh)] + args
        return self.runner(cmd, cwd=self.layout.steamcmd_dir, env=self._env(), timeout=timeout)

    def bootstrap(self) -> None:
        """Download and unpack SteamCMD into the install root."""
        archive = self.settings.tmp_dir / "steamcmd.tar.gz"
        self.http.download(self.settings.steamcmd_url, archive)
        extract_tar(archive, self.layout.steamcmd_dir)
        archive.unlink(missing_ok=True)
        self.layout.steamapps.mkdir(parents=True, exist_ok=True)
        log.info("SteamCMD unpacked into %s", self.layout.steamcmd_dir)

    def probe_login(self, config: InstallConfig, timeout: float) -> CommandResult:
        """Short login without a Steam Guard code; killed after `timeout` seconds."""
        return self._run(["+login", config.steam_user, config.steam_password, "+quit"], timeout=timeout)

    def app_update(self, config: InstallConfig) -> CommandResult:
        log.info("Running SteamCMD app_update for AppID %s ...", config.app_id)
        return self._run(app_update_args(config, self.layout))

    def install_app(self, config: InstallConfig) -> None:
        result = self.app_update(config)
        if not result.ok:
            what = "anonymous install" if config.anonymous else "install"
            raise ExternalToolError(
                f"SteamCMD {what} of app {config.app_id} failed (rc={result.returncode}).",
                output=result.output,
            )

    def install_client_libraries(self) -> List[str]:
        """
        Copy steamclient.so into ~/.steam/sdk32 and sdk64.
        Best effort: failures are logged and returned, never raised.
        """
        failures: List[str] = []
        for arch, sdk_dir in (("linux32", self.layout.sdk32), ("linux64", self.layout.sdk64)):
            src = self.layout.steamcmd_dir / arch / "steamclient.so"
            try:
                sdk_dir.mkdir(parents=True, exist_ok=True)
                shutil.copy2(src, sdk_dir / "steamclient.so")
                log.debug("Copied %s -> %s", src, sdk_dir)
            except OSError as e:
                log.warning("Could not copy %s to %s: %s", src, sdk_dir, e)
                failures.append(arch)
        return failures

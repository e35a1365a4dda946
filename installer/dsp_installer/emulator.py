from __future__ import annotations
from .config import InstallConfig
from .fs_layout import Layout
from .net import HttpClient
from .settings import Settings
from .logging_setup import get_logger

log = get_logger("dsp.installer.emulator")

def install_goldberg(settings: Settings, layout: Layout, config: InstallConfig, http: HttpClient) -> None:
    """Drop in the Goldberg steam_api64.dll with networking disabled and the app id marker."""
    log.info("Downloading Goldberg steam_api64.dll ...")
    http.download(settings.goldberg_dll_url, layout.game_plugins / "steam_api64.dll")

    layout.steam_settings.mkdir(parents=True, exist_ok=True)
    (layout.steam_settings / "disable_networking.txt").touch()
    (layout.game_plugins / "steam_appid.txt").write_text(f"{config.app_id}\n", encoding="utf-8")
    log.info("Goldberg emulator configured in %s", layout.game_plugins)

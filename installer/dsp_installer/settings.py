from __future__ import annotations
from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    install_root: Path = Field(default=Path("/mnt/server"), alias="INSTALL_ROOT")
    tmp_dir: Path = Field(default=Path("/tmp"), alias="TMP_DIR")

    steamcmd_url: str = Field(
        default="https://steamcdn-a.akamaihd.net/client/installer/steamcmd_linux.tar.gz",
        alias="STEAMCMD_URL",
    )
    thunderstore_url: str = Field(default="https://thunderstore.io", alias="THUNDERSTORE_URL")
    goldberg_dll_url: str = Field(
        default="https://gitlab.com/Mr_Goldberg/goldberg_emulator/-/jobs/4247811310/artifacts/raw/steam_api64.dll",
        alias="GOLDBERG_DLL_URL",
    )

    login_probe_timeout: float = Field(default=30.0, alias="LOGIN_PROBE_TIMEOUT")
    http_timeout: float = Field(default=60.0, alias="HTTP_TIMEOUT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_file: Optional[Path] = Field(default=None, alias="LOG_FILE")

    game_data_dir: str = Field(default="DSPGAME_Data")
    loader_package: str = Field(default="xiaoye97/BepInEx")
    loader_pack_dir: str = Field(default="BepInExPack")

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

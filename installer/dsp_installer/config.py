"""
config.py — Panel input normalization
-------------------------------------
Turns the flat environment mapping supplied by the server panel into a single
frozen InstallConfig that every installer stage receives.
"""
from __future__ import annotations
import os
from enum import Enum
from typing import Mapping, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_APP_ID = "1366540"
ANONYMOUS_USER = "anonymous"


class AcquisitionMode(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class InstallConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: AcquisitionMode
    steam_user: str = ANONYMOUS_USER
    steam_password: str = Field(default="", repr=False)
    steam_auth: str = Field(default="", repr=False)
    app_id: str = DEFAULT_APP_ID
    beta_id: str = ""
    beta_password: str = Field(default="", repr=False)
    install_flags: Tuple[str, ...] = ()
    windows_install: bool = True
    profile_code: str = ""
    overwrite: bool = False

    @property
    def anonymous(self) -> bool:
        return self.mode is AcquisitionMode.ANONYMOUS

    @property
    def has_second_factor(self) -> bool:
        return bool(self.steam_auth)

    @property
    def has_profile(self) -> bool:
        return bool(self.profile_code)


def _value(env: Mapping[str, str], key: str, default: str = "") -> str:
    raw = env.get(key)
    if raw is None:
        return default
    raw = str(raw).strip()
    return raw if raw else default


def _flag(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = _value(env, key)
    if not raw:
        return default
    # anything that is not an explicit "on" counts as off; never an error
    return raw.lower() in ("1", "true")


def normalize_environment(env: Optional[Mapping[str, str]] = None) -> InstallConfig:
    """
    Build the InstallConfig from panel variables.

    Missing user or password selects anonymous mode; in that case any supplied
    STEAM_AUTH token is dropped so it can never reach the login command.
    """
    if env is None:
        env = os.environ

    user = _value(env, "STEAM_USER")
    password = _value(env, "STEAM_PASS")
    if user and password:
        mode = AcquisitionMode.AUTHENTICATED
        auth = _value(env, "STEAM_AUTH")
    else:
        mode = AcquisitionMode.ANONYMOUS
        user, password, auth = ANONYMOUS_USER, "", ""

    return InstallConfig(
        mode=mode,
        steam_user=user,
        steam_password=password,
        steam_auth=auth,
        app_id=_value(env, "SRCDS_APPID", DEFAULT_APP_ID),
        beta_id=_value(env, "SRCDS_BETAID"),
        beta_password=_value(env, "SRCDS_BETAPASS"),
        # plain whitespace split, the same way the panel's shell would
        install_flags=tuple(_value(env, "INSTALL_FLAGS").split()),
        windows_install=_flag(env, "WINDOWS_INSTALL", True),
        profile_code=_value(env, "V_PROFILECODE"),
        overwrite=_flag(env, "BEPINEX_UPDATE_OVERWRITE", False),
    )

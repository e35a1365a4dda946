from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from .errors import ProfileError
from .logging_setup import get_logger

log = get_logger("dsp.installer.profile")

MANIFEST_NAME = "export.r2x"


class ModDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    enabled: bool = True

    @property
    def identifier(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def dir_name(self) -> str:
        return f"{self.namespace}-{self.name}"

    @classmethod
    def from_manifest_entry(cls, entry: Dict[str, Any]) -> "ModDescriptor":
        full_name = str(entry.get("name") or "")
        # Thunderstore names are "Namespace-Name"; only the first dash separates them
        namespace, _, name = full_name.partition("-")
        return cls(
            namespace=namespace,
            name=name,
            version=_version_string(entry.get("version")),
            enabled=bool(entry.get("enabled", False)),
        )


def _version_string(raw: Any) -> str:
    if isinstance(raw, dict):
        try:
            return ".".join(str(raw[k]) for k in ("major", "minor", "patch"))
        except KeyError as e:
            raise ProfileError(f"Mod version is missing {e.args[0]!r}") from e
    if raw is None:
        return ""
    return str(raw)


class Profile(BaseModel):
    name: str = ""
    mods: List[ModDescriptor] = Field(default_factory=list)

    def enabled_mods(self) -> List[ModDescriptor]:
        return [m for m in self.mods if m.enabled]

    def installable_mods(self, loader_package: str) -> List[ModDescriptor]:
        """Enabled mods without the plugin-loader entry, which is installed separately."""
        return [m for m in self.enabled_mods() if not is_loader_package(m, loader_package)]


def is_loader_package(mod: ModDescriptor, loader_package: str) -> bool:
    if mod.identifier.lower() == loader_package.lower():
        return True
    return "bepinexpack" in mod.name.lower()


def load_profile(path: Path) -> Profile:
    if not path.is_file():
        raise ProfileError(f"Profile manifest not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ProfileError(f"Could not read profile manifest {path}: {e}") from e
    if not isinstance(data, dict):
        raise ProfileError(f"Profile manifest {path} must be a mapping")

    entries = data.get("mods") or []
    if not isinstance(entries, list):
        raise ProfileError(f"'mods' in {path} must be a list")
    try:
        mods = [ModDescriptor.from_manifest_entry(e) for e in entries if isinstance(e, dict)]
        profile = Profile(name=str(data.get("profileName") or ""), mods=mods)
    except ValidationError as e:
        raise ProfileError(f"Invalid mod entry in {path}: {e}") from e
    log.info("Profile %r lists %d mods (%d enabled)", profile.name, len(profile.mods), len(profile.enabled_mods()))
    return profile

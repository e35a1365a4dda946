from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List
from .config import InstallConfig
from .fs_layout import Layout
from .process_runner import mask_command
from .settings import Settings
from .steamcmd import app_update_args

@dataclass
class PlanAction:
    stage: str
    action: str
    detail: str
    paths: Dict[str, str] = field(default_factory=dict)
    severity: str = "info"  # info|warn|error

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

@dataclass
class Plan:
    ok: bool
    mode: str
    actions: List[PlanAction]
    notes: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "mode": self.mode,
            "actions": [a.to_dict() for a in self.actions],
            "notes": list(self.notes),
        }

def build_plan(settings: Settings, layout: Layout, config: InstallConfig) -> Plan:
    """Describe what `run` would do for this configuration. No side effects."""
    actions: List[PlanAction] = []
    notes: List[str] = []
    root = str(layout.install_root)

    actions.append(PlanAction("acquire", "bootstrap_steamcmd", f"download {settings.steamcmd_url}",
                              {"dest": str(layout.steamcmd_dir)}))

    if config.anonymous:
        notes.append("No Steam credentials: anonymous install (may fail for paid games).")
    elif config.has_second_factor:
        notes.append("STEAM_AUTH supplied: single non-interactive login and install.")
    else:
        actions.append(PlanAction(
            "negotiate", "login_probe",
            f"short login without Steam Guard code, killed after {settings.login_probe_timeout:g}s",
            {"recovery_file": str(layout.recovery_file)},
            severity="warn",
        ))
        notes.append("If Steam Guard is required the run stops with exit code 2.")

    cmd = [str(layout.steamcmd_sh)] + app_update_args(config, layout)
    actions.append(PlanAction("acquire", "app_update", " ".join(mask_command(cmd)), {"dest": root}))
    actions.append(PlanAction("acquire", "copy_steamclient", "best effort",
                              {"sdk32": str(layout.sdk32), "sdk64": str(layout.sdk64)}))
    actions.append(PlanAction("acquire", "install_goldberg", settings.goldberg_dll_url,
                              {"dest": str(layout.game_plugins)}))
    actions.append(PlanAction("mods", "install_loader", f"latest {settings.loader_package} from {settings.thunderstore_url}",
                              {"dest": root}))

    if config.has_profile:
        policy = "overwrite all files" if config.overwrite else "keep existing files"
        actions.append(PlanAction("mods", "install_profile", f"profile {config.profile_code}, {policy}",
                                  {"scratch": str(layout.scratch), "dest": str(layout.bepinex)}))
    else:
        notes.append("No V_PROFILECODE: profile installation skipped.")

    return Plan(ok=True, mode=config.mode.value, actions=actions, notes=notes)

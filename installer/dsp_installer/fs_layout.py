from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from .settings import Settings

@dataclass(frozen=True)
class Layout:
    install_root: Path
    steamcmd_dir: Path
    steamcmd_sh: Path
    steamapps: Path
    sdk32: Path
    sdk64: Path
    game_plugins: Path
    steam_settings: Path
    bepinex: Path
    bepinex_plugins: Path
    loader_pack: Path
    scratch: Path
    work_dir: Path
    recovery_file: Path

def build_layout(settings: Settings) -> Layout:
    root = settings.install_root
    steamcmd_dir = root / "steamcmd"
    game_plugins = root / settings.game_data_dir / "Plugins"
    return Layout(
        install_root=root,
        steamcmd_dir=steamcmd_dir,
        steamcmd_sh=steamcmd_dir / "steamcmd.sh",
        steamapps=root / "steamapps",
        sdk32=root / ".steam" / "sdk32",
        sdk64=root / ".steam" / "sdk64",
        game_plugins=game_plugins,
        steam_settings=game_plugins / "steam_settings",
        bepinex=root / "BepInEx",
        bepinex_plugins=root / "BepInEx" / "plugins",
        loader_pack=root / settings.loader_pack_dir,
        scratch=root / "tmp_mods",
        work_dir=root / "tmp",
        recovery_file=root / "steamcmd_manual_instructions.txt",
    )

def ensure_dirs(layout: Layout) -> None:
    for p in [layout.install_root, layout.steamcmd_dir, layout.steamapps]:
        p.mkdir(parents=True, exist_ok=True)

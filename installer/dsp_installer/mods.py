"""
mods.py — BepInEx and Thunderstore profile installation
-------------------------------------------------------
Installs the BepInEx plugin loader over the game directory and, when a
profile code is configured, rebuilds BepInEx/plugins from that profile.
"""
from __future__ import annotations
import shutil
from pathlib import Path
from typing import List
from .archives import (
    clear_dir,
    collapse_single_child_dirs,
    extract_zip,
    fix_filenames,
    merge_tree,
    package_dir_name,
)
from .config import InstallConfig
from .fs_layout import Layout
from .profile import MANIFEST_NAME, ModDescriptor, load_profile
from .settings import Settings
from .thunderstore import ThunderstoreClient
from .logging_setup import get_logger

log = get_logger("dsp.installer.mods")


class ModInstaller:
    def __init__(self, settings: Settings, layout: Layout, config: InstallConfig, client: ThunderstoreClient):
        self.settings = settings
        self.layout = layout
        self.config = config
        self.client = client

    # ---------------------------------------------------------------------- #
    def install_loader(self) -> str:
        """Download the latest BepInEx pack and overlay it on the install root. Returns its version."""
        log.info("Downloading %s release info ...", self.settings.loader_package)
        release = self.client.latest_release(self.settings.loader_package)
        archive = self.client.download_release(release, self.layout.install_root)
        extract_zip(archive, self.layout.install_root)

        pack = self.layout.loader_pack
        if pack.is_dir():
            shutil.copytree(pack, self.layout.install_root, dirs_exist_ok=True)
        else:
            log.warning("%s not found in the %s archive, nothing to overlay.", pack.name, release.name)
        log.info("%s %s installed.", self.settings.loader_package, release.version_number)
        return release.version_number

    # ---------------------------------------------------------------------- #
    def install_profile(self, code: str) -> List[str]:
        """
        Resolve a profile code and rebuild BepInEx from it.
        Returns the directory names of the installed mods.
        """
        scratch = self.layout.scratch
        self._reset_dir(scratch)

        extract_zip(self.client.fetch_profile(code), scratch)
        log.info("Profile archive extracted into %s", scratch)

        profile = load_profile(scratch / MANIFEST_NAME)
        mods = profile.installable_mods(self.settings.loader_package)
        skipped = len(profile.enabled_mods()) - len(mods)
        if skipped:
            log.info("Skipping %d loader entr%s, installed separately.", skipped, "y" if skipped == 1 else "ies")

        plugins_out = scratch / "BepInEx" / "plugins"
        installed = [self.install_mod(mod, plugins_out) for mod in mods]

        log.info("Preparing mod files")
        fix_filenames(scratch)
        self._flatten_bepinex(scratch)

        clear_dir(self.layout.bepinex_plugins)
        self.layout.bepinex.mkdir(parents=True, exist_ok=True)
        if self.config.overwrite:
            log.info("Overwriting all mod files.")
        else:
            log.info("Updating mods (not overwriting configs, ensure no changes are required)")
        copied = merge_tree(scratch, self.layout.bepinex, overwrite=self.config.overwrite)
        log.debug("Copied %d files into %s", copied, self.layout.bepinex)

        shutil.rmtree(scratch)
        log.info("Mods updated: %d installed.", len(installed))
        return installed

    # ---------------------------------------------------------------------- #
    def install_mod(self, mod: ModDescriptor, out_dir: Path) -> str:
        dir_name = package_dir_name(mod.identifier)
        log.info("Downloading mod %s @ %s (%s)", mod.identifier, mod.version, dir_name)

        work = self.layout.work_dir
        self._reset_dir(work)
        archive = self.client.download_package(mod.identifier, mod.version, work / "package.zip")
        unpacked = extract_zip(archive, work / "content")
        archive.unlink()

        fix_filenames(unpacked)
        collapse_single_child_dirs(unpacked)

        target = out_dir / dir_name
        target.mkdir(parents=True, exist_ok=True)
        for child in list(unpacked.iterdir()):
            dst = target / child.name
            if dst.is_dir() and not dst.is_symlink():
                shutil.rmtree(dst)
            elif dst.exists() or dst.is_symlink():
                dst.unlink()
            shutil.move(str(child), str(dst))
        shutil.rmtree(work)
        return dir_name

    # ---------------------------------------------------------------------- #
    def _flatten_bepinex(self, scratch: Path) -> None:
        """Merge scratch/BepInEx/* into scratch itself."""
        nested = scratch / "BepInEx"
        if not nested.is_dir():
            return
        shutil.copytree(nested, scratch, dirs_exist_ok=True)
        shutil.rmtree(nested)

    @staticmethod
    def _reset_dir(path: Path) -> None:
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True)

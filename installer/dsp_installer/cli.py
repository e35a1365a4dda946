from __future__ import annotations
import argparse
import json
from .settings import Settings
from .config import normalize_environment
from .logging_setup import setup_logging, get_logger
from .orchestrator import Installer

log = get_logger("dsp.installer.cli")

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="dsp-installer")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("run", help="Install SteamCMD, the game, Goldberg, BepInEx and the optional mod profile")
    sub.add_parser("plan", help="Print a dry-run plan as JSON and exit")

    args = parser.parse_args(argv)
    settings = Settings()
    setup_logging(settings)
    config = normalize_environment()
    installer = Installer(settings, config)

    if args.cmd == "plan":
        print(json.dumps(installer.plan().to_dict(), indent=2, ensure_ascii=False))
        return 0

    if args.cmd == "run":
        log.info("=== Starting Dyson Sphere Program server install (mode=%s) ===", config.mode.value)
        return installer.run()

    return 1

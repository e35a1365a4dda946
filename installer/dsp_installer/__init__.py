"""
dsp_installer package
---------------------
Container-startup installer for a Dyson Sphere Program dedicated server.
Contains modules for configuration, SteamCMD login/install, the Goldberg
network emulator, BepInEx and Thunderstore profile installation, and logging.
"""

__version__ = "0.1.0"

#!/usr/bin/env python3
"""
Dyson Sphere Program dedicated server installer
Container entry point: runs the full install and exits with its status code.
"""

import sys
from dsp_installer.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:] or ["run"]))

from __future__ import annotations
import json
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any, Dict
from . import __version__
from .errors import NetworkError
from .logging_setup import get_logger

log = get_logger("dsp.installer.net")

USER_AGENT = f"dsp-server-installer/{__version__}"


class HttpClient:
    """Thin urllib wrapper; every failure surfaces as NetworkError."""

    def __init__(self, timeout: float = 60.0):
        self.timeout = timeout

    def _open(self, url: str, accept: str = "*/*"):
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT, "Accept": accept})
        try:
            return urllib.request.urlopen(req, timeout=self.timeout)
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

    def get_text(self, url: str) -> str:
        log.debug("GET %s", url)
        with self._open(url) as response:
            try:
                return response.read().decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise NetworkError(f"Could not read response from {url}: {e}") from e

    def get_json(self, url: str) -> Dict[str, Any]:
        log.debug("GET %s", url)
        with self._open(url, accept="application/json") as response:
            try:
                data = json.loads(response.read().decode("utf-8"))
            except (OSError, ValueError) as e:
                raise NetworkError(f"Invalid JSON from {url}: {e}") from e
        if not isinstance(data, dict):
            raise NetworkError(f"Unexpected response from {url}: expected an object")
        return data

    def download(self, url: str, dest: Path) -> Path:
        log.info("Downloading %s -> %s", url, dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with self._open(url) as response:
            try:
                with open(dest, "wb") as fh:
                    shutil.copyfileobj(response, fh)
            except OSError as e:
                dest.unlink(missing_ok=True)
                raise NetworkError(f"Download of {url} failed: {e}") from e
        return dest

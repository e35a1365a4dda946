"""
thunderstore.py — Thunderstore package registry client
------------------------------------------------------
Resolves the latest release of a package, downloads specific package
versions, and fetches legacy (r2modman) profiles by code.
"""
from __future__ import annotations
import base64
import binascii
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ValidationError
from .errors import ArchiveError, NetworkError
from .net import HttpClient
from .logging_setup import get_logger

log = get_logger("dsp.installer.thunderstore")


class PackageRelease(BaseModel):
    namespace: str
    name: str
    version_number: str
    download_url: str

    @property
    def archive_name(self) -> str:
        return f"{self.namespace}-{self.name}-{self.version_number}.zip"


def split_identifier(identifier: str) -> tuple:
    namespace, sep, name = identifier.partition("/")
    if not sep or not namespace or not name:
        raise ValueError(f"Invalid package identifier {identifier!r}, expected 'namespace/name'")
    return namespace, name


def decode_profile_payload(payload: str) -> bytes:
    """Drop the format marker on the first line and base64-decode the rest."""
    lines = payload.splitlines()
    body = "".join(line.strip() for line in lines[1:])
    if not body:
        raise ArchiveError("Profile payload is empty")
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ArchiveError(f"Profile payload is not valid base64: {e}") from e


class ThunderstoreClient:
    def __init__(self, base_url: str = "https://thunderstore.io", http: Optional[HttpClient] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http or HttpClient()

    def latest_release(self, identifier: str) -> PackageRelease:
        namespace, name = split_identifier(identifier)
        url = f"{self.base_url}/api/experimental/package/{namespace}/{name}/"
        data = self.http.get_json(url)
        latest = data.get("latest") or {}
        try:
            release = PackageRelease(
                namespace=namespace,
                name=name,
                version_number=latest.get("version_number"),
                download_url=latest.get("download_url"),
            )
        except ValidationError as e:
            raise NetworkError(f"Could not retrieve {identifier} release info from Thunderstore: {e}") from e
        log.info("Latest %s release: %s", identifier, release.version_number)
        return release

    def download_release(self, release: PackageRelease, dest_dir: Path) -> Path:
        return self.http.download(release.download_url, dest_dir / release.archive_name)

    def download_package(self, identifier: str, version: str, dest: Path) -> Path:
        namespace, name = split_identifier(identifier)
        url = f"{self.base_url}/package/download/{namespace}/{name}/{version}/"
        return self.http.download(url, dest)

    def fetch_profile(self, code: str) -> bytes:
        """Return the profile zip archive for a legacy profile code."""
        url = f"{self.base_url}/api/experimental/legacyprofile/get/{code}/"
        log.info("Downloading profile %s", code)
        return decode_profile_payload(self.http.get_text(url))

"""
Tests for the Thunderstore client and HTTP wrapper.
"""

import base64
import io
import json
import urllib.error
from unittest.mock import MagicMock, Mock, patch

import pytest

from dsp_installer.errors import ArchiveError, NetworkError
from dsp_installer.net import HttpClient
from dsp_installer.thunderstore import ThunderstoreClient, decode_profile_payload, split_identifier


def _response(body: bytes):
    resp = MagicMock()
    resp.__enter__.return_value = io.BytesIO(body)
    resp.__exit__.return_value = False
    return resp


class TestDecodeProfilePayload:

    def test_skips_marker_line(self):
        raw = b"PK\x03\x04zip-bytes"
        payload = "#r2modman\n" + base64.b64encode(raw).decode() + "\n"
        assert decode_profile_payload(payload) == raw

    def test_wrapped_base64(self):
        raw = bytes(range(200))
        encoded = base64.b64encode(raw).decode()
        payload = "#r2modman\n" + "\n".join(encoded[i:i + 76] for i in range(0, len(encoded), 76))
        assert decode_profile_payload(payload) == raw

    def test_empty_payload(self):
        with pytest.raises(ArchiveError):
            decode_profile_payload("#r2modman\n")

    def test_invalid_base64(self):
        with pytest.raises(ArchiveError):
            decode_profile_payload("#r2modman\nnot*base64!")


class TestThunderstoreClient:

    def test_latest_release(self):
        http = Mock(spec=HttpClient)
        http.get_json.return_value = {
            "latest": {"version_number": "5.4.17", "download_url": "https://thunderstore.io/package/download/x/"}
        }
        client = ThunderstoreClient("https://thunderstore.io/", http=http)

        release = client.latest_release("xiaoye97/BepInEx")

        http.get_json.assert_called_once_with("https://thunderstore.io/api/experimental/package/xiaoye97/BepInEx/")
        assert release.version_number == "5.4.17"
        assert release.archive_name == "xiaoye97-BepInEx-5.4.17.zip"

    def test_latest_release_missing_fields(self):
        http = Mock(spec=HttpClient)
        http.get_json.return_value = {"latest": {}}
        with pytest.raises(NetworkError):
            ThunderstoreClient(http=http).latest_release("xiaoye97/BepInEx")

    def test_download_package_url(self, tmp_path):
        http = Mock(spec=HttpClient)
        http.download.side_effect = lambda url, dest: dest
        client = ThunderstoreClient("https://ts.example", http=http)

        dest = client.download_package("nebula/NebulaMultiplayerMod", "0.9.10", tmp_path / "p.zip")

        http.download.assert_called_once_with(
            "https://ts.example/package/download/nebula/NebulaMultiplayerMod/0.9.10/", tmp_path / "p.zip"
        )
        assert dest == tmp_path / "p.zip"

    def test_fetch_profile(self):
        http = Mock(spec=HttpClient)
        http.get_text.return_value = "#r2modman\n" + base64.b64encode(b"zipdata").decode()
        client = ThunderstoreClient("https://ts.example", http=http)

        assert client.fetch_profile("abc-123") == b"zipdata"
        http.get_text.assert_called_once_with("https://ts.example/api/experimental/legacyprofile/get/abc-123/")

    def test_invalid_identifier(self):
        with pytest.raises(ValueError):
            split_identifier("no-slash")


class TestHttpClient:

    def test_get_json(self):
        with patch("dsp_installer.net.urllib.request.urlopen", return_value=_response(json.dumps({"a": 1}).encode())):
            assert HttpClient().get_json("https://x.example/") == {"a": 1}

    def test_get_json_rejects_non_object(self):
        with patch("dsp_installer.net.urllib.request.urlopen", return_value=_response(b"[1, 2]")):
            with pytest.raises(NetworkError):
                HttpClient().get_json("https://x.example/")

    def test_network_failure(self):
        with patch("dsp_installer.net.urllib.request.urlopen", side_effect=urllib.error.URLError("down")):
            with pytest.raises(NetworkError):
                HttpClient().get_text("https://x.example/")

    def test_download(self, tmp_path):
        with patch("dsp_installer.net.urllib.request.urlopen", return_value=_response(b"payload")):
            dest = HttpClient().download("https://x.example/f", tmp_path / "sub" / "f.bin")
        assert dest.read_bytes() == b"payload"

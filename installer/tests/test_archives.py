"""
Tests for archive extraction and tree normalization.
"""

import io
import struct
import zipfile

import pytest

from dsp_installer.archives import (
    clear_dir,
    collapse_single_child_dirs,
    extract_zip,
    fix_filenames,
    merge_tree,
    normalize_path_name,
    package_dir_name,
)
from dsp_installer.errors import ArchiveError


def _zip_bytes(files):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buf.getvalue()


def _patch_headers(data, *, local_offset, central_offset, value):
    """Overwrite a 2-byte field in the local and central headers of a single-member zip."""
    raw = bytearray(data)
    central = raw.index(b"PK\x01\x02")
    raw[local_offset:local_offset + 2] = struct.pack("<H", value)
    raw[central + central_offset:central + central_offset + 2] = struct.pack("<H", value)
    return bytes(raw)


def _tree(root):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


class TestNormalizePathName:

    @pytest.mark.parametrize("name", [
        "plain.txt",
        "BepInEx\\plugins\\Mod.dll",
        "a\\\\b",
        "mixed/sep\\file",
        "\\leading",
    ])
    def test_no_backslash_and_idempotent(self, name):
        once = normalize_path_name(name)
        assert "\\" not in once
        assert normalize_path_name(once) == once

    def test_package_dir_name(self):
        assert package_dir_name("nebula/NebulaMultiplayerMod") == "nebula-NebulaMultiplayerMod"


class TestFixFilenames:

    def test_backslash_files_become_nested(self, tmp_path):
        (tmp_path / "BepInEx\\plugins\\Mod.dll").write_text("dll")
        (tmp_path / "BepInEx\\config\\mod.cfg").write_text("cfg")
        (tmp_path / "manifest.json").write_text("{}")

        moved = fix_filenames(tmp_path)

        assert moved == 2
        assert _tree(tmp_path) == ["BepInEx/config/mod.cfg", "BepInEx/plugins/Mod.dll", "manifest.json"]
        assert not any("\\" in p.name for p in tmp_path.rglob("*"))

    def test_backslash_directory_with_nested_backslash_file(self, tmp_path):
        bad_dir = tmp_path / "a\\b"
        bad_dir.mkdir()
        (bad_dir / "c\\d.txt").write_text("x")

        fix_filenames(tmp_path)

        assert _tree(tmp_path) == ["a/b/c/d.txt"]

    def test_second_pass_is_noop(self, tmp_path):
        (tmp_path / "x\\y.txt").write_text("x")
        fix_filenames(tmp_path)
        before = _tree(tmp_path)
        assert fix_filenames(tmp_path) == 0
        assert _tree(tmp_path) == before

    def test_backslash_name_escaping_root_is_refused(self, tmp_path):
        scratch = tmp_path / "a" / "b" / "scratch"
        scratch.mkdir(parents=True)
        (scratch / "..\\..\\..\\evil.txt").write_text("x")

        with pytest.raises(ArchiveError):
            fix_filenames(scratch)

        assert not (tmp_path / "evil.txt").exists()


class TestCollapseSingleChildDirs:

    def test_single_wrapper_folder(self, tmp_path):
        inner = tmp_path / "Wrapper" / "plugins"
        inner.mkdir(parents=True)
        (inner / "a.dll").write_text("a")
        (inner / "b.dll").write_text("b")

        levels = collapse_single_child_dirs(tmp_path)

        assert levels == 1
        assert _tree(tmp_path) == ["plugins/a.dll", "plugins/b.dll"]

    def test_chain_down_to_single_file(self, tmp_path):
        deep = tmp_path / "one" / "two"
        deep.mkdir(parents=True)
        (deep / "Mod.dll").write_text("m")
        (tmp_path / "manifest.json").write_text("{}")

        collapse_single_child_dirs(tmp_path)

        assert _tree(tmp_path) == ["Mod.dll", "manifest.json"]
        assert [p for p in tmp_path.iterdir() if p.is_dir()] == []

    def test_same_name_child(self, tmp_path):
        inner = tmp_path / "Mod" / "Mod"
        inner.mkdir(parents=True)
        (inner / "x.dll").write_text("x")
        (inner / "y.dll").write_text("y")

        collapse_single_child_dirs(tmp_path)

        assert _tree(tmp_path) == ["Mod/x.dll", "Mod/y.dll"]

    def test_multiple_top_level_dirs_untouched(self, tmp_path):
        (tmp_path / "a" / "only").mkdir(parents=True)
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / "f.txt").write_text("f")

        assert collapse_single_child_dirs(tmp_path) == 0
        assert (tmp_path / "a" / "only").is_dir()

    def test_branching_level_stops(self, tmp_path):
        top = tmp_path / "top"
        top.mkdir()
        (top / "x.txt").write_text("x")
        (top / "y.txt").write_text("y")

        assert collapse_single_child_dirs(tmp_path) == 0
        assert _tree(tmp_path) == ["top/x.txt", "top/y.txt"]

    def test_collision_with_root_file_stops(self, tmp_path):
        (tmp_path / "wrap").mkdir()
        (tmp_path / "wrap" / "readme.txt").write_text("inner")
        (tmp_path / "readme.txt").write_text("outer")

        assert collapse_single_child_dirs(tmp_path) == 0
        assert (tmp_path / "readme.txt").read_text() == "outer"


class TestMergeTree:

    def _src(self, tmp_path):
        src = tmp_path / "src"
        (src / "config").mkdir(parents=True)
        (src / "config.cfg").write_text("new")
        (src / "config" / "mod.cfg").write_text("new-mod")
        return src

    def test_without_overwrite_keeps_existing(self, tmp_path):
        src = self._src(tmp_path)
        dst = tmp_path / "dst"
        dst.mkdir()
        (dst / "config.cfg").write_text("edited")

        copied = merge_tree(src, dst, overwrite=False)

        assert copied == 1
        assert (dst / "config.cfg").read_text() == "edited"
        assert (dst / "config" / "mod.cfg").read_text() == "new-mod"

    def test_with_overwrite_replaces(self, tmp_path):
        src = self._src(tmp_path)
        dst = tmp_path / "dst"
        dst.mkdir()
        (dst / "config.cfg").write_text("edited")

        merge_tree(src, dst, overwrite=True)

        assert (dst / "config.cfg").read_text() == "new"


class TestExtractAndClear:

    def test_extract_bytes(self, tmp_path):
        out = extract_zip(_zip_bytes({"a/b.txt": "hi"}), tmp_path / "out")
        assert (out / "a" / "b.txt").read_text() == "hi"

    def test_extract_bad_archive(self, tmp_path):
        bad = tmp_path / "bad.zip"
        bad.write_bytes(b"not a zip")
        with pytest.raises(ArchiveError):
            extract_zip(bad, tmp_path / "out")

    def test_extract_unsupported_compression(self, tmp_path):
        """Deflate64 (method 9) is common in Windows-built zips; zipfile cannot read it."""
        data = _patch_headers(_zip_bytes({"mod.dll": "x"}), local_offset=8, central_offset=10, value=9)
        with pytest.raises(ArchiveError):
            extract_zip(data, tmp_path / "out")

    def test_extract_encrypted_member(self, tmp_path):
        data = _patch_headers(_zip_bytes({"mod.dll": "x"}), local_offset=6, central_offset=8, value=1)
        with pytest.raises(ArchiveError):
            extract_zip(data, tmp_path / "out")

    def test_clear_dir_keeps_directory(self, tmp_path):
        target = tmp_path / "plugins"
        (target / "old").mkdir(parents=True)
        (target / "old.dll").write_text("x")

        clear_dir(target)

        assert target.is_dir()
        assert list(target.iterdir()) == []

    def test_clear_missing_dir(self, tmp_path):
        clear_dir(tmp_path / "missing")

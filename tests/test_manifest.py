"""Tests for the manifest of compiled assets."""
import json
import logging
import os
import re
import time

import pytest

from asset_pipeline.infra.common.errors import ArgumentError, PipelineError
from asset_pipeline.use_cases.manifest import Manifest

PNG = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe"

CANONICAL = re.compile(r"^\.sprockets-manifest-[0-9a-f]{32}\.json$")


def _read(manifest):
    with open(manifest.filename, "r", encoding="utf-8") as f:
        return json.load(f)


# ============================================================================
# Filename discovery
# ============================================================================

def test_directory_gets_random_canonical_name(environment, output_dir):
    """Test a new manifest picks a hidden randomized name without writing it."""
    manifest = Manifest(environment, output_dir)
    
    assert manifest.directory == output_dir
    assert CANONICAL.match(os.path.basename(manifest.filename))
    assert not os.path.exists(manifest.filename)
    
    manifest.save()
    
    assert os.path.exists(manifest.filename)
    assert _read(manifest) == {"files": {}, "assets": {}}


def test_existing_canonical_manifest_is_reused(environment, output_dir):
    """Test an existing canonical manifest is found."""
    first = Manifest(environment, output_dir)
    first.save()
    
    second = Manifest(environment, output_dir)
    
    assert second.filename == first.filename


def test_full_manifest_filename(environment, output_dir):
    """Test a path ending in .json is the manifest file."""
    filename = os.path.join(output_dir, "my-manifest.json")
    
    manifest = Manifest(environment, filename)
    
    assert manifest.filename == filename
    assert manifest.path == filename
    assert manifest.directory == output_dir


def test_directory_and_filename(environment, output_dir):
    """Test an explicit filename is resolved against the directory."""
    manifest = Manifest(environment, output_dir, "my-manifest.json")
    
    assert manifest.filename == os.path.join(output_dir, "my-manifest.json")
    assert manifest.directory == output_dir


@pytest.mark.parametrize("legacy_name", ["manifest.json", "manifest-" + "a" * 32 + ".json"])
def test_legacy_manifest_is_migrated(environment, output_dir, write_file, legacy_name):
    """Test legacy manifests are read and replaced by a canonical one on save."""
    os.makedirs(output_dir)
    legacy = os.path.join(output_dir, legacy_name)
    with open(legacy, "w", encoding="utf-8") as f:
        json.dump({"files": {}, "assets": {"old.js": "old-abc.js"}}, f)
    write_file("application.js", "var app;\n")
    
    manifest = Manifest(environment, output_dir)
    
    assert manifest.filename == legacy
    assert manifest.assets == {"old.js": "old-abc.js"}
    
    manifest.compile("application.js")
    
    assert CANONICAL.match(os.path.basename(manifest.filename))
    assert not os.path.exists(legacy)
    assert set(_read(manifest)["assets"]) == {"old.js", "application.js"}


def test_manifest_requires_location(environment):
    """Test a manifest needs a directory or a filename."""
    with pytest.raises(PipelineError):
        Manifest(environment)


@pytest.mark.parametrize("content", ["", "   \n", "{not json", "[]", '{"files": 3}'])
def test_unreadable_manifest_is_empty(environment, output_dir, content):
    """Test blank, invalid or malformed manifests load as empty."""
    os.makedirs(output_dir)
    filename = os.path.join(output_dir, ".sprockets-manifest-" + "b" * 32 + ".json")
    with open(filename, "w", encoding="utf-8") as f:
        f.write(content)
    
    manifest = Manifest(environment, output_dir)
    
    assert manifest.filename == filename
    assert manifest.assets == {}
    assert manifest.files == {}


# ============================================================================
# Compile
# ============================================================================

def test_compile_writes_digest_file_and_entry(environment, output_dir, write_file):
    """Test compile writes the output and records it."""
    write_file("a.js", "var a;\n")
    write_file("application.js", "//= require a\nvar app;\n")
    manifest = Manifest(environment, output_dir)
    
    compiled = manifest.compile("application.js")
    
    asset = compiled[0]
    digest_path = f"application-{asset.digest}.js"
    output = os.path.join(output_dir, digest_path)
    with open(output, "r", encoding="utf-8") as f:
        assert f.read() == "var a;\nvar app;\n"
    
    data = _read(manifest)
    assert data["assets"]["application.js"] == digest_path
    entry = data["files"][digest_path]
    assert entry["logical_path"] == "application.js"
    assert entry["size"] == asset.length
    assert entry["digest"] == asset.digest
    assert "mtime" in entry
    assert os.path.getmtime(output) == pytest.approx(asset.mtime.timestamp(), abs=1e-3)


def test_compile_nested_logical_path(environment, output_dir, write_file):
    """Test outputs keep their directory."""
    write_file("mobile/app.js", "var app;\n")
    manifest = Manifest(environment, output_dir)
    
    asset = manifest.compile("mobile/app.js")[0]
    
    assert manifest.assets["mobile/app.js"] == f"mobile/app-{asset.digest}.js"
    assert os.path.exists(os.path.join(output_dir, "mobile", f"app-{asset.digest}.js"))


def test_compile_index_file(environment, output_dir, write_file):
    """Test index files compile under their directory's logical path."""
    write_file("coffee/index.js", "var coffee;\n")
    manifest = Manifest(environment, output_dir)
    
    asset = manifest.compile("coffee.js")[0]
    
    assert manifest.assets == {"coffee.js": f"coffee-{asset.digest}.js"}


def test_compile_linked_assets(environment, output_dir, write_file):
    """Test linked assets are compiled alongside."""
    write_file("gallery.js", "var gallery;\n")
    write_file("gallery-link.js", "//= link gallery.js\nvar link;\n")
    manifest = Manifest(environment, output_dir)
    
    compiled = manifest.compile("gallery-link.js")
    
    assert [asset.logical_path for asset in compiled] == ["gallery-link.js", "gallery.js"]
    assert set(manifest.assets) == {"gallery-link.js", "gallery.js"}


def test_compile_required_files_are_linked(environment, output_dir, write_file):
    """Test required files are compiled as assets of their own."""
    write_file("a.js", "var a;\n")
    write_file("application.js", "//= require a\n")
    manifest = Manifest(environment, output_dir)
    
    manifest.compile("application.js")
    
    assert set(manifest.assets) == {"application.js", "a.js"}


def test_compile_is_idempotent(environment, output_dir, write_file):
    """Test compiling unchanged sources keeps a single entry."""
    write_file("application.js", "var app;\n")
    manifest = Manifest(environment, output_dir)
    
    manifest.compile("application.js")
    first = dict(manifest.assets)
    manifest.compile("application.js")
    
    assert manifest.assets == first
    assert len(manifest.files) == 1


def test_recompile_after_change_keeps_old_version(environment, output_dir, write_file):
    """Test a changed asset gets a new digest path and the old one is retained."""
    write_file("application.js", "var app = 1;\n")
    manifest = Manifest(environment, output_dir)
    old = manifest.compile("application.js")[0]
    
    write_file("application.js", "var app = 2;\n", mtime=time.time() - 10)
    new = manifest.compile("application.js")[0]
    
    assert new.digest != old.digest
    assert manifest.assets["application.js"] == f"application-{new.digest}.js"
    assert set(manifest.files) == {f"application-{old.digest}.js", f"application-{new.digest}.js"}
    assert os.path.exists(os.path.join(output_dir, f"application-{old.digest}.js"))


def test_compile_with_glob(environment, output_dir, write_file):
    """Test compile accepts glob patterns."""
    write_file("a.js", "var a;\n")
    write_file("b.js", "var b;\n")
    write_file("c.css", "c {}\n")
    manifest = Manifest(environment, output_dir)
    
    manifest.compile("*.js")
    
    assert set(manifest.assets) == {"a.js", "b.js"}


def test_compile_with_regex(environment, output_dir, write_file):
    """Test compile accepts compiled regexes."""
    write_file("a.js", "var a;\n")
    write_file("c.css", "c {}\n")
    manifest = Manifest(environment, output_dir)
    
    manifest.compile(re.compile(r"\.css$"))
    
    assert set(manifest.assets) == {"c.css"}


def test_compile_with_predicates(environment, output_dir, write_file, load_path):
    """Test compile accepts one and two argument callables."""
    write_file("a.js", "var a;\n")
    write_file("b.js", "var b;\n")
    manifest = Manifest(environment, output_dir)
    
    manifest.compile(lambda logical_path: logical_path == "a.js")
    manifest.compile(lambda logical_path, path: path == os.path.join(load_path, "b.js"))
    
    assert set(manifest.assets) == {"a.js", "b.js"}


def test_compile_without_environment(output_dir):
    """Test compile needs an environment."""
    manifest = Manifest(None, output_dir)

    with pytest.raises(PipelineError):
        manifest.compile("application.js")


def test_compile_with_invalid_environment(output_dir):
    """Test an object that is not an environment is rejected."""
    manifest = Manifest("not-an-environment", output_dir)

    with pytest.raises(PipelineError, match="AssetEnvironment"):
        manifest.compile("application.js")
    with pytest.raises(PipelineError):
        list(manifest.find("application.js"))


def test_compile_binary_asset(environment, output_dir, write_file, load_path):
    """Test binary files are copied byte for byte next to text assets."""
    write_file("application.js", "var app;\n")
    with open(os.path.join(load_path, "logo.png"), "wb") as f:
        f.write(PNG)
    manifest = Manifest(environment, output_dir)

    compiled = manifest.compile(re.compile(r".*"))

    assert sorted(asset.logical_path for asset in compiled) == ["application.js", "logo.png"]
    digest_path = manifest.assets["logo.png"]
    with open(os.path.join(output_dir, digest_path), "rb") as f:
        assert f.read() == PNG
    assert manifest.files[digest_path].size == len(PNG)


def test_compile_unknown_name_warns(environment, output_dir, caplog):
    """Test an exact name matching nothing is logged and skipped."""
    manifest = Manifest(environment, output_dir)
    
    with caplog.at_level(logging.WARNING):
        compiled = manifest.compile("missing.js")
    
    assert compiled == []
    assert "missing.js" in caplog.text
    assert os.path.exists(manifest.filename)


def test_manifest_reloads_from_disk(environment, output_dir, write_file):
    """Test a second manifest sees what the first compiled."""
    write_file("application.js", "var app;\n")
    Manifest(environment, output_dir).compile("application.js")
    
    reloaded = Manifest(environment, output_dir)
    
    assert set(reloaded.assets) == {"application.js"}
    assert reloaded.files[reloaded.assets["application.js"]].logical_path == "application.js"


def test_no_temporary_files_left(environment, output_dir, write_file):
    """Test atomic writes leave only final files behind."""
    write_file("application.js", "var app;\n")
    manifest = Manifest(environment, output_dir)
    
    manifest.compile("application.js")
    
    assert not [name for name in os.listdir(output_dir) if name.startswith(".tmp-")]


# ============================================================================
# Find
# ============================================================================

def test_find_is_restartable(environment, output_dir, write_file):
    """Test find results can be iterated more than once."""
    write_file("a.js", "var a;\n")
    write_file("b.js", "var b;\n")
    manifest = Manifest(environment, output_dir)
    
    found = manifest.find("*.js")
    
    assert [asset.logical_path for asset in found] == ["a.js", "b.js"]
    assert [asset.logical_path for asset in found] == ["a.js", "b.js"]


def test_find_absolute_path(environment, output_dir, write_file):
    """Test find accepts an absolute path."""
    path = write_file("a.js", "var a;\n")
    manifest = Manifest(environment, output_dir)
    
    assert [asset.pathname for asset in manifest.find(path)] == [path]


def test_find_deduplicates_across_patterns(environment, output_dir, write_file):
    """Test an asset matched by several patterns is yielded once."""
    write_file("a.js", "var a;\n")
    manifest = Manifest(environment, output_dir)
    
    assert len(list(manifest.find("a.js", "*.js", re.compile("a")))) == 1


def test_find_unsupported_pattern(environment, output_dir):
    """Test unsupported pattern types are rejected."""
    manifest = Manifest(environment, output_dir)
    
    with pytest.raises(ArgumentError):
        manifest.find(42)


# ============================================================================
# Remove
# ============================================================================

def test_remove(environment, output_dir, write_file):
    """Test remove deletes the output, its entry and its pointer."""
    write_file("application.js", "var app;\n")
    manifest = Manifest(environment, output_dir)
    asset = manifest.compile("application.js")[0]
    digest_path = f"application-{asset.digest}.js"
    
    manifest.remove(digest_path)
    
    assert not os.path.exists(os.path.join(output_dir, digest_path))
    assert manifest.files == {}
    assert manifest.assets == {}
    assert _read(manifest) == {"files": {}, "assets": {}}


def test_remove_old_version_keeps_pointer(environment, output_dir, write_file):
    """Test removing a non-current version leaves the pointer alone."""
    write_file("application.js", "var app = 1;\n")
    manifest = Manifest(environment, output_dir)
    old = manifest.compile("application.js")[0]
    write_file("application.js", "var app = 2;\n")
    new = manifest.compile("application.js")[0]
    
    manifest.remove(f"application-{old.digest}.js")
    
    assert manifest.assets == {"application.js": f"application-{new.digest}.js"}


def test_remove_is_idempotent(environment, output_dir):
    """Test removing an unknown digest path is a no-op."""
    manifest = Manifest(environment, output_dir)
    
    manifest.remove("missing-abc.js")
    manifest.remove("missing-abc.js")

    assert manifest.files == {}


@pytest.mark.parametrize("digest_path", ["../outside.txt", "mobile/../../outside.txt"])
def test_remove_stays_in_output_directory(environment, output_dir, root, digest_path):
    """Test digest paths that leave the output directory are refused."""
    outside = root / "outside.txt"
    outside.write_text("keep me")
    manifest = Manifest(environment, output_dir)

    with pytest.raises(ArgumentError):
        manifest.remove(digest_path)

    assert outside.read_text() == "keep me"


# ============================================================================
# Clean
# ============================================================================

def _compile_versions(manifest, write_file, count):
    base = time.time() - 1000
    assets = []
    for version in range(count):
        write_file("application.js", f"var app = {version};\n", mtime=base + version)
        assets.append(manifest.compile("application.js")[0])
    return [f"application-{asset.digest}.js" for asset in assets]


def test_clean_keeps_only_most_recent(environment, output_dir, write_file):
    """Test clean(1, 0) leaves only the newest version."""
    manifest = Manifest(environment, output_dir)
    versions = _compile_versions(manifest, write_file, 4)
    
    removed = manifest.clean(1, 0)
    
    assert set(removed) == set(versions[:3])
    assert list(manifest.files) == [versions[3]]
    assert manifest.assets == {"application.js": versions[3]}
    for digest_path in versions[:3]:
        assert not os.path.exists(os.path.join(output_dir, digest_path))
    assert os.path.exists(os.path.join(output_dir, versions[3]))


def test_clean_keeps_count(environment, output_dir, write_file):
    """Test clean keeps the requested number of recent versions."""
    manifest = Manifest(environment, output_dir)
    versions = _compile_versions(manifest, write_file, 4)
    
    manifest.clean(keep=2, max_age=0)
    
    assert set(manifest.files) == set(versions[2:])


def test_clean_keeps_young_versions(environment, output_dir, write_file):
    """Test versions younger than max_age survive."""
    manifest = Manifest(environment, output_dir)
    versions = _compile_versions(manifest, write_file, 4)
    
    removed = manifest.clean(keep=0, max_age=3600)
    
    assert removed == []
    assert set(manifest.files) == set(versions)


def test_clean_never_removes_current(environment, output_dir, write_file):
    """Test the current version survives clean(0, 0)."""
    manifest = Manifest(environment, output_dir)
    versions = _compile_versions(manifest, write_file, 2)
    
    manifest.clean(keep=0, max_age=0)
    
    assert list(manifest.files) == [versions[1]]


def test_clean_reads_offset_less_timestamps(environment, output_dir):
    """Test manifests written with naive mtimes can still be cleaned."""
    os.makedirs(output_dir)
    path = os.path.join(output_dir, "manifest.json")
    files = {
        f"application-{version}.js": {
            "logical_path": "application.js",
            "mtime": f"2020-01-0{version}T00:00:00",
            "size": 9,
            "digest": str(version),
        }
        for version in (1, 2, 3)
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"files": files, "assets": {"application.js": "application-3.js"}}, f)
    manifest = Manifest(environment, output_dir)
    
    removed = manifest.clean(1, 0)
    
    assert set(removed) == {"application-1.js", "application-2.js"}
    assert list(manifest.files) == ["application-3.js"]
    assert manifest.data.files["application-3.js"].mtime.tzinfo is not None

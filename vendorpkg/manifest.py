"""Loading and validation of the `pkg.json` manifest.

A manifest declares the packages a project vendors, grouped by source kind::

    {
      "packages": {
        "archive": {"<name>": {"path": "<url>", "build": {"self": [...]}}},
        "files":   {"<name>": {"path": "<base url>", "files": {"<suffix>": "<local>"}, "build": {...}}},
        "git":     {"<name>": {"path": "<repo url>", "hash": "", "branch": "", "tag": "", "build": {...}}}
      }
    }

Within each bucket the declared order is preserved; it is the order in which
packages are fetched and attached to the dependency tree.
"""
import json
import os
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List

from .errors import ManifestError

MANIFEST_FILE = "pkg.json"
VENDOR_DIR = "vendor"
SRC_DIR = "src"
INSTALL_DIR = "pkg"

KIND_ARCHIVE = "archive"
KIND_FILES = "files"
KIND_GIT = "git"
# resolution visits buckets in this order
BUCKET_ORDER = (KIND_ARCHIVE, KIND_FILES, KIND_GIT)


@dataclass(frozen=True)
class BuildRecipe:
    self_build: List[str] = field(default_factory=list)
    outer_build: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ArchiveSpec:
    kind: ClassVar[str] = KIND_ARCHIVE
    name: str
    source_url: str
    build: BuildRecipe = field(default_factory=BuildRecipe)


@dataclass(frozen=True)
class FilesSpec:
    kind: ClassVar[str] = KIND_FILES
    name: str
    base_url: str
    files: Dict[str, str] = field(default_factory=dict)
    build: BuildRecipe = field(default_factory=BuildRecipe)


@dataclass(frozen=True)
class GitSpec:
    kind: ClassVar[str] = KIND_GIT
    name: str
    repo_url: str
    hash: str = ""
    branch: str = ""
    tag: str = ""
    build: BuildRecipe = field(default_factory=BuildRecipe)


@dataclass
class Manifest:
    archive: Dict[str, ArchiveSpec] = field(default_factory=dict)
    files: Dict[str, FilesSpec] = field(default_factory=dict)
    git: Dict[str, GitSpec] = field(default_factory=dict)
    path: str = None

    def bucket(self, kind):
        return getattr(self, kind)

    def packages(self):
        """All package specs, bucket by bucket, in declared order."""
        specs = []
        for kind in BUCKET_ORDER:
            specs.extend(self.bucket(kind).values())
        return specs

    def __len__(self):
        return sum(len(self.bucket(kind)) for kind in BUCKET_ORDER)


# -------------------- Filesystem layout --------------------

def get_vendor_path(pkg_home):
    return os.path.join(os.path.abspath(pkg_home), VENDOR_DIR)

def get_package_src_path(pkg_home, package_name):
    """Source location of a package: `<pkg_home>/vendor/src/<name>`."""
    return os.path.join(get_vendor_path(pkg_home), SRC_DIR, package_name)

def get_package_install_path(pkg_home, package_name):
    return os.path.join(get_vendor_path(pkg_home), INSTALL_DIR, package_name)


# -------------------- Decoding --------------------

def _require_str(value, what, path, package, allow_empty=True):
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ManifestError(f"{what} of package '{package}' must be a string", path=path, package=package)
    if not allow_empty and not value:
        raise ManifestError(f"{what} of package '{package}' must not be empty", path=path, package=package)
    return value


def _parse_instructions(value, what, path, package):
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(ins, str) for ins in value):
        raise ManifestError(f"{what} of package '{package}' must be a list of strings", path=path, package=package)
    return list(value)


def _parse_build(entry, path, package):
    build = entry.get("build")
    if build is None:
        build = {}
    if not isinstance(build, dict):
        raise ManifestError(f"build section of package '{package}' must be an object", path=path, package=package)
    return BuildRecipe(
        self_build=_parse_instructions(build.get("self"), "build.self", path, package),
        outer_build=_parse_instructions(build.get("build"), "build.build", path, package),
    )


def _check_name(name, path):
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ManifestError(f"invalid package name '{name}'", path=path, package=name)


def _parse_entry(kind, name, entry, path):
    if not isinstance(entry, dict):
        raise ManifestError(f"package '{name}' must be an object", path=path, package=name)
    url = _require_str(entry.get("path"), "path", path, name, allow_empty=False)
    build = _parse_build(entry, path, name)

    if kind == KIND_ARCHIVE:
        return ArchiveSpec(name=name, source_url=url, build=build)

    if kind == KIND_FILES:
        files = entry.get("files")
        if files is None:
            files = {}
        if not isinstance(files, dict):
            raise ManifestError(f"files of package '{name}' must be an object", path=path, package=name)
        for remote, local in files.items():
            _require_str(local, f"files['{remote}']", path, name, allow_empty=False)
        return FilesSpec(name=name, base_url=url, files=dict(files), build=build)

    return GitSpec(
        name=name,
        repo_url=url,
        hash=_require_str(entry.get("hash"), "hash", path, name),
        branch=_require_str(entry.get("branch"), "branch", path, name),
        tag=_require_str(entry.get("tag"), "tag", path, name),
        build=build,
    )


def parse_manifest(data, path=None):
    """
    Build a Manifest from decoded JSON data.

    Raises:
        ManifestError: if the structure does not follow the manifest schema.
    """
    if not isinstance(data, dict):
        raise ManifestError("manifest must be a JSON object", path=path)
    packages = data.get("packages")
    if packages is None:
        packages = {}
    if not isinstance(packages, dict):
        raise ManifestError("'packages' must be an object", path=path)

    manifest = Manifest(path=path)
    seen = {}
    for kind in BUCKET_ORDER:
        bucket = packages.get(kind)
        if bucket is None:
            bucket = {}
        if not isinstance(bucket, dict):
            raise ManifestError(f"'packages.{kind}' must be an object", path=path)
        for name, entry in bucket.items():
            _check_name(name, path)
            if name in seen:
                raise ManifestError(
                    f"package '{name}' is declared in both '{seen[name]}' and '{kind}'",
                    path=path, package=name,
                )
            seen[name] = kind
            manifest.bucket(kind)[name] = _parse_entry(kind, name, entry, path)
    return manifest


def manifest_path(home):
    return os.path.join(home, MANIFEST_FILE)


def load_manifest(home):
    """
    Read and decode `<home>/pkg.json`.

    Raises:
        ManifestError: if the file is missing, unreadable or invalid.
    """
    path = manifest_path(home)
    if os.path.isdir(path):
        raise ManifestError(f"{path} is not a file", path=path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ManifestError(f"manifest not found: {path}", path=path) from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"error decoding {path}: {e}", path=path) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"error reading {path}: {e}", path=path) from e
    return parse_manifest(data, path=path)


def find_nested_manifest(src_path):
    """Load the manifest shipped inside a fetched source tree, or None."""
    if not os.path.isfile(manifest_path(src_path)):
        return None
    return load_manifest(src_path)


def empty_manifest_data():
    return {"packages": {kind: {} for kind in BUCKET_ORDER}}

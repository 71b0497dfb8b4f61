import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sourcemap_publisher.errors import ManifestError
from sourcemap_publisher.models import PackageManifest

logger = logging.getLogger(__name__)

STUB_FILENAME = "stub.js"
STUB_ENTRY = f"./{STUB_FILENAME}"

# Entry surfaces the stub module cannot honour; dropped from the derived manifest.
STRIPPED_KEYS: frozenset[str] = frozenset({"exports", "bin"})

_MISSING_FIELD_MESSAGES = {
    "name": "missing name",
    "version": "missing version",
    "files": "missing files list",
}


def read_manifest(path: str | Path) -> PackageManifest:
    """Load and validate a ``package.json`` file.

    Raises ``ManifestError`` when the file is unreadable, is not JSON, is not an
    object, or lacks string ``name``/``version`` fields or a ``files`` array.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError("Could not load `package.json` file") from exc

    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ManifestError("Could not parse `package.json` file") from exc

    return parse_manifest(data)


def parse_manifest(data: Any) -> PackageManifest:
    if not isinstance(data, dict):
        raise ManifestError("Invalid `package.json` file")
    try:
        return PackageManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestError(f"Invalid `package.json` file: {_describe_validation_error(exc)}") from exc


def _describe_validation_error(exc: ValidationError) -> str:
    for field in ("name", "version", "files"):
        for error in exc.errors():
            if error["loc"] and error["loc"][0] == field:
                return _MISSING_FIELD_MESSAGES[field]
    return str(exc)


def sourcemap_version(version: str) -> str:
    """Derive the maps-only version: ``1.0.0`` -> ``1.0.0-sourcemaps``, ``1.0.0-alpha`` -> ``1.0.0-alpha.sourcemaps``."""
    separator = "." if "-" in version else "-"
    return f"{version}{separator}sourcemaps"


def sourcemap_file_globs(paths: list[str] | None = None) -> list[str]:
    if not paths:
        return [STUB_ENTRY, "./**/*.map"]
    globs = [STUB_ENTRY]
    for path in paths:
        prefix = path.replace("\\", "/").rstrip("/") or "."
        globs.append(f"{prefix}/**/*.map")
    return globs


def derive_manifest(manifest: PackageManifest, paths: list[str] | None = None) -> PackageManifest:
    """Build the maps-only manifest without touching the filesystem."""
    data = {key: value for key, value in manifest.to_json_dict().items() if key not in STRIPPED_KEYS}
    data["version"] = sourcemap_version(manifest.version)
    data["files"] = sourcemap_file_globs(paths)
    data["main"] = STUB_ENTRY
    return PackageManifest.model_validate(data)


def prepare_manifest(
    stage_dir: str | Path,
    manifest_path: str | Path,
    manifest: PackageManifest,
    paths: list[str] | None = None,
) -> PackageManifest:
    """Write the derived manifest over ``manifest_path`` and an empty stub entry point into ``stage_dir``."""
    derived = derive_manifest(manifest, paths)
    Path(manifest_path).write_text(json.dumps(derived.to_json_dict(), indent=2) + "\n", encoding="utf-8")
    Path(stage_dir, STUB_FILENAME).write_text("", encoding="utf-8")
    logger.debug("Prepared manifest %s@%s with files %s", derived.name, derived.version, derived.files)
    return derived

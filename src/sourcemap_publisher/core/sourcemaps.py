"""Locating and rewriting trailing ``//# sourceMappingURL=`` comments."""

import logging
import os
import re
from collections.abc import Iterable, Sequence
from pathlib import Path, PurePath

from sourcemap_publisher.config import DEFAULT_CDN_HOST
from sourcemap_publisher.models import (
    ExtractedSourceMap,
    ExtractionFailure,
    ExtractionFailureReason,
    ExtractionResult,
    PackageManifest,
    RewriteResult,
    SourceSpan,
)

logger = logging.getLogger(__name__)

# Used with match() at the start of the last line, so it is anchored there.
_SOURCEMAP_PATTERN = re.compile(r"//# sourceMappingURL=([^\r\n]+)")
_SCHEME_PATTERN = re.compile(r"^\w+://", re.ASCII)


def _read_text(path: Path) -> str:
    # Decoded from bytes so "\r\n" survives; offsets must match what is written back.
    return path.read_bytes().decode("utf-8")


def _write_text(path: Path, contents: str) -> None:
    path.write_bytes(contents.encode("utf-8"))


def extract_source_map(source: str | Path) -> ExtractionResult:
    """Find the sourcemap reference on the last non-blank line of ``source``.

    On success the returned span covers exactly the URL text, in coordinates of
    the untrimmed file contents.
    """
    source_path = Path(source)
    try:
        contents = _read_text(source_path)
    except (OSError, UnicodeDecodeError):
        return ExtractionFailure(source_path, ExtractionFailureReason.COULD_NOT_LOAD_SOURCE)

    trimmed = contents.rstrip()
    line_start = trimmed.rfind("\n") + 1
    match = _SOURCEMAP_PATTERN.match(trimmed, line_start)
    if match is None:
        return ExtractionFailure(source_path, ExtractionFailureReason.NO_SOURCEMAP_FOUND)

    url = match.group(1)
    if url.startswith("/") or _SCHEME_PATTERN.match(url):
        return ExtractionFailure(source_path, ExtractionFailureReason.ABSOLUTE_OR_EXTERNAL_URL)
    if url.startswith("data:"):
        return ExtractionFailure(source_path, ExtractionFailureReason.DATA_URL)

    map_path = Path(os.path.normpath(source_path.parent / url))
    try:
        map_path.stat()
    except OSError:
        return ExtractionFailure(source_path, ExtractionFailureReason.SOURCEMAP_NOT_FOUND)

    start, end = match.span(1)
    return ExtractedSourceMap(
        source_path=source_path,
        map_path=map_path,
        span=SourceSpan(start, end),
        url=url,
    )


def extract_source_maps(sources: Iterable[str | Path]) -> list[ExtractionResult]:
    return [extract_source_map(source) for source in sources]


def external_sourcemap_url(relative_path: str, manifest: PackageManifest, host: str = DEFAULT_CDN_HOST) -> str:
    return f"https://{host}/{manifest.name}@{manifest.version}/{relative_path}"


def _relative_map_path(root_dir: Path, map_path: Path) -> str:
    return PurePath(os.path.relpath(map_path, root_dir)).as_posix()


def update_source_map_urls(
    root_dir: str | Path,
    source_maps: Sequence[ExtractedSourceMap],
    manifest: PackageManifest,
    host: str = DEFAULT_CDN_HOST,
) -> RewriteResult:
    """Point each reference at its externally hosted map.

    Files are processed one at a time; a file that cannot be re-read, no longer
    carries the extracted URL at its span, or cannot be written is recorded as
    skipped and the batch continues.
    """
    root = Path(root_dir)
    result = RewriteResult()

    for source_map in source_maps:
        try:
            contents = _read_text(source_map.source_path)
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not load file %s, skipping.", source_map.source_path)
            result.skipped.append(source_map.source_path)
            continue

        start, end = source_map.span.start, source_map.span.end
        if contents[start:end] != source_map.url:
            logger.warning("Sourcemap reference in %s changed since extraction, skipping.", source_map.source_path)
            result.skipped.append(source_map.source_path)
            continue

        new_url = external_sourcemap_url(_relative_map_path(root, source_map.map_path), manifest, host)
        try:
            _write_text(source_map.source_path, contents[:start] + new_url + contents[end:])
        except OSError:
            logger.warning("Could not write file %s, skipping.", source_map.source_path)
            result.skipped.append(source_map.source_path)
            continue

        logger.debug("Rewrote %s -> %s", source_map.source_path, new_url)
        result.updated.append(source_map.source_path)

    return result

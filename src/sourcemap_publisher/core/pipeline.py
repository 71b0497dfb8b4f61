"""Stage, transform, rewrite and publish a maps-only package.

The project directory is never modified: everything happens in a staging
directory under it, which is removed on every exit path of ``run_publish``.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from sourcemap_publisher.config import DEFAULT_SOURCE_PATHS, FILES_TO_KEEP, PublisherSettings
from sourcemap_publisher.core.fs import (
    copy_relative_files_to_dir,
    get_source_files_from_paths,
    get_temp_dir,
    remove_dir,
)
from sourcemap_publisher.core.manifest import prepare_manifest, read_manifest
from sourcemap_publisher.core.ports.publisher import OutputCallback, Publisher
from sourcemap_publisher.core.sourcemaps import extract_source_maps, update_source_map_urls
from sourcemap_publisher.errors import ManifestError, PublishError
from sourcemap_publisher.models import ExtractedSourceMap, ExtractionFailure, PackageManifest

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "package.json"


class PipelineState(enum.Enum):
    INIT = "init"
    STAGED = "staged"
    TRANSFORMED = "transformed"
    REWRITTEN = "rewritten"
    PUBLISHED = "published"
    CLEANED_UP = "cleaned-up"
    FAILED = "failed"


@dataclass
class PublishReport:
    dry_run: bool = False
    state: PipelineState = PipelineState.INIT
    failed_at: PipelineState | None = None
    error: str | None = None
    files_found: int = 0
    updated: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failures: list[ExtractionFailure] = field(default_factory=list)
    manifest: PackageManifest | None = None
    publish_command: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.CLEANED_UP and self.error is None


def _fail(report: PublishReport, message: str) -> PublishError:
    report.failed_at = report.state
    report.state = PipelineState.FAILED
    report.error = message
    return PublishError(message, report)


def _project_path(stage_dir: Path, project_dir: Path, staged: Path) -> Path:
    return project_dir / staged.relative_to(stage_dir)


async def run_publish(
    cwd: str | Path,
    paths: Sequence[str] | None = None,
    *,
    dry_run: bool = False,
    provenance: bool = False,
    settings: PublisherSettings | None = None,
    publisher: Publisher | None = None,
    on_output: OutputCallback | None = None,
) -> PublishReport:
    """Publish the sourcemaps found under ``paths`` (relative to ``cwd``) as a separate package version.

    Returns the report of a successful run; raises ``PublishError`` carrying the
    partial report otherwise.
    """
    if settings is None:
        settings = PublisherSettings.from_env()
    if publisher is None:
        from sourcemap_publisher.publish.npm import NpmPublisher

        publisher = NpmPublisher(settings.npm_executable, settings.dist_tag)

    project_dir = Path(cwd).resolve()
    source_paths = list(paths) if paths else list(DEFAULT_SOURCE_PATHS)
    report = PublishReport(dry_run=dry_run)

    stage_dir = project_dir / settings.staging_dir_name
    try:
        try:
            get_temp_dir(project_dir, settings.staging_dir_name)
            copied = copy_relative_files_to_dir([*FILES_TO_KEEP, *source_paths], project_dir, stage_dir)
        except (OSError, ValueError) as exc:
            raise _fail(report, f"Failed to stage files: {exc}") from exc
        logger.info("Staged %d path(s) in %s", copied, stage_dir)
        report.state = PipelineState.STAGED

        manifest_path = stage_dir / MANIFEST_FILENAME
        try:
            manifest = read_manifest(manifest_path)
        except ManifestError as exc:
            raise _fail(report, f"{exc}. Please ensure you run this command in the project directory") from exc

        try:
            sources = get_source_files_from_paths(stage_dir / path for path in source_paths)
        except OSError as exc:
            raise _fail(report, f"Failed to stage files: {exc}") from exc
        report.files_found = len(sources)
        if not sources:
            raise _fail(report, "No files were found to publish!")

        try:
            derived = prepare_manifest(stage_dir, manifest_path, manifest, source_paths)
        except OSError as exc:
            raise _fail(report, f"Failed to update package.json files: {exc}") from exc
        report.manifest = derived
        report.state = PipelineState.TRANSFORMED

        extracted: list[ExtractedSourceMap] = []
        for result in extract_source_maps(sources):
            if isinstance(result, ExtractionFailure):
                logger.warning("Skipping %s: %s", result.source_path, result.reason.description)
                project_path = _project_path(stage_dir, project_dir, result.source_path)
                report.failures.append(dataclasses.replace(result, source_path=project_path))
            else:
                extracted.append(result)

        if dry_run:
            updated = [source_map.source_path for source_map in extracted]
            skipped: list[Path] = []
        else:
            rewrite = update_source_map_urls(stage_dir, extracted, derived, settings.cdn_host)
            updated, skipped = rewrite.updated, rewrite.skipped
        report.updated = [_project_path(stage_dir, project_dir, p) for p in updated]
        report.skipped = [_project_path(stage_dir, project_dir, p) for p in skipped]
        logger.info("Updated %d sourcemap URLs, skipped %d files", len(report.updated), len(report.skipped))
        report.state = PipelineState.REWRITTEN

        report.publish_command = publisher.describe(dry_run=dry_run, provenance=provenance)
        exit_code = await publisher.publish(stage_dir, dry_run=dry_run, provenance=provenance, on_output=on_output)
        if exit_code != 0:
            raise _fail(report, f"{report.publish_command} failed with exit code {exit_code}")
        report.state = PipelineState.PUBLISHED
    except PublishError as exc:
        # Raised by the publisher itself (e.g. missing executable) rather than _fail.
        if exc.report is None:
            _fail(report, str(exc))
            exc.report = report
        raise
    finally:
        remove_dir(stage_dir)
        logger.debug("Removed staging directory %s", stage_dir)

    report.state = PipelineState.CLEANED_UP
    return report

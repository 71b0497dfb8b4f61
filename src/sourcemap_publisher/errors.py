from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sourcemap_publisher.core.pipeline import PublishReport


class SourcemapPublisherError(Exception):
    """Base class for failures that terminate a publish run."""


class ManifestError(SourcemapPublisherError):
    """The package manifest could not be loaded, parsed or validated."""


class PublishError(SourcemapPublisherError):
    def __init__(self, message: str, report: PublishReport | None = None) -> None:
        super().__init__(message)
        self.report = report

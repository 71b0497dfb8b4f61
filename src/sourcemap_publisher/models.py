from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, PrivateAttr, StrictStr, model_validator


class PackageManifest(BaseModel):
    """A ``package.json`` document.

    Only ``name``, ``version`` and ``files`` are interpreted; every other key is
    carried through untouched as a pydantic extra. Keys serialize in the order
    they were given.
    """

    model_config = ConfigDict(extra="allow")

    name: StrictStr
    version: StrictStr
    files: list[Any]

    _key_order: tuple[str, ...] = PrivateAttr(default=())

    @model_validator(mode="wrap")
    @classmethod
    def _remember_key_order(cls, data: Any, handler: Any) -> PackageManifest:
        manifest = handler(data)
        if isinstance(data, dict):
            manifest._key_order = tuple(data)
        return manifest

    def to_json_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        ordered = [key for key in self._key_order if key in data]
        ordered += [key for key in data if key not in ordered]
        return {key: data[key] for key in ordered}


class ExtractionFailureReason(str, Enum):
    COULD_NOT_LOAD_SOURCE = "could-not-load-source"
    NO_SOURCEMAP_FOUND = "no-sourcemap-found"
    ABSOLUTE_OR_EXTERNAL_URL = "absolute-or-external-url-not-supported"
    DATA_URL = "data-url-not-supported"
    SOURCEMAP_NOT_FOUND = "sourcemap-not-found"

    @property
    def description(self) -> str:
        return _REASON_DESCRIPTIONS[self]


_REASON_DESCRIPTIONS = {
    ExtractionFailureReason.COULD_NOT_LOAD_SOURCE: "could not load source file",
    ExtractionFailureReason.NO_SOURCEMAP_FOUND: "no sourcemap found",
    ExtractionFailureReason.ABSOLUTE_OR_EXTERNAL_URL: "absolute and external URLs not supported",
    ExtractionFailureReason.DATA_URL: "data URLs not supported",
    ExtractionFailureReason.SOURCEMAP_NOT_FOUND: "sourcemap not found",
}


@dataclass(frozen=True)
class SourceSpan:
    """Half-open ``[start, end)`` character range within a file's contents."""

    start: int
    end: int


@dataclass(frozen=True)
class ExtractedSourceMap:
    source_path: Path
    map_path: Path
    span: SourceSpan
    url: str


@dataclass(frozen=True)
class ExtractionFailure:
    source_path: Path
    reason: ExtractionFailureReason


ExtractionResult = ExtractedSourceMap | ExtractionFailure


@dataclass
class RewriteResult:
    updated: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)

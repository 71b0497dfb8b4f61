from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path

from sourcemap_publisher.config import DEFAULT_DIST_TAG, DEFAULT_NPM_EXECUTABLE
from sourcemap_publisher.core.ports.publisher import OutputCallback
from sourcemap_publisher.errors import PublishError

logger = logging.getLogger(__name__)


def build_publish_args(tag: str = DEFAULT_DIST_TAG, *, dry_run: bool = False, provenance: bool = False) -> list[str]:
    args = ["publish", f"--tag={tag}"]
    if dry_run:
        args.append("--dry-run")
    if provenance:
        args.append("--provenance")
    return args


class NpmPublisher:
    """Run ``npm publish`` in a directory and stream its output.

    Implements the ``Publisher`` protocol.
    """

    def __init__(self, executable: str = DEFAULT_NPM_EXECUTABLE, tag: str = DEFAULT_DIST_TAG) -> None:
        self._executable = executable
        self._tag = tag

    def describe(self, *, dry_run: bool = False, provenance: bool = False) -> str:
        args = build_publish_args(self._tag, dry_run=dry_run, provenance=provenance)
        return " ".join([self._executable, *args])

    async def publish(
        self,
        cwd: Path,
        *,
        dry_run: bool = False,
        provenance: bool = False,
        on_output: OutputCallback | None = None,
    ) -> int:
        args = build_publish_args(self._tag, dry_run=dry_run, provenance=provenance)
        logger.info("Running %s %s in %s", self._executable, " ".join(args), cwd)
        try:
            process = await asyncio.create_subprocess_exec(
                self._executable,
                *args,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            raise PublishError(f"Could not run {self._executable}: {exc}") from exc

        assert process.stdout is not None
        try:
            async for raw_line in process.stdout:
                line = raw_line.decode("utf-8", errors="replace").rstrip("\r\n")
                logger.debug("%s: %s", self._executable, line)
                if on_output is not None:
                    on_output(line)
        except BaseException:
            # The stage is removed once we return; never leave npm running inside it.
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
            raise

        return await process.wait()

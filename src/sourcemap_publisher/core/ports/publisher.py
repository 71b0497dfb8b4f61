from collections.abc import Callable
from pathlib import Path
from typing import Protocol

OutputCallback = Callable[[str], None]


class Publisher(Protocol):
    def describe(self, *, dry_run: bool = False, provenance: bool = False) -> str: ...

    async def publish(
        self,
        cwd: Path,
        *,
        dry_run: bool = False,
        provenance: bool = False,
        on_output: OutputCallback | None = None,
    ) -> int: ...

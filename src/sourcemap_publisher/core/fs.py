import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def is_source_file(path: Path) -> bool:
    name = path.name
    if name.endswith(".d.ts"):
        return False
    return name.endswith(".js") or name.endswith(".ts")


def get_temp_dir(cwd: str | Path, name: str) -> Path:
    """Return an empty directory ``cwd/name``, removing any stale one first."""
    temp_dir = Path(cwd) / name
    if temp_dir.is_dir() and not temp_dir.is_symlink():
        shutil.rmtree(temp_dir)
    else:
        temp_dir.unlink(missing_ok=True)
    temp_dir.mkdir(parents=True)
    return temp_dir


def remove_dir(path: str | Path) -> None:
    shutil.rmtree(path, ignore_errors=True)


def copy_file_to_dir(file: str | Path, source_dir: str | Path, target_dir: str | Path) -> bool:
    """Copy ``file`` (a file or directory) to the same relative location under ``target_dir``.

    A missing ``file`` is not an error; ``False`` is returned and nothing is copied.
    """
    file_path = Path(file)
    if not file_path.exists():
        logger.debug("Nothing to copy for %s", file_path)
        return False

    target_root = Path(target_dir).resolve()
    target_path = target_root / file_path.relative_to(source_dir)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    if file_path.is_dir():
        # The stage may live inside the tree being copied; never copy it into itself.
        def _ignore_stage(directory: str, names: list[str]) -> list[str]:
            return [name for name in names if Path(directory, name).resolve() == target_root]

        shutil.copytree(file_path, target_path, ignore=_ignore_stage, dirs_exist_ok=True)
    else:
        shutil.copy2(file_path, target_path)
    return True


def copy_relative_files_to_dir(files: Iterable[str], source_dir: str | Path, target_dir: str | Path) -> int:
    copied = 0
    for file in files:
        if copy_file_to_dir(Path(source_dir) / file, source_dir, target_dir):
            copied += 1
    return copied


def get_source_files_from_paths(paths: Iterable[str | Path]) -> list[Path]:
    """Collect eligible ``.js``/``.ts`` files (never ``.d.ts``) under each path, in sorted order."""
    files: list[Path] = []
    seen: set[Path] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            candidates = [path]
        elif path.is_dir():
            candidates = sorted(p for p in path.rglob("*") if p.is_file())
        else:
            logger.debug("Source path %s does not exist", path)
            continue
        for candidate in candidates:
            if candidate in seen or not is_source_file(candidate):
                continue
            seen.add(candidate)
            files.append(candidate)
    return files

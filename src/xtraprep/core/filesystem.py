"""Filesystem primitives used while staging a prepare directory"""

import shutil
from pathlib import Path
from typing import Protocol


class FileOps(Protocol):
    """Copy/move/delete capability used by the preparer"""

    def exists(self, path: Path) -> bool: ...

    def remove_tree(self, path: Path) -> None: ...

    def copy_tree(self, source: Path, destination: Path) -> None: ...

    def move(self, source: Path, destination: Path) -> None: ...

    def make_dirs(self, path: Path) -> None: ...

    def write_marker(self, path: Path, content: str) -> None: ...

    def remove_marker(self, path: Path) -> None: ...


class LocalFileOps:
    """FileOps over the local filesystem"""

    def exists(self, path: Path) -> bool:
        return path.exists() or path.is_symlink()

    def remove_tree(self, path: Path) -> None:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()

    def copy_tree(self, source: Path, destination: Path) -> None:
        # Symlinks are copied as links, like cp -r
        shutil.copytree(source, destination, symlinks=True)

    def move(self, source: Path, destination: Path) -> None:
        shutil.move(str(source), str(destination))

    def make_dirs(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def write_marker(self, path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")

    def remove_marker(self, path: Path) -> None:
        path.unlink(missing_ok=True)

import mimetypes
import os
from pathlib import Path
from typing import AbstractSet, Iterator, Optional

from ..exceptions import ScanError
from ..models import RunStatistics


class DirectoryScanner:
    """
    Walks a directory tree and yields the files worth checking.

    A file is relevant when the MIME type guessed from its extension is one of
    the configured types. Everything else is counted and dropped.
    """

    def __init__(self, mime_types: AbstractSet[str]):
        self.mime_types = mime_types

    def check_root(self, root: Path) -> None:
        """Raises ScanError if root can't be scanned at all."""
        if not root.exists():
            raise ScanError(f"Error opening {root}: no such file or directory")
        if root.is_dir() and not os.access(root, os.R_OK | os.X_OK):
            raise ScanError(f"Error opening {root}: permission denied")

    def scan(self, root: Path, stats: RunStatistics) -> Iterator[Path]:
        """
        Generator that yields every relevant file under root.

        Updates stats.total and stats.relevant as it goes; only the thread
        driving this generator may touch those two counters.
        """
        self.check_root(root)
        for path in self._iter_files(root):
            stats.total += 1
            if self.is_relevant(path):
                stats.relevant += 1
                yield path

    def mime_type(self, path: Path) -> Optional[str]:
        return mimetypes.guess_type(path.name)[0]

    def is_relevant(self, path: Path) -> bool:
        return self.mime_type(path) in self.mime_types

    def _iter_files(self, root: Path) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        if not root.is_dir():
            yield root
            return

        stack = [root]
        while stack:
            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                raise ScanError(f"Error opening {current}: {e}") from e

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                else:
                    yield Path(e.path)

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

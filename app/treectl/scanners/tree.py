"""Directory tree scanner.

Walks a root directory recursively and produces a flat inventory of
files and directories with size, timestamps and relative path. Entries
are filtered by name-based exclusion patterns, hidden status and
depth. Unreadable subtrees are skipped with a warning; the scan never
aborts on a single entry.
"""

import fnmatch
import logging
import os
import stat
from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
from pathlib import Path

from treectl.models.entry import Entry, EntryKind, InventoryLabel, TreeInventory
from treectl.scanners.base import InventorySource

logger = logging.getLogger(__name__)


class ScanError(Exception):
    """Raised when the scan root cannot be scanned at all."""


class TreeScanner(InventorySource):
    """Scans a directory tree into a TreeInventory.

    Exclusion patterns use glob semantics (``*``, ``?``, ``[...]``) and are
    matched case-insensitively against each entry's name, never its full
    path. By default every entry is tested independently: an excluded
    directory is dropped but its children are still visited and tested
    on their own names. With ``exclude_subtrees`` the traversal does not
    descend into excluded directories.

    Args:
        root: Directory to scan.
        label: Role of the produced inventory.
        exclude: Glob patterns matched against entry names.
        max_depth: If > 0, entries deeper than this many path segments
            below the root are dropped.
        include_hidden: If False, hidden entries (dot-names or the Windows
            hidden attribute) and their subtrees are skipped.
        exclude_subtrees: If True, excluded directories are not descended into.
        follow_symlinks: If True, symbolic links are followed; otherwise
            they are skipped.
    """

    def __init__(
        self,
        root: Path,
        *,
        label: InventoryLabel = InventoryLabel.SOURCE,
        exclude: Sequence[str] = (),
        max_depth: int = 0,
        include_hidden: bool = False,
        exclude_subtrees: bool = False,
        follow_symlinks: bool = False,
    ) -> None:
        if max_depth < 0:
            msg = f"max_depth cannot be negative, got {max_depth}"
            raise ValueError(msg)
        self._root = root
        self._label = label
        self._patterns = tuple(p.lower() for p in exclude if p)
        self._max_depth = max_depth
        self._include_hidden = include_hidden
        self._exclude_subtrees = exclude_subtrees
        self._follow_symlinks = follow_symlinks

        # Paths that could not be read during the last scan
        self.skipped: list[str] = []
        self._open_dirs: set[tuple[int, int]] = set()

    @property
    def label(self) -> InventoryLabel:
        """Return the role of the produced inventory."""
        return self._label

    @property
    def root(self) -> Path:
        """Return the scan root."""
        return self._root

    def is_available(self) -> bool:
        """Check if the scan root is an existing directory."""
        return self._root.is_dir()

    def collect(self) -> TreeInventory:
        """Scan the root and return its inventory.

        Returns:
            TreeInventory of all included entries.

        Raises:
            ScanError: If the root does not exist or is not a directory.
        """
        if not self.is_available():
            msg = f"Scan root is not a directory: {self._root}"
            raise ScanError(msg)

        root = self._root.resolve()
        entries = list(self.iter_entries())
        logger.info(
            "Scanned %s: %d entries, %d unreadable path(s)",
            root,
            len(entries),
            len(self.skipped),
        )
        return TreeInventory.from_entries(entries, root_path=str(root), label=self._label)

    def iter_entries(self) -> Iterator[Entry]:
        """Walk the root and yield included entries in traversal order.

        Yields:
            Entry for each included file and directory.
        """
        self.skipped = []
        self._open_dirs = set()
        root = self._root.resolve()
        root_key = _dir_key(root)
        if root_key is not None:
            self._open_dirs.add(root_key)
        yield from self._walk(root, ())

    def _walk(self, directory: Path, parts: tuple[str, ...]) -> Iterator[Entry]:
        """Recursively yield entries below a directory.

        Args:
            directory: Directory to enumerate.
            parts: Relative path segments of ``directory`` below the root.

        Yields:
            Entry for each included descendant.
        """
        try:
            with os.scandir(directory) as it:
                children = list(it)
        except OSError as e:
            logger.warning("Cannot read directory %s: %s", directory, e)
            self.skipped.append(str(directory))
            return

        for child in children:
            try:
                if child.is_symlink() and not self._follow_symlinks:
                    logger.debug("Skipping symbolic link: %s", child.path)
                    continue
                is_dir = child.is_dir(follow_symlinks=self._follow_symlinks)
                info = child.stat(follow_symlinks=self._follow_symlinks)
            except OSError as e:
                logger.warning("Cannot read %s: %s", child.path, e)
                self.skipped.append(child.path)
                continue

            if not self._include_hidden and _is_hidden(child.name, info):
                continue

            rel_parts = (*parts, child.name)
            depth = len(rel_parts)
            if self._max_depth and depth > self._max_depth:
                continue

            excluded = self._is_excluded(child.name)
            if not excluded:
                yield _make_entry(child, info, rel_parts, is_dir)

            if not is_dir:
                continue
            if excluded and self._exclude_subtrees:
                continue
            if self._max_depth and depth >= self._max_depth:
                continue
            if not self._follow_symlinks:
                yield from self._walk(Path(child.path), rel_parts)
                continue

            # Directories on the current descent path; a repeat means a link cycle
            key = _dir_key(Path(child.path))
            if key in self._open_dirs:
                logger.debug("Skipping link cycle at %s", child.path)
                continue
            if key is None:
                yield from self._walk(Path(child.path), rel_parts)
                continue
            self._open_dirs.add(key)
            yield from self._walk(Path(child.path), rel_parts)
            self._open_dirs.discard(key)

    def _is_excluded(self, name: str) -> bool:
        """Check if an entry name matches any exclusion pattern."""
        lowered = name.lower()
        return any(fnmatch.fnmatchcase(lowered, pattern) for pattern in self._patterns)


def _dir_key(directory: Path) -> tuple[int, int] | None:
    """Identify a directory by device and inode; None if it cannot be read."""
    try:
        info = directory.stat()
    except OSError:
        return None
    return (info.st_dev, info.st_ino)


def _is_hidden(name: str, info: os.stat_result) -> bool:
    """Check for dot-names and the Windows hidden attribute."""
    if name.startswith("."):
        return True
    attributes = getattr(info, "st_file_attributes", 0)
    return bool(attributes & stat.FILE_ATTRIBUTE_HIDDEN)


def _make_entry(
    child: os.DirEntry[str],
    info: os.stat_result,
    rel_parts: tuple[str, ...],
    is_dir: bool,
) -> Entry:
    """Build an Entry from a directory entry and its stat result."""
    name = child.name
    created = getattr(info, "st_birthtime", None) or info.st_ctime
    if is_dir:
        kind = EntryKind.DIRECTORY
        extension = ""
        size = 0
    else:
        kind = EntryKind.FILE
        extension = os.path.splitext(name)[1].lower()
        size = info.st_size
    return Entry(
        kind=kind,
        relative_path="/".join(rel_parts),
        name=name,
        extension=extension,
        size_bytes=size,
        modified_at=datetime.fromtimestamp(info.st_mtime, tz=UTC),
        created_at=datetime.fromtimestamp(created, tz=UTC),
        absolute_path=child.path,
    )

"""Content hashing for build output directories.

The hash of a directory is a SHA-256 digest over every regular file,
visited in sorted depth-first order. Each file contributes its relative
path, a NUL byte, its size as 8 big-endian bytes and then its content, so
no two different trees share a byte stream. Two trees with identical
relative paths and contents always hash the same, no matter in which order
their files were created; renaming, adding, removing or editing any file
changes the hash.
"""

from __future__ import annotations

import hashlib
import os
import stat
from collections.abc import Iterator
from pathlib import Path

from .errors import NotFoundError

# Read files in chunks so large artifacts don't have to fit in memory
_CHUNK_SIZE = 1024 * 1024


def iter_tree(root: Path) -> Iterator[tuple[str, Path]]:
    """Yield every regular file under root in deterministic order.

    Entries are sorted by name at each directory level before descending,
    so the sequence doesn't depend on filesystem iteration order.
    Symlinks are followed, except dangling ones and links back to a
    directory that is already being walked. FIFOs, sockets and device
    files are skipped.

    Args:
        root: Directory to walk.

    Yields:
        Tuples of (path relative to root using "/" separators, absolute path).
    """
    root_stat = os.stat(root)
    root_key = (root_stat.st_dev, root_stat.st_ino)
    # (st_dev, st_ino) of every directory currently on the stack
    ancestors = {root_key}
    # Explicit stack of (directory, relative prefix, remaining entries, key)
    stack: list[tuple[Path, str, Iterator[str], tuple[int, int]]] = [
        (root, "", iter(sorted(os.listdir(root))), root_key)
    ]
    while stack:
        current, prefix, entries, _ = stack[-1]
        for entry in entries:
            full_path = current / entry
            rel_path = f"{prefix}{entry}"
            try:
                st = os.stat(full_path)
            except FileNotFoundError:
                # dangling symlink
                continue
            if stat.S_ISDIR(st.st_mode):
                key = (st.st_dev, st.st_ino)
                if key in ancestors:
                    continue
                ancestors.add(key)
                children = iter(sorted(os.listdir(full_path)))
                stack.append((full_path, f"{rel_path}/", children, key))
                break
            if stat.S_ISREG(st.st_mode):
                yield rel_path, full_path
        else:
            ancestors.discard(stack.pop()[3])


def compute_directory_hash(path: str | Path) -> str:
    """Compute the content hash of a directory tree.

    Args:
        path: Directory to hash (typically a package's dist/ folder).

    Returns:
        Lowercase hex SHA-256 digest (64 characters).

    Raises:
        NotFoundError: If path doesn't exist or isn't a directory.
    """
    root = Path(path)
    if not root.is_dir():
        raise NotFoundError(f"Directory does not exist: {root}")

    digest = hashlib.sha256()
    for rel_path, full_path in iter_tree(root):
        # Path first, so a rename changes the hash even with identical content
        digest.update(os.fsencode(rel_path) + b"\0")
        with open(full_path, "rb") as fh:
            digest.update(os.fstat(fh.fileno()).st_size.to_bytes(8, "big"))
            while chunk := fh.read(_CHUNK_SIZE):
                digest.update(chunk)
    return digest.hexdigest()

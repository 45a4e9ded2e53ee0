"""Persisted store of published build hashes.

The store is a JSON file shaped like:

    {
      "packages": {
        "my-package": {
          "versions": {"1.0.0": "<sha256>", "1.0.1": "<sha256>"},
          "lastVersion": "1.0.1"
        }
      }
    }

Operations on the store are pure: load_store() and persist_store() are the
only functions touching disk, and record_publish() returns a new store
instead of modifying its argument.
"""

from __future__ import annotations

import json
import os
import stat
import tempfile
from pathlib import Path

from pydantic import ValidationError

from .errors import CorruptStoreError
from .models import DuplicateCheck, HashStore, PackageHashRecord
from .shell import warn


def parse_store(content: str) -> HashStore:
    """Parse and validate raw store content.

    Raises:
        CorruptStoreError: If the content isn't valid JSON or doesn't match
                           the store schema.
    """
    try:
        return HashStore.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise CorruptStoreError(f"Invalid hash store: {exc}") from exc


def load_store(path: str | Path) -> HashStore:
    """Read the hash store from disk.

    A missing file is an empty store. A corrupt file is also treated as an
    empty store: duplicate detection degrades to "not a duplicate" rather
    than blocking the publish.

    Other I/O errors (e.g. permission denied) propagate to the caller.
    """
    store_path = Path(path)
    if not store_path.exists():
        return HashStore()

    try:
        return parse_store(store_path.read_text(encoding="utf-8"))
    except (CorruptStoreError, UnicodeDecodeError) as exc:
        warn(f"Ignoring unreadable hash store at {store_path}: {exc}")
        return HashStore()


def persist_store(store: HashStore, path: str | Path) -> None:
    """Write the hash store to disk as indented JSON with a trailing newline.

    Parent directories are created as needed. The file is written to a
    temporary sibling and renamed into place, so readers never see a
    half-written store. An existing file keeps its permission bits and a
    new one is created with 0644. There is no locking: with concurrent
    writers, the last successful write wins.
    """
    store_path = Path(path)
    store_path.parent.mkdir(parents=True, exist_ok=True)

    data = store.model_dump(by_alias=True, exclude_none=True)
    content = json.dumps(data, indent=2) + "\n"

    mode = (
        stat.S_IMODE(store_path.stat().st_mode) if store_path.exists() else 0o644
    )
    fd, tmp_name = tempfile.mkstemp(
        dir=store_path.parent, prefix=f".{store_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, store_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def is_duplicate(
    store: HashStore, package_name: str, content_hash: str
) -> DuplicateCheck:
    """Check whether a build hash was already published for a package.

    Versions are scanned in the order each was first recorded (overwriting
    a version keeps its position) and the first one with a matching hash is
    reported.

    Args:
        store: The loaded hash store.
        package_name: Package to look up.
        content_hash: Hash of the freshly built output.

    Returns:
        DuplicateCheck with the matching version, if any.
    """
    record = store.packages.get(package_name)
    if record is None:
        return DuplicateCheck(is_duplicate=False)

    for version, recorded_hash in record.versions.items():
        if recorded_hash == content_hash:
            return DuplicateCheck(is_duplicate=True, existing_version=version)

    return DuplicateCheck(is_duplicate=False)


def record_publish(
    store: HashStore, package_name: str, version: str, content_hash: str
) -> HashStore:
    """Return a copy of the store with (version → hash) recorded for a package.

    Overwrites any hash previously recorded for the same version and sets
    the package's last_version.
    """
    updated = store.model_copy(deep=True)
    record = updated.packages.setdefault(package_name, PackageHashRecord())
    record.versions[version] = content_hash
    record.last_version = version
    return updated

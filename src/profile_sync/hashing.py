"""Content hashing of snippet files."""

import hashlib
from pathlib import Path

_CHUNK_SIZE = 65536


def hash_file(path: Path) -> str:
    """Return the SHA-1 hex digest of a file's contents."""
    digest = hashlib.sha1()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def list_files(root: Path) -> list[str]:
    """List regular files below `root` as sorted `/`-separated relative names.

    Symbolic links are neither followed nor listed. A missing directory has no files.
    """
    if not root.is_dir():
        return []

    names = []
    for path in root.rglob("*"):
        if path.is_symlink() or not path.is_file():
            continue
        relative = path.relative_to(root)
        if any((root / parent).is_symlink() for parent in relative.parents if parent != Path(".")):
            continue
        names.append(relative.as_posix())
    return sorted(names)


def hash_directory(root: Path) -> dict[str, str]:
    """Map every file below `root` (by relative name) to its content digest."""
    return {name: hash_file(root / name) for name in list_files(root)}

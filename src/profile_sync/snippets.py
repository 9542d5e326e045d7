"""Snippet files of a profile chain, diffed by content hash."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from .chain import ProfileChainResolver
from .documents import copy_file
from .documents import empty_dir
from .documents import read_yaml
from .documents import remove_path
from .documents import write_yaml
from .hashing import hash_directory
from .hashing import list_files
from .layout import ProfileLayout
from .models import SnippetsDiff

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnippetStore:
    """Stored snippets of a profile chain.

    Each profile directory holds only the snippet files it adds or modifies
    relative to its ancestors, plus a `snippets.diff.yml` listing the
    inherited files it removed.

    Args:
        layout: Layout of the profile repository
        chain: Resolver for the profiles' `extends` links
    """

    def __init__(self, layout: ProfileLayout, chain: ProfileChainResolver):
        self.layout = layout
        self.chain = chain

    def load_diff(self, profile: str) -> SnippetsDiff | None:
        data = read_yaml(self.layout.snippets_diff_file(profile))
        return SnippetsDiff.from_dict(data) if data is not None else None

    def _index(self, profile: str, entries: Callable[[Path], dict[str, T]]) -> dict[str, T]:
        index: dict[str, T] = {}
        lineage = self.chain.lineage(profile)

        for position, name in enumerate(lineage):
            if position > 0:
                diff = self.load_diff(name)
                for removed in diff.removed if diff else []:
                    index.pop(removed, None)
            index.update(entries(self.layout.snippets_dir(name)))

        return index

    def hash_index(self, profile: str) -> dict[str, str]:
        """Effective snippet set of `profile` as `{name: content digest}`."""
        return self._index(profile, hash_directory)

    def path_index(self, profile: str) -> dict[str, Path]:
        """Effective snippet set of `profile` as `{name: stored file}`."""
        return self._index(profile, lambda root: {name: root / name for name in list_files(root)})

    def serialize(self, profile: str, live_dir: Path, parent: str | None) -> SnippetsDiff | None:
        """Store the live snippets into `profile`.

        Args:
            profile: Profile to store into
            live_dir: Editor snippets directory
            parent: Profile that `profile` extends, if any

        Returns:
            The removal diff written for an inheriting profile, or None
        """
        live = hash_directory(live_dir)
        stored = list(live)
        diff = None

        if parent:
            inherited = self.hash_index(parent)
            # unchanged inherited files are not stored again
            stored = [name for name, digest in live.items() if inherited.get(name) != digest]
            diff = SnippetsDiff(removed=sorted(name for name in inherited if name not in live))

            diff_path = self.layout.snippets_diff_file(profile)
            if diff.is_empty():
                remove_path(diff_path)
            else:
                write_yaml(diff_path, diff.to_dict(), private=True)

        target = self.layout.snippets_dir(profile)
        if stored:
            empty_dir(target)
            for name in stored:
                copy_file(live_dir / name, target / name)
        else:
            remove_path(target)

        logger.debug(f"Stored {len(stored)} snippet files for '{profile}'")
        return diff

    def restore(self, profile: str, live_dir: Path) -> list[str]:
        """Replace the editor's snippets with the effective set of `profile`.

        Returns:
            Names of the files copied
        """
        diff = self.load_diff(profile)
        ignored = set(diff.removed) if diff else set()

        empty_dir(live_dir)

        copied = []
        for name, source in sorted(self.path_index(profile).items()):
            if name in ignored:
                continue
            copy_file(source, live_dir / name)
            copied.append(name)

        return copied

"""Inheritance-aware loading and saving of per-profile sync policy."""

import logging

from .chain import ProfileChainResolver
from .documents import read_yaml
from .documents import remove_path
from .documents import write_yaml
from .exceptions import SyncSettingsNotFoundError
from .layout import ProfileLayout
from .models import SyncSettings

logger = logging.getLogger(__name__)


class SyncSettingsResolver:
    """Loads and saves the `.sync.yml` policy documents of a profile chain.

    Each document holds only the values its profile sets explicitly; the
    effective policy of a profile is its ancestors' documents overlaid root
    first.

    Args:
        layout: Layout of the profile repository
        chain: Resolver for the profiles' `extends` links
    """

    def __init__(self, layout: ProfileLayout, chain: ProfileChainResolver):
        self.layout = layout
        self.chain = chain

    def load_document(self, profile: str) -> SyncSettings | None:
        """Load the profile's own document (current or legacy path), or None."""
        data = read_yaml(self.layout.sync_settings_file(profile))
        if data is None:
            data = read_yaml(self.layout.legacy_sync_settings_file(profile))
        if data is None:
            return None
        return SyncSettings.from_dict(data)

    def load(self, profile: str) -> SyncSettings:
        """Load the explicitly set policy values of `profile`, inherited ones included.

        Raises:
            SyncSettingsNotFoundError: If no profile in the chain has a document
        """
        settings = None
        for name in self.chain.lineage(profile):
            document = self.load_document(name)
            if document is not None:
                settings = document if settings is None else settings.overlay(document)

        if settings is None:
            raise SyncSettingsNotFoundError(f"Sync settings file of profile '{profile}' can not be found")

        return settings

    def resolve(self, profile: str) -> SyncSettings:
        """Load the effective policy of `profile`, with defaults for unset values."""
        return self.load(profile).resolved()

    def save(self, profile: str, live: SyncSettings, parent: str | None) -> bool:
        """Store the explicitly set values of `live` as the profile's override.

        An inheriting profile keeps only the values that differ from its
        parent's; when none differ its document is deleted. A non-inheriting
        profile always gets a document so the chain stays resolvable.

        Args:
            profile: Profile to save into
            live: Sync policy in effect in the editor
            parent: Profile that `profile` extends, if any

        Returns:
            True if a document was written
        """
        path = self.layout.sync_settings_file(profile)
        remove_path(self.layout.legacy_sync_settings_file(profile))

        values = live.to_dict()
        if parent:
            inherited = self.load(parent).to_dict()
            values = {key: value for key, value in values.items() if inherited.get(key) != value}

            if not values:
                remove_path(path)
                logger.debug(f"Sync settings of '{profile}' match '{parent}', override removed")
                return False

        write_yaml(path, values)
        return True

"""Exceptions for profile-sync."""


class ProfileSyncError(Exception):
    """Base exception for profile synchronization errors."""

    pass


class ProfileConfigurationError(ProfileSyncError):
    """The stored profile tree is inconsistent; the operation cannot continue."""

    pass


class SyncSettingsNotFoundError(ProfileConfigurationError):
    """No sync settings document exists anywhere in the profile chain."""

    pass


class ProfileNotFoundError(ProfileConfigurationError):
    """A profile referenced by name (directly or through `extends`) does not exist."""

    pass


class CyclicInheritanceError(ProfileConfigurationError):
    """The `extends` links of a profile form a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"cyclic profile inheritance: {' -> '.join(cycle)}")


class ProfileNotInitializedError(ProfileSyncError):
    """Operation attempted on a profile that was not initialized."""

    pass


class ProfileDocumentError(ProfileSyncError):
    """Error reading, writing or parsing a stored or live document."""

    pass

"""Resolution of profile inheritance chains."""

import logging

from .documents import read_yaml
from .exceptions import CyclicInheritanceError
from .exceptions import ProfileNotFoundError
from .layout import ProfileLayout
from .models import ProfileSettings

logger = logging.getLogger(__name__)


class ProfileChainResolver:
    """Follows `extends` links between stored profiles.

    A profile whose directory exists but has no `profile.yml` does not
    inherit. Referencing a profile without a directory is a configuration error.

    Args:
        layout: Layout of the profile repository
    """

    def __init__(self, layout: ProfileLayout):
        self.layout = layout

    def load_settings(self, profile: str) -> ProfileSettings:
        """Load a profile's `profile.yml`.

        Raises:
            ProfileNotFoundError: If the profile doesn't exist
        """
        if not self.layout.profile_dir(profile).is_dir():
            raise ProfileNotFoundError(f"Profile '{profile}' not found in {self.layout.profiles}")

        return ProfileSettings.from_dict(read_yaml(self.layout.settings_file(profile)))

    def parent(self, profile: str) -> str | None:
        """Name of the profile `profile` directly extends, if any."""
        return self.load_settings(profile).extends

    def chain(self, profile: str) -> list[str]:
        """Return the inheritance chain, from `profile` itself to its root ancestor.

        Raises:
            CyclicInheritanceError: If the `extends` links loop
            ProfileNotFoundError: If a profile along the chain doesn't exist
        """
        chain = [profile]
        visited = {profile}
        current = self.load_settings(profile).extends

        while current:
            if current in visited:
                cycle = chain[chain.index(current) :] + [current]
                raise CyclicInheritanceError(cycle)
            chain.append(current)
            visited.add(current)
            current = self.load_settings(current).extends

        return chain

    def lineage(self, profile: str) -> list[str]:
        """Return the chain in replay order: root ancestor first, `profile` last."""
        return list(reversed(self.chain(profile)))

    def ancestor(self, profile: str) -> str:
        """Return the root ancestor (the profile itself when it doesn't inherit)."""
        return self.chain(profile)[-1]

"""Path layout of the profile repository and of the live editor data."""

from pathlib import Path

_PLATFORM_SUFFIXES = {
    "darwin": "macos",
    "linux": "linux",
    "win32": "windows",
}


class ProfileLayout:
    """Paths of stored profile documents under `<repository>/profiles/<name>`."""

    def __init__(self, repository: Path):
        self.repository = Path(repository)
        self.profiles = self.repository / "profiles"

    def profile_dir(self, profile: str) -> Path:
        return self.profiles / profile

    def data_dir(self, profile: str) -> Path:
        return self.profile_dir(profile) / "data"

    def settings_file(self, profile: str) -> Path:
        """`profile.yml`, holding the `extends` link."""
        return self.profile_dir(profile) / "profile.yml"

    def sync_settings_file(self, profile: str) -> Path:
        return self.profile_dir(profile) / ".sync.yml"

    def legacy_sync_settings_file(self, profile: str) -> Path:
        return self.profile_dir(profile) / "config.yml"

    def extensions_file(self, profile: str) -> Path:
        return self.data_dir(profile) / "extensions.yml"

    def legacy_extensions_file(self, profile: str) -> Path:
        return self.profile_dir(profile) / "extensions.yml"

    def user_settings_file(self, profile: str) -> Path:
        return self.data_dir(profile) / "settings.json"

    def keybindings_file(self, profile: str, per_platform: bool, platform: str) -> Path:
        """Key bindings document, suffixed with the platform when stored per platform."""
        suffix = _PLATFORM_SUFFIXES.get(platform) if per_platform else None
        name = f"keybindings-{suffix}.json" if suffix else "keybindings.json"
        return self.data_dir(profile) / name

    def ui_state_file(self, profile: str) -> Path:
        return self.data_dir(profile) / "ui-state.yml"

    def ui_state_diff_file(self, profile: str) -> Path:
        return self.data_dir(profile) / "ui-state.diff.yml"

    def snippets_dir(self, profile: str) -> Path:
        return self.data_dir(profile) / "snippets"

    def snippets_diff_file(self, profile: str) -> Path:
        return self.data_dir(profile) / "snippets.diff.yml"


class EditorLayout:
    """Paths of the live editor configuration under its user data directory."""

    def __init__(self, user_data: Path):
        self.user_data = Path(user_data)

    @property
    def settings_file(self) -> Path:
        return self.user_data / "settings.json"

    @property
    def keybindings_file(self) -> Path:
        return self.user_data / "keybindings.json"

    @property
    def snippets_dir(self) -> Path:
        return self.user_data / "snippets"

"""Error types raised while resolving where a batch should go."""


class FerryError(Exception):
    """Base class for ferry errors."""


class ConfigurationError(FerryError):
    """A batch cannot start because its profile or backend does not resolve."""


class NoProfileConfigured(ConfigurationError):
    def __init__(self):
        super().__init__("No uploader profile configured, add one first")


class DefaultProfileNotSet(ConfigurationError):
    def __init__(self):
        super().__init__("No default uploader profile set, choose one first")


class ProfileNotFound(ConfigurationError):
    def __init__(self, profile_id: str):
        self.profile_id = profile_id
        super().__init__(f"Uploader profile not found: {profile_id}")


class BackendNotFound(ConfigurationError):
    def __init__(self, uploader_name: str):
        self.uploader_name = uploader_name
        super().__init__(f"Uploader backend not found: {uploader_name}")

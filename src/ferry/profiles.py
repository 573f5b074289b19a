"""Profile storage and resolution of a profile to a configured backend."""

import logging
import uuid
from typing import Protocol

from ferry.config import Settings
from ferry.errors import (
    BackendNotFound,
    DefaultProfileNotSet,
    NoProfileConfigured,
    ProfileNotFound,
)
from ferry.models import UploaderProfile
from ferry.uploaders.base import Uploader
from ferry.uploaders.registry import UploaderRegistry

logger = logging.getLogger(__name__)


class ProfileStore(Protocol):
    def get_all(self) -> list[UploaderProfile]: ...

    def get_default_id(self) -> str | None: ...


class ProfileManager:
    """Profile CRUD on top of loaded settings; callers persist with ``save_settings``."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def get_all(self) -> list[UploaderProfile]:
        return list(self.settings.profiles)

    def get_default_id(self) -> str | None:
        return self.settings.default_uploader_profile_id

    def get(self, profile_id: str) -> UploaderProfile | None:
        return next((p for p in self.settings.profiles if p.id == profile_id), None)

    def add(self, profile: UploaderProfile) -> UploaderProfile:
        """Store a new profile, generating an id when it has none."""
        if not profile.id:
            profile = profile.model_copy(update={"id": str(uuid.uuid4())})
        if self.get(profile.id) is not None:
            raise ValueError(f"Uploader profile already exists: {profile.id}")
        self.settings.profiles.append(profile)
        if profile.is_default:
            self.set_default(profile.id)
        return profile

    def update(self, profile: UploaderProfile) -> list[UploaderProfile]:
        for i, existing in enumerate(self.settings.profiles):
            if existing.id == profile.id:
                self.settings.profiles[i] = profile
                return self.get_all()
        raise ProfileNotFound(profile.id)

    def delete(self, profile_id: str) -> list[UploaderProfile]:
        if self.get(profile_id) is None:
            raise ProfileNotFound(profile_id)
        self.settings.profiles = [p for p in self.settings.profiles if p.id != profile_id]
        if self.settings.default_uploader_profile_id == profile_id:
            self.settings.default_uploader_profile_id = None
        return self.get_all()

    def set_default(self, profile_id: str) -> None:
        if self.get(profile_id) is None:
            raise ProfileNotFound(profile_id)
        self.settings.default_uploader_profile_id = profile_id
        self.settings.profiles = [
            p.model_copy(update={"is_default": p.id == profile_id}) for p in self.settings.profiles
        ]


class ProfileResolver:
    """Turns a profile id (or the default) into a freshly configured backend."""

    def __init__(self, store: ProfileStore, registry: UploaderRegistry):
        self.store = store
        self.registry = registry

    def resolve_profile(self, profile_id: str | None = None) -> UploaderProfile:
        """
        Find the profile a batch should use.

        Args:
            profile_id: Explicit profile id; empty means the default profile

        Raises:
            ProfileNotFound: an explicit id does not exist
            NoProfileConfigured: no profiles exist at all
            DefaultProfileNotSet: profiles exist but none is the default
        """
        profiles = self.store.get_all()
        effective_id = profile_id or self.store.get_default_id()
        profile = next((p for p in profiles if p.id == effective_id), None)
        if profile is not None:
            return profile

        if profile_id:
            raise ProfileNotFound(profile_id)
        if not profiles:
            raise NoProfileConfigured()
        raise DefaultProfileNotSet()

    def build_uploader(self, profile: UploaderProfile) -> Uploader:
        uploader = self.registry.create(profile.uploader_name)
        if uploader is None:
            raise BackendNotFound(profile.uploader_name)
        uploader.configure(profile.uploader_options)
        return uploader

    def resolve(self, profile_id: str | None = None) -> tuple[UploaderProfile, Uploader]:
        profile = self.resolve_profile(profile_id)
        return profile, self.build_uploader(profile)

    def find_uploader(self, profile_id: str) -> Uploader | None:
        """Configured backend for an explicit id, or None when it does not resolve."""
        profile = next((p for p in self.store.get_all() if p.id == profile_id), None)
        if profile is None:
            logger.info("No uploader profile %s", profile_id)
            return None
        try:
            return self.build_uploader(profile)
        except BackendNotFound as e:
            logger.info("%s", e)
            return None

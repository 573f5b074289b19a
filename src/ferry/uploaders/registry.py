"""Backend registry: a factory per backend name."""

import logging
from collections.abc import Callable
from typing import Any

from ferry.uploaders.base import Uploader
from ferry.uploaders.custom import CustomUploader

logger = logging.getLogger(__name__)

UploaderFactory = Callable[[], Uploader]


class UploaderRegistry:
    """
    Maps backend names to factories.

    ``create`` builds a new instance on every call, so two batches never share
    one backend's configuration.
    """

    def __init__(self):
        self._factories: dict[str, UploaderFactory] = {}

    def register(self, name: str, factory: UploaderFactory) -> None:
        if name in self._factories:
            logger.debug("Replacing uploader factory for %s", name)
        self._factories[name] = factory

    def create(self, name: str) -> Uploader | None:
        factory = self._factories.get(name)
        if factory is None:
            return None
        return factory()

    def names(self) -> list[str]:
        return list(self._factories)

    def describe(self) -> list[dict[str, Any]]:
        """Name and default options of every registered backend."""
        described = []
        for name in self._factories:
            uploader = self.create(name)
            described.append(
                {
                    "name": name,
                    "options": [spec.model_dump() for spec in uploader.default_options],
                }
            )
        return described


def default_registry(request_timeout: float = 30.0) -> UploaderRegistry:
    """Registry with the backends that ship with ferry."""
    registry = UploaderRegistry()
    registry.register(CustomUploader.name, lambda: CustomUploader(timeout=request_timeout))
    return registry

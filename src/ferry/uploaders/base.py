"""Uploader capability: required operations plus optional file management."""

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from ferry.models import UploaderOption, UploadOutcome


class OptionSpec(BaseModel):
    """One configurable option a backend understands."""

    name: str
    label: str
    value: str | None = None
    required: bool = False
    choices: list[str] | None = None


class Uploader(ABC):
    """Abstract uploader backend"""

    name: str = ""
    default_options: list[OptionSpec] = []

    @abstractmethod
    def configure(self, options: list[UploaderOption]) -> None:
        pass

    @abstractmethod
    async def upload(
        self,
        local_path: str,
        file_name: str,
        directory: str | None = None,
        managed: bool = False,
    ) -> UploadOutcome:
        pass


@runtime_checkable
class SupportsListFiles(Protocol):
    async def list_files(self, directory: str | None = None) -> list[dict[str, Any]]: ...


@runtime_checkable
class SupportsDeleteFiles(Protocol):
    async def delete_files(self, names: list[str]) -> bool: ...


@runtime_checkable
class SupportsCreateDirectory(Protocol):
    async def create_directory(self, path: str) -> bool: ...

"""Uploader backends and the registry that builds them."""

from ferry.uploaders.base import (
    OptionSpec,
    SupportsCreateDirectory,
    SupportsDeleteFiles,
    SupportsListFiles,
    Uploader,
)
from ferry.uploaders.custom import CustomUploader, CustomUploaderConfig
from ferry.uploaders.registry import UploaderRegistry, default_registry

__all__ = [
    "OptionSpec",
    "Uploader",
    "SupportsListFiles",
    "SupportsDeleteFiles",
    "SupportsCreateDirectory",
    "CustomUploader",
    "CustomUploaderConfig",
    "UploaderRegistry",
    "default_registry",
]

"""Profiles, per-file outcomes and upload records."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


class UploaderOption(BaseModel):
    name: str
    value: str | None = None


def collapse_options(options: list[UploaderOption]) -> dict[str, str | None]:
    """Collapse an ordered option list into name -> value (last one wins)."""
    return {option.name: option.value for option in options}


class UploaderProfile(BaseModel):
    """One stored backend configuration, selected by id."""

    id: str
    name: str = ""
    uploader_name: str
    uploader_options: list[UploaderOption] = Field(default_factory=list)
    is_default: bool = False


@dataclass
class UploadOutcome:
    """What a backend reports for a single file."""

    success: bool
    url: str | None = None
    error_message: str | None = None

    @classmethod
    def ok(cls, url: str) -> UploadOutcome:
        return cls(success=True, url=url)

    @classmethod
    def failed(cls, message: str | None) -> UploadOutcome:
        return cls(success=False, error_message=message)


class UploadedFileRecord(BaseModel):
    """History entry for one file of one upload call."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str
    uploader_profile_id: str
    path: str
    size: int | None = None
    # epoch millis
    date: int
    url: str | None = None
    error_message: str | None = None


@dataclass
class BatchResult:
    """Aggregated outcome of one orchestrator call."""

    successes: list[UploadedFileRecord] = field(default_factory=list)
    failures: list[UploadedFileRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successes) + len(self.failures)

    def records(self) -> list[UploadedFileRecord]:
        """Records in history order: failures first, then successes."""
        return [*self.failures, *self.successes]

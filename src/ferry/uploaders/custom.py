"""Generic HTTP uploader driven by user-supplied request templates."""

import asyncio
import json
import logging
import mimetypes
from pathlib import Path
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from ferry.models import UploaderOption, UploadOutcome, collapse_options
from ferry.uploaders.base import OptionSpec, Uploader

logger = logging.getLogger(__name__)

MULTIPART = "multipart/form-data"
URLENCODED = "application/x-www-form-urlencoded"
JSON = "application/json"

Method = Literal["POST", "GET", "PUT", "PATCH", "DELETE"]
ContentType = Literal[
    "multipart/form-data", "application/x-www-form-urlencoded", "application/json"
]


class CustomUploaderConfig(BaseModel):
    """Request template collapsed from a profile's option list."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    method: Method = "POST"
    content_type: ContentType = MULTIPART
    file_field_name: str = "file"
    response_url_field_name: str = "url"
    request_params: str | None = None
    request_body: str | None = None

    @field_validator("method", mode="before")
    @classmethod
    def upper_method(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("request_params", "request_body", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


def parse_template(template: str | None) -> Any:
    """Parse a JSON-encoded template; an unset template yields None."""
    if template is None:
        return None
    return json.loads(template)


def extract_url(payload: Any, field_name: str) -> str | None:
    """Read ``payload["data"][field_name]``, tolerating any other shape."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    url = data.get(field_name)
    return str(url) if url else None


def _form_fields(body: Any) -> dict[str, str]:
    if not body:
        return {}
    if not isinstance(body, dict):
        raise ValueError("requestBody must be a JSON object for form content types")
    return {
        key: value if isinstance(value, str) else json.dumps(value)
        for key, value in body.items()
    }


class CustomUploader(Uploader):
    """Uploads to any HTTP endpoint described by a request template."""

    name = "custom"
    default_options = [
        OptionSpec(name="url", label="Upload URL", required=True),
        OptionSpec(
            name="method",
            label="Request method",
            value="POST",
            required=True,
            choices=["POST", "GET", "PUT", "PATCH", "DELETE"],
        ),
        OptionSpec(
            name="contentType",
            label="Content type",
            value=MULTIPART,
            required=True,
            choices=[MULTIPART, URLENCODED, JSON],
        ),
        OptionSpec(name="fileFieldName", label="File field name", value="file", required=True),
        OptionSpec(
            name="responseUrlFieldName",
            label="Response URL field name",
            value="url",
            required=True,
        ),
        OptionSpec(name="requestParams", label="Query parameters (JSON)"),
        OptionSpec(name="requestBody", label="Request body (JSON)"),
    ]

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.transport = transport
        self.options: list[UploaderOption] = [
            UploaderOption(name=spec.name, value=spec.value) for spec in self.default_options
        ]

    def configure(self, options: list[UploaderOption]) -> None:
        self.options = list(options)

    def get_config(self) -> CustomUploaderConfig:
        return CustomUploaderConfig.model_validate(collapse_options(self.options))

    async def upload(
        self,
        local_path: str,
        file_name: str,
        directory: str | None = None,
        managed: bool = False,
    ) -> UploadOutcome:
        try:
            config = self.get_config()
            response = await self._send(config, local_path, file_name)
            response.raise_for_status()
            url = extract_url(response.json(), config.response_url_field_name)
        except Exception as e:
            logger.warning("Upload of %s failed: %s", local_path, e)
            return UploadOutcome.failed(str(e) or e.__class__.__name__)

        if url:
            return UploadOutcome.ok(url)
        logger.warning(
            "Response for %s has no data.%s field", local_path, config.response_url_field_name
        )
        return UploadOutcome.failed("Upload failed")

    async def _send(
        self,
        config: CustomUploaderConfig,
        local_path: str,
        file_name: str,
    ) -> httpx.Response:
        params = parse_template(config.request_params) or {}
        body = parse_template(config.request_body)

        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            if config.content_type == MULTIPART:
                mime = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
                content = await asyncio.to_thread(Path(local_path).read_bytes)
                # httpx sizes the multipart body up front and sends Content-Length.
                request = client.build_request(
                    config.method,
                    config.url,
                    params=params,
                    data=_form_fields(body),
                    files={config.file_field_name: (file_name, content, mime)},
                )
                logger.debug(
                    "%s %s (%s bytes)",
                    config.method,
                    config.url,
                    request.headers.get("Content-Length"),
                )
                return await client.send(request)

            if config.content_type == URLENCODED:
                request = client.build_request(
                    config.method, config.url, params=params, data=_form_fields(body)
                )
            else:
                request = client.build_request(config.method, config.url, params=params, json=body)
            logger.debug("%s %s", config.method, config.url)
            return await client.send(request)

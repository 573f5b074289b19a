"""Tests for the templated HTTP uploader."""

import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from ferry.models import UploaderOption
from ferry.uploaders import custom
from ferry.uploaders.custom import CustomUploader, extract_url, parse_template


def make_uploader(handler, **options) -> CustomUploader:
    values = {
        "url": "https://upload.example/api",
        "method": "POST",
        "contentType": "multipart/form-data",
        "fileFieldName": "image",
        "responseUrlFieldName": "link",
    }
    values.update(options)
    uploader = CustomUploader(transport=httpx.MockTransport(handler))
    uploader.configure([UploaderOption(name=k, value=v) for k, v in values.items()])
    return uploader


@pytest.fixture
def image(tmp_path):
    path = tmp_path / "cat.png"
    path.write_bytes(b"\x89PNG fake image bytes")
    return str(path)


class TestMultipart:
    @pytest.mark.asyncio
    async def test_success(self, image):
        seen = {}

        def handler(request: httpx.Request):
            seen["request"] = request
            return httpx.Response(200, json={"data": {"link": "https://img.example/cat.png"}})

        uploader = make_uploader(handler, requestParams='{"token": "abc"}')
        outcome = await uploader.upload(image, "0f3c.png")

        assert outcome.success
        assert outcome.url == "https://img.example/cat.png"

        request = seen["request"]
        assert request.method == "POST"
        assert request.url.params["token"] == "abc"
        assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert int(request.headers["Content-Length"]) == len(request.content)
        assert b'name="image"; filename="0f3c.png"' in request.content
        assert b"\x89PNG fake image bytes" in request.content

    @pytest.mark.asyncio
    async def test_file_is_read_in_worker_thread(self, image, monkeypatch):
        """Reading the local file does not block the event loop."""
        offloaded = []
        to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args, **kwargs):
            offloaded.append(func)
            return await to_thread(func, *args, **kwargs)

        monkeypatch.setattr(custom.asyncio, "to_thread", recording_to_thread)

        def handler(request):
            return httpx.Response(200, json={"data": {"link": "u"}})

        outcome = await make_uploader(handler).upload(image, "a.png")

        assert outcome.success
        assert len(offloaded) == 1

    @pytest.mark.asyncio
    async def test_body_template_as_form_fields(self, image):
        seen = {}

        def handler(request):
            seen["content"] = request.content
            return httpx.Response(200, json={"data": {"link": "u"}})

        uploader = make_uploader(handler, requestBody='{"album": "holiday", "public": true}')
        await uploader.upload(image, "a.png")

        assert b'name="album"\r\n\r\nholiday' in seen["content"]
        assert b'name="public"\r\n\r\ntrue' in seen["content"]

    @pytest.mark.asyncio
    async def test_method_is_configurable(self, image):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            return httpx.Response(200, json={"data": {"link": "u"}})

        uploader = make_uploader(handler, method="put")
        outcome = await uploader.upload(image, "a.png")

        assert outcome.success
        assert seen["method"] == "PUT"


class TestOtherContentTypes:
    @pytest.mark.asyncio
    async def test_json_body(self, image):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json={"data": {"link": "https://x/y.png"}})

        uploader = make_uploader(
            handler, contentType="application/json", requestBody='{"name": "cat", "tags": [1, 2]}'
        )
        outcome = await uploader.upload(image, "a.png")

        assert outcome.url == "https://x/y.png"
        request = seen["request"]
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"name": "cat", "tags": [1, 2]}

    @pytest.mark.asyncio
    async def test_urlencoded_body(self, image):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json={"data": {"link": "u"}})

        uploader = make_uploader(
            handler,
            contentType="application/x-www-form-urlencoded",
            requestBody='{"key": "value"}',
        )
        await uploader.upload(image, "a.png")

        request = seen["request"]
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert parse_qs(request.content.decode()) == {"key": ["value"]}


class TestFailures:
    """Every failure is reported as an outcome, never raised."""

    @pytest.mark.asyncio
    async def test_missing_response_field(self, image):
        def handler(request):
            return httpx.Response(200, json={"data": {"other": "https://x/y.png"}})

        outcome = await make_uploader(handler).upload(image, "a.png")

        assert not outcome.success
        assert outcome.error_message == "Upload failed"

    @pytest.mark.asyncio
    async def test_field_outside_data(self, image):
        def handler(request):
            return httpx.Response(200, json={"link": "https://x/y.png"})

        outcome = await make_uploader(handler).upload(image, "a.png")
        assert outcome.error_message == "Upload failed"

    @pytest.mark.asyncio
    async def test_invalid_json(self, image):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        outcome = await make_uploader(handler).upload(image, "a.png")

        assert not outcome.success
        assert outcome.error_message

    @pytest.mark.asyncio
    async def test_http_error_status(self, image):
        def handler(request):
            return httpx.Response(500, json={"error": "boom"})

        outcome = await make_uploader(handler).upload(image, "a.png")

        assert not outcome.success
        assert "500" in outcome.error_message

    @pytest.mark.asyncio
    async def test_transport_error(self, image):
        def handler(request):
            raise httpx.ConnectError("name resolution failed")

        outcome = await make_uploader(handler).upload(image, "a.png")

        assert outcome.error_message == "name resolution failed"

    @pytest.mark.asyncio
    async def test_missing_local_file(self, tmp_path):
        def handler(request):
            raise AssertionError("no request expected")

        outcome = await make_uploader(handler).upload(str(tmp_path / "nope.png"), "a.png")

        assert not outcome.success
        assert "nope.png" in outcome.error_message

    @pytest.mark.asyncio
    async def test_invalid_method(self, image):
        def handler(request):
            raise AssertionError("no request expected")

        outcome = await make_uploader(handler, method="TRACE").upload(image, "a.png")
        assert not outcome.success

    @pytest.mark.asyncio
    async def test_bad_params_template(self, image):
        def handler(request):
            raise AssertionError("no request expected")

        outcome = await make_uploader(handler, requestParams="{not json").upload(image, "a.png")
        assert not outcome.success


class TestConfig:
    def test_defaults_before_configure(self):
        config_values = {o.name: o.value for o in CustomUploader().options}
        assert config_values["method"] == "POST"
        assert config_values["contentType"] == "multipart/form-data"
        assert config_values["url"] is None

    def test_options_collapse_last_wins(self):
        uploader = CustomUploader()
        uploader.configure(
            [
                UploaderOption(name="url", value="https://a.example"),
                UploaderOption(name="url", value="https://b.example"),
                UploaderOption(name="requestBody", value="   "),
            ]
        )
        config = uploader.get_config()

        assert config.url == "https://b.example"
        assert config.request_body is None
        assert config.file_field_name == "file"

    def test_parse_template(self):
        assert parse_template(None) is None
        assert parse_template('{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize(
        "payload",
        [None, [], "text", {"data": None}, {"data": "x"}, {"data": {"link": ""}}],
    )
    def test_extract_url_tolerates_shapes(self, payload):
        assert extract_url(payload, "link") is None

    def test_extract_url(self):
        assert extract_url({"data": {"link": "https://x"}}, "link") == "https://x"

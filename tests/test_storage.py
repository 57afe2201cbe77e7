"""Tests for media uploads and the file/URL helpers."""

from unittest.mock import Mock

import pytest
import requests

from skillbridge.config.models import UploadConfig
from skillbridge.storage import (
    CloudinaryUploader,
    FileValidationError,
    StorageConfigurationError,
    UploadFile,
    UploadHTTPError,
    UploadResponseError,
    UploadTimeoutError,
    direct_download_link,
    extract_drive_file_id,
    extract_public_id,
    file_extension,
    file_kind,
    format_file_size,
    is_cdn_url,
    optimized_url,
    validate_upload,
)

SECURE_URL = "https://res.cloudinary.com/demo/image/upload/v1712/submissions/logo.png"


def make_upload(name="logo.png", size=1024, content_type="image/png"):
    return UploadFile(filename=name, content=b"\x89PNG", size=size, content_type=content_type)


def make_response(status_code=200, json_data=None, json_error=False):
    response = Mock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def http():
    return Mock(spec=requests.Session)


@pytest.fixture
def uploader(http):
    return CloudinaryUploader("demo", "unsigned_preset", UploadConfig(request_timeout=30), session=http)


class TestFormatFileSize:
    @pytest.mark.parametrize(
        "num_bytes,expected",
        [
            (0, "0 Bytes"),
            (None, "0 Bytes"),
            (512, "512 Bytes"),
            (1536, "1.5 KB"),
            (1024 * 1024, "1 MB"),
            (int(2.25 * 1024 ** 3), "2.25 GB"),
        ],
    )
    def test_sizes(self, num_bytes, expected):
        assert format_file_size(num_bytes) == expected


class TestFileHelpers:
    def test_extension_and_kind(self):
        assert file_extension("Report.Final.PDF") == "pdf"
        assert file_extension(None) == ""
        assert file_kind("brief.docx") == "document"
        assert file_kind("sheet.xlsx") == "spreadsheet"
        assert file_kind("photo.JPG") == "image"
        assert file_kind("bundle.rar") == "archive"
        assert file_kind("clip.mp4") == "other"

    def test_is_cdn_url(self):
        assert is_cdn_url(SECURE_URL) is True
        assert is_cdn_url("https://drive.google.com/file/d/abc/view") is False
        assert is_cdn_url(None) is False


class TestValidateUpload:
    LIMIT = 100 * 1024 * 1024

    def test_accepts_allowed_file(self):
        validate_upload(make_upload(), self.LIMIT, ["png", "pdf"])

    def test_missing_name(self):
        with pytest.raises(FileValidationError, match="File name is required"):
            validate_upload(make_upload(name=""), self.LIMIT)

    def test_empty_file(self):
        with pytest.raises(FileValidationError, match="File is empty"):
            validate_upload(make_upload(size=0), self.LIMIT)

    def test_too_large(self):
        with pytest.raises(FileValidationError) as exc_info:
            validate_upload(make_upload(size=self.LIMIT + 1), self.LIMIT)

        assert str(exc_info.value) == "Maximum file size is 100MB"

    def test_disallowed_extension(self):
        with pytest.raises(FileValidationError) as exc_info:
            validate_upload(make_upload(name="setup.exe"), self.LIMIT, ["pdf", ".PNG"])

        assert str(exc_info.value) == "File type '.exe' is not allowed. Accepted: .pdf, .png"

    def test_name_without_extension(self):
        with pytest.raises(FileValidationError):
            validate_upload(make_upload(name="png"), self.LIMIT, ["png"])


class TestUrlHelpers:
    def test_extract_public_id(self):
        assert extract_public_id(SECURE_URL) == "submissions/logo"
        assert extract_public_id("https://res.cloudinary.com/demo/image/upload/logo.png") == "logo"
        assert extract_public_id("https://example.com/logo.png") is None
        assert extract_public_id(None) is None

    def test_optimized_url(self):
        assert optimized_url(SECURE_URL, "demo", width=200, height=100) == (
            "https://res.cloudinary.com/demo/image/upload/w_200,h_100,c_fill,q_auto,f_auto/submissions/logo"
        )

    def test_optimized_url_passthrough(self):
        assert optimized_url(SECURE_URL, "demo") == SECURE_URL
        assert optimized_url(SECURE_URL, None, width=200) == SECURE_URL
        assert optimized_url("https://example.com/a.png", "demo", width=200) == "https://example.com/a.png"

    @pytest.mark.parametrize(
        "url,file_id",
        [
            ("https://drive.google.com/file/d/1AbC_x/view?usp=sharing", "1AbC_x"),
            ("https://drive.google.com/open?id=1AbC_x&authuser=0", "1AbC_x"),
            ("https://drive.google.com/drive/folders/F0ld3r", "F0ld3r"),
            ("https://example.com/nothing", None),
        ],
    )
    def test_extract_drive_file_id(self, url, file_id):
        assert extract_drive_file_id(url) == file_id

    def test_direct_download_link(self):
        assert direct_download_link("https://drive.google.com/file/d/1AbC_x/view") == (
            "https://drive.google.com/uc?export=download&id=1AbC_x"
        )
        assert direct_download_link("https://example.com/file.zip") == "https://example.com/file.zip"


class TestCloudinaryUploader:
    def test_successful_upload(self, uploader, http):
        http.post.return_value = make_response(
            json_data={
                "secure_url": SECURE_URL,
                "public_id": "submissions/logo",
                "bytes": 1024,
                "format": "png",
                "resource_type": "image",
            }
        )

        result = uploader.upload(make_upload())

        assert result.url == SECURE_URL
        assert result.public_id == "submissions/logo"
        assert result.bytes == 1024
        assert result.resource_type == "image"

        args, kwargs = http.post.call_args
        assert args[0] == "https://api.cloudinary.com/v1_1/demo/upload"
        assert kwargs["data"] == {"upload_preset": "unsigned_preset"}
        assert kwargs["files"]["file"] == ("logo.png", b"\x89PNG", "image/png")
        assert kwargs["timeout"] == 30

    def test_default_content_type(self, uploader, http):
        http.post.return_value = make_response(json_data={"secure_url": SECURE_URL})

        uploader.upload(make_upload(content_type=None))

        assert http.post.call_args[1]["files"]["file"][2] == "application/octet-stream"

    @pytest.mark.parametrize("cloud_name,preset", [(None, "p"), ("undefined", "p"), ("demo", None)])
    def test_not_configured(self, http, cloud_name, preset):
        uploader = CloudinaryUploader(cloud_name, preset, session=http)

        assert uploader.is_configured is False
        with pytest.raises(StorageConfigurationError):
            uploader.upload(make_upload())
        http.post.assert_not_called()

    def test_invalid_file_not_sent(self, uploader, http):
        with pytest.raises(FileValidationError):
            uploader.upload(make_upload(name="tool.exe"))

        http.post.assert_not_called()

    def test_timeout(self, uploader, http):
        http.post.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(UploadTimeoutError) as exc_info:
            uploader.upload(make_upload())

        assert "30 seconds" in str(exc_info.value)
        assert exc_info.value.url.endswith("/demo/upload")

    def test_connection_error(self, uploader, http):
        http.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(UploadHTTPError) as exc_info:
            uploader.upload(make_upload())

        assert exc_info.value.status_code == 0

    def test_http_error_uses_provider_message(self, uploader, http):
        http.post.return_value = make_response(
            400, json_data={"error": {"message": "Upload preset not found"}}
        )

        with pytest.raises(UploadHTTPError) as exc_info:
            uploader.upload(make_upload())

        assert str(exc_info.value) == "Upload preset not found"
        assert exc_info.value.status_code == 400

    def test_http_error_without_body(self, uploader, http):
        http.post.return_value = make_response(502, json_error=True)

        with pytest.raises(UploadHTTPError, match="Upload failed with status 502"):
            uploader.upload(make_upload())

    def test_invalid_json(self, uploader, http):
        http.post.return_value = make_response(json_error=True)

        with pytest.raises(UploadResponseError, match="not valid JSON"):
            uploader.upload(make_upload())

    def test_missing_secure_url(self, uploader, http):
        http.post.return_value = make_response(json_data={"public_id": "x"})

        with pytest.raises(UploadResponseError, match="no URL returned"):
            uploader.upload(make_upload())

import pytest
import requests

from image_auditor.errors import ImageFetchError, ParseSkipError
from image_auditor.fetcher import HttpResponse
from image_auditor.images import (
    ImageInspector,
    content_type_from_extension,
    parse_data_uri,
)


@pytest.mark.parametrize("url, expected", [
    ("https://x.com/a.jpg", "image/jpeg"),
    ("https://x.com/a.JPEG", "image/jpeg"),
    ("https://x.com/a.png?v=3", "image/png"),
    ("https://x.com/a.gif", "image/gif"),
    ("https://x.com/a.webp", "image/webp"),
    ("https://x.com/a.svg", "image/svg+xml"),
    ("https://x.com/a.bmp", "image/bmp"),
    ("https://x.com/favicon.ico", "image/x-icon"),
    ("https://x.com/scan.tif", "image/tiff"),
    ("https://x.com/scan.tiff", "image/tiff"),
    ("https://x.com/image", "image/unknown"),
    ("https://x.com/photo.avif", "image/unknown"),
])
def test_content_type_from_extension(url, expected):
    assert content_type_from_extension(url) == expected


def test_data_uri_size_and_type():
    payload = "A" * 400
    probe = parse_data_uri(f"data:image/png;base64,{payload}")
    assert probe.content_type == "image/png"
    assert probe.size_bytes == 300
    assert probe.status_code == 200
    assert probe.error is None


def test_data_uri_size_rounds_half_up():
    # 6 * 3 / 4 == 4.5
    probe = parse_data_uri("data:image/gif;base64,R0lGOD")
    assert probe.size_bytes == 5


def test_data_uri_without_mime_is_unknown():
    assert parse_data_uri("data:;base64,AAAA").content_type == "image/unknown"


def test_data_uri_without_payload_is_skipped():
    with pytest.raises(ParseSkipError):
        parse_data_uri("data:image/png;base64")


def test_inspect_without_size_analysis_uses_extension_only(fetcher_factory):
    fetcher = fetcher_factory()
    inspector = ImageInspector(fetcher, size_analysis=False)
    probe = inspector.inspect("/img/logo.png", "https://example.com/about")
    assert probe.image_url == "https://example.com/img/logo.png"
    assert probe.content_type == "image/png"
    assert probe.size_bytes == 0
    assert fetcher.metadata_calls == []


def test_inspect_data_uri_never_hits_network(fetcher_factory):
    fetcher = fetcher_factory()
    inspector = ImageInspector(fetcher, size_analysis=True)
    probe = inspector.inspect("data:image/svg+xml;base64,AAAAAAAA", "https://example.com/")
    assert probe.content_type == "image/svg+xml"
    assert probe.size_bytes == 6
    assert fetcher.metadata_calls == []


def test_inspect_uses_response_headers(fetcher_factory):
    fetcher = fetcher_factory(images={
        "https://cdn.com/b.jpg": HttpResponse(200, "", {"Content-Type": "image/webp", "Content-Length": "2048"}),
    })
    probe = ImageInspector(fetcher).inspect("https://cdn.com/b.jpg", "https://example.com/")
    assert probe.content_type == "image/webp"
    assert probe.size_bytes == 2048
    assert probe.status_code == 200
    assert fetcher.metadata_calls == ["https://cdn.com/b.jpg"]


def test_inspect_falls_back_to_extension_when_headers_missing(fetcher_factory):
    fetcher = fetcher_factory(images={"https://example.com/a.gif": HttpResponse(200, "", {})})
    probe = ImageInspector(fetcher).inspect("a.gif", "https://example.com/index.html")
    assert probe.content_type == "image/gif"
    assert probe.size_bytes == 0


def test_inspect_ignores_garbage_content_length(fetcher_factory):
    fetcher = fetcher_factory(images={
        "https://example.com/a.png": HttpResponse(200, "", {"content-type": "image/png", "content-length": "lots"}),
    })
    probe = ImageInspector(fetcher).inspect("/a.png", "https://example.com/")
    assert probe.content_type == "image/png"
    assert probe.size_bytes == 0


def test_inspect_keeps_4xx_status_without_error(fetcher_factory):
    fetcher = fetcher_factory()  # unknown image -> 404 reply
    probe = ImageInspector(fetcher).inspect("/missing.jpg", "https://example.com/")
    assert probe.status_code == 404
    assert probe.content_type == "image/jpeg"
    assert probe.error is None


def test_inspect_records_soft_failure(fetcher_factory):
    url = "https://example.com/slow.png"
    fetcher = fetcher_factory(images={url: ImageFetchError(url, requests.exceptions.ReadTimeout("read timed out"))})
    probe = ImageInspector(fetcher).inspect(url, "https://example.com/")
    assert probe.content_type == "image/png"
    assert probe.size_bytes == 0
    assert probe.status_code == 408
    assert "timed out" in probe.error


def test_inspect_failure_defaults_to_500(fetcher_factory):
    url = "https://example.com/x.webp"
    fetcher = fetcher_factory(images={url: ImageFetchError(url, requests.exceptions.InvalidURL("bad"))})
    probe = ImageInspector(fetcher).inspect(url, "https://example.com/")
    assert probe.status_code == 500
    assert probe.content_type == "image/webp"


def test_data_uri_with_size_analysis_off_uses_extension_only(fetcher_factory):
    fetcher = fetcher_factory()
    inspector = ImageInspector(fetcher, size_analysis=False)
    uri = "data:image/png;base64," + "A" * 400
    probe = inspector.inspect(uri, "https://example.com/")
    assert probe.image_url == uri
    assert probe.content_type == "image/unknown"
    assert probe.size_bytes == 0
    assert probe.status_code == 200
    assert fetcher.metadata_calls == []

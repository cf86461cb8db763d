from types import SimpleNamespace

import pytest
import requests

from personalize import fetch
from personalize.errors import FetchError


def _fake_get(status_code=200, content=b"", reason="OK", calls=None):
    def get(url, timeout):
        if calls is not None:
            calls.append((url, timeout))
        return SimpleNamespace(status_code=status_code, content=content, reason=reason)

    return get


def test_remote_fetch_returns_body(monkeypatch):
    calls = []
    monkeypatch.setattr(fetch.requests, "get", _fake_get(content=b"\x89PNG", calls=calls))

    assert fetch.fetch_image("https://cdn.test/a.png", timeout=5) == b"\x89PNG"
    assert calls == [("https://cdn.test/a.png", 5)]


@pytest.mark.parametrize("status_code", [301, 404, 500])
def test_non_2xx_status_raises(monkeypatch, status_code):
    monkeypatch.setattr(fetch.requests, "get", _fake_get(status_code=status_code, reason="Nope"))

    with pytest.raises(FetchError) as excinfo:
        fetch.fetch_image("https://cdn.test/a.png")

    assert excinfo.value.status_code == status_code
    assert excinfo.value.url == "https://cdn.test/a.png"


def test_network_failure_raises(monkeypatch):
    def get(url, timeout):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(fetch.requests, "get", get)

    with pytest.raises(FetchError) as excinfo:
        fetch.fetch_image("http://cdn.test/a.png")

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_branding_fetcher_refuses_local_files(tmp_path):
    path = tmp_path / "secret.png"
    path.write_bytes(b"secret")

    for url in (str(path), path.as_uri()):
        with pytest.raises(FetchError):
            fetch.fetch_image(url)


@pytest.mark.parametrize("url", ["", "ftp://cdn.test/a.png"])
def test_unusable_urls_raise(url):
    with pytest.raises(FetchError):
        fetch.fetch_image(url)


def test_template_fetcher_reads_local_paths_and_file_uris(tmp_path):
    path = tmp_path / "template.png"
    path.write_bytes(b"local")

    assert fetch.fetch_template_image(str(path)) == b"local"
    assert fetch.fetch_template_image(path.as_uri()) == b"local"


def test_template_fetcher_missing_local_file_raises(tmp_path):
    with pytest.raises(FetchError):
        fetch.fetch_template_image(str(tmp_path / "nope.png"))


def test_template_fetcher_uses_http_for_remote_urls(monkeypatch):
    calls = []
    monkeypatch.setattr(fetch.requests, "get", _fake_get(content=b"remote", calls=calls))

    assert fetch.fetch_template_image("https://cdn.test/t.png", timeout=7) == b"remote"
    assert calls == [("https://cdn.test/t.png", 7)]

import pytest

from bucketstore.storage.url_utils import ensure_scheme, guess_content_type, hostname, join_url, normalize_key


class TestJoinUrl:
    """Test suite for joining object keys onto URL prefixes."""

    def test_join(self) -> None:
        assert join_url("https://cdn.example.com/static", "a/b.png") == "https://cdn.example.com/static/a/b.png"
        assert join_url("cdn.example.com/", "/a.png") == "http://cdn.example.com/a.png"
        assert join_url("cdn.example.com", "a.png", secure=True) == "https://cdn.example.com/a.png"

    @pytest.mark.parametrize(
        "key,expected_path",
        [
            ("my file.png", "/my%20file.png"),
            ("my file#1.png", "/my%20file%231.png"),
            ("report?v=2.pdf", "/report%3Fv=2.pdf"),
            ("100%.txt", "/100%25.txt"),
            ("dir/a+b@2x.png", "/dir/a+b@2x.png"),
        ],
    )
    def test_key_is_percent_encoded(self, key: str, expected_path: str) -> None:
        """Test that reserved characters in keys stay part of the path."""
        assert join_url("http://cdn.example.com", key) == f"http://cdn.example.com{expected_path}"

    def test_encoded_prefix_is_not_double_encoded(self) -> None:
        assert join_url("http://cdn.example.com/my%20dir", "a b.png") == "http://cdn.example.com/my%20dir/a%20b.png"

    def test_unicode_key(self) -> None:
        assert join_url("http://cdn.example.com", "图片.png") == "http://cdn.example.com/%E5%9B%BE%E7%89%87.png"


def test_hostname() -> None:
    assert hostname("https://cdn.example.com/static") == "cdn.example.com"
    assert hostname("localhost:9000") == "localhost:9000"


def test_ensure_scheme() -> None:
    assert ensure_scheme("example.com") == "http://example.com"
    assert ensure_scheme("example.com", secure=True) == "https://example.com"
    assert ensure_scheme("https://example.com") == "https://example.com"


def test_normalize_key() -> None:
    assert normalize_key("/a/b.png") == "a/b.png"


def test_guess_content_type() -> None:
    assert guess_content_type("dir/a.png") == "image/png"
    assert guess_content_type("blob") == "application/octet-stream"

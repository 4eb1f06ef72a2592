"""
Artwork URL sizing for Apple Music images.

Apple artwork URLs end in a size/crop token, e.g.
`https://is1-ssl.mzstatic.com/image/thumb/Music/.../1200x1200bf.jpg`.
The CDN renders whatever size is requested in that last path segment, so
resizing is a matter of swapping the segment for another token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

DEFAULT_EXTENSION = ".jpg"

_SEGMENT_PATTERN = re.compile(r"^(?P<stem>[^/]*?)(?P<ext>\.[A-Za-z0-9]+)?$")


@dataclass(frozen=True)
class ImageSize:
    """Requested artwork size, rendered as `{width}x{height}{crop}`."""

    width: int
    height: int
    crop: str = "cc"

    def __str__(self) -> str:
        return f"{self.width}x{self.height}{self.crop}"

    @classmethod
    def parse(cls, token: str) -> ImageSize:
        match = re.fullmatch(r"(\d+)x(\d+)([a-z]*)", token)
        if not match:
            raise ValueError(f"Invalid image size token: {token!r}, expected e.g. 1400x1400cc")
        return cls(int(match.group(1)), int(match.group(2)), match.group(3))


THUMBNAIL = ImageSize(100, 100)
DEFAULT = ImageSize(1400, 1400)


def resize(url: str, size: ImageSize | str) -> str:
    """
    Replace the trailing size token of an artwork URL.

    Only the last segment of the URL path changes. Its extension is kept
    (`.jpg` if it has none); host, leading path and query are left untouched.

    Args:
        url: Artwork URL as scraped
        size: Target size, or a raw token like "1400x1400bb"

    Returns:
        URL requesting the new size; `url` unchanged if its path is empty or `/`
    """
    parts = urlsplit(url)
    idx = parts.path.rfind("/")
    if idx < 0 or parts.path == "/":
        return url

    prefix, segment = parts.path[: idx + 1], parts.path[idx + 1 :]
    match = _SEGMENT_PATTERN.match(segment)
    ext = match.group("ext") if match and match.group("ext") else DEFAULT_EXTENSION
    return urlunsplit(parts._replace(path=f"{prefix}{size}{ext}"))


def image_pair(url: str, primary: ImageSize, thumbnail: ImageSize) -> tuple[str, str]:
    """(primary URL, thumbnail URL) for one scraped artwork URL."""
    return resize(url, primary), resize(url, thumbnail)


## Tests


def test_resize_replaces_trailing_token():
    url = "https://is1-ssl.mzstatic.com/image/thumb/Music/v4/ab/cd/source/1000x1000bb.jpg"
    resized = resize(url, "1400x1400bb")
    assert resized == "https://is1-ssl.mzstatic.com/image/thumb/Music/v4/ab/cd/source/1400x1400bb.jpg"


def test_resize_keeps_extension():
    url = "https://is1-ssl.mzstatic.com/image/thumb/Features/x/1200x630cw.png"
    assert resize(url, THUMBNAIL).endswith("/100x100cc.png")


def test_resize_without_extension_defaults_to_jpg():
    assert resize("https://example.com/a/1200x1200bf", DEFAULT) == "https://example.com/a/1400x1400cc.jpg"


def test_resize_without_path():
    assert resize("not-a-url", DEFAULT) == "not-a-url"


def test_resize_bare_host_unchanged():
    assert resize("https://example.com", DEFAULT) == "https://example.com"
    assert resize("https://example.com/", DEFAULT) == "https://example.com/"


def test_resize_keeps_query():
    url = "https://is1-ssl.mzstatic.com/image/thumb/a/100x100bb.jpg?x=1"
    assert resize(url, DEFAULT) == "https://is1-ssl.mzstatic.com/image/thumb/a/1400x1400cc.jpg?x=1"


def test_image_size_parse():
    assert ImageSize.parse("1400x1400bb") == ImageSize(1400, 1400, "bb")
    assert str(ImageSize.parse("100x100cc")) == "100x100cc"

"""Infrastructure helpers for fetching frames, caching and HTTP responses."""

from .cache import CACHE, ResponseCache, last_good_png, remember_last_good
from .network import FETCHER, SourceFetcher, decode_frame
from .responses import encode_png, send_png, send_png_bytes, send_text

__all__ = [
    "CACHE",
    "ResponseCache",
    "last_good_png",
    "remember_last_good",
    "FETCHER",
    "SourceFetcher",
    "decode_frame",
    "encode_png",
    "send_png",
    "send_png_bytes",
    "send_text",
]

from __future__ import annotations

import io

from flask import Response, send_file
from PIL import Image

from .cache import remember_last_good


def encode_png(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, "PNG", optimize=True)
    return buffer.getvalue()


def send_png_bytes(data: bytes, effect: str):
    remember_last_good(effect, data)
    return send_file(io.BytesIO(data), mimetype="image/png")


def send_png(img: Image.Image, effect: str):
    return send_png_bytes(encode_png(img), effect)


def send_text(text: str) -> Response:
    return Response(text, mimetype="text/plain; charset=utf-8")

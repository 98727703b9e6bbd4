import io
from dataclasses import replace

import pytest
from PIL import Image

from toonframe.app import apply_overrides, cache_key, create_app, resolve_source_url
from toonframe.config import SETTINGS
from toonframe.infrastructure import cache
from toonframe.infrastructure.cache import CACHE, remember_last_good
from toonframe.infrastructure.network import FETCHER


def _png_bytes(size=(24, 16), color=(200, 60, 30)):
    img = Image.new("RGB", size, color)
    img.paste((20, 40, 220), (0, 0, size[0] // 2, size[1]))
    buffer = io.BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def client(monkeypatch):
    CACHE.clear()
    monkeypatch.setattr(cache, "_last_good_png", {})
    settings = replace(SETTINGS, source_url="http://frames.local/frame.png", ascii_width=10)
    app = create_app(settings)
    app.config["TESTING"] = True
    with app.test_client() as test_client:
        yield test_client
    CACHE.clear()


def _upload(client, effect, query=""):
    return client.post(
        f"/render/{effect}{query}",
        data={"image": (io.BytesIO(_png_bytes()), "frame.png")},
        content_type="multipart/form-data",
    )


def test_resolve_source_url_defaults_to_settings() -> None:
    settings = replace(SETTINGS, source_url="http://frames.local/frame.png")

    assert resolve_source_url({}, settings) == "http://frames.local/frame.png"


def test_resolve_source_url_accepts_direct_override() -> None:
    override = "http://example.com/image.png"
    assert resolve_source_url({"source_url": override}) == override


def test_resolve_source_url_builds_from_base_and_path() -> None:
    args = {"source_base": "http://foo:1234", "source_path": "abc/def.png"}

    assert resolve_source_url(args) == "http://foo:1234/abc/def.png"


def test_resolve_source_url_handles_slashes_gracefully() -> None:
    args = {"source_base": "http://foo:1234/", "source_path": "/abc/def.png"}

    assert resolve_source_url(args) == "http://foo:1234/abc/def.png"


def test_apply_overrides_coerces_query_values() -> None:
    updated = apply_overrides(
        SETTINGS,
        {"ascii_width": "42", "invert": "yes", "line_threshold": "12.5", "unrelated": "x"},
    )

    assert updated.ascii_width == 42
    assert updated.ascii_invert is True
    assert updated.ascii_line_threshold == 12.5
    assert updated.genga_line_threshold == 12.5
    assert updated is not SETTINGS


def test_apply_overrides_without_params_returns_same_settings() -> None:
    assert apply_overrides(SETTINGS, {"source_url": "http://x"}) is SETTINGS


def test_apply_overrides_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        apply_overrides(SETTINGS, {"pixel_size": "big"})
    with pytest.raises(ValueError):
        apply_overrides(SETTINGS, {"outline": "maybe"})


def test_cache_key_ignores_argument_order() -> None:
    first = cache_key("cel", "http://x", {"a": "1", "b": "2"})
    second = cache_key("cel", "http://x", {"b": "2", "a": "1"})

    assert first == second
    assert first != cache_key("genga", "http://x", {"a": "1", "b": "2"})


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json()["ok"] is True
    assert response.get_json()["version"]


def test_effects_listing(client) -> None:
    effects = client.get("/effects").get_json()["effects"]

    assert "genga" in effects
    assert "ascii" in effects


def test_render_uploaded_frame(client) -> None:
    response = _upload(client, "silhouette")

    assert response.status_code == 200
    assert response.mimetype == "image/png"
    assert Image.open(io.BytesIO(response.data)).size == (24, 16)


def test_render_ascii_returns_text(client) -> None:
    response = _upload(client, "ascii", "?ascii_width=8")

    assert response.status_code == 200
    assert response.mimetype == "text/plain"
    rows = response.get_data(as_text=True).split("\n")
    assert all(len(row) == 8 for row in rows)


def test_render_unknown_effect_is_bad_request(client) -> None:
    response = _upload(client, "watercolor")

    assert response.status_code == 400


def test_render_rejects_bad_parameters(client) -> None:
    response = _upload(client, "8bit", "?pixel_size=huge")

    assert response.status_code == 400
    assert b"pixel_size" in response.data


def test_render_rejects_undecodable_upload(client) -> None:
    response = client.post(
        "/render/cel",
        data={"image": (io.BytesIO(b"not an image"), "frame.png")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 400


def test_render_fetches_and_caches_source(client, monkeypatch) -> None:
    calls = []

    def fake_fetch(**kwargs):
        calls.append(kwargs["source_url"])
        return Image.open(io.BytesIO(_png_bytes())).convert("RGBA")

    monkeypatch.setattr(FETCHER, "fetch_source", fake_fetch)

    first = client.get("/render/cel")
    second = client.get("/render/cel")

    assert first.status_code == second.status_code == 200
    assert first.data == second.data
    assert calls == ["http://frames.local/frame.png"]


def test_render_falls_back_to_last_good_frame(client, monkeypatch) -> None:
    def failing_fetch(**kwargs):
        raise RuntimeError("upstream down")

    monkeypatch.setattr(FETCHER, "fetch_source", failing_fetch)
    remember_last_good("genga", b"\x89PNG-last-good")

    response = client.get("/render/genga")

    assert response.status_code == 200
    assert response.data == b"\x89PNG-last-good"


def test_render_fallback_never_serves_another_effects_frame(client, monkeypatch) -> None:
    def failing_fetch(**kwargs):
        raise RuntimeError("upstream down")

    monkeypatch.setattr(FETCHER, "fetch_source", failing_fetch)
    remember_last_good("genga", b"\x89PNG-last-good")

    pencil = client.get("/render/pencil")
    ascii_text = client.get("/render/ascii")

    assert pencil.status_code == 500
    assert ascii_text.status_code == 500
    assert b"upstream down" in ascii_text.data


def test_successful_render_becomes_that_effects_fallback(client, monkeypatch) -> None:
    frames = iter([Image.open(io.BytesIO(_png_bytes())).convert("RGBA")])

    def flaky_fetch(**kwargs):
        try:
            return next(frames)
        except StopIteration:
            raise RuntimeError("upstream down") from None

    monkeypatch.setattr(FETCHER, "fetch_source", flaky_fetch)

    first = client.get("/render/silhouette?source_url=http://frames.local/a.png")
    second = client.get("/render/silhouette?source_url=http://frames.local/b.png")

    assert first.status_code == second.status_code == 200
    assert second.data == first.data
    assert cache.last_good_png("silhouette") == first.data


def test_settings_patch_updates_defaults(client) -> None:
    response = client.patch("/settings", json={"default_effect": "CEL", "ascii_width": "64"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["updated"] == {"default_effect": "cel", "ascii_width": 64}
    assert client.get("/settings").get_json()["ascii_width"] == 64
    assert client.get("/health").get_json()["default_effect"] == "cel"


def test_settings_patch_reports_invalid_values(client) -> None:
    response = client.patch(
        "/settings",
        json={"ascii_width": "wide", "default_effect": "watercolor", "ascii_invert": True},
    )

    assert response.status_code == 400
    body = response.get_json()
    assert set(body["errors"]) == {"ascii_width", "default_effect"}
    assert body["updated"] == {"ascii_invert": True}


def test_settings_patch_clears_optional_values(client) -> None:
    response = client.patch("/settings", json={"glyph_font": "", "render_workers": "3"})

    assert response.status_code == 200
    assert response.get_json()["settings"]["glyph_font"] is None
    assert response.get_json()["settings"]["render_workers"] == 3

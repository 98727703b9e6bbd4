from __future__ import annotations

import hashlib
import io
import logging
import typing
from dataclasses import asdict, fields, replace
from typing import Any, Dict, Mapping, Tuple

from flask import Flask, current_app, jsonify, request, send_file

from .config import SETTINGS, EngineSettings, configure_logging
from .infrastructure.cache import CACHE, last_good_png
from .infrastructure.network import FETCHER, _apply_base_and_path, decode_frame
from .infrastructure.responses import encode_png, send_png, send_png_bytes, send_text
from .processing.pipeline import available_effects, render_effect

APP_VERSION = "1.0.0"

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

# Query parameter -> settings field(s) it overrides for a single render.
RENDER_PARAMS: Dict[str, Tuple[str, ...]] = {
    "ascii_width": ("ascii_width",),
    "invert": ("ascii_invert",),
    "outline": ("ascii_outline",),
    "line_threshold": ("ascii_line_threshold", "genga_line_threshold"),
    "transparent_bg": ("ascii_transparent_bg",),
    "bg_threshold": ("ascii_bg_threshold",),
    "pixel_size": ("eight_bit_pixel_size",),
    "threshold": ("silhouette_threshold",),
    "improve": ("genga_improve_quality",),
    "outline_color": ("genga_outline",),
    "shadow_color": ("genga_shadow",),
    "highlight_color": ("genga_highlight",),
}

_FIELD_TYPES = {field.name: field.type for field in fields(EngineSettings)}


def coerce_value(field_type: Any, raw: Any) -> Any:
    if field_type is bool:
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValueError(f"Expected a boolean, got {raw!r}")
    if field_type is int:
        return int(raw)
    if field_type is float:
        return float(raw)
    if field_type is str:
        return str(raw)

    # Optional[...] fields: blank clears the value.
    if raw is None or raw == "":
        return None
    inner = next(arg for arg in typing.get_args(field_type) if arg is not type(None))
    return coerce_value(inner, raw)


def _type_name(field_type: Any) -> str:
    return getattr(field_type, "__name__", str(field_type))


def apply_overrides(settings: EngineSettings, args: Mapping[str, Any]) -> EngineSettings:
    """Return ``settings`` with recognised render parameters from ``args`` applied."""
    changes: Dict[str, Any] = {}
    for param, targets in RENDER_PARAMS.items():
        if param not in args:
            continue
        for target in targets:
            try:
                changes[target] = coerce_value(_FIELD_TYPES[target], args[param])
            except (TypeError, ValueError):
                raise ValueError(f"Invalid value for {param}: {args[param]!r}") from None
    return replace(settings, **changes) if changes else settings


def resolve_source_url(args: Mapping[str, str], settings: EngineSettings = SETTINGS) -> str:
    direct = args.get("source_url")
    if direct:
        return direct
    return _apply_base_and_path(
        settings.source_url,
        base_url=args.get("source_base") or None,
        path_override=args.get("source_path") or None,
    )


def cache_key(effect: str, source_url: str, args: Mapping[str, str]) -> str:
    parts = [effect, source_url] + [f"{key}={args[key]}" for key in sorted(args)]
    return hashlib.sha1("\n".join(parts).encode("utf-8")).hexdigest()


def _settings() -> EngineSettings:
    return current_app.config["ENGINE_SETTINGS"]


def create_app(settings: EngineSettings | None = None) -> Flask:
    settings = settings or SETTINGS
    configure_logging(settings)
    app = Flask(__name__)
    app.config["ENGINE_SETTINGS"] = settings

    @app.route("/render/<effect>", methods=["GET", "POST"])
    def render(effect: str):
        if effect not in available_effects():
            return (f"Unknown effect: {effect}", 400)

        args = request.args.to_dict()
        upload = request.files.get("image")
        frame = None
        try:
            effective = apply_overrides(_settings(), args)
            source_url = None if upload else resolve_source_url(args, effective)
            if upload:
                frame = decode_frame(upload.read())
        except (ValueError, OSError) as exc:
            return (f"Bad request: {exc}", 400)

        key = cache_key(effect, source_url, args) if source_url else None
        if key:
            cached = CACHE.get(key, effective.cache_ttl)
            if cached:
                return send_png_bytes(cached, effect)

        try:
            if frame is None:
                frame = FETCHER.fetch_source(source_url=source_url, settings=effective)
            result = render_effect(effect, frame, effective)
        except ValueError as exc:
            return (str(exc), 400)
        except Exception as exc:
            logger.exception("Rendering %s failed", effect)
            cached = last_good_png(effect)
            if cached:
                return send_file(io.BytesIO(cached), mimetype="image/png")
            return (f"Source Error: {exc}", 500)

        if isinstance(result, str):
            return send_text(result)
        data = encode_png(result)
        if key:
            CACHE.put(key, data)
        return send_png_bytes(data, effect)

    @app.route("/raw")
    def raw():
        args = request.args.to_dict()
        try:
            source_url = resolve_source_url(args, _settings())
            return send_png(FETCHER.fetch_source(source_url=source_url, settings=_settings()), "raw")
        except ValueError as exc:
            return (str(exc), 400)
        except Exception as exc:  # pragma: no cover - runtime fallback path
            return (str(exc), 500)

    @app.route("/effects")
    def effects():
        return jsonify(effects=available_effects())

    @app.route("/health")
    def health():
        return jsonify(
            ok=True,
            version=APP_VERSION,
            default_effect=_settings().default_effect,
        )

    @app.route("/settings", methods=["GET", "PATCH"])
    def settings_view():
        current = _settings()
        if request.method == "GET":
            return jsonify(asdict(current))

        payload = request.get_json(silent=True) or {}
        errors: dict[str, str] = {}
        applied: dict[str, object] = {}

        for name, field_type in _FIELD_TYPES.items():
            if name not in payload:
                continue
            try:
                coerced = coerce_value(field_type, payload[name])
            except (TypeError, ValueError, StopIteration):
                errors[name] = f"Expected {_type_name(field_type)}"
                continue
            if name == "default_effect":
                coerced = str(coerced).lower()
                if coerced not in available_effects():
                    errors[name] = f"Unknown effect: {coerced}"
                    continue
            applied[name] = coerced

        updated = replace(current, **applied) if applied else current
        current_app.config["ENGINE_SETTINGS"] = updated
        if applied:
            CACHE.clear()

        status = 400 if errors else 200
        return (
            jsonify(updated=applied, errors=errors, settings=asdict(updated)),
            status,
        )

    @app.route("/")
    def index():
        return jsonify(
            version=APP_VERSION,
            endpoints={
                "/render/<effect>": "Render a frame (upload 'image' or fetch source_url)",
                "/raw": "Original upstream frame",
                "/effects": "Available effect identifiers",
                "/health": "Service status",
                "/settings": "Read or PATCH effect defaults",
            },
            effects=available_effects(),
        )

    return app


# Expose a module-level Flask application for Gunicorn import paths like ``toonframe.app:app``
# and provide a conventional ``application`` alias for WSGI servers that default to that name.
app = create_app()
application = app

"""Catalogue and translation unit API routes."""

from __future__ import annotations

from typing import Any, Dict, List

from flask import Blueprint, current_app, jsonify, request

from msgsource.logger import get_logger
from msgsource.source import MessageSource, iter_units, resolve_variant

catalogues_bp = Blueprint("catalogues", __name__)
logger = get_logger(__name__)

# app.extensions key holding the shared MessageSource
EXTENSION_KEY = "message_source"


def _source() -> MessageSource:
    return current_app.extensions[EXTENSION_KEY]


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _not_found(catalogue: str, locale: str):
    return jsonify({
        "error": f"Catalogue {resolve_variant(catalogue, locale)} not found",
    }), 404


@catalogues_bp.get("/")
def list_catalogues():
    """Return every stored catalogue as name/locale pairs."""
    pairs = _source().catalogues()
    return jsonify({
        "catalogues": [{"name": name, "locale": locale} for name, locale in pairs],
    })


@catalogues_bp.get("/<catalogue>", defaults={"locale": ""})
@catalogues_bp.get("/<catalogue>/<locale>")
def get_catalogue(catalogue: str, locale: str):
    """Return the messages of one catalogue variant in message number order."""
    source = _source()
    variant = resolve_variant(catalogue, locale)
    if not source.is_valid_source(variant):
        logger.warning("Catalogue %s not found", variant)
        return _not_found(catalogue, locale)

    info = source.get_catalogue(variant) or {}
    table = source.load_data(variant)
    messages: List[Dict[str, Any]] = [
        {"id": unit_id, "source": text, "target": target, "comments": comments}
        for text, target, unit_id, comments in iter_units(table)
    ]
    return jsonify({
        "variant": variant,
        "source_lang": info.get("source_lang", ""),
        "target_lang": info.get("target_lang", ""),
        "last_modified": source.get_last_modified(variant),
        "messages": messages,
    })


@catalogues_bp.post("/<catalogue>/messages", defaults={"locale": ""})
@catalogues_bp.post("/<catalogue>/<locale>/messages")
def add_messages(catalogue: str, locale: str):
    """Append untranslated source strings to a catalogue."""
    data = _json_body()
    messages = data.get("messages")
    if not isinstance(messages, list) or not messages:
        return jsonify({"error": "messages must be a non-empty list"}), 400
    if not all(isinstance(message, str) and message for message in messages):
        return jsonify({"error": "messages must be non-empty strings"}), 400

    count = _source().save_messages(messages, catalogue=catalogue, locale=locale)
    if not count:
        return jsonify({"success": False, "error": "Messages not saved"}), 404

    return jsonify({"success": True, "count": count}), 201


@catalogues_bp.put("/<catalogue>/messages", defaults={"locale": ""})
@catalogues_bp.put("/<catalogue>/<locale>/messages")
def update_message(catalogue: str, locale: str):
    """Set the translation and comments of one source string."""
    data = _json_body()
    text = data.get("source")
    target = data.get("target", "")
    comments = data.get("comments", "")
    if not isinstance(text, str) or not text:
        return jsonify({"error": "source is required"}), 400
    if not isinstance(target, str) or not isinstance(comments, str):
        return jsonify({"error": "target and comments must be strings"}), 400

    if not _source().update(text, target, comments, catalogue=catalogue, locale=locale):
        return jsonify({"success": False, "error": "Translation not saved"}), 404

    return jsonify({"success": True})


@catalogues_bp.delete("/<catalogue>/messages", defaults={"locale": ""})
@catalogues_bp.delete("/<catalogue>/<locale>/messages")
def delete_message(catalogue: str, locale: str):
    """Delete one source string from a catalogue."""
    data = _json_body()
    text = data.get("source")
    if not isinstance(text, str) or not text:
        return jsonify({"error": "source is required"}), 400

    if not _source().delete(text, catalogue=catalogue, locale=locale):
        return jsonify({"success": False, "error": "Message not found"}), 404

    return jsonify({"success": True})

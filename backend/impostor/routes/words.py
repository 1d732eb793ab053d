from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..game.words import CATEGORIES

bp = Blueprint("words", __name__)


@bp.get("/categories")
def get_categories():
    # Names only; the word lists would give the secret away.
    return jsonify({"categories": sorted(CATEGORIES)})


@bp.get("/characters")
def get_characters():
    room_code = request.args.get("roomCode", "").strip().upper()
    return jsonify(current_app.extensions["impostor"].check_characters(room_code))

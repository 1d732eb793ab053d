from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game.errors import RoomNotFound

bp = Blueprint("rooms", __name__)


@bp.post("/rooms")
def create_room():
    # Rooms created over REST have no creator socket; the first joiner hosts.
    room = current_app.extensions["impostor"].create_room()
    return jsonify({"roomCode": room.code}), 201


@bp.get("/rooms/<code>")
def get_room(code: str):
    try:
        state = current_app.extensions["impostor"].public_state(code.strip().upper())
    except RoomNotFound as err:
        return jsonify({"error": err.code}), 404
    return jsonify(state)

from __future__ import annotations

import logging

from flask import current_app, request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game.errors import GameError, InvalidPayload, WrongPhase
from ..game.service import GameService

logger = logging.getLogger(__name__)


def _validate_name(name: str) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > 16:
        return False
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return False
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def _room_code(payload: dict) -> str:
    return str(payload.get("roomCode", "")).strip().upper()


def _fail(error_event: str, err: GameError) -> dict:
    logger.debug("%s rejected for %s: %s", error_event, request.sid, err.code)
    emit(error_event, {"error": err.code, "message": err.message})
    return err.to_dict()


def register_socketio_handlers(socketio: SocketIO, game: GameService) -> None:
    @socketio.on("connect")
    def on_connect():
        logger.debug("client %s connected from %s", request.sid, request.remote_addr)

    @socketio.on("room:create")
    def room_create(data=None):
        room = game.create_room(creator_id=request.sid)
        join_room(room.code)
        return {"ok": True, "roomCode": room.code}

    @socketio.on("room:check_characters")
    def room_check_characters(data):
        # Older clients send the bare room code instead of an object.
        payload = data if isinstance(data, dict) else {"roomCode": data or ""}
        return {"ok": True, **game.check_characters(_room_code(payload))}

    @socketio.on("room:join")
    def room_join(data):
        payload = data or {}
        room_code = _room_code(payload)
        name = str(payload.get("name", "")).strip()
        character = str(payload.get("character", "")).strip()

        if not room_code or not _validate_name(name):
            return _fail("room:error", InvalidPayload())

        # A seated player must stay subscribed even if this attempt is rejected.
        already_seated = game.has_player(room_code, request.sid)
        join_room(room_code)
        try:
            assigned = game.join_room(room_code, request.sid, name=name, character=character)
        except GameError as err:
            if not already_seated:
                leave_room(room_code)
            return _fail("room:error", err)

        return {"ok": True, "character": assigned}

    @socketio.on("game:start")
    def game_start(data):
        payload = data or {}
        room_code = _room_code(payload)
        if not room_code:
            return _fail("game:error", InvalidPayload())

        try:
            game.start_game(room_code, request.sid)
        except GameError as err:
            return _fail("game:error", err)
        return {"ok": True}

    @socketio.on("clue:submit")
    def clue_submit(data):
        payload = data or {}
        room_code = _room_code(payload)
        if not room_code:
            return _fail("game:error", InvalidPayload())

        try:
            clue = game.submit_clue(
                room_code,
                request.sid,
                str(payload.get("clue", "")),
                max_length=current_app.config["MAX_CLUE_LENGTH"],
            )
        except GameError as err:
            return _fail("game:error", err)
        return {"ok": True, "clue": clue}

    @socketio.on("vote:cast")
    def vote_cast(data):
        payload = data or {}
        room_code = _room_code(payload)
        voted_name = str(payload.get("votedName", "")).strip()
        if not room_code or not voted_name:
            return _fail("game:error", InvalidPayload())

        try:
            accepted = game.cast_vote(room_code, request.sid, voted_name)
        except GameError as err:
            return _fail("game:error", err)

        if not accepted:
            # Late votes after the reveal are acknowledged without noise.
            return WrongPhase().to_dict()
        return {"ok": True}

    @socketio.on("chat:message")
    def chat_message(data):
        payload = data or {}
        room_code = _room_code(payload)
        if not room_code:
            return
        game.chat_message(
            room_code,
            request.sid,
            str(payload.get("message", "")),
            max_length=current_app.config["MAX_CHAT_LENGTH"],
        )

    @socketio.on("disconnect")
    def on_disconnect(*args):
        touched = game.disconnect(request.sid)
        if touched:
            logger.info("client %s left rooms %s", request.sid, ", ".join(touched))

from __future__ import annotations


class GameError(Exception):
    """A rejected player action. Room state is left untouched."""

    code = "game_error"
    message = "Action not allowed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.code, "message": self.message}


class InvalidPayload(GameError):
    code = "invalid_payload"
    message = "Invalid request."


class RoomNotFound(GameError):
    code = "room_not_found"
    message = "Room not found."


class GameInProgress(GameError):
    code = "game_in_progress"
    message = "A game is currently in progress. Please wait for the next round!"


class RoomFull(GameError):
    code = "room_full"
    message = "Room full."


class InvalidCharacter(GameError):
    code = "invalid_character"
    message = "Invalid character selected."


class CharacterLocked(GameError):
    code = "character_locked"

    def __init__(self, character: str):
        super().__init__(f"You must rejoin with your original character: {character}")
        self.character = character


class CharacterTaken(GameError):
    code = "character_taken"
    message = "Character is already taken."


class NotHost(GameError):
    code = "only_host"
    message = "Only host can start."


class TooFewPlayers(GameError):
    code = "too_few_players"

    def __init__(self, minimum: int):
        super().__init__(f"Need at least {minimum} players.")
        self.minimum = minimum


class WrongPhase(GameError):
    code = "wrong_phase"
    message = "Not allowed in the current phase."


class NotYourTurn(GameError):
    code = "not_your_turn"
    message = "Not your turn."


class AlreadyVoted(GameError):
    code = "already_voted"
    message = "Already voted."


class UnknownPlayer(GameError):
    code = "unknown_player"
    message = "No player with that name in this room."


class NotInRoom(GameError):
    code = "not_in_room"
    message = "You are not in this room."


class AlreadyJoined(GameError):
    code = "already_joined"
    message = "This connection already joined the room under another name."

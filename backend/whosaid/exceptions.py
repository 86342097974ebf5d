"""Domain errors raised by the room and reported back to the offending connection."""


class WhoSaidError(Exception):
    """Base class for every game error."""


class RoomFull(WhoSaidError):
    def __init__(self, max_players: int):
        self.max_players = max_players
        super().__init__(f"Game is full ({max_players} players max)")


class AlreadyJoined(WhoSaidError):
    def __init__(self, player_id: str):
        self.player_id = player_id
        super().__init__("Already joined the game")


class NotHost(WhoSaidError):
    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Only the host can {action}")


class InvalidPhase(WhoSaidError):
    """Operation attempted in a phase that does not allow it."""

    def __init__(self, action: str, phase: str, message: str | None = None):
        self.action = action
        self.phase = phase
        super().__init__(message or f"Cannot {action} while the game is in {phase}")

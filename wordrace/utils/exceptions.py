"""Custom exceptions for the game engine."""


class WordRaceException(Exception):
    """Base exception for all game errors."""
    pass


class RoomNotFoundError(WordRaceException):
    """Raised when a room code does not match any room."""
    pass


class PlayerNotInRoomError(WordRaceException):
    """Raised when the acting player is not a member of the room."""
    pass


class NotHostError(WordRaceException):
    """Raised when a non-host tries to perform a host-only action."""
    pass


class WrongRoomStatusError(WordRaceException):
    """Raised when an action is attempted in the wrong room status."""
    pass


class RoomFullError(WordRaceException):
    """Raised when trying to join a room at max capacity."""
    pass


class NotEnoughPlayersError(WordRaceException):
    """Raised when trying to start with fewer than the minimum players."""
    pass


class RoomCodeGenerationError(WordRaceException):
    """Raised when no unique room code could be generated."""
    pass


class LockTimeoutError(WordRaceException):
    """Raised when a named lock could not be acquired in time."""
    pass

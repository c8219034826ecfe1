"""Errors raised by the engine and the move-acquisition layer."""


class GameError(Exception):
    """Base class for all game errors."""


class InvalidMove(GameError):
    """A move was applied that is not legal in the given state."""

    def __init__(self, board, cell, reason: str = "illegal move") -> None:
        super().__init__(f"Invalid move: board {board}, cell {cell} ({reason})")
        self.board = board
        self.cell = cell
        self.reason = reason


class ProviderFailure(GameError):
    """A move provider failed to produce a move (network, parse, schema...)."""


class ReplyParseError(ProviderFailure):
    """A provider's text reply could not be turned into a move."""


class NoLegalMoveAvailable(GameError):
    """No legal move exists although the game is still being played."""

"""
Move providers: anything that proposes a move for the side to move.

Proposals are untrusted. The acquisition layer re-validates every one of
them against the engine before it is applied.
"""

import json
import random
import re
from dataclasses import dataclass
from typing import Iterable, Protocol

from uttt.errors import ProviderFailure, ReplyParseError
from uttt.game import Coords, State, legal_moves, to_coords

# Game rules summary handed to providers that want it (e.g. language models)
GAME_RULES = """
Ultimate Tic-Tac-Toe Rules:
1. The game consists of 9 smaller tic-tac-toe boards arranged in a 3x3 grid.
2. Each move determines which board the opponent must play in next.
3. When a player wins a small board, they claim that board.
4. If sent to a board that's already won or full, the player can choose any available board.
5. To win the game, a player must win three small boards in a row.
"""

_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]+?)\s*```")
_JSON_OBJECT = re.compile(r"(\{[\s\S]*\})")


@dataclass(frozen=True)
class ProposedMove:
    board: Coords
    cell: Coords
    annotation: str = ""


class MoveProvider(Protocol):
    name: str

    def propose(self, state: State, rules: str) -> ProposedMove: ...


class RandomProvider:
    """Uniformly random legal move."""

    def __init__(self, rng: random.Random | None = None, name: str = "random") -> None:
        self.rng = rng or random.Random()
        self.name = name

    def propose(self, state: State, rules: str = GAME_RULES) -> ProposedMove:
        moves = legal_moves(state)
        if not moves:
            raise ProviderFailure("no legal moves to choose from")
        board, cell = self.rng.choice(moves)
        return ProposedMove(board, cell, "random move")


class ScriptedProvider:
    """
    Replays a fixed sequence of proposals. An exception instance in the
    sequence is raised instead of returned, which lets tests (or a human
    input queue) simulate a failing backend.
    """

    def __init__(self, moves: Iterable, name: str = "scripted") -> None:
        self._moves = iter(moves)
        self.name = name
        self.calls = 0

    def propose(self, state: State, rules: str = GAME_RULES) -> ProposedMove:
        self.calls += 1
        try:
            item = next(self._moves)
        except StopIteration:
            raise ProviderFailure(f"{self.name}: script exhausted") from None
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, ProposedMove):
            return item
        board, cell = item
        return ProposedMove(tuple(board), tuple(cell))


def parse_provider_reply(raw: str) -> ProposedMove:
    """
    Parse a text reply of the form
    {"move": {"boardIndex": 0-8, "cellIndex": 0-8}, "message": "..."}.

    A fenced ```json block is unwrapped first. Raises ReplyParseError for
    anything that is not exactly that shape.
    """
    if not isinstance(raw, str):
        raise ReplyParseError(f"expected text reply, got {type(raw).__name__}")
    text = raw.strip()
    match = _CODE_BLOCK.search(text)
    if match:
        text = match.group(1).strip()
    match = _JSON_OBJECT.search(text)
    if not match:
        raise ReplyParseError(f"no JSON object in reply: {raw[:80]!r}")
    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise ReplyParseError(f"malformed JSON in reply: {e}") from e

    move = data.get("move") if isinstance(data, dict) else None
    if not isinstance(move, dict):
        raise ReplyParseError("reply has no 'move' object")
    board_idx = move.get("boardIndex")
    cell_idx = move.get("cellIndex")
    for key, value in (("boardIndex", board_idx), ("cellIndex", cell_idx)):
        if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 8:
            raise ReplyParseError(f"{key} must be an integer 0-8, got {value!r}")
    message = data.get("message")
    if not isinstance(message, str):
        raise ReplyParseError("reply has no 'message' string")
    return ProposedMove(to_coords(board_idx), to_coords(cell_idx), message)

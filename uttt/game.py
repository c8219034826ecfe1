"""
Ultimate Tic-Tac-Toe game core.
Rules: https://en.wikipedia.org/wiki/Ultimate_tic-tac-toe

State is immutable. Use is_legal_move(), apply_move(), legal_moves() and
replay() to drive a game; every transition returns a new State.
"""

from dataclasses import dataclass
from typing import Iterable, Literal

from uttt.errors import InvalidMove

Player = Literal["X", "O"]
# '' unresolved, 'X'/'O' won, 'draw' full without a line
Outcome = Literal["", "X", "O", "draw"]
Status = Literal["playing", "won", "draw"]
# (row, col), each 0..2
Coords = tuple[int, int]

# Winning lines for a 3x3 board (indices 0..8)
_LINES_3 = [
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # cols
    (0, 4, 8), (2, 4, 6),              # diags
]


@dataclass(frozen=True)
class Move:
    """One applied move, as recorded in the history."""

    player: Player
    board: Coords
    cell: Coords


@dataclass(frozen=True)
class State:
    """Immutable game state."""

    boards: tuple[tuple[str, ...], ...]  # 9x9, row-major: '', 'X' or 'O'
    sub_outcomes: tuple[str, ...]  # 9 outcomes, one per sub-board
    next_player: Player
    active_board: Coords | None  # None = any undecided board
    winner: Player | None = None
    status: Status = "playing"
    history: tuple[Move, ...] = ()

    def __post_init__(self) -> None:
        assert len(self.boards) == 9 and all(len(b) == 9 for b in self.boards)
        assert len(self.sub_outcomes) == 9
        assert self.next_player in ("X", "O")
        assert self.status in ("playing", "won", "draw")

    def cell_at(self, board: Coords, cell: Coords) -> str:
        return self.boards[to_index(board)][to_index(cell)]

    def outcome_at(self, board: Coords) -> str:
        return self.sub_outcomes[to_index(board)]

    @property
    def is_terminal(self) -> bool:
        return self.status != "playing"


def initial_state() -> State:
    return State(
        boards=tuple((("",) * 9) for _ in range(9)),
        sub_outcomes=("",) * 9,
        next_player="X",
        active_board=None,
    )


def to_index(coords: Coords) -> int:
    """(row, col) -> flattened index 0..8."""
    row, col = coords
    return row * 3 + col


def to_coords(index: int) -> Coords:
    """Flattened index 0..8 -> (row, col)."""
    return divmod(index, 3)


def _valid_coords(coords) -> bool:
    if not isinstance(coords, tuple) or len(coords) != 2:
        return False
    return all(
        isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 2
        for v in coords
    )


def board_outcome(cells: Iterable[str]) -> Outcome:
    """Outcome of a single 3x3 board. A winning line beats a full board."""
    cells = tuple(cells)
    for a, b, c in _LINES_3:
        if cells[a] != "" and cells[a] == cells[b] == cells[c]:
            return cells[a]
    if all(cell != "" for cell in cells):
        return "draw"
    return ""


def meta_outcome(sub_outcomes: Iterable[str]) -> Outcome:
    """
    Outcome of the meta-board. Drawn sub-boards block a line without
    counting for either player.
    """
    outcomes = tuple(sub_outcomes)
    for a, b, c in _LINES_3:
        if outcomes[a] in ("X", "O") and outcomes[a] == outcomes[b] == outcomes[c]:
            return outcomes[a]
    if all(o != "" for o in outcomes):
        return "draw"
    return ""


def explain_illegal_move(state: State, board, cell) -> str | None:
    """Return why a move is illegal, or None if it is legal."""
    if state.status != "playing":
        return f"game is over ({state.status})"
    if not _valid_coords(board) or not _valid_coords(cell):
        return "coordinates out of range"
    if state.active_board is not None and board != state.active_board:
        return f"must play in board {state.active_board}"
    if state.outcome_at(board) != "":
        return "board is already decided"
    if state.cell_at(board, cell) != "":
        return "cell is already taken"
    return None


def is_legal_move(state: State, board, cell) -> bool:
    return explain_illegal_move(state, board, cell) is None


def legal_moves(state: State) -> list[tuple[Coords, Coords]]:
    """Return list of (board, cell) legal moves, row-major."""
    if state.status != "playing":
        return []
    if state.active_board is None:
        boards = [i for i in range(9) if state.sub_outcomes[i] == ""]
    else:
        boards = [to_index(state.active_board)]
    moves: list[tuple[Coords, Coords]] = []
    for i in boards:
        if state.sub_outcomes[i] != "":
            continue
        for j in range(9):
            if state.boards[i][j] == "":
                moves.append((to_coords(i), to_coords(j)))
    return moves


def apply_move(state: State, board: Coords, cell: Coords) -> State:
    """Return new state after playing the side to move at (board, cell)."""
    reason = explain_illegal_move(state, board, cell)
    if reason is not None:
        raise InvalidMove(board, cell, reason)

    i, j = to_index(board), to_index(cell)
    player = state.next_player

    # Update the sub-board; untouched sub-boards are shared with the old state
    new_row = list(state.boards[i])
    new_row[j] = player
    new_boards = list(state.boards)
    new_boards[i] = tuple(new_row)
    new_boards_t = tuple(new_boards)

    new_outcomes = list(state.sub_outcomes)
    new_outcomes[i] = board_outcome(new_boards_t[i])
    new_outcomes_t = tuple(new_outcomes)

    result = meta_outcome(new_outcomes_t)
    if result == "draw":
        status, winner = "draw", None
    elif result:
        status, winner = "won", result
    else:
        status, winner = "playing", None

    # Next board = where we played inside the sub-board, unless decided
    active_board = to_coords(j) if new_outcomes_t[j] == "" else None

    return State(
        boards=new_boards_t,
        sub_outcomes=new_outcomes_t,
        next_player="O" if player == "X" else "X",
        active_board=active_board,
        winner=winner,
        status=status,
        history=state.history + (Move(player, board, cell),),
    )


def replay(history: Iterable[Move], start: State | None = None) -> State:
    """Re-apply a recorded move sequence, by default from the initial state."""
    state = start if start is not None else initial_state()
    for move in history:
        if move.player != state.next_player:
            raise InvalidMove(
                move.board, move.cell, f"recorded player {move.player} out of turn"
            )
        state = apply_move(state, move.board, move.cell)
    return state


def render(state: State) -> str:
    """Plain-text 9x9 view of the board, for logs and the command line."""
    lines = []
    for big_row in range(3):
        for small_row in range(3):
            chunks = []
            for big_col in range(3):
                cells = state.boards[big_row * 3 + big_col]
                chunks.append(
                    " ".join(cells[small_row * 3 + c] or "." for c in range(3))
                )
            lines.append(" | ".join(chunks))
        if big_row < 2:
            lines.append("------+-------+------")
    if state.status == "won":
        lines.append(f"Winner: {state.winner}")
    elif state.status == "draw":
        lines.append("Draw")
    else:
        target = "any" if state.active_board is None else str(state.active_board)
        lines.append(f"Next: {state.next_player} (board {target})")
    return "\n".join(lines)


if __name__ == "__main__":
    import random

    state = initial_state()
    while not state.is_terminal:
        board, cell = random.choice(legal_moves(state))
        state = apply_move(state, board, cell)
    print(render(state))
    print("Moves played:", len(state.history))
    print("Legal moves count at start:", len(legal_moves(initial_state())))

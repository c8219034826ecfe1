"""
Encode game State to a fixed-size vector for the neural network.
State: sub-board outcomes (9), cells (9x9), next_player, active_board.
Values: 0 empty, +1 / -1 from the side to move's view (+1 me, -1 opponent).
"""

import numpy as np

from uttt.game import Coords, State, legal_moves, to_coords, to_index

# State vector: meta 9 + cells 81 + next_player 1 + active_board 10 one-hot = 101
STATE_DIM = 9 + 81 + 1 + 10
MOVE_DIM = 81  # move index = board_idx * 9 + cell_idx


def move_to_index(move: tuple[Coords, Coords]) -> int:
    """Convert (board, cell) to index 0..80."""
    board, cell = move
    return to_index(board) * 9 + to_index(cell)


def index_to_move(idx: int) -> tuple[Coords, Coords]:
    """Convert index 0..80 to (board, cell)."""
    return to_coords(idx // 9), to_coords(idx % 9)


def encode_state(state: State) -> np.ndarray:
    """
    Encode state to vector of shape (STATE_DIM,).
    From the side to move's view: +1 = my mark, -1 = opponent, 0 = empty.
    Drawn sub-boards encode as 0 on the meta part.
    """
    out = np.zeros(STATE_DIM, dtype=np.float32)
    me = state.next_player

    def value(mark: str) -> float:
        if mark == me:
            return 1.0
        if mark in ("X", "O"):
            return -1.0
        return 0.0

    # Meta board (9)
    for i in range(9):
        out[i] = value(state.sub_outcomes[i])

    # Sub-boards (81)
    for i in range(9):
        for j in range(9):
            out[9 + i * 9 + j] = value(state.boards[i][j])

    # Side to move: +1 X, -1 O
    out[90] = 1.0 if me == "X" else -1.0

    # Active board: one-hot 10 (index 91 = any, 92..100 = board 0..8)
    if state.active_board is None:
        out[91] = 1.0
    else:
        out[92 + to_index(state.active_board)] = 1.0

    return out


def legal_mask(state: State) -> np.ndarray:
    """Return array of shape (81,): 1.0 where the move is legal."""
    mask = np.zeros(MOVE_DIM, dtype=np.float32)
    for move in legal_moves(state):
        mask[move_to_index(move)] = 1.0
    return mask

"""
Self-play data collection: run games with the random provider, record (state, move, reward).

Reward structure:
- **Terminal** (main): +1 win meta board, -1 loss, 0 draw. Winning the meta board matters most.
- **Intermediate**: small bonus when a move wins a sub-board (captures a meta cell).
  Teaches that taking sub-boards is good; meta-board win stays the main goal.
"""

import random
from typing import Iterator

import numpy as np

from uttt.acquisition import acquire_move
from uttt.game import initial_state, to_index
from uttt.providers import RandomProvider
from training.state_encoder import encode_state, legal_mask, move_to_index

# Bonus when this move wins a sub-board (captures one of the 9 meta cells).
# Kept smaller than 1.0 so meta-board win/loss stays the main signal.
SMALL_BOARD_BONUS = 0.15

# One sample: (state_vector, move_index, reward, legal_mask)
Sample = tuple[np.ndarray, int, float, np.ndarray]


def collect_one_game(
    small_bonus: float = SMALL_BOARD_BONUS, rng: random.Random | None = None
) -> list[Sample]:
    """
    Play one random vs random game. Return list of (state_enc, move_idx, reward, legal_mask).
    Reward = terminal (win/loss/draw) from the mover's view + small_bonus if that move won a sub-board.
    """
    provider = RandomProvider(rng)
    state = initial_state()
    trajectory: list[tuple[np.ndarray, int, bool, np.ndarray, str]] = []

    while not state.is_terminal:
        enc = encode_state(state)
        mask = legal_mask(state)
        turn = acquire_move(state, provider, rng=rng)
        i = to_index(turn.board)
        won_small = turn.state.sub_outcomes[i] == turn.player
        trajectory.append((enc, move_to_index((turn.board, turn.cell)), won_small, mask, turn.player))
        state = turn.state

    samples: list[Sample] = []
    for enc, move_idx, won_small, mask, player in trajectory:
        if state.winner is None:
            terminal = 0.0
        else:
            terminal = 1.0 if state.winner == player else -1.0
        samples.append((enc, move_idx, terminal + (small_bonus if won_small else 0.0), mask))
    return samples


def collect_games(
    n_games: int, small_bonus: float | None = None, rng: random.Random | None = None
) -> Iterator[Sample]:
    """Yield (state, move, reward, mask) samples from n_games self-play games."""
    bonus = small_bonus if small_bonus is not None else SMALL_BOARD_BONUS
    for _ in range(n_games):
        yield from collect_one_game(small_bonus=bonus, rng=rng)


if __name__ == "__main__":
    samples = collect_one_game()
    print("Game length:", len(samples))
    if samples:
        s, m, r, mask = samples[0]
        print("State shape:", s.shape, "move:", m, "reward:", r, "mask sum:", mask.sum())

"""
Move acquisition: ask a provider for a move, re-validate it, retry on
failure, and fall back to a uniformly random legal move once the retries are
used up.
"""

import logging
import random
from dataclasses import dataclass
from typing import Callable

from uttt.errors import InvalidMove, NoLegalMoveAvailable
from uttt.game import (
    Coords,
    Player,
    State,
    apply_move,
    explain_illegal_move,
    legal_moves,
)
from uttt.providers import GAME_RULES, MoveProvider

logger = logging.getLogger(__name__)

# Retries after the first attempt: 4 attempts in total before falling back
DEFAULT_MAX_RETRIES = 3

# on_retry(retry, max_retries, reason)
RetryCallback = Callable[[int, int, str], None]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


@dataclass(frozen=True)
class Turn:
    """One accepted move and how it was obtained."""

    player: Player
    board: Coords
    cell: Coords
    annotation: str
    attempts: int  # provider calls made for this move
    fallback: bool  # True if the move was picked at random
    state: State  # state after the move


def random_fallback(state: State, rng=None) -> tuple[Coords, Coords]:
    """Pick a uniformly random legal move for the side to move."""
    moves = legal_moves(state)
    if not moves:
        logger.error("No legal move for %s although the game is still playing", state.next_player)
        raise NoLegalMoveAvailable(
            f"no legal move for {state.next_player} (active board {state.active_board})"
        )
    return (rng or random).choice(moves)


def acquire_move(
    state: State,
    provider: MoveProvider,
    policy: RetryPolicy = RetryPolicy(),
    rng: random.Random | None = None,
    rules: str = GAME_RULES,
    on_retry: RetryCallback | None = None,
) -> Turn:
    """
    Obtain one move from provider and apply it. Provider errors and illegal
    proposals count as failed attempts; the state is never touched by them.
    """
    if state.is_terminal:
        raise InvalidMove(None, None, f"game is over ({state.status})")

    player = state.next_player
    max_attempts = policy.max_attempts
    for attempt in range(1, max_attempts + 1):
        try:
            proposal = provider.propose(state, rules)
            reason = explain_illegal_move(state, proposal.board, proposal.cell)
        except Exception as e:  # any provider error is one failed attempt
            reason = f"provider error: {e}"
            logger.warning("%s (%s) failed: %s", provider.name, player, e, exc_info=True)
        else:
            if reason is None:
                new_state = apply_move(state, proposal.board, proposal.cell)
                logger.debug(
                    "%s (%s) played board %s cell %s",
                    provider.name, player, proposal.board, proposal.cell,
                )
                return Turn(
                    player, proposal.board, proposal.cell, proposal.annotation,
                    attempt, False, new_state,
                )
            logger.warning(
                "%s (%s) proposed illegal move board %s cell %s: %s",
                provider.name, player, proposal.board, proposal.cell, reason,
            )
        if attempt < max_attempts:
            logger.info("%s (%s): retry %d of %d", provider.name, player, attempt, policy.max_retries)
            if on_retry is not None:
                on_retry(attempt, policy.max_retries, reason)

    board, cell = random_fallback(state, rng)
    logger.warning(
        "%s (%s) failed %d attempts, playing random move board %s cell %s",
        provider.name, player, max_attempts, board, cell,
    )
    annotation = (
        f"{provider.name}: failed to make a valid move after {max_attempts} attempts. "
        "Making a random valid move instead."
    )
    return Turn(
        player, board, cell, annotation, max_attempts, True,
        apply_move(state, board, cell),
    )

"""
Play matches between two move providers.
Run: python -m uttt.match [--x random] [--o policy] [--games 100] [--checkpoint checkpoints/policy.pt]
"""

import argparse
import logging
import random
import sys
from dataclasses import dataclass, field
from pathlib import Path

from uttt.acquisition import DEFAULT_MAX_RETRIES, RetryCallback, RetryPolicy, Turn, acquire_move
from uttt.game import Player, State, initial_state, render
from uttt.providers import MoveProvider, RandomProvider

logger = logging.getLogger(__name__)

CHECKPOINT_DIR = Path(__file__).resolve().parent.parent / "training" / "checkpoints"


@dataclass
class MatchResult:
    state: State
    turns: list[Turn] = field(default_factory=list)

    @property
    def result(self) -> str:
        """'X', 'O' or 'draw'."""
        return self.state.winner or "draw"

    @property
    def log(self) -> list[tuple[Player, str]]:
        """(player, annotation) pairs in play order, for display."""
        return [(t.player, t.annotation) for t in self.turns]

    @property
    def states(self) -> list[State]:
        """Snapshot after every move."""
        return [t.state for t in self.turns]

    @property
    def fallbacks(self) -> int:
        return sum(1 for t in self.turns if t.fallback)


def play_match(
    x_provider: MoveProvider,
    o_provider: MoveProvider,
    policy: RetryPolicy = RetryPolicy(),
    rng: random.Random | None = None,
    on_retry: RetryCallback | None = None,
) -> MatchResult:
    """Alternate the two providers from the initial state until the game ends."""
    providers = {"X": x_provider, "O": o_provider}
    match = MatchResult(initial_state())
    while not match.state.is_terminal:
        provider = providers[match.state.next_player]
        turn = acquire_move(match.state, provider, policy, rng=rng, on_retry=on_retry)
        match.turns.append(turn)
        match.state = turn.state
    logger.info(
        "%s vs %s: %s after %d moves (%d random fallbacks)",
        x_provider.name, o_provider.name, match.result, len(match.turns), match.fallbacks,
    )
    return match


def make_provider(name: str, checkpoint: Path | None, rng: random.Random):
    """Build a provider from a command line name: 'random' or 'policy'."""
    if name == "random":
        return RandomProvider(rng)
    if name == "policy":
        # torch is only needed when a network plays
        import torch

        from training.model import PolicyNetProvider, load_policy

        path = checkpoint or CHECKPOINT_DIR / "policy.pt"
        if not path.exists():
            print(f"Error: Checkpoint not found: {path}")
            sys.exit(1)
        device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        print(f"Loading model from checkpoint: {path}")
        return PolicyNetProvider(load_policy(path, device), device)
    raise ValueError(f"unknown provider {name!r} (expected 'random' or 'policy')")


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--x", type=str, default="random", help="Provider for X: random | policy")
    ap.add_argument("--o", type=str, default="random", help="Provider for O: random | policy")
    ap.add_argument("--games", type=int, default=100, help="Number of games")
    ap.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="Retries before a random fallback")
    ap.add_argument("--checkpoint", type=str, default="", help="Checkpoint path (.pt file) for policy providers")
    ap.add_argument("--seed", type=int, default=None, help="Random seed")
    ap.add_argument("--show", action="store_true", help="Print the final board of every game")
    ap.add_argument("--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    rng = random.Random(args.seed)
    checkpoint = Path(args.checkpoint) if args.checkpoint else None
    x_provider = make_provider(args.x, checkpoint, rng)
    o_provider = make_provider(args.o, checkpoint, rng)
    policy = RetryPolicy(args.max_retries)

    print(f"{args.x} (X) vs {args.o} (O): {args.games} games...")
    counts = {"X": 0, "O": 0, "draw": 0}
    total_moves = 0
    total_fallbacks = 0
    for i in range(args.games):
        match = play_match(x_provider, o_provider, policy, rng=rng)
        counts[match.result] += 1
        total_moves += len(match.turns)
        total_fallbacks += match.fallbacks
        if args.show:
            print(render(match.state))
            print()
        if (i + 1) % 10 == 0:
            print(f"  {i + 1}/{args.games} games")

    print("\n" + "=" * 50)
    print("RESULTS")
    print("=" * 50)
    games = max(args.games, 1)
    print(f"  X wins: {counts['X']:4d} ({counts['X'] / games * 100:5.1f}%)")
    print(f"  O wins: {counts['O']:4d} ({counts['O'] / games * 100:5.1f}%)")
    print(f"  Draws:  {counts['draw']:4d} ({counts['draw'] / games * 100:5.1f}%)")
    print(f"  Avg moves per game: {total_moves / games:.1f}")
    print(f"  Random fallbacks:   {total_fallbacks}")


if __name__ == "__main__":
    main()

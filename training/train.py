"""
Train policy network on self-play data.
1. Collect games with the random provider -> (state, move, reward)
2. Train policy with reward-weighted cross-entropy.
Run from project root: python -m training.train [--games 1000] [--epochs 5] [--batch 256]
"""

import argparse
import logging
import random
from pathlib import Path

import numpy as np
import torch

from training.data_collector import SMALL_BOARD_BONUS, Sample, collect_games
from training.model import PolicyNet, policy_loss, save_policy

CHECKPOINT_DIR = Path(__file__).resolve().parent / "checkpoints"

logger = logging.getLogger(__name__)


def train_policy(
    samples: list[Sample],
    epochs: int = 5,
    batch: int = 256,
    lr: float = 1e-3,
    hidden: int = 256,
    layers: int = 3,
    device: torch.device | None = None,
) -> tuple[PolicyNet, list[float]]:
    """Fit a fresh PolicyNet on samples. Returns the model and the mean loss per epoch."""
    device = device or torch.device("cpu")
    states = np.stack([s[0] for s in samples], axis=0)
    moves = np.array([s[1] for s in samples], dtype=np.int64)
    rewards = np.array([s[2] for s in samples], dtype=np.float32)
    masks = np.stack([s[3] for s in samples], axis=0)

    X = torch.from_numpy(states)
    move_idx = torch.from_numpy(moves)
    reward = torch.from_numpy(rewards)
    legal_masks = torch.from_numpy(masks)

    model = PolicyNet(hidden=hidden, num_layers=layers).to(device)
    opt = torch.optim.Adam(model.parameters(), lr=lr)

    n = len(samples)
    losses = []
    for epoch in range(epochs):
        perm = torch.randperm(n)
        total_loss = 0.0
        batches = 0
        for start in range(0, n, batch):
            idx = perm[start:start + batch]
            logits = model(X[idx].to(device))
            loss = policy_loss(
                logits,
                move_idx[idx].to(device),
                reward[idx].to(device),
                legal_mask=legal_masks[idx].to(device),
            )
            opt.zero_grad()
            loss.backward()
            opt.step()
            total_loss += loss.item()
            batches += 1
        avg = total_loss / batches
        losses.append(avg)
        logger.debug("Epoch %d/%d loss=%.4f", epoch + 1, epochs, avg)
    model.eval()
    return model, losses


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--games", type=int, default=500, help="Number of self-play games to collect")
    ap.add_argument("--epochs", type=int, default=5, help="Training epochs on collected data")
    ap.add_argument("--batch", type=int, default=256, help="Batch size")
    ap.add_argument("--lr", type=float, default=1e-3, help="Learning rate")
    ap.add_argument("--hidden", type=int, default=256, help="Hidden size")
    ap.add_argument("--layers", type=int, default=3, help="Number of hidden layers")
    ap.add_argument("--save", type=str, default="", help="Save path (default: checkpoints/policy.pt)")
    ap.add_argument("--small-bonus", type=float, default=SMALL_BOARD_BONUS, help="Bonus when move wins a sub-board")
    ap.add_argument("--seed", type=int, default=None, help="Random seed")
    ap.add_argument("--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.seed is not None:
        torch.manual_seed(args.seed)
    rng = random.Random(args.seed)

    device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
    print("Device:", device)
    print("Small-board bonus:", args.small_bonus)

    # Collect data (reward = terminal win/loss/draw + small_bonus if move won a sub-board)
    print("Collecting", args.games, "games...")
    samples = list(collect_games(args.games, small_bonus=args.small_bonus, rng=rng))
    print("Samples:", len(samples))

    model, losses = train_policy(
        samples,
        epochs=args.epochs,
        batch=args.batch,
        lr=args.lr,
        hidden=args.hidden,
        layers=args.layers,
        device=device,
    )
    for epoch, avg in enumerate(losses):
        print(f"Epoch {epoch + 1}/{args.epochs} loss={avg:.4f}")

    save_path = Path(args.save) if args.save else CHECKPOINT_DIR / "policy.pt"
    save_policy(model, save_path)
    print("Saved:", save_path)


if __name__ == "__main__":
    main()

"""
Policy network: state -> logits over 81 moves.
Trained with reward-weighted cross-entropy (good moves up, bad moves down),
and wrapped as a move provider so it can play matches.
"""

from pathlib import Path

import numpy as np
import torch
import torch.nn as nn

from uttt.errors import ProviderFailure
from uttt.game import State
from uttt.providers import GAME_RULES, ProposedMove
from training.state_encoder import MOVE_DIM, STATE_DIM, encode_state, index_to_move, legal_mask


class PolicyNet(nn.Module):
    """MLP: state (STATE_DIM) -> logits (81)."""

    def __init__(self, hidden: int = 256, num_layers: int = 3):
        super().__init__()
        self.hidden = hidden
        self.num_layers = num_layers
        layers = []
        dims = [STATE_DIM] + [hidden] * num_layers
        for i in range(len(dims) - 1):
            layers.append(nn.Linear(dims[i], dims[i + 1]))
            layers.append(nn.ReLU())
            layers.append(nn.LayerNorm(dims[i + 1]))
        self.backbone = nn.Sequential(*layers)
        self.head = nn.Linear(hidden, MOVE_DIM)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        # x: (batch, STATE_DIM)
        h = self.backbone(x)
        return self.head(h)  # (batch, 81)


def policy_loss(
    logits: torch.Tensor,
    move_idx: torch.Tensor,
    reward: torch.Tensor,
    legal_mask: torch.Tensor | None = None,
) -> torch.Tensor:
    """
    Reward-weighted cross-entropy: we want to increase P(move) when reward > 0.
    loss = -reward * log(softmax(logits)[move]). Mean over batch.
    If legal_mask is set, mask illegal logits with -1e9 before softmax.
    """
    if legal_mask is not None:
        logits = logits.masked_fill(legal_mask == 0, -1e9)
    log_probs = nn.functional.log_softmax(logits, dim=-1)
    move_idx = move_idx.long().clamp(0, MOVE_DIM - 1)
    chosen_log_prob = log_probs.gather(1, move_idx.unsqueeze(1)).squeeze(1)
    return -(reward * chosen_log_prob).mean()


def save_policy(model: PolicyNet, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    torch.save(
        {"state_dict": model.state_dict(), "hidden": model.hidden, "num_layers": model.num_layers},
        path,
    )


def load_policy(path: Path, device: torch.device) -> PolicyNet:
    """Load trained model from checkpoint (.pt file)."""
    ckpt = torch.load(path, map_location=device, weights_only=True)
    state_dict = ckpt.get("state_dict", ckpt)
    model = PolicyNet(hidden=ckpt.get("hidden", 256), num_layers=ckpt.get("num_layers", 3))
    model.load_state_dict(state_dict, strict=True)
    model.to(device)
    model.eval()
    return model


class PolicyNetProvider:
    """Plays the highest-scoring legal move of a PolicyNet."""

    def __init__(self, model: PolicyNet, device: torch.device | None = None, name: str = "policy") -> None:
        self.model = model
        self.device = device or torch.device("cpu")
        self.name = name

    def propose(self, state: State, rules: str = GAME_RULES) -> ProposedMove:
        mask = legal_mask(state)
        if not mask.any():
            raise ProviderFailure(f"{self.name}: no legal moves to choose from")
        with torch.no_grad():
            x = torch.from_numpy(encode_state(state)).unsqueeze(0).to(self.device)
            logits = self.model(x).cpu().numpy()[0]
        logits = np.where(mask > 0, logits, -np.inf)
        best_idx = int(np.argmax(logits))
        board, cell = index_to_move(best_idx)
        return ProposedMove(board, cell, f"policy score {logits[best_idx]:.3f}")

"""Export a tiny TorchScript policy so the loop can run end to end.

The module sums a per-byte score table over its input and returns the argmax
as an int64 tensor of shape (1,). It is deterministic, so identical
snapshots always produce identical actions.

Usage: ``python scripts/export_demo_model.py --out models/policy.pt``
"""

from __future__ import annotations

import argparse
from pathlib import Path

import torch
from torch import nn


class DemoPolicy(nn.Module):
    def __init__(self, num_actions: int = 7, seed: int = 42) -> None:
        super().__init__()
        gen = torch.Generator().manual_seed(seed)
        self.table = nn.Parameter(torch.randn(256, num_actions, generator=gen))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        scores = self.table[x.long()].sum(dim=1)
        return scores.argmax(dim=-1)


def main() -> None:
    parser = argparse.ArgumentParser(description="Export a demo TorchScript policy")
    parser.add_argument("--out", type=str, default="models/policy.pt")
    parser.add_argument("--actions", type=int, default=7)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    module = torch.jit.script(DemoPolicy(args.actions, args.seed))
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    module.save(str(out))
    print(f"Saved demo policy to {out}")


if __name__ == "__main__":
    main()

# /experiments/sanity_rollout.py
"""
Baseline rollouts for FlappyEnv.

Two reference policies are played over a fixed seed list: a coin-flip flapper
and a gap follower that flaps whenever it sinks below the next gap. One CSV row
per episode goes to <out-dir>/episodes.csv; --save-traces also keeps each
episode's actions so a run can be replayed through the env with the same seed.

  python -m experiments.sanity_rollout
  python -m experiments.sanity_rollout --policy follower --seeds 7,8,9 --save-traces
"""

from __future__ import annotations
import argparse
import csv
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Callable, Dict, List

import numpy as np

from src.env.flappy_env import FlappyEnv
from src.flappy.config import HEIGHT, DEFAULT_TUNABLES

Policy = Callable[[np.ndarray], int]


def coin_flip(seed: int, flap_prob: float = 0.12) -> Policy:
    rng = np.random.RandomState(seed)
    return lambda _obs: int(rng.rand() < flap_prob)


def gap_follower(seed: int, margin: float = 0.03) -> Policy:
    # obs[0] is normalised over the playable band, obs[4] over the full height
    cfg = DEFAULT_TUNABLES
    band = HEIGHT - cfg.ground_height - cfg.bird_size

    def act(obs: np.ndarray) -> int:
        bird_bottom = (obs[0] * band + cfg.bird_size) / HEIGHT
        sinking = obs[1] >= 0.0
        return int(sinking and bird_bottom > obs[4] - margin)
    return act


POLICIES: Dict[str, Callable[[int], Policy]] = {
    "coin": coin_flip,
    "follower": gap_follower,
}


@dataclass
class Episode:
    policy: str
    seed: int
    decisions: int = 0
    total_reward: float = 0.0
    score: int = 0
    died: bool = False
    timed_out: bool = False
    actions: List[int] = field(default_factory=list, repr=False)

    def row(self) -> dict:
        d = asdict(self)
        d.pop("actions")
        d["total_reward"] = round(self.total_reward, 1)
        return d


def play(env: FlappyEnv, policy_name: str, seed: int, max_decisions: int) -> Episode:
    policy = POLICIES[policy_name](10_000 + seed)
    ep = Episode(policy=policy_name, seed=seed)
    obs, _ = env.reset(seed=seed)
    while ep.decisions < max_decisions:
        a = policy(obs)
        obs, r, ep.died, ep.timed_out, info = env.step(a)
        ep.actions.append(a)
        ep.decisions += 1
        ep.total_reward += r
        ep.score = info["score"]
        if ep.died or ep.timed_out:
            break
    return ep


def main():
    ap = argparse.ArgumentParser(description="Baseline FlappyEnv rollouts")
    ap.add_argument("--policy", choices=sorted(POLICIES) + ["all"], default="all")
    ap.add_argument("--seeds", type=lambda s: [int(x) for x in s.split(",") if x.strip()],
                    default=list(range(101, 121)))
    ap.add_argument("--frame-skip", type=int, default=4)
    ap.add_argument("--max-decisions", type=int, default=10_000)
    ap.add_argument("--out-dir", type=Path, default=Path("experiments/runs"))
    ap.add_argument("--save-traces", action="store_true")
    args = ap.parse_args()

    args.out_dir.mkdir(parents=True, exist_ok=True)
    names = sorted(POLICIES) if args.policy == "all" else [args.policy]
    env = FlappyEnv(frame_skip=args.frame_skip)

    episodes: List[Episode] = []
    try:
        for name in names:
            for seed in args.seeds:
                ep = play(env, name, seed, args.max_decisions)
                episodes.append(ep)
                print(f"{name:>8} seed={seed:<5} score={ep.score:<3} "
                      f"decisions={ep.decisions:<5} reward={ep.total_reward:.1f}")
                if args.save_traces:
                    trace_dir = args.out_dir / "traces" / name
                    trace_dir.mkdir(parents=True, exist_ok=True)
                    np.save(trace_dir / f"{seed}_actions.npy", np.asarray(ep.actions, dtype=np.int8))
    finally:
        env.close()

    csv_path = args.out_dir / "episodes.csv"
    with csv_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(episodes[0].row()) if episodes else ["policy"])
        writer.writeheader()
        for ep in episodes:
            writer.writerow(ep.row())

    for name in names:
        scores = [ep.score for ep in episodes if ep.policy == name]
        if scores:
            print(f"{name}: mean score {np.mean(scores):.2f}, best {max(scores)}")
    print(f"wrote {csv_path}")


if __name__ == "__main__":
    main()

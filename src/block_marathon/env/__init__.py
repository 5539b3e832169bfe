"""Gymnasium environments for Block Marathon."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Frame-stepped marathon environment (8 discrete actions)
register(
    id="BlockMarathon-v0",
    entry_point="block_marathon.env.marathon_env:MarathonEnv",
)

__all__: list = []

"""Tunable bounds for the memory evolution worker."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class EvolveConfig:
    """Hard caps that keep evolution cascades bounded.

    ``max_evolve_per_write`` caps neighbors mutated by one new memory;
    ``max_lifetime_evolutions`` caps how often a memory lineage may evolve;
    ``cooldown_secs`` is the minimum gap between evolutions of one memory;
    ``min_change_threshold`` is the minimum number of additions a proposal
    needs to be persisted.
    """

    max_evolve_per_write: int = 3
    max_lifetime_evolutions: int = 8
    cooldown_secs: int = 300
    min_change_threshold: int = 1
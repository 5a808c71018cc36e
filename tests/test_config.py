from dataclasses import replace

from mneme.evolve.config import EvolveConfig


def test_defaults():
    cfg = EvolveConfig()
    assert cfg.max_evolve_per_write == 3
    assert cfg.max_lifetime_evolutions == 8
    assert cfg.cooldown_secs == 300
    assert cfg.min_change_threshold == 1


def test_override_keeps_other_defaults():
    cfg = EvolveConfig(cooldown_secs=0, max_lifetime_evolutions=2)
    assert cfg.cooldown_secs == 0
    assert cfg.max_lifetime_evolutions == 2
    assert cfg.max_evolve_per_write == EvolveConfig().max_evolve_per_write
    assert cfg.min_change_threshold == EvolveConfig().min_change_threshold


def test_replace_round_trip():
    cfg = EvolveConfig()
    changed = replace(cfg, min_change_threshold=2)
    assert changed != cfg
    assert replace(changed, min_change_threshold=cfg.min_change_threshold) == cfg
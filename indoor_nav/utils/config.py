"""Config loading helpers built around OmegaConf."""

from __future__ import annotations

from typing import Any, Dict

from omegaconf import OmegaConf

from ..config import EngineConfig


def load_config_any(path: str) -> Any:
    """Load a YAML/OMEGACONF file and return the resolved Python object."""
    return OmegaConf.to_container(OmegaConf.load(path), resolve=True)


def load_config_dict(path: str) -> Dict[str, Any]:
    """Load a config file and guarantee a `dict` result."""
    cfg = load_config_any(path)
    if not isinstance(cfg, dict):
        raise TypeError(f"Expected mapping at {path}, got {type(cfg)}")
    return cfg


def load_engine_config(path: str | None = None, overrides: list[str] | None = None) -> EngineConfig:
    """Build an EngineConfig from an optional YAML file plus dotlist overrides.

    Overrides use OmegaConf dotlist syntax, e.g. ``["ranging.noise_std=0.2"]``.
    """
    base = OmegaConf.load(path) if path else OmegaConf.create({})
    if overrides:
        base = OmegaConf.merge(base, OmegaConf.from_dotlist(list(overrides)))
    cfg = OmegaConf.to_container(base, resolve=True)
    if not isinstance(cfg, dict):
        raise TypeError(f"Expected mapping at {path}, got {type(cfg)}")
    return EngineConfig.from_dict(cfg)

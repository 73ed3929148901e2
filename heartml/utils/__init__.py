"""Utility modules for heartml."""

from .config import Config, ExperimentConfig

__all__ = ['Config', 'ExperimentConfig']

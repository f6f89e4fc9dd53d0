"""Shared model bases."""

from .base import CamelModel, LooseModel, StrictBaseModel

__all__ = [
    "CamelModel",
    "LooseModel",
    "StrictBaseModel",
]

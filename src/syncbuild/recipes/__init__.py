from __future__ import annotations

from typing import Callable, Dict

from ..model import Recipe
from . import lvm2

BUILTIN_RECIPES: Dict[str, Callable[[], Recipe]] = {
    "lvm2": lvm2.recipe,
}

__all__ = ["BUILTIN_RECIPES"]

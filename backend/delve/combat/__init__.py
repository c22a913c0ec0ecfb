"""Combat system package."""

from .combat_engine import CombatEngine
from .dice import DiceRoller, parse_notation
from .enemy_registry import create_enemy, create_random_enemy, register_template

__all__ = [
    "CombatEngine",
    "DiceRoller",
    "parse_notation",
    "create_enemy",
    "create_random_enemy",
    "register_template",
]

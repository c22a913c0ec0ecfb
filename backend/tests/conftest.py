"""Shared fixtures for combat tests."""
from collections import deque

import pytest

from delve.combat import enemy_registry
from delve.combat.dice import DiceRoller


class ScriptedRandom:
    """
    固定结果的随机源

    randint 依次返回 ints 中的值（用完后返回下界），
    random 依次返回 floats 中的值（用完后返回 0.99，即不触发任何几率）。
    """

    def __init__(self, ints=(), floats=()):
        self.ints = deque(ints)
        self.floats = deque(floats)
        self.int_calls = []
        self.float_calls = 0

    def randint(self, low, high):
        self.int_calls.append((low, high))
        if not self.ints:
            return low
        value = self.ints.popleft()
        assert low <= value <= high, f"scripted {value} outside {low}..{high}"
        return value

    def random(self):
        self.float_calls += 1
        if not self.floats:
            return 0.99
        return self.floats.popleft()


@pytest.fixture
def scripted():
    """scripted(ints=[...], floats=[...]) -> (DiceRoller, ScriptedRandom)"""

    def factory(ints=(), floats=()):
        rng = ScriptedRandom(ints, floats)
        return DiceRoller(rng=rng), rng

    return factory


@pytest.fixture(autouse=True)
def _reset_dynamic_templates():
    yield
    enemy_registry.clear_dynamic_templates()

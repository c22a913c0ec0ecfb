"""
骰子系统

标准骰子记号解析、命中骰、暴击伤害与百分比判定。
所有随机数都来自同一个可注入的随机源，便于测试时固定结果。
"""
import logging
import random
import re
from typing import List, Optional, Tuple

from ..config import settings
from .models.action import AttackRoll, CriticalRoll, DamageDice, RollTotal

logger = logging.getLogger(__name__)

_NOTATION_PATTERN = r"(\d+)d(\d+)([+-]\d+)?"


def parse_notation(dice_notation: str) -> DamageDice:
    """
    解析骰子记号

    Args:
        dice_notation: 骰子记号（如 "1d20", "2d6", "3d8+2"）

    Raises:
        ValueError: 记号无效
    """
    match = re.fullmatch(_NOTATION_PATTERN, dice_notation.lower().replace(" ", ""))
    if not match:
        raise ValueError(f"Invalid dice notation: {dice_notation}")

    num_dice = int(match.group(1))
    die_size = int(match.group(2))
    modifier = int(match.group(3)) if match.group(3) else 0
    if num_dice < 1 or die_size < 1:
        raise ValueError(f"Invalid dice notation: {dice_notation}")
    return DamageDice(num_dice, die_size, modifier)


class DiceRoller:
    """
    骰子投掷器

    rng 需提供 randint(a, b) 与 random()，默认使用 random.Random。
    """

    def __init__(self, rng=None, seed: Optional[int] = None):
        if rng is None:
            rng = random.Random(seed if seed is not None else settings.combat_rng_seed)
        self._rng = rng
        self._call_count = 0
        self._audit_log: List[Tuple[int, float, str]] = []

    # ============================================
    # 基础投掷
    # ============================================

    def roll(self, dice_notation: str) -> Tuple[int, List[int]]:
        """
        按记号投掷

        Returns:
            Tuple[int, List[int]]: (总值, 各骰子结果列表)

        Examples:
            >>> DiceRoller().roll("2d6+3")
            (11, [4, 4])  # 4+4+3=11
        """
        dice = parse_notation(dice_notation)
        result = self.roll_total(dice)
        return result.total, result.rolls

    def roll_single(self, die_size: int, context: str = "roll") -> int:
        """投掷单个骰子（1 到 die_size）"""
        value = self._rng.randint(1, die_size)
        self._record(value, context)
        return value

    def roll_dice(self, num_dice: int, die_size: int) -> List[int]:
        return [
            self.roll_single(die_size, f"rollDice {num_dice}d{die_size}")
            for _ in range(num_dice)
        ]

    def roll_total(self, dice: DamageDice) -> RollTotal:
        rolls = self.roll_dice(dice.num_dice, dice.die_size)
        return RollTotal(rolls=rolls, modifier=dice.modifier, total=sum(rolls) + dice.modifier)

    def roll_d20(self) -> int:
        return self.roll_single(20, "d20")

    def roll_d4(self) -> int:
        return self.roll_single(4, "d4")

    # ============================================
    # 战斗判定
    # ============================================

    def roll_attack(self, bonus: int, crit_threshold: int = 20) -> AttackRoll:
        """
        命中骰

        d20 + bonus；d20 >= crit_threshold 即暴击。
        """
        d20 = self.roll_d20()
        return AttackRoll(
            d20=d20,
            bonus=bonus,
            total=d20 + bonus,
            is_critical=d20 >= crit_threshold,
        )

    def roll_critical_damage(self, dice: DamageDice) -> CriticalRoll:
        """
        暴击伤害

        每颗骰取最大面，再额外投一次同样的骰子，加修正值：
        1d6+2 的结果恒在 [9, 14]。
        """
        max_die = dice.num_dice * dice.die_size
        extra_roll = sum(self.roll_dice(dice.num_dice, dice.die_size))
        return CriticalRoll(
            max_die=max_die,
            extra_roll=extra_roll,
            modifier=dice.modifier,
            total=max_die + extra_roll + dice.modifier,
        )

    def check_percentage(self, chance: float, context: str = "percentage") -> bool:
        """百分比判定（chance 取 0-100）"""
        value = self._rng.random()
        self._record(value, context)
        success = value * 100 < chance
        logger.debug("%s: %.4f vs %s%% -> %s", context, value, chance, success)
        return success

    def random_int(self, low: int, high: int, context: str = "randomInt") -> int:
        """闭区间随机整数"""
        value = self._rng.randint(low, high)
        self._record(value, context)
        return value

    # ============================================
    # 审计
    # ============================================

    def get_audit_log(self) -> List[Tuple[int, float, str]]:
        return list(self._audit_log)

    def _record(self, value: float, context: str):
        self._call_count += 1
        if len(self._audit_log) < settings.combat_audit_limit:
            self._audit_log.append((self._call_count, value, context))

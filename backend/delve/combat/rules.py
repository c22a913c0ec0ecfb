"""
战斗规则

定义战斗相关的常量、敌人模板和伤害公式
"""
import math
from typing import Any, Dict, Tuple

from . import conditions
from .models.combatant import Combatant, ConditionType


# ============================================
# 常量定义
# ============================================

# 默认暴击判定
CRITICAL_HIT_ROLL = 20

# 单次伤害减免上限
MAX_DAMAGE_REDUCTION = 0.95

# 虚弱 / 强化
WEAKENED_DAMAGE_MULTIPLIER = 0.9
EMPOWERED_DAMAGE_MULTIPLIER = 1.25
WEAKENED_ATTACK_PENALTY = 2

# 敌人普通攻击的基础命中加值
ENEMY_BASE_ATTACK_BONUS = 3

# 偷窃后的逃跑判定：d20 > 12 + 玩家等级
FLEE_BASE_DIFFICULTY = 12

# 装备推导
BASE_EVASION = 10
BASE_ATTACK_BONUS = 3
ONE_HANDED_DAMAGE_BONUS = 3
TWO_HANDED_DAMAGE_BONUS = 6
MAX_ARMOR_DAMAGE_REDUCTION = 0.9


# ============================================
# 敌人模板（T1 物种 + 首领）
# ============================================

ENEMY_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "void_spawn": {
        "name": "Void Spawn",
        "max_health": 45,
        "evasion": 12,
        "damage_reduction": 0.05,
        "weapon_damage": "1d4+2",
        "weapon_type": "claws",
        "tier": 1,
        "is_boss": False,
    },
    "skitterthid": {
        "name": "Skitterthid",
        "max_health": 24,
        "evasion": 8,
        "damage_reduction": 0.0,
        "weapon_damage": "1d6+1",
        "weapon_type": "claws",
        "tier": 1,
        "is_boss": False,
    },
    "hollow_husk": {
        "name": "Hollow Husk",
        "max_health": 36,
        "evasion": 5,
        "damage_reduction": 0.0,
        "weapon_damage": "1d6+1",
        "weapon_type": "fists",
        "tier": 1,
        "is_boss": False,
    },
    "wailing_wisp": {
        "name": "Wailing Wisp",
        "max_health": 28,
        "evasion": 8,
        "damage_reduction": 0.0,
        "weapon_damage": "1d6+2",
        "weapon_type": "touch",
        "tier": 1,
        "is_boss": False,
    },
    "crawley_crow": {
        "name": "Crawley Crow",
        "max_health": 31,
        "evasion": 8,
        "damage_reduction": 0.0,
        "weapon_damage": "1d6+1",
        "weapon_type": "beak",
        "tier": 1,
        "is_boss": False,
    },
    "greater_void_spawn": {
        "name": "Greater Void Spawn",
        "max_health": 90,
        "evasion": 14,
        "damage_reduction": 0.10,
        "weapon_damage": "2d6+3",
        "weapon_type": "claws",
        "tier": 1,
        "is_boss": True,
    },
    "aetherbear": {
        "name": "Aetherbear",
        "max_health": 68,
        "evasion": 8,
        "damage_reduction": 0.0,
        "weapon_damage": "2d8+3",
        "weapon_type": "claws",
        "tier": 1,
        "is_boss": True,
    },
}


# ============================================
# 规则函数
# ============================================


def calculate_hit_chance(attack_bonus: int, target_evasion: int) -> float:
    """
    计算命中概率（d20 + 加值 >= 闪避）

    Returns:
        float: 0.05 ~ 1.0
    """
    needed = target_evasion - attack_bonus
    if needed <= 1:
        return 1.0
    if needed > 20:
        return 0.05
    return (21 - needed) / 20


def outgoing_damage_multiplier(attacker: Combatant) -> float:
    """攻击方的虚弱/强化乘数，可叠乘"""
    multiplier = 1.0
    if conditions.has_condition(attacker, ConditionType.WEAKENED):
        multiplier *= WEAKENED_DAMAGE_MULTIPLIER
    if conditions.has_condition(attacker, ConditionType.EMPOWERED):
        multiplier *= EMPOWERED_DAMAGE_MULTIPLIER
    return multiplier


def weakened_penalty(attacker: Combatant) -> int:
    if conditions.has_condition(attacker, ConditionType.WEAKENED):
        return -WEAKENED_ATTACK_PENALTY
    return 0


def total_damage_reduction(base_reduction: float, defender: Combatant) -> float:
    return min(
        base_reduction + conditions.get_damage_reduction_bonus(defender),
        MAX_DAMAGE_REDUCTION,
    )


def mitigate_damage(
    raw_damage: int,
    attacker: Combatant,
    defender: Combatant,
    base_reduction: float,
) -> Tuple[int, int, float]:
    """
    伤害结算

    流程：
    1. 乘以攻击方虚弱/强化乘数，取整
    2. 乘以 (1 - 总减免)，取整
    3. 命中至少造成 1 点伤害

    Returns:
        Tuple[int, int, float]: (最终伤害, 减免前伤害, 总减免)
    """
    before_reduction = math.floor(raw_damage * outgoing_damage_multiplier(attacker))
    reduction = total_damage_reduction(base_reduction, defender)
    damage = max(1, math.floor(before_reduction * (1 - reduction)))
    return damage, before_reduction, reduction

"""
状态条件账本

每个单位的状态条件按类型唯一：重复施加时叠层、持续时间取较大值；
dependable 不叠层，只刷新持续时间。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from .models.combatant import Combatant, ConditionType, StatusCondition

# 每层每次结算的伤害
DAMAGE_PER_STACK = {
    ConditionType.BLEEDING: 2,
    ConditionType.POISONED: 3,
}

DISPLAY_NAMES = {
    ConditionType.BLEEDING: "Bleeding",
    ConditionType.STUNNED: "Stunned",
    ConditionType.POISONED: "Poisoned",
    ConditionType.DEPENDABLE: "Dependable",
    ConditionType.RAISE_EVASION: "Evasion Up",
    ConditionType.RAISE_DEFENCE: "Defence Up",
    ConditionType.SLOWED: "Slowed",
    ConditionType.WEAKENED: "Weakened",
    ConditionType.EMPOWERED: "Empowered",
}

DEPENDABLE_ATTACK_BONUS = 5
EVASION_PER_STACK = 3
DEFENCE_PER_STACK = 0.1
MAX_DEFENCE_BONUS = 0.75


@dataclass
class TickResult:
    """一次结算的结果"""

    damage: int = 0
    messages: List[str] = field(default_factory=list)


# ============================================
# 施加 / 移除
# ============================================


def apply_condition(
    target: Combatant,
    condition_type: ConditionType,
    duration: int,
    stacks: int = 1,
) -> StatusCondition:
    """施加状态条件（同类型合并）"""
    condition_type = ConditionType(condition_type)
    stacks = max(1, stacks)
    existing = get_condition(target, condition_type)
    if existing is not None:
        if condition_type != ConditionType.DEPENDABLE:
            existing.stacks += stacks
        existing.duration = max(existing.duration, duration)
        return existing

    condition = StatusCondition(
        type=condition_type,
        stacks=1 if condition_type == ConditionType.DEPENDABLE else stacks,
        duration=duration,
    )
    target.status_conditions.append(condition)
    return condition


def remove_condition(target: Combatant, condition_type: ConditionType):
    target.status_conditions = [
        c for c in target.status_conditions if c.type != condition_type
    ]


def clear_all_conditions(target: Combatant):
    target.status_conditions = []


def clear_expired_conditions(target: Combatant) -> List[ConditionType]:
    """
    移除持续时间已归零的条件

    dependable 在 tick 中不会被移除，只在这里清理。
    """
    expired = [c.type for c in target.status_conditions if c.duration <= 0]
    target.status_conditions = [c for c in target.status_conditions if c.duration > 0]
    return expired


def reduce_stacks(target: Combatant, condition_type: ConditionType, amount: int = 1):
    condition = get_condition(target, condition_type)
    if condition is None:
        return
    condition.stacks -= amount
    if condition.stacks <= 0:
        remove_condition(target, condition_type)


# ============================================
# 查询
# ============================================


def get_condition(target: Combatant, condition_type: ConditionType) -> Optional[StatusCondition]:
    for condition in target.status_conditions:
        if condition.type == condition_type:
            return condition
    return None


def has_condition(target: Combatant, condition_type: ConditionType) -> bool:
    return get_condition(target, condition_type) is not None


def is_stunned(target: Combatant) -> bool:
    return has_condition(target, ConditionType.STUNNED)


def get_total_stacks(target: Combatant, condition_type: ConditionType) -> int:
    return sum(c.stacks for c in target.status_conditions if c.type == condition_type)


def get_dependable_bonus(target: Combatant) -> int:
    """命中骰固定 +5，与层数无关"""
    return DEPENDABLE_ATTACK_BONUS if has_condition(target, ConditionType.DEPENDABLE) else 0


def get_evasion_bonus(target: Combatant) -> int:
    return get_total_stacks(target, ConditionType.RAISE_EVASION) * EVASION_PER_STACK


def get_damage_reduction_bonus(target: Combatant) -> float:
    bonus = get_total_stacks(target, ConditionType.RAISE_DEFENCE) * DEFENCE_PER_STACK
    return min(bonus, MAX_DEFENCE_BONUS)


def get_display_name(condition_type: ConditionType) -> str:
    try:
        return DISPLAY_NAMES[ConditionType(condition_type)]
    except (KeyError, ValueError):
        return str(condition_type)


# ============================================
# 回合结算
# ============================================


def tick_conditions(target: Combatant) -> TickResult:
    """
    结算全部条件

    流程：
    1. 所有持续时间 -1
    2. 流血 2×层数、中毒 3×层数 伤害
    3. 归零的条件移除（dependable 保留）

    伤害只汇总不扣血，由调用方决定何时扣。
    """
    return _tick(target, lambda c: True)


def tick_poison_only(target: Combatant) -> TickResult:
    return _tick(target, lambda c: c.type == ConditionType.POISONED)


def tick_bleeding_only(target: Combatant) -> TickResult:
    return _tick(target, lambda c: c.type == ConditionType.BLEEDING)


def tick_timed_only(target: Combatant) -> TickResult:
    """只结算非持续伤害类条件（眩晕、虚弱等）"""
    return _tick(target, lambda c: c.type not in DAMAGE_PER_STACK)


def _tick(target: Combatant, selector) -> TickResult:
    result = TickResult()
    expired: List[ConditionType] = []

    for condition in list(target.status_conditions):
        if not selector(condition):
            continue

        if condition.duration > 0:
            condition.duration -= 1

        per_stack = DAMAGE_PER_STACK.get(condition.type)
        if per_stack:
            damage = per_stack * condition.stacks
            result.damage += damage
            result.messages.append(
                f"{DISPLAY_NAMES[condition.type]}: {damage} damage "
                f"({condition.stacks} stack{'s' if condition.stacks > 1 else ''})"
            )

        if condition.duration <= 0 and condition.type != ConditionType.DEPENDABLE:
            expired.append(condition.type)

    for condition_type in expired:
        remove_condition(target, condition_type)
        result.messages.append(f"{get_display_name(condition_type)} wore off")

    return result

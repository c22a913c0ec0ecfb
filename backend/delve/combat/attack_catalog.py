"""
武器技能目录

每种武器类型对应一组技能记录（WeaponAttack），每个技能名对应一个
AbilityProfile：技能类型 + 类型参数。引擎按类型查表分派，不比较技能名。
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .equipment import (
    SHIELD_BASH,
    UNARMED,
    get_equipped_weapon,
    has_shield,
    is_dual_wielding,
)
from .models.action import WeaponAttack
from .models.combatant import ConditionType, EquipmentSlot, Player
from .rules import CRITICAL_HIT_ROLL

logger = logging.getLogger(__name__)


class AbilityKind(str, Enum):
    """技能执行方式"""

    STANDARD = "standard"  # 单次攻击（可带溅射/附加状态）
    MULTI_STRIKE = "multi_strike"  # N 次独立攻击，击杀后仍继续
    CHAINED_STRIKE = "chained_strike"  # 首击命中且目标存活才有第二击
    AOE_ALL = "aoe_all"  # 对每个存活敌人各一次
    AOE_SWEEP = "aoe_sweep"  # N 轮横扫，每轮对所有存活敌人
    KILL_BONUS = "kill_bonus"  # 击杀后概率追加一次免费攻击
    FINISHER = "finisher"  # 低暴击阈值，暴击低血目标可能直接斩杀
    LIFESTEAL = "lifesteal"  # 命中带特定状态的目标时吸血
    BONUS_DICE_CRIT = "bonus_dice_crit"  # 暴击时追加额外骰
    SHIELD = "shield"  # 盾牌减伤（可附带一击）
    BUFF_STRIKE = "buff_strike"  # 先给自己加状态，再攻击


# (状态, 持续回合, 层数)
SelfCondition = Tuple[ConditionType, int, int]


@dataclass(frozen=True)
class AbilityProfile:
    """技能类型参数"""

    kind: AbilityKind = AbilityKind.STANDARD
    crit_threshold: int = CRITICAL_HIT_ROLL
    strikes: int = 1
    strike_label: str = ""

    # Backstab
    once_per_target: bool = False
    crit_multiplier: int = 1

    # 暴击额外骰
    bonus_die_size: int = 0

    # 斩杀
    execute_health_fraction: float = 0.0
    execute_chance: float = 0.0

    # 吸血
    lifesteal_fraction: float = 0.0
    lifesteal_condition: Optional[ConditionType] = None

    # 自身状态
    self_conditions: Tuple[SelfCondition, ...] = ()
    momentum_min_hits: int = 0
    momentum_condition: Optional[SelfCondition] = None

    # 击杀追加
    bonus_strike_chance: float = 0.0

    # 盾牌
    performs_strike: bool = True
    requires_weapon: bool = True

    # 已有同类状态时加倍施加
    intensify_condition: bool = False


STANDARD_PROFILE = AbilityProfile()

ABILITY_PROFILES: Dict[str, AbilityProfile] = {
    "Backstab": AbilityProfile(crit_threshold=19, once_per_target=True, crit_multiplier=2),
    "Hydras Strike": AbilityProfile(intensify_condition=True),
    "Puncture": AbilityProfile(
        kind=AbilityKind.MULTI_STRIKE, strikes=3, strike_label="Puncture strike"
    ),
    "Flurry": AbilityProfile(kind=AbilityKind.MULTI_STRIKE, strikes=2, strike_label="Flurry strike"),
    "Vipers Fangs": AbilityProfile(kind=AbilityKind.CHAINED_STRIKE, strikes=2),
    "Arcing Blade": AbilityProfile(kind=AbilityKind.AOE_ALL),
    "Spinning Flurry": AbilityProfile(
        kind=AbilityKind.AOE_SWEEP,
        strikes=3,
        momentum_min_hits=2,
        momentum_condition=(ConditionType.RAISE_EVASION, 2, 1),
    ),
    "Murderous Intent": AbilityProfile(kind=AbilityKind.KILL_BONUS, bonus_strike_chance=20),
    "Crimson Mist": AbilityProfile(
        kind=AbilityKind.FINISHER,
        crit_threshold=18,
        execute_health_fraction=0.3,
        execute_chance=35,
    ),
    "Bloodfury": AbilityProfile(
        kind=AbilityKind.LIFESTEAL,
        lifesteal_fraction=0.5,
        lifesteal_condition=ConditionType.BLEEDING,
    ),
    "Savage Strike": AbilityProfile(
        kind=AbilityKind.BONUS_DICE_CRIT, crit_threshold=19, bonus_die_size=12
    ),
    "Shield Wall": AbilityProfile(
        kind=AbilityKind.SHIELD, performs_strike=False, requires_weapon=False
    ),
    "Shield Slam": AbilityProfile(kind=AbilityKind.SHIELD),
    "Dependable Strike": AbilityProfile(
        kind=AbilityKind.BUFF_STRIKE,
        self_conditions=((ConditionType.DEPENDABLE, 1, 1),),
    ),
    "Disarming Strike": AbilityProfile(
        kind=AbilityKind.BUFF_STRIKE,
        self_conditions=(
            (ConditionType.RAISE_EVASION, 1, 1),
            (ConditionType.RAISE_DEFENCE, 1, 1),
        ),
    ),
    "Guarding Strike": AbilityProfile(
        kind=AbilityKind.BUFF_STRIKE,
        self_conditions=((ConditionType.RAISE_EVASION, 1, 2),),
    ),
    "Roll": AbilityProfile(
        kind=AbilityKind.BUFF_STRIKE,
        self_conditions=((ConditionType.RAISE_EVASION, 2, 1),),
    ),
    "Dust Up": AbilityProfile(
        kind=AbilityKind.BUFF_STRIKE,
        self_conditions=(
            (ConditionType.RAISE_EVASION, 1, 2),
            (ConditionType.RAISE_DEFENCE, 1, 2),
        ),
    ),
}


def get_profile(attack_name: str) -> AbilityProfile:
    """未登记的技能按普通攻击处理"""
    return ABILITY_PROFILES.get(attack_name, STANDARD_PROFILE)


def register_profile(attack_name: str, profile: AbilityProfile):
    ABILITY_PROFILES[attack_name] = profile


# ============================================
# 武器技能表
# ============================================


def _attack(name, action_cost, stamina_cost, **kwargs) -> WeaponAttack:
    return WeaponAttack(name=name, action_cost=action_cost, stamina_cost=stamina_cost, **kwargs)


_LIGHT_ATTACK = _attack("Light Attack", 1, 5)
_HEAVY_SWING = _attack("Heavy Swing", 2, 12, damage_multiplier=1.5)
_REND = _attack(
    "Rend", 1, 8, condition_inflicted="bleeding", condition_chance=50, condition_duration=3
)

WEAPON_ATTACKS: Dict[str, List[WeaponAttack]] = {
    "dagger": [
        _LIGHT_ATTACK,
        _attack("Backstab", 1, 10),
        _attack(
            "Hydras Strike", 1, 8,
            condition_inflicted="poisoned", condition_chance=40, condition_duration=3,
        ),
        _attack("Flurry", 1, 10, requires_dual_wield=True, available_with_shield=False),
    ],
    "shortsword": [
        _LIGHT_ATTACK,
        _attack("Dependable Strike", 1, 8),
        _attack("Guarding Strike", 1, 10),
    ],
    "rapier": [
        _LIGHT_ATTACK,
        _attack("Puncture", 2, 15),
        _attack(
            "Vipers Fangs", 1, 10,
            condition_inflicted="poisoned", condition_chance=25, condition_duration=2,
        ),
    ],
    "longsword": [
        _LIGHT_ATTACK,
        _attack("Sweeping Strike", 1, 10, cleave=0.5),
        _attack("Disarming Strike", 1, 10),
    ],
    "battleaxe": [
        _REND,
        _HEAVY_SWING,
        _attack("Sweeping Strike", 1, 12, cleave=0.75),
    ],
    "mace": [
        _LIGHT_ATTACK,
        _attack(
            "Concussive Blow", 1, 10,
            condition_inflicted="stunned", condition_chance=20, condition_duration=1,
        ),
        _attack("Savage Strike", 2, 15),
    ],
    "warhammer": [
        _HEAVY_SWING,
        _attack(
            "Crushing Blow", 1, 12,
            condition_inflicted="stunned", condition_chance=25, condition_duration=1,
        ),
    ],
    "spear": [
        _LIGHT_ATTACK,
        _attack("Roll", 1, 8),
        _attack(
            "Impale", 1, 10,
            condition_inflicted="bleeding", condition_chance=35, condition_duration=2,
        ),
    ],
    "scythe": [
        _attack(
            "Reap", 1, 8,
            condition_inflicted="bleeding", condition_chance=30, condition_duration=2,
        ),
        _attack(
            "Sweeping Rend", 1, 12, cleave=0.5,
            condition_inflicted="bleeding", condition_chance=25, condition_duration=2,
        ),
        _attack("Murderous Intent", 2, 18, cleave=0.5),
    ],
    "dualblades": [
        _LIGHT_ATTACK,
        _attack("Crimson Mist", 2, 18),
        _attack("Bloodfury", 1, 12),
    ],
    "greatsword": [
        _attack("Light Attack", 1, 6, available_with_shield=False),
        _attack("Arcing Blade", 2, 15, available_with_shield=False),
        _attack("Spinning Flurry", 2, 20, available_with_shield=False),
    ],
    "greataxe": [
        replace(_HEAVY_SWING, available_with_shield=False),
        replace(_REND, available_with_shield=False),
        _attack("Savage Strike", 2, 15, available_with_shield=False),
    ],
    "staff": [
        _attack("Light Attack", 1, 5, available_with_shield=False),
        _attack("Dust Up", 1, 8, available_with_shield=False),
    ],
    "shield": [
        _attack("Shield Wall", 1, 5),
        _attack("Shield Slam", 1, 10),
    ],
    "unarmed": [
        _attack("Punch", 1, 3),
    ],
}


def get_attacks_for_weapon_type(weapon_type: str) -> List[WeaponAttack]:
    """返回副本，调用方可随意修改"""
    return [replace(attack) for attack in WEAPON_ATTACKS.get(weapon_type, [])]


def is_unarmed_attack(attack_name: str) -> bool:
    return any(attack.name == attack_name for attack in WEAPON_ATTACKS["unarmed"])


def get_available_attacks(player: Player) -> List[WeaponAttack]:
    """
    当前装备可用的技能

    主手、副手武器技能分别标记 source_hand；持盾时加入盾牌技能；
    两手都没有可用武器时提供空手技能。
    """
    attacks: List[WeaponAttack] = []
    shield = has_shield(player)
    dual = is_dual_wielding(player)

    for hand in (EquipmentSlot.MAIN_HAND, EquipmentSlot.OFF_HAND):
        equipped = get_equipped_weapon(player, hand)
        if equipped is None:
            continue
        weapon, level = equipped
        for attack in get_attacks_for_weapon_type(weapon.type):
            if attack.requires_dual_wield and not dual:
                continue
            if shield and not attack.available_with_shield:
                continue
            attacks.append(
                replace(attack, source_hand=hand.value, weapon_data=weapon, enhancement_level=level)
            )

    if shield:
        level = player.equipment.off_hand.enhancement_level
        for attack in get_attacks_for_weapon_type("shield"):
            attacks.append(
                replace(
                    attack,
                    source_hand=EquipmentSlot.OFF_HAND.value,
                    weapon_data=SHIELD_BASH,
                    enhancement_level=level,
                )
            )

    armed = any(
        get_equipped_weapon(player, hand)
        for hand in (EquipmentSlot.MAIN_HAND, EquipmentSlot.OFF_HAND)
    )
    if not armed:
        for attack in get_attacks_for_weapon_type("unarmed"):
            attacks.append(replace(attack, weapon_data=UNARMED, enhancement_level=0))

    return attacks


def validate_attack(
    attack_name: str, player: Player, source_hand: Optional[str] = None
) -> Optional[WeaponAttack]:
    """
    校验技能属于当前装备

    Args:
        attack_name: 技能名
        player: 玩家
        source_hand: 指定 "main_hand" / "off_hand"；为空时取第一个同名技能

    Returns:
        权威的技能记录（带武器数据），不存在返回 None
    """
    for attack in get_available_attacks(player):
        if attack.name != attack_name:
            continue
        if source_hand is None or attack.source_hand == source_hand:
            return attack
    logger.warning("attack %s is not available with current equipment", attack_name)
    return None

"""
装备解析

武器/护甲表、强化后的伤害骰、由装备推导的玩家属性，以及耐久度损耗。
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from . import rules
from .models.action import DamageDice, WeaponData
from .models.combatant import (
    ARMOR_SLOTS,
    EquipmentSlot,
    EquippedItem,
    InventoryItem,
    Player,
    PlayerStats,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArmorData:
    """护甲/盾牌数据"""

    id: str
    name: str
    slot: str  # helmet / chest / ... / shield
    armor_type: str  # light / heavy / shield
    evasion_modifier: int
    damage_reduction: float


# ============================================
# 物品表
# ============================================


def _weapon(item_id, name, weapon_type, dice, two_handed=False, rarity="common"):
    return WeaponData(
        id=item_id,
        name=name,
        type=weapon_type,
        damage=DamageDice(*dice),
        two_handed=two_handed,
        rarity=rarity,
    )


WEAPONS: Dict[str, WeaponData] = {
    w.id: w
    for w in (
        _weapon("dagger_basic", "Iron Dagger", "dagger", (1, 4, 3)),
        _weapon("shortsword_basic", "Steel Shortsword", "shortsword", (1, 6, 3)),
        _weapon("rapier_basic", "Dueling Rapier", "rapier", (1, 8, 3)),
        _weapon("longsword_basic", "Longsword", "longsword", (1, 8, 3)),
        _weapon("battleaxe_basic", "Battle Axe", "battleaxe", (1, 8, 3)),
        _weapon("mace_basic", "Steel Mace", "mace", (1, 6, 3)),
        _weapon("warhammer_basic", "Warhammer", "warhammer", (1, 10, 3)),
        _weapon("spear_basic", "Spear", "spear", (1, 6, 3)),
        _weapon("scythe_basic", "Reaper's Scythe", "scythe", (1, 10, 3), rarity="uncommon"),
        _weapon("dualblades_basic", "Twin Fangs", "dualblades", (1, 6, 3), rarity="uncommon"),
        _weapon("greatsword_basic", "Greatsword", "greatsword", (2, 6, 6), two_handed=True),
        _weapon("greataxe_basic", "Great Axe", "greataxe", (1, 12, 6), two_handed=True),
        _weapon("staff_basic", "Quarterstaff", "staff", (1, 8, 6), two_handed=True),
    )
}

# 空手 / 盾击
UNARMED = _weapon("unarmed", "Fists", "unarmed", (1, 4, 0))
SHIELD_BASH = _weapon("shield_bash", "Shield", "shield", (1, 4, 2))


def _armor(item_id, name, slot, armor_type, evasion_modifier, damage_reduction):
    return ArmorData(item_id, name, slot, armor_type, evasion_modifier, damage_reduction)


ARMORS: Dict[str, ArmorData] = {
    a.id: a
    for a in (
        _armor("shield_wooden", "Wooden Shield", "shield", "shield", 1, 0.10),
        _armor("shield_steel", "Steel Shield", "shield", "shield", 1, 0.10),
        _armor("helmet_leather", "Leather Cap", "helmet", "light", 0, 0.10),
        _armor("helmet_heavy", "Iron Helmet", "helmet", "heavy", -1, 0.20),
        _armor("chest_leather", "Leather Armor", "chest", "light", -1, 0.10),
        _armor("chest_heavy", "Plate Armor", "chest", "heavy", -2, 0.20),
        _armor("legs_leather", "Leather Pants", "legs", "light", 0, 0.10),
        _armor("legs_heavy", "Plate Greaves", "legs", "heavy", -1, 0.20),
        _armor("boots_leather", "Leather Boots", "boots", "light", 0, 0.10),
        _armor("boots_heavy", "Steel Boots", "boots", "heavy", 0, 0.20),
        _armor("shoulders_leather", "Leather Pauldrons", "shoulders", "light", 0, 0.10),
        _armor("shoulders_heavy", "Steel Pauldrons", "shoulders", "heavy", 0, 0.20),
        _armor("cape_basic", "Traveler's Cloak", "cape", "light", 0, 0.0),
    )
}

# 其他物品（仅用于日志命名）
ITEM_NAMES: Dict[str, str] = {
    "potion_health": "Health Potion",
    "potion_stamina": "Stamina Potion",
}


def get_weapon(item_id: str) -> Optional[WeaponData]:
    return WEAPONS.get(item_id)


def get_armor(item_id: str) -> Optional[ArmorData]:
    return ARMORS.get(item_id)


def get_item_name(item_id: str) -> str:
    """日志显示用名称，找不到时退回 item_id"""
    weapon = WEAPONS.get(item_id)
    if weapon:
        return weapon.name
    armor = ARMORS.get(item_id)
    if armor:
        return armor.name
    return ITEM_NAMES.get(item_id, item_id)


# ============================================
# 强化
# ============================================

# 强化等级达到阈值时 +1 骰 / +1 修正
DICE_BONUS_LEVELS = (5, 7, 9)
MODIFIER_BONUS_LEVELS = (2, 4, 6, 8)


def get_enhanced_damage(weapon: WeaponData, enhancement_level: int) -> DamageDice:
    """
    强化后的伤害骰

    随等级单调不减；不改动 weapon 本身。
    """
    extra_dice = sum(1 for level in DICE_BONUS_LEVELS if enhancement_level >= level)
    extra_modifier = sum(1 for level in MODIFIER_BONUS_LEVELS if enhancement_level >= level)
    return DamageDice(
        weapon.damage.num_dice + extra_dice,
        weapon.damage.die_size,
        weapon.damage.modifier + extra_modifier,
    )


# ============================================
# 装备查询与属性
# ============================================


def get_equipped_weapon(
    player: Player,
    hand: EquipmentSlot = EquipmentSlot.MAIN_HAND,
) -> Optional[Tuple[WeaponData, int]]:
    """
    获取某只手上可用的武器

    Returns:
        (武器数据, 强化等级)；空手/盾牌/已损坏返回 None
    """
    equipped = player.equipment.get(hand)
    if equipped is None or equipped.is_broken():
        return None
    weapon = get_weapon(equipped.item_id)
    if weapon is None:
        return None
    return weapon, equipped.enhancement_level


def has_shield(player: Player) -> bool:
    equipped = player.equipment.off_hand
    if equipped is None:
        return False
    armor = get_armor(equipped.item_id)
    return armor is not None and armor.slot == "shield"


def is_dual_wielding(player: Player) -> bool:
    return (
        get_equipped_weapon(player, EquipmentSlot.MAIN_HAND) is not None
        and get_equipped_weapon(player, EquipmentSlot.OFF_HAND) is not None
    )


def calculate_player_stats(player: Player) -> PlayerStats:
    """
    由装备推导玩家属性

    - 闪避：10 + 各护甲闪避修正
    - 减伤：各护甲减伤之和，上限 0.9
    - 伤害加值：双手武器 6，否则 3
    """
    evasion = rules.BASE_EVASION
    reduction = 0.0
    for slot in ARMOR_SLOTS + (EquipmentSlot.OFF_HAND,):
        equipped = player.equipment.get(slot)
        if equipped is None or equipped.is_broken():
            continue
        armor = get_armor(equipped.item_id)
        if armor is None:
            continue
        evasion += armor.evasion_modifier
        reduction += armor.damage_reduction

    main = get_equipped_weapon(player, EquipmentSlot.MAIN_HAND)
    two_handed = main is not None and main[0].two_handed

    return PlayerStats(
        base_evasion=rules.BASE_EVASION,
        calculated_evasion=evasion,
        damage_reduction=min(reduction, rules.MAX_ARMOR_DAMAGE_REDUCTION),
        attack_bonus=rules.BASE_ATTACK_BONUS,
        damage_bonus=(
            rules.TWO_HANDED_DAMAGE_BONUS if two_handed else rules.ONE_HANDED_DAMAGE_BONUS
        ),
    )


# ============================================
# 耐久度
# ============================================

CRITICAL_DURABILITY_PERCENT = 10
MOVEMENT_DECAY_PER_TILE = 0.1


def decay_weapons_after_combat(player: Player) -> List[str]:
    """每场战斗武器耐久 -1（副手仅在是武器时）"""
    messages: List[str] = []
    if player.equipment.main_hand:
        _collect(messages, _decay_item(player.equipment.main_hand, 1))
    off_hand = player.equipment.off_hand
    if off_hand and get_weapon(off_hand.item_id):
        _collect(messages, _decay_item(off_hand, 1))
    return messages


def decay_armor_after_combat(player: Player) -> List[str]:
    """每场战斗护甲与盾牌耐久 -1"""
    return _decay_armor(player, 1)


def decay_armor_on_movement(player: Player, tiles: int) -> List[str]:
    """每移动一格护甲耐久 -0.1"""
    return _decay_armor(player, tiles * MOVEMENT_DECAY_PER_TILE)


def get_broken_equipment(player: Player) -> List[Tuple[EquipmentSlot, str]]:
    broken = []
    for slot in EquipmentSlot:
        equipped = player.equipment.get(slot)
        if equipped is not None and equipped.is_broken():
            broken.append((slot, equipped.item_id))
    return broken


def unequip_broken_items(player: Player) -> List[str]:
    """卸下已损坏的装备，放回背包等待修理"""
    messages: List[str] = []
    for slot, item_id in get_broken_equipment(player):
        equipped = player.equipment.get(slot)
        player.equipment.set(slot, None)
        player.inventory.append(
            InventoryItem(item_id=item_id, quantity=1, enhancement_level=equipped.enhancement_level)
        )
        messages.append(f"{get_item_name(item_id)} broke and was unequipped!")
        logger.info("unequipped broken item %s from %s", item_id, slot.value)
    if messages:
        player.stats = calculate_player_stats(player)
    return messages


def _decay_armor(player: Player, amount: float) -> List[str]:
    messages: List[str] = []
    for slot in ARMOR_SLOTS:
        equipped = player.equipment.get(slot)
        if equipped:
            _collect(messages, _decay_item(equipped, amount))
    if has_shield(player):
        _collect(messages, _decay_item(player.equipment.off_hand, amount))
    return messages


def _decay_item(item: EquippedItem, amount: float) -> Optional[str]:
    current = item.durability
    if current <= 0:
        return None

    item.durability = max(0, current - amount)
    name = get_item_name(item.item_id)
    if item.durability == 0:
        return f"{name} has broken and needs repair!"

    percentage = item.durability / item.max_durability * 100
    previous = current / item.max_durability * 100
    if 0 < percentage <= CRITICAL_DURABILITY_PERCENT < previous:
        return f"{name} is critically damaged!"
    return None


def _collect(messages: List[str], message: Optional[str]):
    if message:
        messages.append(message)

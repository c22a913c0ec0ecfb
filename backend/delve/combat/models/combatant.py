"""
战斗单位数据模型
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .action import DamageDice


class ConditionType(str, Enum):
    """状态条件类型"""

    BLEEDING = "bleeding"
    STUNNED = "stunned"
    POISONED = "poisoned"
    DEPENDABLE = "dependable"
    RAISE_EVASION = "raise_evasion"
    RAISE_DEFENCE = "raise_defence"
    SLOWED = "slowed"
    WEAKENED = "weakened"
    EMPOWERED = "empowered"


class EquipmentSlot(str, Enum):
    """装备槽位"""

    MAIN_HAND = "main_hand"
    OFF_HAND = "off_hand"
    HELMET = "helmet"
    CHEST = "chest"
    LEGS = "legs"
    BOOTS = "boots"
    SHOULDERS = "shoulders"
    CAPE = "cape"


ARMOR_SLOTS = (
    EquipmentSlot.HELMET,
    EquipmentSlot.CHEST,
    EquipmentSlot.LEGS,
    EquipmentSlot.BOOTS,
    EquipmentSlot.SHOULDERS,
    EquipmentSlot.CAPE,
)


@dataclass
class StatusCondition:
    """状态条件实例（同一单位同类型唯一）"""

    type: ConditionType
    stacks: int = 1
    duration: int = 1


@dataclass
class EquippedItem:
    """已装备物品"""

    item_id: str
    enhancement_level: int = 0
    durability: float = 100
    max_durability: float = 100

    def is_broken(self) -> bool:
        return self.durability <= 0


@dataclass
class Equipment:
    """装备栏（每个槽位可空）"""

    main_hand: Optional[EquippedItem] = None
    off_hand: Optional[EquippedItem] = None
    helmet: Optional[EquippedItem] = None
    chest: Optional[EquippedItem] = None
    legs: Optional[EquippedItem] = None
    boots: Optional[EquippedItem] = None
    shoulders: Optional[EquippedItem] = None
    cape: Optional[EquippedItem] = None

    def get(self, slot: EquipmentSlot) -> Optional[EquippedItem]:
        return getattr(self, EquipmentSlot(slot).value)

    def set(self, slot: EquipmentSlot, item: Optional[EquippedItem]):
        setattr(self, EquipmentSlot(slot).value, item)


@dataclass
class PlayerStats:
    """由装备推导出的玩家属性"""

    base_evasion: int = 10
    calculated_evasion: int = 10
    damage_reduction: float = 0.0
    attack_bonus: int = 3
    damage_bonus: int = 3


@dataclass
class ActiveBuff:
    """增益（跨战斗存在，区别于状态条件）"""

    type: str
    name: str
    description: str = ""
    expires_at: Optional[float] = None  # 时间戳（秒）
    expires_on_town_return: bool = False


@dataclass
class InventoryItem:
    """背包物品"""

    item_id: str
    quantity: int = 1
    enhancement_level: int = 0


@dataclass
class LootEntry:
    """掉落表条目（由战利品系统消费）"""

    item_id: str
    drop_chance: float
    enhancement_level: int = 0


@dataclass
class DamageRecord:
    """受伤记录（时光回溯用）"""

    round: int
    damage: int


@dataclass
class Combatant:
    """
    战斗单位基类

    health 始终夹在 [0, max_health]。
    """

    # ===== 基础信息 =====
    id: str
    name: str

    # ===== 生命值 =====
    health: int
    max_health: int

    # ===== 状态 =====
    status_conditions: List[StatusCondition] = field(default_factory=list)

    # ===== 便捷方法 =====

    def is_alive(self) -> bool:
        return self.health > 0

    def take_damage(self, amount: int) -> int:
        """
        受到伤害

        Args:
            amount: 伤害值

        Returns:
            int: 实际受到的伤害（不会为负）
        """
        actual_damage = max(0, min(amount, self.health))
        self.health -= actual_damage
        return actual_damage

    def heal(self, amount: int) -> int:
        """
        恢复生命值

        Returns:
            int: 实际恢复的量
        """
        actual_heal = max(0, min(amount, self.max_health - self.health))
        self.health += actual_heal
        return actual_heal


@dataclass
class Player(Combatant):
    """玩家"""

    stamina: int = 100
    max_stamina: int = 100
    level: int = 1
    equipment: Equipment = field(default_factory=Equipment)
    stats: PlayerStats = field(default_factory=PlayerStats)
    inventory: List[InventoryItem] = field(default_factory=list)
    active_buffs: List[ActiveBuff] = field(default_factory=list)

    def spend_stamina(self, amount: int):
        self.stamina = max(0, self.stamina - amount)


@dataclass
class Enemy(Combatant):
    """敌人"""

    evasion: int = 10
    damage_reduction: float = 0.0
    attack_bonus: int = 0
    weapon_damage: DamageDice = field(default_factory=lambda: DamageDice(1, 6, 0))
    weapon_type: str = "unarmed"
    tier: int = 1
    is_boss: bool = False
    loot_table: List[LootEntry] = field(default_factory=list)

    # 行为表键；为空时按名称推导
    archetype: Optional[str] = None

    # ===== 物种专属临时字段 =====
    backstab_used: bool = False
    chronostep_uses_remaining: Optional[int] = None
    damage_received_history: Optional[List[DamageRecord]] = None
    item_stolen: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "health": self.health,
            "max_health": self.max_health,
            "evasion": self.evasion,
            "damage_reduction": self.damage_reduction,
            "weapon_damage": self.weapon_damage.to_dict(),
            "tier": self.tier,
            "is_boss": self.is_boss,
            "status_conditions": [
                {"type": c.type.value, "stacks": c.stacks, "duration": c.duration}
                for c in self.status_conditions
            ],
        }

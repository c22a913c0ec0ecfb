"""Data models for the combat system."""

from .action import (
    AttackResult,
    AttackRoll,
    CriticalRoll,
    DamageDice,
    RollTotal,
    WeaponAttack,
    WeaponData,
)
from .combatant import (
    ActiveBuff,
    Combatant,
    ConditionType,
    DamageRecord,
    Enemy,
    Equipment,
    EquipmentSlot,
    EquippedItem,
    InventoryItem,
    LootEntry,
    Player,
    PlayerStats,
    StatusCondition,
)
from .combat_session import CombatSession, TurnOwner
from .specs import EnemySpec, PlayerSpec

__all__ = [
    "AttackResult",
    "AttackRoll",
    "CriticalRoll",
    "DamageDice",
    "RollTotal",
    "WeaponAttack",
    "WeaponData",
    "ActiveBuff",
    "Combatant",
    "ConditionType",
    "DamageRecord",
    "Enemy",
    "Equipment",
    "EquipmentSlot",
    "EquippedItem",
    "InventoryItem",
    "LootEntry",
    "Player",
    "PlayerStats",
    "StatusCondition",
    "CombatSession",
    "TurnOwner",
    "EnemySpec",
    "PlayerSpec",
]

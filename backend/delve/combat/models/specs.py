"""Caller-facing payload models for entering combat."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .action import DamageDice
from .combatant import (
    ActiveBuff,
    ConditionType,
    Enemy,
    Equipment,
    EquippedItem,
    InventoryItem,
    LootEntry,
    Player,
    PlayerStats,
    StatusCondition,
)


class DiceSpec(BaseModel):
    """Damage dice payload."""

    num_dice: int = Field(..., ge=1)
    die_size: int = Field(..., ge=1)
    modifier: int = 0

    def to_dice(self) -> DamageDice:
        return DamageDice(self.num_dice, self.die_size, self.modifier)


class ConditionSpec(BaseModel):
    type: ConditionType
    stacks: int = Field(default=1, ge=1)
    duration: int = Field(default=1, ge=0)

    def to_condition(self) -> StatusCondition:
        return StatusCondition(type=self.type, stacks=self.stacks, duration=self.duration)


class EquippedItemSpec(BaseModel):
    item_id: str = Field(..., min_length=1)
    enhancement_level: int = Field(default=0, ge=0, le=9)
    durability: float = Field(default=100, ge=0)
    max_durability: float = Field(default=100, gt=0)

    def to_item(self) -> EquippedItem:
        return EquippedItem(
            item_id=self.item_id,
            enhancement_level=self.enhancement_level,
            durability=self.durability,
            max_durability=self.max_durability,
        )


class BuffSpec(BaseModel):
    type: str
    name: str
    description: str = ""
    expires_at: Optional[float] = None
    expires_on_town_return: bool = False


class InventoryItemSpec(BaseModel):
    item_id: str
    quantity: int = Field(default=1, ge=0)
    enhancement_level: int = 0


class PlayerSpec(BaseModel):
    """Player loadout handed over by the data layer."""

    id: str = "player"
    name: str = "You"
    health: int = Field(..., ge=0)
    max_health: int = Field(..., ge=1)
    stamina: int = Field(default=100, ge=0)
    max_stamina: int = Field(default=100, ge=0)
    level: int = Field(default=1, ge=1)
    main_hand: Optional[EquippedItemSpec] = None
    off_hand: Optional[EquippedItemSpec] = None
    helmet: Optional[EquippedItemSpec] = None
    chest: Optional[EquippedItemSpec] = None
    legs: Optional[EquippedItemSpec] = None
    boots: Optional[EquippedItemSpec] = None
    shoulders: Optional[EquippedItemSpec] = None
    cape: Optional[EquippedItemSpec] = None
    inventory: List[InventoryItemSpec] = Field(default_factory=list)
    active_buffs: List[BuffSpec] = Field(default_factory=list)
    status_conditions: List[ConditionSpec] = Field(default_factory=list)

    def to_player(self) -> Player:
        # 属性由装备推导
        from ..equipment import calculate_player_stats

        slots = ("main_hand", "off_hand", "helmet", "chest", "legs", "boots", "shoulders", "cape")
        equipment = Equipment(
            **{slot: getattr(self, slot).to_item() for slot in slots if getattr(self, slot)}
        )
        player = Player(
            id=self.id,
            name=self.name,
            health=min(self.health, self.max_health),
            max_health=self.max_health,
            status_conditions=[c.to_condition() for c in self.status_conditions],
            stamina=min(self.stamina, self.max_stamina),
            max_stamina=self.max_stamina,
            level=self.level,
            equipment=equipment,
            stats=PlayerStats(),
            inventory=[
                InventoryItem(item.item_id, item.quantity, item.enhancement_level)
                for item in self.inventory
            ],
            active_buffs=[ActiveBuff(**buff.model_dump()) for buff in self.active_buffs],
        )
        player.stats = calculate_player_stats(player)
        return player


class LootEntrySpec(BaseModel):
    item_id: str
    drop_chance: float = Field(..., ge=0, le=1)
    enhancement_level: int = 0


class EnemySpec(BaseModel):
    """Enemy record handed over by the data layer."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    health: int = Field(..., ge=0)
    max_health: int = Field(..., ge=1)
    evasion: int = Field(default=10, ge=0)
    damage_reduction: float = Field(default=0.0, ge=0, le=1)
    attack_bonus: int = 0
    weapon_damage: DiceSpec
    weapon_type: str = "unarmed"
    tier: int = Field(default=1, ge=1)
    is_boss: bool = False
    archetype: Optional[str] = None
    loot_table: List[LootEntrySpec] = Field(default_factory=list)
    status_conditions: List[ConditionSpec] = Field(default_factory=list)

    def to_enemy(self) -> Enemy:
        return Enemy(
            id=self.id,
            name=self.name,
            health=min(self.health, self.max_health),
            max_health=self.max_health,
            status_conditions=[c.to_condition() for c in self.status_conditions],
            evasion=self.evasion,
            damage_reduction=self.damage_reduction,
            attack_bonus=self.attack_bonus,
            weapon_damage=self.weapon_damage.to_dice(),
            weapon_type=self.weapon_type,
            tier=self.tier,
            is_boss=self.is_boss,
            archetype=self.archetype,
            loot_table=[
                LootEntry(entry.item_id, entry.drop_chance, entry.enhancement_level)
                for entry in self.loot_table
            ],
        )

"""Player buff helpers (persist across combats, unlike status conditions)."""
import logging
import time
from typing import Dict, Optional

from .models.action import DamageDice
from .models.combatant import ActiveBuff, Player

logger = logging.getLogger(__name__)

ONE_HOUR = 60 * 60

BUFF_DEFINITIONS: Dict[str, Dict] = {
    "enraged_spirit": {
        "name": "Blessing of the Enraged Spirit",
        "description": "+5 damage to all attacks",
        "duration": ONE_HOUR,
        "damage_bonus": 5,
    },
    "catriena_blessing": {
        "name": "Catriena's Blessing",
        "description": "+1d4 to attack rolls",
        "duration": ONE_HOUR,
        "attack_roll_bonus": DamageDice(1, 4, 0),
    },
    "aroma_of_void": {
        "name": "Aroma of the Void",
        "description": "Doubles encounter rate until you return to town",
        "expires_on_town_return": True,
        "encounter_rate_multiplier": 2.0,
    },
}


def create_buff(buff_type: str, now: Optional[float] = None) -> ActiveBuff:
    """按类型创建增益，未知类型抛 ValueError"""
    definition = BUFF_DEFINITIONS.get(buff_type)
    if definition is None:
        raise ValueError(f"Unknown buff type: {buff_type}")
    now = time.time() if now is None else now
    duration = definition.get("duration")
    return ActiveBuff(
        type=buff_type,
        name=definition["name"],
        description=definition["description"],
        expires_at=now + duration if duration else None,
        expires_on_town_return=definition.get("expires_on_town_return", False),
    )


def add_buff(player: Player, buff: ActiveBuff):
    """同类型增益直接替换"""
    remove_buff(player, buff.type)
    player.active_buffs.append(buff)
    logger.debug("buff added: %s", buff.type)


def remove_buff(player: Player, buff_type: str):
    player.active_buffs = [b for b in player.active_buffs if b.type != buff_type]


def has_buff(player: Player, buff_type: str) -> bool:
    return any(b.type == buff_type for b in player.active_buffs)


def update_buffs(player: Player, now: Optional[float] = None):
    """移除已过期的限时增益"""
    now = time.time() if now is None else now
    player.active_buffs = [
        b for b in player.active_buffs if b.expires_at is None or b.expires_at >= now
    ]


def clear_town_buffs(player: Player):
    player.active_buffs = [b for b in player.active_buffs if not b.expires_on_town_return]


def get_damage_bonus(player: Player) -> int:
    return sum(
        BUFF_DEFINITIONS.get(b.type, {}).get("damage_bonus", 0) for b in player.active_buffs
    )


def get_attack_roll_bonus(player: Player) -> Optional[DamageDice]:
    for buff in player.active_buffs:
        dice = BUFF_DEFINITIONS.get(buff.type, {}).get("attack_roll_bonus")
        if dice is not None:
            return dice
    return None


def get_encounter_rate_multiplier(player: Player) -> float:
    multiplier = 1.0
    for buff in player.active_buffs:
        multiplier *= BUFF_DEFINITIONS.get(buff.type, {}).get("encounter_rate_multiplier", 1.0)
    return multiplier

"""
战斗会话数据模型
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Set

from .combatant import Enemy, Player

logger = logging.getLogger(__name__)


class TurnOwner(str, Enum):
    """当前行动方"""

    PLAYER = "player"
    ENEMY = "enemy"


@dataclass
class CombatSession:
    """
    战斗会话

    敌人列表下标稳定：阵亡只标记 health<=0，不从列表移除。
    is_complete 置位后只允许读取。
    """

    player: Player
    enemies: List[Enemy]

    # ===== 回合状态 =====
    current_turn: TurnOwner = TurnOwner.PLAYER
    actions_remaining: int = 2
    max_actions_per_turn: int = 2
    current_round: int = 0

    # ===== 结果 =====
    combat_log: List[str] = field(default_factory=list)
    is_complete: bool = False
    player_victory: bool = False
    is_wild_encounter: bool = False

    # 本次敌方回合开始时处于眩晕的敌人下标
    stunned_enemies: Set[int] = field(default_factory=set)

    def add_log(self, message: str):
        """追加战斗日志"""
        self.combat_log.append(message)

    def get_living_enemies(self) -> List[Enemy]:
        return [enemy for enemy in self.enemies if enemy.health > 0]

    def is_valid_target(self, index: int) -> bool:
        if not isinstance(index, int) or isinstance(index, bool):
            return False
        return 0 <= index < len(self.enemies) and self.enemies[index].health > 0

    def check_combat_end(self) -> bool:
        """
        检查战斗是否结束

        只会结算一次；返回是否已结束。
        """
        if self.is_complete:
            return True

        if not self.get_living_enemies():
            self.is_complete = True
            self.player_victory = True
            self.add_log("Victory! All enemies defeated!")
            logger.info("combat won in round %s", self.current_round)
            return True

        if self.player.health <= 0:
            self.is_complete = True
            self.player_victory = False
            self.add_log("You have been defeated...")
            logger.info("combat lost in round %s", self.current_round)
            return True

        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_turn": self.current_turn.value,
            "actions_remaining": self.actions_remaining,
            "max_actions_per_turn": self.max_actions_per_turn,
            "current_round": self.current_round,
            "player": {
                "health": self.player.health,
                "max_health": self.player.max_health,
                "stamina": self.player.stamina,
                "max_stamina": self.player.max_stamina,
            },
            "enemies": [enemy.to_dict() for enemy in self.enemies],
            "is_complete": self.is_complete,
            "player_victory": self.player_victory,
            "is_wild_encounter": self.is_wild_encounter,
            "combat_log": list(self.combat_log),
        }

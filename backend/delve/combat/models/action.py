"""
战斗行动数据模型
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DamageDice:
    """伤害骰（NdS+M）"""

    num_dice: int
    die_size: int
    modifier: int = 0

    @property
    def notation(self) -> str:
        if self.modifier >= 0:
            return f"{self.num_dice}d{self.die_size}+{self.modifier}"
        return f"{self.num_dice}d{self.die_size}{self.modifier}"

    def __str__(self) -> str:
        return self.notation

    def to_dict(self) -> Dict[str, int]:
        return {
            "num_dice": self.num_dice,
            "die_size": self.die_size,
            "modifier": self.modifier,
        }


@dataclass
class RollTotal:
    """普通伤害骰结果"""

    rolls: List[int]
    modifier: int
    total: int

    def __str__(self) -> str:
        return f"({'+'.join(str(r) for r in self.rolls)}+{self.modifier} = {self.total})"


@dataclass
class CriticalRoll:
    """暴击伤害结果：最大面 + 额外一次投掷 + 修正"""

    max_die: int
    extra_roll: int
    modifier: int
    total: int


@dataclass
class AttackRoll:
    """命中判定结果"""

    d20: int
    bonus: int
    total: int
    is_critical: bool = False

    def to_display_text(self) -> str:
        """转换为可读文本"""
        return f"{self.d20}+{self.bonus}={self.total}"


@dataclass(frozen=True)
class WeaponData:
    """武器数据（只读）"""

    id: str
    name: str
    type: str
    damage: DamageDice
    two_handed: bool = False
    rarity: str = "common"
    description: str = ""


@dataclass
class WeaponAttack:
    """
    武器技能记录

    由技能目录提供，引擎只读不改。
    双持时携带 weapon_data / enhancement_level / source_hand。
    """

    name: str
    action_cost: int = 1
    stamina_cost: int = 5
    damage_multiplier: float = 1.0
    hit_bonus: int = 0
    condition_inflicted: Optional[str] = None
    condition_chance: Optional[float] = None
    condition_duration: Optional[int] = None
    cleave: Optional[float] = None
    available_with_shield: bool = True
    requires_dual_wield: bool = False

    # ===== 双持专用 =====
    source_hand: Optional[str] = None  # "main_hand" / "off_hand"
    weapon_data: Optional[WeaponData] = None
    enhancement_level: Optional[int] = None


@dataclass
class AttackResult:
    """
    玩家行动结果

    非法行动同样返回本结构（hit=False + 说明消息），从不抛异常。
    """

    hit: bool = False
    critical: bool = False
    attack_roll: int = 0
    damage: int = 0
    damage_before_reduction: int = 0
    message: str = ""

    # 附加信息
    target_health: Optional[int] = None
    target_defeated: bool = False
    condition_applied: Optional[str] = None
    healing: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "hit": self.hit,
            "critical": self.critical,
            "attack_roll": self.attack_roll,
            "damage": self.damage,
            "damage_before_reduction": self.damage_before_reduction,
            "message": self.message,
            "target_health": self.target_health,
            "target_defeated": self.target_defeated,
            "condition_applied": self.condition_applied,
            "healing": self.healing,
        }

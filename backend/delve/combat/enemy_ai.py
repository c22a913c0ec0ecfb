"""
敌人AI系统

每个物种（行为键）拥有一张有序的行为表：{gate, action}。
每个敌方回合按顺序检查 gate，第一个通过的行为执行，全部不通过则普通攻击。
新物种只需注册行为表。
"""
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from . import conditions
from .dice import DiceRoller
from .enemy_registry import resolve_archetype
from .equipment import get_item_name
from .models.action import AttackRoll, DamageDice
from .models.combat_session import CombatSession
from .models.combatant import ConditionType, Enemy
from .rules import ENEMY_BASE_ATTACK_BONUS, FLEE_BASE_DIFFICULTY, mitigate_damage, weakened_penalty

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnemyBehavior:
    """行为表条目"""

    name: str
    gate: Callable[["OpponentAI", Enemy], bool]
    action: Callable[["OpponentAI", Enemy], None]


class OpponentAI:
    """
    敌人AI

    Args:
        session: 当前战斗会话
        dice: 共享随机源
    """

    def __init__(self, session: CombatSession, dice: DiceRoller):
        self.session = session
        self.dice = dice

    def take_turn(self, enemy: Enemy) -> str:
        """
        为敌人选择并执行一个行为

        Returns:
            str: 执行的行为名
        """
        for behavior in get_behaviors(resolve_archetype(enemy)):
            if behavior.gate(self, enemy):
                logger.debug("%s uses %s", enemy.name, behavior.name)
                behavior.action(self, enemy)
                return behavior.name

        basic_attack(self, enemy)
        return "basic_attack"

    # ============================================
    # 共享判定
    # ============================================

    def log(self, message: str):
        self.session.add_log(message)

    def player_evasion(self) -> int:
        player = self.session.player
        return player.stats.calculated_evasion + conditions.get_evasion_bonus(player)

    def roll_against_player(self, enemy: Enemy, special_bonus: int = 0) -> Tuple[AttackRoll, int]:
        """敌人命中骰：3 + 自身加值 + 技能加值，虚弱 -2"""
        bonus = ENEMY_BASE_ATTACK_BONUS + enemy.attack_bonus + special_bonus + weakened_penalty(enemy)
        return self.dice.roll_attack(bonus), self.player_evasion()

    def damage_player(self, enemy: Enemy, raw_damage: int) -> Tuple[int, int, float]:
        player = self.session.player
        damage, before, reduction = mitigate_damage(
            raw_damage, enemy, player, player.stats.damage_reduction
        )
        player.take_damage(damage)
        return damage, before, reduction


def _reduction_text(damage: int, reduction: float) -> str:
    if reduction > 0:
        return f" -> {damage} damage after {math.floor(reduction * 100)}% reduction"
    return f" -> {damage} damage"


def _miss_text(enemy: Enemy, verb: str, roll: AttackRoll, evasion: int) -> str:
    return (
        f"{enemy.name} {verb} but misses! "
        f"(Rolled {roll.d20}+{roll.bonus}={roll.total} vs Evasion {evasion})"
    )


# ============================================
# 普通攻击
# ============================================


def basic_attack(ai: OpponentAI, enemy: Enemy):
    """武器骰伤害，天然 20 暴击"""
    roll, evasion = ai.roll_against_player(enemy)
    if roll.total < evasion:
        ai.log(
            f"{enemy.name} swings and misses! "
            f"(Rolled {roll.d20}+{roll.bonus}={roll.total} vs Evasion {evasion})"
        )
        return

    if roll.is_critical:
        crit = ai.dice.roll_critical_damage(enemy.weapon_damage)
        raw = crit.total
        info = (
            f"CRITICAL HIT! ({crit.max_die} max + {crit.extra_roll} roll + "
            f"{crit.modifier} = {crit.total})"
        )
    else:
        rolled = ai.dice.roll_total(enemy.weapon_damage)
        raw = rolled.total
        info = str(rolled)

    damage, _, reduction = ai.damage_player(enemy, raw)
    ai.log(f"{enemy.name} hits you! {info}{_reduction_text(damage, reduction)}")


# ============================================
# 物种技能
# ============================================

OnHit = Callable[[OpponentAI, Enemy], str]


def special_strike(
    ability: str,
    special_bonus: int,
    damage_dice: DamageDice,
    on_hit: Optional[OnHit] = None,
    on_miss: Optional[Callable[[OpponentAI, Enemy], None]] = None,
) -> Callable[[OpponentAI, Enemy], None]:
    """
    构造带命中骰的物种技能

    on_hit 返回追加在日志末尾的文本（以标点结尾）。
    """

    def action(ai: OpponentAI, enemy: Enemy):
        roll, evasion = ai.roll_against_player(enemy, special_bonus)
        if roll.total < evasion:
            ai.log(_miss_text(enemy, f"uses {ability}", roll, evasion))
            if on_miss is not None:
                on_miss(ai, enemy)
            return

        rolled = ai.dice.roll_total(damage_dice)
        damage, before, reduction = ai.damage_player(enemy, rolled.total)
        suffix = on_hit(ai, enemy) if on_hit is not None else "!"
        ai.log(
            f"{enemy.name} uses {ability}! "
            f"({'+'.join(str(r) for r in rolled.rolls)}+{rolled.modifier} = {before})"
            f"{_reduction_text(damage, reduction)}{suffix}"
        )

    return action


def _chance(percent: float, context: str) -> Callable[[OpponentAI, Enemy], bool]:
    def gate(ai: OpponentAI, enemy: Enemy) -> bool:
        return ai.dice.check_percentage(percent, context)

    return gate


def _chronostep_gate(ai: OpponentAI, enemy: Enemy) -> bool:
    if not enemy.chronostep_uses_remaining or enemy.chronostep_uses_remaining <= 0:
        return False
    if enemy.health / enemy.max_health >= 0.4:
        return False
    return ai.dice.check_percentage(70, "Chronostep proc")


def _chronostep(ai: OpponentAI, enemy: Enemy):
    """回溯最近 d4 回合（含本回合）受到的伤害并治疗"""
    lookback = ai.dice.roll_d4()
    current = ai.session.current_round
    healing = sum(
        record.damage
        for record in enemy.damage_received_history or []
        if record.round > current - lookback
    )
    healed = enemy.heal(healing)
    enemy.chronostep_uses_remaining -= 1
    ai.log(
        f"{enemy.name} uses Chronostep! Time reverses {lookback} rounds, healing {healed} HP! "
        f"({enemy.chronostep_uses_remaining} uses remaining)"
    )


def _splooge(ai: OpponentAI, enemy: Enemy):
    duration = ai.dice.roll_d4()
    conditions.apply_condition(ai.session.player, ConditionType.SLOWED, duration, 1)
    ai.log(
        f"{enemy.name} uses Splooge! You're covered in void-touched goo! "
        f"(Slowed for {duration} rounds)"
    )


def _poison_on_hit(stack_die: int) -> OnHit:
    def on_hit(ai: OpponentAI, enemy: Enemy) -> str:
        stacks = ai.dice.roll_single(stack_die, "poison stacks")
        conditions.apply_condition(ai.session.player, ConditionType.POISONED, 3, stacks)
        return f" and {stacks} stacks of poison applied!"

    return on_hit


def _weaken_on_hit(ai: OpponentAI, enemy: Enemy) -> str:
    duration = ai.dice.roll_single(3, "weakened duration")
    conditions.apply_condition(ai.session.player, ConditionType.WEAKENED, duration, 1)
    return f" and you are weakened for {duration} rounds!"


def _crushing_slam_hit(ai: OpponentAI, enemy: Enemy) -> str:
    suffix = "!"
    if ai.dice.check_percentage(15, "Crushing Slam player stun"):
        conditions.apply_condition(ai.session.player, ConditionType.STUNNED, 1, 1)
        suffix += " You are stunned for 1 round!"
    return suffix


def _crushing_slam_miss(ai: OpponentAI, enemy: Enemy):
    if ai.dice.check_percentage(25, "Crushing Slam self-stun"):
        conditions.apply_condition(enemy, ConditionType.STUNNED, 1, 1)
        ai.log(f"{enemy.name} loses balance and is stunned for 1 round!")


def _mighty_roar(ai: OpponentAI, enemy: Enemy):
    duration = ai.dice.roll_d4() + 2
    conditions.apply_condition(enemy, ConditionType.EMPOWERED, duration, 1)
    ai.log(f"{enemy.name} uses Mighty Roar! Gains empowered status for {duration} rounds!")


def _shiny_shiny_gate(ai: OpponentAI, enemy: Enemy) -> bool:
    if enemy.item_stolen:
        return False
    return ai.dice.check_percentage(50, "Shiny Shiny proc")


def _shiny_shiny(ai: OpponentAI, enemy: Enemy):
    """偷一件物品，然后尝试逃跑（d20 > 12 + 玩家等级）"""
    player = ai.session.player
    roll, evasion = ai.roll_against_player(enemy, 1)
    if roll.total < evasion:
        ai.log(_miss_text(enemy, "tries Shiny Shiny", roll, evasion))
        return

    candidates = [item for item in player.inventory if item.quantity > 0]
    if not candidates:
        ai.log(f"{enemy.name} uses Shiny Shiny but you have no items to steal!")
        return

    stolen = candidates[ai.dice.random_int(0, len(candidates) - 1, "stolen item")]
    if stolen.quantity > 1:
        stolen.quantity -= 1
    else:
        player.inventory.remove(stolen)
    enemy.item_stolen = True
    ai.log(
        f"{enemy.name} uses Shiny Shiny! Stole {get_item_name(stolen.item_id)} from your inventory!"
    )

    flee_target = FLEE_BASE_DIFFICULTY + player.level
    flee_roll = ai.dice.roll_d20()
    if flee_roll > flee_target:
        ai.log(
            f"{enemy.name} flees with the stolen item! "
            f"(Rolled {flee_roll} vs {flee_target}) Combat ends!"
        )
        enemy.health = 0
        ai.session.check_combat_end()
    else:
        ai.log(
            f"{enemy.name} tries to flee but is stuck in combat! "
            f"(Rolled {flee_roll} vs {flee_target})"
        )


# ============================================
# 行为表
# ============================================

ARCHETYPE_BEHAVIORS: Dict[str, List[EnemyBehavior]] = {
    "greater_void_spawn": [
        EnemyBehavior("Chronostep", _chronostep_gate, _chronostep),
    ],
    "void_spawn": [
        EnemyBehavior("Splooge", _chance(35, "Splooge proc"), _splooge),
    ],
    "skitterthid": [
        EnemyBehavior(
            "Poison Barb",
            _chance(35, "Poison Barb proc"),
            special_strike("Poison Barb", 2, DamageDice(1, 8, 2), _poison_on_hit(4)),
        ),
    ],
    "hollow_husk": [
        EnemyBehavior(
            "Agonizing Bite",
            _chance(30, "Agonizing Bite proc"),
            special_strike("Agonizing Bite", -1, DamageDice(1, 10, 0), _weaken_on_hit),
        ),
    ],
    "wailing_wisp": [
        EnemyBehavior(
            "Shrill Touch",
            _chance(40, "Shrill Touch proc"),
            special_strike("Shrill Touch", 2, DamageDice(2, 4, 2), _poison_on_hit(2)),
        ),
    ],
    "crawley_crow": [
        EnemyBehavior("Shiny Shiny", _shiny_shiny_gate, _shiny_shiny),
    ],
    "aetherbear": [
        EnemyBehavior("Mighty Roar", _chance(25, "Mighty Roar"), _mighty_roar),
        EnemyBehavior(
            "Crushing Slam",
            _chance(30, "Crushing Slam"),
            special_strike(
                "Crushing Slam", 3, DamageDice(3, 8, 4), _crushing_slam_hit, _crushing_slam_miss
            ),
        ),
    ],
}


def get_behaviors(archetype: str) -> List[EnemyBehavior]:
    return ARCHETYPE_BEHAVIORS.get(archetype, [])


def register_behaviors(archetype: str, behaviors: List[EnemyBehavior]):
    """注册/替换某个行为键的行为表"""
    ARCHETYPE_BEHAVIORS[archetype] = list(behaviors)
    logger.info("registered %s behaviors for %s", len(behaviors), archetype)

"""
战斗引擎

核心战斗逻辑实现：玩家技能分派、伤害结算、回合状态机、胜负判定。
"""
import copy
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..config import settings
from . import conditions
from .attack_catalog import (
    AbilityKind,
    AbilityProfile,
    get_available_attacks,
    get_profile,
    is_unarmed_attack,
    validate_attack,
)
from .buffs import get_attack_roll_bonus, get_damage_bonus, update_buffs
from .dice import DiceRoller
from .enemy_ai import OpponentAI
from .enemy_registry import prepare_for_combat, track_damage
from .equipment import (
    SHIELD_BASH,
    UNARMED,
    get_enhanced_damage,
    get_equipped_weapon,
    has_shield,
    is_dual_wielding,
)
from .models.action import AttackResult, DamageDice, WeaponAttack, WeaponData
from .models.combat_session import CombatSession, TurnOwner
from .models.combatant import ConditionType, Enemy, EquipmentSlot, Player
from .rules import mitigate_damage, weakened_penalty

logger = logging.getLogger(__name__)


@dataclass
class _Strike:
    """一次技能调用的解析结果"""

    attack: WeaponAttack
    profile: AbilityProfile
    dice: Optional[DamageDice]
    hand_prefix: str = ""


@dataclass
class _StrikeOutcome:
    """单次命中判定 + 伤害的结果"""

    hit: bool
    critical: bool
    d20: int
    damage: int = 0
    before_reduction: int = 0
    info: str = ""
    crit_bonus: int = 0
    killed: bool = False
    condition: Optional[str] = None


def scale_dice(dice: DamageDice, multiplier: float) -> DamageDice:
    """技能伤害倍率：骰数与修正分别乘倍率后取整（至少 1 颗骰）"""
    if multiplier == 1:
        return dice
    return DamageDice(
        max(1, math.floor(dice.num_dice * multiplier)),
        dice.die_size,
        math.floor(dice.modifier * multiplier),
    )


def _failed(message: str) -> AttackResult:
    return AttackResult(hit=False, message=message)


class CombatEngine:
    """
    战斗引擎

    职责：
    - 初始化战斗（深拷贝输入）
    - 执行玩家技能
    - 驱动敌方回合
    - 判定胜负

    每个引擎实例最多持有一个会话；公共方法从不抛异常。
    """

    def __init__(self, dice: Optional[DiceRoller] = None):
        """初始化引擎"""
        self.dice = dice or DiceRoller()
        self.session: Optional[CombatSession] = None
        self._strategies: Dict[AbilityKind, Callable[[CombatSession, int, _Strike], AttackResult]] = {
            AbilityKind.STANDARD: self._execute_standard,
            AbilityKind.MULTI_STRIKE: self._execute_multi_strike,
            AbilityKind.CHAINED_STRIKE: self._execute_chained_strike,
            AbilityKind.AOE_ALL: self._execute_aoe_all,
            AbilityKind.AOE_SWEEP: self._execute_aoe_sweep,
            AbilityKind.KILL_BONUS: self._execute_kill_bonus,
            AbilityKind.FINISHER: self._execute_finisher,
            AbilityKind.LIFESTEAL: self._execute_lifesteal,
            AbilityKind.BONUS_DICE_CRIT: self._execute_bonus_dice_crit,
            AbilityKind.SHIELD: self._execute_shield,
            AbilityKind.BUFF_STRIKE: self._execute_buff_strike,
        }

    # ============================================
    # 公共接口
    # ============================================

    def initiate_combat(
        self,
        player: Player,
        enemies: List[Enemy],
        is_wild_encounter: bool = False,
    ) -> CombatSession:
        """
        开始战斗

        Args:
            player: 玩家数据（会被深拷贝）
            enemies: 敌人列表（会被深拷贝，下标稳定）
            is_wild_encounter: 是否野外遭遇

        Returns:
            CombatSession: 战斗会话；敌人为空时返回已结束的空会话且不持有

        流程：
        1. 深拷贝玩家与敌人
        2. 清除玩家上场战斗残留的状态条件，移除过期增益
        3. 重置物种临时字段
        4. 玩家回合、满行动点
        """
        player_copy = copy.deepcopy(player)
        enemy_copies = [copy.deepcopy(enemy) for enemy in enemies or []]

        if not enemy_copies:
            logger.warning("initiate_combat called without enemies")
            self.session = None
            empty = CombatSession(
                player=player_copy,
                enemies=[],
                actions_remaining=0,
                is_complete=True,
                is_wild_encounter=is_wild_encounter,
            )
            empty.add_log("There are no enemies to fight.")
            return empty

        conditions.clear_all_conditions(player_copy)
        update_buffs(player_copy)
        for enemy in enemy_copies:
            prepare_for_combat(enemy)

        max_actions = max(1, settings.combat_max_actions_per_turn)
        session = CombatSession(
            player=player_copy,
            enemies=enemy_copies,
            current_turn=TurnOwner.PLAYER,
            actions_remaining=max_actions,
            max_actions_per_turn=max_actions,
            current_round=1,
            is_wild_encounter=is_wild_encounter,
        )
        session.add_log("Combat has begun!")
        self.session = session

        logger.info(
            "combat started: %s vs %s",
            player_copy.name,
            ", ".join(enemy.name for enemy in enemy_copies),
        )
        return session

    def player_attack(self, target_index: int, attack: Optional[WeaponAttack]) -> AttackResult:
        """
        执行玩家技能

        流程：
        1. 合法性校验（回合、眩晕、目标、体力、武器）
        2. 立即扣除体力（未命中也扣）
        3. 按技能类型分派
        4. 扣除一次行动点，行动点不足时自动结束回合

        非法行动返回 hit=False 的结果，不修改会话。
        """
        session = self.session
        if session is None:
            logger.warning("player_attack called without an active combat")
            return _failed("No active combat!")
        if session.is_complete:
            return _failed("Combat is over!")
        if session.current_turn != TurnOwner.PLAYER:
            return _failed("Not player turn!")
        if attack is None:
            return _failed("No attack selected!")

        player = session.player
        if conditions.is_stunned(player):
            return _failed("You are stunned and cannot attack!")
        if not session.is_valid_target(target_index):
            logger.warning("invalid target index %s", target_index)
            return _failed("Invalid target!")
        if player.stamina < attack.stamina_cost:
            return _failed("Not enough stamina to attack!")

        profile = get_profile(attack.name)
        target = session.enemies[target_index]
        if profile.once_per_target and target.backstab_used and not conditions.is_stunned(target):
            return _failed(f"{attack.name} already used on this target (unless stunned)!")

        if profile.kind == AbilityKind.SHIELD and not has_shield(player):
            return _failed("No shield equipped!")

        weapon = self._resolve_weapon(player, attack, profile)
        if weapon is None and profile.requires_weapon:
            return _failed("No weapon equipped!")

        strike = _Strike(
            attack=attack,
            profile=profile,
            dice=(
                scale_dice(get_enhanced_damage(*weapon), attack.damage_multiplier)
                if weapon is not None
                else None
            ),
            hand_prefix=self._hand_prefix(player, attack),
        )

        player.spend_stamina(attack.stamina_cost)
        logger.debug("%s -> %s on %s", attack.name, profile.kind.value, target.name)

        result = self._strategies[profile.kind](session, target_index, strike)

        session.actions_remaining -= attack.action_cost
        if not session.check_combat_end() and session.actions_remaining < 1:
            self._end_player_turn(session)
        return result

    def attack_by_name(
        self, target_index: int, attack_name: str, source_hand: Optional[str] = None
    ) -> AttackResult:
        """按技能名执行，技能必须属于当前装备；双持同名技能可用 source_hand 指定手"""
        if self.session is None:
            return _failed("No active combat!")
        attack = validate_attack(attack_name, self.session.player, source_hand)
        if attack is None:
            return _failed(f"{attack_name} is not available with your equipment!")
        return self.player_attack(target_index, attack)

    def get_available_attacks(self) -> List[WeaponAttack]:
        if self.session is None:
            return []
        return get_available_attacks(self.session.player)

    def end_player_turn(self) -> bool:
        """玩家主动结束回合"""
        session = self.session
        if session is None or session.is_complete:
            return False
        if session.current_turn != TurnOwner.PLAYER:
            return False
        self._end_player_turn(session)
        return True

    def enemy_turn(self) -> List[str]:
        """
        执行一次完整的敌方阶段

        流程：
        1. 回合开始：记录眩晕、结算中毒与计时条件
        2. 每个存活且未眩晕的敌人执行一个行为
        3. 回合结束：结算流血
        4. 未结束则回合数 +1，进入玩家回合开始

        Returns:
            List[str]: 本阶段新增的日志
        """
        session = self.session
        if session is None:
            logger.warning("enemy_turn called without an active combat")
            return []
        if session.is_complete:
            return []
        if session.current_turn != TurnOwner.ENEMY:
            return ["Not enemy turn!"]

        start = len(session.combat_log)
        self._enemy_turn_start(session)
        if not session.is_complete:
            self._enemy_turn_body(session)
        if not session.is_complete:
            self._enemy_turn_end(session)
        if not session.is_complete:
            session.current_round += 1
            session.current_turn = TurnOwner.PLAYER
            self._start_player_turn(session)
        return session.combat_log[start:]

    def get_combat_state(self) -> Optional[CombatSession]:
        return self.session

    def is_player_turn(self) -> bool:
        session = self.session
        return (
            session is not None
            and not session.is_complete
            and session.current_turn == TurnOwner.PLAYER
        )

    def is_combat_complete(self) -> bool:
        return self.session is not None and self.session.is_complete

    def end_combat(self):
        """丢弃会话；最终状态由调用方在此之前读出"""
        if self.session is not None:
            logger.info(
                "combat ended after %s rounds (victory=%s)",
                self.session.current_round,
                self.session.player_victory,
            )
        self.session = None

    def update_player_health(self, health: int) -> bool:
        """外部修改玩家生命（如药水），夹在 [0, max]"""
        session = self.session
        if session is None or session.is_complete:
            return False
        player = session.player
        player.health = max(0, min(health, player.max_health))
        session.check_combat_end()
        return True

    def update_player_stamina(self, stamina: int) -> bool:
        session = self.session
        if session is None or session.is_complete:
            return False
        player = session.player
        player.stamina = max(0, min(stamina, player.max_stamina))
        return True

    # ============================================
    # 私有方法 - 回合流程
    # ============================================

    def _start_player_turn(self, session: CombatSession):
        """
        玩家回合开始

        眩晕：记录日志并结算条件，直接交给敌方；
        减速：本回合只有 1 个行动点。
        """
        player = session.player
        slowed = conditions.has_condition(player, ConditionType.SLOWED)

        if conditions.is_stunned(player):
            session.actions_remaining = 0
            session.add_log("You are stunned and cannot act!")
            self._tick_player(session)
            if not session.check_combat_end():
                session.current_turn = TurnOwner.ENEMY
            return

        session.actions_remaining = 1 if slowed else session.max_actions_per_turn
        if slowed:
            session.add_log("You are slowed! Only 1 action this turn.")
        self._tick_player(session)
        session.check_combat_end()

    def _tick_player(self, session: CombatSession):
        player = session.player
        tick = conditions.tick_conditions(player)
        if tick.damage > 0:
            player.take_damage(tick.damage)
        for message in tick.messages:
            session.add_log(f"[Player] {message}")
        if player.health <= 0:
            session.add_log("You succumbed to your conditions...")

    def _end_player_turn(self, session: CombatSession):
        conditions.clear_expired_conditions(session.player)
        session.actions_remaining = 0
        if not session.check_combat_end():
            session.current_turn = TurnOwner.ENEMY

    def _enemy_turn_start(self, session: CombatSession):
        """记录本回合眩晕的敌人，结算中毒与计时条件"""
        session.stunned_enemies = set()
        for index, enemy in enumerate(session.enemies):
            if enemy.health <= 0:
                continue

            if conditions.is_stunned(enemy):
                session.stunned_enemies.add(index)
                session.add_log(f"{enemy.name} is stunned and cannot act!")

            poison = conditions.tick_poison_only(enemy)
            enemy.take_damage(poison.damage)
            for message in poison.messages:
                session.add_log(f"[{enemy.name}] {message}")
            if enemy.health <= 0:
                session.add_log(f"{enemy.name} succumbed to poison!")
                if session.check_combat_end():
                    return
                continue

            for message in conditions.tick_timed_only(enemy).messages:
                session.add_log(f"[{enemy.name}] {message}")

    def _enemy_turn_body(self, session: CombatSession):
        ai = OpponentAI(session, self.dice)
        for index, enemy in enumerate(session.enemies):
            if enemy.health <= 0 or index in session.stunned_enemies:
                continue
            ai.take_turn(enemy)
            if session.check_combat_end():
                return

    def _enemy_turn_end(self, session: CombatSession):
        for enemy in session.enemies:
            if enemy.health <= 0:
                continue
            bleed = conditions.tick_bleeding_only(enemy)
            enemy.take_damage(bleed.damage)
            for message in bleed.messages:
                session.add_log(f"[{enemy.name}] {message}")
            if enemy.health <= 0:
                session.add_log(f"{enemy.name} bled out!")
                if session.check_combat_end():
                    return

    # ============================================
    # 私有方法 - 武器解析
    # ============================================

    def _resolve_weapon(
        self,
        player: Player,
        attack: WeaponAttack,
        profile: AbilityProfile,
    ) -> Optional[Tuple[WeaponData, int]]:
        """技能自带武器数据优先，否则取对应手上的武器"""
        if profile.kind == AbilityKind.SHIELD:
            return attack.weapon_data or SHIELD_BASH, player.equipment.off_hand.enhancement_level

        if attack.weapon_data is not None:
            return attack.weapon_data, attack.enhancement_level or 0

        hand = (
            EquipmentSlot.OFF_HAND
            if attack.source_hand == EquipmentSlot.OFF_HAND.value
            else EquipmentSlot.MAIN_HAND
        )
        equipped = get_equipped_weapon(player, hand)
        if equipped is not None:
            return equipped

        armed = get_equipped_weapon(player, EquipmentSlot.MAIN_HAND) or get_equipped_weapon(
            player, EquipmentSlot.OFF_HAND
        )
        if not armed and is_unarmed_attack(attack.name):
            return UNARMED, 0
        return None

    def _hand_prefix(self, player: Player, attack: WeaponAttack) -> str:
        if not attack.source_hand or not is_dual_wielding(player):
            return ""
        if attack.source_hand == EquipmentSlot.OFF_HAND.value:
            return "[off hand] "
        return "[main hand] "

    # ============================================
    # 私有方法 - 命中与伤害
    # ============================================

    def _roll_strike(
        self,
        session: CombatSession,
        target: Enemy,
        strike: _Strike,
        bonus_die_size: int = 0,
    ) -> _StrikeOutcome:
        """
        命中判定 + 伤害结算（不写日志）

        命中：d20 + 攻击加值 + 可靠 + 增益骰 - 虚弱 >= 目标闪避 + 闪避加成
        伤害：暴击或普通骰 + 增益伤害 → 乘数取整 → 减免取整 → 至少 1 → 暴击追加骰
        """
        player = session.player
        attack = strike.attack
        profile = strike.profile

        bonus = (
            player.stats.attack_bonus
            + attack.hit_bonus
            + conditions.get_dependable_bonus(player)
            + weakened_penalty(player)
        )
        roll = self.dice.roll_attack(bonus, profile.crit_threshold)
        buff_dice = get_attack_roll_bonus(player)
        if buff_dice is not None:
            extra = self.dice.roll_total(buff_dice).total
            roll.bonus += extra
            roll.total += extra

        evasion = target.evasion + conditions.get_evasion_bonus(target)
        if roll.total < evasion:
            return _StrikeOutcome(hit=False, critical=False, d20=roll.d20)

        buff_damage = get_damage_bonus(player)
        crit_bonus = 0
        if roll.is_critical:
            crit = self.dice.roll_critical_damage(strike.dice)
            raw = crit.total * profile.crit_multiplier + buff_damage
            buff_text = f" +{buff_damage} (buff)" if buff_damage else ""
            if profile.crit_multiplier > 1:
                info = (
                    f"{attack.name.upper()} CRITICAL! (({crit.max_die} + {crit.extra_roll} + "
                    f"{crit.modifier}) x {profile.crit_multiplier}{buff_text} = {raw})"
                )
            else:
                info = (
                    f"CRITICAL HIT! ({crit.max_die} max + {crit.extra_roll} roll + "
                    f"{crit.modifier}{buff_text} = {raw})"
                )
            if bonus_die_size:
                crit_bonus = sum(self.dice.roll_dice(strike.dice.num_dice, bonus_die_size))
                info += f" + {crit_bonus} bonus"
        else:
            rolled = self.dice.roll_total(strike.dice)
            raw = rolled.total + buff_damage
            buff_text = f"+{buff_damage}" if buff_damage else ""
            info = (
                f"({'+'.join(str(r) for r in rolled.rolls)}+{rolled.modifier}"
                f"{buff_text} = {raw})"
            )

        damage, before, _ = mitigate_damage(raw, player, target, target.damage_reduction)
        # 暴击追加骰为固定加伤，不受乘数与减免影响
        damage += crit_bonus
        before += crit_bonus
        was_alive = target.health > 0
        self._damage_enemy(session, target, damage)

        return _StrikeOutcome(
            hit=True,
            critical=roll.is_critical,
            d20=roll.d20,
            damage=damage,
            before_reduction=before,
            info=info,
            crit_bonus=crit_bonus,
            killed=was_alive and target.health <= 0,
        )

    def _damage_enemy(self, session: CombatSession, enemy: Enemy, amount: int) -> int:
        dealt = enemy.take_damage(amount)
        track_damage(enemy, session.current_round, dealt)
        return dealt

    def _apply_on_hit_condition(
        self,
        session: CombatSession,
        target: Enemy,
        strike: _Strike,
    ) -> Optional[str]:
        """按几率施加技能附带的状态"""
        attack = strike.attack
        if not attack.condition_inflicted or not attack.condition_chance:
            return None
        if target.health <= 0:
            return None

        try:
            condition_type = ConditionType(attack.condition_inflicted)
        except ValueError:
            logger.warning(
                "%s inflicts unknown condition %s", attack.name, attack.condition_inflicted
            )
            return None

        if not self.dice.check_percentage(attack.condition_chance, "condition proc"):
            return None

        display = conditions.get_display_name(condition_type)
        stacks = 1
        if strike.profile.intensify_condition and conditions.has_condition(target, condition_type):
            stacks = math.ceil(1 * 1.5)
            session.add_log(f"{attack.name} intensifies {display} on {target.name}! +50% stacks!")

        conditions.apply_condition(target, condition_type, attack.condition_duration or 1, stacks)
        session.add_log(f"{target.name} is afflicted with {display}!")
        return condition_type.value

    def _apply_cleave(
        self,
        session: CombatSession,
        primary_index: int,
        primary_damage: int,
        attack: WeaponAttack,
    ) -> int:
        """
        溅射：其余存活敌人各受 floor(主目标伤害 × 比例)，无命中判定

        Returns:
            int: 溅射总伤害
        """
        cleave_damage = math.floor(primary_damage * attack.cleave)
        others = [
            enemy
            for index, enemy in enumerate(session.enemies)
            if index != primary_index and enemy.health > 0
        ]
        if not others:
            return 0

        session.add_log(
            f"{attack.name} cleaves through {len(others)} other enemies "
            f"for {cleave_damage} damage each!"
        )
        for enemy in others:
            self._damage_enemy(session, enemy, cleave_damage)
            session.add_log(f"{enemy.name} takes {cleave_damage} cleave damage")
            if enemy.health <= 0:
                session.add_log(f"{enemy.name} has been defeated!")
        return cleave_damage * len(others)

    def _single_strike(
        self,
        session: CombatSession,
        target: Enemy,
        strike: _Strike,
        label: str,
    ) -> _StrikeOutcome:
        """组合技能中的一击，每击一行日志"""
        outcome = self._roll_strike(session, target, strike)
        if not outcome.hit:
            session.add_log(f"{label}: Miss!")
            return outcome

        session.add_log(f"{label}: {outcome.damage} damage to {target.name}")
        outcome.condition = self._apply_on_hit_condition(session, target, strike)
        if outcome.killed:
            session.add_log(f"{target.name} has been defeated!")
        return outcome

    def _primary_strike(
        self,
        session: CombatSession,
        target_index: int,
        strike: _Strike,
        hit_headline: str = "{prefix}You hit {target} with {name}!",
        miss_line: str = "{prefix}You swing and miss!",
        after_hit: Optional[Callable[[Enemy, _StrikeOutcome, AttackResult], None]] = None,
    ) -> AttackResult:
        """
        单目标主攻击

        命中后依次：日志 → 附加状态 → after_hit → 一次性标记 → 阵亡 → 溅射
        """
        target = session.enemies[target_index]
        attack = strike.attack
        names = {"prefix": strike.hand_prefix, "target": target.name, "name": attack.name}

        outcome = self._roll_strike(
            session, target, strike, bonus_die_size=strike.profile.bonus_die_size
        )
        if not outcome.hit:
            message = f"{miss_line.format(**names)} (-{attack.stamina_cost} stamina)"
            session.add_log(message)
            return AttackResult(hit=False, attack_roll=outcome.d20, message=message)

        if outcome.crit_bonus:
            session.add_log(
                f"{attack.name} critical! Rolling {strike.dice.num_dice}d"
                f"{strike.profile.bonus_die_size} bonus damage: {outcome.crit_bonus}"
            )

        message = (
            f"{hit_headline.format(**names)} {outcome.info} -> {outcome.damage} damage "
            f"(-{attack.stamina_cost} stamina)"
        )
        session.add_log(message)
        result = self._to_result(outcome, target, message)
        result.condition_applied = self._apply_on_hit_condition(session, target, strike)

        if after_hit is not None:
            after_hit(target, outcome, result)

        if strike.profile.once_per_target and outcome.critical:
            target.backstab_used = True

        if target.health <= 0:
            session.add_log(f"{target.name} has been defeated!")
            result.target_defeated = True
        result.target_health = target.health

        if attack.cleave:
            self._apply_cleave(session, target_index, outcome.damage, attack)
        return result

    def _to_result(self, outcome: _StrikeOutcome, target: Enemy, message: str) -> AttackResult:
        return AttackResult(
            hit=outcome.hit,
            critical=outcome.critical,
            attack_roll=outcome.d20,
            damage=outcome.damage,
            damage_before_reduction=outcome.before_reduction,
            message=message,
            target_health=target.health,
            target_defeated=target.health <= 0,
            condition_applied=outcome.condition,
        )

    def _summary_result(
        self,
        outcomes: List[_StrikeOutcome],
        total: int,
        message: str,
    ) -> AttackResult:
        """组合技能的汇总结果"""
        hits = [o for o in outcomes if o.hit]
        return AttackResult(
            hit=bool(hits),
            critical=any(o.critical for o in hits),
            attack_roll=outcomes[0].d20 if outcomes else 0,
            damage=total,
            damage_before_reduction=sum(o.before_reduction for o in hits),
            message=message,
            condition_applied=next((o.condition for o in hits if o.condition), None),
        )

    # ============================================
    # 私有方法 - 技能策略
    # ============================================

    def _execute_standard(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """普通攻击：一次命中、一次伤害、附加状态、溅射"""
        return self._primary_strike(session, target_index, strike)

    def _execute_multi_strike(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """
        连续 N 次独立攻击

        目标中途死亡或某一击未命中都不会提前结束。
        """
        attack = strike.attack
        count = strike.profile.strikes
        label = strike.profile.strike_label or f"{attack.name} strike"
        target = session.enemies[target_index]

        session.add_log(f"Executing {attack.name} - {count} consecutive attacks!")
        outcomes = [
            self._single_strike(session, target, strike, f"{label} {i + 1}")
            for i in range(count)
        ]
        total = sum(o.damage for o in outcomes)
        message = f"{attack.name} complete! Total: {total} damage"
        session.add_log(message)

        result = self._summary_result(outcomes, total, message)
        result.target_health = target.health
        result.target_defeated = target.health <= 0
        return result

    def _execute_chained_strike(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """第一击命中且目标存活时才触发第二击"""
        attack = strike.attack
        target = session.enemies[target_index]

        first = self._single_strike(session, target, strike, f"{attack.name} first strike")
        outcomes = [first]
        if first.hit and target.health > 0:
            session.add_log("Second strike triggered!")
            outcomes.append(
                self._single_strike(session, target, strike, f"{attack.name} second strike")
            )

        total = sum(o.damage for o in outcomes)
        message = f"{attack.name} complete! Total: {total} damage"
        session.add_log(message)

        result = self._summary_result(outcomes, total, message)
        result.target_health = target.health
        result.target_defeated = target.health <= 0
        return result

    def _execute_aoe_all(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """对每个存活敌人各一次独立攻击"""
        attack = strike.attack
        session.add_log(f"{attack.name} strikes all enemies!")

        outcomes = []
        for enemy in session.enemies:
            if enemy.health <= 0:
                continue
            outcomes.append(
                self._single_strike(session, enemy, strike, f"{attack.name} on {enemy.name}")
            )

        total = sum(o.damage for o in outcomes)
        message = f"{attack.name} complete! Total: {total} damage across all enemies"
        session.add_log(message)
        return self._summary_result(outcomes, total, message)

    def _execute_aoe_sweep(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """
        N 轮横扫，每轮攻击所有存活敌人

        总命中数达到阈值时给玩家加闪避。
        """
        attack = strike.attack
        profile = strike.profile
        session.add_log(f"{attack.name} - {profile.strikes} sweeping strikes to all enemies!")

        outcomes: List[_StrikeOutcome] = []
        for sweep in range(1, profile.strikes + 1):
            session.add_log(f"Sweep {sweep}:")
            for enemy in session.enemies:
                if enemy.health <= 0:
                    continue
                outcomes.append(
                    self._single_strike(session, enemy, strike, f"Sweep {sweep} on {enemy.name}")
                )

        total_hits = sum(1 for o in outcomes if o.hit)
        if profile.momentum_condition and total_hits >= profile.momentum_min_hits:
            condition_type, duration, stacks = profile.momentum_condition
            conditions.apply_condition(session.player, condition_type, duration, stacks)
            session.add_log(
                f"{attack.name} momentum! Evasion raised by "
                f"+{stacks * conditions.EVASION_PER_STACK} for {duration} rounds!"
            )

        total = sum(o.damage for o in outcomes)
        message = f"{attack.name} complete! Total: {total} damage"
        session.add_log(message)
        return self._summary_result(outcomes, total, message)

    def _execute_kill_bonus(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """
        主攻击（+溅射）造成击杀时，按几率对随机存活敌人追加一次免费攻击

        追加攻击本身的击杀不再触发。
        """
        attack = strike.attack
        target = session.enemies[target_index]
        alive_before: Set[int] = {
            index for index, enemy in enumerate(session.enemies) if enemy.health > 0
        }

        session.add_log(f"{attack.name} - savage strike on {target.name}!")
        primary = self._single_strike(session, target, strike, f"{attack.name} (primary)")
        outcomes = [primary]
        total = primary.damage

        if primary.hit and attack.cleave:
            total += self._apply_cleave(session, target_index, primary.damage, attack)

        killed = any(session.enemies[index].health <= 0 for index in alive_before)
        if killed and self.dice.check_percentage(
            strike.profile.bonus_strike_chance, f"{attack.name} proc"
        ):
            living = session.get_living_enemies()
            if living:
                bonus_target = living[self.dice.random_int(0, len(living) - 1, "bonus target")]
                session.add_log(
                    f"{attack.name} procs! Bonus Savage Strike on {bonus_target.name} "
                    f"(no stamina cost)!"
                )
                bonus = self._single_strike(session, bonus_target, strike, "Bonus Savage Strike")
                outcomes.append(bonus)
                total += bonus.damage

        message = f"{attack.name} complete! Total: {total} damage"
        session.add_log(message)
        result = self._summary_result(outcomes, total, message)
        result.target_health = target.health
        result.target_defeated = target.health <= 0
        return result

    def _execute_finisher(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """低暴击阈值；暴击低血量目标时按几率直接斩杀"""
        profile = strike.profile

        def execute(target: Enemy, outcome: _StrikeOutcome, result: AttackResult):
            if not outcome.critical or target.health <= 0:
                return
            if target.health >= target.max_health * profile.execute_health_fraction:
                return
            if self.dice.check_percentage(profile.execute_chance, "execute"):
                target.health = 0
                session.add_log(f"DECAPITATION! {target.name} is instantly killed!")

        return self._primary_strike(
            session,
            target_index,
            strike,
            hit_headline="{prefix}{name} strikes {target}!",
            after_hit=execute,
        )

    def _execute_lifesteal(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """命中带指定状态的目标时按伤害比例回血"""
        profile = strike.profile
        attack = strike.attack

        def drain(target: Enemy, outcome: _StrikeOutcome, result: AttackResult):
            if not conditions.has_condition(target, profile.lifesteal_condition):
                return
            healed = session.player.heal(math.floor(outcome.damage * profile.lifesteal_fraction))
            result.healing = healed
            if healed > 0:
                display = conditions.get_display_name(profile.lifesteal_condition).lower()
                session.add_log(f"{attack.name}: Healed {healed} HP from {display} target!")

        return self._primary_strike(session, target_index, strike, after_hit=drain)

    def _execute_bonus_dice_crit(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """暴击时追加同数量、不同面数的骰子作为固定加伤"""
        return self._primary_strike(
            session, target_index, strike, hit_headline="{prefix}{name} hits {target}!"
        )

    def _execute_shield(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """
        盾牌技能

        减伤层数 = 1 + 副手强化等级 // 2，持续到下个玩家回合开始。
        """
        attack = strike.attack
        player = session.player
        stacks = 1 + player.equipment.off_hand.enhancement_level // 2
        conditions.apply_condition(player, ConditionType.RAISE_DEFENCE, 1, stacks)
        percent = round(stacks * conditions.DEFENCE_PER_STACK * 100)
        message = f"{attack.name}: Damage reduction +{percent}% until your next turn!"
        session.add_log(message)

        if not strike.profile.performs_strike:
            return AttackResult(hit=False, message=message)

        return self._primary_strike(
            session,
            target_index,
            strike,
            hit_headline="{name} hits {target}!",
            miss_line="{name} misses!",
        )

    def _execute_buff_strike(
        self, session: CombatSession, target_index: int, strike: _Strike
    ) -> AttackResult:
        """先给自己加状态，再进行一次普通攻击"""
        attack = strike.attack
        for condition_type, duration, stacks in strike.profile.self_conditions:
            conditions.apply_condition(session.player, condition_type, duration, stacks)
            session.add_log(
                f"{attack.name}: {self._describe_self_buff(condition_type, stacks)} "
                f"for {duration} turn{'s' if duration > 1 else ''}!"
            )

        return self._primary_strike(
            session,
            target_index,
            strike,
            hit_headline="{prefix}{name} hits {target}!",
            miss_line="{prefix}{name} misses!",
        )

    def _describe_self_buff(self, condition_type: ConditionType, stacks: int) -> str:
        if condition_type == ConditionType.RAISE_EVASION:
            return f"+{stacks * conditions.EVASION_PER_STACK} evasion"
        if condition_type == ConditionType.RAISE_DEFENCE:
            return f"+{round(stacks * conditions.DEFENCE_PER_STACK * 100)}% damage reduction"
        if condition_type == ConditionType.DEPENDABLE:
            return f"+{conditions.DEPENDABLE_ATTACK_BONUS} to attack rolls"
        return conditions.get_display_name(condition_type)

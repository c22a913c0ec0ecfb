"""
战斗系统命令行演示

使用方式:
    python -m delve.combat.demo [seed] [weapon_id]
    python -m delve.combat.demo 42 dagger_basic
"""
import logging
import sys
from typing import Optional

from ..config import configure_logging, validate_config
from .combat_engine import CombatEngine
from .dice import DiceRoller
from .enemy_registry import create_enemy, load_configured_templates
from .equipment import (
    decay_armor_after_combat,
    decay_weapons_after_combat,
    get_weapon,
    unequip_broken_items,
)
from .models.combat_session import CombatSession
from .models.specs import EquippedItemSpec, InventoryItemSpec, PlayerSpec
from .rules import calculate_hit_chance

logger = logging.getLogger(__name__)

DEFAULT_WEAPON = "shortsword_basic"
MAX_ROUNDS = 50


def build_demo_player(weapon_id: str = DEFAULT_WEAPON):
    """默认冒险者：一把武器 + 皮甲 + 两瓶药水"""
    if get_weapon(weapon_id) is None:
        raise ValueError(f"Unknown weapon: {weapon_id}")
    spec = PlayerSpec(
        name="Wanderer",
        health=100,
        max_health=100,
        main_hand=EquippedItemSpec(item_id=weapon_id, enhancement_level=2),
        chest=EquippedItemSpec(item_id="chest_leather"),
        inventory=[InventoryItemSpec(item_id="potion_health", quantity=2)],
    )
    return spec.to_player()


def run_demo(seed: Optional[int] = 42, weapon_id: str = DEFAULT_WEAPON) -> CombatSession:
    """
    自动进行一场战斗

    玩家每次使用第一个体力足够的技能攻击第一个存活的敌人。

    Returns:
        CombatSession: 结束后的会话
    """
    engine = CombatEngine(DiceRoller(seed=seed))
    player = build_demo_player(weapon_id)
    enemies = [create_enemy("void_spawn", 1), create_enemy("skitterthid", 2)]
    session = engine.initiate_combat(player, enemies)

    while not session.is_complete and session.current_round <= MAX_ROUNDS:
        if engine.is_player_turn():
            attack = next(
                (a for a in engine.get_available_attacks() if a.stamina_cost <= session.player.stamina),
                None,
            )
            target = next(i for i, e in enumerate(session.enemies) if e.health > 0)
            actions_before = session.actions_remaining
            if attack is not None:
                engine.player_attack(target, attack)
            # 非法行动不消耗行动点
            if engine.is_player_turn() and session.actions_remaining == actions_before:
                engine.end_player_turn()
        else:
            engine.enemy_turn()

    if not session.is_complete:
        logger.warning("demo stopped after %s rounds without a winner", MAX_ROUNDS)

    player = session.player
    for message in decay_weapons_after_combat(player) + decay_armor_after_combat(player):
        session.add_log(message)
    for message in unequip_broken_items(player):
        session.add_log(message)

    engine.end_combat()
    return session


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    configure_logging()
    validate_config()
    load_configured_templates()

    seed = int(argv[0]) if argv else 42
    weapon_id = argv[1] if len(argv) > 1 else DEFAULT_WEAPON

    try:
        preview = build_demo_player(weapon_id)
    except ValueError as exc:
        print(exc)
        return 1

    target = create_enemy("void_spawn")
    chance = calculate_hit_chance(preview.stats.attack_bonus, target.evasion)
    print(f"=== {preview.name} ({weapon_id}) vs Void Spawn + Skitterthid, seed {seed} ===")
    print(f"Hit chance vs {target.name}: {chance:.0%}")

    session = run_demo(seed, weapon_id)
    for line in session.combat_log:
        print(line)

    print()
    print(f"Rounds: {session.current_round}")
    print(f"Result: {'Victory' if session.player_victory else 'Defeat'}")
    print(f"HP {session.player.health}/{session.player.max_health}, "
          f"stamina {session.player.stamina}/{session.player.max_stamina}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

from delve.combat import attack_catalog, buffs, conditions
from delve.combat.attack_catalog import AbilityKind, AbilityProfile
from delve.combat.combat_engine import CombatEngine, scale_dice
from delve.combat.models.action import DamageDice, WeaponAttack, WeaponData
from delve.combat.models.combat_session import TurnOwner
from delve.combat.models.combatant import ConditionType, Enemy, EquippedItem, Player

BLADE = WeaponData(id="test_blade", name="Test Blade", type="shortsword", damage=DamageDice(1, 6, 2))


def _attack(name="Light Attack", **kwargs) -> WeaponAttack:
    kwargs.setdefault("weapon_data", BLADE)
    kwargs.setdefault("enhancement_level", 0)
    return WeaponAttack(name=name, **kwargs)


def _player(**kwargs) -> Player:
    player = Player(id="player", name="Hero", health=100, max_health=100, **kwargs)
    player.stats.attack_bonus = 0
    player.stats.calculated_evasion = 10
    player.stats.damage_reduction = 0.0
    return player


def _enemy(index=0, health=30, evasion=10, **kwargs) -> Enemy:
    return Enemy(
        id=f"dummy_{index}",
        name=f"Dummy {index}",
        health=health,
        max_health=kwargs.pop("max_health", health),
        evasion=evasion,
        archetype="training_dummy",
        **kwargs,
    )


def _start(scripted, ints=(), floats=(), enemies=None, player=None):
    dice, rng = scripted(ints=ints, floats=floats)
    engine = CombatEngine(dice)
    session = engine.initiate_combat(player or _player(), enemies or [_enemy()])
    return engine, session, rng


# ============================================
# 初始化
# ============================================


def test_initiate_combat_copies_inputs(scripted):
    player = _player()
    conditions.apply_condition(player, ConditionType.POISONED, 3, 2)
    enemy = _enemy()
    engine, session, _ = _start(scripted, player=player, enemies=[enemy])

    assert session.player is not player
    assert session.enemies[0] is not enemy
    assert session.player.status_conditions == []
    assert player.status_conditions  # 原对象不变
    assert session.current_turn == TurnOwner.PLAYER
    assert session.actions_remaining == 2
    assert session.current_round == 1
    assert session.combat_log == ["Combat has begun!"]
    assert engine.is_player_turn()


def test_initiate_without_enemies_is_complete(scripted):
    dice, _ = scripted()
    engine = CombatEngine(dice)
    session = engine.initiate_combat(_player(), [])
    assert session.is_complete
    assert engine.get_combat_state() is None
    assert engine.player_attack(0, _attack()).message == "No active combat!"


def test_initiate_prunes_expired_buffs(scripted):
    player = _player()
    buffs.add_buff(player, buffs.create_buff("enraged_spirit", now=0))
    _, session, _ = _start(scripted, player=player)
    assert session.player.active_buffs == []


# ============================================
# 基础攻击
# ============================================


def test_scenario_standard_hit(scripted):
    engine, session, _ = _start(scripted, ints=[15, 2])

    result = engine.player_attack(0, _attack())

    assert result.hit is True
    assert result.critical is False
    assert result.damage == 4
    assert result.attack_roll == 15
    assert session.enemies[0].health == 26
    assert session.player.stamina == 95
    assert session.actions_remaining == 1
    assert session.current_turn == TurnOwner.PLAYER
    assert session.combat_log[-1] == (
        "You hit Dummy 0 with Light Attack! (2+2 = 4) -> 4 damage (-5 stamina)"
    )


def test_miss_still_costs_stamina(scripted):
    engine, session, _ = _start(scripted, ints=[3])
    result = engine.player_attack(0, _attack())
    assert result.hit is False
    assert session.enemies[0].health == 30
    assert session.player.stamina == 95
    assert session.combat_log[-1] == "You swing and miss! (-5 stamina)"


def test_critical_hit(scripted):
    engine, session, _ = _start(scripted, ints=[20, 3])
    result = engine.player_attack(0, _attack())
    assert result.critical is True
    assert result.damage == 11
    assert "CRITICAL HIT! (6 max + 3 roll + 2 = 11)" in session.combat_log[-1]


def test_damage_floor_and_reduction_cap(scripted):
    enemy = _enemy(damage_reduction=0.9)
    conditions.apply_condition(enemy, ConditionType.RAISE_DEFENCE, 2, 5)
    engine, session, _ = _start(scripted, ints=[15, 1], enemies=[enemy])

    result = engine.player_attack(0, _attack())
    # 3 * (1 - 0.95) 向下取整为 0，命中至少 1
    assert result.damage == 1
    assert result.damage_before_reduction == 3


def test_weakened_and_empowered_modifiers(scripted):
    engine, session, _ = _start(scripted, ints=[15, 6, 15, 6])
    conditions.apply_condition(session.player, ConditionType.EMPOWERED, 3)
    assert engine.player_attack(0, _attack()).damage == 10

    conditions.apply_condition(session.player, ConditionType.WEAKENED, 3)
    # 8 * 0.9 * 1.25 = 9；命中骰 15 - 2
    result = engine.player_attack(0, _attack())
    assert result.damage == 9


def test_buffs_add_roll_and_damage(scripted):
    player = _player()
    buffs.add_buff(player, buffs.create_buff("enraged_spirit"))
    buffs.add_buff(player, buffs.create_buff("catriena_blessing"))
    # d20=7, 祝福 1d4=3 → 10 命中；伤害 2+2+5
    engine, session, _ = _start(scripted, ints=[7, 3, 2], player=player)

    result = engine.player_attack(0, _attack())
    assert result.hit is True
    assert result.damage == 9
    assert "(2+2+5 = 9)" in session.combat_log[-1]


def test_damage_multiplier_scales_dice():
    assert scale_dice(DamageDice(1, 8, 3), 1.5) == DamageDice(1, 8, 4)
    assert scale_dice(DamageDice(2, 6, 6), 1.5) == DamageDice(3, 6, 9)
    assert scale_dice(DamageDice(1, 6, 2), 1) == DamageDice(1, 6, 2)


def test_condition_proc_applies_on_hit(scripted):
    attack = _attack(
        "Rend", condition_inflicted="bleeding", condition_chance=50, condition_duration=3
    )
    engine, session, _ = _start(scripted, ints=[15, 2], floats=[0.3])
    result = engine.player_attack(0, attack)

    assert result.condition_applied == "bleeding"
    bleeding = conditions.get_condition(session.enemies[0], ConditionType.BLEEDING)
    assert (bleeding.stacks, bleeding.duration) == (1, 3)
    assert "Dummy 0 is afflicted with Bleeding!" in session.combat_log


def test_condition_proc_skipped_on_kill(scripted):
    attack = _attack("Concussive Blow", condition_inflicted="stunned", condition_chance=100)
    engine, session, rng = _start(scripted, ints=[15, 6], enemies=[_enemy(health=5), _enemy(1)])
    engine.player_attack(0, attack)
    assert rng.float_calls == 0
    assert "Dummy 0 has been defeated!" in session.combat_log


def test_hydras_strike_intensifies_poison(scripted):
    attack = _attack(
        "Hydras Strike", condition_inflicted="poisoned", condition_chance=40, condition_duration=3
    )
    engine, session, _ = _start(scripted, ints=[15, 2], floats=[0.1])
    conditions.apply_condition(session.enemies[0], ConditionType.POISONED, 3, 1)

    engine.player_attack(0, attack)
    assert conditions.get_total_stacks(session.enemies[0], ConditionType.POISONED) == 3
    assert "Hydras Strike intensifies Poisoned on Dummy 0! +50% stacks!" in session.combat_log


# ============================================
# 非法行动
# ============================================


def test_illegal_actions_do_not_mutate(scripted):
    engine, session, rng = _start(scripted)

    assert engine.player_attack(5, _attack()).message == "Invalid target!"
    assert engine.player_attack(0, _attack(stamina_cost=500)).message == (
        "Not enough stamina to attack!"
    )
    assert engine.player_attack(0, _attack("Shield Wall")).message == "No shield equipped!"
    assert engine.player_attack(0, _attack(weapon_data=None)).message == (
        "No weapon equipped!"
    )

    assert session.player.stamina == 100
    assert session.actions_remaining == 2
    assert session.combat_log == ["Combat has begun!"]
    assert rng.int_calls == []


def test_malformed_calls_degrade_to_failed_result(scripted):
    engine, session, rng = _start(scripted)

    for index in (None, "0", 0.5, True):
        result = engine.player_attack(index, _attack())
        assert result.hit is False
        assert result.message == "Invalid target!"
    assert engine.player_attack(0, None).message == "No attack selected!"

    assert session.player.stamina == 100
    assert session.combat_log == ["Combat has begun!"]
    assert rng.int_calls == []


def test_stunned_player_cannot_attack(scripted):
    engine, session, _ = _start(scripted)
    conditions.apply_condition(session.player, ConditionType.STUNNED, 1)
    assert engine.player_attack(0, _attack()).message == "You are stunned and cannot attack!"


def test_dead_target_is_invalid(scripted):
    engine, session, _ = _start(scripted, enemies=[_enemy(), _enemy(1)])
    session.enemies[0].health = 0
    assert engine.player_attack(0, _attack()).message == "Invalid target!"


def test_not_player_turn(scripted):
    engine, session, _ = _start(scripted)
    engine.end_player_turn()
    assert engine.player_attack(0, _attack()).message == "Not player turn!"
    assert engine.end_player_turn() is False


def test_attack_by_name_checks_equipment(scripted):
    player = _player()
    player.equipment.main_hand = EquippedItem("dagger_basic")
    engine, session, _ = _start(scripted, ints=[15, 1], player=player)

    result = engine.attack_by_name(0, "Shield Slam")
    assert result.message == "Shield Slam is not available with your equipment!"

    result = engine.attack_by_name(0, "Light Attack")
    assert result.damage == 4
    assert [a.name for a in engine.get_available_attacks()] == [
        "Light Attack",
        "Backstab",
        "Hydras Strike",
    ]


def test_attack_by_name_picks_hand(scripted):
    player = _player()
    player.equipment.main_hand = EquippedItem("dagger_basic")
    player.equipment.off_hand = EquippedItem("dagger_basic", enhancement_level=2)
    engine, session, _ = _start(scripted, ints=[15, 1, 15, 1], player=player)

    # 1d4+3 主手，强化 2 的副手为 1d4+4
    assert engine.attack_by_name(0, "Light Attack").damage == 4
    assert engine.attack_by_name(0, "Light Attack", source_hand="off_hand").damage == 5
    assert session.enemies[0].health == 21


# ============================================
# 回合流程
# ============================================


def test_turn_exhaustion_switches_to_enemy(scripted):
    engine, session, _ = _start(scripted, ints=[15, 2, 15, 2])
    engine.player_attack(0, _attack())
    engine.player_attack(0, _attack())

    assert session.current_turn == TurnOwner.ENEMY
    assert session.actions_remaining == 0
    assert not engine.is_player_turn()


def test_two_action_ability_ends_turn(scripted):
    engine, session, _ = _start(scripted, ints=[15, 2])
    engine.player_attack(0, _attack("Heavy Swing", action_cost=2, stamina_cost=12))
    assert session.current_turn == TurnOwner.ENEMY


def test_enemy_turn_runs_full_phase(scripted):
    engine, session, _ = _start(scripted, ints=[1])
    engine.end_player_turn()

    log = engine.enemy_turn()
    assert log == ["Dummy 0 swings and misses! (Rolled 1+3=4 vs Evasion 10)"]
    assert session.current_round == 2
    assert session.current_turn == TurnOwner.PLAYER
    assert session.actions_remaining == 2


def test_enemy_turn_out_of_order(scripted):
    engine, _, _ = _start(scripted)
    assert engine.enemy_turn() == ["Not enemy turn!"]


def test_stunned_enemy_skips_turn(scripted):
    engine, session, rng = _start(scripted)
    conditions.apply_condition(session.enemies[0], ConditionType.STUNNED, 1)
    engine.end_player_turn()

    log = engine.enemy_turn()
    assert log == ["Dummy 0 is stunned and cannot act!", "[Dummy 0] Stunned wore off"]
    assert rng.int_calls == []
    assert not conditions.is_stunned(session.enemies[0])
    assert session.current_turn == TurnOwner.PLAYER


def test_stunned_player_skips_turn(scripted):
    engine, session, _ = _start(scripted, ints=[1])
    engine.end_player_turn()
    conditions.apply_condition(session.player, ConditionType.STUNNED, 1)

    engine.enemy_turn()
    assert "You are stunned and cannot act!" in session.combat_log
    assert "[Player] Stunned wore off" in session.combat_log
    assert session.current_turn == TurnOwner.ENEMY
    assert session.actions_remaining == 0


def test_slowed_player_gets_one_action(scripted):
    engine, session, _ = _start(scripted, ints=[1])
    engine.end_player_turn()
    conditions.apply_condition(session.player, ConditionType.SLOWED, 2)

    engine.enemy_turn()
    assert session.actions_remaining == 1
    assert "You are slowed! Only 1 action this turn." in session.combat_log


def test_player_conditions_tick_at_turn_start(scripted):
    engine, session, _ = _start(scripted, ints=[1])
    engine.end_player_turn()
    conditions.apply_condition(session.player, ConditionType.POISONED, 3, 2)

    engine.enemy_turn()
    assert session.player.health == 94
    assert "[Player] Poisoned: 6 damage (2 stacks)" in session.combat_log


def test_poison_ticks_before_enemy_acts(scripted):
    enemy = _enemy(health=3)
    engine, session, rng = _start(scripted, enemies=[enemy])
    conditions.apply_condition(session.enemies[0], ConditionType.POISONED, 3, 1)
    engine.end_player_turn()

    log = engine.enemy_turn()
    assert log == [
        "[Dummy 0] Poisoned: 3 damage (1 stack)",
        "Dummy 0 succumbed to poison!",
        "Victory! All enemies defeated!",
    ]
    assert rng.int_calls == []
    assert session.is_complete and session.player_victory


def test_bleeding_ticks_after_enemy_acts(scripted):
    engine, session, _ = _start(scripted, ints=[1], enemies=[_enemy(health=2)])
    conditions.apply_condition(session.enemies[0], ConditionType.BLEEDING, 3, 1)
    engine.end_player_turn()

    log = engine.enemy_turn()
    assert log[0].startswith("Dummy 0 swings and misses!")
    assert log[1:] == [
        "[Dummy 0] Bleeding: 2 damage (1 stack)",
        "Dummy 0 bled out!",
        "Victory! All enemies defeated!",
    ]


def test_player_defeat(scripted):
    engine, session, _ = _start(scripted, ints=[15, 6])
    session.player.health = 3
    engine.end_player_turn()
    engine.enemy_turn()
    assert session.is_complete
    assert session.player_victory is False
    assert session.player.health == 0
    assert session.combat_log[-1] == "You have been defeated..."


def test_combat_termination_is_final(scripted):
    engine, session, _ = _start(scripted, ints=[20, 6], enemies=[_enemy(health=5)])
    engine.player_attack(0, _attack())

    assert session.is_complete and session.player_victory
    assert engine.is_combat_complete()
    assert engine.player_attack(0, _attack()).message == "Combat is over!"
    assert engine.enemy_turn() == []
    assert engine.update_player_health(1) is False
    assert session.combat_log.count("Victory! All enemies defeated!") == 1

    engine.end_combat()
    assert engine.get_combat_state() is None


def test_update_player_health_and_stamina_clamp(scripted):
    engine, session, _ = _start(scripted)
    engine.update_player_health(500)
    engine.update_player_stamina(-10)
    assert session.player.health == 100
    assert session.player.stamina == 0

    engine.update_player_health(0)
    assert session.is_complete and not session.player_victory


def test_dependable_expires_after_next_turn(scripted):
    engine, session, _ = _start(scripted, ints=[5, 2, 1])
    result = engine.player_attack(0, _attack("Dependable Strike", stamina_cost=8))
    # 5 + 0 + 5 = 10 刚好命中
    assert result.hit is True
    engine.end_player_turn()
    assert conditions.has_condition(session.player, ConditionType.DEPENDABLE)

    engine.enemy_turn()
    engine.end_player_turn()
    assert not conditions.has_condition(session.player, ConditionType.DEPENDABLE)


# ============================================
# 技能类型
# ============================================


def test_multi_strike_continues_after_kill(scripted):
    enemies = [_enemy(health=1), _enemy(1)]
    engine, session, _ = _start(scripted, ints=[15, 4, 15, 3, 2], enemies=enemies)

    result = engine.player_attack(0, _attack("Puncture", action_cost=2, stamina_cost=15))

    strikes = [line for line in session.combat_log if line.startswith("Puncture strike")]
    assert strikes == [
        "Puncture strike 1: 6 damage to Dummy 0",
        "Puncture strike 2: 5 damage to Dummy 0",
        "Puncture strike 3: Miss!",
    ]
    assert session.combat_log.count("Dummy 0 has been defeated!") == 1
    assert result.damage == 11
    assert "Executing Puncture - 3 consecutive attacks!" in session.combat_log
    assert session.combat_log[-1] == "Puncture complete! Total: 11 damage"


def test_chained_strike_stops_on_miss(scripted):
    engine, session, rng = _start(scripted, ints=[2])
    result = engine.player_attack(0, _attack("Vipers Fangs"))

    assert result.damage == 0
    assert "Second strike triggered!" not in session.combat_log
    assert len(rng.int_calls) == 1
    assert session.combat_log[-1] == "Vipers Fangs complete! Total: 0 damage"


def test_chained_strike_second_hit(scripted):
    engine, session, _ = _start(scripted, ints=[15, 1, 15, 2])
    result = engine.player_attack(0, _attack("Vipers Fangs"))
    assert result.damage == 7
    assert "Second strike triggered!" in session.combat_log
    assert session.enemies[0].health == 23


def test_cleave_hits_each_other_enemy_for_floor(scripted):
    for hand in ("main_hand", "off_hand"):
        enemies = [_enemy(0), _enemy(1), _enemy(2)]
        engine, session, _ = _start(scripted, ints=[15, 5], enemies=enemies)
        result = engine.player_attack(0, _attack("Sweeping Strike", cleave=0.75, source_hand=hand))

        assert result.damage == 7
        assert session.enemies[0].health == 23
        assert session.enemies[1].health == 25
        assert session.enemies[2].health == 25


def test_cleave_kill_ends_combat(scripted):
    enemies = [_enemy(0, health=5), _enemy(1, health=3)]
    engine, session, _ = _start(scripted, ints=[15, 5], enemies=enemies)
    engine.player_attack(0, _attack("Sweeping Strike", cleave=0.75))

    # 主目标 7 伤害阵亡，溅射 floor(7 x 0.75) = 5 击杀最后一个敌人
    assert session.is_complete and session.player_victory
    assert session.combat_log[-3:] == [
        "Dummy 1 takes 5 cleave damage",
        "Dummy 1 has been defeated!",
        "Victory! All enemies defeated!",
    ]
    assert session.combat_log.count("Victory! All enemies defeated!") == 1


def test_backstab_crit_and_once_per_target(scripted):
    engine, session, _ = _start(scripted, ints=[19, 3], enemies=[_enemy(health=40)])
    result = engine.player_attack(0, _attack("Backstab", stamina_cost=10))

    # (6 + 3 + 2) x 2
    assert result.critical is True
    assert result.damage == 22
    assert session.enemies[0].backstab_used is True
    assert "BACKSTAB CRITICAL!" in session.combat_log[-1]

    blocked = engine.player_attack(0, _attack("Backstab", stamina_cost=10))
    assert blocked.message == "Backstab already used on this target (unless stunned)!"

    conditions.apply_condition(session.enemies[0], ConditionType.STUNNED, 1)
    assert engine.player_attack(0, _attack("Backstab", stamina_cost=10)).message != blocked.message


def test_backstab_normal_hit_does_not_mark(scripted):
    engine, session, _ = _start(scripted, ints=[15, 3])
    engine.player_attack(0, _attack("Backstab", stamina_cost=10))
    assert session.enemies[0].backstab_used is False


def test_aoe_all_strikes_each_living_enemy(scripted):
    enemies = [_enemy(0), _enemy(1), _enemy(2)]
    engine, session, _ = _start(scripted, ints=[15, 1, 15, 2], enemies=enemies)
    session.enemies[1].health = 0

    result = engine.player_attack(0, _attack("Arcing Blade", action_cost=2, stamina_cost=15))
    assert session.enemies[0].health == 27
    assert session.enemies[2].health == 26
    assert result.damage == 7
    assert "Arcing Blade on Dummy 1" not in " ".join(session.combat_log)
    assert session.combat_log[-1] == "Arcing Blade complete! Total: 7 damage across all enemies"


def test_aoe_sweep_momentum(scripted):
    enemies = [_enemy(0), _enemy(1)]
    ints = [15, 1, 2, 2, 2, 2, 2]
    engine, session, _ = _start(scripted, ints=ints, enemies=enemies)

    engine.player_attack(0, _attack("Spinning Flurry", action_cost=2, stamina_cost=20))

    assert session.enemies[0].health == 27
    assert session.combat_log.count("Sweep 1:") == 1
    assert "Sweep 3:" in session.combat_log
    assert not conditions.has_condition(session.player, ConditionType.RAISE_EVASION)


def test_aoe_sweep_momentum_grants_evasion(scripted):
    engine, session, _ = _start(scripted, ints=[15, 1, 15, 1, 2])
    engine.player_attack(0, _attack("Spinning Flurry", action_cost=2, stamina_cost=20))

    evasion = conditions.get_condition(session.player, ConditionType.RAISE_EVASION)
    assert (evasion.stacks, evasion.duration) == (1, 2)
    assert "Spinning Flurry momentum! Evasion raised by +3 for 2 rounds!" in session.combat_log


def test_kill_bonus_single_level(scripted):
    enemies = [_enemy(0, health=3), _enemy(1, health=3), _enemy(2)]
    # 主攻击击杀 0 号；溅射 floor(6*0.5)=3 击杀 1 号；追加攻击目标取存活列表下标 0
    engine, session, _ = _start(scripted, ints=[15, 4, 0, 15, 6], floats=[0.1], enemies=enemies)

    result = engine.player_attack(
        0, _attack("Murderous Intent", action_cost=2, stamina_cost=18, cleave=0.5)
    )

    assert session.enemies[0].health == 0
    assert session.enemies[1].health == 0
    assert session.enemies[2].health == 19
    assert (
        "Murderous Intent procs! Bonus Savage Strike on Dummy 2 (no stamina cost)!"
        in session.combat_log
    )
    assert "Bonus Savage Strike: 8 damage to Dummy 2" in session.combat_log
    assert result.damage == 6 + 3 + 3 + 8


def test_kill_bonus_needs_a_kill(scripted):
    engine, session, rng = _start(scripted, ints=[15, 1], enemies=[_enemy(0), _enemy(1)])
    engine.player_attack(0, _attack("Murderous Intent", action_cost=2, stamina_cost=18))
    assert rng.float_calls == 0


def test_finisher_decapitates_low_health_target(scripted):
    enemies = [_enemy(0, health=20, max_health=100), _enemy(1)]
    engine, session, _ = _start(scripted, ints=[18, 1], floats=[0.1], enemies=enemies)

    result = engine.player_attack(0, _attack("Crimson Mist", action_cost=2, stamina_cost=18))
    assert result.critical is True
    assert session.enemies[0].health == 0
    assert result.target_defeated is True
    assert "DECAPITATION! Dummy 0 is instantly killed!" in session.combat_log
    assert "Dummy 0 has been defeated!" in session.combat_log


def test_finisher_spares_healthy_target(scripted):
    engine, session, rng = _start(scripted, ints=[18, 1], enemies=[_enemy(health=100)])
    engine.player_attack(0, _attack("Crimson Mist", action_cost=2, stamina_cost=18))
    assert session.enemies[0].health == 91
    assert rng.float_calls == 0


def test_lifesteal_only_on_bleeding_target(scripted):
    player = _player()
    player.health = 50
    engine, session, _ = _start(scripted, ints=[15, 4, 15, 4], player=player)

    first = engine.player_attack(0, _attack("Bloodfury", stamina_cost=12))
    assert first.healing == 0

    conditions.apply_condition(session.enemies[0], ConditionType.BLEEDING, 2)
    second = engine.player_attack(0, _attack("Bloodfury", stamina_cost=12))
    assert second.healing == 3
    assert session.player.health == 53
    assert "Bloodfury: Healed 3 HP from bleeding target!" in session.combat_log


def test_bonus_dice_on_crit(scripted):
    engine, session, _ = _start(scripted, ints=[19, 3, 5])
    result = engine.player_attack(0, _attack("Savage Strike", action_cost=2, stamina_cost=15))

    assert result.damage == 16
    assert session.enemies[0].health == 14
    assert "Savage Strike critical! Rolling 1d12 bonus damage: 5" in session.combat_log


def test_bonus_dice_ignore_damage_reduction(scripted):
    enemies = [_enemy(damage_reduction=0.5)]
    engine, session, _ = _start(scripted, ints=[19, 3, 6], enemies=enemies)
    result = engine.player_attack(0, _attack("Savage Strike", action_cost=2, stamina_cost=15))

    # floor((6 + 3 + 2) x 0.5) + 6
    assert result.damage == 11
    assert result.damage_before_reduction == 17
    assert session.enemies[0].health == 19
    assert any("= 11) + 6 bonus -> 11 damage" in line for line in session.combat_log)


def test_registered_profile_is_dispatched(scripted):
    attack_catalog.register_profile(
        "Twin Jab", AbilityProfile(kind=AbilityKind.MULTI_STRIKE, strikes=2)
    )
    try:
        engine, session, _ = _start(scripted, ints=[15, 1, 15, 2])
        result = engine.player_attack(0, _attack("Twin Jab"))
        assert result.damage == 7
        assert session.combat_log[-1] == "Twin Jab complete! Total: 7 damage"
    finally:
        attack_catalog.ABILITY_PROFILES.pop("Twin Jab", None)


def test_shield_wall_raises_defence(scripted):
    player = _player()
    player.equipment.off_hand = EquippedItem("shield_wooden", enhancement_level=3)
    engine, session, rng = _start(scripted, player=player)

    result = engine.player_attack(0, _attack("Shield Wall", weapon_data=None))
    defence = conditions.get_condition(session.player, ConditionType.RAISE_DEFENCE)
    assert defence.stacks == 2
    assert result.hit is False
    assert rng.int_calls == []
    assert session.combat_log[-1] == "Shield Wall: Damage reduction +20% until your next turn!"


def test_shield_slam_strikes_with_bash(scripted):
    player = _player()
    player.equipment.off_hand = EquippedItem("shield_steel")
    engine, session, _ = _start(scripted, ints=[15, 3], player=player)

    result = engine.player_attack(0, _attack("Shield Slam", weapon_data=None, stamina_cost=10))
    assert result.damage == 5
    assert "Shield Slam hits Dummy 0!" in session.combat_log[-1]


def test_buff_strike_applies_self_conditions_even_on_miss(scripted):
    engine, session, _ = _start(scripted, ints=[1])
    result = engine.player_attack(0, _attack("Dust Up", stamina_cost=8))

    assert result.hit is False
    assert conditions.get_evasion_bonus(session.player) == 6
    assert conditions.get_damage_reduction_bonus(session.player) == 0.2
    assert "Dust Up: +6 evasion for 1 turn!" in session.combat_log


def test_unarmed_punch(scripted):
    engine, session, _ = _start(scripted, ints=[15, 4])
    attack = engine.get_available_attacks()[0]
    assert attack.name == "Punch"
    assert engine.player_attack(0, attack).damage == 4


def test_dual_wield_log_prefix(scripted):
    player = _player()
    player.equipment.main_hand = EquippedItem("dagger_basic")
    player.equipment.off_hand = EquippedItem("shortsword_basic")
    engine, session, _ = _start(scripted, ints=[15, 1], player=player)

    off_hand_light = next(
        a for a in engine.get_available_attacks()
        if a.source_hand == "off_hand" and a.name == "Light Attack"
    )
    engine.player_attack(0, off_hand_light)
    assert session.combat_log[-1].startswith("[off hand] You hit Dummy 0 with Light Attack!")

import logging

import pytest
from pydantic import ValidationError

from delve import config
from delve.combat.demo import run_demo
from delve.combat.models.action import DamageDice
from delve.combat.models.combatant import ConditionType
from delve.combat.models.specs import EnemySpec, PlayerSpec


def test_player_spec_derives_stats():
    player = PlayerSpec(
        health=120,
        max_health=80,
        main_hand={"item_id": "greataxe_basic", "enhancement_level": 5},
        chest={"item_id": "chest_heavy"},
        inventory=[{"item_id": "potion_health", "quantity": 2}],
        status_conditions=[{"type": "bleeding", "stacks": 2, "duration": 3}],
    ).to_player()

    assert player.health == 80
    assert player.equipment.main_hand.enhancement_level == 5
    assert player.stats.calculated_evasion == 8
    assert player.stats.damage_bonus == 6
    assert player.status_conditions[0].type == ConditionType.BLEEDING
    assert player.inventory[0].quantity == 2


def test_player_spec_rejects_bad_payload():
    with pytest.raises(ValidationError):
        PlayerSpec(health=-1, max_health=10)
    with pytest.raises(ValidationError):
        PlayerSpec(health=10, max_health=10, main_hand={"item_id": "dagger_basic", "enhancement_level": 12})


def test_enemy_spec_to_enemy():
    enemy = EnemySpec(
        id="wisp_1",
        name="Wailing Wisp",
        health=28,
        max_health=28,
        evasion=8,
        weapon_damage={"num_dice": 1, "die_size": 6, "modifier": 2},
        loot_table=[{"item_id": "potion_stamina", "drop_chance": 0.5}],
    ).to_enemy()

    assert enemy.weapon_damage == DamageDice(1, 6, 2)
    assert enemy.loot_table[0].item_id == "potion_stamina"
    assert enemy.archetype is None


def test_enemy_spec_rejects_reduction_over_one():
    with pytest.raises(ValidationError):
        EnemySpec(
            id="x",
            name="X",
            health=1,
            max_health=1,
            damage_reduction=1.5,
            weapon_damage={"num_dice": 1, "die_size": 4},
        )


def test_validate_config_defaults_pass(monkeypatch):
    monkeypatch.setattr(config.settings, "combat_data_dir", "")
    monkeypatch.setattr(config.settings, "combat_max_actions_per_turn", 2)
    monkeypatch.setattr(config.settings, "combat_log_level", "INFO")
    assert config.validate_config() is True


def test_validate_config_flags_problems(monkeypatch, tmp_path, caplog):
    monkeypatch.setattr(config.settings, "combat_max_actions_per_turn", 0)
    monkeypatch.setattr(config.settings, "combat_log_level", "LOUD")
    monkeypatch.setattr(config.settings, "combat_data_dir", str(tmp_path / "missing"))

    with caplog.at_level(logging.WARNING, logger="delve.config"):
        assert config.validate_config() is False
    assert "COMBAT_MAX_ACTIONS_PER_TURN" in caplog.text
    assert "COMBAT_LOG_LEVEL" in caplog.text


def test_demo_runs_to_completion():
    session = run_demo(seed=7, weapon_id="longsword_basic")
    assert session.combat_log[0] == "Combat has begun!"
    assert session.is_complete or session.current_round > 50
    assert len(session.enemies) == 2


def test_demo_rejects_unknown_weapon():
    with pytest.raises(ValueError):
        run_demo(seed=1, weapon_id="laser_sword")

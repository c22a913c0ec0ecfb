from delve.combat import attack_catalog
from delve.combat.attack_catalog import AbilityKind
from delve.combat.equipment import SHIELD_BASH, UNARMED
from delve.combat.models.combatant import EquipmentSlot, EquippedItem, Player
from delve.combat.rules import CRITICAL_HIT_ROLL


def _player(main=None, off=None):
    player = Player(id="player", name="Hero", health=100, max_health=100)
    player.equipment.main_hand = main
    player.equipment.off_hand = off
    return player


def _names(attacks):
    return [attack.name for attack in attacks]


def test_every_weapon_type_has_attacks():
    for weapon_type, attacks in attack_catalog.WEAPON_ATTACKS.items():
        assert attacks, weapon_type
        for attack in attacks:
            assert attack.action_cost >= 1
            assert attack.stamina_cost >= 0


def test_catalog_returns_copies():
    attacks = attack_catalog.get_attacks_for_weapon_type("dagger")
    attacks[0].stamina_cost = 99
    assert attack_catalog.get_attacks_for_weapon_type("dagger")[0].stamina_cost == 5


def test_profiles_dispatch_by_kind():
    assert attack_catalog.get_profile("Puncture").kind == AbilityKind.MULTI_STRIKE
    assert attack_catalog.get_profile("Puncture").strikes == 3
    assert attack_catalog.get_profile("Crimson Mist").crit_threshold == 18
    assert attack_catalog.get_profile("Light Attack") is attack_catalog.STANDARD_PROFILE


def test_single_dagger_hides_flurry():
    player = _player(main=EquippedItem("dagger_basic", 1))
    attacks = attack_catalog.get_available_attacks(player)
    assert _names(attacks) == ["Light Attack", "Backstab", "Hydras Strike"]
    assert all(a.source_hand == "main_hand" for a in attacks)
    assert attacks[0].weapon_data.id == "dagger_basic"
    assert attacks[0].enhancement_level == 1


def test_dual_wield_tags_each_hand():
    player = _player(main=EquippedItem("dagger_basic"), off=EquippedItem("rapier_basic", 3))
    attacks = attack_catalog.get_available_attacks(player)
    assert "Flurry" in _names(attacks)

    off_hand = [a for a in attacks if a.source_hand == EquipmentSlot.OFF_HAND.value]
    assert _names(off_hand) == ["Light Attack", "Puncture", "Vipers Fangs"]
    assert all(a.enhancement_level == 3 for a in off_hand)


def test_shield_adds_bash_attacks_and_filters_two_handers():
    player = _player(main=EquippedItem("greatsword_basic"), off=EquippedItem("shield_steel", 4))
    attacks = attack_catalog.get_available_attacks(player)
    assert _names(attacks) == ["Shield Wall", "Shield Slam"]
    assert attacks[1].weapon_data == SHIELD_BASH
    assert attacks[1].enhancement_level == 4


def test_unarmed_when_no_weapon():
    attacks = attack_catalog.get_available_attacks(_player())
    assert _names(attacks) == ["Punch"]
    assert attacks[0].weapon_data == UNARMED


def test_validate_attack():
    player = _player(main=EquippedItem("scythe_basic"))
    attack = attack_catalog.validate_attack("Murderous Intent", player)
    assert attack is not None
    assert attack.cleave == 0.5
    assert attack.weapon_data.id == "scythe_basic"
    assert attack_catalog.validate_attack("Backstab", player) is None


def test_validate_attack_by_hand():
    player = _player(main=EquippedItem("dagger_basic", 1), off=EquippedItem("dagger_basic", 4))
    assert attack_catalog.validate_attack("Backstab", player).enhancement_level == 1

    off_hand = attack_catalog.validate_attack("Backstab", player, "off_hand")
    assert off_hand.source_hand == "off_hand"
    assert off_hand.enhancement_level == 4

    single = _player(main=EquippedItem("dagger_basic"))
    assert attack_catalog.validate_attack("Backstab", single, "off_hand") is None


def test_default_crit_threshold():
    assert attack_catalog.STANDARD_PROFILE.crit_threshold == CRITICAL_HIT_ROLL
    assert attack_catalog.get_profile("Savage Strike").crit_threshold == 19

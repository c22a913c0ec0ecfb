from delve.combat import conditions
from delve.combat.models.combatant import ConditionType, Enemy


def _target(health=50):
    return Enemy(id="dummy_1", name="Dummy", health=health, max_health=health)


def test_bleeding_stacks_merge_and_tick():
    target = _target()
    conditions.apply_condition(target, ConditionType.BLEEDING, 2, 2)
    conditions.apply_condition(target, ConditionType.BLEEDING, 3, 3)

    bleeding = conditions.get_condition(target, ConditionType.BLEEDING)
    assert bleeding.stacks == 5
    assert bleeding.duration == 3
    assert len(target.status_conditions) == 1

    result = conditions.tick_conditions(target)
    assert result.damage == 10
    assert result.messages == ["Bleeding: 10 damage (5 stacks)"]
    # 伤害由调用方扣除
    assert target.health == 50
    assert bleeding.duration == 2


def test_duration_takes_max_on_merge():
    target = _target()
    conditions.apply_condition(target, ConditionType.POISONED, 4)
    conditions.apply_condition(target, ConditionType.POISONED, 1)
    assert conditions.get_condition(target, ConditionType.POISONED).duration == 4


def test_dependable_never_stacks():
    target = _target()
    conditions.apply_condition(target, ConditionType.DEPENDABLE, 1, 3)
    conditions.apply_condition(target, ConditionType.DEPENDABLE, 2)
    dependable = conditions.get_condition(target, ConditionType.DEPENDABLE)
    assert dependable.stacks == 1
    assert dependable.duration == 2
    assert conditions.get_dependable_bonus(target) == 5


def test_tick_removes_expired_but_keeps_dependable():
    target = _target()
    conditions.apply_condition(target, ConditionType.STUNNED, 1)
    conditions.apply_condition(target, ConditionType.DEPENDABLE, 1)

    result = conditions.tick_conditions(target)
    assert "Stunned wore off" in result.messages
    assert not conditions.is_stunned(target)
    assert conditions.get_condition(target, ConditionType.DEPENDABLE).duration == 0

    assert conditions.clear_expired_conditions(target) == [ConditionType.DEPENDABLE]
    assert target.status_conditions == []


def test_poison_single_stack_message():
    target = _target()
    conditions.apply_condition(target, ConditionType.POISONED, 1)
    result = conditions.tick_poison_only(target)
    assert result.damage == 3
    assert result.messages == ["Poisoned: 3 damage (1 stack)", "Poisoned wore off"]


def test_partial_ticks_only_touch_their_type():
    target = _target()
    conditions.apply_condition(target, ConditionType.POISONED, 3, 2)
    conditions.apply_condition(target, ConditionType.BLEEDING, 3, 1)
    conditions.apply_condition(target, ConditionType.WEAKENED, 2)

    assert conditions.tick_poison_only(target).damage == 6
    assert conditions.get_condition(target, ConditionType.BLEEDING).duration == 3
    assert conditions.get_condition(target, ConditionType.WEAKENED).duration == 2

    timed = conditions.tick_timed_only(target)
    assert timed.damage == 0
    assert conditions.get_condition(target, ConditionType.WEAKENED).duration == 1
    assert conditions.get_condition(target, ConditionType.POISONED).duration == 2

    assert conditions.tick_bleeding_only(target).damage == 2


def test_defence_bonus_capped():
    target = _target()
    conditions.apply_condition(target, ConditionType.RAISE_DEFENCE, 2, 10)
    assert conditions.get_damage_reduction_bonus(target) == conditions.MAX_DEFENCE_BONUS


def test_evasion_bonus_per_stack():
    target = _target()
    conditions.apply_condition(target, ConditionType.RAISE_EVASION, 2, 2)
    assert conditions.get_evasion_bonus(target) == 6


def test_reduce_stacks_removes_at_zero():
    target = _target()
    conditions.apply_condition(target, ConditionType.BLEEDING, 3, 2)
    conditions.reduce_stacks(target, ConditionType.BLEEDING)
    assert conditions.get_total_stacks(target, ConditionType.BLEEDING) == 1
    conditions.reduce_stacks(target, ConditionType.BLEEDING)
    assert not conditions.has_condition(target, ConditionType.BLEEDING)


def test_display_names():
    assert conditions.get_display_name(ConditionType.RAISE_DEFENCE) == "Defence Up"
    assert conditions.get_display_name("poisoned") == "Poisoned"

"""Enemy species registry and combat-entry preparation."""
import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import settings
from .dice import DiceRoller, parse_notation
from .models.combatant import DamageRecord, Enemy, LootEntry
from .rules import ENEMY_TEMPLATES

logger = logging.getLogger(__name__)

_BASE_TEMPLATES: Dict[str, Dict[str, Any]] = copy.deepcopy(ENEMY_TEMPLATES)
_DYNAMIC_TEMPLATES: Dict[str, Dict[str, Any]] = {}

_DICE_PATTERN = re.compile(r"^\d+d\d+([+-]\d+)?$")

# 进入战斗时按行为键初始化的物种临时字段
_ARCHETYPE_SCRATCH: Dict[str, Dict[str, Any]] = {
    "greater_void_spawn": {"chronostep_uses_remaining": 2, "damage_received_history": []},
    "crawley_crow": {"item_stolen": False},
}


def slugify(value: str) -> str:
    text = (value or "").strip().lower()
    if not text:
        return ""
    out = []
    for ch in text:
        if ch.isalnum() or ch in ("_", "-"):
            out.append(ch)
        elif ch.isspace() or ch in ("/", "\\", ":", "|", "."):
            out.append("_")
    slug = "".join(out).strip("_")
    while "__" in slug:
        slug = slug.replace("__", "_")
    return slug


def resolve_archetype(enemy: Enemy) -> str:
    """行为键：显式 archetype 优先，否则按名称推导"""
    return enemy.archetype or slugify(enemy.name)


# ============================================
# 校验
# ============================================


def _ensure_int(value: Any, field: str, errors: List[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        errors.append(f"{field} must be an integer")
        return None


def _ensure_float(value: Any, field: str, errors: List[str]) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        errors.append(f"{field} must be a number")
        return None


def _validate_loot_table(loot_table: Any, errors: List[str]):
    if loot_table is None:
        return
    if not isinstance(loot_table, list):
        errors.append("loot_table must be a list")
        return
    for entry in loot_table:
        if not isinstance(entry, dict) or not entry.get("item_id"):
            errors.append("loot_table entries need an item_id")
            return
        chance = _ensure_float(entry.get("drop_chance"), "loot_table.drop_chance", errors)
        if chance is not None and not 0 <= chance <= 1:
            errors.append("loot_table.drop_chance must be within 0..1")
            return


def _validate_template_payload(template: Dict[str, Any]) -> List[str]:
    errors: List[str] = []

    species_id = template.get("species_id")
    if not isinstance(species_id, str) or not species_id.strip():
        errors.append("species_id is required and must be a string")

    name = template.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("name is required and must be a string")

    max_health = _ensure_int(template.get("max_health"), "max_health", errors)
    if max_health is not None and max_health < 1:
        errors.append("max_health must be >= 1")

    evasion = _ensure_int(template.get("evasion"), "evasion", errors)
    if evasion is not None and evasion < 0:
        errors.append("evasion must be >= 0")

    reduction = _ensure_float(template.get("damage_reduction", 0), "damage_reduction", errors)
    if reduction is not None and not 0 <= reduction <= 1:
        errors.append("damage_reduction must be within 0..1")

    attack_bonus = _ensure_int(template.get("attack_bonus", 0), "attack_bonus", errors)
    if attack_bonus is not None and (attack_bonus < -10 or attack_bonus > 30):
        errors.append("attack_bonus out of range (-10..30)")

    weapon_damage = template.get("weapon_damage")
    if not isinstance(weapon_damage, str) or not _DICE_PATTERN.match(weapon_damage):
        errors.append("weapon_damage must be like '1d6' or '2d6+1'")

    tier = _ensure_int(template.get("tier", 1), "tier", errors)
    if tier is not None and tier < 1:
        errors.append("tier must be >= 1")

    archetype = template.get("archetype")
    if archetype is not None and (not isinstance(archetype, str) or not archetype.strip()):
        errors.append("archetype must be a string")

    _validate_loot_table(template.get("loot_table"), errors)
    return errors


def _normalize_template(species_id: str, template: Dict[str, Any]) -> Dict[str, Any]:
    working = dict(template)
    working["species_id"] = species_id
    errors = _validate_template_payload(working)
    if errors:
        raise ValueError("; ".join(errors))

    return {
        "species_id": species_id,
        "name": working["name"],
        "max_health": int(working["max_health"]),
        "evasion": int(working["evasion"]),
        "damage_reduction": float(working.get("damage_reduction", 0)),
        "attack_bonus": int(working.get("attack_bonus", 0)),
        "weapon_damage": working["weapon_damage"],
        "weapon_type": working.get("weapon_type", "claws"),
        "tier": int(working.get("tier", 1)),
        "is_boss": bool(working.get("is_boss", False)),
        "archetype": working.get("archetype"),
        "loot_table": list(working.get("loot_table", [])),
    }


# ============================================
# 注册与查询
# ============================================


def register_template(template: Dict[str, Any]) -> Dict[str, Any]:
    """Register a species template defined by the caller."""
    errors = _validate_template_payload(template)
    if errors:
        raise ValueError("; ".join(errors))

    species_id = template["species_id"]
    normalized = _normalize_template(species_id, template)
    _DYNAMIC_TEMPLATES[species_id] = normalized
    logger.info("registered enemy species %s", species_id)
    return copy.deepcopy(normalized)


def get_template(species_id: str) -> Optional[Dict[str, Any]]:
    template = _DYNAMIC_TEMPLATES.get(species_id)
    if template is None:
        base = _BASE_TEMPLATES.get(species_id)
        if base is None:
            return None
        template = _normalize_template(species_id, base)
    return copy.deepcopy(template)


def list_templates() -> List[Dict[str, Any]]:
    species_ids = sorted(set(_BASE_TEMPLATES) | set(_DYNAMIC_TEMPLATES))
    return [get_template(species_id) for species_id in species_ids]


def clear_dynamic_templates():
    _DYNAMIC_TEMPLATES.clear()


def load_templates_from_dir(path: str) -> List[str]:
    """
    从目录加载 JSON 物种模板

    每个文件可以是单个模板或模板列表；无效文件记录警告后跳过。

    Returns:
        List[str]: 成功注册的 species_id
    """
    directory = Path(path)
    if not directory.is_dir():
        logger.warning("enemy data directory not found: %s", path)
        return []

    loaded: List[str] = []
    for file_path in sorted(directory.glob("*.json")):
        try:
            raw = json.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("failed to read %s: %s", file_path, exc)
            continue

        entries = raw if isinstance(raw, list) else [raw]
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            payload = dict(entry)
            payload.setdefault("species_id", slugify(str(payload.get("name", ""))))
            try:
                register_template(payload)
            except ValueError as exc:
                logger.warning("invalid species in %s: %s", file_path.name, exc)
                continue
            loaded.append(payload["species_id"])
    return loaded


def load_configured_templates() -> List[str]:
    """加载 COMBAT_DATA_DIR 中的物种模板（未配置时不做任何事）"""
    if not settings.combat_data_dir:
        return []
    return load_templates_from_dir(settings.combat_data_dir)


# ============================================
# 创建敌人
# ============================================


def create_enemy(species_id: str, index: int = 1) -> Enemy:
    """
    按物种创建敌人

    Raises:
        KeyError: 未知物种
    """
    template = get_template(species_id)
    if template is None:
        raise KeyError(f"Unknown enemy species: {species_id}")

    return Enemy(
        id=f"{species_id}_{index}",
        name=template["name"],
        health=template["max_health"],
        max_health=template["max_health"],
        evasion=template["evasion"],
        damage_reduction=template["damage_reduction"],
        attack_bonus=template["attack_bonus"],
        weapon_damage=parse_notation(template["weapon_damage"]),
        weapon_type=template["weapon_type"],
        tier=template["tier"],
        is_boss=template["is_boss"],
        archetype=template["archetype"] or species_id,
        loot_table=[
            LootEntry(
                item_id=entry["item_id"],
                drop_chance=float(entry["drop_chance"]),
                enhancement_level=int(entry.get("enhancement_level", 0)),
            )
            for entry in template["loot_table"]
        ],
    )


def create_random_enemy(
    tier: int = 1,
    is_boss: bool = False,
    dice: Optional[DiceRoller] = None,
    index: int = 1,
) -> Enemy:
    """按阶级随机挑选物种"""
    candidates = [
        t["species_id"]
        for t in list_templates()
        if t["tier"] == tier and t["is_boss"] == is_boss
    ]
    if not candidates:
        raise KeyError(f"No enemy species for tier {tier} (boss={is_boss})")
    dice = dice or DiceRoller()
    choice = candidates[dice.random_int(0, len(candidates) - 1, "enemy species")]
    return create_enemy(choice, index=index)


def prepare_for_combat(enemy: Enemy):
    """进入战斗时重置每场战斗的临时字段"""
    enemy.backstab_used = False
    scratch = _ARCHETYPE_SCRATCH.get(resolve_archetype(enemy), {})
    enemy.chronostep_uses_remaining = scratch.get("chronostep_uses_remaining")
    history = scratch.get("damage_received_history")
    enemy.damage_received_history = [] if history is not None else None
    enemy.item_stolen = scratch.get("item_stolen")


def track_damage(enemy: Enemy, round_number: int, damage: int):
    """记录受伤历史（只有带历史字段的物种记录）"""
    if enemy.damage_received_history is None or damage <= 0:
        return
    enemy.damage_received_history.append(DamageRecord(round=round_number, damage=damage))

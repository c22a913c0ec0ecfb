"""
配置管理模块
"""
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# 加载环境变量
load_dotenv()

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return int(raw)


class Settings(BaseModel):
    """应用配置"""

    # 随机源（未设置时使用系统熵）
    combat_rng_seed: Optional[int] = _optional_int("COMBAT_RNG_SEED")
    combat_audit_limit: int = int(os.getenv("COMBAT_AUDIT_LIMIT", "10000"))

    # 回合配置
    combat_max_actions_per_turn: int = int(os.getenv("COMBAT_MAX_ACTIONS_PER_TURN", "2"))

    # 日志
    combat_log_level: str = os.getenv("COMBAT_LOG_LEVEL", "INFO")

    # 额外敌人模板目录（JSON）
    combat_data_dir: str = os.getenv("COMBAT_DATA_DIR", "")

    model_config = ConfigDict(env_file=".env", case_sensitive=False)


# 全局配置实例
settings = Settings()


def validate_config() -> bool:
    """
    验证配置是否合法

    Returns:
        bool: 配置是否有效
    """
    valid = True
    if settings.combat_max_actions_per_turn < 1:
        logger.warning(
            "COMBAT_MAX_ACTIONS_PER_TURN must be >= 1, got %s",
            settings.combat_max_actions_per_turn,
        )
        valid = False

    if settings.combat_log_level.upper() not in _LOG_LEVELS:
        logger.warning("unknown COMBAT_LOG_LEVEL: %s", settings.combat_log_level)
        valid = False

    if settings.combat_audit_limit < 0:
        logger.warning("COMBAT_AUDIT_LIMIT must be >= 0, got %s", settings.combat_audit_limit)
        valid = False

    if settings.combat_data_dir and not Path(settings.combat_data_dir).is_dir():
        logger.warning("enemy data directory does not exist: %s", settings.combat_data_dir)
        valid = False

    return valid


def configure_logging(level: Optional[str] = None) -> None:
    """命令行入口使用；库代码不配置 handler"""
    name = (level or settings.combat_log_level).upper()
    if name not in _LOG_LEVELS:
        name = "INFO"
    logging.basicConfig(
        level=getattr(logging, name),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError

from caja.infra.logging_std import get_logger

logger = get_logger(__name__)


# =========================
# MODELOS DE CONFIGURACIÓN
# =========================


class StoreConfig(BaseModel):
    """Dónde vive el record store y cuánto puede crecer (cuota tipo localStorage)."""

    path: str = "data/caja_store.json"
    quota_bytes: Optional[int] = Field(default=5 * 1024 * 1024, gt=0)


class CajaConfig(BaseModel):
    """
    Reglas de negocio de la caja.

    Todo lo que afecte validación o generación de códigos vive aquí,
    NO hardcodeado en el ledger.
    """

    code_prefix: str = "CAJ-"
    code_length: int = Field(default=4, ge=1)
    code_max_attempts: int = Field(default=100, ge=1)
    min_descripcion: int = Field(default=3, ge=0)
    default_carga_descripcion: str = "Carga de efectivo"
    currency_symbol: str = "S/"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class AppConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    caja: CajaConfig = Field(default_factory=CajaConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =========================
# LOADER
# =========================

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "default.yml"

_APP_CONFIG: Optional[AppConfig] = None


def _read_raw_yaml(path: Path) -> Dict[str, Any]:
    """Lee YAML de forma segura. Si truena, regresa dict vacío."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(
            "Config file not found, using defaults",
            extra={"extra_data": {"config_path": str(path)}},
        )
        return {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error(
            "Error reading config file, using defaults",
            extra={"extra_data": {"config_path": str(path), "error": str(exc)}},
        )
        return {}

    if not isinstance(data, dict):
        logger.error(
            "Config YAML root is not a mapping, falling back to defaults",
            extra={"extra_data": {"config_path": str(path)}},
        )
        return {}
    return data


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name, {})
    return dict(value) if isinstance(value, dict) else {}


def _apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    store = _section(raw, "store")
    caja = _section(raw, "caja")
    log = _section(raw, "logging")

    if os.getenv("CAJA_STORE_PATH"):
        store["path"] = os.getenv("CAJA_STORE_PATH")
    if os.getenv("CAJA_STORE_QUOTA_BYTES"):
        store["quota_bytes"] = os.getenv("CAJA_STORE_QUOTA_BYTES")
    if os.getenv("CAJA_CURRENCY_SYMBOL"):
        caja["currency_symbol"] = os.getenv("CAJA_CURRENCY_SYMBOL")
    if os.getenv("LOG_LEVEL"):
        log["level"] = os.getenv("LOG_LEVEL")
    if os.getenv("LOG_FORMAT"):
        log["format"] = os.getenv("LOG_FORMAT")

    return {"store": store, "caja": caja, "logging": log}


def load_config(path: Optional[Path] = None) -> AppConfig:
    """
    Carga la configuración desde YAML + variables de entorno y la valida con Pydantic.

    - Si no hay archivo → usa defaults.
    - Si está mal formado → usa defaults.
    - Cachea en memoria para no leer disco cada vez.
    """
    global _APP_CONFIG

    if _APP_CONFIG is not None and path is None:
        return _APP_CONFIG

    load_dotenv(find_dotenv(usecwd=True))

    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    raw = _apply_env_overrides(_read_raw_yaml(config_path))

    try:
        app_config = AppConfig(
            store=StoreConfig(**raw["store"]),
            caja=CajaConfig(**raw["caja"]),
            logging=LoggingConfig(**raw["logging"]),
        )
    except ValidationError as exc:
        logger.error(
            "Invalid config, using defaults",
            extra={"extra_data": {"config_path": str(config_path), "error": str(exc)}},
        )
        app_config = AppConfig()

    if path is None:
        _APP_CONFIG = app_config

    logger.debug(
        "Config loaded",
        extra={"extra_data": {"config_path": str(config_path)}},
    )
    return app_config


def reset_config_cache() -> None:
    global _APP_CONFIG
    _APP_CONFIG = None

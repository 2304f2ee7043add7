"""Centralized configuration loading."""
import importlib
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from asset_pipeline.domain.entities.app_config import AppConfig
from asset_pipeline.domain.entities.pipeline_config import PipelineConfig
from asset_pipeline.infra.common.errors import ConfigError

ENVIRONMENTS = ("local", "staging", "production")


def _load_env_file() -> None:
    """Load environment variables from .env file if it exists."""
    env_path = Path(__file__).parent.parent.parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=True)
    else:
        load_dotenv(override=True)


def load_app_config(env: Optional[str] = None) -> AppConfig:
    """
    Load application configuration for environment.
    
    Args:
        env: Environment name (local, staging, production).
             If None, reads from ENV environment variable.
        
    Returns:
        AppConfig instance
        
    Raises:
        ConfigError: If environment is unknown or its config module is missing
    """
    _load_env_file()
    
    if env is None:
        env = os.getenv("ENV", "local")
    
    if env not in ENVIRONMENTS:
        raise ConfigError(f"Invalid environment: {env}. Must be one of: {', '.join(ENVIRONMENTS)}")
    
    module_name = f"config.appconfig.{env}"
    try:
        config_module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Config module not found: {module_name}") from e
    return config_module.config


def _resolve(base: Path, value: str) -> str:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base / path
    return os.path.normpath(str(path))


def load_pipeline_config(config_path: str) -> PipelineConfig:
    """
    Load pipeline configuration from YAML.
    
    Relative load paths, output directory and manifest path are resolved
    against the directory containing the YAML file.
    
    Args:
        config_path: Path to the YAML file
        
    Returns:
        Validated PipelineConfig
        
    Raises:
        ConfigError: If config file is not found or invalid
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {config_path}") from e
    
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")
    
    try:
        config = PipelineConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid pipeline config in {config_path}: {e}") from e
    
    base = Path(config_path).resolve().parent
    return config.model_copy(
        update={
            "load_paths": [_resolve(base, path) for path in config.load_paths],
            "output_dir": _resolve(base, config.output_dir),
            "manifest_path": _resolve(base, config.manifest_path) if config.manifest_path else None,
        }
    )

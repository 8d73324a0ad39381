"""Configuration models and loading for casegraph."""

import os
import json
from pathlib import Path
from typing import Optional, Dict, Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from dotenv import load_dotenv

from .errors import ConfigurationError, handle_errors
from .logging_config import get_logger

logger = get_logger(__name__)


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class MatchingConfig(_Section):
    """Thresholds for the pairwise name matcher."""
    containment_min_length: int = Field(3, ge=0)
    containment_shorter_min_length: int = Field(4, ge=0)
    edit_ratio_threshold: float = Field(0.20, ge=0.0, le=1.0)
    jaccard_threshold: float = Field(0.60, ge=0.0, le=1.0)


class ClusteringConfig(_Section):
    """Cluster detection settings."""
    # None disables the guardrail
    max_universe_size: Optional[int] = Field(5000, ge=2)


class GraphConfig(_Section):
    """Graph model construction settings."""
    entity_edge_weight: int = Field(1, ge=0)
    parent_edge_weight: int = Field(3, ge=0)
    manual_edge_weight: int = Field(4, ge=0)
    case_id_prefix: str = "case-"
    entity_id_prefix: str = "entity-"
    case_radius: float = Field(20.0, gt=0)
    entity_base_radius: float = Field(6.0, gt=0)
    entity_radius_per_connection: float = Field(2.0, ge=0)
    entity_max_radius: float = Field(20.0, gt=0)


class LayoutConfig(_Section):
    """Force simulation settings."""
    width: float = Field(800.0, gt=0)
    height: float = Field(600.0, gt=0)
    jitter: float = Field(50.0, ge=0)
    link_distance: float = Field(100.0, ge=0)
    charge_strength: float = -300.0
    centering_strength: float = Field(0.08, ge=0)
    collide_radius: float = Field(30.0, ge=0)
    collide_iterations: int = Field(2, ge=1)
    alpha: float = Field(1.0, ge=0.0, le=1.0)
    alpha_min: float = Field(0.001, gt=0.0)
    alpha_decay: float = Field(1 - 0.001 ** (1 / 300), gt=0.0, le=1.0)
    alpha_target: float = Field(0.0, ge=0.0, le=1.0)
    drag_alpha_target: float = Field(0.3, ge=0.0, le=1.0)
    velocity_decay: float = Field(0.4, ge=0.0, le=1.0)


class NormalizationConfig(_Section):
    """Ingest-time entity normalization settings."""
    auto_normalize_entities: bool = True


class CaseGraphConfig(_Section):
    """Main configuration for casegraph."""
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    clustering: ClusteringConfig = Field(default_factory=ClusteringConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)

    # Persistence locations used by the CLI
    state_file: str = "casegraph_state.json"
    archive_file: str = "casegraph_archive.json"
    log_level: str = "INFO"


def build_config(data: Dict[str, Any]) -> CaseGraphConfig:
    """Validate a (possibly partial) configuration dictionary.

    Raises:
        ConfigurationError: Naming the first offending key as a dotted path
    """
    try:
        return CaseGraphConfig.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0] if e.error_count() else {}
        config_key = ".".join(str(p) for p in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid configuration value for '{config_key}': "
            f"{first.get('msg', 'unreadable value')} (got {first.get('input')!r})",
            config_key=config_key or None,
        ) from e


class ConfigManager:
    """Manages configuration loading and validation.

    Precedence, lowest first: model defaults, JSON config file, then
    ``CASEGRAPH_*`` environment variables (a ``.env`` file is loaded first).
    """

    ENV_PREFIX = "CASEGRAPH_"

    def __init__(self, config_path: Optional[str] = None, load_env_file: bool = True):
        """Initialize config manager.

        Args:
            config_path: Path to config file. If None, uses defaults + env vars
            load_env_file: Whether to read a .env file before applying overrides
        """
        self.config_path = Path(config_path) if config_path else None
        self.load_env_file = load_env_file
        self._config: Optional[CaseGraphConfig] = None

    def load(self) -> CaseGraphConfig:
        """Load configuration from file and environment."""
        if self._config:
            return self._config

        config_dict = CaseGraphConfig().model_dump()

        if self.config_path:
            if not self.config_path.exists():
                raise ConfigurationError(
                    f"Configuration file not found: {self.config_path}",
                    config_key="config_path",
                )
            try:
                with open(self.config_path, "r") as f:
                    file_config = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Configuration file is not valid JSON: {e}",
                    config_key="config_path",
                ) from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    "Configuration file must contain a JSON object",
                    config_key="config_path",
                )
            config_dict = self._deep_merge(config_dict, file_config)

        if self.load_env_file:
            load_dotenv()
        config_dict = self._apply_env_overrides(config_dict)

        self._config = build_config(config_dict)
        return self._config

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides."""
        max_universe = os.getenv(f"{self.ENV_PREFIX}MAX_UNIVERSE_SIZE")
        if max_universe is not None:
            if max_universe.strip().lower() in ("", "none", "off"):
                config["clustering"]["max_universe_size"] = None
            else:
                config["clustering"]["max_universe_size"] = max_universe.strip()

        auto_normalize = os.getenv(f"{self.ENV_PREFIX}AUTO_NORMALIZE")
        if auto_normalize is not None:
            config["normalization"]["auto_normalize_entities"] = auto_normalize.strip()

        for key in ("state_file", "archive_file", "log_level"):
            value = os.getenv(f"{self.ENV_PREFIX}{key.upper()}")
            if value:
                config[key] = value

        return config

    @handle_errors(reraise=True, convert_to=ConfigurationError)
    def save_template(self, path: str) -> None:
        """Save a configuration template file with the default values."""
        with open(path, "w") as f:
            json.dump(CaseGraphConfig().model_dump(), f, indent=2)

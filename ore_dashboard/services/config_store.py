"""
User config persistence: the tracked account list and the theme name.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
import structlog

from ore_dashboard.core.config import settings
from ore_dashboard.core.exceptions import ConfigIOError


logger = structlog.get_logger(__name__)

DEFAULT_THEME = "Light"


class AccountConfig(BaseModel):
    """Persisted settings of one tracked account."""
    json_rpc_url: str
    keypair_path: str
    priority_fee: int = Field(ge=0)


class UserConfig(BaseModel):
    """Everything persisted between sessions."""
    configs: List[AccountConfig] = Field(default_factory=list)
    theme: str = DEFAULT_THEME


class ConfigStore:
    """Loads and saves UserConfig as JSON."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.user_config_file)
        self.logger = logger.bind(service="config_store", path=str(self.path))

    def load(self) -> UserConfig:
        """Load the user config; a missing or unreadable file yields an empty config."""
        if not self.path.exists():
            self.logger.info("No user config found, starting empty")
            return UserConfig()
        try:
            config = UserConfig.model_validate_json(self.path.read_text())
        except Exception as e:
            self.logger.error("Failed to load user config", error=str(e))
            return UserConfig()

        self.logger.info("Loaded user config", accounts=len(config.configs), theme=config.theme)
        return config

    def save(self, config: UserConfig) -> None:
        """Write the user config, raising ConfigIOError on failure."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            tmp_path.write_text(config.model_dump_json(indent=2))
            tmp_path.replace(self.path)
        except OSError as e:
            raise ConfigIOError(str(self.path), str(e))

        self.logger.info("Config saved successfully", accounts=len(config.configs))

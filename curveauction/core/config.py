"""
Engine configuration parameters.

Defines the fixed-point scale, pricing limits and logging behaviour.
Values come from defaults, the process environment and an optional
.env file (CURVEAUCTION_* variables). The token scale is not configurable.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_PREFIX = "CURVEAUCTION_"

# Fields that may be set from CURVEAUCTION_* variables. token_decimals is
# fixed at 18 to match ERC20.decimals and the 18-decimal amounts that
# AuctionParameters carries.
ENV_FIELDS = (
    "max_polynomial_degree",
    "default_polynomial_degree",
    "log_level",
    "log_dir",
    "log_to_file",
)


class EngineConfig(BaseModel):
    """Engine-wide configuration parameters"""

    model_config = ConfigDict(frozen=True)

    # Fixed point (not read from the environment)
    token_decimals: int = Field(default=18, ge=0, le=36)

    # Pricing
    max_polynomial_degree: int = Field(default=8, ge=1, le=32)
    default_polynomial_degree: int = Field(default=3, ge=1)

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    log_to_file: bool = False

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def scale(self) -> int:
        """Base units per whole token."""
        return 10**self.token_decimals


# Global config instance (can be overridden)
config = EngineConfig()


def load_config(env_file: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from the environment and an optional .env file.

    Process environment variables take precedence over the file.

    Args:
        env_file: Optional path to a .env file

    Returns:
        EngineConfig instance

    Raises:
        pydantic.ValidationError: a value does not fit its field
    """
    values = {}
    if env_file:
        values.update(dotenv_values(env_file))
    values.update(os.environ)

    fields = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in values.items()
        if key.startswith(ENV_PREFIX) and value is not None
    }
    return EngineConfig(**{k: v for k, v in fields.items() if k in ENV_FIELDS})

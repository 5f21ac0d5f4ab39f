#!/usr/bin/env python3
"""Configuration for talking to a Ceph cluster.

Handles loading configuration from a YAML file; every value has a default so
an absent file is valid.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, PositiveFloat, ValidationError

_LOGGER = logging.getLogger(__name__)


class CephConfig(BaseModel):
    """How to invoke the ceph administrative tool."""

    binary: str = "ceph"
    cluster: str = "ceph"
    conf_path: Path | None = None
    keyring: Path | None = None
    user: str = "admin"
    # Bounds polled reads (fs get, fs dump) and sub-entity listings; a slow listing usually means very many subvolumes
    command_timeout: PositiveFloat = 15.0

    model_config = ConfigDict(frozen=True, extra="forbid")


class PollConfig(BaseModel):
    """Intervals and deadlines for convergence waits, in seconds."""

    rank_interval: PositiveFloat = 3.0
    standby_interval: PositiveFloat = 5.0
    standby_timeout: PositiveFloat = 300.0

    model_config = ConfigDict(frozen=True, extra="forbid")


class Config(BaseModel):
    """Main configuration."""

    ceph: CephConfig = CephConfig()
    poll: PollConfig = PollConfig()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def load(cls, config_path: Path) -> Config:
        """Load configuration from config path.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Config instance with loaded values, or defaults if file doesn't exist

        Raises:
            ValidationError: If config contains invalid values or unknown keys
        """
        if not config_path.exists():
            _LOGGER.debug("Config file %s does not exist, using defaults", config_path)
            return cls()

        try:
            with config_path.open(encoding="utf-8") as config_file:
                config_data = yaml.safe_load(config_file)

            if config_data is None:
                _LOGGER.warning("Config file %s is empty, using defaults", config_path)
                return cls()

            return cls.model_validate(config_data)

        except ValidationError as e:
            _LOGGER.error("Invalid config in %s: %s", config_path, e)
            raise
        except Exception as e:
            _LOGGER.error("Failed to load config from %s: %s", config_path, e)
            raise

"""
Configuration for stack updates.

Holds the polling bounds for the change-set and stack waits along with the
AWS session settings. Defaults can be overridden from a YAML file which is
validated against ``CONFIG_SCHEMA``.
"""

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema
import yaml

CONFIG_ENV_VAR = "UPDATE_STACK_CONFIG"

WAIT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "max_wait": {"type": "integer", "exclusiveMinimum": 0},
        "min_delay": {"type": "integer", "exclusiveMinimum": 0},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "region": {"type": ["string", "null"]},
        "profile": {"type": ["string", "null"]},
        "change_set_wait": WAIT_SCHEMA,
        "stack_wait": WAIT_SCHEMA,
    },
    "additionalProperties": False,
}


def validate_config(data: Any, schema: Dict[str, Any] = CONFIG_SCHEMA) -> None:
    """
    Validate configuration data against a schema.

    Raises:
        ValueError: with the schema error message and the failing path
    """
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path)
        location = f" at '{path}'" if path else ""
        raise ValueError(f"Configuration validation failed{location}: {e.message}") from e


@dataclass
class WaitSettings:
    """Bounds for polling a resource until it settles."""

    max_wait: int
    min_delay: int = 10

    def __post_init__(self) -> None:
        validate_config(self.__dict__, WAIT_SCHEMA)

    @property
    def max_attempts(self) -> int:
        return max(1, math.ceil(self.max_wait / self.min_delay))

    def waiter_config(self) -> Dict[str, int]:
        """Translate to a boto3 ``WaiterConfig``."""
        return {"Delay": self.min_delay, "MaxAttempts": self.max_attempts}


@dataclass
class UpdateConfig:
    """Settings for a single stack update run."""

    region: Optional[str] = None
    profile: Optional[str] = None

    # 30 minutes for the change-set, 12 hours for the stack
    change_set_wait: WaitSettings = field(
        default_factory=lambda: WaitSettings(max_wait=1800, min_delay=10)
    )
    stack_wait: WaitSettings = field(
        default_factory=lambda: WaitSettings(max_wait=43200, min_delay=10)
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "region": self.region,
            "profile": self.profile,
            "change_set_wait": dict(self.change_set_wait.__dict__),
            "stack_wait": dict(self.stack_wait.__dict__),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdateConfig":
        """Create config from dictionary, filling gaps with defaults."""
        validate_config(data)

        defaults = cls()
        values: Dict[str, Any] = {
            "region": data.get("region", defaults.region),
            "profile": data.get("profile", defaults.profile),
        }
        for name in ("change_set_wait", "stack_wait"):
            base = getattr(defaults, name).__dict__
            values[name] = WaitSettings(**{**base, **(data.get(name) or {})})

        return cls(**values)


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    region: Optional[str] = None,
    profile: Optional[str] = None,
) -> UpdateConfig:
    """
    Load configuration, merging an optional YAML file over the defaults.

    Args:
        config_path: YAML file to read (falls back to $UPDATE_STACK_CONFIG)
        region: AWS region, takes precedence over the file
        profile: AWS profile, takes precedence over the file

    Returns:
        UpdateConfig
    """
    config_path = config_path or os.environ.get(CONFIG_ENV_VAR)

    data: Dict[str, Any] = {}
    if config_path:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

    config = UpdateConfig.from_dict(data)

    if region:
        config.region = region
    if profile:
        config.profile = profile

    return config

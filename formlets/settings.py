"""
Form-level settings for formlets using Pydantic.

This module provides type-safe, validated configuration of a root formlet
(HTTP verb, prefix, spam trap, system field names) with support for config
file loading and alias resolution.
"""

from pydantic import BaseModel, Field, field_validator, ConfigDict, model_validator
from typing import Dict, Any, Optional, Tuple, Union
from pathlib import Path
import yaml
import json
import logging

from formlets.errors import FormletConfigError
from formlets.utils import configure_logging, str_to_bool

logger = logging.getLogger(__name__)


class FormSettings(BaseModel):
    """
    Settings of a root formlet.

    Parameter Precedence Hierarchy (lowest to highest priority):
    1. Pydantic field defaults
    2. Configuration file values
    3. Direct override kwargs (programmatic use)
    """

    method: str = Field(default="POST", description="HTTP verb the form submits with")
    prefix: Optional[str] = Field(
        default=None, description="Global prefix prepended to every instance name"
    )
    honeypot: bool = Field(default=False, description="Add spam-trap hidden fields")
    action: Optional[str] = Field(default=None, description="Form action URL")
    enctype: str = Field(default="multipart/form-data")
    accept_charset: str = Field(default="UTF-8")
    native_methods: Tuple[str, ...] = Field(
        default=("GET", "POST"),
        description="Verbs the transport supports without a method override field",
    )
    method_field: str = Field(default="_method")
    token_field: str = Field(default="_token")
    honeypot_fields: Tuple[str, str] = Field(
        default=("formlet-terms", "formlet-email")
    )
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        validate_by_name=True,
    )

    @classmethod
    def get_aliases(cls) -> Dict[str, str]:
        """
        Return mapping of aliases to full setting names.

        Returns:
            Dict mapping alias names to full setting names
        """
        return {
            "verb": "method",
            "spam_trap": "honeypot",
            "log": "log_level",
        }

    @classmethod
    def get_settings_from_config(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        override_kwargs: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Merge setting sources with explicit precedence.

        Precedence (lowest to highest priority):
        1. Pydantic field defaults
        2. Configuration file values
        3. Direct overrides

        Args:
            config_path: Path to YAML/JSON configuration file
            override_kwargs: Direct setting overrides (highest priority)

        Returns:
            Merged dictionary of provided settings

        Raises:
            FileNotFoundError: If config_path does not exist
            FormletConfigError: If config file loading fails
        """
        # Start with empty dict - Pydantic will provide field defaults
        settings: Dict[str, Any] = {}

        if config_path:
            try:
                config_data = cls._load_config_file(config_path)
            except (FormletConfigError, FileNotFoundError):
                raise
            except Exception as e:
                raise FormletConfigError(
                    f"Failed to load config file: {config_path}",
                    {"error": str(e)},
                )
            settings.update(cls._resolve_aliases(config_data))
            logger.debug(
                f"Loaded {len(config_data)} settings from config file: {config_path}"
            )

        if override_kwargs:
            settings.update(cls._resolve_aliases(override_kwargs))
            logger.debug(f"Applied {len(override_kwargs)} direct setting overrides")

        return settings

    @classmethod
    def from_config(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        override_kwargs: Optional[Dict[str, Any]] = None,
    ) -> "FormSettings":
        settings = cls.get_settings_from_config(
            config_path=config_path,
            override_kwargs=override_kwargs,
        )

        try:
            return cls(**settings)
        except Exception as e:
            error_context = {
                "provided_settings": list(settings.keys()),
                "config_path": str(config_path) if config_path else None,
                "has_overrides": override_kwargs is not None,
            }
            logger.error(f"Error Context: {error_context}")
            raise FormletConfigError(
                f"Settings validation failed: {e}", error_context
            )

    @classmethod
    def _load_config_file(cls, config_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load configuration from YAML or JSON file.

        Args:
            config_path: Path to configuration file

        Returns:
            Dictionary of configuration values

        Raises:
            FileNotFoundError: If config file doesn't exist
            FormletConfigError: If file format is unsupported or parsing fails
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if config_path.suffix.lower() in [".yml", ".yaml"]:
                    data = yaml.safe_load(f) or {}
                elif config_path.suffix.lower() == ".json":
                    data = json.load(f) or {}
                else:
                    raise FormletConfigError(
                        f"Unsupported config file format: {config_path.suffix}. "
                        f"Supported formats: .yml, .yaml, .json"
                    )
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise FormletConfigError(f"Failed to parse {config_path}: {e}")

        if not isinstance(data, dict):
            raise FormletConfigError(
                f"Expected a mapping at the top of {config_path}",
                {"type": type(data).__name__},
            )
        return data

    @classmethod
    def _resolve_aliases(cls, settings: Dict[str, Any]) -> Dict[str, Any]:
        """
        Resolve setting aliases to full setting names.

        If both an alias and its full name are provided, the alias value wins.
        """
        aliases = cls.get_aliases()
        resolved = {key: value for key, value in settings.items() if key not in aliases}

        for key, value in settings.items():
            if key in aliases:
                full_name = aliases[key]
                resolved[full_name] = value
                logger.debug(f"Resolved alias '{key}' -> '{full_name}' = {value}")

        return resolved

    @model_validator(mode="before")
    @classmethod
    def convert_string_values(cls, values):
        """
        Convert string representations to appropriate Python types.

        Handles:
        - 'None', 'none', 'null' -> None for optional settings
        - 'True', 'yes', 'off', ... -> bool for the honeypot flag
        """
        if isinstance(values, dict):
            for key, value in list(values.items()):
                if not isinstance(value, str):
                    continue
                if key in ("prefix", "action") and value.lower() in ("none", "null"):
                    values[key] = None
                elif key == "honeypot":
                    converted = str_to_bool(value)
                    if converted is not None:
                        values[key] = converted
        return values

    @field_validator("method")
    @classmethod
    def validate_method(cls, v):
        """Normalize the verb to upper case."""
        v = str(v).strip().upper()
        if not v:
            raise ValueError("method must not be empty")
        return v

    @field_validator("native_methods", mode="before")
    @classmethod
    def validate_native_methods(cls, v):
        if isinstance(v, str):
            v = [item for item in v.replace(",", " ").split() if item]
        return tuple(str(item).upper() for item in v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log_level is valid."""
        if isinstance(v, str):
            v = v.upper()
            if v not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
                raise ValueError(f"Invalid log level: {v}")
        return v

    @property
    def requires_method_override(self) -> bool:
        return self.method not in self.native_methods

    @property
    def transport_method(self) -> str:
        """Verb placed in the form's ``method`` attribute."""
        return "GET" if self.method == "GET" else "POST"

    def setup_logging(self) -> None:
        """Configure logging based on log_level setting."""
        configure_logging(self.log_level)
        logger.info(f"Logging configured at {self.log_level} level")

    def to_dict(self, exclude_none: bool = True) -> Dict[str, Any]:
        """Convert to dictionary, optionally excluding None values."""
        return self.model_dump(exclude_none=exclude_none)

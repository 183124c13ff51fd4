"""
Configuration management for code generation.

Handles loading and merging configuration from JSON files,
providing per-backend defaults and validation for generator settings.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import asdict, dataclass, field

from .dialects import Dialect, DEFAULT_DIALECT, detect_dialect, parse_dialect
from .naming import NamingCase


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


@dataclass
class GeneratorConfig:
    """Configuration for backend generators."""

    # Target database; None means detect from the environment
    dialect: Optional[str] = None

    # Output layout
    src_dir: Optional[str] = None
    output_path: Optional[str] = None

    # Code style settings
    column_case: str = "original"  # original, snake, camel
    indent_size: int = 2

    # Content switches
    add_comments: bool = True
    include_companions: bool = True
    include_seed: bool = False

    # Environment variable holding the connection string
    database_url_env: str = "DATABASE_URL"

    # Custom settings (backend-specific)
    custom: Dict[str, Any] = field(default_factory=dict)

    @property
    def naming_case(self) -> NamingCase:
        return NamingCase(self.column_case)

    @property
    def indent(self) -> str:
        return " " * self.indent_size

    def resolve_dialect(self) -> Dialect:
        """Configured dialect, else the one named by the connection URL, else postgresql."""
        if self.dialect:
            return parse_dialect(self.dialect)
        detected = detect_dialect(os.environ.get(self.database_url_env))
        return detected or DEFAULT_DIALECT


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager."""
        self._configs: Dict[str, Dict[str, Any]] = {}
        self._load_defaults()

    def _load_defaults(self):
        """Load default configurations for supported backends."""
        # Drizzle defaults
        self._configs["drizzle"] = {
            "column_case": "snake",
            "indent_size": 2,
            "add_comments": True,
            "include_companions": True,
            "custom": {
                "migrations_dir": "drizzle/migrations",
                "strict": True,
            }
        }

        # Prisma defaults
        self._configs["prisma"] = {
            "column_case": "original",
            "indent_size": 2,
            "add_comments": True,
            "include_companions": True,
            "include_seed": False,
            "custom": {
                "client_provider": "prisma-client-js",
            }
        }

        # Kysely defaults
        self._configs["kysely"] = {
            "column_case": "original",
            "indent_size": 2,
            "add_comments": True,
            "include_companions": True,
            "custom": {
                "migrations_dir": "migrations",
            }
        }

    def get_config(self, backend: str, custom_config: Optional[Dict[str, Any]] = None,
                   config_file: Optional[Union[str, Path]] = None) -> GeneratorConfig:
        """
        Get complete configuration for a backend.

        Args:
            backend: Target backend name
            custom_config: Custom configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration for the backend
        """
        defaults = self._configs.get(backend.lower(), {})
        base_config = dict(defaults)
        base_config["custom"] = dict(defaults.get("custom", {}))

        if config_file:
            self._merge(base_config, self._load_config_file(config_file))

        if custom_config:
            self._merge(base_config, custom_config)

        return self._dict_to_config(base_config)

    @staticmethod
    def _merge(base: Dict[str, Any], overrides: Dict[str, Any]):
        """Merge overrides into base; the custom dict is merged key by key."""
        for key, value in overrides.items():
            if key == "custom" and isinstance(value, dict):
                base.setdefault("custom", {}).update(value)
            else:
                base[key] = value

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == '.json':
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig instance."""
        known_fields = set(GeneratorConfig.__dataclass_fields__)

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        # Unknown keys are backend-specific settings
        if custom_args:
            existing_custom = dict(config_args.get('custom', {}))
            existing_custom.update(custom_args)
            config_args['custom'] = existing_custom

        return GeneratorConfig(**config_args)

    def save_config(self, config: GeneratorConfig, output_path: Union[str, Path]):
        """Save configuration to JSON file."""
        path = Path(output_path)

        config_dict = asdict(config)
        custom = config_dict.pop("custom")
        config_dict.update(custom)

        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}") from e

    def list_backends(self) -> List[str]:
        """Get list of backends with default configurations."""
        return list(self._configs.keys())

    def validate_config(self, config: GeneratorConfig, backend: str) -> List[str]:
        """
        Validate configuration for a backend.

        Returns:
            List of validation warnings/errors
        """
        warnings = []

        valid_cases = {case.value for case in NamingCase}
        if config.column_case not in valid_cases:
            warnings.append(f"Invalid column_case: {config.column_case}")

        if config.dialect:
            try:
                parse_dialect(config.dialect)
            except ValueError as e:
                warnings.append(str(e))

        if not isinstance(config.indent_size, int) or config.indent_size < 1:
            warnings.append(f"Invalid indent_size: {config.indent_size}")

        if not config.database_url_env:
            warnings.append("database_url_env cannot be empty")

        # Backend-specific validations
        if backend == "prisma":
            if config.column_case == "camel":
                warnings.append("Prisma fields already use camelCase; column_case 'camel' has no effect")

        elif config.include_seed:
            warnings.append(f"include_seed is only supported by the prisma backend, not {backend}")

        return warnings


# Global configuration manager instance
_config_manager = None

def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(backend: str, custom_config: Optional[Dict[str, Any]] = None,
                config_file: Optional[Union[str, Path]] = None) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        backend: Target backend name
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration for the backend
    """
    manager = get_config_manager()
    return manager.get_config(backend, custom_config, config_file)

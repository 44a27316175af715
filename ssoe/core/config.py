'''
Configuration management for the SSOE Toolbox.

Settings are layered, later layers overriding earlier ones:

1. Defaults built into the dataclasses below
2. An optional JSON file (``ssoe_config.json``) in the directory named by
   ``SSOE_CONFIG_DIR``
3. Environment variables of the form ``SSOE_<SECTION>_<OPTION>``, e.g.
   ``SSOE_NUMERICAL_MAXEVAL=2000``
4. Runtime changes through :func:`set_config`

Model configuration objects read their defaults from here when they are
constructed, so a change made with :func:`set_config` applies to models
created afterwards.
'''

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger("ssoe.core.config")

CONFIG_ENV_PREFIX = "SSOE_"
DEFAULT_CONFIG_FILENAME = "ssoe_config.json"
USER_CONFIG_DIR_ENV = "SSOE_CONFIG_DIR"
LOG_LEVEL_ENV = "SSOE_LOG_LEVEL"


class ConfigSection(Enum):
    """Enumeration of configuration sections."""
    NUMERICAL = "numerical"
    MODELS = "models"
    LOGGING = "logging"


@dataclass
class NumericalConfig:
    """
    Numerical settings of the estimation engine.

    Attributes:
        maxeval: Function-evaluation budget of the first optimizer phase
        xtol_rel: Relative parameter tolerance of the first optimizer phase
        sentinel: Cost returned for non-finite or inadmissible points
        stability_tolerance: Allowed excess of the spectral radius over one
        backcast_loops: Forward/backward passes used by backcasting
        occurrence_floor: Probability clip applied inside occurrence likelihoods
    """
    maxeval: int = 5000
    xtol_rel: float = 1e-8
    sentinel: float = 1e100
    stability_tolerance: float = 1e-10
    backcast_loops: int = 2
    occurrence_floor: float = 1e-10


@dataclass
class ModelsConfig:
    """
    Default model settings.

    Attributes:
        cost_function: Default cost function name
        information_criterion: Default criterion used for selection
        bounds: Default bounds regime
        intervals: Default prediction interval type
        level: Default prediction interval coverage
        horizon: Default forecast horizon
    """
    cost_function: str = "MSE"
    information_criterion: str = "AICc"
    bounds: str = "restricted"
    intervals: str = "parametric"
    level: float = 0.95
    horizon: int = 10


@dataclass
class LoggingConfig:
    """
    Logging settings.

    Attributes:
        log_level: Level of the ``ssoe`` package logger
        log_format: Format string of its handler
    """
    log_level: str = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class SSOEConfig:
    """Complete toolbox configuration."""
    numerical: NumericalConfig = field(default_factory=NumericalConfig)
    models: ModelsConfig = field(default_factory=ModelsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Options whose values must satisfy a simple predicate; the message names the rule.
_CONSTRAINTS = {
    "numerical.maxeval": (lambda v: v > 0, "must be positive"),
    "numerical.xtol_rel": (lambda v: v > 0, "must be positive"),
    "numerical.sentinel": (lambda v: v > 0, "must be positive"),
    "numerical.stability_tolerance": (lambda v: v >= 0, "must be non-negative"),
    "numerical.backcast_loops": (lambda v: v >= 1, "must be at least 1"),
    "numerical.occurrence_floor": (lambda v: 0 < v < 0.5, "must lie in (0, 0.5)"),
    "models.level": (lambda v: 0 < v < 1, "must lie in (0, 1)"),
    "models.horizon": (lambda v: v >= 1, "must be at least 1"),
    "logging.log_level": (
        lambda v: v in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        "must be a standard logging level name",
    ),
}


class ConfigManager:
    """
    Configuration manager for the SSOE Toolbox.

    Attributes:
        _config: The current configuration object
        _initialized: Whether file and environment layers have been applied
        _config_file: Path to the user configuration file, if any
    """

    def __init__(self):
        self._config = SSOEConfig()
        self._initialized = False
        self._config_file: Optional[Path] = None
        self._modified_keys = set()

    def initialize(self) -> None:
        """Apply the file and environment layers once and configure logging."""
        if self._initialized:
            return

        config_dir = os.environ.get(USER_CONFIG_DIR_ENV)
        if config_dir:
            self._config_file = Path(config_dir) / DEFAULT_CONFIG_FILENAME
        self._load_user_config()
        self._apply_env_overrides()
        self._validate_config()
        self._setup_logging()

        self._initialized = True
        logger.debug("Configuration initialized")

    def _load_user_config(self) -> None:
        if not self._config_file or not self._config_file.exists():
            logger.debug("No user configuration file found")
            return

        try:
            with open(self._config_file, 'r') as f:
                user_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load user configuration: {e}")
            return

        for section, options in user_config.items():
            if not isinstance(options, dict):
                continue
            for option, value in options.items():
                if self.has_option(section, option):
                    self._assign(section, option, value)
        logger.debug(f"Loaded user configuration from {self._config_file}")

    def _apply_env_overrides(self) -> None:
        # Short form of SSOE_LOGGING_LOG_LEVEL
        level = os.environ.get(LOG_LEVEL_ENV)
        if level:
            self._assign("logging", "log_level", level.upper())

        for env_var, value in os.environ.items():
            if not env_var.startswith(CONFIG_ENV_PREFIX) or env_var in (USER_CONFIG_DIR_ENV, LOG_LEVEL_ENV):
                continue

            parts = env_var[len(CONFIG_ENV_PREFIX):].lower().split('_', 1)
            if len(parts) != 2:
                continue
            section, option = parts
            if not self.has_option(section, option):
                continue

            current_value = getattr(getattr(self._config, section), option)
            value_type = type(current_value)
            try:
                if value_type is bool:
                    typed_value = value.lower() in ('true', 'yes', '1', 'y')
                elif value_type is int:
                    typed_value = int(value)
                elif value_type is float:
                    typed_value = float(value)
                else:
                    typed_value = value
            except ValueError:
                logger.warning(f"Ignoring {env_var}={value!r}: expected {value_type.__name__}")
                continue

            if section == "logging" and option == "log_level":
                typed_value = typed_value.upper()
            self._assign(section, option, typed_value)
            logger.debug(f"Applied environment override {env_var}={value}")

    def _assign(self, section: str, option: str, value: Any) -> None:
        setattr(getattr(self._config, section), option, value)
        self._modified_keys.add(f"{section}.{option}")

    def _validate_config(self) -> None:
        # Invalid values from files or environment are reset rather than raised.
        defaults = SSOEConfig()
        for key, (check, rule) in _CONSTRAINTS.items():
            section, option = key.split('.')
            value = getattr(getattr(self._config, section), option)
            if not check(value):
                default = getattr(getattr(defaults, section), option)
                logger.warning(f"Invalid value for {key}: {value!r} ({rule}); using {default!r}")
                setattr(getattr(self._config, section), option, default)
                self._modified_keys.discard(key)

    def _setup_logging(self) -> None:
        package_logger = logging.getLogger("ssoe")
        package_logger.setLevel(getattr(logging, self._config.logging.log_level))
        for handler in package_logger.handlers:
            handler.setFormatter(logging.Formatter(self._config.logging.log_format))

    def to_dict(self) -> Dict[str, Any]:
        """Return the current configuration as a nested dictionary."""
        return asdict(self._config)

    def get(self, section: str, option: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            section: The configuration section
            option: The option within the section
            default: Returned when the option does not exist

        Returns:
            The configured value or ``default``
        """
        self.initialize()
        if not self.has_option(section, option):
            return default
        return getattr(getattr(self._config, section), option)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Set a configuration value.

        Raises:
            ConfigurationError: If the option does not exist, has the wrong type
                or violates its constraint
        """
        self.initialize()
        if not self.has_option(section, option):
            raise ConfigurationError(
                f"Unknown configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                issue="Option not found"
            )

        current_value = getattr(getattr(self._config, section), option)
        if isinstance(current_value, float) and isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        if type(value) is not type(current_value):
            raise ConfigurationError(
                f"Invalid type for configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                value=value,
                issue=f"Expected {type(current_value).__name__}, got {type(value).__name__}"
            )

        key = f"{section}.{option}"
        if key in _CONSTRAINTS:
            check, rule = _CONSTRAINTS[key]
            if not check(value):
                raise ConfigurationError(
                    f"Invalid value for configuration option: {key}",
                    setting=key,
                    value=value,
                    issue=rule
                )

        self._assign(section, option, value)
        if section == "logging":
            self._setup_logging()
        logger.debug(f"Set configuration option: {key}={value}")

    def reset(self, section: Optional[str] = None, option: Optional[str] = None) -> None:
        """
        Reset configuration to default values.

        Args:
            section: Section to reset, or None for everything
            option: Option to reset, or None for the whole section

        Raises:
            ConfigurationError: If the section or option is not found
        """
        defaults = SSOEConfig()
        if section is None:
            self._config = defaults
            self._modified_keys.clear()
            logger.debug("Reset all configuration to defaults")
            return

        if not self.has_section(section):
            raise ConfigurationError(
                f"Unknown configuration section: {section}",
                setting=section,
                issue="Section not found"
            )

        if option is None:
            setattr(self._config, section, getattr(defaults, section))
            self._modified_keys = {k for k in self._modified_keys if not k.startswith(f"{section}.")}
            logger.debug(f"Reset configuration section: {section}")
            return

        if not self.has_option(section, option):
            raise ConfigurationError(
                f"Unknown configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                issue="Option not found"
            )
        setattr(getattr(self._config, section), option, getattr(getattr(defaults, section), option))
        self._modified_keys.discard(f"{section}.{option}")

    def is_modified(self, section: str, option: str) -> bool:
        """Whether an option differs from its built-in default by explicit assignment."""
        return f"{section}.{option}" in self._modified_keys

    def has_section(self, section: str) -> bool:
        return section in {s.value for s in ConfigSection}

    def has_option(self, section: str, option: str) -> bool:
        return self.has_section(section) and hasattr(getattr(self._config, section), option)

    def get_options(self, section: str) -> List[str]:
        """List the option names of a section."""
        if not self.has_section(section):
            raise ConfigurationError(
                f"Unknown configuration section: {section}",
                setting=section,
                issue="Section not found"
            )
        return list(asdict(getattr(self._config, section)).keys())

    def get_section(self, section: str) -> Any:
        """Return a section dataclass."""
        self.initialize()
        if not self.has_section(section):
            raise ConfigurationError(
                f"Unknown configuration section: {section}",
                setting=section,
                issue="Section not found"
            )
        return getattr(self._config, section)


_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    """Return the process-wide configuration manager."""
    return _config_manager


def get_config(section: str, option: str, default: Any = None) -> Any:
    """Get a configuration value from the process-wide manager."""
    return _config_manager.get(section, option, default)


def set_config(section: str, option: str, value: Any) -> None:
    """Set a configuration value on the process-wide manager."""
    _config_manager.set(section, option, value)


def reset_config(section: Optional[str] = None, option: Optional[str] = None) -> None:
    """Reset configuration on the process-wide manager."""
    _config_manager.reset(section, option)


def get_numerical_config() -> NumericalConfig:
    """Return the numerical configuration section."""
    return _config_manager.get_section("numerical")


def get_models_config() -> ModelsConfig:
    """Return the models configuration section."""
    return _config_manager.get_section("models")

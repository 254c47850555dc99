"""
Configuration Management System
==============================

Centralized configuration management with validation and serialization
for the evaporation line model.

Parameter groups are plain dataclasses validated on construction. Default
values reproduce the Gonfiantini (1986) evaporating-volume example and the
GNIP long-term monthly means used for the seasonal run.
"""

import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field, asdict
import warnings
from contextlib import contextmanager


MONTHS_PER_YEAR = 12


# ================================
# Utility Functions
# ================================

def validate_range(value: float, min_val: float, max_val: float, name: str,
                  unit: str = "") -> None:
    """Shared validation for numeric ranges."""
    if not min_val <= value <= max_val:
        unit_str = f" {unit}" if unit else ""
        raise ValueError(f"{name} must be {min_val}-{max_val}{unit_str}, got {value}{unit_str}")

def validate_positive(value: float, name: str) -> None:
    """Shared validation for positive values."""
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")

def validate_monthly(values: Optional[List[float]], name: str) -> None:
    """Monthly series must hold exactly one value per month."""
    if values is not None and len(values) != MONTHS_PER_YEAR:
        raise ValueError(f"{name} must have {MONTHS_PER_YEAR} monthly values, got {len(values)}")

def load_config_file(file_path: Path) -> Dict[str, Any]:
    """Load configuration from JSON or YAML file."""
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    suffix = file_path.suffix.lower()
    with open(file_path, 'r') as f:
        if suffix == '.json':
            return json.load(f)
        elif suffix in ['.yaml', '.yml']:
            return yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported configuration file format: {suffix}")

def save_config_file(file_path: Path, config_dict: Dict[str, Any]) -> None:
    """Save configuration to JSON or YAML file."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    suffix = file_path.suffix.lower()
    if suffix not in ['.json', '.yaml', '.yml']:
        raise ValueError(f"Unsupported configuration file format: {suffix}")

    with open(file_path, 'w') as f:
        if suffix == '.json':
            json.dump(config_dict, f, indent=2, default=str)
        else:
            yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2, sort_keys=False)

@contextmanager
def config_error_handler(operation: str):
    """Context manager for consistent error handling."""
    try:
        yield
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Failed to {operation}: {e}")
        raise RuntimeError(f"Failed to {operation}: {e}") from e


# ================================
# Configuration Parameter Classes
# ================================

@dataclass
class FractionationParameters:
    """Kinetic and atmospheric fractionation settings shared by both modes."""
    aerodynamic_n: float = 0.75  # 1 for dry soils, 0.5 for lakes and saturated soils
    seasonality_factor: float = 1.0  # k, 1 = atmosphere in equilibrium with precipitation

    def __post_init__(self):
        """Validate fractionation parameters."""
        validate_range(self.aerodynamic_n, 0, 1, "Aerodynamic parameter n")
        validate_range(self.seasonality_factor, 0, 1, "Seasonality factor k")


@dataclass
class EvaporatingVolumeParameters:
    """Single evaporating water volume (Gonfiantini 1986, pp. 117-118)."""
    temperature: float = 20.0  # degrees C
    relative_humidity: float = 0.75  # fraction
    d2H_source: float = -38.0  # per mil
    d18O_source: float = -6.0  # per mil

    # Measured atmospheric vapor; None derives it from the source water
    d2H_atmosphere: Optional[float] = None  # per mil
    d18O_atmosphere: Optional[float] = None  # per mil

    # Evaporated fraction sweep
    fraction_min: float = 0.1
    fraction_max: float = 0.9
    fraction_steps: int = 9

    def __post_init__(self):
        """Validate evaporating volume parameters."""
        validate_range(self.relative_humidity, 0, 1, "Relative humidity")
        if not -50 <= self.temperature <= 50:
            warnings.warn(f"Unusual air temperature: {self.temperature}°C")
        if (self.d2H_atmosphere is None) != (self.d18O_atmosphere is None):
            raise ValueError("Atmospheric d2H and d18O must be given together")
        validate_range(self.fraction_min, 0, 1, "Minimum evaporated fraction")
        validate_range(self.fraction_max, 0, 1, "Maximum evaporated fraction")
        if self.fraction_min > self.fraction_max:
            raise ValueError(f"Minimum evaporated fraction ({self.fraction_min}) exceeds "
                             f"maximum ({self.fraction_max})")
        validate_positive(self.fraction_steps, "Fraction steps")


def _default_monthly_temperature() -> List[float]:
    return [-0.1, 1.6, 5.7, 10.7, 15.3, 18.6, 20.4, 19.9, 15.5, 10.2, 5.3, 1.2]

def _default_monthly_d18O() -> List[float]:
    return [-13.25, -12.66, -11.19, -9.34, -7.18, -7.30, -6.39, -6.43, -7.97, -9.35, -12.00, -13.47]

def _default_monthly_vapor_pressure() -> List[float]:
    return [5.0, 5.3, 6.4, 8.3, 11.6, 14.4, 15.7, 15.6, 13.0, 10.0, 7.3, 5.5]


@dataclass
class SeasonalParameters:
    """Monthly climate forcing and seasonal evaporation cycle (January to December)."""
    # GNIP long-term monthly means (IAEA/WMO 2017)
    temperature: List[float] = field(default_factory=_default_monthly_temperature)  # degrees C
    d18O_precipitation: List[float] = field(default_factory=_default_monthly_d18O)  # per mil
    vapor_pressure: List[float] = field(default_factory=_default_monthly_vapor_pressure)  # hPa

    # Measured d2H; None derives it from the local meteoric water line
    d2H_precipitation: Optional[List[float]] = None  # per mil
    lmwl_slope: float = 7.45
    lmwl_intercept: float = 2.12

    # Evaporation/precipitation ratio x as a sinusoid
    mean_evaporation_ratio: float = 0.1
    seasonal_amplitude: float = 0.8  # 0 = no seasonality, 1 = x spans 0 to 2*mean
    phase_shift: float = 0.0  # months
    evaporation_ratios: Optional[List[float]] = None  # explicit x series overrides the sinusoid

    # Monthly climate CSV overrides the lists above
    climate_file: Optional[str] = None

    def __post_init__(self):
        """Validate seasonal parameters."""
        validate_monthly(self.temperature, "Monthly temperature")
        validate_monthly(self.d18O_precipitation, "Monthly precipitation d18O")
        validate_monthly(self.vapor_pressure, "Monthly vapor pressure")
        validate_monthly(self.d2H_precipitation, "Monthly precipitation d2H")
        validate_monthly(self.evaporation_ratios, "Monthly evaporation ratios")
        for vp in self.vapor_pressure:
            validate_positive(vp, "Vapor pressure")
        validate_range(self.seasonal_amplitude, 0, 1, "Seasonal amplitude")
        if self.mean_evaporation_ratio < 0:
            raise ValueError(f"Mean evaporation ratio must be non-negative, got {self.mean_evaporation_ratio}")
        if self.mean_evaporation_ratio * (1 + self.seasonal_amplitude) >= 1:
            raise ValueError("Peak evaporation ratio must stay below 1, reduce the mean or the amplitude")
        if self.evaporation_ratios is not None:
            for x in self.evaporation_ratios:
                if not 0 <= x < 1:
                    raise ValueError(f"Evaporation ratios must be in [0, 1), got {x}")


@dataclass
class OutputParameters:
    """Run selection, output and visualization settings."""
    run_single_volume: bool = True
    run_seasonal: bool = True
    save_results: bool = True
    save_csv: bool = True
    save_plots: bool = False
    plot_dpi: int = 300
    plot_format: str = 'png'
    output_directory: str = 'output_results'
    filename_prefix: str = 'evaporation_line'

    def __post_init__(self):
        """Validate output parameters."""
        validate_positive(self.plot_dpi, "Plot DPI")
        if self.plot_format not in ['png', 'pdf', 'svg', 'jpg']:
            raise ValueError(f"Unsupported plot format: {self.plot_format}")


@dataclass
class ModelConfiguration:
    """Complete model configuration."""
    fractionation: FractionationParameters = field(default_factory=FractionationParameters)
    evaporating_volume: EvaporatingVolumeParameters = field(default_factory=EvaporatingVolumeParameters)
    seasonal: SeasonalParameters = field(default_factory=SeasonalParameters)
    output: OutputParameters = field(default_factory=OutputParameters)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ModelConfiguration':
        """Create configuration from dictionary."""
        return cls(
            fractionation=FractionationParameters(**config_dict.get('fractionation', {})),
            evaporating_volume=EvaporatingVolumeParameters(**config_dict.get('evaporating_volume', {})),
            seasonal=SeasonalParameters(**config_dict.get('seasonal', {})),
            output=OutputParameters(**config_dict.get('output', {}))
        )

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'ModelConfiguration':
        """Load configuration from JSON or YAML file."""
        config_dict = load_config_file(file_path)
        return cls.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'fractionation': asdict(self.fractionation),
            'evaporating_volume': asdict(self.evaporating_volume),
            'seasonal': asdict(self.seasonal),
            'output': asdict(self.output)
        }

    def to_file(self, file_path: Union[str, Path]) -> None:
        """Save configuration to JSON or YAML file."""
        save_config_file(file_path, self.to_dict())

    def validate(self) -> None:
        """Validate entire configuration for physical consistency."""
        volume = self.evaporating_volume
        if volume.fraction_max >= 0.999:
            warnings.warn(f"Evaporated fraction sweep ends at {volume.fraction_max}; "
                          "x = 1 is only defined for integer enrichment slopes")

        if self.fractionation.seasonality_factor < 1 and volume.d2H_atmosphere is not None:
            warnings.warn("Seasonality factor is ignored when atmospheric composition is given")

        if not (self.output.run_single_volume or self.output.run_seasonal):
            warnings.warn("No model mode selected - nothing will be computed")


# =============================
# Configuration Factory Functions
# =============================

def create_default_config() -> ModelConfiguration:
    """Create default model configuration."""
    return ModelConfiguration()


def load_config(config_path: Union[str, Path, Dict[str, Any], None] = None) -> ModelConfiguration:
    """
    Load model configuration from various sources.

    Args:
        config_path: Path to YAML/JSON file, dictionary, or None for defaults

    Returns:
        ModelConfiguration object
    """
    if config_path is None:
        return create_default_config()

    if isinstance(config_path, dict):
        return ModelConfiguration.from_dict(config_path)

    return ModelConfiguration.from_file(config_path)


# ================================
# Configuration Management Classes
# ================================

class ConfigurationManager:
    """
    Centralized configuration management system.

    Handles loading, saving, validation and dot-path parameter updates
    of model configurations.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Configuration file to start from (defaults if None)
        """
        self.current_config = None
        self.unsaved_changes = False

        if config_path is None:
            self.load_default_config()
        else:
            self.load_config_from_file(config_path)

    def load_default_config(self) -> ModelConfiguration:
        """Load default configuration."""
        self.current_config = load_config()
        self.unsaved_changes = False
        return self.current_config

    def load_config_from_file(self, file_path: Path) -> ModelConfiguration:
        """
        Load configuration from file.

        Args:
            file_path: Path to configuration file

        Returns:
            Loaded ModelConfiguration instance
        """
        with config_error_handler(f"load configuration from {file_path}"):
            self.current_config = ModelConfiguration.from_file(file_path)
            self.unsaved_changes = False
            return self.current_config

    def save_config_to_file(self, file_path: Path,
                           config: Optional[ModelConfiguration] = None) -> bool:
        """
        Save configuration to file.

        Returns:
            True if saved successfully, False otherwise
        """
        config = config or self.current_config
        if config is None:
            print("No configuration to save")
            return False

        try:
            config.to_file(file_path)
        except (OSError, ValueError) as e:
            print(f"Failed to save configuration to {file_path}: {e}")
            return False

        self.unsaved_changes = False
        return True

    def validate_config(self, config: Optional[ModelConfiguration] = None) -> List[str]:
        """
        Validate configuration parameters.

        Dataclass validation runs again on a rebuilt copy so values changed
        through ``update_config_parameter`` are checked too.

        Returns:
            List of validation error messages (empty if valid)
        """
        config = config or self.current_config
        if config is None:
            return ["No configuration to validate"]

        errors = []
        try:
            rebuilt = ModelConfiguration.from_dict(config.to_dict())
            rebuilt.validate()
        except (ValueError, TypeError) as e:
            errors.append(str(e))

        return errors

    def update_config_parameter(self, parameter_path: str, value: Any) -> bool:
        """
        Update a specific configuration parameter.

        Args:
            parameter_path: Dot-separated path (e.g. 'fractionation.aerodynamic_n')
            value: New value; strings are converted to the current value's type

        Returns:
            True if updated successfully, False otherwise
        """
        try:
            path_parts = parameter_path.split('.')
            obj = self.current_config
            for part in path_parts[:-1]:
                obj = getattr(obj, part)

            attr_name = path_parts[-1]
            if not hasattr(obj, attr_name):
                raise AttributeError(f"Unknown parameter: {parameter_path}")
            current_value = getattr(obj, attr_name)

            if isinstance(value, str):
                value = _coerce_string(value, current_value)

            setattr(obj, attr_name, value)
            self.unsaved_changes = True
            return True

        except (ValueError, AttributeError, yaml.YAMLError) as e:
            print(f"Failed to update parameter {parameter_path}: {e}")
            return False

    def get_config_parameter(self, parameter_path: str) -> Any:
        """
        Get a specific configuration parameter value.

        Returns:
            Parameter value or None if not found
        """
        obj = self.current_config
        try:
            for part in parameter_path.split('.'):
                obj = getattr(obj, part)
        except AttributeError:
            return None
        return obj

    def has_unsaved_changes(self) -> bool:
        return self.unsaved_changes

    def create_config_copy(self) -> ModelConfiguration:
        """Create a deep copy of current configuration."""
        return ModelConfiguration.from_dict(self.current_config.to_dict())


def _coerce_string(value: str, current_value: Any) -> Any:
    """Convert a command-line string to the type of the value it replaces."""
    # bool before int/float, bool is an int subclass
    if isinstance(current_value, bool):
        return value.lower() in ('true', '1', 'yes', 'on')
    if isinstance(current_value, float):
        return float(value)
    if isinstance(current_value, int):
        return int(value)
    if isinstance(current_value, str):
        return value
    # None or list: parse as YAML scalar/sequence ("null", "[0.1, 0.2]", "-86")
    return yaml.safe_load(value)

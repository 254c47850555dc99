"""Tests for configuration dataclasses, file I/O and the configuration manager."""

import pytest
import yaml

from config_manager import (ConfigurationManager, EvaporatingVolumeParameters, FractionationParameters,
                            ModelConfiguration, SeasonalParameters, create_default_config, load_config)


class TestParameterValidation:

    def test_defaults_are_gonfiantini_example(self, default_config):
        volume = default_config.evaporating_volume
        assert (volume.temperature, volume.relative_humidity) == (20.0, 0.75)
        assert (volume.d2H_source, volume.d18O_source) == (-38.0, -6.0)
        assert default_config.fractionation.aerodynamic_n == 0.75

    @pytest.mark.parametrize("humidity", [-0.1, 1.5])
    def test_rejects_humidity(self, humidity):
        with pytest.raises(ValueError):
            EvaporatingVolumeParameters(relative_humidity=humidity)

    def test_rejects_single_atmosphere_value(self):
        with pytest.raises(ValueError):
            EvaporatingVolumeParameters(d2H_atmosphere=-86.0)

    def test_rejects_inverted_sweep(self):
        with pytest.raises(ValueError):
            EvaporatingVolumeParameters(fraction_min=0.8, fraction_max=0.2)

    def test_warns_on_unusual_temperature(self):
        with pytest.warns(UserWarning, match="Unusual air temperature"):
            EvaporatingVolumeParameters(temperature=65.0)

    @pytest.mark.parametrize("n", [-0.5, 1.5])
    def test_rejects_aerodynamic_n(self, n):
        with pytest.raises(ValueError):
            FractionationParameters(aerodynamic_n=n)

    def test_rejects_short_monthly_series(self):
        with pytest.raises(ValueError, match="12 monthly values"):
            SeasonalParameters(temperature=[10.0] * 11)

    def test_rejects_peak_ratio_of_one(self):
        with pytest.raises(ValueError):
            SeasonalParameters(mean_evaporation_ratio=0.6, seasonal_amplitude=0.8)

    def test_rejects_explicit_ratio_of_one(self):
        with pytest.raises(ValueError):
            SeasonalParameters(evaporation_ratios=[0.1] * 11 + [1.0])

    def test_validate_warns_on_ignored_seasonality(self, default_config):
        default_config.fractionation.seasonality_factor = 0.5
        default_config.evaporating_volume.d2H_atmosphere = -86.0
        default_config.evaporating_volume.d18O_atmosphere = -12.0
        with pytest.warns(UserWarning, match="Seasonality factor"):
            default_config.validate()


class TestConfigurationFiles:

    @pytest.mark.parametrize("suffix", [".yaml", ".json"])
    def test_round_trip(self, tmp_path, default_config, suffix):
        default_config.evaporating_volume.d2H_atmosphere = -86.0
        default_config.evaporating_volume.d18O_atmosphere = -12.0
        default_config.seasonal.phase_shift = 2.0
        path = tmp_path / f"config{suffix}"

        default_config.to_file(path)
        loaded = ModelConfiguration.from_file(path)

        assert loaded == default_config

    def test_partial_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.safe_dump({'evaporating_volume': {'relative_humidity': 0.5}}))

        config = load_config(path)
        assert config.evaporating_volume.relative_humidity == 0.5
        assert config.evaporating_volume.temperature == 20.0
        assert config.seasonal == create_default_config().seasonal

    def test_load_from_dict(self):
        config = load_config({'fractionation': {'aerodynamic_n': 0.5}})
        assert config.fractionation.aerodynamic_n == 0.5

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_unsupported_format(self, tmp_path, default_config):
        with pytest.raises(ValueError):
            default_config.to_file(tmp_path / "config.toml")


class TestConfigurationManager:

    def test_update_coerces_strings(self):
        manager = ConfigurationManager()

        assert manager.update_config_parameter('evaporating_volume.relative_humidity', '0.6')
        assert manager.update_config_parameter('evaporating_volume.fraction_steps', '5')
        assert manager.update_config_parameter('output.save_plots', 'true')
        assert manager.update_config_parameter('evaporating_volume.d2H_atmosphere', '-86')

        assert manager.get_config_parameter('evaporating_volume.relative_humidity') == 0.6
        assert manager.get_config_parameter('evaporating_volume.fraction_steps') == 5
        assert manager.get_config_parameter('output.save_plots') is True
        assert manager.get_config_parameter('evaporating_volume.d2H_atmosphere') == -86
        assert manager.has_unsaved_changes()

    def test_update_monthly_list(self):
        manager = ConfigurationManager()
        ratios = "[0.05, 0.05, 0.1, 0.1, 0.15, 0.2, 0.2, 0.15, 0.1, 0.1, 0.05, 0.05]"

        assert manager.update_config_parameter('seasonal.evaporation_ratios', ratios)
        assert len(manager.get_config_parameter('seasonal.evaporation_ratios')) == 12
        assert manager.validate_config() == []

    def test_unknown_parameter(self):
        manager = ConfigurationManager()
        assert not manager.update_config_parameter('evaporating_volume.wind_speed', '3')
        assert not manager.update_config_parameter('nonexistent.value', '3')
        assert manager.get_config_parameter('nonexistent.value') is None

    def test_bad_number(self):
        manager = ConfigurationManager()
        assert not manager.update_config_parameter('fractionation.aerodynamic_n', 'fast')

    def test_validate_catches_out_of_range_update(self):
        manager = ConfigurationManager()
        assert manager.update_config_parameter('evaporating_volume.relative_humidity', '1.5')

        errors = manager.validate_config()
        assert len(errors) == 1
        assert "Relative humidity" in errors[0]

    def test_save_and_reload(self, tmp_path):
        manager = ConfigurationManager()
        manager.update_config_parameter('fractionation.aerodynamic_n', '0.5')
        path = tmp_path / "saved.yaml"

        assert manager.save_config_to_file(path)
        assert not manager.has_unsaved_changes()
        assert ConfigurationManager(path).current_config.fractionation.aerodynamic_n == 0.5

    def test_invalid_file_raises_runtime_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({'evaporating_volume': {'relative_humidity': 2.0}}))

        with pytest.raises(RuntimeError):
            ConfigurationManager(path)

    def test_copy_is_independent(self):
        manager = ConfigurationManager()
        copy = manager.create_config_copy()
        copy.seasonal.temperature[0] = 99.0

        assert manager.current_config.seasonal.temperature[0] == -0.1

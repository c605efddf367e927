"""
Tests for configuration loading and participant resolution.
"""

import pytest

from freetimefinder.config import AppConfig, Colleague, DefaultsConfig


def _config(**overrides):
    data = {
        "api_base_url": "https://schedules.example.org/api/",
        "colleagues": [
            {"name": "ana", "id": "u-ana"},
            {"name": "bruno", "id": "u-bruno", "email": "bruno@example.com"},
        ],
    }
    data.update(overrides)
    return AppConfig(**data)


class TestDefaultsConfig:
    """Tests for DefaultsConfig."""

    def test_defaults(self):
        """Test the default hourly 08:00-22:00 window."""
        defaults = DefaultsConfig()
        window = defaults.scan_window()

        assert window.granularity_minutes == 60
        assert window.day_start_minutes == 480
        assert window.day_end_minutes == 1320
        assert defaults.grid_hours() == list(range(8, 23))

    def test_overrides(self):
        """Test overriding single values of the scan window."""
        window = DefaultsConfig().scan_window(granularity_minutes=15, day_end="24:00", days=[6, 7])

        assert window.granularity_minutes == 15
        assert window.day_start_minutes == 480
        assert window.day_end_minutes == 1440
        assert window.days == (6, 7)

    def test_explicit_zero_granularity_rejected(self):
        """Test that an explicit zero step is not replaced by the default."""
        with pytest.raises(ValueError, match="Granularity"):
            DefaultsConfig().scan_window(granularity_minutes=0)

    def test_explicit_empty_days_kept(self):
        """Test that an explicit empty day list scans no days."""
        assert DefaultsConfig().scan_window(days=[]).days == ()

    @pytest.mark.parametrize("field, value", [
        ("granularity_minutes", 0),
        ("day_start", "8:00"),
        ("day_end", "25:00"),
        ("grid_first_hour", 24),
        ("min_duration_minutes", -5),
    ])
    def test_invalid_values(self, field, value):
        """Test that invalid values are rejected."""
        with pytest.raises(ValueError):
            DefaultsConfig(**{field: value})

    def test_window_order(self):
        """Test that the window must open before it closes."""
        with pytest.raises(ValueError, match="day_end must be later"):
            DefaultsConfig(day_start="18:00", day_end="08:00")


class TestAppConfig:
    """Tests for AppConfig."""

    def test_base_url_normalised(self):
        """Test that a trailing slash is stripped."""
        assert _config().api_base_url == "https://schedules.example.org/api"

    def test_invalid_timezone(self):
        """Test that unknown time zones are rejected."""
        with pytest.raises(ValueError):
            _config(timezone="Mars/Olympus")

    def test_log_level_normalised(self):
        """Test that log levels are case-insensitive."""
        assert _config(log_level="debug").log_level == "DEBUG"

    def test_duplicate_colleague_names(self):
        """Test that aliases must be unique."""
        with pytest.raises(ValueError, match="Duplicate colleague name"):
            _config(colleagues=[{"name": "Ana", "id": "1"}, {"name": "ana", "id": "2"}])

    def test_load_from_yaml(self, tmp_path):
        """Test loading a YAML file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "api_base_url: http://localhost:3000/api\n"
            "defaults:\n"
            "  granularity_minutes: 30\n"
            "colleagues:\n"
            "  - name: ana\n"
            "    id: u-ana\n",
            encoding="utf-8",
        )

        config = AppConfig.load_from_yaml(config_file)

        assert config.defaults.granularity_minutes == 30
        assert config.colleagues[0].id == "u-ana"

    def test_load_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_load_non_mapping(self, tmp_path):
        """Test that a YAML list at the root is rejected."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(config_file)


class TestParticipantResolution:
    """Tests for resolving aliases and ids."""

    def test_resolve_by_alias_and_id(self):
        """Test resolving names, ids and 'me'."""
        config = _config()

        assert config.resolve_participant("ANA") == "u-ana"
        assert config.resolve_participant("u-bruno") == "u-bruno"
        assert config.resolve_participant("me") == "me"

    def test_resolve_many_deduplicates(self):
        """Test that repeated participants are resolved once."""
        assert _config().resolve_participants(["ana", "u-ana", "me"]) == ["u-ana", "me"]

    def test_resolve_unknown(self):
        """Test that unknown identifiers are reported together."""
        with pytest.raises(ValueError, match="carla, zoe"):
            _config().resolve_participants(["zoe", "ana", "carla"])

    def test_resolve_empty(self):
        """Test that an empty selection is rejected."""
        with pytest.raises(ValueError, match="No participants"):
            _config().resolve_participants([])

    def test_with_colleagues_keeps_configured_entries(self):
        """Test merging colleagues reported by the service."""
        merged = _config().with_colleagues([
            Colleague(name="Ana Ribeiro", id="u-ana"),
            Colleague(name="Carla Mendes", id="u-carla"),
        ])

        assert [c.id for c in merged.colleagues] == ["u-ana", "u-bruno", "u-carla"]
        assert merged.resolve_participant("carla mendes") == "u-carla"
        assert merged.display_name_for("u-ana") == "ana"

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict
from unittest.mock import patch

import pytest

from depscout.config import (
    DepScoutConfig,
    discover_config_file,
    load_config,
    _parse_section,
    _pyproject_has_depscout_section,
    _read_toml,
)
from depscout.exceptions import ConfigError
from depscout.models.source import PackageSource

CONTOSO = {"name": "contoso", "url": "https://pkgs.contoso.example/v3/index.json"}
NUGET = {"name": "nuget.org", "url": "https://api.nuget.org/v3/index.json"}


@pytest.mark.unit
class TestDepScoutConfig:
    """Tests for DepScoutConfig dataclass."""

    def test_default_initialization(self) -> None:
        """Test DepScoutConfig initializes with nuget.org and default limits."""
        config = DepScoutConfig()

        assert config.sources == [
            PackageSource("nuget.org", "https://api.nuget.org/v3/index.json")
        ]
        assert config.package_source_mapping == {}
        assert config.timeout == 30
        assert config.max_retries == 3
        assert config.concurrent_limit == 10
        assert config.source_path is None

    def test_default_sources_not_shared(self) -> None:
        """Test each instance gets its own sources list."""
        first = DepScoutConfig()
        second = DepScoutConfig()

        first.sources.append(PackageSource("extra", "https://x/index.json"))

        assert len(second.sources) == 1

    def test_package_sources_is_tuple(self) -> None:
        """Test package_sources keeps configuration order."""
        a = PackageSource("a", "https://a/index.json")
        b = PackageSource("b", "https://b/index.json")
        config = DepScoutConfig(sources=[a, b])

        assert config.package_sources() == (a, b)

    def test_source_mapping(self) -> None:
        """Test the mapping object reflects configured patterns."""
        config = DepScoutConfig(package_source_mapping={"contoso": ["Contoso.*"]})

        mapping = config.source_mapping()

        assert mapping.is_enabled is True
        assert mapping.configured_sources("Contoso.Core") == frozenset({"contoso"})
        assert mapping.configured_sources("Serilog") == frozenset()

    def test_empty_source_mapping_disabled(self) -> None:
        """Test no patterns means an unrestricted mapping."""
        assert DepScoutConfig().source_mapping().is_enabled is False

    def test_to_log_dict(self) -> None:
        """Test to_log_dict returns configuration without metadata."""
        config = DepScoutConfig(
            package_source_mapping={"nuget.org": ["*"]},
            timeout=5,
            source_path=Path("/test/depscout.toml"),
        )

        result = config.to_log_dict()

        assert result == {
            "sources": ["nuget.org=https://api.nuget.org/v3/index.json"],
            "package_source_mapping": {"nuget.org": ["*"]},
            "timeout": 5,
            "max_retries": 3,
            "concurrent_limit": 10,
        }
        assert "source_path" not in result


@pytest.mark.unit
class TestDiscoverConfigFile:
    """Tests for discover_config_file function."""

    def test_explicit_path_priority(self, tmp_path: Path) -> None:
        """Test explicit path is used when provided and exists."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[depscout]\n", encoding="utf-8")
        (tmp_path / "depscout.toml").write_text("[depscout]\n", encoding="utf-8")

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file(config_file)

        assert result == config_file.resolve()

    def test_explicit_path_not_found_raises_error(self, tmp_path: Path) -> None:
        """Test ConfigError raised when explicit path doesn't exist."""
        non_existent = tmp_path / "nonexistent.toml"

        with pytest.raises(ConfigError) as exc_info:
            discover_config_file(non_existent)

        assert "not found" in str(exc_info.value).lower()
        assert exc_info.value.config_path == str(non_existent)

    def test_explicit_directory_rejected(self, tmp_path: Path) -> None:
        """Test a directory is not accepted as a config file."""
        with pytest.raises(ConfigError):
            discover_config_file(tmp_path)

    def test_discovers_depscout_toml(self, tmp_path: Path) -> None:
        """Test discovers depscout.toml in current directory."""
        config_file = tmp_path / "depscout.toml"
        config_file.write_text("[depscout]\n", encoding="utf-8")

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file()

        assert result == config_file

    def test_discovers_pyproject_toml_with_section(self, tmp_path: Path) -> None:
        """Test discovers pyproject.toml with [tool.depscout] section."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[tool.depscout]\ntimeout = 10\n", encoding="utf-8")

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file()

        assert result == config_file

    def test_ignores_pyproject_toml_without_section(self, tmp_path: Path) -> None:
        """Test ignores pyproject.toml without [tool.depscout] section."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[tool.other]\nkey = 'value'\n", encoding="utf-8")

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file()

        assert result is None

    def test_returns_none_when_no_config_found(self, tmp_path: Path) -> None:
        """Test returns None when no configuration file exists."""
        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file()

        assert result is None

    def test_precedence_order(self, tmp_path: Path) -> None:
        """Test discovery precedence: depscout.toml before pyproject.toml."""
        depscout_toml = tmp_path / "depscout.toml"
        depscout_toml.write_text("[depscout]\n", encoding="utf-8")
        (tmp_path / "pyproject.toml").write_text("[tool.depscout]\n", encoding="utf-8")

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            result = discover_config_file()

        assert result == depscout_toml


@pytest.mark.unit
class TestPyprojectHasDepscoutSection:
    """Tests for _pyproject_has_depscout_section helper."""

    def test_returns_true_when_section_exists(self, tmp_path: Path) -> None:
        """Test returns True when [tool.depscout] section exists."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[tool.depscout]\ntimeout = 10\n", encoding="utf-8")

        assert _pyproject_has_depscout_section(config_file) is True

    def test_returns_false_when_section_missing(self, tmp_path: Path) -> None:
        """Test returns False when [tool.depscout] section doesn't exist."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("[project]\nname = 'x'\n", encoding="utf-8")

        assert _pyproject_has_depscout_section(config_file) is False

    def test_returns_false_on_errors(self, tmp_path: Path) -> None:
        """Test returns False gracefully on parse errors or missing files."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text("invalid ][[", encoding="utf-8")
        assert _pyproject_has_depscout_section(config_file) is False

        assert _pyproject_has_depscout_section(tmp_path / "missing.toml") is False


@pytest.mark.unit
class TestReadToml:
    """Tests for _read_toml helper."""

    def test_reads_valid_toml(self, tmp_path: Path) -> None:
        """Test successfully reads and parses valid TOML file."""
        toml_file = tmp_path / "test.toml"
        toml_file.write_text("[depscout]\ntimeout = 12\n", encoding="utf-8")

        result = _read_toml(toml_file)

        assert result == {"depscout": {"timeout": 12}}

    def test_raises_error_on_invalid_toml(self, tmp_path: Path) -> None:
        """Test raises ConfigError when TOML is invalid."""
        toml_file = tmp_path / "invalid.toml"
        toml_file.write_text("invalid ][[ toml", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            _read_toml(toml_file)

        assert "Invalid TOML" in str(exc_info.value)
        assert exc_info.value.config_path == str(toml_file)

    def test_raises_error_on_missing_file(self, tmp_path: Path) -> None:
        """Test raises ConfigError when the file cannot be read."""
        with pytest.raises(ConfigError, match="Cannot read"):
            _read_toml(tmp_path / "missing.toml")


@pytest.mark.unit
class TestParseSection:
    """Tests for _parse_section validation."""

    def _parse(self, section: Dict[str, Any]) -> DepScoutConfig:
        return _parse_section(section, config_path="depscout.toml")

    def test_empty_section_uses_defaults(self) -> None:
        """Test an empty table produces the defaults."""
        config = self._parse({})

        assert config.to_log_dict() == DepScoutConfig().to_log_dict()

    def test_full_section(self) -> None:
        """Test every supported key is applied."""
        config = self._parse(
            {
                "sources": [NUGET, CONTOSO],
                "package_source_mapping": {"nuget.org": ["*"], "contoso": ["Contoso.*"]},
                "timeout": 15,
                "max_retries": 0,
                "concurrent_limit": 4,
            }
        )

        assert [s.name for s in config.sources] == ["nuget.org", "contoso"]
        assert config.sources[1].uri == CONTOSO["url"]
        assert config.package_source_mapping == {
            "nuget.org": ["*"],
            "contoso": ["Contoso.*"],
        }
        assert config.timeout == 15
        assert config.max_retries == 0
        assert config.concurrent_limit == 4

    def test_source_values_are_stripped(self) -> None:
        """Test surrounding whitespace is removed from names and URLs."""
        config = self._parse(
            {"sources": [{"name": " contoso ", "url": " https://x/index.json "}]}
        )

        assert config.sources == [PackageSource("contoso", "https://x/index.json")]

    def test_unknown_keys(self) -> None:
        """Test unknown keys are rejected and listed."""
        with pytest.raises(ConfigError) as exc_info:
            self._parse({"timeout": 5, "colour": True, "feeds": []})

        assert "colour, feeds" in str(exc_info.value)
        assert exc_info.value.config_path == "depscout.toml"

    @pytest.mark.parametrize(
        "sources",
        [
            "nuget.org",
            [{"name": "a"}],
            [{"name": "a", "url": "https://a", "priority": 1}],
            [{"name": "", "url": "https://a"}],
            [{"name": "a", "url": 5}],
            ["https://a"],
        ],
        ids=["not-array", "missing-url", "extra-key", "empty-name", "non-string", "bare-url"],
    )
    def test_invalid_sources(self, sources: Any) -> None:
        """Test malformed source lists are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            self._parse({"sources": sources})

        assert exc_info.value.option == "sources"

    def test_duplicate_source_names(self) -> None:
        """Test source names must be unique."""
        with pytest.raises(ConfigError, match="Duplicate source name: contoso"):
            self._parse({"sources": [CONTOSO, dict(CONTOSO)]})

    def test_mapping_to_unknown_source(self) -> None:
        """Test mapping entries must name a configured source."""
        with pytest.raises(ConfigError) as exc_info:
            self._parse({"package_source_mapping": {"contoso": ["Contoso.*"]}})

        assert "unknown source: contoso" in str(exc_info.value)
        assert exc_info.value.option == "package_source_mapping"

    def test_mapping_checked_against_configured_sources(self) -> None:
        """Test mapping names resolve against the sources in the same table."""
        config = self._parse(
            {
                "sources": [CONTOSO],
                "package_source_mapping": {"contoso": ["*"]},
            }
        )

        assert config.package_source_mapping == {"contoso": ["*"]}

    @pytest.mark.parametrize(
        "mapping",
        [["*"], {"nuget.org": "*"}, {"nuget.org": ["*", 3]}],
        ids=["not-table", "string-patterns", "non-string-pattern"],
    )
    def test_invalid_mapping(self, mapping: Any) -> None:
        """Test malformed mapping tables are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            self._parse({"package_source_mapping": mapping})

        assert exc_info.value.option == "package_source_mapping"

    @pytest.mark.parametrize(
        "key, value",
        [
            ("timeout", "30"),
            ("timeout", True),
            ("max_retries", 1.5),
            ("concurrent_limit", False),
        ],
    )
    def test_integer_type_errors(self, key: str, value: Any) -> None:
        """Test integer options reject other types, including booleans."""
        with pytest.raises(ConfigError, match="must be an integer") as exc_info:
            self._parse({key: value})

        assert exc_info.value.option == key

    @pytest.mark.parametrize(
        "key, value",
        [("timeout", 0), ("max_retries", -1), ("concurrent_limit", 0)],
    )
    def test_integer_minimums(self, key: str, value: int) -> None:
        """Test integer options enforce their lower bound."""
        with pytest.raises(ConfigError, match="must be at least"):
            self._parse({key: value})


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        """Test defaults are returned when nothing is found."""
        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            config = load_config()

        assert config == DepScoutConfig()

    def test_loads_depscout_toml(self, tmp_path: Path) -> None:
        """Test settings are read from the [depscout] table."""
        config_file = tmp_path / "depscout.toml"
        config_file.write_text(
            "[depscout]\n"
            "timeout = 20\n"
            "\n"
            "[[depscout.sources]]\n"
            'name = "contoso"\n'
            'url = "https://pkgs.contoso.example/v3/index.json"\n'
            "\n"
            "[depscout.package_source_mapping]\n"
            'contoso = ["Contoso.*"]\n',
            encoding="utf-8",
        )

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            config = load_config()

        assert config.timeout == 20
        assert config.package_sources() == (
            PackageSource("contoso", "https://pkgs.contoso.example/v3/index.json"),
        )
        assert config.package_source_mapping == {"contoso": ["Contoso.*"]}
        assert config.source_path == config_file

    def test_loads_pyproject_section(self, tmp_path: Path) -> None:
        """Test settings are read from [tool.depscout] in pyproject.toml."""
        config_file = tmp_path / "pyproject.toml"
        config_file.write_text(
            "[project]\nname = 'demo'\n\n[tool.depscout]\nconcurrent_limit = 2\n",
            encoding="utf-8",
        )

        with patch("depscout.config.Path.cwd", return_value=tmp_path):
            config = load_config()

        assert config.concurrent_limit == 2
        assert config.source_path == config_file

    def test_explicit_file_without_section(self, tmp_path: Path) -> None:
        """Test an explicit file lacking a depscout table yields defaults."""
        config_file = tmp_path / "other.toml"
        config_file.write_text("[something]\nkey = 1\n", encoding="utf-8")

        config = load_config(config_file)

        assert config.timeout == 30
        assert config.source_path == config_file.resolve()

    def test_explicit_invalid_toml(self, tmp_path: Path) -> None:
        """Test parse errors surface as ConfigError."""
        config_file = tmp_path / "broken.toml"
        config_file.write_text("[depscout\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(config_file)

    def test_validation_errors_carry_path(self, tmp_path: Path) -> None:
        """Test validation errors report the resolved config path."""
        config_file = tmp_path / "depscout.toml"
        config_file.write_text("[depscout]\nretries = 2\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            load_config(config_file)

        assert exc_info.value.config_path == str(config_file.resolve())

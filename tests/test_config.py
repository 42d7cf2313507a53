"""
Tests for host settings and the settings loader.
"""

import textwrap
from pathlib import Path

import pytest

from slemp.core.config.loader import ConfigError, load_settings
from slemp.core.config.settings import Settings


class TestSettingsDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.project_root == "/var/www"
        assert settings.web_user == "www-data"
        assert settings.node_version == "24.x"
        assert settings.lock_file == "/tmp/lemp_install.lock"
        assert settings.recovery_file == "/tmp/laravel_lemp_config.txt"
        assert settings.recovery_fallback == "/root/laravel_lemp_config.txt"
        assert settings.supported_ubuntu == ["22", "24"]


class TestLoadSettings:
    def test_missing_default_file_uses_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(
            "slemp.core.config.loader.DEFAULT_SETTINGS_FILE", tmp_path / "absent.yml"
        )
        settings = load_settings(environ={})
        assert settings == Settings()

    def test_yaml_file(self, tmp_path: Path):
        path = tmp_path / "settings.yml"
        path.write_text(
            textwrap.dedent("""\
                project_root: /srv/www
                node_version: 22.x
                supported_ubuntu: ["24"]
            """)
        )
        settings = load_settings(path, environ={})
        assert settings.project_root == "/srv/www"
        assert settings.node_version == "22.x"
        assert settings.supported_ubuntu == ["24"]

    def test_env_overrides_file(self, tmp_path: Path):
        path = tmp_path / "settings.yml"
        path.write_text("web_user: nginx\n")
        env = {"SLEMP_WEB_USER": "deploy", "SLEMP_SUPPORTED_UBUNTU": "22, 24, 25"}
        settings = load_settings(path, environ=env)
        assert settings.web_user == "deploy"
        assert settings.supported_ubuntu == ["22", "24", "25"]

    def test_settings_env_var_points_at_file(self, tmp_path: Path):
        path = tmp_path / "custom.yml"
        path.write_text("min_disk_gb: 20\n")
        settings = load_settings(environ={"SLEMP_SETTINGS": str(path)})
        assert settings.min_disk_gb == 20

    def test_explicit_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml", environ={})

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "settings.yml"
        path.write_text("project_root: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path, environ={})

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "settings.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a mapping"):
            load_settings(path, environ={})

    def test_invalid_value(self, tmp_path: Path):
        path = tmp_path / "settings.yml"
        path.write_text("min_disk_gb: lots\n")
        with pytest.raises(ConfigError, match="min_disk_gb"):
            load_settings(path, environ={})

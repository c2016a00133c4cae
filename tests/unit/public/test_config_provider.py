from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from diboot.container import Container
from diboot.exceptions import DIBootConfigDirectoryNotFoundError
from diboot.provider import BASE_PATH_KEY
from diboot.providers.config import CONFIG_KEY, ConfigServiceProvider


def _write(path: Path, source: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source), encoding="utf-8")


@pytest.fixture()
def config_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "config"
    _write(
        directory / "database.py",
        """
        config = {"url": "sqlite:///app.db"}
        """,
    )
    _write(
        directory / "mail.py",
        """
        HOST = "localhost"
        PORT = 25
        _PRIVATE = "hidden"
        helper = "lowercase"
        """,
    )
    _write(directory / "_shared.py", "VALUE = 1\n")
    (directory / "notes.txt").write_text("ignored", encoding="utf-8")
    return directory


class TestConfigServiceProvider:
    def test_binds_sections_by_file_stem(self, config_dir: Path) -> None:
        container = Container()
        ConfigServiceProvider(container, base_path=config_dir.parent).register()

        assert container.resolve(CONFIG_KEY) == {
            "database": {"url": "sqlite:///app.db"},
            "mail": {"HOST": "localhost", "PORT": 25},
        }

    def test_config_is_a_singleton(self, config_dir: Path) -> None:
        container = Container()
        ConfigServiceProvider(container, base_path=config_dir.parent).register()

        assert container.resolve(CONFIG_KEY) is container.resolve(CONFIG_KEY)

    def test_base_path_falls_back_to_container_binding(self, config_dir: Path) -> None:
        container = Container()
        container.singleton(BASE_PATH_KEY, config_dir.parent)

        provider = ConfigServiceProvider(container)

        assert provider.base_path == config_dir.parent
        assert "database" in provider.load_config()

    def test_custom_config_path(self, tmp_path: Path) -> None:
        _write(tmp_path / "settings" / "app.py", "NAME = 'demo'\n")
        container = Container()

        ConfigServiceProvider(container, config_path="settings", base_path=tmp_path).register()

        assert container.resolve(CONFIG_KEY) == {"app": {"NAME": "demo"}}

    def test_empty_directory(self, tmp_path: Path) -> None:
        (tmp_path / "config").mkdir()

        assert ConfigServiceProvider(Container(), base_path=tmp_path).load_config() == {}

    def test_missing_directory(self, tmp_path: Path) -> None:
        provider = ConfigServiceProvider(Container(), base_path=tmp_path)

        with pytest.raises(DIBootConfigDirectoryNotFoundError, match="Config directory not found"):
            provider.register()

    def test_broken_module_propagates(self, tmp_path: Path) -> None:
        _write(tmp_path / "config" / "broken.py", "raise RuntimeError('bad config')\n")

        with pytest.raises(RuntimeError, match="bad config"):
            ConfigServiceProvider(Container(), base_path=tmp_path).load_config()

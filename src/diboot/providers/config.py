from __future__ import annotations

import logging
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

from diboot._internal.module_loader import load_module_from_path
from diboot.exceptions import DIBootConfigDirectoryNotFoundError
from diboot.provider import BASE_PATH_KEY, ServiceProvider

if TYPE_CHECKING:
    from diboot.container import Container

CONFIG_KEY = "config"
"""Symbolic key the aggregated configuration mapping is bound under."""

logger = logging.getLogger(__name__)


class ConfigServiceProvider(ServiceProvider):
    """Load a directory of Python config modules and bind them as ``"config"``.

    Every ``*.py`` file in the directory (except names starting with ``_``)
    becomes one section named after the file stem. A section's value is the
    module's ``config`` attribute when present, otherwise a dict of the
    module's public UPPERCASE attributes. Relative config paths are resolved
    against ``base_path``, then the application base path bound under
    ``"base_path"``, then the working directory. The aggregated mapping is bound as
    a singleton; its contents are not validated.

    Examples:
        .. code-block:: python

            # config/database.py
            config = {"url": "sqlite:///app.db"}

            container = Container()
            ConfigServiceProvider(container, base_path=project_root).register()
            container.resolve("config")["database"]["url"]

    """

    def __init__(
        self,
        container: Container,
        config_path: str | Path = "config",
        base_path: str | Path | None = None,
    ) -> None:
        super().__init__(container)
        self.config_path = Path(config_path)
        if base_path is None:
            has_base_path = container.has(BASE_PATH_KEY)
            base_path = container.resolve(BASE_PATH_KEY) if has_base_path else Path.cwd()
        self.base_path = Path(base_path)

    def register(self) -> None:
        config = self.load_config()
        self.container.singleton(CONFIG_KEY, lambda: config)

    def load_config(self) -> dict[str, Any]:
        """Read every config module into a ``{section: value}`` mapping.

        Raises:
            DIBootConfigDirectoryNotFoundError: If the directory does not exist.

        """
        directory = (self.base_path / self.config_path).resolve()
        if not directory.is_dir():
            msg = f"Config directory not found: {directory}"
            raise DIBootConfigDirectoryNotFoundError(msg)

        config: dict[str, Any] = {}
        for path in sorted(directory.glob("*.py")):
            if path.stem.startswith("_"):
                continue
            module = load_module_from_path(path, f"diboot_config_{path.stem}")
            config[path.stem] = self._section_value(module)
            logger.debug("Loaded config section %r from %s", path.stem, path)

        logger.info("Loaded %d config sections from %s", len(config), directory)
        return config

    def _section_value(self, module: ModuleType) -> Any:
        if hasattr(module, "config"):
            return module.config
        return {
            name: value
            for name, value in vars(module).items()
            if name.isupper() and not name.startswith("_")
        }


__all__ = ["CONFIG_KEY", "ConfigServiceProvider"]

from diboot.providers.config import CONFIG_KEY, ConfigServiceProvider

__all__ = ["CONFIG_KEY", "ConfigServiceProvider"]

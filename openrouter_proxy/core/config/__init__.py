from openrouter_proxy.core.config.config import Config
from openrouter_proxy.core.config.validation import ConfigError

__all__ = ["Config", "ConfigError"]

from cyclersim.core.config import get_settings, settings
from cyclersim.core.exceptions import ConfigurationError, CyclerSimException

__all__ = ["settings", "get_settings", "CyclerSimException", "ConfigurationError"]

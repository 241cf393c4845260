"""Configuration package for the voice feedback services."""
from .providers import EmailRoute, LlmRoute, PipelineConfig, SttRoute, load_config, load_config_or_default
from .settings import Settings, settings

__all__ = [
    "EmailRoute",
    "LlmRoute",
    "PipelineConfig",
    "SttRoute",
    "load_config",
    "load_config_or_default",
    "Settings",
    "settings",
]

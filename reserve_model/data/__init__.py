"""Chain-facing types, static parameters and configuration."""

from reserve_model.data.settings import ModelSettings, load_settings

__all__ = ["ModelSettings", "load_settings"]

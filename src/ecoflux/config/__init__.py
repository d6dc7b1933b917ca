"""Configuration management for EcoFlux."""

from ecoflux.config.manager import ConfigManager
from ecoflux.config.schema import AppConfig

__all__ = ["AppConfig", "ConfigManager"]

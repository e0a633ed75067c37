"""Configuration module for cashsdp."""

from cashsdp.config.schema import Config
from cashsdp.config.validator import ConfigValidator

__all__ = ["Config", "ConfigValidator"]

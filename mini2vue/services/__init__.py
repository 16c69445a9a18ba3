"""Services package"""
from mini2vue.services.project import ProjectConverter, ConversionReport, ConfigurationError

__all__ = [
    "ProjectConverter",
    "ConversionReport",
    "ConfigurationError",
]

"""Domain operations on an OpenCart database, built on the gateway."""

from .extensions import ExtensionPackage, ExtensionService, read_extension_package
from .language import default_language_id
from .products import ProductInput, ProductService
from .settings import SettingsService

__all__ = [
    'ExtensionPackage',
    'ExtensionService',
    'read_extension_package',
    'default_language_id',
    'ProductInput',
    'ProductService',
    'SettingsService',
]

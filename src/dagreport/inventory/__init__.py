"""Exchange inventory: shell client, parsers and snapshot collection."""

from .client import ExchangeShellClient
from .collector import InventoryCollector
from .parsers import InventoryParser

__all__ = ['ExchangeShellClient', 'InventoryCollector', 'InventoryParser']

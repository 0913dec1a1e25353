"""
Adapters layer for mcplock.

Contains the infrastructure around the engine: client config discovery and
the MCP protocol connector.
"""

from mcplock.adapters.config import (
    discover_config,
    get_config_locations,
    parse_config_dict,
    parse_config_file,
)
from mcplock.adapters.connector import connect_and_list_tools

__all__ = [
    "connect_and_list_tools",
    "discover_config",
    "get_config_locations",
    "parse_config_dict",
    "parse_config_file",
]

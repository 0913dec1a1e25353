"""
Renderers for mcplock.

Output formatters for lockfiles, drift and scan results: terminal, JSON, SARIF.
"""

from mcplock.renderers.json_renderer import JsonRenderer
from mcplock.renderers.sarif_renderer import SarifRenderer
from mcplock.renderers.terminal import TerminalRenderer

__all__ = [
    "JsonRenderer",
    "SarifRenderer",
    "TerminalRenderer",
]

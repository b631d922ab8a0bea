"""tilo - an interactive terminal log viewer."""

__version__ = "0.1.0"

from .model import Viewer, Position, Selection, SelectionMode, LineStore
from .rules import Rule, CustomRule, apply_rules, build_rules, default_rules, highlight_query
from .view import TerminalView, Frame

__all__ = [
    'Viewer',
    'Position',
    'Selection',
    'SelectionMode',
    'LineStore',
    'Rule',
    'CustomRule',
    'apply_rules',
    'build_rules',
    'default_rules',
    'highlight_query',
    'TerminalView',
    'Frame',
]

"""
Live DNS lookups.

Public entrypoints: DigResolver, DnspythonResolver, zone_for_hostname
"""

from .dig import DigResolver, normalize_answers
from .domain import zone_for_hostname
from .resolver import DnspythonResolver, make_resolver

__all__ = ["DigResolver", "DnspythonResolver", "make_resolver", "normalize_answers", "zone_for_hostname"]

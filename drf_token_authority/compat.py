"""
Type hinting compatibility and utility abstractions.

This module centralizes type-related imports to handle version-specific
differences (e.g., 'Self' type) and provides a single entry point for
the library's type hinting needs.
"""

import sys
from typing import (
    Any,
    Dict,
    List,
    Type,
    Tuple,
    Union,
    Callable,
    Iterator,
    Optional,
    NamedTuple,
    TYPE_CHECKING,
    ContextManager,
)

# Python 3.11+ includes 'Self' in the standard library.
# For older versions, the library requires 'typing_extensions' as a dependency.
if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

__all__ = [
    "Any",
    "Self",
    "Dict",
    "List",
    "Type",
    "Tuple",
    "Union",
    "Callable",
    "Iterator",
    "Optional",
    "NamedTuple",
    "TYPE_CHECKING",
    "ContextManager",
]

"""Optional dependency detection.

The flags are checked before an optional library is imported, so the
library is only loaded where it is actually used.
"""

from importlib.util import find_spec

__all__ = ("ATTRS_INSTALLED", "PYDANTIC_INSTALLED", "module_available")


def module_available(module_name: str) -> bool:
    """Return True if ``module_name`` can be imported.

    Args:
        module_name: Top level module name.

    Returns:
        bool
    """
    try:
        return find_spec(module_name) is not None
    except (ImportError, ValueError):
        return False


PYDANTIC_INSTALLED: bool = module_available("pydantic")
ATTRS_INSTALLED: bool = module_available("attrs")

"""
=====================================================
Naming policies for generated wrapper methods.
=====================================================

A naming policy maps a routine name to the name of its wrapper method. Any
callable taking and returning a string will do; it is configured by dotted
path (``package.module:function`` or ``package.module.function``).

Example:
    >>> from loader.name_mangler import camel_case, load_mangler
    >>>
    >>> camel_case('abc_get_user')
    'abcGetUser'
    >>> mangler = load_mangler('loader.name_mangler:camel_case')
"""

import importlib
import re
from typing import Callable, Optional

NameMangler = Callable[[str], str]


def camel_case(routine_name: str) -> str:
    """Convert a snake_case routine name to a lowerCamelCase method name."""
    name = re.sub(r'_+([A-Za-z0-9])', lambda match: match.group(1).upper(), routine_name)
    return name[:1].lower() + name[1:]


def pass_through(routine_name: str) -> str:
    """Use the routine name as method name."""
    return routine_name


def load_mangler(dotted_path: Optional[str]) -> Optional[NameMangler]:
    """
    Resolve a naming policy from its dotted path.

    Args:
        dotted_path: ``package.module:function`` or ``package.module.function``;
            None or empty for no policy

    Returns:
        The naming policy, or None when no path is given

    Raises:
        ImportError: If the module cannot be imported or has no such attribute
        TypeError: If the attribute is not callable
    """
    if not dotted_path:
        return None

    if ':' in dotted_path:
        module_name, _, attribute = dotted_path.partition(':')
    else:
        module_name, _, attribute = dotted_path.rpartition('.')
    if not module_name or not attribute:
        raise ImportError(f"Invalid name mangler path '{dotted_path}'")

    module = importlib.import_module(module_name)
    try:
        mangler = getattr(module, attribute)
    except AttributeError as e:
        raise ImportError(f"Module '{module_name}' has no name mangler '{attribute}'") from e

    if not callable(mangler):
        raise TypeError(f"Name mangler '{dotted_path}' is not callable")

    return mangler

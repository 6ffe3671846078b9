"""Action providers: obtaining migration definitions from paths.

A definition is anything exposing ``up`` and/or ``down``: a module, an
object, or a mapping such as ``{"up": coro_fn, "down": coro_fn}``.
"""

import hashlib
import importlib.util
import logging
import sys
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Optional

from .errors import ResolutionError

logger = logging.getLogger(__name__)

METHODS = ("up", "down")


def _lookup(definition: Any, attr: str) -> Any:
    if isinstance(definition, Mapping):
        return definition.get(attr)
    return getattr(definition, attr, None)


def has_methods(definition: Any) -> bool:
    """Check whether a definition exposes at least one of up/down."""
    return any(_lookup(definition, m) is not None for m in METHODS)


def normalize_definition(definition: Any) -> Any:
    """Unwrap a ``default`` holder once.

    A definition lacking both ``up`` and ``down`` but carrying a ``default``
    field (key or attribute) is replaced by that field. Compatibility
    convenience for modules that export a single migration object.
    """
    if not has_methods(definition):
        inner = _lookup(definition, "default")
        if inner is not None:
            return inner
    return definition


def get_method(definition: Any, method: str) -> Optional[Callable[..., Any]]:
    """Return the up/down callable of a definition, or None if absent."""
    fn = _lookup(definition, method)
    return fn if callable(fn) else None


def _module_name(path: Path) -> str:
    digest = hashlib.sha256(str(path).encode()).hexdigest()[:12]
    return f"transit_migration_{path.stem.replace('.', '_')}_{digest}"


def import_definition(path: str) -> ModuleType:
    """Import a Python migration file by path.

    The module is cached in ``sys.modules`` under a name derived from the
    absolute path, so repeated runs reuse it.

    Args:
        path: Absolute path of the migration file

    Returns:
        The imported module

    Raises:
        ResolutionError: If the file cannot be loaded as a Python module
    """
    file_path = Path(path).resolve()
    name = _module_name(file_path)

    if name in sys.modules:
        return sys.modules[name]

    spec = importlib.util.spec_from_file_location(name, file_path)
    if spec is None or spec.loader is None:
        raise ResolutionError(
            f"Cannot import migration '{path}': not a Python module "
            "(configure custom_resolver for other file types)"
        )

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        del sys.modules[name]
        raise

    logger.debug(f"Imported migration module {file_path}")
    return module

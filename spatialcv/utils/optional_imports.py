"""Helper for optional dependency imports.

Used for the libraries spatialcv can run without (geopandas, tqdm) so that
availability is checked in one place instead of repeated try/except blocks.
"""

from typing import Any


def optional_import(
    module_path: str,
    names: list[str],
) -> tuple[bool, dict[str, Any]]:
    """Import optional dependencies, reporting whether they are available.

    Args:
        module_path: Full import path (e.g., 'geopandas').
        names: List of names to import from the module.

    Returns:
        Tuple of (available, imports) where imports maps each name to the
        imported object, or None when the import failed.

    Example:
        >>> available, imports = optional_import("tqdm", ["tqdm"])
        >>> TQDM_AVAILABLE = available
        >>> tqdm = imports["tqdm"]
    """
    try:
        module = __import__(module_path, fromlist=names, level=0)
        result = {name: getattr(module, name) for name in names}
        return True, result
    except ImportError:
        result = {name: None for name in names}  # type: ignore
        return False, result


def optional_import_single(
    module_path: str,
    name: str,
) -> tuple[bool, Any]:
    """Import a single optional dependency.

    Args:
        module_path: Full import path.
        name: Name to import.

    Returns:
        Tuple of (available, imported_object).
    """
    available, imports = optional_import(module_path, [name])
    return available, imports[name]

"""Locating and (re)loading controller modules."""

import glob
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType

logger = logging.getLogger(__name__)

MODULE_PREFIX = "_api_doc_controllers"


def controller_paths(matcher: str) -> list[Path]:
    """Return files matching the glob, sorted for a stable load order."""
    return sorted(Path(p) for p in glob.glob(matcher, recursive=True) if Path(p).is_file())


def load_controller_from_file(file_path: Path) -> ModuleType:
    """Execute a controller module from scratch.

    A fresh module object is created on every call so the classes it defines
    are created again and their documentation is registered again.
    """
    module_name = f"{MODULE_PREFIX}.{file_path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load controller module from {file_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        del sys.modules[module_name]
        raise
    logger.debug("Loaded controllers from %s", file_path)
    return module

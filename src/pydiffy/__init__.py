"""pydiffy - slice-level change detection for single-state architectures."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pydiffy")
except PackageNotFoundError:
    __version__ = "0+local"
from pydiffy.config import DiffyConfig, ErrorPolicy
from pydiffy.engine import DiffEngine
from pydiffy.exceptions import (
    DiffyConfigError,
    DiffyError,
    DiffySourceError,
    DiffyStateError,
)
from pydiffy.models import StateModel
from pydiffy.selectors import select
from pydiffy.sources import LifecycleScope, LiveState, StateSource, Subscription

__all__ = [
    "__version__",
    "DiffEngine",
    "DiffyConfig",
    "DiffyConfigError",
    "DiffyError",
    "DiffySourceError",
    "DiffyStateError",
    "ErrorPolicy",
    "LifecycleScope",
    "LiveState",
    "StateModel",
    "StateSource",
    "Subscription",
    "select",
]

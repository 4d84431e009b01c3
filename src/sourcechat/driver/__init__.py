"""
Public exports for the driver package.
"""

from .cancellation import CancellationToken
from .config import DriverConfig
from .core import CompletionDriver, DriverState, run_completion

__all__ = ["CompletionDriver", "DriverConfig", "DriverState", "CancellationToken", "run_completion"]

"""Protocol interfaces for wayback_pinner components."""

from wayback_pinner.interfaces.archiver import Archiver
from wayback_pinner.interfaces.pinner import Pinner

__all__ = ["Archiver", "Pinner"]

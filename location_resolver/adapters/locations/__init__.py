"""Location adapters - Implementations of LocationRepositoryPort.

Available implementations:
- CSVLocationRepository: In-memory indexes over CSV dataset files
"""

from .csv_repository import CSVLocationRepository

__all__ = ["CSVLocationRepository"]

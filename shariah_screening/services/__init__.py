"""Services that combine the repository with the scorers."""

from .screening_service import ScreeningService

__all__ = ["ScreeningService"]

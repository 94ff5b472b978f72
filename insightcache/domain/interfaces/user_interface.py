"""Interface for presenting cache information to the user.

Defines the contract for displaying output, errors, warnings and cache
statistics, allowing different UI implementations (e.g., console, GUI).
"""

import abc
from typing import Any

from insightcache.domain.models.cache import CacheStatistics

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a cached value to the user.

        Args:
            output: The value to display.
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_statistics(self, statistics: CacheStatistics) -> None:
        """Renders a cache statistics snapshot."""
        pass

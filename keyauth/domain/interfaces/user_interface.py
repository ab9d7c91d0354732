"""Interface for interacting with the operator (input/output).

Defines the contract for rendering command replies, errors, warnings and
informational messages, and for reading command lines, allowing different UI
implementations (console, chat platform adapters).
"""

import abc
from typing import Any

from keyauth.domain.models.replies import Reply


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_reply(self, reply: Reply, **kwargs: Any) -> None:
        """Renders a command reply (plain text or embed).

        Args:
            reply: The reply produced by the command handler.
            **kwargs: Additional arguments for formatting.
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
    def get_prompt(self, prompt_message: str = "> ") -> str:
        """Gets a line of input from the user synchronously.

        Note: For async contexts, the caller should wrap this in asyncio.to_thread.

        Args:
            prompt_message: The message to display before the input prompt.

        Returns:
            The user's input.
        """
        pass

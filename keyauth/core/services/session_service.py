"""Console session: reads command lines as one caller and renders the replies.

Stands in for a chat channel. Each line is wrapped in an `InboundMessage`
for the configured caller and handed to the CommandHandler.
"""

import asyncio
import logging
from typing import Optional

from keyauth.core.command_handler import CommandHandler
from keyauth.domain.interfaces.user_interface import UserInterface
from keyauth.domain.models.identity import Caller, InboundMessage
from keyauth.domain.models.replies import Reply

logger = logging.getLogger(__name__)

EXIT_WORDS = ("exit", "quit")


class SessionService:
    """Runs commands for a single caller against the command handler."""

    def __init__(self, command_handler: CommandHandler, ui: UserInterface):
        self.command_handler = command_handler
        self.ui = ui

    async def dispatch(self, content: str, caller: Caller) -> Optional[Reply]:
        """Handles one message and renders its reply, if any."""
        reply = await self.command_handler.handle(InboundMessage(content=content, caller=caller))
        if reply is None:
            logger.debug(f"No reply for message: {content!r}")
            return None
        self.ui.display_reply(reply)
        return reply

    async def run_session(self, caller: Caller) -> int:
        """Reads lines until 'exit' or 'quit'.

        Returns:
            The number of messages dispatched.
        """
        prefix = self.command_handler.prefix
        self.ui.display_info(
            f"Key session for {caller.user_id}. Commands start with '{prefix}' "
            f"(try {prefix}help). Type 'exit' or 'quit' to end."
        )
        dispatched = 0
        while True:
            line = (await asyncio.to_thread(self.ui.get_prompt, "> ")).strip()
            if line.lower() in EXIT_WORDS:
                break
            if not line:
                continue
            await self.dispatch(line, caller)
            dispatched += 1
        self.ui.display_info("Ending session.")
        logger.info(f"Session for {caller.user_id} ended after {dispatched} messages")
        return dispatched

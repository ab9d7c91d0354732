"""Command Handler: routes inbound messages to lifecycle store operations.

Parses the message, resolves the caller's tier, validates arguments, invokes
exactly one LifecycleStore operation and translates the outcome into a
`Reply`. Messages that name an unknown command, or a command above the
caller's tier, get no reply at all.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional

from keyauth.core.authorizer import Authorizer
from keyauth.core.commands import (
    COMMAND_TABLE, HELP_HEADINGS, Command, commands_for_help, parse_command
)
from keyauth.core.services.lifecycle_store import LifecycleStore
from keyauth.domain.errors import StorageUnavailableError
from keyauth.domain.models.common import UNSET
from keyauth.domain.models.identity import InboundMessage, Tier
from keyauth.domain.models.keys import format_timestamp
from keyauth.domain.models.replies import Reply, SUCCESS_COLOR
from keyauth.domain.models.results import OperationResult

logger = logging.getLogger(__name__)

CommandRunner = Callable[[Tier, List[str]], Awaitable[Reply]]


class CommandHandler:
    """Handles incoming command messages and delegates to the lifecycle store."""

    def __init__(self, lifecycle_store: LifecycleStore, authorizer: Authorizer, prefix: str = "!"):
        self.lifecycle_store = lifecycle_store
        self.authorizer = authorizer
        self.prefix = prefix
        self._runners: Dict[Command, CommandRunner] = {
            Command.HELP: self._help,
            Command.CREATE: self._create,
            Command.DELETE: self._delete,
            Command.EXTEND: self._extend,
            Command.INFO: self._info,
            Command.LIST: self._list,
            Command.BAN: self._key_action(self.lifecycle_store.ban_key, "banned"),
            Command.UNBAN: self._key_action(self.lifecycle_store.unban_key, "unbanned"),
            Command.PAUSE: self._key_action(self.lifecycle_store.pause_key, "paused"),
            Command.RESUME: self._key_action(self.lifecycle_store.resume_key, "resumed"),
            Command.PAUSE_ALL: self._pause_all,
            Command.RESUME_ALL: self._resume_all,
            Command.APP_LIST: self._app_list,
            Command.APP_ADD: self._app_action(self.lifecycle_store.add_app, "added"),
            Command.APP_DELETE: self._app_action(self.lifecycle_store.delete_app, "deleted"),
            Command.APP_PAUSE: self._app_action(self.lifecycle_store.pause_app, "paused"),
            Command.APP_RESUME: self._app_action(self.lifecycle_store.resume_app, "resumed"),
        }

    async def handle(self, message: InboundMessage) -> Optional[Reply]:
        """Processes one inbound message.

        Returns:
            The reply to send, or None when the message is ignored.
        """
        if message.caller.is_bot:
            return None
        parsed = parse_command(message.content, self.prefix)
        if parsed is None:
            return None

        command = Command.lookup(parsed.name)
        if command is None:
            logger.debug(f"Ignoring unknown command '{parsed.name}'")
            return None

        spec = COMMAND_TABLE[command]
        tier = self.authorizer.resolve_tier(message.caller)
        if tier < spec.min_tier:
            logger.debug(f"Ignoring '{command.value}' from {message.caller.user_id}: tier {tier.name} < {spec.min_tier.name}")
            return None

        rejection = spec.validator(parsed.args)
        if rejection:
            return Reply.message(rejection)

        logger.info(f"Handling '{command.value}' from {message.caller.user_id} ({tier.name})")
        try:
            return await self._runners[command](tier, parsed.args)
        except StorageUnavailableError as e:
            logger.error(f"Error {spec.action}: {e}", exc_info=True)
            return Reply.message(f"Error {spec.action}. Please try again.")

    # --- Key commands ---

    async def _help(self, tier: Tier, args: List[str]) -> Reply:
        fields = []
        for command in commands_for_help(tier):
            spec = COMMAND_TABLE[command]
            description = spec.description
            if command == Command.INFO and tier == Tier.USER:
                description = "Get information about your key"
            fields.append((f"{self.prefix}{spec.usage}", description))
        return Reply.card("Key Authentication Bot Commands", fields, description=HELP_HEADINGS[tier])

    async def _create(self, tier: Tier, args: List[str]) -> Reply:
        key_type = args[0]
        user_id = args[1] if len(args) > 1 else None
        username = " ".join(args[2:]) or None
        created = await self.lifecycle_store.create_key(key_type, user_id, username)
        return Reply.card("Key Created", [
            ("Key", f"`{created.key}`"),
            ("Type", key_type),
            ("Expires", format_timestamp(created.expires_at)),
        ], color=SUCCESS_COLOR)

    async def _delete(self, tier: Tier, args: List[str]) -> Reply:
        key = args[0]
        result = await self.lifecycle_store.delete_key(key)
        return self._outcome(result, f"Key `{key}` deleted successfully.")

    async def _extend(self, tier: Tier, args: List[str]) -> Reply:
        key, key_type = args[0], args[1]
        result = await self.lifecycle_store.extend_key(key, key_type)
        if not result.success:
            return Reply.message(result.message)
        return Reply.message(
            f"Key `{key}` extended successfully. New expiration: {format_timestamp(result.value)}"
        )

    async def _info(self, tier: Tier, args: List[str]) -> Reply:
        result = await self.lifecycle_store.get_key_info(args[0])
        if not result.success:
            return Reply.message(result.message)
        info = result.value
        if tier == Tier.USER:
            # Users only see the reduced view of a key.
            return Reply.card("Key Information", [
                ("Type", info.type),
                ("Status", info.status),
                ("Expires", format_timestamp(info.expires_at)),
            ])
        return Reply.card("Key Information", [
            ("Key", f"`{info.key}`"),
            ("Type", info.type),
            ("Status", info.status),
            ("Created", format_timestamp(info.created_at)),
            ("Expires", format_timestamp(info.expires_at)),
            ("Last Used", info.last_used),
            ("HWID", info.hwid),
            ("Username", info.username),
        ])

    async def _list(self, tier: Tier, args: List[str]) -> Reply:
        keys = await self.lifecycle_store.list_keys()
        if not keys:
            return Reply.message("No keys found.")
        lines = []
        for index, listing in enumerate(keys, 1):
            lines.append(
                f"{index}. `{listing.key}` - {listing.type} - {listing.status} - "
                f"Expires: {format_timestamp(listing.expires_at)}"
            )
            if listing.username != UNSET:
                lines.append(f"   User: {listing.username}")
        return Reply.card("Key List", description="\n".join(lines))

    async def _pause_all(self, tier: Tier, args: List[str]) -> Reply:
        await self.lifecycle_store.pause_all_keys()
        return Reply.message("All keys paused successfully.")

    async def _resume_all(self, tier: Tier, args: List[str]) -> Reply:
        await self.lifecycle_store.resume_all_keys()
        return Reply.message("All keys resumed successfully.")

    def _key_action(self, operation: Callable[[str], Awaitable[OperationResult]], verb: str) -> CommandRunner:
        async def run(tier: Tier, args: List[str]) -> Reply:
            key = args[0]
            result = await operation(key)
            return self._outcome(result, f"Key `{key}` {verb} successfully.")
        return run

    # --- Application commands ---

    async def _app_list(self, tier: Tier, args: List[str]) -> Reply:
        apps = await self.lifecycle_store.list_apps()
        if not apps:
            return Reply.message("No applications found.")
        lines = [f"{index}. {app.name} - {app.status}" for index, app in enumerate(apps, 1)]
        return Reply.card("Application List", description="\n".join(lines))

    def _app_action(self, operation: Callable[[str], Awaitable[OperationResult]], verb: str) -> CommandRunner:
        async def run(tier: Tier, args: List[str]) -> Reply:
            name = args[0]
            result = await operation(name)
            return self._outcome(result, f"Application `{name}` {verb} successfully.")
        return run

    @staticmethod
    def _outcome(result: OperationResult, success_text: str) -> Reply:
        if not result.success:
            return Reply.message(result.message)
        return Reply.message(success_text)

"""Command vocabulary: the closed set of commands, their minimum tier and
argument validators, and the parsing of inbound message text.
"""

import enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from keyauth.domain.models.identity import Tier
from keyauth.domain.models.keys import KeyType, VALID_TYPE_NAMES

ArgumentValidator = Callable[[Sequence[str]], Optional[str]]

INVALID_TYPE_MESSAGE = f"Please provide a valid key type: {', '.join(VALID_TYPE_NAMES)}"


class Command(str, enum.Enum):
    HELP = "help"
    CREATE = "create"
    DELETE = "delete"
    EXTEND = "extend"
    INFO = "info"
    LIST = "list"
    BAN = "ban"
    UNBAN = "unban"
    PAUSE = "pause"
    RESUME = "resume"
    PAUSE_ALL = "pauseall"
    RESUME_ALL = "resumeall"
    APP_LIST = "applist"
    APP_ADD = "appadd"
    APP_DELETE = "appdelete"
    APP_PAUSE = "apppause"
    APP_RESUME = "appresume"

    @classmethod
    def lookup(cls, name: str) -> Optional["Command"]:
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    args: List[str]


def parse_command(content: str, prefix: str) -> Optional[ParsedCommand]:
    """Splits a prefixed message into a lowercased command name and its arguments.

    Returns None when the message does not start with the prefix or names no command.
    """
    if not content.startswith(prefix):
        return None
    tokens = content[len(prefix):].split()
    if not tokens:
        return None
    return ParsedCommand(name=tokens[0].lower(), args=tokens[1:])


# --- Argument validators: return a rejection message, or None when valid ---

def no_arguments(args: Sequence[str]) -> Optional[str]:
    return None


def require_key_type(args: Sequence[str]) -> Optional[str]:
    if KeyType.parse(args[0] if args else None) is None:
        return INVALID_TYPE_MESSAGE
    return None


def require_key_and_type(args: Sequence[str]) -> Optional[str]:
    if len(args) < 2:
        return "Please provide a key and type to extend."
    if KeyType.parse(args[1]) is None:
        return INVALID_TYPE_MESSAGE
    return None


def require_key(verb: str) -> ArgumentValidator:
    def validate(args: Sequence[str]) -> Optional[str]:
        return None if args else f"Please provide a key to {verb}."
    return validate


def require_app_name(args: Sequence[str]) -> Optional[str]:
    return None if args else "Please provide an application name."


@dataclass(frozen=True)
class CommandSpec:
    min_tier: Tier
    validator: ArgumentValidator
    action: str          # used in "Error <action>. Please try again."
    usage: str
    description: str


COMMAND_TABLE: Dict[Command, CommandSpec] = {
    Command.HELP: CommandSpec(Tier.USER, no_arguments, "showing help", "help", "Show this help message"),
    Command.CREATE: CommandSpec(Tier.MANAGER, require_key_type, "creating key",
                                "create <type> [user] [username]", "Create a new key (types: day, 3day, week, month, lifetime)"),
    Command.DELETE: CommandSpec(Tier.MANAGER, require_key("delete"), "deleting key", "delete <key>", "Delete a key"),
    Command.BAN: CommandSpec(Tier.ADMIN, require_key("ban"), "banning key", "ban <key>", "Ban a key"),
    Command.UNBAN: CommandSpec(Tier.ADMIN, require_key("unban"), "unbanning key", "unban <key>", "Unban a key"),
    Command.EXTEND: CommandSpec(Tier.MANAGER, require_key_and_type, "extending key",
                                "extend <key> <type>", "Extend a key's expiration"),
    Command.PAUSE: CommandSpec(Tier.ADMIN, require_key("pause"), "pausing key",
                               "pause <key>", "Pause a key (deactivate)"),
    Command.RESUME: CommandSpec(Tier.ADMIN, require_key("resume"), "resuming key",
                                "resume <key>", "Resume a key (activate)"),
    Command.PAUSE_ALL: CommandSpec(Tier.ADMIN, no_arguments, "pausing all keys", "pauseall", "Pause all keys"),
    Command.RESUME_ALL: CommandSpec(Tier.ADMIN, no_arguments, "resuming all keys", "resumeall", "Resume all keys"),
    Command.INFO: CommandSpec(Tier.USER, require_key("check"), "getting key info",
                              "info <key>", "Get information about a key"),
    Command.LIST: CommandSpec(Tier.MANAGER, no_arguments, "listing keys", "list", "List all keys"),
    Command.APP_LIST: CommandSpec(Tier.ADMIN, no_arguments, "listing applications",
                                  "applist", "List all applications"),
    Command.APP_ADD: CommandSpec(Tier.ADMIN, require_app_name, "adding application",
                                 "appadd <name>", "Add a new application"),
    Command.APP_DELETE: CommandSpec(Tier.ADMIN, require_app_name, "deleting application",
                                    "appdelete <name>", "Delete an application"),
    Command.APP_PAUSE: CommandSpec(Tier.ADMIN, require_app_name, "pausing application",
                                   "apppause <name>", "Pause an application"),
    Command.APP_RESUME: CommandSpec(Tier.ADMIN, require_app_name, "resuming application",
                                    "appresume <name>", "Resume an application"),
}

HELP_HEADINGS: Dict[Tier, str] = {
    Tier.ADMIN: "Admin Commands:",
    Tier.MANAGER: "Management Commands:",
    Tier.USER: "User Commands:",
}


def commands_for_help(tier: Tier) -> List[Command]:
    """Commands listed in the help card for a tier.

    Users see help and info; managers and admins see what they can run,
    without the help entry itself.
    """
    return [
        command for command, spec in COMMAND_TABLE.items()
        if spec.min_tier <= tier and (tier == Tier.USER or command != Command.HELP)
    ]

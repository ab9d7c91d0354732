"""Main entry point for the keyauth application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the SessionService.
"""

import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from keyauth.core.authorizer import Authorizer
from keyauth.core.command_handler import CommandHandler
from keyauth.core.services.lifecycle_store import LifecycleStore
from keyauth.core.services.session_service import SessionService

# --- Domain Layer ---
from keyauth.domain.errors import KeyAuthError
from keyauth.domain.models.common import CallerId, RoleId
from keyauth.domain.models.identity import Caller

# --- Infrastructure Layer ---
from keyauth.infrastructure.cli.display import ConsoleDisplay
from keyauth.infrastructure.config.settings import build_settings
from keyauth.infrastructure.monitoring.logger_setup import level_from_name, setup_logging
from keyauth.infrastructure.storage.firebase_store import FirebaseDocumentStore

logger = logging.getLogger(__name__)


# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root. Failing to configure or reach the
    store is fatal: the process exits with status 1.
    """
    dependencies: Dict[str, Any] = {'ui': ConsoleDisplay()}
    try:
        # 1. Configuration and logging
        settings = build_settings()
        setup_logging(
            log_level=level_from_name(settings.log_level),
            log_format=settings.log_format,
            log_file=settings.log_file,
        )
        dependencies['settings'] = settings
        logger.info("Configuration and logging initialized.")

        # 2. Storage handle, constructed once and passed explicitly
        dependencies['document_store'] = FirebaseDocumentStore.connect(
            settings.firebase_credentials, settings.firebase_database_url
        )
        dependencies['lifecycle_store'] = LifecycleStore(dependencies['document_store'])

        # 3. Authorization and routing
        dependencies['authorizer'] = Authorizer(settings.identity)
        dependencies['command_handler'] = CommandHandler(
            lifecycle_store=dependencies['lifecycle_store'],
            authorizer=dependencies['authorizer'],
            prefix=settings.prefix,
        )
        dependencies['session_service'] = SessionService(
            command_handler=dependencies['command_handler'],
            ui=dependencies['ui'],
        )

        # 4. Make sure the default application exists before any command runs
        asyncio.run(dependencies['lifecycle_store'].initialize_apps())
        logger.info("Applications initialized.")
        return dependencies

    except KeyAuthError as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        sys.exit(1)


_dependencies: Optional[Dict[str, Any]] = None


def get_dependencies() -> Dict[str, Any]:
    """Returns the wired dependencies, creating them on first use."""
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="keyauth",
    help="keyauth: issue, track and revoke time-bounded access keys.",
    add_completion=False,
)

# Shared caller options
UserIdOption = Annotated[str, typer.Option("--user-id", "-u", help="Identity of the caller issuing commands.")]
RoleOption = Annotated[
    Optional[List[str]],
    typer.Option("--role", "-r", help="Role held by the caller (repeatable).")
]
DirectOption = Annotated[
    bool,
    typer.Option("--dm", help="Send as a direct message, without any role context.")
]


def build_caller(user_id: str, roles: Optional[List[str]], direct: bool) -> Caller:
    role_ids = None if direct else frozenset(RoleId(r) for r in roles or [])
    return Caller(user_id=CallerId(user_id), role_ids=role_ids)


@app.command()
def run(
    message: Annotated[str, typer.Argument(help="Message to send, e.g. '!create day'.")],
    user_id: UserIdOption,
    role: RoleOption = None,
    dm: DirectOption = False,
):
    """Send a single command message and show the reply."""
    session: SessionService = get_dependencies()['session_service']
    reply = asyncio.run(session.dispatch(message, build_caller(user_id, role, dm)))
    if reply is None:
        logger.info("Message produced no reply.")


@app.command()
def shell(
    user_id: UserIdOption,
    role: RoleOption = None,
    dm: DirectOption = False,
):
    """Start an interactive command session as the given caller."""
    session: SessionService = get_dependencies()['session_service']
    asyncio.run(session.run_session(build_caller(user_id, role, dm)))


@app.command()
def init():
    """Initialize applications and list the ones that exist."""
    dependencies = get_dependencies()
    # create_dependencies has already run initialize_apps; report the outcome.
    try:
        apps = asyncio.run(dependencies['lifecycle_store'].list_apps())
    except KeyAuthError as e:
        logger.error(f"Failed to list applications: {e}", exc_info=True)
        dependencies['ui'].display_error(f"Failed to list applications: {e}")
        raise typer.Exit(code=1)
    names = ", ".join(a.name for a in apps) or "none"
    dependencies['ui'].display_info(f"Applications: {names}")


# --- Main Execution Guard ---

def cli_entry_point():
    """Function called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()

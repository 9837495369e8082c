"""
Groupwarden
===========

A content-governance engine for group chats: it deletes spam, toxic text,
sensitive topics and sensitive media, alerts administrators, and makes new
participants solve an image challenge before they may stay.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project. Designed for compiled/bundled execution.
    Resolution order:
    1. GROUPWARDEN_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("GROUPWARDEN_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import importlib
from typing import Any, Callable

from dotenv import load_dotenv

from groupwarden.configuration.app_configuration import AppConfig, app_config
from groupwarden.database.database import Database
from groupwarden.runtime import Runtime, build_runtime
from groupwarden.transport.chat_transport import ChatTransport
from groupwarden.ui.console import ConsoleControl, console_session
from groupwarden.util.errors import ConfigurationError
from groupwarden.util.logger import get_logger, handle_exception


logger = get_logger("main")

RESTART_EXIT_CODE = 42


def load_environment() -> None:
    """Load ``.env`` so secrets such as ``OPENAI_API_KEY`` reach the settings."""
    load_dotenv(dotenv_path=BASE_DIR / ".env")


def load_transport(factory_path: str | None, config: AppConfig) -> ChatTransport:
    """Import and call the ``"package.module:callable"`` transport factory.

    Raises
    ------
    ConfigurationError
        If no factory is configured or the path is malformed.
    TypeError
        If the factory does not return a ``ChatTransport``.
    """
    if not factory_path:
        raise ConfigurationError("transport.factory is not set in the configuration")

    module_name, _, attr = factory_path.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"transport.factory must look like 'package.module:callable', got {factory_path!r}")

    module = importlib.import_module(module_name)
    factory: Callable[[AppConfig], Any] = getattr(module, attr)
    transport = factory(config)
    if not isinstance(transport, ChatTransport):
        raise TypeError(f"{factory_path} returned {type(transport).__name__}, not a ChatTransport")
    return transport


async def run_engine_session(runtime: Runtime, control: ConsoleControl) -> int:
    """Run the engine alongside the console until shutdown, returning an exit code."""
    control.set_runtime(runtime)
    exit_code = 0

    try:
        async with console_session(control):
            try:
                await runtime.start()
                logger.info("Engine running; waiting for shutdown request.")
                await control.shutdown_event.wait()
            except asyncio.CancelledError:
                logger.info("Engine session cancelled; proceeding to shutdown")
            except Exception as exc:
                logger.critical("Engine runtime error: %s", exc)
                exit_code = 1
    finally:
        control.set_runtime(None)
        await runtime.shutdown()

    return exit_code


async def async_main(config: AppConfig = app_config) -> int:
    """Bootstrap the database, transport and engine, returning an exit code."""
    load_environment()

    try:
        transport = load_transport(config.transport_factory, config)
    except Exception as exc:
        logger.critical("Failed to create chat transport: %s", exc)
        return 1

    database = Database(config.database_path)
    logger.info("Initializing database at %s...", config.database_path)
    if not await database.initialize():
        logger.critical("Failed to initialize database.")
        return 1

    try:
        runtime = build_runtime(config, transport, database)
    except Exception as exc:
        logger.critical("Failed to assemble engine: %s", exc)
        await database.shutdown()
        return 1

    control = ConsoleControl()
    exit_code = await run_engine_session(runtime, control)

    if control.is_restart_requested():
        logger.info("Restart requested, returning exit code %d to trigger restart", RESTART_EXIT_CODE)
        return RESTART_EXIT_CODE

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code.

    Returns
    -------
    int
        Exit code propagated to the operating system. Returns 42 to trigger a restart.
    """
    logger.info("Starting Groupwarden…")
    try:
        exit_code = asyncio.run(async_main())

        if exit_code == RESTART_EXIT_CODE:
            logger.info("Restart requested; replacing current process with new instance.")
            os.execv(sys.executable, [sys.executable] + sys.argv)
            return 0  # pragma: no cover

        return exit_code
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        if code is None:
            return 1
        try:
            return int(code)
        except (ValueError, TypeError):
            logger.warning("SystemExit.code is not an int (%r); defaulting to 1", code)
            return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the engine: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    print(f"Exited with code: {main()}")

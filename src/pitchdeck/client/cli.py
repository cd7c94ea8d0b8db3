"""
Entry point for the chat client.

Usage:
    pitchdeck-chat <path_to_server_script> [<path_to_server_script> ...]
"""

import argparse
import asyncio
import sys
from typing import Optional

from dotenv import load_dotenv

from pitchdeck.client.agent import ToolClient, ToolClientError
from pitchdeck.config import ConfigurationError, configure_logging, get_settings
from pitchdeck.config.settings import AppSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pitchdeck-chat",
        description="Chat with an LLM that builds pitch decks through tool servers",
    )
    parser.add_argument(
        "server_scripts",
        nargs="+",
        metavar="server_script",
        help="Path to a tool server script (.py or .js)",
    )
    return parser


async def run(settings: AppSettings, server_scripts: list[str]) -> int:
    client: Optional[ToolClient] = None
    try:
        client = ToolClient(settings)
        for script in server_scripts:
            await client.connect_to_server(script)
        await client.chat_loop()
    except ToolClientError as e:
        print(f"\n{e}", file=sys.stderr)
        return 1
    finally:
        if client is not None:
            await client.cleanup()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, load settings and start the chat loop."""
    args = build_parser().parse_args(argv)

    # Databricks credentials are read from the environment by the model client
    load_dotenv()

    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    configure_logging(settings.logging)
    print("Pitch deck client is booting up...", file=sys.stderr)
    return asyncio.run(run(settings, args.server_scripts))


if __name__ == "__main__":
    sys.exit(main())

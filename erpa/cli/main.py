# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Erpa command-line interface.

Usage:
    erpa run INSTRUCTION --page PAGE.json   # Run a task against a page snapshot
    erpa chat PROMPT                        # Stream a plain oracle reply
    erpa actions                            # List the action catalog
    erpa version                            # Show version information

Examples:
    # Summarize a saved page with a local Ollama model
    erpa run "Summarize the campus section" --page page.json --provider ollama

    # Cap the loop at five steps and print the result as JSON
    erpa run "Read the FAQ" --page page.json --max-iterations 5 --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import platform
import sys
from typing import List, Optional

from erpa.agents.config import AgentConfig
from erpa.agents.context import ContextRepository, RepositoryContextLoader
from erpa.agents.task_agent import TaskAgent
from erpa.agents.tools.document import StaticDocumentBridge
from erpa.agents.tools.page import create_default_catalog
from erpa.agents.types import TaskTarget
from erpa.cli.output import CLIOutput, ConsoleSink
from erpa.exceptions import ConfigurationError, ErpaError
from erpa.llm.factory import LLMProviderFactory
from erpa.llm.session import Oracle
from erpa.utils.logger import configure_logging

CLI_TARGET_ID = "cli"
CHAT_SYSTEM_PROMPT = "You are a helpful assistant."

cli_output = CLIOutput()


def get_version() -> str:
    """Get the Erpa version."""
    import erpa
    return getattr(erpa, "__version__", "unknown")


def load_config(args: argparse.Namespace) -> AgentConfig:
    """Build the agent configuration: file, then environment, then flags."""
    config = AgentConfig.from_file(args.config) if getattr(args, "config", None) else AgentConfig()
    config.apply_env_overrides()

    if getattr(args, "provider", None):
        config.llm.provider = args.provider
    if getattr(args, "model", None):
        config.llm.model = args.model
    if getattr(args, "base_url", None):
        config.llm.base_url = args.base_url
    if getattr(args, "max_iterations", None) is not None:
        config.max_iterations = args.max_iterations
    if getattr(args, "timeout", None) is not None:
        config.oracle_timeout_seconds = args.timeout if args.timeout > 0 else None

    config.validate()
    return config


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    version = get_version()

    if args.json:
        info = {
            "erpa": version,
            "python": platform.python_version(),
            "platform": platform.system(),
        }
        print(json.dumps(info, indent=2))
    else:
        print(f"Erpa {version}")

    return 0


def cmd_actions(args: argparse.Namespace) -> int:
    """List the actions of the default catalog."""
    catalog = create_default_catalog(StaticDocumentBridge(url="", sections=[]))

    if args.json:
        print(json.dumps(catalog.to_prompt_context(), indent=2))
        return 0

    for definition in catalog:
        params = ", ".join(
            f"{p.name} ({p.type}{', required' if p.required else ''})" for p in definition.parameters
        ) or "none"
        marker = " [terminal]" if definition.is_terminal else ""
        cli_output.print_list(f"{definition.name}{marker}", [definition.description, f"Parameters: {params}"])
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run one instruction against a page snapshot."""
    try:
        config = load_config(args)
        bridge = StaticDocumentBridge.from_file(args.page)
    except ErpaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    repository = ContextRepository()
    repository.set_context(CLI_TARGET_ID, bridge.url, bridge.context_sections())

    if not args.json:
        cli_output.print_summary(
            "Task",
            {
                "Instruction": args.instruction,
                "Page": bridge.url or args.page,
                "Sections": len(bridge.sections),
                "Provider": config.llm.provider,
                "Model": config.llm.model or "default",
                "Max iterations": config.max_iterations,
            },
        )

    try:
        agent = TaskAgent.from_config(
            config,
            create_default_catalog(bridge),
            api_key=args.api_key,
            context_loader=RepositoryContextLoader(repository),
            sink=None if args.json else ConsoleSink(cli_output, verbose=args.verbose),
        )
    except ErpaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    result = asyncio.run(agent.submit(args.instruction, TaskTarget(CLI_TARGET_ID, bridge.url)))
    if result is None:
        print("Error: empty instruction", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


async def _stream_chat(oracle: Oracle, prompt: str) -> str:
    session = await oracle.create_session(CHAT_SYSTEM_PROMPT)
    try:
        stream = session.prompt_streaming(prompt)
        async for fragment in stream:
            print(fragment, end="", flush=True)
        print()
        return stream.text
    finally:
        session.destroy()


def cmd_chat(args: argparse.Namespace) -> int:
    """Stream a plain reply from the configured oracle."""
    try:
        config = load_config(args)
        kwargs = {"base_url": config.llm.base_url} if config.llm.base_url else {}
        provider = LLMProviderFactory.create(
            config.llm.provider, model=config.llm.model, api_key=args.api_key, **kwargs
        )
    except ErpaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    oracle = Oracle(provider, temperature=config.llm.temperature, max_tokens=config.llm.max_tokens)
    try:
        asyncio.run(_stream_chat(oracle, args.prompt))
    except ErpaError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1
    return 0


def _add_llm_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--provider",
        choices=LLMProviderFactory.list_providers(),
        help="LLM provider (default: from config, else openai)",
    )
    parser.add_argument("--model", help="Model name (default: provider default)")
    parser.add_argument("--api-key", help="API key (default: provider environment variable)")
    parser.add_argument("--base-url", help="Custom API endpoint")
    parser.add_argument("--config", help="Agent configuration file (.yaml or .json)")


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="erpa",
        description="Erpa - read and navigate web pages with an LLM agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  run         Run an instruction against a page snapshot
  chat        Stream a plain reply from the oracle
  actions     List the available actions
  version     Show version information
""",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.environ.get("ERPA_LOG_LEVEL", "WARNING"),
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--human-readable", "--human",
        action="store_true",
        default=os.environ.get("ERPA_LOG_FORMAT", "json").lower() == "human",
        help="Use human-readable log format instead of JSON",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run an instruction against a page snapshot")
    run_parser.add_argument("instruction", help="Natural-language instruction")
    run_parser.add_argument("--page", required=True, help="Page snapshot JSON file")
    run_parser.add_argument("--max-iterations", type=int, help="Iteration cap (1-20)")
    run_parser.add_argument("--timeout", type=float, help="Per-call oracle timeout in seconds (0 disables)")
    run_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Print action results")
    _add_llm_arguments(run_parser)
    run_parser.set_defaults(func=cmd_run)

    chat_parser = subparsers.add_parser("chat", help="Stream a plain reply from the oracle")
    chat_parser.add_argument("prompt", help="Prompt text")
    _add_llm_arguments(chat_parser)
    chat_parser.set_defaults(func=cmd_chat)

    actions_parser = subparsers.add_parser("actions", help="List the available actions")
    actions_parser.add_argument("--json", action="store_true", help="Output as JSON")
    actions_parser.set_defaults(func=cmd_actions)

    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.add_argument("--json", action="store_true", help="Output as JSON")
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, human_readable=args.human_readable)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(0)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()

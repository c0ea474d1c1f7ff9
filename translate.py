"""
Command-line interface for text translation
"""
import argparse
import asyncio
import sys

from quicktranslate.config import (
    API_ENDPOINT,
    DEFAULT_SOURCE_LANGUAGE,
    DEFAULT_TARGET_LANGUAGE,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    TranslatorConfig,
)
from quicktranslate.core.events import EventBus, EventType
from quicktranslate.core.exceptions import TranslationError, user_message
from quicktranslate.core.intents import Cancel, SetSource, SetTarget, Speak, SwapLanguages, Translate
from quicktranslate.core.orchestrator import TranslationOrchestrator
from quicktranslate.utils.unified_logger import LogType, setup_cli_logger

INTERACTIVE_HELP = """Type text to translate it. Commands:
  :source CODE   select the source language
  :target CODE   select the target language
  :swap          swap languages (and the displayed texts)
  :speak         speak the last translation
  :cancel        cancel the pending translation
  :languages     list available languages
  :quit          exit"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Translate text with a remote translation endpoint.")
    parser.add_argument("text", nargs="?", default=None, help="Text to translate. Omit for interactive mode.")
    parser.add_argument("-sl", "--source_lang", default=DEFAULT_SOURCE_LANGUAGE, help=f"Source language code (default: {DEFAULT_SOURCE_LANGUAGE}).")
    parser.add_argument("-tl", "--target_lang", default=DEFAULT_TARGET_LANGUAGE, help=f"Target language code (default: {DEFAULT_TARGET_LANGUAGE}).")
    parser.add_argument("--api_endpoint", default=API_ENDPOINT, help=f"Translation endpoint URL (default: {API_ENDPOINT}).")
    parser.add_argument("--timeout", type=float, default=REQUEST_TIMEOUT, help=f"Per-attempt deadline in seconds (default: {REQUEST_TIMEOUT}).")
    parser.add_argument("--max_retries", type=int, default=MAX_RETRIES, help=f"Retries for network errors and timeouts (default: {MAX_RETRIES}).")
    parser.add_argument("--speak", action="store_true", help="Speak the translation after translating.")
    parser.add_argument("--no-speech", action="store_true", help="Disable speech output.")
    parser.add_argument("--list-languages", action="store_true", help="List available languages and exit.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output.")
    return parser


def print_languages(orchestrator: TranslationOrchestrator) -> None:
    pair = orchestrator.pair
    for language in orchestrator.catalog:
        marks = []
        if language.code == pair.source:
            marks.append("source")
        if language.code == pair.target:
            marks.append("target")
        suffix = f"  ({', '.join(marks)})" if marks else ""
        print(f"  {language.code:<12} {language.display_name}{suffix}")


def parse_command(line: str):
    """Turn an interactive input line into an intent, or a CLI keyword."""
    if not line.startswith(":"):
        return Translate(line)
    command, _, argument = line[1:].partition(" ")
    argument = argument.strip()
    if command == "source" and argument:
        return SetSource(argument)
    if command == "target" and argument:
        return SetTarget(argument)
    if command == "swap":
        return SwapLanguages()
    if command == "speak":
        return Speak()
    if command == "cancel":
        return Cancel()
    if command in ("languages", "quit", "help"):
        return command
    return "help"


async def run_interactive(orchestrator: TranslationOrchestrator, logger) -> None:
    """
    Read intents from stdin until :quit or EOF.

    Translations run in the background so the prompt stays responsive: a new
    line supersedes a pending translation and :cancel can abort it.
    """
    print(INTERACTIVE_HELP)
    pending = set()
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        line = line.strip()
        if not line:
            continue

        intent = parse_command(line)
        if intent == "quit":
            break
        if intent == "help":
            print(INTERACTIVE_HELP)
            continue
        if intent == "languages":
            print_languages(orchestrator)
            continue

        if isinstance(intent, Translate):
            task = asyncio.create_task(orchestrator.dispatch(intent))
            pending.add(task)
            task.add_done_callback(pending.discard)
            continue

        try:
            result = await orchestrator.dispatch(intent)
        except TranslationError as e:
            logger.warning(user_message(e.kind), data={'details': str(e)})
            continue

        if isinstance(intent, SwapLanguages):
            state = orchestrator.state
            print(f"  input:  {state.input_text}")
            print(f"  result: {state.result_text}")
        elif isinstance(intent, Speak) and not result:
            logger.warning("Nothing was spoken")

    leftover = list(pending)
    for task in leftover:
        task.cancel()
    await asyncio.gather(*leftover, return_exceptions=True)


async def run(args) -> int:
    logger = setup_cli_logger(enable_colors=not args.no_color)

    try:
        config = TranslatorConfig.from_cli_args(args)
        event_bus = EventBus()
        orchestrator = TranslationOrchestrator.from_config(config, event_bus=event_bus)
    except TranslationError as e:
        logger.error(f"Invalid configuration: {e.message}", LogType.ERROR_DETAIL, {'details': str(e)})
        return 2

    event_bus.subscribe_multiple(list(EventType), logger.create_event_listener(config.api_endpoint))

    try:
        if args.list_languages:
            print_languages(orchestrator)
            return 0

        if args.text is None:
            await run_interactive(orchestrator, logger)
            return 0

        try:
            result = await orchestrator.translate(args.text)
        except TranslationError as e:
            logger.error(user_message(e.kind), LogType.ERROR_DETAIL, {'details': str(e)})
            return 1

        if result is None:
            return 1
        if args.speak:
            await orchestrator.speak()
        return 0
    finally:
        await orchestrator.close()


def main() -> int:
    args = build_parser().parse_args()
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())

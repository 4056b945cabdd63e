#!/usr/bin/env python3
"""
Site Log Assistant - One Assistant Turn

Runs a single turn of the construction assistant:
1. Load configuration and the action item store
2. Assemble the action item context
3. Ask Claude for a reply
4. Extract and execute any embedded action
5. Print the reply the user would see

Usage:
    python run_assistant.py "Mark the gypcrete quote as completed"
    python run_assistant.py --reply '{"action":{"type":"add_note","data":{...}}}'
"""

import argparse
import logging
import sys
from typing import Optional, List

from sitelog.assistant import ReplyProcessor, SiteAssistant
from sitelog.commands import CommandExtractor
from sitelog.config import build_store, load_config
from sitelog.reasoner import AssistantClient

logger = logging.getLogger(__name__)


def print_separator(title: str = "") -> None:
    """Print a formatted separator line."""
    if title:
        print(f"\n{'='*70}")
        print(f"  {title}")
        print(f"{'='*70}\n")
    else:
        print(f"{'='*70}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one site log assistant turn")
    parser.add_argument("message", nargs="?", help="User message for the assistant")
    parser.add_argument("--reply", help="Process this assistant reply instead of calling Claude")
    parser.add_argument("--user", default=None, help="Acting user recorded on notes")
    args = parser.parse_args(argv)

    if not args.message and not args.reply:
        parser.error("either a message or --reply is required")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    """Run one assistant turn."""
    args = parse_args(argv)

    try:
        config = load_config(require_api_key=args.reply is None)
    except RuntimeError as e:
        print(f"\n❌ Error: {e}")
        return 1

    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        store = build_store(config)
        logger.info("✓ Action item store initialized")

        processor = ReplyProcessor(
            extractor=CommandExtractor(
                max_text_length=config.max_scan_chars,
                max_candidates=config.max_candidates
            )
        )

        if args.reply is not None:
            outcome = processor.process(args.reply, store, acting_user=args.user)
        else:
            print_separator("Requesting Reply")

            assistant = SiteAssistant(
                AssistantClient(
                    api_key=config.anthropic_api_key,
                    model=config.anthropic_model
                ),
                processor=processor
            )
            outcome = assistant.respond(args.message, store, acting_user=args.user)

        print_separator("Assistant")
        print(outcome.display_text)

        if outcome.result is not None:
            print_separator("Action Result")
            print(f"  Action:    {outcome.command.kind}")
            print(f"  Succeeded: {outcome.result.succeeded}")
            if outcome.result.affected_record:
                print(f"  Record:    {outcome.result.affected_record.to_dict()}")
            else:
                print(f"  Reason:    {outcome.result.failure_reason.value}")

        return 0 if outcome.result is None or outcome.result.succeeded else 2

    except Exception as e:
        logger.error(f"Assistant turn failed: {e}", exc_info=True)
        print(f"\n❌ Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())

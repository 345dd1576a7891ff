#!/usr/bin/env python3
"""
run_lab.py - Run a lab against Azure OpenAI from the command line.

Sends the lab's system prompt plus the starter input (or --message) using
the lab's parameters, and prints the response or the failure.

Usage:
  python scripts/run_lab.py --list
  python scripts/run_lab.py --lab first-api-call-lab
  python scripts/run_lab.py --lab rag-simulation-lab --message "What does Premium cost?" --temperature 0
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from ailearning.classroom import get_catalog
from ailearning.config import load_settings
from ailearning.llm import ChatCompletionClient
from ailearning.viewer import format_execution_time, format_token_usage

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Run a lab against Azure OpenAI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--lab", type=str, default=None, help="Lab ID")
    parser.add_argument("--list", action="store_true", help="List available labs")
    parser.add_argument("--message", type=str, default=None, help="User message (default: lab starter input)")
    parser.add_argument("--temperature", type=float, default=None, help="Override temperature")
    parser.add_argument("--max-tokens", type=int, default=None, help="Override max_tokens")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    args = parser.parse_args()

    catalog = get_catalog()
    labs = {
        lesson.lab.id: (lesson.module_id, lesson.lab)
        for lesson in catalog.iter_lessons()
        if lesson.lab is not None
    }

    if args.list or not args.lab:
        for lab_id, (module_id, lab) in labs.items():
            print(f"{lab_id:30} {module_id:20} {lab.title}")
        return

    if args.lab not in labs:
        logger.error(f"Unknown lab: {args.lab}")
        sys.exit(1)
    _, lab = labs[args.lab]

    settings = load_settings(args.config)
    client = ChatCompletionClient(settings.azure_openai, timeout=settings.request_timeout)

    overrides = {}
    if args.temperature is not None:
        overrides["temperature"] = args.temperature
    if args.max_tokens is not None:
        overrides["max_tokens"] = args.max_tokens

    message = args.message if args.message is not None else lab.starter_code
    result = client.run_lab(lab, message, overrides)

    if not result.is_success:
        logger.error(f"[{result.error_kind.value}] {result.error_message}")
        sys.exit(1)

    print(result.response)
    print(f"\n--- {result.metadata.get('model', '')} | {format_token_usage(result.token_usage)} "
          f"| {format_execution_time(result.execution_time_ms)}")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
validate_content.py - Load and validate course content.

Builds the catalog exactly as the app does (schema validation, unique IDs,
known and acyclic prerequisites) and prints a per-module summary.

Usage:
  python scripts/validate_content.py
  python scripts/validate_content.py --dir path/to/modules
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import yaml

from ailearning.classroom import ContentCatalog, load_modules, load_modules_from_dir

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def print_summary(catalog: ContentCatalog):
    """Print one line per module plus its lessons."""
    print(f"\n{'=' * 60}")
    print(f"{len(catalog)} modules, {catalog.total_lessons} lessons")
    print(f"{'=' * 60}")

    for module in catalog.list_modules():
        prereqs = ", ".join(module.prerequisites) or "none"
        print(f"\n[{module.order}] {module.id} - {module.title} ({module.level.value})")
        print(f"    prerequisites: {prereqs}")
        for lesson in module.lessons:
            extras = []
            if lesson.lab:
                extras.append(f"lab={lesson.lab.id}")
            if lesson.quiz:
                extras.append(f"quiz={lesson.quiz.id} ({len(lesson.quiz.questions)} questions)")
            suffix = f"  [{', '.join(extras)}]" if extras else ""
            print(f"    {lesson.order}. {lesson.id} ({lesson.type.value}, {len(lesson.sections)} sections){suffix}")


def main():
    parser = argparse.ArgumentParser(
        description="Validate course content",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--dir",
        type=Path,
        default=None,
        help="Directory of module YAML files (default: bundled content)"
    )
    args = parser.parse_args()

    try:
        if args.dir is not None:
            logger.info(f"Loading modules from {args.dir}")
            modules = load_modules_from_dir(args.dir)
        else:
            logger.info("Loading bundled modules")
            modules = load_modules()
        catalog = ContentCatalog(modules)
    except (ValueError, yaml.YAMLError) as e:
        logger.error(f"Content validation failed: {e}")
        sys.exit(1)

    if len(catalog) == 0:
        logger.error("No modules found")
        sys.exit(1)

    print_summary(catalog)
    logger.info("Content is valid")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Context planner CLI."""

import argparse
import logging
import sys
from config.settings import Settings
from errors import PlannerError
from planner import Planner


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Context Planner - gather recent personal context for the letter writer"
    )
    parser.add_argument(
        "--days",
        "-d",
        type=int,
        help="Days to look back (default: 7, or PLANNER_DAYS_BACK)"
    )
    parser.add_argument(
        "--output-dir",
        "-o",
        type=str,
        help="Directory for planning artifacts (default: planning-output)"
    )
    parser.add_argument(
        "--provider",
        type=str,
        choices=["anthropic", "openai"],
        default="anthropic",
        help="LLM provider (default: anthropic)"
    )
    parser.add_argument(
        "--show-latest",
        action="store_true",
        help="Print the latest enhanced prompt instead of planning"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    settings = Settings(
        days_to_look_back=args.days,
        output_dir=args.output_dir,
        llm_provider=args.provider,
        verbose=args.verbose,
    )

    try:
        if args.show_latest:
            latest = Planner.load_latest_plan(settings.output_dir)
            print(f"Generated on: {latest.metadata.date}")
            print(f"Days analyzed: {latest.metadata.days_looked_back}\n")
            print(latest.enhanced_prompt)
            return 0

        planner = Planner(settings=settings)
        result = planner.generate_plan()
    except PlannerError as e:
        print(f"Planning failed ({e.kind.value}): {e.message}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1

    print("\n" + "=" * 60)
    print("PLANNING COMPLETE")
    print("=" * 60 + "\n")
    print(f"Enhanced user prompt saved to: {result.prompt_path}")
    print(f"Full analysis saved to: {result.full_result_path}")
    print(f"Debug information saved to: {result.transcript_path}")
    print(f"Days analyzed: {result.lookback_days}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

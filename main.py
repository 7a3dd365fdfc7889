"""
Main entry point for the trading copilot.

Usage:
    python main.py -q "What's the trend for BTC over the last week?"
    python main.py -q "Is this a good entry?" --image chart.png
    python main.py --mode serve
"""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import Optional

from agents import ChartVisionCapability, TradingCopilotError, enrich_message
from config import get_settings
from graph import TradingCopilot


def parse_arguments() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Trading Copilot - crypto trading questions answered by an agent graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -q "What's the trend for BTC over the last week?"
  %(prog)s -q "What's the trend for ETH?" --no-stream
  %(prog)s -q "Should I buy?" --image chart.png
  %(prog)s --mode serve --port 3000
        """
    )

    parser.add_argument(
        "-q", "--question",
        type=str,
        help="Question to ask the copilot",
    )

    parser.add_argument(
        "--mode",
        type=str,
        choices=["ask", "serve"],
        default="ask",
        help="Run mode (default: ask)",
    )

    parser.add_argument(
        "--image",
        type=str,
        help="Path to a chart screenshot to attach to the question",
    )

    parser.add_argument(
        "--no-stream",
        action="store_true",
        help="Print only the final answer instead of streaming every step",
    )

    parser.add_argument(
        "--host",
        type=str,
        help="Server host (override the config)",
    )

    parser.add_argument(
        "--port",
        type=int,
        help="Server port (override the config)",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print the traceback on errors",
    )

    return parser.parse_args()


async def attach_image(question: str, image_path: str) -> str:
    """Describe a chart image and add what it shows to the question."""
    path = Path(image_path)
    if not path.is_file():
        raise FileNotFoundError(f"Image file not found: {path}")

    mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    description = await ChartVisionCapability().adescribe(path.read_bytes(), mime_type)
    return enrich_message(question, description)


async def ask(question: str, image_path: Optional[str] = None, stream: bool = True) -> None:
    """
    Ask one question and print the answer.

    Args:
        question: The user's question
        image_path: Optional chart screenshot
        stream: Print chunks as they are produced
    """
    if image_path:
        question = await attach_image(question, image_path)

    copilot = TradingCopilot()

    if not stream:
        print(await copilot.arun(question))
        return

    async for chunk in copilot.astream(question):
        print(f"\n💬 {chunk}")


def serve(host: str, port: int) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn
    from api import create_app

    print(f"🚀 Trading Copilot API on http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port)


def main() -> None:
    """Main entry point."""
    args = parse_arguments()
    settings = get_settings()

    if args.mode == "serve":
        serve(args.host or settings.API_HOST, args.port or settings.API_PORT)
        return

    if not args.question:
        print("A question is required in ask mode (use -q). For a conversation, use cli_chatbot.py")
        sys.exit(1)

    print("🚀 Trading Copilot")
    print("=" * 60)

    try:
        asyncio.run(ask(args.question, image_path=args.image, stream=not args.no_stream))
    except (TradingCopilotError, FileNotFoundError) as e:
        print(f"\n❌ Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()

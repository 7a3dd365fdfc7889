#!/usr/bin/env python3
"""
Interactive CLI for the trading copilot.

Usage:
    python cli_chatbot.py
    python cli_chatbot.py -q "What's the trend for SOL over the last month?"

Each question is a fresh conversation: the copilot keeps no memory between
turns, so include the symbol and the period in every question.
"""

import argparse
import asyncio

from agents import TradingCopilotError
from graph import TradingCopilot


def print_banner():
    """Print the chatbot banner."""
    print("""
╔═══════════════════════════════════════════════════════════════╗
║     🤖 Trading Copilot - Crypto Trading Assistant              ║
║                                                                ║
║  Ask about a coin's trend over a period of time.               ║
║                                                                ║
║  Commands:                                                     ║
║    /help     - Show help                                       ║
║    /quit     - Quit                                            ║
╚═══════════════════════════════════════════════════════════════╝
""")


def print_help():
    """Print help information."""
    print("""
📖 Help - Trading Copilot

COMMANDS:
  /help      - Show this help
  /quit      - Quit

EXAMPLE QUESTIONS:
  • "What's the trend for BTC over the last week?"
  • "Should I buy ETH? Look at the last 3 months."
  • "Give me the RSI and MACD of SOL on the daily chart"

TIPS:
  - Mention the coin and the period in each question
  - Answers come from technical indicators, not financial advice
""")


async def stream_answer(question: str) -> None:
    copilot = TradingCopilot()
    async for chunk in copilot.astream(question):
        print(f"\n🤖 Assistant: {chunk}")


def run_interactive_chat():
    """Run the interactive chat session."""
    print_banner()

    while True:
        try:
            user_input = input("\n👤 You: ").strip()

            if not user_input:
                continue

            if user_input.lower() in ["/quit", "/exit", "quit", "exit", "q"]:
                print("\n👋 Bye!")
                break

            if user_input.lower() == "/help":
                print_help()
                continue

            try:
                asyncio.run(stream_answer(user_input))
            except TradingCopilotError as e:
                print(f"\n❌ Error: {str(e)}")
                print("Try again or use /quit to leave.")

        except KeyboardInterrupt:
            print("\n\n👋 Bye!")
            break
        except EOFError:
            break


def run_single_question(question: str) -> str:
    """
    Run a single question through the copilot.

    Args:
        question: The user's question

    Returns:
        The copilot's final answer
    """
    return asyncio.run(TradingCopilot().arun(question))


def main():
    """Main entry point for the interactive CLI."""
    parser = argparse.ArgumentParser(
        description="Interactive Trading Copilot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                   # Interactive mode
  %(prog)s -q "BTC trend over the last week"  # Single question
        """
    )

    parser.add_argument(
        "-q", "--question",
        type=str,
        help="Single question to ask",
    )

    args = parser.parse_args()

    if args.question:
        print(run_single_question(args.question))
    else:
        run_interactive_chat()


if __name__ == "__main__":
    main()

"""
Command-Line Interface for the News Chat Assistant

Provides CLI commands for:
- Refreshing the news corpus cache
- One-off questions
- Interactive multi-turn chat sessions
- System statistics
"""

import sys
import argparse
import logging

from .channel.session_channel import (
    BOT_RESPONSE,
    ERROR,
    SESSION_CREATED,
    SESSION_HISTORY,
    SESSION_RESET,
    ChannelEvent,
)
from .main_pipeline import NewsChatSystem


def setup_logging(verbose: bool = False):
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def cmd_ingest(args):
    """Handle the ingest command."""
    system = NewsChatSystem(show_progress=True)

    print("Fetching news feeds...")
    count = system.refresh_corpus(limit=args.limit)

    print(f"✓ Cached {count} articles to {system.config.corpus_cache_path}")


def cmd_ask(args):
    """Handle the ask command."""
    system = NewsChatSystem()

    print(f"Question: {args.question}")
    print()

    answer = system.ask(args.question)

    print("Answer:")
    print(answer)


def print_event(event: ChannelEvent):
    """Render a channel event on the terminal."""
    if event.name == SESSION_CREATED:
        print(f"Session ID: {event.payload['sessionId']}")
    elif event.name == BOT_RESPONSE:
        print(f"\nBot: {event.payload['botResponse']}\n")
    elif event.name == SESSION_HISTORY:
        if not event.payload:
            print("(no messages yet)")
        for message in event.payload:
            print(f"[{message['timestamp']}]")
            print(f"  You: {message['user']}")
            print(f"  Bot: {message['bot']}")
    elif event.name == SESSION_RESET:
        print("Session history cleared.")
    elif event.name == ERROR:
        print(f"✗ {event.payload['message']}")


def cmd_chat(args):
    """Handle the chat command."""
    system = NewsChatSystem()

    print("Loading news corpus...")
    system.initialize()

    channel = system.channel
    session_id = channel.create_session(print_event)
    if session_id is None:
        sys.exit(1)
    channel.join_session(session_id, print_event)

    print("Ask about recent news. Commands: /history, /reset, /quit")

    try:
        while True:
            try:
                line = input("You: ").strip()
            except EOFError:
                break

            if not line:
                continue
            if line == '/quit':
                break
            if line == '/history':
                channel.join_session(session_id, print_event)
            elif line == '/reset':
                channel.reset_session(session_id, print_event)
            else:
                # Block until answered; failures arrive as error events
                channel.send_message(session_id, line, print_event).exception()
    finally:
        system.shutdown()


def cmd_stats(args):
    """Handle the stats command."""
    system = NewsChatSystem()

    if args.initialize:
        system.initialize()

    stats = system.get_stats()

    print("="*60)
    print("System Statistics")
    print("="*60)
    print(f"Ready: {stats['ready']}")
    print(f"Total Articles: {stats['total_articles']}")
    print(f"Active Sessions: {stats['active_sessions']}")
    print(f"Embedding Provider: {stats['embedding_provider']}")
    print(f"Generation Provider: {stats['generation_provider']}")
    print()

    print("Vector Store:")
    vs_stats = stats['vector_store_stats']
    print(f"  Dimension: {vs_stats.get('dimension') or 'N/A'}")
    print(f"  Index Type: {vs_stats.get('index_type', 'N/A')}")
    print(f"  Total Vectors: {vs_stats.get('total_vectors', 0)}")
    print()

    print("Embedding Cache:")
    cache_stats = stats['cache_stats']
    print(f"  Cache Size: {cache_stats.get('cache_size', 0)}")
    print(f"  Hit Rate: {cache_stats.get('hit_rate', 0):.2%}")
    print()

    usage = stats['resource_usage']
    print(f"Memory: {usage['memory_mb']:.1f} MB")
    print("="*60)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog='newsbot',
        description='News Chat Assistant - ask questions about recent news',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Refresh the cached news corpus
  python -m newsbot.cli ingest --limit 60

  # Ask a single question
  python -m newsbot.cli ask "What happened at the climate summit?"

  # Start an interactive chat session
  python -m newsbot.cli chat

  # View statistics
  python -m newsbot.cli stats --initialize
        """
    )

    # Global arguments
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    ingest_parser = subparsers.add_parser(
        'ingest',
        help='Fetch news feeds and overwrite the corpus cache'
    )
    ingest_parser.add_argument(
        '--limit',
        type=int,
        default=None,
        help='Total number of articles across all feeds (default: INGEST_LIMIT)'
    )
    ingest_parser.set_defaults(func=cmd_ingest)

    ask_parser = subparsers.add_parser(
        'ask',
        help='Ask a question and get an AI-generated answer'
    )
    ask_parser.add_argument(
        'question',
        help='Question to ask'
    )
    ask_parser.set_defaults(func=cmd_ask)

    chat_parser = subparsers.add_parser(
        'chat',
        help='Start an interactive multi-turn chat session'
    )
    chat_parser.set_defaults(func=cmd_chat)

    stats_parser = subparsers.add_parser(
        'stats',
        help='Display system statistics'
    )
    stats_parser.add_argument(
        '--initialize',
        action='store_true',
        help='Build the index before reporting'
    )
    stats_parser.set_defaults(func=cmd_stats)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"\n✗ Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()

"""Entry point for grammaire CLI client."""

import argparse
import sys

from cli.api_client import GrammarAPIClient
from cli.console import ConsoleUI


def main():
    parser = argparse.ArgumentParser(description='Grammaire - French grammar coaching')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    parser.add_argument(
        '--user',
        default='default',
        help='User ID (default: default)'
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        '--stats',
        action='store_true',
        help='Print the progress summary and exit'
    )
    mode.add_argument(
        '--review',
        action='store_true',
        help='Practice the rules you struggle with most'
    )
    args = parser.parse_args()

    client = GrammarAPIClient(base_url=args.server, user_id=args.user)
    ui = ConsoleUI(client)

    try:
        if args.stats:
            ui.print_progress(client.get_progress())
        elif args.review:
            ui.review_weak_rules()
        else:
            ui.run()
    except KeyboardInterrupt:
        print('\nGoodbye!')
        sys.exit(0)


if __name__ == '__main__':
    main()

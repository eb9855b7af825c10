import argparse
import asyncio
import logging
import os

from baccarat.models import TableConfig
from .server import TableServer

logging.basicConfig(level=logging.INFO)


def main() -> None:
    parser = argparse.ArgumentParser(description="Live baccarat table server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", 3000)))
    parser.add_argument("--betting-time", type=int, default=20, help="Betting window in seconds")
    parser.add_argument(
        "--result-show-ms",
        type=int,
        default=5_000,
        help="How long the dealt hand stays on the table before the next round (milliseconds)",
    )
    parser.add_argument("--decks", type=int, default=8)
    parser.add_argument("--min-cards", type=int, default=20, help="Reshuffle when fewer cards remain")
    parser.add_argument("--starting-balance", type=int, default=10_000)
    parser.add_argument("--seed", type=int, default=None, help="Seed the shoe shuffle for reproducible tables")
    parser.add_argument("--verbose", action="store_true", help="Log every wager decision")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger("baccarat").setLevel(logging.DEBUG)

    config = TableConfig(
        betting_time=args.betting_time,
        result_show_ms=args.result_show_ms,
        decks=args.decks,
        min_cards_before_shuffle=args.min_cards,
        starting_balance=args.starting_balance,
    )
    try:
        config.validate()
    except ValueError as exc:
        parser.error(str(exc))

    server = TableServer(config, seed=args.seed)
    asyncio.run(server.start(host=args.host, port=args.port))


if __name__ == "__main__":
    main()

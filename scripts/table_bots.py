#!/usr/bin/env python3
"""Connect a handful of random bettors to a running table.

Each bot picks a nickname, then places one random wager whenever a new
betting round opens. Handy for watching the table under load.

Example:
    python -m host --port 3000 &
    python scripts/table_bots.py --url ws://127.0.0.1:3000 --bots 5
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, Optional

import websockets

LOGGER = logging.getLogger("table_bots")

SIDES = ("PLAYER", "BANKER", "TIE")


@dataclass
class BotProfile:
    name: str
    rng: random.Random
    max_stake: int


def choose_wager(balance: int, profile: BotProfile) -> Optional[Dict[str, Any]]:
    if balance <= 0:
        return None
    side = profile.rng.choices(SIDES, weights=[45, 45, 10])[0]
    amount = profile.rng.randint(1, min(profile.max_stake, balance))
    return {"type": "place_bet", "side": side, "amount": amount}


async def run_bot(profile: BotProfile, url: str, stop_event: asyncio.Event) -> None:
    """Keep one bot seated and betting until stop_event is set."""

    try:
        async with websockets.connect(url) as ws:
            await ws.send(json.dumps({"type": "set_nickname", "name": profile.name}))
            identity: Optional[str] = None
            balance = 0
            status: Optional[str] = None
            current_round = None
            last_round = None
            while not stop_event.is_set():
                try:
                    raw = await asyncio.wait_for(ws.recv(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                except websockets.ConnectionClosed:
                    break

                message = json.loads(raw)
                msg_type = message.get("type")
                if msg_type == "welcome":
                    identity = message["id"]
                elif msg_type == "players_update" and identity:
                    me = message.get("players", {}).get(identity)
                    if me:
                        balance = me["balance"]
                elif msg_type == "game_update":
                    status = message.get("status")
                    current_round = message.get("roundId")
                    if status == "RESULT":
                        LOGGER.info("%s sees %s (balance=%s)", profile.name, message.get("result"), balance)
                elif msg_type == "bet_result" and not message.get("accepted"):
                    LOGGER.warning("%s wager rejected: %s", profile.name, message.get("reason"))

                # One wager per round, once the balance is known.
                if status == "BETTING" and current_round != last_round:
                    wager = choose_wager(balance, profile)
                    if wager:
                        last_round = current_round
                        await ws.send(json.dumps(wager))
    except OSError as exc:
        LOGGER.error("%s could not connect: %s", profile.name, exc)


async def main_async(args: argparse.Namespace) -> None:
    rng = random.Random(args.seed)
    stop_event = asyncio.Event()
    bots = [
        BotProfile(name=f"Bot{idx:02d}", rng=random.Random(rng.random()), max_stake=args.max_stake)
        for idx in range(args.bots)
    ]
    tasks = [asyncio.create_task(run_bot(bot, args.url, stop_event)) for bot in bots]
    try:
        if args.duration:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Future()
    finally:
        stop_event.set()
        for task in tasks:
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await asyncio.gather(*tasks, return_exceptions=True)


def main() -> None:
    parser = argparse.ArgumentParser(description="Random bettors for a live baccarat table")
    parser.add_argument("--url", default="ws://127.0.0.1:3000")
    parser.add_argument("--bots", type=int, default=4)
    parser.add_argument("--max-stake", type=int, default=500)
    parser.add_argument("--duration", type=float, default=0, help="Seconds to run (0 = until Ctrl+C)")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("\nBots stopped")


if __name__ == "__main__":
    main()

import pytest

from baccarat.cards import ShoeExhausted, parse_cards
from baccarat.ledger import payout_for
from baccarat.models import Phase, RejectReason, Side, TableConfig, Wager

from .helpers import create_engine, finish_betting, play_rounds, stack_shoe


def test_start_opens_first_betting_round():
    engine, gateway, clock = create_engine()
    engine.start()
    snapshot = gateway.snapshots[-1]
    assert snapshot["status"] == "BETTING"
    assert snapshot["timer"] == 20
    assert snapshot["roundId"] == 1
    assert snapshot["result"] is None
    assert snapshot["hands"] == {"player": [], "banker": []}
    assert clock.pending() == 1


def test_start_twice_rejected():
    engine, _, _ = create_engine()
    engine.start()
    with pytest.raises(RuntimeError, match="already running"):
        engine.start()


def test_countdown_reaches_zero_and_deals_exactly_once():
    engine, gateway, clock = create_engine()
    engine.start()

    clock.advance(19)
    assert gateway.timers == list(range(19, 0, -1))
    assert engine.phase == Phase.BETTING
    assert "DEALING" not in gateway.statuses()

    clock.advance(1)
    assert gateway.timers[-1] == 0
    assert gateway.statuses() == ["BETTING", "DEALING", "RESULT"]
    assert engine.phase == Phase.RESULT
    assert engine.snapshot.timer == 0


def test_dealing_snapshot_precedes_populated_result():
    engine, gateway, clock = create_engine()
    engine.start()
    finish_betting(engine, clock)
    dealing, result = gateway.snapshots[1], gateway.snapshots[2]
    assert dealing["hands"] == {"player": [], "banker": []}
    assert dealing["result"] is None
    assert len(result["hands"]["player"]) in (2, 3)
    assert len(result["hands"]["banker"]) in (2, 3)
    assert result["result"] in ("PLAYER", "BANKER", "TIE")
    assert result["history"] == [result["result"][0]]


def test_result_is_held_for_display_delay_then_next_round_starts():
    engine, gateway, clock = create_engine()
    engine.start()
    finish_betting(engine, clock)

    clock.advance(4)
    assert engine.phase == Phase.RESULT
    assert engine.snapshot.round_id == 1

    clock.advance(1)
    snapshot = gateway.snapshots[-1]
    assert snapshot["status"] == "BETTING"
    assert snapshot["roundId"] == 2
    assert snapshot["timer"] == 20
    assert snapshot["hands"] == {"player": [], "banker": []}
    assert snapshot["scores"] == {"player": 0, "banker": 0}
    assert snapshot["result"] is None
    assert len(snapshot["history"]) == 1


def test_round_ids_strictly_increase():
    engine, gateway, clock = create_engine(betting_time=3, result_show_ms=500)
    engine.start()
    play_rounds(engine, clock, 6)
    opened = [s["roundId"] for s in gateway.snapshots if s["status"] == "BETTING"]
    assert opened == [1, 2, 3, 4, 5, 6, 7]


def test_history_keeps_twenty_most_recent_codes():
    engine, gateway, clock = create_engine(betting_time=1, result_show_ms=0)
    engine.start()
    play_rounds(engine, clock, 25)

    codes = [s["result"][0] for s in gateway.snapshots if s["status"] == "RESULT"]
    assert len(codes) == 25
    assert engine.snapshot.history == list(reversed(codes))[:20]
    assert len(engine.snapshot.history) == 20


def test_wager_placed_before_transition_is_settled():
    engine, _, clock = create_engine(players=1)
    engine.start()
    clock.advance(19)
    assert engine.place_wager("player0", Side.PLAYER, 100).accepted
    assert engine.ledger.get("player0").balance == 9_900

    clock.advance(1)
    participant = engine.ledger.get("player0")
    assert participant.wager is None
    expected_credit = payout_for(Wager(Side.PLAYER, 100), engine.snapshot.result)
    assert participant.balance == 9_900 + expected_credit
    assert engine.state.last_settlements[0].credit == expected_credit


def test_wagers_rejected_outside_betting():
    engine, _, clock = create_engine(players=1)
    engine.start()
    finish_betting(engine, clock)
    before = engine.ledger.snapshot()
    result = engine.place_wager("player0", "BANKER", 100)
    assert result.reason == RejectReason.WRONG_PHASE
    assert engine.ledger.snapshot() == before

    clock.advance(5)
    assert engine.place_wager("player0", "BANKER", 100).accepted


def test_rejected_wager_publishes_nothing():
    engine, gateway, _ = create_engine(players=1)
    engine.start()
    published = len(gateway.ledgers)
    assert not engine.place_wager("player0", "PLAYER", 20_000).accepted
    assert len(gateway.ledgers) == published
    assert engine.place_wager("player0", "PLAYER", 200).accepted
    assert len(gateway.ledgers) == published + 1


def test_no_wager_carries_over_to_next_round():
    engine, _, clock = create_engine(players=2)
    engine.start()
    engine.place_wager("player0", "TIE", 100)
    play_rounds(engine, clock, 1)
    assert all(p.wager is None for p in engine.ledger.participants.values())
    assert engine.place_wager("player0", "TIE", 100).accepted


def test_end_to_end_stacked_shoe_player_wins():
    engine, gateway, clock = create_engine(players=3)
    engine.start()
    engine.place_wager("player0", "PLAYER", 100)
    engine.place_wager("player1", "BANKER", 100)
    engine.place_wager("player2", "TIE", 100)
    stack_shoe(engine, ["2H", "2D", "3C", "2S", "3H", "9D"])

    finish_betting(engine, clock)

    result = gateway.snapshots[-1]
    assert result["status"] == "RESULT"
    assert [c["rank"] for c in result["hands"]["player"]] == ["2", "2", "3"]
    assert [c["rank"] for c in result["hands"]["banker"]] == ["3", "2"]
    assert result["scores"] == {"player": 7, "banker": 5}
    assert result["result"] == "PLAYER"
    assert result["history"] == ["P"]
    assert engine.ledger.get("player0").balance == 10_100
    assert engine.ledger.get("player1").balance == 9_900
    assert engine.ledger.get("player2").balance == 9_900
    assert engine.state.shoe.cards[-1] == parse_cards(["9D"])[0]


def test_tie_pushes_player_and_banker_bets():
    engine, _, clock = create_engine(players=3)
    engine.start()
    engine.place_wager("player0", "PLAYER", 100)
    engine.place_wager("player1", "BANKER", 100)
    engine.place_wager("player2", "TIE", 100)
    stack_shoe(engine, ["3H", "4D", "3C", "4S"])

    finish_betting(engine, clock)

    assert engine.snapshot.result == Side.TIE
    assert engine.ledger.get("player0").balance == 10_000
    assert engine.ledger.get("player1").balance == 10_000
    assert engine.ledger.get("player2").balance == 10_800


def test_short_shoe_reshuffled_before_deal():
    engine, _, clock = create_engine(decks=1)
    engine.start()
    engine.state.shoe.preload(parse_cards(["5H"] * 10))
    finish_betting(engine, clock)
    assert 52 - 6 <= len(engine.state.shoe) <= 52 - 4


def test_shoe_exhaustion_halts_the_table(monkeypatch):
    engine, _, clock = create_engine()
    engine.start()
    engine.state.shoe.preload(parse_cards(["10H", "10D", "10C"]))
    monkeypatch.setattr(engine.state.shoe, "ensure_ready", lambda min_cards: False)

    with pytest.raises(ShoeExhausted):
        finish_betting(engine, clock)

    assert engine.halted is True
    assert clock.pending() == 0
    with pytest.raises(RuntimeError, match="halted"):
        engine.start()


def test_stop_cancels_pending_wake():
    engine, gateway, clock = create_engine()
    engine.start()
    clock.advance(5)
    engine.stop()
    assert clock.pending() == 0
    clock.advance(60)
    assert gateway.statuses() == ["BETTING"]
    engine.stop()


def test_stop_mid_betting_refunds_open_wagers():
    engine, gateway, clock = create_engine(players=2)
    engine.start()
    engine.place_wager("player0", "TIE", 100)
    clock.advance(5)
    engine.stop()

    participant = engine.ledger.get("player0")
    assert participant.wager is None
    assert participant.balance == 10_000
    assert engine.ledger.outstanding() == 0
    assert gateway.ledgers[-1]["player0"]["currentBet"] is None

    engine.start()
    assert engine.snapshot.round_id == 2
    assert engine.place_wager("player0", "PLAYER", 100).accepted
    finish_betting(engine, clock)
    settled = engine.state.last_settlements
    assert [(s.identity, s.side) for s in settled] == [("player0", Side.PLAYER)]


def test_stop_after_settlement_refunds_nothing():
    engine, gateway, clock = create_engine(players=1)
    engine.start()
    engine.place_wager("player0", "BANKER", 100)
    finish_betting(engine, clock)
    balance = engine.ledger.get("player0").balance
    published = len(gateway.ledgers)
    engine.stop()
    assert engine.ledger.get("player0").balance == balance
    assert len(gateway.ledgers) == published


def test_connect_rename_disconnect_publish_ledger():
    engine, gateway, _ = create_engine()
    participant = engine.on_connect("abcd1234")
    assert participant.display_name == "Guestabcd"
    assert participant.balance == 10_000
    assert engine.set_display_name("abcd1234", "A very long nickname")
    assert engine.ledger.get("abcd1234").display_name == "A very lon"
    assert not engine.set_display_name("nobody", "x")
    engine.on_disconnect("abcd1234")
    engine.on_disconnect("abcd1234")
    assert len(gateway.ledgers) == 3
    assert gateway.ledgers[-1] == {}


def test_generated_identities_are_unique():
    engine, _, _ = create_engine()
    first = engine.on_connect()
    second = engine.on_connect()
    assert first.identity != second.identity


def test_disconnect_during_betting_forfeits_stake():
    engine, _, clock = create_engine(players=2)
    engine.start()
    engine.place_wager("player0", "PLAYER", 1_000)
    engine.on_disconnect("player0")
    finish_betting(engine, clock)
    assert engine.ledger.get("player0") is None
    assert engine.state.last_settlements == []


def test_invalid_config_rejected():
    with pytest.raises(ValueError):
        TableConfig(min_cards_before_shuffle=2).validate()
    with pytest.raises(ValueError):
        TableConfig(decks=0).validate()
    with pytest.raises(ValueError):
        TableConfig(betting_time=0).validate()

"""Tests for the game session phase machine."""

import asyncio

import pytest

from squidbet.data.contestants import initialize_contestants
from squidbet.data.game_rounds import get_round_by_type
from squidbet.schemas.betting_schemas import BetStatus
from squidbet.schemas.contestant_schemas import ContestantStatus
from squidbet.schemas.game_schemas import GamePhase
from squidbet.schemas.round_schemas import GameEventType, GameRoundType
from squidbet.services import game_service
from squidbet.services.game_service import GameManager, GameSession
from squidbet.services.ledger_mirror_service import COMPLETION_ROUND, SafeLedgerMirror
from squidbet.services.narrator_service import TemplateNarrator

from helpers import FailingMirror, FailingNarrator, GatedNarrator, eliminate_all_but, make_contestant


@pytest.fixture
def session():
    return GameSession(game_id="game-test", seed=42, narrator=FailingNarrator())


def _in_simulation(session):
    session.start_game()
    session.start_simulation()
    return session


def _hana_final_roster():
    """Hana at 2.5 against a contestant who cannot win the final duel."""
    hana = next(c for c in initialize_contestants() if c.id == "hana")
    return [hana.model_copy(update={"current_odds": 2.5}), make_contestant("weakling", stat=1)]


class TestPhases:
    """Tests for phase transitions."""

    def test_starts_in_intro(self, session):
        assert session.phase == GamePhase.INTRO
        assert session.betting.balance == 1000
        assert len(session.alive_contestants()) == 10
        assert not session.round_pending

    def test_start_game_only_from_intro(self, session):
        assert session.start_game().success
        assert session.phase == GamePhase.BETTING

        result = session.start_game()
        assert not result.success
        assert result.message == "Cannot start game during betting phase"

    def test_simulation_requires_betting(self, session):
        assert not session.start_simulation().success
        session.start_game()
        assert session.start_simulation().success
        assert session.phase == GamePhase.SIMULATION

    async def test_compute_requires_simulation(self, session):
        session.start_game()
        result = await session.compute_next_round()
        assert not result.success
        assert result.message == "Cannot run a round during betting phase"

    def test_reveal_without_compute(self, session):
        _in_simulation(session)
        result = session.reveal_round()
        assert not result.success
        assert result.message == "No computed round to reveal"

    async def test_compute_twice_rejected(self, session):
        _in_simulation(session)
        assert (await session.compute_next_round()).success

        result = await session.compute_next_round()
        assert not result.success
        assert result.message == "Current round has not been revealed yet"

    async def test_compute_while_narrating_rejected(self):
        """A second compute while the narrator is still working is turned away."""
        narrator = GatedNarrator()
        session = _in_simulation(GameSession(seed=42, narrator=narrator))

        first = asyncio.create_task(session.compute_next_round())
        await asyncio.sleep(0)
        second = await session.compute_next_round()

        assert not second.success
        assert second.message == "A round is already being computed"
        assert not session.reveal_round().success

        narrator.gate.set()
        assert (await first).success
        assert narrator.calls == 1
        assert session.round_pending

    async def test_reset_while_narrating_discards_round(self):
        """A round computed before a reset never lands in the new game."""
        narrator = GatedNarrator()
        session = _in_simulation(GameSession(seed=42, narrator=narrator))

        pending = asyncio.create_task(session.compute_next_round())
        await asyncio.sleep(0)
        session.reset()
        narrator.gate.set()
        result = await pending

        assert not result.success
        assert session.phase == GamePhase.INTRO
        assert not session.round_pending
        assert not session.reveal_round().success
        assert len(session.alive_contestants()) == 10
        assert session.game_state.current_round_index == 0

    async def test_failed_compute_frees_the_round(self, session, monkeypatch):
        _in_simulation(session)

        async def broken(*args, **kwargs):
            raise RuntimeError("simulation crashed")

        monkeypatch.setattr(game_service, "simulate_round", broken)
        with pytest.raises(RuntimeError):
            await session.compute_next_round()
        monkeypatch.undo()

        assert (await session.compute_next_round()).success

    def test_reveal_requires_simulation(self, session):
        session.start_game()
        result = session.reveal_round()
        assert not result.success
        assert result.message == "Cannot reveal a round during betting phase"

    def test_show_results_too_early(self, session):
        _in_simulation(session)
        result = session.show_results()
        assert not result.success
        assert result.message == "The games are not over yet"

    def test_finish_requires_results(self, session):
        assert not session.finish().success

    async def test_full_run_to_game_over(self, session):
        result = await session.play_out()

        assert result.success
        assert session.phase == GamePhase.RESULTS
        assert session.show_results().success
        assert session.finish().success
        assert session.phase == GamePhase.GAME_OVER

    async def test_reset_restores_initial_state(self, session):
        _in_simulation(session)
        await session.play_out()

        result = session.reset()

        assert result.success
        assert session.phase == GamePhase.INTRO
        assert session.betting.balance == 1000
        assert session.game_state.current_round_index == 0
        assert session.game_state.elimination_order == []
        assert len(session.alive_contestants()) == 10


class TestBetting:
    """Tests for bets placed through the session."""

    def test_bet_uses_current_odds(self, session):
        session.start_game()
        result = session.place_bet("jihoon", 100)

        assert result.success
        assert result.data["bet"]["odds"] == 10.8
        assert session.betting.balance == 900
        assert session.game_state.get_contestant("jihoon").total_bets_placed == 1

    def test_bet_outside_betting_phase(self, session):
        result = session.place_bet("jihoon", 100)
        assert not result.success
        assert result.message == "Bets can only be placed during the betting phase"

    def test_unknown_contestant(self, session):
        session.start_game()
        result = session.place_bet("nobody", 100)
        assert not result.success
        assert result.message == "Contestant not found"

    def test_eliminated_contestant(self):
        session = GameSession(
            roster_factory=lambda: eliminate_all_but(initialize_contestants(), {"hana", "jihoon"})
        )
        session.start_game()

        result = session.place_bet("mira", 100)

        assert not result.success
        assert result.message == "Mira is no longer in the game"
        assert session.betting.balance == 1000

    def test_ledger_rejection_surfaces(self, session):
        session.start_game()
        result = session.place_bet("jihoon", 5000)
        assert not result.success
        assert result.message == "Insufficient balance"

    def test_cancel_bet(self, session):
        session.start_game()
        bet_id = session.place_bet("jihoon", 100).data["bet"]["id"]

        result = session.cancel_bet(bet_id)

        assert result.success
        assert session.betting.balance == 1000
        assert session.game_state.get_contestant("jihoon").total_bets_placed == 0

    def test_cancel_after_simulation_starts(self, session):
        session.start_game()
        bet_id = session.place_bet("jihoon", 100).data["bet"]["id"]
        session.start_simulation()

        assert not session.cancel_bet(bet_id).success
        assert session.betting.balance == 900


class TestRounds:
    """Tests for computing and revealing rounds."""

    async def test_compute_hides_results_until_reveal(self, session):
        _in_simulation(session)
        odds_before = [c.current_odds for c in session.game_state.contestants]

        result = await session.compute_next_round()

        assert result.data["round_number"] == 1
        assert result.data["round_name"] == "Red Light, Green Light"
        assert result.data["narrative_fallback"] is True
        assert session.round_pending
        assert len(session.alive_contestants()) == 10
        assert [c.current_odds for c in session.game_state.contestants] == odds_before
        assert session.game_state.round_narrative[0] == "Round 1: Red Light, Green Light"
        assert not any("was eliminated" in line for line in session.game_state.round_narrative)

    async def test_template_narrative_held_until_reveal(self):
        session = _in_simulation(GameSession(seed=3, narrator=TemplateNarrator()))
        await session.compute_next_round()

        pending = session.stage.result
        before = list(session.game_state.round_narrative)
        for contestant in pending.eliminated:
            assert not any(contestant.name in line for line in before)

        session.reveal_round()

        assert session.game_state.round_narrative == pending.narrative
        assert len(session.game_state.round_narrative) > len(before)

    async def test_reveal_merges_outcome(self, session):
        _in_simulation(session)
        await session.compute_next_round()

        result = session.reveal_round()

        assert result.success
        assert not result.data["game_over"]
        eliminated = result.data["eliminated"]
        assert len(eliminated) == 2
        assert session.game_state.elimination_order == eliminated
        assert session.game_state.current_round_index == 1
        assert not session.round_pending
        assert len(session.alive_contestants()) == 8
        for contestant in session.game_state.contestants:
            if contestant.id in eliminated:
                assert contestant.status == ContestantStatus.ELIMINATED
                assert contestant.current_odds == 0
            else:
                assert contestant.current_odds >= 1.1
        assert [c.id for c in session.game_state.eliminated_contestants] == eliminated
        assert sum("was eliminated" in line for line in session.game_state.round_narrative) == 2

    async def test_decision_events_recorded(self, session):
        _in_simulation(session)
        await session.compute_next_round()
        session.reveal_round()

        decisions = [e for e in session.game_state.game_events if e.type == GameEventType.DECISION]
        assert len(decisions) == 10
        jihoon = next(e for e in decisions if e.id == "decision-jihoon-1")
        assert jihoon.description.startswith("Jihoon: ")

    async def test_elimination_order_has_no_duplicates(self, session):
        await session.play_out()

        order = session.game_state.elimination_order
        assert len(order) == len(set(order))
        survivors = set(session.game_state.survivor_ids)
        assert survivors.isdisjoint(order)
        assert len(survivors) + len(order) == 10

    async def test_same_seed_same_game(self):
        first = GameSession(seed=7, narrator=TemplateNarrator())
        second = GameSession(seed=7, narrator=TemplateNarrator())
        await first.play_out()
        await second.play_out()

        assert first.game_state.elimination_order == second.game_state.elimination_order
        assert first.game_state.survivor_ids == second.game_state.survivor_ids

    async def test_reset_replays_same_seed(self, session):
        await session.play_out()
        order = list(session.game_state.elimination_order)

        session.reset()
        await session.play_out()

        assert session.game_state.elimination_order == order


class TestSettlement:
    """Tests for game completion and bet settlement."""

    async def test_single_winner_pays_in_full(self):
        session = GameSession(
            seed=1,
            rounds=[get_round_by_type(GameRoundType.FINAL_SQUID_GAME)],
            roster_factory=_hana_final_roster
        )
        session.start_game()
        session.place_bet("hana", 100)
        assert session.betting.balance == 900

        await session.play_out()

        assert session.phase == GamePhase.RESULTS
        assert session.game_state.winner_id == "hana"
        assert session.game_state.survivor_ids == ["hana"]
        assert session.game_state.winner.status == ContestantStatus.WINNER
        assert session.betting.balance == 1150
        bet = session.betting.history[0]
        assert bet.status == BetStatus.WON
        assert bet.split_reason is None

    async def test_exhausted_catalog_splits_payout(self):
        """When rounds run out, every remaining contestant shares the pot."""
        spare_round = get_round_by_type(GameRoundType.RED_LIGHT_GREEN_LIGHT).model_copy(
            update={"elimination_count": 0}
        )
        session = GameSession(
            seed=3,
            rounds=[spare_round],
            roster_factory=lambda: [make_contestant("a", number=1), make_contestant("b", number=2),
                                    make_contestant("c", number=3)]
        )
        session.start_game()
        session.place_bet("b", 100)

        await session.play_out()

        assert session.game_state.winner_id is None
        assert session.game_state.survivor_ids == ["a", "b", "c"]
        assert all(c.status == ContestantStatus.WINNER for c in session.game_state.contestants)
        bet = session.betting.history[0]
        assert bet.actual_payout == pytest.approx(500 / 3)
        assert bet.split_reason == "Split among 3 survivors"

    async def test_losing_bet(self):
        session = GameSession(
            seed=1,
            rounds=[get_round_by_type(GameRoundType.FINAL_SQUID_GAME)],
            roster_factory=_hana_final_roster
        )
        session.start_game()
        session.place_bet("weakling", 200)

        await session.play_out()

        assert session.betting.balance == 800
        assert session.betting.total_losses == 200
        assert session.betting.history[0].status == BetStatus.LOST

    async def test_end_stats(self):
        session = GameSession(
            seed=1,
            rounds=[get_round_by_type(GameRoundType.FINAL_SQUID_GAME)],
            roster_factory=_hana_final_roster
        )
        session.start_game()
        session.place_bet("hana", 100)
        await session.play_out()

        stats = session.end_stats()
        assert stats.total_bets == 1
        assert stats.winning_bets == 1
        assert stats.total_payout == 250
        assert stats.survivor_ids == ["hana"]


class TestLedgerMirror:
    """Tests for mirror notifications from the session."""

    async def test_notifications_sent(self, recording_mirror):
        session = GameSession(
            seed=1,
            mirror=recording_mirror,
            rounds=[get_round_by_type(GameRoundType.FINAL_SQUID_GAME)],
            roster_factory=_hana_final_roster
        )
        session.start_game()
        session.place_bet("hana", 100)
        await session.play_out()
        await session.flush_mirror()

        assert recording_mirror.bets == [("hana", 100, 2.5)]
        assert [round_number for round_number, _ in recording_mirror.narratives] == [1, COMPLETION_ROUND]
        completion = recording_mirror.narratives[-1][1]
        assert completion[0] == "GAME COMPLETED"
        assert completion[1] == "Winner: Hana (#4)"
        winner_id, stats = recording_mirror.game_ends[0]
        assert winner_id == "hana"
        assert stats.total_payout == 250

    async def test_failing_mirror_does_not_break_game(self):
        session = GameSession(seed=5, narrator=TemplateNarrator(), mirror=SafeLedgerMirror(FailingMirror()))
        session.start_game()
        assert session.place_bet("hana", 100).success

        await session.play_out()
        await session.flush_mirror()

        assert session.phase == GamePhase.RESULTS

    def test_bet_without_event_loop(self, recording_mirror):
        """Outside an event loop notifications are skipped, bets still succeed."""
        session = GameSession(mirror=recording_mirror)
        session.start_game()

        assert session.place_bet("hana", 100).success
        assert recording_mirror.bets == []


class TestGameManager:
    """Tests for managing several sessions."""

    @pytest.fixture
    def manager(self):
        return GameManager(narrator_factory=TemplateNarrator, mirror_factory=lambda game_id: None)

    def test_create_and_get(self, manager):
        session = manager.create_game(seed=3, starting_balance=500)

        assert manager.get_game(session.id) is session
        assert session.betting.balance == 500
        assert isinstance(session.narrator, TemplateNarrator)
        assert session.mirror is None

    def test_games_are_independent(self, manager):
        first = manager.create_game()
        second = manager.create_game()
        first.start_game()

        assert second.phase == GamePhase.INTRO
        assert {g.id for g in manager.list_games()} == {first.id, second.id}

    def test_remove(self, manager):
        session = manager.create_game()
        assert manager.remove_game(session.id)
        assert not manager.remove_game(session.id)
        assert manager.get_game(session.id) is None

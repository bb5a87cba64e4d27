"""Stub narrators, stub mirrors and roster builders shared by the tests."""

import asyncio

from squidbet.schemas.contestant_schemas import (
    Contestant, ContestantStats, ContestantStatus, PersonalityType, TraitType
)
from squidbet.schemas.narrative_schemas import GeneratedNarrative
from squidbet.services.ledger_mirror_service import LedgerMirror
from squidbet.services.narrator_service import Narrator, TemplateNarrator


class FailingNarrator(Narrator):
    """Narrator that always raises."""

    name = "failing"

    async def generate(self, context):
        raise RuntimeError("narrator offline")


class SlowNarrator(Narrator):
    """Narrator that never answers in time."""

    name = "slow"

    async def generate(self, context):
        await asyncio.sleep(5)
        return GeneratedNarrative(setup_narrative=["too late"])


class EmptyNarrator(Narrator):
    """Narrator that returns nothing usable."""

    name = "empty"

    async def generate(self, context):
        return GeneratedNarrative(setup_narrative=["", "   "])


class GatedNarrator(Narrator):
    """Template narrator that holds every request until the gate opens."""

    name = "gated"

    def __init__(self):
        self.gate = asyncio.Event()
        self.calls = 0

    async def generate(self, context):
        self.calls += 1
        await self.gate.wait()
        return await TemplateNarrator().generate(context)


class RecordingMirror(LedgerMirror):
    """Mirror that remembers every notification."""

    name = "recording"

    def __init__(self):
        self.narratives = []
        self.bets = []
        self.game_ends = []

    async def notify_narrative(self, round_number, lines):
        self.narratives.append((round_number, list(lines)))
        return f"narrative-{len(self.narratives)}"

    async def notify_bet_placed(self, contestant_id, amount, odds):
        self.bets.append((contestant_id, amount, odds))
        return f"bet-{len(self.bets)}"

    async def notify_game_end(self, winner_id, stats):
        self.game_ends.append((winner_id, stats))


class FailingMirror(LedgerMirror):
    """Mirror whose backend is down."""

    name = "failing"

    async def notify_narrative(self, round_number, lines):
        raise ConnectionError("ledger unavailable")

    async def notify_bet_placed(self, contestant_id, amount, odds):
        raise ConnectionError("ledger unavailable")

    async def notify_game_end(self, winner_id, stats):
        raise ConnectionError("ledger unavailable")


def make_contestant(contestant_id="tester", stat=5, personality=PersonalityType.LOYAL,
                    trait=TraitType.PROTECTOR, number=99):
    """Build a contestant with every stat set to the same value."""
    return Contestant(
        id=contestant_id,
        name=contestant_id.capitalize(),
        number=number,
        personality=personality,
        trait=trait,
        stats=ContestantStats(
            strength=stat, intelligence=stat, luck=stat,
            charisma=stat, agility=stat, deception=stat
        ),
        current_odds=5.0
    )


def eliminate_all_but(contestants, keep_ids):
    """Return copies where everyone outside keep_ids is already eliminated."""
    result = []
    for contestant in contestants:
        if contestant.id in keep_ids:
            result.append(contestant)
        else:
            result.append(contestant.model_copy(update={
                "status": ContestantStatus.ELIMINATED,
                "elimination_round": "Red Light Green Light",
                "current_odds": 0.0,
            }))
    return result

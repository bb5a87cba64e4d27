"""Tests for contestant decisions."""

import pytest

from squidbet.data.game_rounds import get_round_by_type
from squidbet.schemas.contestant_schemas import PersonalityType
from squidbet.schemas.round_schemas import DecisionContext, GameRoundType, RiskLevel
from squidbet.services.decision_service import calculate_risk_level, make_ai_decision


def _decide(contestants, contestant_id, round_type):
    contestant = next(c for c in contestants if c.id == contestant_id)
    return make_ai_decision(DecisionContext(
        contestant=contestant,
        current_round=get_round_by_type(round_type),
        remaining_contestants=contestants,
        round_number=1,
    ))


class TestMakeDecision:
    """Tests for personality driven decisions."""

    @pytest.mark.parametrize("contestant_id,round_type,confidence,risk", [
        ("hana", GameRoundType.RED_LIGHT_GREEN_LIGHT, 1.0, RiskLevel.LOW),
        ("sunwoo", GameRoundType.GLASS_BRIDGE, 0.3, RiskLevel.HIGH),
        ("sora", GameRoundType.MARBLES, 0.2, RiskLevel.HIGH),
        ("jihoon", GameRoundType.RED_LIGHT_GREEN_LIGHT, 0.9, RiskLevel.LOW),
        ("kyung", GameRoundType.RED_LIGHT_GREEN_LIGHT, 0.8, RiskLevel.HIGH),
    ])
    def test_confidence_and_risk(self, contestants, contestant_id, round_type, confidence, risk):
        """Trait bonus adjusts confidence and personality shifts risk."""
        decision = _decide(contestants, contestant_id, round_type)

        assert decision.confidence == confidence
        assert decision.risk_level == risk

    def test_reasoning_names_contestant(self, contestants):
        decision = _decide(contestants, "jihoon", GameRoundType.GLASS_BRIDGE)

        assert decision.action == "Go later in the order, learn from others' mistakes"
        assert decision.reasoning == (
            "Jihoon wants to gather as much information as possible. "
            "Their survival instincts are finely tuned."
        )

    @pytest.mark.parametrize("round_type", list(GameRoundType))
    def test_every_contestant_gets_a_decision(self, contestants, round_type):
        for contestant in contestants:
            decision = _decide(contestants, contestant.id, round_type)
            assert 0.0 <= decision.confidence <= 1.0
            assert decision.action


class TestRiskLevel:
    """Tests for risk level shifting."""

    def test_shift_is_clamped(self):
        assert calculate_risk_level(PersonalityType.CAUTIOUS, RiskLevel.LOW) == RiskLevel.LOW
        assert calculate_risk_level(PersonalityType.RECKLESS, RiskLevel.HIGH) == RiskLevel.HIGH

    def test_shift_one_step(self):
        assert calculate_risk_level(PersonalityType.CALCULATING, RiskLevel.MEDIUM) == RiskLevel.LOW
        assert calculate_risk_level(PersonalityType.AGGRESSIVE, RiskLevel.LOW) == RiskLevel.MEDIUM
        assert calculate_risk_level(PersonalityType.LOYAL, RiskLevel.MEDIUM) == RiskLevel.MEDIUM

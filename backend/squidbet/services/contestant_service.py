"""
参赛者评分服务
"""

from typing import Dict, List, Tuple
from squidbet.schemas.contestant_schemas import (
    Contestant, ContestantStatus, PersonalityType, TraitType, CORE_STATS
)
from squidbet.schemas.round_schemas import GameRound, GameRoundType
from squidbet.core.utils import round_half_up

RLGL = GameRoundType.RED_LIGHT_GREEN_LIGHT
TUG = GameRoundType.TUG_OF_WAR
MARBLES = GameRoundType.MARBLES
GLASS = GameRoundType.GLASS_BRIDGE
FINAL = GameRoundType.FINAL_SQUID_GAME

# 性格修正表：性格 × 轮次类型
PERSONALITY_MODIFIERS: Dict[PersonalityType, Dict[GameRoundType, int]] = {
    PersonalityType.CAUTIOUS:    {RLGL: 3,  TUG: 1, MARBLES: 2,  GLASS: 2,  FINAL: 1},
    PersonalityType.AMBITIOUS:   {RLGL: 1,  TUG: 2, MARBLES: 3,  GLASS: 1,  FINAL: 3},
    PersonalityType.LOYAL:       {RLGL: 1,  TUG: 4, MARBLES: -1, GLASS: 1,  FINAL: 2},
    PersonalityType.CALCULATING: {RLGL: 2,  TUG: 3, MARBLES: 4,  GLASS: 3,  FINAL: 3},
    PersonalityType.RECKLESS:    {RLGL: -2, TUG: 2, MARBLES: 1,  GLASS: -3, FINAL: 2},
    PersonalityType.EMPATHETIC:  {RLGL: 1,  TUG: 2, MARBLES: -2, GLASS: 1,  FINAL: -2},
    PersonalityType.AGGRESSIVE:  {RLGL: 0,  TUG: 3, MARBLES: 1,  GLASS: 1,  FINAL: 4},
    PersonalityType.LUCKY:       {RLGL: 2,  TUG: 1, MARBLES: 3,  GLASS: 4,  FINAL: 2},
    PersonalityType.DECEPTIVE:   {RLGL: 1,  TUG: 1, MARBLES: 4,  GLASS: 2,  FINAL: 3},
    PersonalityType.RESOURCEFUL: {RLGL: 2,  TUG: 2, MARBLES: 2,  GLASS: 3,  FINAL: 2},
}

# 特质修正表：特质 × 轮次类型
TRAIT_MODIFIERS: Dict[TraitType, Dict[GameRoundType, int]] = {
    TraitType.SURVIVOR:    {RLGL: 3,  TUG: 1, MARBLES: 2,  GLASS: 2,  FINAL: 1},
    TraitType.OPPORTUNIST: {RLGL: 1,  TUG: 2, MARBLES: 3,  GLASS: 2,  FINAL: 3},
    TraitType.PROTECTOR:   {RLGL: 0,  TUG: 4, MARBLES: -1, GLASS: 1,  FINAL: 2},
    TraitType.STRATEGIST:  {RLGL: 2,  TUG: 3, MARBLES: 4,  GLASS: 3,  FINAL: 3},
    TraitType.DAREDEVIL:   {RLGL: -1, TUG: 2, MARBLES: 1,  GLASS: -2, FINAL: 2},
    TraitType.PEACEMAKER:  {RLGL: 1,  TUG: 1, MARBLES: -2, GLASS: 1,  FINAL: -2},
    TraitType.CHALLENGER:  {RLGL: 0,  TUG: 3, MARBLES: 1,  GLASS: 1,  FINAL: 4},
    TraitType.FORTUNATE:   {RLGL: 2,  TUG: 1, MARBLES: 3,  GLASS: 4,  FINAL: 2},
    TraitType.LIAR:        {RLGL: 1,  TUG: 1, MARBLES: 4,  GLASS: 2,  FINAL: 3},
    TraitType.IMPROVISER:  {RLGL: 2,  TUG: 2, MARBLES: 2,  GLASS: 3,  FINAL: 2},
}

# 初始赔率的性格系数
INITIAL_ODDS_FACTORS: Dict[PersonalityType, float] = {
    PersonalityType.LUCKY: 0.8,
    PersonalityType.RECKLESS: 1.3,
    PersonalityType.CALCULATING: 0.9,
    PersonalityType.EMPATHETIC: 1.2,
}

def get_personality_modifier(personality: PersonalityType, round_type: GameRoundType) -> int:
    return PERSONALITY_MODIFIERS.get(personality, {}).get(round_type, 0)

def get_trait_modifier(trait: TraitType, round_type: GameRoundType) -> int:
    return TRAIT_MODIFIERS.get(trait, {}).get(round_type, 0)

def calculate_round_effectiveness(contestant: Contestant, game_round: GameRound) -> float:
    """计算参赛者在某一轮中的效能：主属性×2 + 副属性×1 + 性格修正 + 特质修正，下限为0"""
    effectiveness = 0

    for stat in game_round.primary_stats:
        effectiveness += contestant.stats.get(stat) * 2

    for stat in game_round.secondary_stats:
        effectiveness += contestant.stats.get(stat)

    effectiveness += get_personality_modifier(contestant.personality, game_round.type)
    effectiveness += get_trait_modifier(contestant.trait, game_round.type)

    return max(0, effectiveness)

def calculate_initial_odds(contestant: Contestant) -> float:
    """根据属性计算初始赔率（综合实力越低赔率越高）"""
    stats = contestant.stats
    power_score = (
        stats.strength * 1.2 +
        stats.intelligence * 1.3 +
        stats.luck * 1.1 +
        stats.charisma * 1.0 +
        stats.agility * 1.2 +
        stats.deception * 0.8
    ) / 6

    base_odds = 17 - power_score
    modifier = INITIAL_ODDS_FACTORS.get(contestant.personality, 1.0)
    return round_half_up(base_odds * modifier, 1)

def get_average_stat(contestant: Contestant) -> float:
    return get_total_stat_power(contestant) / len(CORE_STATS)

def get_total_stat_power(contestant: Contestant) -> int:
    return sum(contestant.stats.values())

def get_strongest_stats(contestant: Contestant, count: int = 3) -> List[Tuple[str, int]]:
    """最强的几项属性，按数值降序"""
    ranked = sorted(
        ((name, contestant.stats.get(name)) for name in CORE_STATS),
        key=lambda item: item[1],
        reverse=True
    )
    return ranked[:count]

def get_weakest_stats(contestant: Contestant, count: int = 2) -> List[Tuple[str, int]]:
    """最弱的几项属性，按数值升序"""
    ranked = sorted(
        ((name, contestant.stats.get(name)) for name in CORE_STATS),
        key=lambda item: item[1]
    )
    return ranked[:count]

def get_contestants_by_probability(contestants: List[Contestant]) -> List[Contestant]:
    """存活参赛者按赔率升序（赔率越低胜率越高）"""
    alive = [c for c in contestants if c.status == ContestantStatus.ALIVE]
    return sorted(alive, key=lambda c: c.current_odds)

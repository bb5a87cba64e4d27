"""
轮次目录（按顺序执行）
"""

from typing import List, Optional
from squidbet.schemas.contestant_schemas import StatKey
from squidbet.schemas.round_schemas import GameRound, GameRoundType

GAME_ROUNDS: List[GameRound] = [
    GameRound(
        type=GameRoundType.RED_LIGHT_GREEN_LIGHT,
        name="Red Light, Green Light",
        description="Players must reach the finish line while a giant doll is facing away. When it turns around, anyone still moving is eliminated.",
        elimination_count=2,
        primary_stats=[StatKey.AGILITY, StatKey.INTELLIGENCE],
        secondary_stats=[StatKey.LUCK],
        allows_alliances=False,
        requires_teamwork=False,
        has_random_element=True,
    ),
    GameRound(
        type=GameRoundType.TUG_OF_WAR,
        name="Tug of War",
        description="Teams of contestants compete in tug of war. The losing team falls to their death.",
        elimination_count=3,
        primary_stats=[StatKey.STRENGTH, StatKey.CHARISMA],
        secondary_stats=[StatKey.INTELLIGENCE],
        allows_alliances=True,
        requires_teamwork=True,
        has_random_element=False,
    ),
    GameRound(
        type=GameRoundType.MARBLES,
        name="Marbles",
        description="Contestants pair up and play marble games. The loser of each pair is eliminated.",
        elimination_count=2,
        primary_stats=[StatKey.INTELLIGENCE, StatKey.DECEPTION],
        secondary_stats=[StatKey.LUCK, StatKey.CHARISMA],
        allows_alliances=True,
        requires_teamwork=False,
        has_random_element=True,
    ),
    GameRound(
        type=GameRoundType.GLASS_BRIDGE,
        name="Glass Bridge",
        description="Players must cross a bridge made of glass panels. Some panels are tempered glass, others will shatter.",
        elimination_count=1,
        primary_stats=[StatKey.LUCK, StatKey.INTELLIGENCE],
        secondary_stats=[StatKey.AGILITY],
        allows_alliances=False,
        requires_teamwork=False,
        has_random_element=True,
    ),
    GameRound(
        type=GameRoundType.FINAL_SQUID_GAME,
        name="Squid Game",
        description="The final two contestants face off in the traditional Korean game of Squid Game.",
        elimination_count=1,
        primary_stats=[StatKey.STRENGTH, StatKey.AGILITY, StatKey.INTELLIGENCE],
        secondary_stats=[StatKey.DECEPTION, StatKey.LUCK],
        allows_alliances=False,
        requires_teamwork=False,
        has_random_element=False,
    ),
]

def get_round_by_type(round_type: GameRoundType, rounds: Optional[List[GameRound]] = None) -> Optional[GameRound]:
    """按类型查找轮次"""
    for game_round in rounds if rounds is not None else GAME_ROUNDS:
        if game_round.type == round_type:
            return game_round
    return None

def get_elimination_count(game_round: GameRound, remaining_contestants: int) -> int:
    """根据剩余人数截断淘汰人数，保证每轮至少一人幸存"""
    return max(0, min(game_round.elimination_count, remaining_contestants - 1))

def get_next_round(current_round_index: int, rounds: Optional[List[GameRound]] = None) -> Optional[GameRound]:
    """获取下一轮，目录用完时返回None"""
    catalog = rounds if rounds is not None else GAME_ROUNDS
    if current_round_index >= len(catalog):
        return None
    return catalog[current_round_index]

def is_game_complete(current_round_index: int, rounds: Optional[List[GameRound]] = None) -> bool:
    catalog = rounds if rounds is not None else GAME_ROUNDS
    return current_round_index >= len(catalog)

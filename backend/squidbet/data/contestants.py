"""
初始参赛者名单
"""

from typing import List
from squidbet.schemas.contestant_schemas import (
    Contestant, ContestantStats, ContestantStatus, PersonalityType, Relationships, TraitType
)
from squidbet.services.contestant_service import calculate_initial_odds

INITIAL_CONTESTANTS = [
    {
        "id": "jihoon",
        "name": "Jihoon",
        "personality": PersonalityType.CAUTIOUS,
        "trait": TraitType.SURVIVOR,
        "description": "Avoids risks, prefers alliances. A former office worker who thinks three steps ahead.",
        "stats": {"strength": 5, "intelligence": 8, "luck": 6, "charisma": 7, "agility": 4, "deception": 3},
    },
    {
        "id": "minseo",
        "name": "Minseo",
        "personality": PersonalityType.AMBITIOUS,
        "trait": TraitType.OPPORTUNIST,
        "description": "Seizes chances, may betray others. A business executive who sees every situation as a deal.",
        "stats": {"strength": 6, "intelligence": 9, "luck": 5, "charisma": 8, "agility": 6, "deception": 8},
    },
    {
        "id": "daejung",
        "name": "Daejung",
        "personality": PersonalityType.LOYAL,
        "trait": TraitType.PROTECTOR,
        "description": "Shields allies, risks self for others. A former soldier with an unbreakable moral code.",
        "stats": {"strength": 9, "intelligence": 6, "luck": 4, "charisma": 7, "agility": 7, "deception": 2},
    },
    {
        "id": "hana",
        "name": "Hana",
        "personality": PersonalityType.CALCULATING,
        "trait": TraitType.STRATEGIST,
        "description": "Plans ahead, manipulates situations. A chess master who treats life like a game.",
        "stats": {"strength": 4, "intelligence": 10, "luck": 6, "charisma": 6, "agility": 5, "deception": 7},
    },
    {
        "id": "sunwoo",
        "name": "Sunwoo",
        "personality": PersonalityType.RECKLESS,
        "trait": TraitType.DAREDEVIL,
        "description": "Takes big risks, high reward or failure. A former stunt performer who lives for adrenaline.",
        "stats": {"strength": 7, "intelligence": 4, "luck": 8, "charisma": 6, "agility": 9, "deception": 5},
    },
    {
        "id": "sora",
        "name": "Sora",
        "personality": PersonalityType.EMPATHETIC,
        "trait": TraitType.PEACEMAKER,
        "description": "Tries to resolve conflicts, avoids violence. A social worker who believes in human goodness.",
        "stats": {"strength": 3, "intelligence": 7, "luck": 7, "charisma": 9, "agility": 5, "deception": 2},
    },
    {
        "id": "kyung",
        "name": "Kyung",
        "personality": PersonalityType.AGGRESSIVE,
        "trait": TraitType.CHALLENGER,
        "description": "Instigates duels, confronts threats. A former gang member who solves problems with force.",
        "stats": {"strength": 10, "intelligence": 5, "luck": 5, "charisma": 4, "agility": 8, "deception": 6},
    },
    {
        "id": "yuna",
        "name": "Yuna",
        "personality": PersonalityType.LUCKY,
        "trait": TraitType.FORTUNATE,
        "description": "Random events often favor her. A lottery winner who seems to have fate on her side.",
        "stats": {"strength": 5, "intelligence": 6, "luck": 10, "charisma": 7, "agility": 6, "deception": 4},
    },
    {
        "id": "taemin",
        "name": "Taemin",
        "personality": PersonalityType.DECEPTIVE,
        "trait": TraitType.LIAR,
        "description": "Bluffs, deceives, and manipulates others. A con artist who can make anyone believe anything.",
        "stats": {"strength": 4, "intelligence": 8, "luck": 6, "charisma": 8, "agility": 6, "deception": 10},
    },
    {
        "id": "mira",
        "name": "Mira",
        "personality": PersonalityType.RESOURCEFUL,
        "trait": TraitType.IMPROVISER,
        "description": "Adapts quickly, uses environment well. A street-smart survivor who makes the most of any situation.",
        "stats": {"strength": 6, "intelligence": 7, "luck": 7, "charisma": 6, "agility": 8, "deception": 6},
    },
]

def initialize_contestants() -> List[Contestant]:
    """用默认值初始化参赛者（编号从1开始，初始赔率按属性计算）"""
    all_ids = [entry["id"] for entry in INITIAL_CONTESTANTS]
    contestants = []
    for number, entry in enumerate(INITIAL_CONTESTANTS, start=1):
        contestant = Contestant(
            id=entry["id"],
            name=entry["name"],
            number=number,
            personality=entry["personality"],
            trait=entry["trait"],
            description=entry["description"],
            status=ContestantStatus.ALIVE,
            stats=ContestantStats(**entry["stats"]),
            relationships=Relationships(neutral=[cid for cid in all_ids if cid != entry["id"]]),
        )
        contestant.current_odds = calculate_initial_odds(contestant)
        contestants.append(contestant)
    return contestants

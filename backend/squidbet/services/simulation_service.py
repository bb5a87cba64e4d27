"""
轮次模拟服务
淘汰计算是纯同步、可复现的；只有旁白生成是异步的
"""

import asyncio
import random
from typing import Callable, Dict, List, Optional, Tuple

from squidbet.core.config import settings
from squidbet.core.utils import utc_now
from squidbet.data.game_rounds import get_elimination_count
from squidbet.schemas.contestant_schemas import Contestant, ContestantStatus
from squidbet.schemas.narrative_schemas import GeneratedNarrative, NarrativeContext
from squidbet.schemas.round_schemas import (
    ContestantPerformance, DecisionContext, GameEvent, GameEventType,
    GameRound, GameRoundType, RoundOutcome, RoundResult
)
from squidbet.services.contestant_service import calculate_round_effectiveness
from squidbet.services.decision_service import make_ai_decision
from squidbet.services.narrator_service import Narrator

# 规则返回：(幸存者, 淘汰者, 事件, 幸存者是否直接成为冠军)
RuleResult = Tuple[List[ContestantPerformance], List[ContestantPerformance], List[GameEvent], bool]
RoundRule = Callable[[List[ContestantPerformance], GameRound, int, random.Random], RuleResult]

# 带有这些词的句子视为透露了淘汰结果，揭晓前不展示
ELIMINATION_KEYWORDS = ("eliminated", "falls", "dies")

# 各轮次兜底旁白的第二行
FALLBACK_FLAVOR = {
    GameRoundType.RED_LIGHT_GREEN_LIGHT: "The giant doll begins to turn around. Players must freeze completely when it looks...",
    GameRoundType.TUG_OF_WAR: "Contestants must form teams for the ultimate test of strength and strategy...",
    GameRoundType.MARBLES: "Contestants pair up for a deadly game of marbles. Only one from each pair survives...",
    GameRoundType.GLASS_BRIDGE: "Contestants must cross a bridge of glass panels. Some are tempered, others will shatter...",
    GameRoundType.FINAL_SQUID_GAME: "The final two contestants face off in the traditional Korean game of Squid Game...",
}

def _elimination_event(contestant: Contestant, round_number: int, description: str,
                       involved: Optional[List[str]] = None) -> GameEvent:
    return GameEvent(
        id=f"elimination-{contestant.id}-{round_number}",
        round=round_number,
        type=GameEventType.ELIMINATION,
        description=description,
        involved_contestants=involved or [contestant.id],
        timestamp=utc_now()
    )

def score_contestants(contestants: List[Contestant], game_round: GameRound,
                      rng: random.Random) -> List[ContestantPerformance]:
    """计算每名存活参赛者的效能，带随机元素的轮次附加 [0, 10) 的随机因子"""
    performances = []
    for contestant in contestants:
        if contestant.status != ContestantStatus.ALIVE:
            continue
        performances.append(ContestantPerformance(
            contestant=contestant,
            effectiveness=calculate_round_effectiveness(contestant, game_round),
            random_factor=rng.random() * 10 if game_round.has_random_element else 0.0
        ))
    return performances

def eliminate_by_ranking(performances: List[ContestantPerformance], game_round: GameRound,
                         round_number: int, rng: random.Random) -> RuleResult:
    """按得分排名淘汰末尾N人"""
    ranked = sorted(performances, key=lambda p: p.score, reverse=True)
    elimination_count = get_elimination_count(game_round, len(ranked))
    cut = len(ranked) - elimination_count

    survivors = ranked[:cut]
    eliminated = ranked[cut:]
    events = [
        _elimination_event(p.contestant, round_number, f"{p.contestant.name} was eliminated in {game_round.name}")
        for p in eliminated
    ]
    return survivors, eliminated, events, False

def eliminate_by_teams(performances: List[ContestantPerformance], game_round: GameRound,
                       round_number: int, rng: random.Random) -> RuleResult:
    """按入场顺序每3人一队，从最弱的队伍开始淘汰"""
    teams = [performances[i:i + 3] for i in range(0, len(performances), 3)]
    teams.sort(key=lambda team: sum(p.effectiveness for p in team), reverse=True)

    elimination_count = get_elimination_count(game_round, len(performances))
    eliminated: List[ContestantPerformance] = []

    for team in reversed(teams):
        needed = elimination_count - len(eliminated)
        if needed <= 0:
            break
        if needed >= len(team):
            eliminated.extend(team)
        else:
            weakest_first = sorted(team, key=lambda p: p.effectiveness)
            eliminated.extend(weakest_first[:needed])

    eliminated_ids = {p.contestant.id for p in eliminated}
    survivors = [p for p in performances if p.contestant.id not in eliminated_ids]
    events = [
        _elimination_event(p.contestant, round_number, f"{p.contestant.name} was eliminated in {game_round.name}")
        for p in eliminated
    ]
    return survivors, eliminated, events, False

def eliminate_by_duels(performances: List[ContestantPerformance], game_round: GameRound,
                       round_number: int, rng: random.Random) -> RuleResult:
    """随机两两配对，每对得分低者淘汰；落单者直接晋级"""
    shuffled = list(performances)
    rng.shuffle(shuffled)

    survivors: List[ContestantPerformance] = []
    eliminated: List[ContestantPerformance] = []
    events: List[GameEvent] = []

    if len(shuffled) % 2 == 1:
        survivors.append(shuffled[-1])

    for first, second in zip(shuffled[0::2], shuffled[1::2]):
        # 平局时后者获胜
        winner, loser = (first, second) if first.score > second.score else (second, first)
        survivors.append(winner)
        eliminated.append(loser)
        events.append(_elimination_event(
            loser.contestant,
            round_number,
            f"{loser.contestant.name} lost at marbles to {winner.contestant.name}",
            [winner.contestant.id, loser.contestant.id]
        ))

    return survivors, eliminated, events, False

def eliminate_by_sequential_risk(performances: List[ContestantPerformance], game_round: GameRound,
                                 round_number: int, rng: random.Random) -> RuleResult:
    """按效能从低到高依次过桥，越靠后生还率越高，淘汰名额用完后其余人直接通过"""
    ordered = sorted(performances, key=lambda p: p.effectiveness)
    elimination_count = get_elimination_count(game_round, len(ordered))

    survivors: List[ContestantPerformance] = []
    eliminated: List[ContestantPerformance] = []
    events: List[GameEvent] = []

    for turn, performance in enumerate(ordered):
        if len(eliminated) >= elimination_count:
            survivors.extend(ordered[turn:])
            break

        survival_chance = 0.3 + performance.effectiveness / 100 + turn * 0.1
        if rng.random() < survival_chance:
            survivors.append(performance)
        else:
            eliminated.append(performance)
            events.append(_elimination_event(
                performance.contestant,
                round_number,
                f"{performance.contestant.name} fell through the glass bridge"
            ))

    return survivors, eliminated, events, False

def final_score(performance: ContestantPerformance) -> float:
    stats = performance.contestant.stats
    return (
        stats.strength * 0.3 +
        stats.agility * 0.3 +
        stats.intelligence * 0.2 +
        stats.deception * 0.1 +
        stats.luck * 0.1
    ) + performance.random_factor

def eliminate_by_final_duel(performances: List[ContestantPerformance], game_round: GameRound,
                            round_number: int, rng: random.Random) -> RuleResult:
    """最终对决：恰好两人时按加权总分决出冠军，否则按排名淘汰"""
    if len(performances) != 2:
        return eliminate_by_ranking(performances, game_round, round_number, rng)

    first, second = performances
    winner, loser = (first, second) if final_score(first) > final_score(second) else (second, first)

    events = [_elimination_event(
        loser.contestant,
        round_number,
        f"{loser.contestant.name} was defeated in the final Squid Game",
        [winner.contestant.id, loser.contestant.id]
    )]
    return [winner], [loser], events, True

# 轮次类型 -> 淘汰规则
ROUND_RULES: Dict[GameRoundType, RoundRule] = {
    GameRoundType.RED_LIGHT_GREEN_LIGHT: eliminate_by_ranking,
    GameRoundType.TUG_OF_WAR: eliminate_by_teams,
    GameRoundType.MARBLES: eliminate_by_duels,
    GameRoundType.GLASS_BRIDGE: eliminate_by_sequential_risk,
    GameRoundType.FINAL_SQUID_GAME: eliminate_by_final_duel,
}

def simulate_round_sync(contestants: List[Contestant], game_round: GameRound, round_number: int,
                        rng: Optional[random.Random] = None) -> RoundOutcome:
    """执行一轮淘汰（不修改传入的参赛者，返回副本）"""
    rng = rng or random.Random()
    performances = score_contestants(contestants, game_round, rng)
    if not performances:
        return RoundOutcome(survivors=[], eliminated=[], events=[])

    rule = ROUND_RULES.get(game_round.type, eliminate_by_ranking)
    survivor_perfs, eliminated_perfs, events, crowned = rule(performances, game_round, round_number, rng)

    assert len(survivor_perfs) + len(eliminated_perfs) == len(performances)
    assert len(survivor_perfs) >= 1

    survivors = []
    for performance in survivor_perfs:
        contestant = performance.contestant.model_copy(deep=True)
        contestant.rounds_participated.append(game_round.type.value)
        if crowned:
            contestant.status = ContestantStatus.WINNER
        survivors.append(contestant)

    eliminated = []
    for performance in eliminated_perfs:
        assert performance.contestant.elimination_round is None
        contestant = performance.contestant.model_copy(deep=True)
        contestant.rounds_participated.append(game_round.type.value)
        contestant.status = ContestantStatus.ELIMINATED
        contestant.elimination_round = game_round.type.value
        eliminated.append(contestant)

    print(f"🎲 第{round_number}轮 ({game_round.name}): {len(performances)} 人参赛, 淘汰 {len(eliminated)} 人")
    return RoundOutcome(survivors=survivors, eliminated=eliminated, events=events)

def fallback_narrative(game_round: GameRound, round_number: int,
                       survivors: List[Contestant], eliminated: List[Contestant]) -> GeneratedNarrative:
    """旁白服务不可用时的固定旁白，结果相关的句子都放在淘汰部分"""
    header = f"Round {round_number}: {game_round.name}"
    flavor = FALLBACK_FLAVOR.get(game_round.type, f"The contestants face the challenge of {game_round.name}.")

    if game_round.type == GameRoundType.FINAL_SQUID_GAME and len(survivors) == 1 and len(eliminated) == 1:
        winner, loser = survivors[0], eliminated[0]
        return GeneratedNarrative(
            setup_narrative=[header, flavor],
            action_narrative=[f"{winner.name} and {loser.name} engage in fierce combat."],
            elimination_narrative=[
                f"After an intense battle, {winner.name} emerges victorious!",
                f"{loser.name} falls, leaving {winner.name} as the sole survivor.",
            ]
        )

    return GeneratedNarrative(
        setup_narrative=[header, flavor],
        elimination_narrative=[
            *[f"{contestant.name} was eliminated." for contestant in eliminated],
            f"{len(survivors)} contestants survive to the next round.",
        ]
    )

def _drop_blank(narrative: GeneratedNarrative) -> GeneratedNarrative:
    return GeneratedNarrative(
        setup_narrative=[line for line in narrative.setup_narrative if line and line.strip()],
        action_narrative=[line for line in narrative.action_narrative if line and line.strip()],
        elimination_narrative=[line for line in narrative.elimination_narrative if line and line.strip()],
        dramatic_moments=[line for line in narrative.dramatic_moments if line and line.strip()],
    )

async def narrate_round(narrator: Optional[Narrator], context: NarrativeContext,
                        timeout: Optional[float] = None) -> Tuple[GeneratedNarrative, bool]:
    """生成本轮旁白，返回 (旁白, 是否使用了兜底旁白)。任何失败都不会向外抛出"""
    fallback = fallback_narrative(context.round, context.round_number, context.survivors, context.eliminated)
    if narrator is None:
        return fallback, True

    timeout = settings.NARRATOR_TIMEOUT if timeout is None else timeout
    try:
        generated = await asyncio.wait_for(narrator.generate(context), timeout=timeout)
    except asyncio.TimeoutError:
        print(f"⚠️ 旁白生成超时（{timeout}秒），使用兜底旁白")
        return fallback, True
    except Exception as e:
        print(f"❌ 旁白生成失败，使用兜底旁白: {e}")
        return fallback, True

    generated = _drop_blank(generated)
    if not generated.lines():
        print("⚠️ 旁白为空，使用兜底旁白")
        return fallback, True
    return generated, False

def make_round_decisions(contestants: List[Contestant], game_round: GameRound,
                         round_number: int, game_events: Optional[List[GameEvent]] = None):
    """为每名存活参赛者生成本轮决策（仅展示用）"""
    alive = [c for c in contestants if c.status == ContestantStatus.ALIVE]
    return {
        contestant.id: make_ai_decision(DecisionContext(
            contestant=contestant,
            current_round=game_round,
            remaining_contestants=alive,
            round_number=round_number,
            game_events=game_events or []
        ))
        for contestant in alive
    }

async def simulate_round(contestants: List[Contestant], game_round: GameRound, round_number: int,
                         rng: Optional[random.Random] = None, narrator: Optional[Narrator] = None,
                         total_rounds: int = 5, timeout: Optional[float] = None,
                         game_events: Optional[List[GameEvent]] = None) -> RoundResult:
    """完整的一轮：决策 + 淘汰 + 旁白"""
    decisions = make_round_decisions(contestants, game_round, round_number, game_events)
    outcome = simulate_round_sync(contestants, game_round, round_number, rng)

    participants = [c for c in contestants if c.status == ContestantStatus.ALIVE]
    context = NarrativeContext(
        round=game_round,
        round_number=round_number,
        contestants=participants,
        survivors=outcome.survivors,
        eliminated=outcome.eliminated,
        total_rounds=total_rounds
    )
    narrative, used_fallback = await narrate_round(narrator, context, timeout)
    public_narrative, _ = split_narrative(narrative, outcome.eliminated)

    return RoundResult(
        round=game_round,
        round_number=round_number,
        survivors=outcome.survivors,
        eliminated=outcome.eliminated,
        events=outcome.events,
        narrative=narrative.lines(),
        public_narrative=public_narrative,
        decisions=decisions,
        narrative_fallback=used_fallback
    )

def split_narrative(narrative: GeneratedNarrative,
                    eliminated: List[Contestant]) -> Tuple[List[str], List[str]]:
    """把旁白拆成 (揭晓前可展示, 揭晓时才展示) 两部分

    淘汰部分整体保留到揭晓；其他部分中点名了被淘汰者或带有淘汰关键词的句子也一并保留
    """
    names = [c.name for c in eliminated]

    def reveals_outcome(line: str) -> bool:
        lowered = line.lower()
        return (
            any(word in lowered for word in ELIMINATION_KEYWORDS)
            or any(name in line for name in names)
        )

    public: List[str] = []
    held: List[str] = []
    for line in narrative.setup_narrative + narrative.action_narrative:
        (held if reveals_outcome(line) else public).append(line)
    held.extend(narrative.elimination_narrative)
    for line in narrative.dramatic_moments:
        (held if reveals_outcome(line) else public).append(line)
    return public, held

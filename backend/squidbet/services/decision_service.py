"""
AI决策服务（仅用于展示，不影响淘汰结果）
"""

from typing import Dict, Tuple
from squidbet.schemas.contestant_schemas import PersonalityType, TraitType
from squidbet.schemas.round_schemas import AIDecision, DecisionContext, GameRoundType, RiskLevel

RLGL = GameRoundType.RED_LIGHT_GREEN_LIGHT
TUG = GameRoundType.TUG_OF_WAR
MARBLES = GameRoundType.MARBLES
GLASS = GameRoundType.GLASS_BRIDGE
FINAL = GameRoundType.FINAL_SQUID_GAME

LOW = RiskLevel.LOW
MEDIUM = RiskLevel.MEDIUM
HIGH = RiskLevel.HIGH

# (行动, 理由模板, 信心, 风险)，理由中的 {name} 替换为参赛者名字
DecisionEntry = Tuple[str, str, float, RiskLevel]

PERSONALITY_DECISIONS: Dict[PersonalityType, Dict[GameRoundType, DecisionEntry]] = {
    PersonalityType.CAUTIOUS: {
        RLGL: ("Move slowly and carefully, waiting for others to test the timing",
               "{name} prefers to observe others and minimize risk.", 0.8, LOW),
        TUG: ("Form alliance with strongest available contestants",
              "{name} seeks safety in numbers and proven strength.", 0.7, LOW),
        MARBLES: ("Choose a partner carefully, avoid deception unless necessary",
                  "{name} values trust but will do what it takes to survive.", 0.6, MEDIUM),
        GLASS: ("Go later in the order, learn from others' mistakes",
                "{name} wants to gather as much information as possible.", 0.9, LOW),
        FINAL: ("Play defensively, wait for opponent to make mistakes",
                "{name} relies on patience and opponent errors.", 0.7, MEDIUM),
    },
    PersonalityType.AMBITIOUS: {
        RLGL: ("Move aggressively when confident, take calculated risks",
               "{name} sees opportunity where others see danger.", 0.7, MEDIUM),
        TUG: ("Try to lead team formation and strategy",
              "{name} wants to control the situation and maximize winning chances.", 0.8, MEDIUM),
        MARBLES: ("Use psychological manipulation to win",
                  "{name} will exploit any advantage to secure victory.", 0.9, HIGH),
        GLASS: ("Volunteer to go early if confident in abilities",
                "{name} believes in their skills and wants to control their fate.", 0.6, HIGH),
        FINAL: ("Play aggressively to dominate the opponent",
                "{name} goes all-out for the ultimate prize.", 0.8, HIGH),
    },
    PersonalityType.LOYAL: {
        RLGL: ("Help others when possible, move as a group",
               "{name} believes in collective survival.", 0.6, MEDIUM),
        TUG: ("Protect allies and work as a cohesive team",
              "{name} prioritizes team success over individual glory.", 0.9, LOW),
        MARBLES: ("Struggle with betraying partner, may sacrifice self",
                  "{name} finds it difficult to betray someone they've bonded with.", 0.4, HIGH),
        GLASS: ("Volunteer to go first to protect others",
                "{name} is willing to sacrifice themselves for others.", 0.7, HIGH),
        FINAL: ("Fight with honor, avoid dirty tactics",
                "{name} maintains their principles even in the final moment.", 0.6, MEDIUM),
    },
    PersonalityType.CALCULATING: {
        RLGL: ("Analyze the doll's timing pattern before moving",
               "{name} studies the system to find the optimal strategy.", 0.9, LOW),
        TUG: ("Calculate team compositions and choose strategically",
              "{name} analyzes everyone's strengths to form the best team.", 0.8, LOW),
        MARBLES: ("Use complex psychological strategies and misdirection",
                  "{name} employs sophisticated mental tactics.", 0.9, MEDIUM),
        GLASS: ("Study the glass patterns and make educated guesses",
                "{name} looks for visual cues and patterns in the glass.", 0.8, MEDIUM),
        FINAL: ("Analyze opponent's weaknesses and exploit them systematically",
                "{name} turns the final game into a chess match.", 0.9, MEDIUM),
    },
    PersonalityType.RECKLESS: {
        RLGL: ("Move fast and early, trust in reflexes",
               "{name} relies on speed and instinct over caution.", 0.6, HIGH),
        TUG: ("Join any team quickly, focus on raw strength",
              "{name} believes brute force will win the day.", 0.7, MEDIUM),
        MARBLES: ("Make bold, risky plays to win quickly",
                  "{name} goes for high-risk, high-reward strategies.", 0.5, HIGH),
        GLASS: ("Volunteer to go first, trust in luck",
                "{name} prefers action over waiting and worrying.", 0.4, HIGH),
        FINAL: ("Attack aggressively from the start",
                "{name} believes the best defense is a strong offense.", 0.7, HIGH),
    },
    PersonalityType.EMPATHETIC: {
        RLGL: ("Help others and move together when possible",
               "{name} can't bear to see others suffer alone.", 0.5, MEDIUM),
        TUG: ("Include weaker contestants in team formation",
              "{name} believes everyone deserves a chance.", 0.6, MEDIUM),
        MARBLES: ("Struggle emotionally, may let partner win",
                  "{name} finds it nearly impossible to eliminate someone face-to-face.", 0.3, HIGH),
        GLASS: ("Encourage others and share observations",
                "{name} wants to help everyone survive if possible.", 0.7, MEDIUM),
        FINAL: ("Hesitate and show mercy when possible",
                "{name} struggles with the violent nature of the final game.", 0.4, HIGH),
    },
    PersonalityType.AGGRESSIVE: {
        RLGL: ("Push through aggressively, intimidate others",
               "{name} uses force and intimidation as primary tools.", 0.7, MEDIUM),
        TUG: ("Dominate team selection and strategy",
              "{name} takes charge through force of personality.", 0.8, MEDIUM),
        MARBLES: ("Intimidate partner and use aggressive tactics",
                  "{name} tries to psychologically dominate their opponent.", 0.8, MEDIUM),
        GLASS: ("Push others ahead or fight for better position",
                "{name} is willing to sacrifice others for their own survival.", 0.6, HIGH),
        FINAL: ("Use maximum force and aggression",
                "{name} is in their element in direct combat.", 0.9, HIGH),
    },
    PersonalityType.LUCKY: {
        RLGL: ("Trust in good fortune and move when it feels right",
               "{name} relies on their supernatural luck.", 0.8, MEDIUM),
        TUG: ("Join whichever team feels right intuitively",
              "{name} trusts their instincts over analysis.", 0.7, MEDIUM),
        MARBLES: ("Make random choices and trust in fortune",
                  "{name} believes luck will guide them to victory.", 0.9, HIGH),
        GLASS: ("Choose panels based on gut feeling",
                "{name} trusts their lucky streak to continue.", 0.8, HIGH),
        FINAL: ("Play instinctively and hope for the best",
                "{name} believes their luck will see them through.", 0.7, MEDIUM),
    },
    PersonalityType.DECEPTIVE: {
        RLGL: ("Mislead others about timing while moving safely",
               "{name} uses misdirection to gain advantages.", 0.8, MEDIUM),
        TUG: ("Manipulate team formation to their advantage",
              "{name} ensures they're on the strongest team through deception.", 0.9, LOW),
        MARBLES: ("Use elaborate lies and psychological manipulation",
                  "{name} is a master of deception and mind games.", 0.9, MEDIUM),
        GLASS: ("Mislead others about glass observations",
                "{name} gives false information to protect themselves.", 0.7, MEDIUM),
        FINAL: ("Use psychological warfare and misdirection",
                "{name} tries to confuse and disorient their opponent.", 0.8, MEDIUM),
    },
    PersonalityType.RESOURCEFUL: {
        RLGL: ("Use environment and other players as shields/guides",
               "{name} adapts to use every available advantage.", 0.8, MEDIUM),
        TUG: ("Suggest creative strategies and positioning",
              "{name} thinks outside the box for team tactics.", 0.8, LOW),
        MARBLES: ("Adapt strategy based on partner's personality",
                  "{name} quickly reads their opponent and adjusts tactics.", 0.8, MEDIUM),
        GLASS: ("Use creative methods to test glass safety",
                "{name} finds innovative ways to identify safe panels.", 0.9, MEDIUM),
        FINAL: ("Adapt tactics based on opponent's style",
                "{name} quickly adjusts to counter their opponent's strategy.", 0.8, MEDIUM),
    },
}

DEFAULT_DECISION: DecisionEntry = (
    "Play cautiously and adapt to the situation",
    "{name} takes a measured approach.",
    0.5,
    MEDIUM,
)

# 特质对信心的加成
TRAIT_MODIFIERS: Dict[TraitType, Tuple[str, float]] = {
    TraitType.SURVIVOR: ("Their survival instincts are finely tuned.", 0.1),
    TraitType.OPPORTUNIST: ("They excel at finding and exploiting opportunities.", 0.1),
    TraitType.PROTECTOR: ("Their protective nature drives their decisions.", 0.0),
    TraitType.STRATEGIST: ("Their strategic mind gives them an edge.", 0.2),
    TraitType.DAREDEVIL: ("Their love of risk makes them unpredictable.", -0.1),
    TraitType.PEACEMAKER: ("Their desire for harmony may be a weakness here.", -0.1),
    TraitType.CHALLENGER: ("They thrive in confrontational situations.", 0.1),
    TraitType.FORTUNATE: ("Lady luck seems to smile upon them.", 0.1),
    TraitType.LIAR: ("Their deceptive skills are perfectly suited for this.", 0.1),
    TraitType.IMPROVISER: ("They adapt quickly to changing circumstances.", 0.1),
}

# 性格对风险等级的偏移
RISK_MODIFIERS: Dict[PersonalityType, int] = {
    PersonalityType.CAUTIOUS: -1,
    PersonalityType.CALCULATING: -1,
    PersonalityType.RECKLESS: 1,
    PersonalityType.AGGRESSIVE: 1,
}

RISK_LEVELS = [LOW, MEDIUM, HIGH]

def calculate_risk_level(personality: PersonalityType, base_risk: RiskLevel) -> RiskLevel:
    """按性格偏移一档，超出范围时截断"""
    index = RISK_LEVELS.index(base_risk) + RISK_MODIFIERS.get(personality, 0)
    index = max(0, min(len(RISK_LEVELS) - 1, index))
    return RISK_LEVELS[index]

def make_ai_decision(context: DecisionContext) -> AIDecision:
    """根据性格、特质与轮次类型给出参赛者的决策"""
    contestant = context.contestant
    action, reasoning, confidence, risk_level = PERSONALITY_DECISIONS.get(
        contestant.personality, {}
    ).get(context.current_round.type, DEFAULT_DECISION)

    trait_reasoning, confidence_bonus = TRAIT_MODIFIERS.get(contestant.trait, ("", 0.0))

    return AIDecision(
        action=action,
        reasoning=f"{reasoning.format(name=contestant.name)} {trait_reasoning}".strip(),
        confidence=round(max(0.0, min(1.0, confidence + confidence_bonus)), 2),
        risk_level=calculate_risk_level(contestant.personality, risk_level)
    )

"""
旁白生成服务
支持OpenAI兼容接口，未配置或调用失败时使用本地模板旁白
"""

import httpx
from typing import Dict, List, Optional

from squidbet.core.config import settings
from squidbet.schemas.contestant_schemas import Contestant
from squidbet.schemas.narrative_schemas import GeneratedNarrative, NarrativeContext, NarratorStatus
from squidbet.schemas.round_schemas import GameRound, GameRoundType

NARRATOR_SYSTEM_PROMPT = (
    "You are a dramatic narrator for the Squid Game. Create intense, suspenseful narratives "
    "that capture the deadly atmosphere of the games. Write in present tense, be descriptive, "
    "and build tension. Keep each narrative segment to 1-2 sentences."
)

# 响应中的段落标题 -> GeneratedNarrative 字段
SECTION_HEADERS = {
    "SETUP:": "setup_narrative",
    "ACTION:": "action_narrative",
    "ELIMINATION:": "elimination_narrative",
    "DRAMATIC_MOMENTS:": "dramatic_moments",
}

class Narrator:
    """旁白生成器基类"""

    name = "base"

    async def generate(self, context: NarrativeContext) -> GeneratedNarrative:
        raise NotImplementedError

    async def generate_elimination(self, contestant: Contestant, game_round: GameRound,
                                   elimination_reason: Optional[str] = None) -> str:
        return f"{contestant.name} was eliminated from {game_round.name}."

    async def generate_winner(self, winner: Contestant) -> str:
        return f"{winner.name} emerges victorious from the deadly games!"


class TemplateNarrator(Narrator):
    """本地模板旁白（结果可复现，不依赖网络）"""

    name = "template"

    def _round_lines(self, game_round: GameRound, round_number: int, contestant_count: int) -> Dict[str, List[str]]:
        header = f"Round {round_number}: {game_round.name}"

        if game_round.type == GameRoundType.RED_LIGHT_GREEN_LIGHT:
            return {
                "setup": [
                    header,
                    "The massive doll towers over the playground, its mechanical eyes scanning for any movement.",
                    f"{contestant_count} contestants line up at the starting line, hearts pounding with terror.",
                ],
                "action": [
                    "\"Green light!\" The doll's head turns away and contestants surge forward desperately.",
                    "Footsteps thunder across the field as players race toward the finish line.",
                    "\"Red light!\" The doll spins around, its sensors detecting the slightest motion.",
                    "Some contestants freeze perfectly, while others struggle to control their momentum.",
                ],
                "dramatic": ["The price of movement is death, and the doll shows no mercy."],
            }
        if game_round.type == GameRoundType.TUG_OF_WAR:
            return {
                "setup": [
                    header,
                    "Teams form on opposite sides of a deadly chasm, ropes their only lifeline.",
                    "The platform sways ominously as contestants realize the stakes.",
                ],
                "action": [
                    "The rope goes taut as both teams strain with everything they have.",
                    "Feet slide dangerously close to the edge as the battle intensifies.",
                    "Strategy and raw strength clash in this ultimate test of teamwork.",
                    "The losing team faces a terrifying plunge into the abyss below.",
                ],
                "dramatic": ["In Tug of War, there are no individual heroes, only surviving teams."],
            }
        if game_round.type == GameRoundType.MARBLES:
            return {
                "setup": [
                    header,
                    "Contestants pair up for what seems like a children's game.",
                    "The cruel reality sets in: only one from each pair will survive.",
                ],
                "action": [
                    "Friends become enemies as the marble games begin.",
                    "Deception and strategy intertwine in deadly combinations.",
                    "Some rely on luck, others on cunning manipulation.",
                    "Trust becomes a luxury no one can afford.",
                ],
                "dramatic": ["The most heartbreaking eliminations come from betraying those closest to you."],
            }
        if game_round.type == GameRoundType.GLASS_BRIDGE:
            return {
                "setup": [
                    header,
                    "A narrow bridge of glass panels stretches across a bottomless drop.",
                    f"{contestant_count} contestants draw their numbers and learn the order of crossing.",
                ],
                "action": [
                    "The first contestant hesitates, then leaps onto a panel and prays.",
                    "Shards rain into the darkness as a panel gives way beneath a trembling foot.",
                    "Those further back study every step, memorizing which panels hold.",
                    "Each safe landing is met with a gasp of relief that never lasts.",
                ],
                "dramatic": ["On the glass bridge, every step forward is paid for by someone else."],
            }
        if game_round.type == GameRoundType.FINAL_SQUID_GAME:
            return {
                "setup": [
                    header,
                    "The squid outline is drawn in the sand under a grey sky.",
                    "Only the finalists remain, and only one path leads home.",
                ],
                "action": [
                    "The finalists circle each other, breathing hard, waiting for an opening.",
                    "Fists fly and bodies crash into the sand in a brutal struggle.",
                    "Every ounce of strength and cunning is spent in the final push.",
                    "The crowd of masked guards watches in perfect silence.",
                ],
                "dramatic": ["The last game is not about winning. It is about who can bear to."],
            }
        return {
            "setup": [
                header,
                "The contestants face their next deadly challenge.",
                "The rules are simple, but survival is anything but guaranteed.",
            ],
            "action": [
                "The game begins with deadly precision.",
                "Contestants struggle to survive the brutal challenge.",
                "Every decision could be their last.",
                "The weak are separated from the strong.",
            ],
            "dramatic": ["The games show no mercy to those who fail."],
        }

    def _elimination_reasons(self, contestant: Contestant, round_type: GameRoundType) -> List[str]:
        personality = contestant.personality.value.lower()
        trait = contestant.trait.value.lower()
        stats = contestant.stats
        name = contestant.name

        if round_type == GameRoundType.RED_LIGHT_GREEN_LIGHT:
            return [
                f"{name}'s {personality} nature betrayed them at the crucial moment, their agility of {stats.agility} insufficient against the doll's sensors.",
                f"Despite being known as {trait} with strength {stats.strength}, {name} couldn't overcome the deadly precision of the game.",
                f"{name}'s journey ends here, their {personality} approach and intelligence of {stats.intelligence} proving insufficient against the mechanical death.",
            ]
        if round_type == GameRoundType.TUG_OF_WAR:
            return [
                f"{name}'s team falls into the abyss, their {trait} trait and strength of {stats.strength} unable to save them from the deadly plunge.",
                f"The {personality} {name} meets their end in the deadly tug of war, their deception skills of {stats.deception} useless against raw physics.",
            ]
        if round_type == GameRoundType.MARBLES:
            return [
                f"{name}'s {personality} personality and deception score of {stats.deception} couldn't navigate the psychological warfare of marbles.",
                f"Trust proved to be {name}'s downfall in this game of betrayal, their intelligence of {stats.intelligence} unable to read their opponent's true intentions.",
            ]
        if round_type == GameRoundType.GLASS_BRIDGE:
            return [
                f"{name}'s luck of {stats.luck} finally runs out on the glass bridge, their {trait} nature leading them to the wrong panel.",
                f"The {personality} {name} falls through the glass, their agility of {stats.agility} unable to save them from the deadly drop.",
            ]
        if round_type == GameRoundType.FINAL_SQUID_GAME:
            return [
                f"{name}'s {personality} approach and combined stats couldn't overcome their final opponent in the ultimate showdown.",
                f"Despite their {trait} nature and strength of {stats.strength}, {name} falls in the final battle.",
            ]
        return [
            f"{name} was eliminated, their {trait} nature and stats (STR:{stats.strength}, AGI:{stats.agility}, INT:{stats.intelligence}) not enough to survive.",
        ]

    def elimination_line(self, contestant: Contestant, game_round: GameRound, round_number: int) -> str:
        """按编号与轮次选择淘汰描述，同一输入总是得到同一句"""
        reasons = self._elimination_reasons(contestant, game_round.type)
        index = ((contestant.number or 0) + round_number) % len(reasons)
        return reasons[index]

    async def generate(self, context: NarrativeContext) -> GeneratedNarrative:
        lines = self._round_lines(context.round, context.round_number, len(context.contestants))
        return GeneratedNarrative(
            setup_narrative=lines["setup"],
            action_narrative=lines["action"],
            elimination_narrative=[
                self.elimination_line(contestant, context.round, context.round_number)
                for contestant in context.eliminated
            ],
            dramatic_moments=lines["dramatic"],
        )


class OpenAINarrator(Narrator):
    """OpenAI兼容接口旁白（/v1/chat/completions）"""

    name = "openai"

    def __init__(self, api_url: str, api_key: str, model: str,
                 max_tokens: int = 800, temperature: float = 0.8,
                 timeout: float = 20.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.transport = transport
        self.fallback = TemplateNarrator()

    def _build_complete_api_url(self, base_url: str) -> str:
        """构建完整的API端点"""
        base_url = base_url.rstrip('/')
        if base_url.endswith('/v1/chat/completions'):
            return base_url
        elif base_url.endswith('/v1'):
            return f"{base_url}/chat/completions"
        else:
            return f"{base_url}/v1/chat/completions"

    def _build_request_body(self, system_prompt: str, message: str,
                            max_tokens: int, temperature: float) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": message}
            ],
            "stream": False,
            "max_tokens": max_tokens,
            "temperature": temperature
        }

    async def _chat(self, system_prompt: str, message: str,
                    max_tokens: Optional[int] = None, temperature: Optional[float] = None) -> str:
        """调用接口并返回文本内容，失败时抛出异常"""
        headers = {
            "Content-Type": "application/json"
        }
        if self.api_key is not None and self.api_key.strip():
            headers["Authorization"] = f"Bearer {self.api_key}"

        api_endpoint = self._build_complete_api_url(self.api_url)
        request_body = self._build_request_body(
            system_prompt,
            message,
            max_tokens if max_tokens is not None else self.max_tokens,
            temperature if temperature is not None else self.temperature
        )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(api_endpoint, json=request_body, headers=headers)
            response.raise_for_status()
            result = response.json()

        if 'choices' in result and len(result['choices']) > 0:
            content = result['choices'][0].get('message', {}).get('content', '')
            if content and content.strip():
                return content

        raise ValueError("API响应格式不正确")

    def build_prompt(self, context: NarrativeContext) -> str:
        """根据参赛者档案与本轮结果构建提示词"""
        survivor_ids = {c.id for c in context.survivors}
        eliminated_ids = {c.id for c in context.eliminated}

        profiles = []
        for c in context.contestants:
            if c.id in survivor_ids:
                status = "SURVIVOR"
            elif c.id in eliminated_ids:
                status = "ELIMINATED"
            else:
                status = "UNKNOWN"
            profiles.append(
                f"{c.name}:\n"
                f"  - Personality: {c.personality.value}\n"
                f"  - Trait: {c.trait.value}\n"
                f"  - Description: {c.description}\n"
                f"  - Stats: Strength {c.stats.strength}, Agility {c.stats.agility}, "
                f"Intelligence {c.stats.intelligence}, Deception {c.stats.deception}, Luck {c.stats.luck}\n"
                f"  - Status: {status}"
            )

        survivor_details = ", ".join(f"{c.name} ({c.personality.value}, {c.trait.value})" for c in context.survivors)
        eliminated_details = ", ".join(f"{c.name} ({c.personality.value}, {c.trait.value})" for c in context.eliminated)
        game_round = context.round

        return f"""
Generate a dramatic narrative for Round {context.round_number} of Squid Game: "{game_round.name}".

GAME DETAILS:
- Round: {game_round.name}
- Description: {game_round.description}
- Round Number: {context.round_number} of {context.total_rounds}

CONTESTANT PROFILES:
{chr(10).join(profiles)}

ROUND OUTCOME:
- Survivors: {survivor_details or 'None'}
- Eliminated: {eliminated_details or 'None'}
- Total eliminated this round: {len(context.eliminated)}

NARRATIVE REQUIREMENTS:
1. SETUP (2-3 sentences): Introduce the game, set the deadly atmosphere, describe the rules
2. ACTION (3-4 sentences): Describe intense gameplay, show how each contestant's personality/stats affect their performance
3. ELIMINATION (2-3 sentences): Describe how eliminated contestants failed, reference their specific traits/personalities
4. DRAMATIC_MOMENTS (1-2 sentences): Key dramatic highlights or shocking moments

Format your response as:
SETUP:
[setup sentences]

ACTION:
[action sentences]

ELIMINATION:
[elimination sentences]

DRAMATIC_MOMENTS:
[dramatic moments]
"""

    @staticmethod
    def parse_response(response: str) -> GeneratedNarrative:
        """按段落标题解析模型输出，标题之前的内容忽略"""
        sections: Dict[str, List[str]] = {field: [] for field in SECTION_HEADERS.values()}
        current = None

        for line in response.split('\n'):
            trimmed = line.strip()
            if not trimmed:
                continue

            header = next((h for h in SECTION_HEADERS if trimmed.startswith(h)), None)
            if header:
                current = SECTION_HEADERS[header]
                # 标题同一行后面可能直接跟着内容
                rest = trimmed[len(header):].strip()
                if rest:
                    sections[current].append(rest)
                continue

            if current:
                sections[current].append(trimmed)

        return GeneratedNarrative(**sections)

    async def generate(self, context: NarrativeContext) -> GeneratedNarrative:
        try:
            response = await self._chat(NARRATOR_SYSTEM_PROMPT, self.build_prompt(context))
            narrative = self.parse_response(response)
            if not narrative.lines():
                raise ValueError("旁白解析结果为空")
            print(f"✨ 已生成AI旁白: {context.round.name}")
            return narrative
        except (httpx.HTTPError, ValueError) as e:
            print(f"⚠️ AI旁白生成失败，使用模板旁白: {e}")
            return await self.fallback.generate(context)

    async def generate_elimination(self, contestant: Contestant, game_round: GameRound,
                                   elimination_reason: Optional[str] = None) -> str:
        prompt = (
            f"Generate a dramatic elimination narrative for {contestant.name} in {game_round.name}.\n\n"
            f"CONTESTANT PROFILE:\n"
            f"- Name: {contestant.name}\n"
            f"- Personality: {contestant.personality.value}\n"
            f"- Trait: {contestant.trait.value}\n"
            f"- Description: {contestant.description}\n\n"
            f"GAME CONTEXT:\n"
            f"- Round: {game_round.name}\n"
            f"- Description: {game_round.description}\n"
        )
        if elimination_reason:
            prompt += f"- Elimination Reason: {elimination_reason}\n"
        prompt += "\nWrite 1-2 dramatic sentences in present tense describing their elimination."

        try:
            return (await self._chat(
                "You are a dramatic narrator for Squid Game. Write emotional, impactful elimination descriptions "
                "that reference contestant personalities and stats.",
                prompt,
                max_tokens=200,
                temperature=0.9
            )).strip()
        except (httpx.HTTPError, ValueError) as e:
            print(f"⚠️ 淘汰旁白生成失败: {e}")
            return await super().generate_elimination(contestant, game_round, elimination_reason)

    async def generate_winner(self, winner: Contestant) -> str:
        prompt = (
            f"Generate a dramatic winner announcement for {winner.name} who has won the Squid Game.\n\n"
            f"WINNER PROFILE:\n"
            f"- Name: {winner.name}\n"
            f"- Personality: {winner.personality.value}\n"
            f"- Trait: {winner.trait.value}\n"
            f"- Description: {winner.description}\n"
            f"- Stats: Strength {winner.stats.strength}, Agility {winner.stats.agility}, "
            f"Intelligence {winner.stats.intelligence}, Deception {winner.stats.deception}, Luck {winner.stats.luck}\n\n"
            f"Write 2-3 triumphant sentences explaining what made them the ultimate survivor."
        )

        try:
            return (await self._chat(
                "You are announcing the winner of Squid Game. Be dramatic, triumphant, and reference their "
                "specific characteristics that led to victory.",
                prompt,
                max_tokens=250
            )).strip()
        except (httpx.HTTPError, ValueError) as e:
            print(f"⚠️ 冠军旁白生成失败: {e}")
            return await super().generate_winner(winner)


def get_narrator() -> Narrator:
    """根据配置选择旁白生成器"""
    if settings.NARRATOR_API_KEY:
        return OpenAINarrator(
            api_url=settings.NARRATOR_API_URL,
            api_key=settings.NARRATOR_API_KEY,
            model=settings.NARRATOR_MODEL,
            max_tokens=settings.NARRATOR_MAX_TOKENS,
            temperature=settings.NARRATOR_TEMPERATURE,
            timeout=settings.NARRATOR_TIMEOUT
        )
    return TemplateNarrator()

def status() -> NarratorStatus:
    """旁白服务的配置状态"""
    if settings.NARRATOR_API_KEY:
        return NarratorStatus(
            configured=True,
            narrator=OpenAINarrator.name,
            model=settings.NARRATOR_MODEL,
            message="✨ AI-powered narratives enabled"
        )
    return NarratorStatus(
        configured=False,
        narrator=TemplateNarrator.name,
        message="Using enhanced static narratives (set NARRATOR_API_KEY for AI narratives)"
    )

async def generate_elimination_narrative(contestant: Contestant, game_round: GameRound,
                                         elimination_reason: Optional[str] = None,
                                         narrator: Optional[Narrator] = None) -> str:
    """单个参赛者的淘汰旁白"""
    narrator = narrator or get_narrator()
    return await narrator.generate_elimination(contestant, game_round, elimination_reason)

async def generate_winner_narrative(winner: Contestant, narrator: Optional[Narrator] = None) -> str:
    """冠军宣告"""
    narrator = narrator or get_narrator()
    return await narrator.generate_winner(winner)

"""
Coach Prompt Templates
======================

System and user prompts for real-time voice nudges and post-run summaries.
"""

from coach.schemas import CoachStyle, Language


STYLE_NAMES = {
    Language.ZH_HANS: {
        CoachStyle.ENCOURAGING: "鼓励型",
        CoachStyle.STRICT: "严格型",
        CoachStyle.CALM: "温和型",
    },
    Language.EN: {
        CoachStyle.ENCOURAGING: "encouraging",
        CoachStyle.STRICT: "strict",
        CoachStyle.CALM: "calm",
    },
}

STYLE_DESCRIPTIONS = {
    Language.ZH_HANS: {
        CoachStyle.ENCOURAGING: "你的风格是鼓励型，热情、积极，善于激励用户，用正面的语言帮助用户坚持下去。",
        CoachStyle.STRICT: "你的风格是严格型，专业、直接，注重科学训练，会指出问题并给出明确建议。",
        CoachStyle.CALM: "你的风格是温和型，平和、耐心，像朋友一样陪伴用户，给予温暖的支持。",
    },
    Language.EN: {
        CoachStyle.ENCOURAGING: "Your style is encouraging: enthusiastic, positive, motivating the user with uplifting language.",
        CoachStyle.STRICT: "Your style is strict: professional, direct, scientifically focused, pointing out issues with clear advice.",
        CoachStyle.CALM: "Your style is calm: peaceful, patient, accompanying the user like a friend with warm support.",
    },
}

REALTIME_PERSONA = {
    Language.ZH_HANS: "你是一位专业的跑步教练，正在通过语音为用户提供实时跑步指导。",
    Language.EN: "You are a professional running coach providing real-time voice coaching.",
}

POST_RUN_PERSONA = {
    Language.ZH_HANS: "你是一位专业的跑步教练，正在为用户提供跑后分析。",
    Language.EN: "You are a professional running coach providing post-run analysis.",
}

REALTIME_RULES = {
    Language.ZH_HANS: """**重要要求**：
1. 反馈要简短（15-25个字），适合语音播报
2. 用口语化的表达，像在面对面交流
3. 根据用户当前状态给予即时、具体的建议
4. 不要使用书面语、专业术语
5. 语气自然，有感染力""",
    Language.EN: """IMPORTANT:
1. Keep feedback short (15-25 words), suitable for voice playback
2. Use conversational language, as if speaking face-to-face
3. Give immediate, specific advice based on the user's current state
4. Avoid formal or technical language
5. Natural tone, engaging""",
}

POST_RUN_RULES = {
    Language.ZH_HANS: """**重要要求**：
1. 总结长度 50-80 个字
2. 先肯定用户的完成情况
3. 分析配速节奏（每公里分段、前后半程）
4. 给出 1-2 条具体的改进建议
5. 语气符合你的教练风格
6. 用连贯的口语段落，不要用列表格式""",
    Language.EN: """IMPORTANT:
1. The summary is 50-80 words long
2. Start by acknowledging what the runner accomplished
3. Analyze the pacing (per-kilometer splits, first vs second half)
4. Give 1-2 concrete suggestions for next time
5. Match your coaching style
6. Write flowing conversational prose, no lists""",
}


def style_name(style: CoachStyle, language: Language = Language.ZH_HANS) -> str:
    return STYLE_NAMES[language][style]


def build_system_prompt(
    style: CoachStyle,
    post_run: bool,
    language: Language = Language.ZH_HANS
) -> str:
    """Persona sentence + style elaboration + formatting rules."""
    persona = POST_RUN_PERSONA[language] if post_run else REALTIME_PERSONA[language]
    rules = POST_RUN_RULES[language] if post_run else REALTIME_RULES[language]
    separator = " " if language == Language.EN else ""
    return f"{persona}{separator}{STYLE_DESCRIPTIONS[language][style]}\n\n{rules}"


def build_realtime_prompt(
    stats_description: str,
    style: CoachStyle,
    language: Language = Language.ZH_HANS
) -> str:
    name = style_name(style, language)
    if language == Language.EN:
        return f"""The user is currently running. Current status:

{stats_description}

Give the user one short real-time feedback sentence (15-25 words).

Rules:
1. Return only one sentence, no extra explanation
2. Match the {name} tone
3. Conversational and natural"""

    return f"""用户正在跑步，当前状态如下：

{stats_description}

请根据以上数据，给用户一句简短的实时反馈（15-25个字）。

注意：
1. 只返回一句话，不要多余解释
2. 语气要符合{name}风格
3. 口语化，自然流畅"""


def build_post_run_prompt(
    stats_description: str,
    style: CoachStyle,
    language: Language = Language.ZH_HANS
) -> str:
    name = style_name(style, language)
    if language == Language.EN:
        return f"""The user just finished a run. Run data:

{stats_description}

Write a post-run summary (50-80 words):
1. Acknowledge the effort first
2. Comment on the pacing using the split data
3. Give 1-2 concrete suggestions
4. Use a {name} tone
5. Prose only, no lists or headings"""

    return f"""用户刚刚完成了一次跑步，数据如下：

{stats_description}

请写一段跑后总结（50-80个字）：
1. 先肯定用户的表现
2. 结合分段数据分析配速节奏
3. 给出1-2条具体建议
4. 语气要符合{name}风格
5. 用自然段落，不要列表或标题"""


def build_user_prompt(
    stats_description: str,
    style: CoachStyle,
    post_run: bool,
    language: Language = Language.ZH_HANS
) -> str:
    """Pick the post-run or real-time template."""
    if post_run:
        return build_post_run_prompt(stats_description, style, language)
    return build_realtime_prompt(stats_description, style, language)

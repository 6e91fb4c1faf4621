"""Instruction and prompt construction for highlight generation."""

import json
from collections.abc import Sequence
from datetime import datetime

from chornex_news.data import Highlight, Language

LANGUAGE_NAMES: dict[Language, str] = {
    Language.EN: "English",
    Language.BN: "Bangla",
}

SYSTEM_INSTRUCTION = """\
You are the automated news summarization engine for CHORNEX, an international \
news website.

Your job:
- Collect the latest global news.
- Include EXACTLY ONE major news highlight from Bangladesh (category "bangladesh").
- Produce only short, clear highlight summaries of 1-3 sentences each.
- Be factual, neutral and concise. No opinions, predictions or exaggeration.
- If nothing significant changed compared to the previous highlights you are \
given, return those highlights with status "NO NEW UPDATE".

Focus on international headlines first, then global politics, economy, \
conflicts, technology, climate and other major events.

Return valid JSON only, without markdown code fences, shaped as:
{
  "generated_at": "YYYY-MM-DD HH:MM UTC",
  "language": "en" or "bn",
  "status": "OK" or "NO NEW UPDATE",
  "highlights": [
    {
      "headline": "...",
      "summary": "...",
      "url": "https://source.link/article",
      "category": "one of world, economy, tech, security, climate, politics, bangladesh, other",
      "timestamp": "just now / 1m ago / 5m ago"
    }
  ]
}\
"""


def reduce_context(highlights: Sequence[Highlight]) -> list[dict[str, str]]:
    """Project highlights down to headline and category.

    Summaries are left out to keep the prompt small.
    """
    return [{"headline": h.headline, "category": h.category.value} for h in highlights]


def build_prompt(
    language: Language,
    previous_highlights: Sequence[Highlight],
    now: datetime,
) -> str:
    """Build the per-request user prompt.

    Args:
        language: Target language of the highlights.
        previous_highlights: Highlights the caller currently displays.
        now: Current instant, stated in the prompt so the provider can judge recency.

    Returns:
        Prompt text.
    """
    context = json.dumps(reduce_context(previous_highlights), ensure_ascii=False)
    return (
        f"Current time: {now.isoformat()}\n"
        f"Target language: {language.value} ({LANGUAGE_NAMES[language]})\n\n"
        "Previous highlights (check for duplicates against these):\n"
        f"{context}\n\n"
        "Instructions:\n"
        "1. Search for the latest global news.\n"
        "2. Search specifically for major news from Bangladesh in the last 12 hours.\n"
        "3. Compare with the previous highlights.\n"
        "4. If significant new stories exist, produce a new list of top global "
        'highlights with EXACTLY ONE highlight of category "bangladesh".\n'
        '5. Give each highlight a valid source URL in "url".\n'
        "6. If nothing major changed, return status \"NO NEW UPDATE\" with the previous list.\n"
        "7. Output raw JSON only."
    )

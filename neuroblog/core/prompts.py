"""Prompt templates for suggestion generation."""

import random
from datetime import datetime
from typing import Optional

from neuroblog.core.utils import format_long_date
from neuroblog.models.content import GenerationMode, TopicCandidate

ON_DEMAND_ANGLES = [
    "comprehensive analysis",
    "expert insights",
    "future implications",
    "industry impact",
    "technical deep-dive",
    "market analysis",
]
AUTONOMOUS_ANGLES = [
    "breaking analysis",
    "expert insights",
    "industry impact",
    "technical breakdown",
    "market trends",
]

JSON_SHAPE = """{{
  "title": "Compelling title (max 70 chars, unique from the news headline)",
  "summary": "Engaging 2-3 sentence hook with current relevance and impact",
  "content": "Full post text with an introduction, sections with subheadings, statistics as bullet points, attributed expert quotes, future implications for {year}, key takeaways and a conclusion",
  "tags": ["{year}", "{marker}", "analysis", "insights", "trending"],
  "category": "General",
  "readTime": "8-12 min read",
  "publishDate": "{date}"
}}"""


def build_prompt(
    topic: TopicCandidate,
    mode: GenerationMode,
    now: datetime,
    rng: Optional[random.Random] = None,
) -> str:
    """Render the generation prompt for ``topic``."""
    rng = rng or random.Random()
    current_date = format_long_date(now)

    if mode == GenerationMode.AUTONOMOUS:
        angle = rng.choice(AUTONOMOUS_ANGLES)
        header = f'LIVE UPDATE ({current_date}): "{topic.title}" - {topic.description}'
        marker = "live-update"
    else:
        angle = rng.choice(ON_DEMAND_ANGLES)
        header = (
            f'BREAKING NEWS ({current_date}): "{topic.title}" - {topic.description}\n\n'
            f"Source: {topic.source} | Published: {format_long_date(topic.published_at)}"
        )
        marker = "breaking-news"

    shape = JSON_SHAPE.format(year=now.year, marker=marker, date=current_date)
    return f"""{header}

Create a PROFESSIONAL, engaging blog post with {angle}.

STRUCTURE:
- Clean, readable text (NO HTML tags)
- Engaging introduction with current context
- Multiple sections with clear subheadings
- Statistics in bullet points
- Expert quotes with attribution
- Professional conclusion
- Current date context throughout

STYLE:
- Professional yet engaging tone
- Practical implications for readers
- Future predictions for {now.year}
- Actionable takeaways

Return ONLY valid JSON:

{shape}"""

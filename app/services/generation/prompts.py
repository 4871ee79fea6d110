"""
Prompt-Templates für die Copy-Generierung (Push und Email).

Alle Prompts erzwingen striktes JSON-Output mit festem Schema und dem
Claims-Vertrag, den der Verifier später prüft.
"""

from typing import List

from app.models.pydantic import Channel, Constraints, Item, UserSignals

CLAIMS_SCHEMA = """"claims": {
      "referenced_item_ids": ["v1|itm|..."],
      "referenced_brands": ["Brand"],
      "referenced_events": ["recent_view", "recent_add_to_cart", "recent_purchase"],
      "referenced_holiday": "Holiday name or null",
      "mentioned_benefits": ["free shipping"]
    }"""

PUSH_SCHEMA = f"""{{
  "candidates": [
    {{
      "text": "the final push notification text",
      {CLAIMS_SCHEMA}
    }}
  ]
}}"""

EMAIL_SCHEMA = f"""{{
  "candidates": [
    {{
      "subject": "Email subject line",
      "preview": "Short preview text shown in the inbox list",
      "body": "Main email body text (plain text, no HTML)",
      "bullets": ["Optional bullet 1", "Optional bullet 2"],
      "cta": "Call-to-action text, e.g. Shop Now",
      {CLAIMS_SCHEMA}
    }}
  ]
}}"""


def describe_items(items: List[Item]) -> str:
    return "\n".join(f"- Item ID: {i.item_id} | [{i.brand or ''}] {i.title} - ${i.price:.2f}" for i in items)


def describe_user(signals: UserSignals) -> str:
    parts = []
    if signals.recent_view:
        parts.append(f"Viewed {signals.recent_view} items in the last 7 days")
    if signals.recent_add_to_cart:
        parts.append(f"Added {signals.recent_add_to_cart} items to the cart in the last 7 days")
    if signals.recent_purchase:
        parts.append(f"Purchased {signals.recent_purchase} items in the last 7 days")
    if signals.favorite_brands:
        parts.append(f"Favorite brands: {', '.join(signals.favorite_brands)}")
    if signals.tags:
        parts.append(f"Interests: {', '.join(signals.tags)}")
    return "\n".join(parts) or "New user without recent activity"


def build_generation_prompt(
    channel: Channel,
    locale: str,
    constraints: Constraints,
    items: List[Item],
    signals: UserSignals,
    n: int,
) -> str:
    """
    Baut den Prompt für n Kandidaten eines Kanals.

    Das erste Item ist das Primär-Item; Push darf nur dieses erwähnen.
    """
    if channel == Channel.PUSH:
        task = "a short push notification that only mentions the PRIMARY item (the first one listed)"
        schema = PUSH_SCHEMA
        length_rule = f'"text" must be under {constraints.max_len} characters.'
    else:
        task = "a personalized marketing email"
        schema = EMAIL_SCHEMA
        length_rule = f'"body" must be under {constraints.max_len} characters.'

    url_rule = "Do NOT include URLs." if constraints.no_url else "URLs are allowed if needed."
    price_rule = "Do NOT include explicit prices." if constraints.no_price else "Prices may be included if helpful."

    return f"""You are an e-commerce copywriter. Write {n} alternative versions of {task}.
Language / locale: {locale}

[User Profile]
{describe_user(signals)}

[Recommended Items]
{describe_items(items)}

RULES:
- {length_rule}
- {url_rule}
- {price_rule}
- Only claim user behavior (recent_view, recent_add_to_cart, recent_purchase) that the profile supports.
- referenced_item_ids MUST use the exact Item IDs listed above, never product names.
- No superlatives such as "best ever" or "lowest price".

Return ONLY a JSON object in this schema, no markdown, no explanations:
{schema}"""

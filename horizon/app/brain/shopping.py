"""
Rule-based shopping trigger detection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ShoppingTrigger:
    type: str
    description: str


_PRODUCT_NOUNS = "perfumes|chairs|jackets|phones|laptops|shoes|watches|bags|clothes|gadgets|accessories"
_STYLE_WORDS = (
    "black|white|red|blue|green|yellow|pink|leather|metal|premium|minimalist|trendy|"
    "oversized|slim|compact|heavy|lightweight|waterproof|wireless"
)

_RECOMMENDATION_RE = re.compile(
    r"(recommend|suggest|what (is|are) (good|best)|need a (good|decent)|looking for (good|best))", re.I
)
_BUDGET_RE = re.compile(r"(under|below|less than|cheaper than|budget (is|of)|price (limit|range)|max price)", re.I)
_COMPARISON_RE = re.compile(
    r"( vs | versus |compare|which (is|one is) (better|faster|cheaper)|"
    r"(difference|which) (between|should i buy|should i choose))",
    re.I,
)
_INTENT_TO_BUY_RE = re.compile(
    r"(what should i (buy|choose|get)|help me (choose|decide|pick)|"
    r"(want|planning|thinking) to (buy|purchase|get a new)|i need to buy)",
    re.I,
)
_CATEGORY_RES = (
    re.compile(rf"(good|best|top|trending|popular|cool|nice) ({_PRODUCT_NOUNS})", re.I),
    re.compile(r"(show me|find me) (some|good|best|trending)", re.I),
)
_PERSONAL_NEEDS_RES = (
    re.compile(
        r"(for (gym|college|school|work|office|gaming|editing|coding|programming|running|travel|hiking|biking|daily use))",
        re.I,
    ),
    re.compile(r"(shoes|laptop|bag|phone|watch) for ", re.I),
)
_STYLE_RE = re.compile(rf"({_STYLE_WORDS}) (shoes|watch|phone|laptop|bag|jacket|shirt|t-shirt)", re.I)
_GIFT_RE = re.compile(
    r"(gift|present) (ideas|for|suggestion)|(birthday|anniversary|wedding|party|festival) (gift|present|suggestion)",
    re.I,
)
_TROUBLES_RE = re.compile(
    r"(confused|don't know what to (buy|get)|too many (options|choices)|can't decide|hard to choose|help me decide)",
    re.I,
)
_DEAL_RE = re.compile(
    r"(best (deal|offer|price)|cheapest|discount|sale|available|promo code|coupon|lowest price)", re.I
)
_ONLINE_STORE_RE = re.compile(
    r"(help me shop|find (me )?something on (amazon|flipkart|myntra|online)|"
    r"browse (shoes|clothes|gadgets)|buy (it )?online|where can i buy)",
    re.I,
)


def detect_shopping_intent(prompt: str) -> Optional[ShoppingTrigger]:
    lowered = (prompt or "").lower().strip()
    if not lowered:
        return None

    if _RECOMMENDATION_RE.search(lowered) and "book" not in lowered and "movie" not in lowered:
        return ShoppingTrigger("ProductRecommendation", "User asked for product recommendations.")
    if _BUDGET_RE.search(lowered) and re.search(r"\d+", lowered):
        return ShoppingTrigger("BudgetPrice", "User specified a budget or price limit.")
    if _COMPARISON_RE.search(lowered):
        return ShoppingTrigger("ProductComparison", "User is comparing products.")
    if _INTENT_TO_BUY_RE.search(lowered):
        return ShoppingTrigger("IntentToBuy", "User expressed direct intent to buy or choose.")
    if any(p.search(lowered) for p in _CATEGORY_RES):
        return ShoppingTrigger("CategorySearch", "User searched for a product category.")
    if any(p.search(lowered) for p in _PERSONAL_NEEDS_RES):
        return ShoppingTrigger("PersonalNeeds", "User specified a specific use-case.")
    if _STYLE_RE.search(lowered):
        return ShoppingTrigger("StylePreference", "User described a style or specific preference.")
    if _GIFT_RE.search(lowered):
        return ShoppingTrigger("GiftOccasion", "User is looking for a gift or shopping for an occasion.")
    if _TROUBLES_RE.search(lowered):
        return ShoppingTrigger("ShoppingTroubles", "User is confused or seeks guidance.")
    if _DEAL_RE.search(lowered):
        return ShoppingTrigger("AvailabilityBestDeal", "User is looking for deals or availability.")
    if _ONLINE_STORE_RE.search(lowered):
        return ShoppingTrigger("OnlineStoreIntent", "User explicitly expressed intent to shop online.")
    return None

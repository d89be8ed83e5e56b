import pytest

from horizon.app.brain.intent import IntentType, detect_intent
from horizon.app.brain.prompts import persona_block
from horizon.app.brain.shopping import detect_shopping_intent


@pytest.mark.parametrize(
    "prompt,trigger",
    [
        ("Can you recommend good headphones?", "ProductRecommendation"),
        ("phone under 20000 rupees", "BudgetPrice"),
        ("iphone 15 vs pixel 8", "ProductComparison"),
        ("I want to buy a new monitor", "IntentToBuy"),
        ("show me trending jackets", "CategorySearch"),
        ("a laptop for coding", "PersonalNeeds"),
        ("gift ideas for my sister", "GiftOccasion"),
        ("where can i buy this", "OnlineStoreIntent"),
    ],
)
def test_shopping_triggers(prompt, trigger):
    result = detect_shopping_intent(prompt)
    assert result is not None
    assert result.type == trigger


def test_recommendation_skips_books_and_movies():
    assert detect_shopping_intent("recommend a good book") is None
    assert detect_shopping_intent("suggest a movie for tonight") is None


def test_budget_requires_a_number():
    assert detect_shopping_intent("laptop under budget") is None


def test_empty_prompt_has_no_trigger():
    assert detect_shopping_intent("   ") is None


def test_shopping_intent_carries_sub_type():
    result = detect_intent("Can you recommend good headphones?")
    assert result.type == IntentType.SHOPPING
    assert result.confidence == 0.9
    assert result.sub_type == "ProductRecommendation"


def test_technical_beats_creative():
    result = detect_intent("How do I fix this python error in my design?")
    assert result.type == IntentType.TECHNICAL
    assert result.confidence == 0.85


def test_creative_intent():
    result = detect_intent("write a poem about the sea")
    assert result.type == IntentType.CREATIVE


def test_research_intent():
    result = detect_intent("tell me more about the roman empire")
    assert result.type == IntentType.RESEARCH
    assert result.confidence == 0.75


def test_general_fallback():
    result = detect_intent("hello there")
    assert result.type == IntentType.GENERAL
    assert result.confidence == 0.5
    assert persona_block(result) == ""


def test_shopping_persona_includes_live_data():
    intent = detect_intent("Can you recommend good headphones?")
    block = persona_block(intent, "LIVE PRODUCTS")
    assert "SHOPPING AGENT" in block
    assert "LIVE PRODUCTS" in block

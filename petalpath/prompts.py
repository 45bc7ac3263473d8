import re
from typing import Optional

from .models import (
    FlowerStylingResult,
    ImageInput,
    RequestInput,
    SubscriptionWeek,
    WrappingTechnique,
)

DEFAULT_VIBE = "Seasonal Surprise"

# Separators a user types between several flower names
MULTI_FLOWER_SPLIT = re.compile(r"\s*(?:,|;|&|\+|/|\band\b)\s*", re.IGNORECASE)

STYLING_SYSTEM_INSTRUCTION = """You are a world-class professional floral stylist and botanist.
Identify the flower(s) provided and offer expert styling, wrapping, and care advice.
If multiple flowers are provided, treat them as a request for a cohesive bouquet arrangement.

MANDATORY OUTPUTS:
1. "Wedding Bouquet": Professional bridal style and pairing.
2. "Easy Option": A beginner-friendly, 2-minute styling guide using common household vessels (jars, mugs).
3. "Wrapping Techniques": 3 pro-level wrapping styles, each for a different occasion.
4. "Complementary Flowers" and a "Color Palette" of hex colour codes that suit the arrangement.

Care instructions must include sunlight, watering, and temperature (strictly in Celsius).
Output MUST be valid JSON adhering to the provided schema."""

SUBSCRIPTION_SYSTEM_INSTRUCTION = (
    "You are a floral subscription curator. Design a 4-week journey of weekly bouquets, "
    "numbered week 1 to 4, each with a theme, a main flower, secondary flowers, a vibe "
    "and a care tip. Return valid JSON."
)

ILLUSTRATION_PREAMBLE = "A professional editorial photograph of a floral arrangement"
ILLUSTRATION_STYLE = "Clean minimalist background, soft natural studio light."


def styling_system_instruction() -> str:
    return STYLING_SYSTEM_INSTRUCTION


def subscription_system_instruction() -> str:
    return SUBSCRIPTION_SYSTEM_INSTRUCTION


def split_flower_names(text: str) -> list:
    return [name for name in MULTI_FLOWER_SPLIT.split(text.strip()) if name]


def build_styling_prompt(request_input: RequestInput) -> str:
    if isinstance(request_input, ImageInput):
        return (
            "Identify and style the flower(s) in this image. "
            "Base the identification on the photo only."
        )

    text = request_input.text.strip()
    prompt = f"Flower(s) to analyze: {text}"
    if len(split_flower_names(text)) > 1:
        prompt += (
            "\nThese flowers will be arranged together: give one cohesive combined bouquet "
            "styling suggestion instead of separate results per flower."
        )
    return prompt


def build_subscription_prompt(vibe: str, preferred_flowers: Optional[str] = None) -> str:
    vibe = (vibe or "").strip() or DEFAULT_VIBE
    prompt = f"Vibe: {vibe}."
    if preferred_flowers and preferred_flowers.strip():
        prompt += (
            f" Preferred flowers: {preferred_flowers}."
            " Favor these flowers, or close substitutes when they are out of season,"
            " across the 4 weekly rotations."
        )
    return prompt


def illustration_prompt(descriptive_prompt: str) -> str:
    return f"{ILLUSTRATION_PREAMBLE}: {descriptive_prompt.strip().rstrip('.')}. {ILLUSTRATION_STYLE}"


def technique_illustration_prompt(result: FlowerStylingResult, technique: WrappingTechnique) -> str:
    palette = ", ".join(result.color_palette) or "natural tones"
    return (
        f"A bouquet of {result.name} wrapped for {technique.occasion}. {technique.description.strip()} "
        f"Color palette: {palette}"
    )


def overview_illustration_prompt(result: FlowerStylingResult) -> str:
    companions = " and ".join(result.complementary_flowers[:2])
    if companions:
        return f"A stunning arrangement of {result.name} with {companions}. Elegant bouquet style."
    return f"A stunning arrangement of {result.name}. Elegant bouquet style."


def week_illustration_prompt(week: SubscriptionWeek) -> str:
    if week.secondary_flowers:
        return (
            f"A {week.vibe} floral arrangement featuring {week.main_flower} "
            f"and {', '.join(week.secondary_flowers)}."
        )
    return f"A {week.vibe} floral arrangement featuring {week.main_flower}."

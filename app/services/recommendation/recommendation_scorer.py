"""
Deterministische Punkte-Heuristik für Empfehlungen (ohne Zustand, ohne I/O).

score_accessory: Zubehör relativ zu einem Trigger-Gerät.
score_similar_device: ähnliches Gerät relativ zu einem angesehenen Gerät.
"""

from app.models.pydantic import Item

BRAND_COMPATIBLE_POINTS = 100
DEVICE_CATEGORY_POINTS = 50
UNIVERSAL_POINTS = 10
ADDON_PRICE_POINTS = 5

# Zubehör gilt als "universell" ab mehr als zwei kompatiblen Marken
UNIVERSAL_MIN_BRANDS = 2
ADDON_PRICE_RATIO = 0.3

SIMILAR_CATEGORY_POINTS = 100
SIMILAR_BRAND_POINTS = 30
SIMILAR_PRICE_POINTS = 10
SIMILAR_PRICE_RATIO = 0.3


def score_accessory(accessory: Item, device: Item) -> int:
    score = 0
    if device.brand and device.brand in accessory.compatible_brands:
        score += BRAND_COMPATIBLE_POINTS
    if accessory.device_category is not None and accessory.device_category == device.category:
        score += DEVICE_CATEGORY_POINTS
    if len(accessory.compatible_brands) > UNIVERSAL_MIN_BRANDS:
        score += UNIVERSAL_POINTS
    if accessory.price < device.price * ADDON_PRICE_RATIO:
        score += ADDON_PRICE_POINTS
    return score


def score_similar_device(device: Item, trigger: Item) -> int:
    score = 0
    if device.category == trigger.category:
        score += SIMILAR_CATEGORY_POINTS
    if device.brand is not None and device.brand == trigger.brand:
        score += SIMILAR_BRAND_POINTS
    if abs(device.price - trigger.price) < trigger.price * SIMILAR_PRICE_RATIO:
        score += SIMILAR_PRICE_POINTS
    return score

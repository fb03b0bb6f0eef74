"""Handoff of accepted applications to research tracking."""

from src.applications.promotion.bridge import (
    DEFAULT_POSITION_TITLE,
    HttpPromotionBridge,
    NullPromotionBridge,
    PromotionBridge,
    PromotionError,
    PromotionMeta,
)

__all__ = [
    "DEFAULT_POSITION_TITLE",
    "HttpPromotionBridge",
    "NullPromotionBridge",
    "PromotionBridge",
    "PromotionError",
    "PromotionMeta",
]

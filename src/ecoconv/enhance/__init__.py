"""AI text enhancement via OpenRouter."""

from .openrouter import Enhancement, EnhancementRequestError, ProductEnhancer, extract_json_object

__all__ = ["Enhancement", "EnhancementRequestError", "ProductEnhancer", "extract_json_object"]

"""
Explanation layer: per-recommendation explanation text with caching,
single-flight generation, TTL expiry and a template fallback.

Modules
-------
coordinator : ExplanationCoordinator — the only stateful, thread-safe
              component in the engine.
templates   : template_explanation() fallback + prompt builders — pure.
generator   : TextGenerator protocol + HttpTextGenerator (httpx) adapter for
              an external text-generation endpoint.
"""

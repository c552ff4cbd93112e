"""
Assessment normalization: converts raw on-device model output into the
canonical ``Assessment`` value.

Modules
-------
normalizer : RawModelOutput dataclass + normalize() + fallback_assessment()
             — pure functions, no I/O.
"""

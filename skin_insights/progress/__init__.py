"""
Progress analysis over a user's assessment history.

Modules
-------
comparison : health_score() + compare() — pairwise baseline vs current.
timeline   : summarize() — multi-point trend over a date window.

Both are pure functions over ``Assessment`` values; the historical store
that supplies them lives outside this package.
"""

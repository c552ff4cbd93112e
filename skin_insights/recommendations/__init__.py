"""
Recommendation engine: scores catalog items against a skin assessment and
ranks them per category.

Modules
-------
scorer : factor maxima + benefit_set() + score_item() — pure functions,
         no I/O.
ranker : rank() + top_n_per_category() + order_categories() — in-stock filtering, stable
         descending sort, per-category truncation.
"""

"""
Half O-H structured topology builder.

Splits the interior of a two-curve loop into six structured quad patches and
relaxes them with an elliptic solver.
"""

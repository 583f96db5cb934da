"""Properties app package.

Holds the property listings the booking engine consults for pricing.
Properties are read-mostly reference data: the engine never mutates them.
"""

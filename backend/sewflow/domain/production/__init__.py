"""
Production Allocation & Completion Domain

Variant matrices, the cutting -> sewing -> finish stage chain, capacity
allocation over calendar days and line-balance calculations.
"""

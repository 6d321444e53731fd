"""
wiring - Property-Based Testing Suite

Property-based testing using Hypothesis to discover edge cases and invariants
in argument classification and container lookups.
"""

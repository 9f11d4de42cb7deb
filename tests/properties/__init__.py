"""
Property-based testing using Hypothesis.

Modules:
    test_backstop_properties: pricing, CDF, eligibility and price path invariants
"""

"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the tipping contract.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Value accounting and monotone counters
2. atomicity.py - All-or-nothing call semantics
3. idempotency.py - Repeated calls and pure queries
4. determinism.py - Reproducible behavior, clone() and replay()
5. uniqueness.py - One account per username

These tests use hypothesis for property-based testing.
"""

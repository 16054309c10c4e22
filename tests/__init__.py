"""
Tests Package.

This package contains test suites for validating the NeuroViz implementation,
including unit tests for trace loading, the force layout solver, render
elements and the entrance animation. The tests ensure layouts stay finite and
lane-separated, and that animation progress is monotonic and never outlives
teardown.
"""

# Tests Package

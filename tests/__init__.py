"""
SSOE Toolbox Test Suite

Tests for the core layer (exceptions, configuration, validation), the utilities
(accuracy measures, numerical differentiation, matrix operations) and the state
space estimation engine with the GUM model built on it.
"""

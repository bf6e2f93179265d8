"""Test suite for ffjob."""

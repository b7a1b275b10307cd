"""Shared test data builders and helpers."""

"""Test suite for the housing engine and API."""

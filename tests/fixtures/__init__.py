"""Shared test structs for the validation test suite."""

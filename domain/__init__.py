"""Shared domain types and errors for the feedback pipeline."""

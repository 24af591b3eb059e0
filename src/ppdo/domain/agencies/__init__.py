"""Implementing agencies."""

"""Shared protocol constants for the UI bridge."""

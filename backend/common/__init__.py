"""Shared helpers used across apps and services."""

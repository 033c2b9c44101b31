"""Senegal trip planner HTTP API."""

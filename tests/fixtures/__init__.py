"""Test fixtures for the catalyst chart engine."""

"""Tests for engagement-planner."""

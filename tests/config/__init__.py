"""Configuration module tests."""

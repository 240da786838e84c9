"""Parser session tests."""

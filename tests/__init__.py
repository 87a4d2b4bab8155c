"""Test package for convenient_cf."""

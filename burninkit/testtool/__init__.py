"""Test tool packages."""

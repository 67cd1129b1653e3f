"""Common utilities for the dashboard service."""

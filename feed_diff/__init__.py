"""Detect new and changed entries in a syndication feed between runs."""

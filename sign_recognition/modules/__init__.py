"""Supporting modules: rule-based recognition and utilities."""

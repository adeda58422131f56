"""Core building blocks: errors, configuration, logging, constants."""

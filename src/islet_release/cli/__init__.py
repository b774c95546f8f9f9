"""islet-release command line."""

"""matcha CLI: bind, init, version."""

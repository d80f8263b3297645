"""Player documents and their store access."""

"""Discord integration: host adapter and cogs."""

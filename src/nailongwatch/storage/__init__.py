"""JSON file persistence for the whitelist and per-user moderation records."""

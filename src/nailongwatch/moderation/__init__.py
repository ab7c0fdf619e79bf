"""
Moderation for NailongWatch.

- **dispatcher.py**: picks on-demand inspection or auto moderation per message
  and handles the whitelist and "my times" commands
- **inspection.py**: annotated replies for the on-demand command
- **moderation_engine.py**: silent auto moderation with cooldown escalation
- **moderation_records.py**: per-user counters under a single lock
- **whitelist.py**: per-group opt-in guarded by a reader-writer lock
- **host.py**: the side-effect interface a chat host implements
"""

"""
Configuration management for NailongWatch.

- **app_configuration.py**: YAML loader for ``config/app_config.yml`` guarded by
  an fcntl shared lock. Falls back to defaults on missing or malformed files.
- **settings.py**: Typed accessor wrappers for the ``detection`` and
  ``moderation`` sections (model path, thresholds, commands, reply texts,
  escalation timings).
"""

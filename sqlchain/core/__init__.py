"""Core execution primitives: parameters, pagination, results, caching and statement inspection."""

"""Pure domain rules: keys, formatting, entry assembly, settings and errors."""

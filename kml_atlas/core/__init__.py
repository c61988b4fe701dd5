"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants (reserved keys, defaults, precision)
- exceptions: Custom exception hierarchy
- ingress: Query-parameter parsing and store construction for HTTP entrypoints
"""

"""
CLI command groups. Each module exposes ``register(sub)`` adding its
subcommands to the ``daokit`` parser.
"""

"""Plugin package initialiser.

Kept lightweight: concrete plugin modules (``logging``) self-register when
imported (see ``routebook.__init__`` for the eager import).
"""

__all__: list[str] = []

"""UUID generation for user ids.

This is the only module that imports uuid4.
"""

from uuid import uuid4


def generate_uuid() -> str:
    """Generate a random UUID v4 as a string."""
    return str(uuid4())

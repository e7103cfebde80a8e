"""Name validation for tasks.

Provides consistent validation rules for naming entities in taskweave.
"""

from __future__ import annotations

import re

# Letters, digits, dash, underscore and dot; must start with a letter or digit
NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

MAX_NAME_LENGTH = 64


def validate_name(name: str, entity: str = "name") -> None:
    """Validate a task name.

    Rules:
    - 1-64 characters
    - Letters, digits, dashes, underscores and dots only
    - Must start with a letter or digit

    Args:
        name: The name to validate.
        entity: What the name is for (used in error messages).

    Raises:
        ValueError: If the name is invalid.

    Example:
        >>> validate_name("fetch-users", "task")   # OK
        >>> validate_name("T1", "task")            # OK
        >>> validate_name("bad name", "task")      # ValueError
    """
    entity_cap = entity.capitalize()

    if not isinstance(name, str) or not name:
        raise ValueError(f"{entity_cap} name is required")

    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"{entity_cap} name must be {MAX_NAME_LENGTH} characters or less")

    if not NAME_PATTERN.match(name):
        raise ValueError(
            f"{entity_cap} name must contain only letters, digits, '-', '_' or '.', "
            f"and start with a letter or digit"
        )


def is_valid_name(name: str) -> bool:
    """Check if a name is valid without raising."""
    if not isinstance(name, str) or not name or len(name) > MAX_NAME_LENGTH:
        return False
    return bool(NAME_PATTERN.match(name))

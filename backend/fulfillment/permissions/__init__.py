# Overview: Role catalogue package.
# Re-exports all public APIs for short imports.

from .roles import (
    Role,
    ROLE_DEFINITIONS,
    NoteDepartment,
    NOTE_DEPARTMENTS,
    ROLE_NOTE_DEPARTMENTS,
)
from .helpers import (
    get_all_role_codes,
    get_role_definition,
    validate_role_code,
    require_role,
    get_note_departments,
)

__all__ = [
    "Role",
    "ROLE_DEFINITIONS",
    "NoteDepartment",
    "NOTE_DEPARTMENTS",
    "ROLE_NOTE_DEPARTMENTS",
    "get_all_role_codes",
    "get_role_definition",
    "validate_role_code",
    "require_role",
    "get_note_departments",
]

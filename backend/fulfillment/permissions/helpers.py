# Overview: Utility functions for role lookups and validation.

from fulfillment.validation import ValidationError

from .roles import ROLE_DEFINITIONS, ROLE_NOTE_DEPARTMENTS


def get_all_role_codes():
    """Get list of all role codes."""
    return [role[0] for role in ROLE_DEFINITIONS]


def get_role_definition(code):
    """Get full definition for a role code."""
    for role in ROLE_DEFINITIONS:
        if role[0] == code:
            return {
                "code": role[0],
                "name": role[1],
                "description": role[2],
            }
    return None


def validate_role_code(code):
    """Check if a role code is valid."""
    return code in get_all_role_codes()


def require_role(code):
    """Raise ValidationError for unknown role codes; return the code otherwise."""
    if not validate_role_code(code):
        raise ValidationError(
            f"Invalid role '{code}'. Must be one of: {', '.join(get_all_role_codes())}"
        )
    return code


def get_note_departments(code):
    """Departments whose notes the role may read."""
    return ROLE_NOTE_DEPARTMENTS[require_role(code)]

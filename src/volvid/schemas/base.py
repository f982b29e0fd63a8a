"""Base Pydantic model with strict defaults for volvid configs.

All volvid config schemas inherit from this base to ensure consistent
validation behavior across parameter, user, CLI, and internal configs.
"""

from pydantic import BaseModel, ConfigDict


class VolvidBaseModel(BaseModel):
    """Base model for all volvid configuration schemas.

    Enforces strict validation:
    - No extra fields allowed
    - Validates assignments after initialization
    - Strips whitespace from strings
    """

    model_config = ConfigDict(
        extra='forbid',           # Reject unknown fields
        validate_assignment=True, # Validate on field mutation
        use_enum_values=True,     # Convert enums to values
        str_strip_whitespace=True,# Strip whitespace from strings
    )


def split_names(v):
    """Accept ``"a,b c"`` or a list for query/measure name fields."""
    if isinstance(v, str):
        return [name for name in v.replace(",", " ").split() if name]
    return v

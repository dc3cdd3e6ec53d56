"""Common pydantic base for every Forestlens config layer."""

from pydantic import BaseModel, ConfigDict


class ForestlensBaseModel(BaseModel):
    """Strict base: unknown keys rejected, assignments re-validated.

    Enum members are stored as their string values and surrounding
    whitespace is stripped from strings. ``UserConfig`` relaxes
    ``extra`` to ignore.
    """

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )

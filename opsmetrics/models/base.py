"""Shared base for processed value trees."""

from pydantic import BaseModel, ConfigDict


class ValueModel(BaseModel):
    """
    Immutable processed value.

    Processed trees are replaced wholesale, never patched; use
    ``model_copy(update=...)`` to derive a changed copy.
    """

    model_config = ConfigDict(frozen=True)

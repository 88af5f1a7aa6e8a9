"""
Entity factory shared by the test modules.
"""
from pii_consolidation.models.entity import Entity, EntitySource, EntityType


def make_entity(
    id,
    type,
    start,
    end,
    text="",
    confidence=0.9,
    source=EntitySource.ML,
    **kwargs,
):
    """Entity factory; `type` may be an EntityType or its name."""
    if not isinstance(type, EntityType):
        type = EntityType(type)
    return Entity(
        id=id,
        type=type,
        text=text,
        start=start,
        end=end,
        confidence=confidence,
        source=source,
        **kwargs,
    )

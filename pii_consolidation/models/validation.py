"""
ValidationResult — outcome of boundary validation of a raw entity payload.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from pii_consolidation.models.entity import Entity


@dataclass
class ValidationResult:
    """Result of multi-stage raw entity validation."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    data: Optional[List[Entity]] = None

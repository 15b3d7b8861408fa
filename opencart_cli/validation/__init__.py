"""System requirements validation."""

from .requirements import RequirementCheck, RequirementsChecker

__all__ = [
    'RequirementCheck',
    'RequirementsChecker',
]

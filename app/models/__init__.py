from .project import SolarProject
from .document import Document
from .comparison_stage import ComparisonStage

__all__ = [
    "SolarProject",
    "Document",
    "ComparisonStage",
]

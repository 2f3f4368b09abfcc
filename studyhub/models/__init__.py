from studyhub.models.document import Document
from studyhub.models.question import Question

__all__ = [
    "Document",
    "Question",
]

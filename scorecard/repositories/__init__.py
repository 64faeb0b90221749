"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from scorecard.repositories.directory_repository import DirectoryRepository
from scorecard.repositories.evaluation_repository import EvaluationRepository
from scorecard.repositories.form_repository import FormRepository
from scorecard.repositories.token_repository import TokenRepository

__all__ = [
    "DirectoryRepository",
    "EvaluationRepository",
    "FormRepository",
    "TokenRepository",
]

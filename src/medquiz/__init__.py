"""On-demand medical MCQ practice backed by a text-generation model."""

from .catalog import CatalogError, SubjectCatalog, default_catalog
from .client import OpenAITextClient, RequestError, TextGenerator
from .config import AppConfig, ConfigError, load_config
from .controller import (
    AnswerOutcome,
    CountdownTimer,
    Phase,
    QuizView,
    SessionController,
)
from .session import (
    FALLBACK_QUESTION,
    Progress,
    Question,
    QuestionParseError,
    QuizResults,
    QuizSession,
    SessionState,
    parse_question,
)

__all__ = [
    "CatalogError",
    "SubjectCatalog",
    "default_catalog",
    "OpenAITextClient",
    "RequestError",
    "TextGenerator",
    "AppConfig",
    "ConfigError",
    "load_config",
    "AnswerOutcome",
    "CountdownTimer",
    "Phase",
    "QuizView",
    "SessionController",
    "FALLBACK_QUESTION",
    "Progress",
    "Question",
    "QuestionParseError",
    "QuizResults",
    "QuizSession",
    "SessionState",
    "parse_question",
]

from .app import QuizApp, SetupPreset

__all__ = ["QuizApp", "SetupPreset"]

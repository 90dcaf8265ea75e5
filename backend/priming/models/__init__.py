from priming.models.user import User, Role
from priming.models.evaluator import Evaluator, EvaluatorType
from priming.models.child import Child, Shift
from priming.models.survey import Survey, SurveyResult
from priming.models.game import Game, Level
from priming.models.progress import GameProgress

__all__ = [
    "User",
    "Role",
    "Evaluator",
    "EvaluatorType",
    "Child",
    "Shift",
    "Survey",
    "SurveyResult",
    "Game",
    "Level",
    "GameProgress",
]

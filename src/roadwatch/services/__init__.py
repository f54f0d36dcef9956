"""Business logic services for the RoadWatch application."""

from .classification import ClassifierClient, normalize_hazard_type
from .errors import (
    EngineError,
    InsufficientBalance,
    InvalidTransition,
    NotAuthorized,
    NotFound,
    StorageError,
)
from .ledger import Location, TokenEconomyEngine
from .policy import Action, can_act_on

__all__ = [
    "Action",
    "ClassifierClient",
    "EngineError",
    "InsufficientBalance",
    "InvalidTransition",
    "Location",
    "NotAuthorized",
    "NotFound",
    "StorageError",
    "TokenEconomyEngine",
    "can_act_on",
    "normalize_hazard_type",
]

from rewardapi.models.base import Base
from rewardapi.models.student import StudentProfile, LegacyStudent
from rewardapi.models.teacher import Teacher, TeacherCredit
from rewardapi.models.ledger import CoinHistory, CreditTransaction
from rewardapi.models.pokemon import (
    PokemonPool,
    StudentPokemonCollection,
    LegacyPokemonCollection,
)
from rewardapi.models.mystery_ball import DailyAttempt, MysteryBallHistory
from rewardapi.models.notification import Notification, AdminNotification

__all__ = [
    "Base",
    "StudentProfile",
    "LegacyStudent",
    "Teacher",
    "TeacherCredit",
    "CoinHistory",
    "CreditTransaction",
    "PokemonPool",
    "StudentPokemonCollection",
    "LegacyPokemonCollection",
    "DailyAttempt",
    "MysteryBallHistory",
    "Notification",
    "AdminNotification",
]

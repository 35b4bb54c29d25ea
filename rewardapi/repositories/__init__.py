from .base import BaseRepository
from .student_repository import StudentRepository
from .credit_repository import CreditRepository, TeacherRepository
from .ledger_repository import CoinHistoryRepository, CreditTransactionRepository
from .pokemon_repository import CollectionRepository, PokemonCatalogRepository
from .mystery_ball_repository import DailyAttemptRepository, MysteryBallHistoryRepository
from .notification_repository import NotificationRepository
from .legacy_repository import LegacyRepository

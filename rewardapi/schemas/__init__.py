from .context import ActorType, EconomyContext
from .coins import CoinTransactionResponse, StudentBalance
from .credits import CreditAction, TeacherCreditBalance
from .pokemon import PokemonCatalogEntry, PurchaseResponse, StudentCollectionEntry
from .mystery_ball import MysteryBallResult
from .migration import MigrationReport

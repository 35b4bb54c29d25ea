from dependency_injector import containers, providers

from rewardapi.config import Settings
from rewardapi.database.connection import SessionLocal
from rewardapi.database.session import get_db
from rewardapi.providers.events.dispatcher import create_event_dispatcher
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.services.coin_service import CoinService
from rewardapi.services.credit_service import CreditService
from rewardapi.services.daily_attempt_service import DailyAttemptService
from rewardapi.services.mystery_ball_service import MysteryBallService
from rewardapi.services.notification_service import NotificationService
from rewardapi.services.pokemon_service import PokemonService
from rewardapi.services.purchase_service import PurchaseService
from rewardapi.services.teacher_action_service import TeacherActionService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)


class RepositoryModule(containers.DeclarativeContainer):
    """Database session, local mirror and event dispatcher."""

    config = providers.DependenciesContainer()

    get_db = providers.Resource(get_db)
    mirror = providers.Singleton(LocalMirror, settings=config.config)
    dispatcher = providers.Singleton(create_event_dispatcher, session_factory=providers.Object(SessionLocal))


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies."""

    config = providers.DependenciesContainer()
    repositories = providers.DependenciesContainer()

    coin_service = providers.Factory(
        CoinService,
        db=repositories.get_db,
        mirror=repositories.mirror,
        dispatcher=repositories.dispatcher,
    )
    credit_service = providers.Factory(
        CreditService,
        db=repositories.get_db,
        mirror=repositories.mirror,
        dispatcher=repositories.dispatcher,
        config=config.config,
    )
    pokemon_service = providers.Factory(
        PokemonService,
        db=repositories.get_db,
        mirror=repositories.mirror,
        dispatcher=repositories.dispatcher,
    )
    purchase_service = providers.Factory(
        PurchaseService,
        db=repositories.get_db,
        mirror=repositories.mirror,
        dispatcher=repositories.dispatcher,
    )
    daily_attempt_service = providers.Factory(
        DailyAttemptService, db=repositories.get_db, mirror=repositories.mirror
    )
    mystery_ball_service = providers.Factory(
        MysteryBallService,
        db=repositories.get_db,
        mirror=repositories.mirror,
        dispatcher=repositories.dispatcher,
        config=config.config,
    )
    teacher_action_service = providers.Factory(
        TeacherActionService,
        db=repositories.get_db,
        mirror=repositories.mirror,
        dispatcher=repositories.dispatcher,
    )
    notification_service = providers.Factory(NotificationService, db=repositories.get_db)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "rewardapi.routers.health_router",
            "rewardapi.routers.coin_router",
            "rewardapi.routers.credit_router",
            "rewardapi.routers.pokemon_router",
            "rewardapi.routers.mystery_ball_router",
        ],
    )

    config = providers.Container(ConfigModule)
    repositories = providers.Container(RepositoryModule, config=config)
    services = providers.Container(
        ServiceModule, config=config, repositories=repositories
    )

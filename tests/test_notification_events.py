import pytest

from rewardapi.models import AdminNotification, Notification
from rewardapi.schemas.context import ActorType, EconomyContext
from rewardapi.services.coin_service import CoinService
from rewardapi.services.credit_service import CreditService
from rewardapi.services.pokemon_service import PokemonService


@pytest.fixture
def teacher_context(make_teacher):
    teacher_id = make_teacher(display_name="Mr. Elm")
    return EconomyContext(actor_id=teacher_id, actor_type=ActorType.TEACHER, actor_name="Mr. Elm")


class TestNotificationSubscriber:
    """도메인 이벤트 -> 알림 테스트"""

    def test_teacher_coin_award_notifies_student_and_owners(
        self, db_session, mirror, dispatcher, teacher_context, make_teacher, make_student
    ):
        owner_id = make_teacher(username="owner", is_owner=True)
        student = make_student()
        service = CoinService(db_session, mirror, dispatcher)

        service.award_coins(student.student_id, 5, "Quiz winner", context=teacher_context)

        notification = db_session.query(Notification).filter_by(recipient_id=student.student_id).one()
        assert notification.title == "Coins received!"
        assert notification.message == "Mr. Elm awarded you 5 coins: Quiz winner"
        assert notification.notification_metadata["new_balance"] == 5

        audit = db_session.query(AdminNotification).one()
        assert audit.recipient_id == owner_id
        assert audit.type == "coins_audit"

    def test_student_actions_do_not_notify(self, db_session, mirror, dispatcher, make_student):
        student = make_student(coins=10)
        context = EconomyContext(actor_id=student.student_id, actor_type=ActorType.STUDENT)
        service = CoinService(db_session, mirror, dispatcher)

        service.debit_coins(student.student_id, 5, "Shop purchase: Pikachu", context=context)

        assert db_session.query(Notification).count() == 0

    def test_mystery_ball_pokemon_notifies_student(
        self, db_session, mirror, dispatcher, make_student, make_pokemon
    ):
        student = make_student()
        service = PokemonService(db_session, mirror, dispatcher)

        service.award_pokemon(student.student_id, make_pokemon("Vulpix"), "mystery_ball")

        notification = db_session.query(Notification).one()
        assert notification.message == "You caught Vulpix from the Mystery Ball!"
        assert db_session.query(AdminNotification).count() == 0

    def test_credit_grant_notifies_teacher(self, db_session, mirror, dispatcher, test_settings, make_teacher):
        teacher_id = make_teacher()
        service = CreditService(db_session, mirror, dispatcher, config=test_settings)

        service.add_credits(teacher_id, 20, "Monthly top-up")

        notification = db_session.query(Notification).filter_by(recipient_id=teacher_id).one()
        assert notification.type == "credits"

    def test_broken_notification_sink_does_not_fail_ledger(
        self, db_session, mirror, teacher_context, make_student
    ):
        """알림 저장소가 망가져도 원장 결과는 성공"""
        from rewardapi.providers.events.dispatcher import create_event_dispatcher

        def broken_session_factory():
            raise RuntimeError("notification database unavailable")

        service = CoinService(db_session, mirror, create_event_dispatcher(broken_session_factory))
        student = make_student()

        result = service.award_coins(student.student_id, 3, "reward", context=teacher_context)

        assert result.success is True
        assert service.get_balance(student.student_id).coins == 3

import pytest
from unittest.mock import Mock

from rewardapi.core.exceptions import NotFoundError, ValidationError
from rewardapi.models import CreditTransaction, TeacherCredit
from rewardapi.schemas.credits import CreditAction
from rewardapi.services.credit_service import CreditService, calculate_credit_cost


@pytest.fixture
def credit_service(db_session, mirror, test_settings):
    return CreditService(db_session, mirror, config=test_settings)


def _set_credits(db_session, teacher_id, credits, unlimited=False):
    row = db_session.get(TeacherCredit, teacher_id)
    row.credits = credits
    row.unlimited_credits = unlimited
    db_session.commit()


class TestLazyBalance:
    """잔액 행 지연 생성 테스트"""

    def test_first_access_creates_starting_balance(self, credit_service, db_session, make_teacher):
        teacher_id = make_teacher()

        balance = credit_service.get_credits(teacher_id)

        assert balance.credits == 100
        assert balance.used_credits == 0
        assert balance.unlimited_credits is False
        bonus = db_session.query(CreditTransaction).filter_by(teacher_id=teacher_id).one()
        assert bonus.amount == 100
        assert bonus.reason == "Initial signup bonus"

    def test_second_access_does_not_grant_again(self, credit_service, db_session, make_teacher):
        teacher_id = make_teacher()

        credit_service.get_credits(teacher_id)
        credit_service.get_credits(teacher_id)

        assert db_session.query(CreditTransaction).filter_by(teacher_id=teacher_id).count() == 1

    def test_unknown_teacher_raises_not_found(self, credit_service):
        with pytest.raises(NotFoundError):
            credit_service.get_credits("nobody")

    def test_has_credits_unknown_teacher_is_false(self, credit_service):
        assert credit_service.has_credits("nobody", 1) is False


class TestConsumeCredits:
    """크레딧 차감 테스트"""

    def test_consume_decrements_and_tracks_usage(self, credit_service, make_teacher):
        teacher_id = make_teacher()

        assert credit_service.consume_credits(teacher_id, 5, "Create student") is True

        balance = credit_service.get_credits(teacher_id)
        assert balance.credits == 95
        assert balance.used_credits == 5

    def test_insufficient_credits_returns_false_without_mutation(
        self, credit_service, db_session, make_teacher
    ):
        """잔액 3, 필요 5 -> False, 잔액 그대로"""
        teacher_id = make_teacher()
        credit_service.get_credits(teacher_id)
        _set_credits(db_session, teacher_id, 3)

        assert credit_service.has_credits(teacher_id, 5) is False
        assert credit_service.consume_credits(teacher_id, 5, "Assign homework") is False

        balance = credit_service.get_credits(teacher_id)
        assert balance.credits == 3
        assert balance.used_credits == 0

    def test_unlimited_short_circuits_without_mutation(self, credit_service, db_session, make_teacher):
        teacher_id = make_teacher()
        credit_service.get_credits(teacher_id)
        _set_credits(db_session, teacher_id, 0, unlimited=True)

        assert credit_service.has_credits(teacher_id, 1000) is True
        assert credit_service.consume_credits(teacher_id, 1000, "Award coins") is True

        balance = credit_service.get_credits(teacher_id)
        assert balance.credits == 0
        assert balance.used_credits == 0

    def test_used_credits_is_monotonic(self, credit_service, make_teacher):
        teacher_id = make_teacher()
        previous_used = 0
        previous_credits = credit_service.get_credits(teacher_id).credits

        for amount in [10, 30, 70, 40, 5]:
            consumed = credit_service.consume_credits(teacher_id, amount, "spend")
            balance = credit_service.get_credits(teacher_id)
            assert balance.credits >= 0
            assert balance.used_credits >= previous_used
            if consumed:
                assert balance.credits == previous_credits - amount
            else:
                assert balance.credits == previous_credits
            previous_used, previous_credits = balance.used_credits, balance.credits

    def test_consume_records_negative_transaction(self, credit_service, db_session, make_teacher):
        teacher_id = make_teacher()

        credit_service.consume_credits(teacher_id, 2, "Delete pokemon", "collection", "c1")

        spend = (
            db_session.query(CreditTransaction)
            .filter(CreditTransaction.teacher_id == teacher_id, CreditTransaction.amount < 0)
            .one()
        )
        assert spend.amount == -2
        assert spend.related_entity_type == "collection"

    @pytest.mark.parametrize("amount", [0, -1])
    def test_consume_rejects_non_positive(self, credit_service, make_teacher, amount):
        teacher_id = make_teacher()
        assert credit_service.consume_credits(teacher_id, amount, "bad") is False


class TestAdminOperations:
    """관리자 크레딧 작업 테스트"""

    def test_add_credits(self, credit_service, make_teacher):
        teacher_id = make_teacher()

        balance = credit_service.add_credits(teacher_id, 50, "Monthly top-up")

        assert balance.credits == 150

    def test_add_credits_rejects_non_positive(self, credit_service, make_teacher):
        teacher_id = make_teacher()
        with pytest.raises(ValidationError):
            credit_service.add_credits(teacher_id, 0)

    def test_set_unlimited(self, credit_service, make_teacher):
        teacher_id = make_teacher()

        balance = credit_service.set_unlimited_credits(teacher_id, True)

        assert balance.unlimited_credits is True

    def test_credit_history_is_newest_first(self, credit_service, make_teacher):
        teacher_id = make_teacher()
        credit_service.consume_credits(teacher_id, 5, "first")
        credit_service.add_credits(teacher_id, 10, "second")

        history = credit_service.get_credit_history(teacher_id, limit=2)

        assert [e.reason for e in history.entries] == ["second", "first"]
        assert history.total_count == 3
        assert history.has_next is True

    def test_add_credits_publishes_event(self, db_session, mirror, test_settings, make_teacher):
        dispatcher = Mock()
        service = CreditService(db_session, mirror, dispatcher, config=test_settings)
        teacher_id = make_teacher()

        service.add_credits(teacher_id, 5)

        event = dispatcher.publish.call_args[0][0]
        assert event.teacher_id == teacher_id
        assert event.amount == 5
        assert event.credits == 105


class TestCreditCost:
    """행동별 크레딧 비용 테스트"""

    @pytest.mark.parametrize(
        "coin_reward, expected",
        [(0, 1), (1, 1), (10, 1), (11, 2), (25, 3), (100, 10)],
    )
    def test_homework_approval_cost(self, coin_reward, expected):
        assert calculate_credit_cost(CreditAction.APPROVE_HOMEWORK, coin_reward=coin_reward) == expected

    def test_fixed_costs(self):
        assert calculate_credit_cost(CreditAction.CREATE_STUDENT) == 5
        assert calculate_credit_cost(CreditAction.ASSIGN_HOMEWORK) == 5
        assert calculate_credit_cost(CreditAction.DELETE_POKEMON) == 2
        assert calculate_credit_cost(CreditAction.AWARD_POKEMON) == 1

    def test_award_coins_cost_is_proportional(self):
        assert calculate_credit_cost(CreditAction.AWARD_COINS, amount=7) == 7

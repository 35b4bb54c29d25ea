import pytest
from unittest.mock import Mock

from sqlalchemy.exc import OperationalError

from rewardapi.core.exceptions import NotFoundError, StorageError
from rewardapi.models import CoinHistory, StudentProfile
from rewardapi.schemas.context import ActorType, EconomyContext
from rewardapi.services.coin_service import CoinService


@pytest.fixture
def coin_service(db_session, mirror):
    return CoinService(db_session, mirror)


class TestAwardCoins:
    """코인 지급 테스트"""

    def test_award_coins_increments_balance(self, coin_service, make_student):
        """지급 시 잔액 증가"""
        # Given
        student = make_student(coins=5)

        # When
        result = coin_service.award_coins(student.student_id, 10, "Great work")

        # Then
        assert result.success is True
        assert result.new_balance == 15
        assert result.delta_coins == 10
        assert coin_service.get_balance(student.student_id).coins == 15

    def test_award_coins_appends_history(self, coin_service, db_session, make_student):
        """지급마다 coin_history 1건 기록"""
        student = make_student()

        result = coin_service.award_coins(
            student.student_id, 7, "Homework", related_entity_type="class", related_entity_id="c1"
        )

        rows = db_session.query(CoinHistory).filter(CoinHistory.user_id == student.student_id).all()
        assert len(rows) == 1
        assert rows[0].change_amount == 7
        assert rows[0].reason == "Homework"
        assert rows[0].related_entity_type == "class"
        assert result.transaction_id == rows[0].id

    @pytest.mark.parametrize("amount", [0, -3, 2.5, True])
    def test_award_coins_rejects_invalid_amount(self, coin_service, make_student, amount):
        """양의 정수가 아니면 VALIDATION_001"""
        student = make_student(coins=5)

        result = coin_service.award_coins(student.student_id, amount, "bad")

        assert result.success is False
        assert result.error_code == "VALIDATION_001"
        assert coin_service.get_balance(student.student_id).coins == 5

    def test_award_coins_unknown_student(self, coin_service):
        """없는 학생은 NOT_FOUND_001"""
        result = coin_service.award_coins("missing", 5, "reward")

        assert result.success is False
        assert result.error_code == "NOT_FOUND_001"

    def test_history_failure_does_not_revert_balance(self, coin_service, make_student):
        """기록 실패는 로그만 남기고 잔액 변경은 유지"""
        student = make_student(coins=1)
        coin_service.history_repo.append = Mock(side_effect=StorageError())

        result = coin_service.award_coins(student.student_id, 4, "reward")

        assert result.success is True
        assert result.transaction_id is None
        assert coin_service.get_balance(student.student_id).coins == 5


class TestRemoveCoins:
    """코인 차감 테스트"""

    def test_remove_coins_clamps_to_zero(self, coin_service, make_student):
        """잔액보다 많이 차감하면 0 으로 보정"""
        student = make_student(coins=3)

        result = coin_service.remove_coins(student.student_id, 10, "penalty")

        assert result.success is True
        assert result.new_balance == 0
        assert result.delta_coins == -3

    def test_remove_coins_partial(self, coin_service, make_student):
        student = make_student(coins=10)

        result = coin_service.remove_coins(student.student_id, 4, "penalty")

        assert result.new_balance == 6

    def test_remove_coins_records_amount_actually_removed(self, coin_service, db_session, make_student):
        """잔액 확인과 차감 사이에 지급이 끼어들어도 기록은 실제 차감량"""
        student = make_student(coins=5)
        repo = coin_service.student_repo
        read_coins = repo._current_coins
        concurrent = CoinService(db_session)
        injected = []

        def read_then_concurrent_award(student_id):
            coins = read_coins(student_id)
            if not injected:
                injected.append(concurrent.award_coins(student_id, 10, "Concurrent award"))
            return coins

        repo._current_coins = read_then_concurrent_award

        result = coin_service.remove_coins(student.student_id, 10, "penalty")

        assert injected[0].new_balance == 15
        assert result.new_balance == 5
        assert result.delta_coins == -10
        changes = [
            row.change_amount
            for row in db_session.query(CoinHistory).filter_by(user_id=student.student_id)
        ]
        assert sorted(changes) == [-10, 10]
        assert 5 + sum(changes) == result.new_balance

    def test_remove_coins_unknown_student(self, coin_service):
        result = coin_service.remove_coins("missing", 3, "penalty")

        assert result.success is False
        assert result.error_code == "NOT_FOUND_001"

    def test_debit_coins_is_strict(self, coin_service, make_student):
        """엄격 차감은 잔액 부족 시 아무것도 변경하지 않음"""
        student = make_student(coins=10)

        result = coin_service.debit_coins(student.student_id, 15, "Shop purchase: Pikachu")

        assert result.success is False
        assert result.error_code == "BALANCE_001"
        assert result.message == "You need 15 coins but only have 10"
        assert coin_service.get_balance(student.student_id).coins == 10

    def test_debit_coins_tracks_spent(self, coin_service, db_session, make_student):
        student = make_student(coins=20)

        coin_service.debit_coins(student.student_id, 15, "Shop purchase: Pikachu")

        row = db_session.get(StudentProfile, student.student_id)
        db_session.refresh(row)
        assert row.coins == 5
        assert row.spent_coins == 15


class TestCoinHistory:
    """코인 변동 기록 조회"""

    def test_history_is_newest_first_and_paginated(self, coin_service, make_student):
        student = make_student()
        coin_service.award_coins(student.student_id, 10, "Homework")
        coin_service.award_coins(student.student_id, 5, "Quiz")
        coin_service.remove_coins(student.student_id, 3, "Late")

        page = coin_service.get_coin_history(student.student_id, limit=2)

        assert page.balance == 12
        assert page.total_count == 3
        assert page.has_next is True
        assert [e.change_amount for e in page.entries] == [-3, 5]

        rest = coin_service.get_coin_history(student.student_id, limit=2, offset=2)
        assert [e.reason for e in rest.entries] == ["Homework"]
        assert rest.has_next is False

    def test_history_unknown_student(self, coin_service):
        with pytest.raises(NotFoundError):
            coin_service.get_coin_history("missing")


class TestNoNegativeBalance:
    """어떤 순서로 호출해도 잔액은 0 이상"""

    def test_sequence_keeps_balance_non_negative(self, coin_service, make_student):
        student = make_student(coins=0)
        operations = [
            ("award", 5), ("remove", 8), ("debit", 3), ("award", 2),
            ("debit", 1), ("remove", 1), ("debit", 5), ("award", 10),
        ]

        for op, amount in operations:
            if op == "award":
                coin_service.award_coins(student.student_id, amount, "r")
            elif op == "remove":
                coin_service.remove_coins(student.student_id, amount, "r")
            else:
                coin_service.debit_coins(student.student_id, amount, "r")
            assert coin_service.get_balance(student.student_id).coins >= 0


class TestStorageFailures:
    """저장소 장애 테스트"""

    def test_write_failure_raises_storage_error(self, mirror):
        """쓰기 장애는 StorageError 로 전달"""
        broken_db = Mock()
        broken_db.query.side_effect = OperationalError("UPDATE", {}, Exception("db down"))
        service = CoinService(broken_db, mirror)

        with pytest.raises(StorageError):
            service.award_coins("s1", 5, "reward")
        broken_db.rollback.assert_called()

    def test_read_failure_falls_back_to_mirror(self, coin_service, make_student, mirror):
        """읽기 장애 시 미러에 남은 마지막 잔액 반환"""
        student = make_student(coins=0)
        coin_service.award_coins(student.student_id, 12, "reward")

        broken_db = Mock()
        broken_db.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        offline = CoinService(broken_db, mirror)

        assert offline.get_balance(student.student_id).coins == 12

    def test_read_failure_without_mirror_row_is_not_found(self, mirror):
        broken_db = Mock()
        broken_db.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        offline = CoinService(broken_db, mirror)

        with pytest.raises(NotFoundError):
            offline.get_balance("unknown")


class TestCoinEvents:
    """알림 이벤트 테스트"""

    def test_teacher_award_publishes_event(self, db_session, mirror, make_student):
        dispatcher = Mock()
        service = CoinService(db_session, mirror, dispatcher)
        student = make_student()
        context = EconomyContext(actor_id="t1", actor_type=ActorType.TEACHER, actor_name="Ms. Oak")

        service.award_coins(student.student_id, 3, "Quiz", context=context)

        dispatcher.publish.assert_called_once()
        event = dispatcher.publish.call_args[0][0]
        assert event.student_id == student.student_id
        assert event.amount == 3
        assert event.new_balance == 3
        assert event.actor_name == "Ms. Oak"

    def test_failing_dispatcher_subscriber_does_not_fail_award(self, db_session, mirror, make_student):
        from rewardapi.providers.events import CoinsChangedEvent, EventDispatcher

        dispatcher = EventDispatcher()
        dispatcher.subscribe(CoinsChangedEvent, Mock(side_effect=RuntimeError("smtp down")))
        service = CoinService(db_session, mirror, dispatcher)
        student = make_student()

        result = service.award_coins(student.student_id, 3, "Quiz")

        assert result.success is True
        assert result.new_balance == 3

"""
미스터리볼 (하루 1회 무작위 보상)

시도 소비 -> 결과 추첨 -> 보상 적용 -> 기록 순서로 진행합니다.
보상 적용이 실패하면 오늘 시도를 되돌립니다.
"""

import logging
import random
from typing import Optional

from sqlalchemy.orm import Session

from rewardapi.config import Settings, settings as default_settings
from rewardapi.core.exceptions import StorageError
from rewardapi.providers.events.dispatcher import EventDispatcher
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.repositories.mystery_ball_repository import MysteryBallHistoryRepository
from rewardapi.schemas.context import EconomyContext
from rewardapi.schemas.mystery_ball import (
    MysteryBallHistoryResponse,
    MysteryBallOutcome,
    MysteryBallResult,
)
from rewardapi.services.coin_service import CoinService
from rewardapi.services.daily_attempt_service import DailyAttemptService
from rewardapi.services.pokemon_service import PokemonService

logger = logging.getLogger(__name__)


class MysteryBallService:
    def __init__(
        self,
        db: Session,
        mirror: Optional[LocalMirror] = None,
        dispatcher: Optional[EventDispatcher] = None,
        rng: Optional[random.Random] = None,
        config: Optional[Settings] = None,
        attempt_service: Optional[DailyAttemptService] = None,
    ):
        self.db = db
        self.rng = rng or random.Random()
        self.config = config or default_settings
        self.coin_service = CoinService(db, mirror, dispatcher)
        self.pokemon_service = PokemonService(db, mirror, dispatcher)
        self.attempt_service = attempt_service or DailyAttemptService(db, mirror)
        self.history_repo = MysteryBallHistoryRepository(db)

    def draw_outcome(self) -> MysteryBallOutcome:
        """결과 추첨

        MYSTERY_BALL_POKEMON_CHANCE 확률로 카탈로그 전체에서 포켓몬 1마리,
        그 외에는 [COIN_MIN, COIN_MAX] 범위의 코인. 카탈로그가 비어 있으면 코인.
        """
        if self.rng.random() < self.config.MYSTERY_BALL_POKEMON_CHANCE:
            pokemon = self.pokemon_service.draw_random_pokemon(self.rng)
            if pokemon is not None:
                return MysteryBallOutcome(result_type="pokemon", pokemon=pokemon)
            logger.warning("Mystery ball drew a pokemon but the catalog is empty; awarding coins")

        coins = self.rng.randint(
            self.config.MYSTERY_BALL_COIN_MIN, self.config.MYSTERY_BALL_COIN_MAX
        )
        return MysteryBallOutcome(result_type="coins", coins=coins)

    def roll_mystery_ball(
        self, student_id: str, context: Optional[EconomyContext] = None
    ) -> MysteryBallResult:
        """미스터리볼 1회 사용

        Returns:
            MysteryBallResult: 오늘 이미 사용했다면 error_code=DAILY_LIMIT_001
        """
        if not student_id:
            return MysteryBallResult(
                success=False, message="Student id is required", error_code="VALIDATION_001"
            )
        if self.coin_service.find_balance(student_id) is None:
            return MysteryBallResult(
                success=False,
                message=f"Student {student_id} not found",
                error_code="NOT_FOUND_001",
            )
        # can_attempt 확인 후 선점까지 사이에 다른 요청이 끼어들 수 있으므로 선점 결과로 판정
        if not self.attempt_service.can_attempt(student_id) or not self.attempt_service.consume_attempt(
            student_id
        ):
            return MysteryBallResult(
                success=False,
                message="You already opened today's Mystery Ball. Come back tomorrow!",
                error_code="DAILY_LIMIT_001",
            )

        outcome = self.draw_outcome()
        result = self._apply(student_id, outcome, context)
        self._record(student_id, outcome, granted=result.success)

        if not result.success:
            try:
                self.attempt_service.reset_attempt(student_id)
            except StorageError as e:
                logger.error(f"Failed to reset daily attempt for student {student_id}: {e}")
        return result

    def _apply(
        self,
        student_id: str,
        outcome: MysteryBallOutcome,
        context: Optional[EconomyContext],
    ) -> MysteryBallResult:
        try:
            if outcome.result_type == "pokemon":
                award = self.pokemon_service.award_pokemon(
                    student_id, outcome.pokemon.id, source="mystery_ball", context=context
                )
                if not award.success:
                    return MysteryBallResult(
                        success=False, message=award.message, error_code=award.error_code
                    )
                return MysteryBallResult(
                    success=True,
                    result_type="pokemon",
                    pokemon=outcome.pokemon,
                    collection_id=award.collection_id,
                    message=f"You caught {outcome.pokemon.name}!",
                )

            award = self.coin_service.award_coins(
                student_id,
                outcome.coins,
                reason="Mystery Ball reward",
                context=context,
                related_entity_type="mystery_ball",
            )
            if not award.success:
                return MysteryBallResult(
                    success=False, message=award.message, error_code=award.error_code
                )
            return MysteryBallResult(
                success=True,
                result_type="coins",
                coins=outcome.coins,
                new_balance=award.new_balance,
                message=f"You won {outcome.coins} coins!",
            )
        except StorageError as e:
            logger.error(
                f"Mystery ball reward failed: student={student_id} result={outcome.result_type}: {e}"
            )
            return MysteryBallResult(success=False, message=e.message, error_code=e.error_code)

    def _record(self, student_id: str, outcome: MysteryBallOutcome, granted: bool) -> None:
        """결과 기록 - 관찰용이므로 실패해도 결과에 영향 없음"""
        try:
            self.history_repo.add(
                student_id=student_id,
                result_type=outcome.result_type,
                pokemon_id=outcome.pokemon.id if outcome.pokemon else None,
                pokemon_name=outcome.pokemon.name if outcome.pokemon else None,
                coins_amount=outcome.coins,
                granted=granted,
            )
        except StorageError as e:
            logger.error(f"mystery_ball_history append failed for student {student_id}: {e}")

    def get_mystery_ball_history(
        self, student_id: str, limit: Optional[int] = None
    ) -> MysteryBallHistoryResponse:
        limit = limit or self.config.MYSTERY_BALL_HISTORY_LIMIT
        return MysteryBallHistoryResponse(
            student_id=student_id,
            history=self.history_repo.list_recent(student_id, limit=limit),
        )

"""
교사 보상 행동 - 크레딧 차감과 보상을 묶어 처리

크레딧을 먼저 차감하고, 보상이 실패하면 add_credits 로 되돌립니다.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from rewardapi.core.exceptions import AuthorizationError, NotFoundError, StorageError
from rewardapi.providers.events.dispatcher import EventDispatcher
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.schemas.coins import CoinTransactionResponse
from rewardapi.schemas.context import EconomyContext
from rewardapi.schemas.credits import CreditAction
from rewardapi.schemas.pokemon import AwardPokemonResponse, RemovePokemonResponse
from rewardapi.services.coin_service import CoinService
from rewardapi.services.credit_service import CreditService, calculate_credit_cost
from rewardapi.services.pokemon_service import PokemonService

logger = logging.getLogger(__name__)


class TeacherActionService:
    def __init__(
        self,
        db: Session,
        mirror: Optional[LocalMirror] = None,
        dispatcher: Optional[EventDispatcher] = None,
    ):
        self.db = db
        self.credit_service = CreditService(db, mirror, dispatcher)
        self.coin_service = CoinService(db, mirror, dispatcher)
        self.pokemon_service = PokemonService(db, mirror, dispatcher)

    def _require_teacher(self, context: EconomyContext) -> None:
        if not context.is_teacher:
            raise AuthorizationError("Only teachers can perform this action")

    def _insufficient_message(self, teacher_id: str, cost: int) -> str:
        try:
            available = self.credit_service.get_credits(teacher_id).credits
        except (NotFoundError, StorageError) as e:
            logger.warning(f"Could not read credits for teacher {teacher_id}: {e}")
            return f"You need {cost} credits for this action."
        return f"You need {cost} credits for this action. You have {available} credits."

    def _refund_credits(self, teacher_id: str, cost: int, action: str) -> None:
        try:
            self.credit_service.add_credits(teacher_id, cost, reason=f"Refund: failed {action}")
        except StorageError as e:
            logger.error(
                f"Credit refund failed: teacher={teacher_id} amount={cost} action={action}: {e}"
            )

    def award_coins(
        self,
        context: EconomyContext,
        student_id: str,
        amount: int,
        reason: str,
    ) -> CoinTransactionResponse:
        """교사 코인 지급 (지급 코인 수만큼 크레딧 소모)"""
        self._require_teacher(context)
        invalid = self.coin_service.validate_request(student_id, amount)
        if invalid:
            return invalid

        cost = calculate_credit_cost(CreditAction.AWARD_COINS, amount=amount)
        if not self.credit_service.consume_credits(
            context.actor_id, cost, f"Awarded {amount} coins", "student", student_id
        ):
            return CoinTransactionResponse(
                success=False,
                student_id=student_id,
                message=self._insufficient_message(context.actor_id, cost),
                error_code="BALANCE_001",
            )

        try:
            result = self.coin_service.award_coins(
                student_id, amount, reason, context=context,
                related_entity_type="teacher_award", related_entity_id=context.actor_id,
            )
        except StorageError:
            self._refund_credits(context.actor_id, cost, "coin award")
            raise

        if not result.success:
            self._refund_credits(context.actor_id, cost, "coin award")
        return result

    def award_pokemon(
        self, context: EconomyContext, student_id: str, pokemon_id: str
    ) -> AwardPokemonResponse:
        self._require_teacher(context)
        cost = calculate_credit_cost(CreditAction.AWARD_POKEMON)
        if not self.credit_service.consume_credits(
            context.actor_id, cost, "Awarded pokemon", "pokemon", pokemon_id
        ):
            return AwardPokemonResponse(
                success=False,
                message=self._insufficient_message(context.actor_id, cost),
                error_code="BALANCE_001",
            )

        try:
            result = self.pokemon_service.award_pokemon(
                student_id, pokemon_id, source="teacher_award", context=context
            )
        except StorageError:
            self._refund_credits(context.actor_id, cost, "pokemon award")
            raise

        if not result.success:
            self._refund_credits(context.actor_id, cost, "pokemon award")
        return result

    def remove_pokemon(self, context: EconomyContext, collection_id: str) -> RemovePokemonResponse:
        self._require_teacher(context)
        cost = calculate_credit_cost(CreditAction.DELETE_POKEMON)
        if not self.credit_service.consume_credits(
            context.actor_id, cost, "Removed pokemon", "collection", collection_id
        ):
            return RemovePokemonResponse(
                success=False,
                collection_id=collection_id,
                message=self._insufficient_message(context.actor_id, cost),
                error_code="BALANCE_001",
            )

        try:
            removed = self.pokemon_service.remove_pokemon(collection_id)
        except StorageError:
            self._refund_credits(context.actor_id, cost, "pokemon removal")
            raise

        if not removed:
            self._refund_credits(context.actor_id, cost, "pokemon removal")
            return RemovePokemonResponse(
                success=False,
                collection_id=collection_id,
                message=f"Collection entry {collection_id} not found",
                error_code="NOT_FOUND_001",
            )
        return RemovePokemonResponse(
            success=True, collection_id=collection_id, message="Pokemon removed"
        )

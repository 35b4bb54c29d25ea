"""
상점 구매 처리

다중 테이블 트랜잭션이 없으므로 보상 트랜잭션으로 정합성을 맞춥니다:
    가격 조회 -> 잔액 확인 -> 엄격 차감 -> 지급 -> (지급 실패 시) 환불
차감을 먼저 하므로 실패 시 상태는 "결제했지만 못 받음"이고, 환불로 복구합니다.
환불마저 실패하면 ReconciliationError 를 발생시키고 CRITICAL 로그를 남깁니다.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from rewardapi.core.exceptions import PaymentFailedError, ReconciliationError, StorageError
from rewardapi.providers.events.dispatcher import EventDispatcher
from rewardapi.providers.mirror.local_mirror import LocalMirror
from rewardapi.schemas.coins import CoinTransactionResponse
from rewardapi.schemas.context import EconomyContext
from rewardapi.schemas.pokemon import AwardPokemonResponse, PurchaseResponse
from rewardapi.services.coin_service import CoinService
from rewardapi.services.pokemon_service import PokemonService

logger = logging.getLogger(__name__)


class PurchaseService:
    def __init__(
        self,
        db: Session,
        mirror: Optional[LocalMirror] = None,
        dispatcher: Optional[EventDispatcher] = None,
    ):
        self.db = db
        self.coin_service = CoinService(db, mirror, dispatcher)
        self.pokemon_service = PokemonService(db, mirror, dispatcher)

    def purchase_pokemon(
        self,
        student_id: str,
        pokemon_id: str,
        context: Optional[EconomyContext] = None,
    ) -> PurchaseResponse:
        """상점에서 포켓몬 구매

        Args:
            student_id: 구매 학생 ID
            pokemon_id: 카탈로그 포켓몬 ID
            context: 호출 주체

        Returns:
            PurchaseResponse: 성공 시 새 보유 기록 ID, 실패 시 error_code

        Raises:
            PaymentFailedError: 차감 단계에서 저장소 장애 (잔액 변경 없음)
            ReconciliationError: 지급 실패 후 환불도 실패
        """
        if not student_id or not pokemon_id:
            return PurchaseResponse(
                success=False,
                message="Student id and pokemon id are required",
                error_code="VALIDATION_001",
            )

        # 1. 가격 조회
        pokemon = self.pokemon_service.get_catalog_entry(pokemon_id)
        if pokemon is None:
            return PurchaseResponse(
                success=False,
                message=f"Pokemon {pokemon_id} not found",
                error_code="NOT_FOUND_001",
            )
        price = pokemon.price

        # 2. 잔액 확인 (변경 없음)
        balance = self.coin_service.find_balance(student_id)
        if balance is None:
            return PurchaseResponse(
                success=False,
                price=price,
                message=f"Student {student_id} not found",
                error_code="NOT_FOUND_001",
            )
        if balance.coins < price:
            logger.info(
                f"Purchase rejected: student={student_id} pokemon={pokemon_id} "
                f"price={price} balance={balance.coins}"
            )
            return PurchaseResponse(
                success=False,
                price=price,
                new_balance=balance.coins,
                message=f"You need {price} coins but only have {balance.coins}",
                error_code="BALANCE_001",
            )

        # 3. 엄격 차감
        if price > 0:
            try:
                debit = self.coin_service.debit_coins(
                    student_id,
                    price,
                    reason=f"Shop purchase: {pokemon.name}",
                    context=context,
                    related_entity_type="shop_purchase",
                    related_entity_id=pokemon_id,
                )
            except StorageError as e:
                logger.error(
                    f"Purchase debit storage failure: student={student_id} pokemon={pokemon_id} "
                    f"price={price}: {e}"
                )
                raise PaymentFailedError(
                    message="Payment failed: could not debit coins. Please try again.",
                    details={"student_id": student_id, "pokemon_id": pokemon_id, "price": price},
                ) from e
            if not debit.success:
                logger.warning(
                    f"Purchase debit failed: student={student_id} pokemon={pokemon_id} "
                    f"price={price}: {debit.message}"
                )
                return PurchaseResponse(
                    success=False,
                    price=price,
                    new_balance=debit.new_balance,
                    message=f"Payment failed: {debit.message}",
                    error_code="PAYMENT_001",
                )
            new_balance = debit.new_balance
        else:
            new_balance = balance.coins

        # 4. 지급
        grant = self._grant(student_id, pokemon_id, context)
        if grant.success:
            logger.info(
                f"Purchase completed: student={student_id} pokemon={pokemon.name} "
                f"price={price} collection={grant.collection_id}"
            )
            return PurchaseResponse(
                success=True,
                collection_id=grant.collection_id,
                entry=grant.entry,
                price=price,
                new_balance=new_balance,
                message=f"You bought {pokemon.name}!",
            )

        # 5. 보상 트랜잭션 (환불)
        if price == 0:
            return PurchaseResponse(
                success=False,
                price=price,
                new_balance=new_balance,
                message=f"Could not add {pokemon.name} to your collection",
                error_code="PAYMENT_001",
            )

        refund = self._refund(student_id, pokemon_id, pokemon.name, price, context)
        return PurchaseResponse(
            success=False,
            price=price,
            new_balance=refund.new_balance,
            refunded=True,
            message=f"Could not add {pokemon.name} to your collection. Your {price} coins were refunded.",
            error_code="PAYMENT_001",
        )

    def _grant(
        self, student_id: str, pokemon_id: str, context: Optional[EconomyContext]
    ) -> AwardPokemonResponse:
        try:
            return self.pokemon_service.award_pokemon(
                student_id, pokemon_id, source="shop_purchase", context=context
            )
        except StorageError as e:
            logger.error(f"Purchase grant failed: student={student_id} pokemon={pokemon_id}: {e}")
            return AwardPokemonResponse(success=False, message=str(e), error_code=e.error_code)

    def _refund(
        self,
        student_id: str,
        pokemon_id: str,
        pokemon_name: str,
        price: int,
        context: Optional[EconomyContext],
    ) -> CoinTransactionResponse:
        details = {
            "operation": "purchase_refund",
            "student_id": student_id,
            "pokemon_id": pokemon_id,
            "amount": price,
        }
        try:
            refund = self.coin_service.award_coins(
                student_id,
                price,
                reason=f"Refund for failed {pokemon_name} purchase",
                context=context,
                related_entity_type="shop_refund",
                related_entity_id=pokemon_id,
            )
        except StorageError as e:
            logger.critical(
                f"RECONCILIATION REQUIRED: refund raised after failed grant "
                f"student={student_id} pokemon={pokemon_id} amount={price}: {e}"
            )
            raise ReconciliationError(details=details) from e

        if not refund.success:
            logger.critical(
                f"RECONCILIATION REQUIRED: refund rejected after failed grant "
                f"student={student_id} pokemon={pokemon_id} amount={price}: {refund.message}"
            )
            raise ReconciliationError(details=details)

        logger.warning(
            f"Purchase refunded: student={student_id} pokemon={pokemon_id} amount={price}"
        )
        return refund

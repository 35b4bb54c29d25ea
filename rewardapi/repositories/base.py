import logging
from abc import ABC
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rewardapi.core.exceptions import StorageError
from rewardapi.providers.mirror.local_mirror import LocalMirror

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T, SchemaType], ABC):
    """
    모든 리포지토리의 베이스 클래스 - Pydantic 응답 보장

    - 원격 DB 쓰기 실패는 롤백 후 StorageError 로 변환
    - 원격 DB 읽기 실패는 로컬 미러(Redis)로 대체
    - 성공한 읽기/쓰기 결과는 미러에 write-through
    """

    # 미러/조회 기준 컬럼 (모델 속성명)
    key_column: str = "id"
    # 스키마에서 키 값을 읽을 필드명
    schema_key_field: str = "id"

    def __init__(
        self,
        model_class: Type[T],
        schema_class: Type[SchemaType],
        db: Session,
        mirror: Optional[LocalMirror] = None,
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db
        self.mirror = mirror

    @property
    def table_name(self) -> str:
        return getattr(self.model_class, "__tablename__")

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        """SQLAlchemy 모델을 Pydantic 스키마로 변환"""
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance.to_row())

    def _ensure_clean_session(self) -> None:
        """실패한 트랜잭션이 남아 있으면 롤백하여 세션을 정상화"""
        if not getattr(self.db, "is_active", True):
            self.db.rollback()

    def _storage_error(self, operation: str, error: Exception) -> StorageError:
        """롤백 후 StorageError 생성 (호출부에서 raise)"""
        try:
            self.db.rollback()
        except SQLAlchemyError as rollback_error:
            logger.warning(f"Rollback failed after {operation}: {rollback_error}")
        logger.error(f"Storage {operation} failed on {self.table_name}: {error}")
        return StorageError(details={"operation": operation, "table": self.table_name})

    # ------------------------------------------------------------------
    # Local mirror helpers
    # ------------------------------------------------------------------

    def _remember(self, schema: Optional[SchemaType]) -> None:
        if schema is None or self.mirror is None:
            return
        key = getattr(schema, self.schema_key_field)
        self.mirror.put(self.table_name, str(key), schema.model_dump(mode="json"))

    def _forget(self, key: Any) -> None:
        if self.mirror is not None:
            self.mirror.delete(self.table_name, str(key))

    def _recall(self, key: Any) -> Optional[SchemaType]:
        if self.mirror is None:
            return None
        row = self.mirror.get(self.table_name, str(key))
        return self.schema_class.model_validate(row) if row else None

    def _recall_all(self, filters: Optional[Dict[str, Any]] = None) -> List[SchemaType]:
        if self.mirror is None:
            return []
        results = []
        for row in self.mirror.all(self.table_name):
            if filters and any(row.get(k) != v for k, v in filters.items()):
                continue
            results.append(self.schema_class.model_validate(row))
        return results

    # ------------------------------------------------------------------
    # Generic CRUD
    # ------------------------------------------------------------------

    def _filtered_query(self, filters: Optional[Dict[str, Any]] = None):
        query = self.db.query(self.model_class)
        if filters:
            for key, value in filters.items():
                if hasattr(self.model_class, key):
                    query = query.filter(getattr(self.model_class, key) == value)
        return query

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        """키로 조회 - DB 실패 시 미러 값 반환"""
        self._ensure_clean_session()
        try:
            model_instance = (
                self.db.query(self.model_class)
                .filter(getattr(self.model_class, self.key_column) == id)
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            self._storage_error("read", e)
            logger.warning(f"Falling back to mirror for {self.table_name}/{id}")
            return self._recall(id)

        schema = self._to_schema(model_instance)
        self._remember(schema)
        return schema

    def find_all(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[SchemaType]:
        """조건에 맞는 모든 레코드 조회 - DB 실패 시 미러 값 반환"""
        self._ensure_clean_session()
        try:
            query = self._filtered_query(filters).populate_existing()

            if order_by and hasattr(self.model_class, order_by):
                query = query.order_by(getattr(self.model_class, order_by))

            if offset:
                query = query.offset(offset)

            if limit:
                query = query.limit(limit)

            model_instances = query.all()
        except SQLAlchemyError as e:
            self._storage_error("read", e)
            logger.warning(f"Falling back to mirror for {self.table_name} listing")
            rows = self._recall_all(filters)
            start = offset or 0
            return rows[start : start + limit] if limit else rows[start:]

        results = []
        for instance in model_instances:
            schema_instance = self._to_schema(instance)
            if schema_instance is not None:
                self._remember(schema_instance)
                results.append(schema_instance)
        return results

    def create(self, commit: bool = True, **kwargs) -> Optional[SchemaType]:
        """새 레코드 생성 - Pydantic 스키마 반환"""
        self._ensure_clean_session()
        instance = self.model_class(**kwargs)
        try:
            self.db.add(instance)
            self.db.flush()
            self.db.refresh(instance)
            if commit:
                self.db.commit()
        except SQLAlchemyError as e:
            raise self._storage_error("insert", e)

        schema = self._to_schema(instance)
        self._remember(schema)
        return schema

    def update(
        self, instance_id: Any, commit: bool = True, **kwargs
    ) -> Optional[SchemaType]:
        """레코드 업데이트 - 대상이 없으면 None"""
        self._ensure_clean_session()
        try:
            instance = (
                self.db.query(self.model_class)
                .filter(getattr(self.model_class, self.key_column) == instance_id)
                .first()
            )
            if not instance:
                return None

            for key, value in kwargs.items():
                if hasattr(instance, key):
                    setattr(instance, key, value)

            self.db.flush()
            self.db.refresh(instance)
            if commit:
                self.db.commit()
        except SQLAlchemyError as e:
            raise self._storage_error("update", e)

        schema = self._to_schema(instance)
        self._remember(schema)
        return schema

    def delete(self, instance_id: Any, commit: bool = True) -> bool:
        """레코드 삭제 - 대상이 없으면 False"""
        self._ensure_clean_session()
        try:
            deleted = (
                self.db.query(self.model_class)
                .filter(getattr(self.model_class, self.key_column) == instance_id)
                .delete(synchronize_session=False)
            )
            if commit:
                self.db.commit()
        except SQLAlchemyError as e:
            raise self._storage_error("delete", e)

        if deleted:
            self._forget(instance_id)
        return bool(deleted)

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """레코드 수 조회"""
        self._ensure_clean_session()
        try:
            return self._filtered_query(filters).count()
        except SQLAlchemyError as e:
            self._storage_error("count", e)
            return len(self._recall_all(filters))

    def exists(self, filters: Dict[str, Any]) -> bool:
        """레코드 존재 여부 확인"""
        self._ensure_clean_session()
        try:
            return self._filtered_query(filters).first() is not None
        except SQLAlchemyError as e:
            raise self._storage_error("read", e)

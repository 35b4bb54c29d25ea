import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy.orm import Session

from rewardapi.database.connection import SessionLocal

logger = logging.getLogger(__name__)


def get_db() -> Iterator[Session]:
    """요청 단위 세션 (커밋은 리포지토리가 연산마다 수행)"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        if db.in_transaction():
            logger.warning("Rolling back request session after an error")
            db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_context(session_factory: Callable[[], Session] = SessionLocal) -> Iterator[Session]:
    """요청 밖에서 쓰는 독립 세션 (이벤트 구독자, 스크립트)

    블록이 정상 종료하면 커밋, 예외가 나면 롤백 후 다시 raise 합니다.
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

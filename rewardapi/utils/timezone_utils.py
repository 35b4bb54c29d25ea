"""
타임존 유틸리티

미스터리볼 일일 시도 등 "오늘" 기준이 필요한 로직에서 사용
"""

from datetime import date, datetime
from typing import Optional

import pytz

from rewardapi.config import settings


def get_timezone(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or settings.TIMEZONE)


def get_now(tz_name: Optional[str] = None) -> datetime:
    """설정된 타임존 기준 현재 시각을 반환합니다."""
    return datetime.now(get_timezone(tz_name))


def get_today(tz_name: Optional[str] = None) -> date:
    """설정된 타임존 기준 오늘 날짜를 반환합니다."""
    return get_now(tz_name).date()


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()

from datetime import date, datetime, timedelta

import pytest

from voicetask_scheduler import InMemoryDataSource, Settings, create_scheduling_service

# 2025-06-01 is a Sunday; 2025-06-02 is the following Monday
NOW = datetime(2025, 6, 1, 8, 0)
SUNDAY = date(2025, 6, 1)
MONDAY = date(2025, 6, 2)
TUESDAY = date(2025, 6, 3)


class FakeClock:
    """Clock whose time only moves when told to"""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def timestamp(self) -> float:
        return self.current.timestamp()


@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def data_source():
    return InMemoryDataSource()


@pytest.fixture
def service(data_source, settings, clock):
    return create_scheduling_service(
        data_source, settings=settings, clock=clock, timer=clock.timestamp
    )

"""Shared fixtures for the dashboard test suite."""

from datetime import datetime

import pytest

from storage import EntryStore, MemoryKeyValueStore, StaticIdentity

HEADER = (
    '"Reporting starts","Reporting ends","Campaign name","Campaign Delivery",'
    '"Attribution setting","Results","Result indicator","Reach","Impressions",'
    '"Amount spent (USD)","Link clicks","Cost per results"'
)

DM_INDICATOR = "actions:onsite_conversion.messaging_conversation_started_7d"

SAMPLE_CSV = "\n".join([
    HEADER,
    f'2025-06-20,2025-06-20,Test,active,7-day click,5,{DM_INDICATOR},800,1000,100.00,50,20.00',
    f'2025-06-20,2025-06-20,"Retarget, Warm",inactive,7-day click,3,{DM_INDICATOR},150,500,30.00,10,10.00',
    '2025-06-21,2025-06-21,Test,active,7-day click,4,actions:link_click,300,400,20.00,20,5.00',
    f'2025-06-21,2025-06-21,Cold Traffic,active,7-day click,2,{DM_INDICATOR},100,200,,5,',
    f'2025-06-20,2025-06-21,,,,10,{DM_INDICATOR},900,1500,130.00,60,',
    f'2025-06-20,2025-06-20,Instagram post: Summer sale,active,7-day click,1,{DM_INDICATOR},50,80,10.00,2,10.00',
    '"","",Totals,,,,,,,,,',
    f'2025-06-21,2025-06-21,All campaigns,0,7-day click,2,{DM_INDICATOR},400,600,20.00,25,',
    "",
])


class FixedClock:
    """Callable clock whose time can be moved by tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 6, 25, 12, 0, 0))


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv, clock) -> EntryStore:
    """EntryStore for user u1 over an in-memory key-value store."""
    return EntryStore(kv, identity=StaticIdentity("u1"), clock=clock)

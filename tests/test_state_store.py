from lunarlink.schemas.code import SpeedTier
from lunarlink.services.issuance import IssuanceState, IssuanceStatus
from lunarlink.services.state_store import KEY_PREFIX, MemoryStateStore, RedisStateStore, build_state_store

SHOWN = IssuanceState(status=IssuanceStatus.CODE_SHOWN, code="ABC", speed_tier=SpeedTier.MBPS_50, retry_count=2)


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.expiry = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex

    def delete(self, key):
        self.data.pop(key, None)


def test_memory_store():
    store = MemoryStateStore()
    assert store.load("s1") == IssuanceState()

    store.save("s1", SHOWN)
    assert store.load("s1") == SHOWN
    assert store.load("s2") == IssuanceState()

    store.delete("s1")
    assert store.load("s1") == IssuanceState()


def test_redis_store():
    client = FakeRedis()
    store = RedisStateStore(client, ttl_seconds=120)

    store.save("s1", SHOWN)

    assert client.expiry[KEY_PREFIX + "s1"] == 120
    assert store.load("s1") == SHOWN

    store.delete("s1")
    assert store.load("s1") == IssuanceState()


def test_build_without_redis_url_uses_memory():
    assert isinstance(build_state_store(None), MemoryStateStore)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_memory_store_does_not_keep_idle_states():
    store = MemoryStateStore()

    for i in range(100):
        store.save(f"s{i}", SHOWN)
        store.save(f"s{i}", IssuanceState())

    assert store.active_sessions() == 0


def test_memory_store_entries_expire():
    clock = FakeClock()
    store = MemoryStateStore(ttl_seconds=60, clock=clock)
    store.save("old", SHOWN)

    clock.now += 30
    store.save("new", SHOWN)
    assert store.load("old") == SHOWN

    clock.now += 31
    assert store.load("old") == IssuanceState()
    assert store.load("new") == SHOWN
    assert store.active_sessions() == 1


def test_redis_store_drops_idle_state():
    client = FakeRedis()
    store = RedisStateStore(client)
    store.save("s1", SHOWN)

    store.save("s1", IssuanceState())

    assert KEY_PREFIX + "s1" not in client.data


def test_build_passes_ttl_to_memory_store():
    assert build_state_store(None, ttl_seconds=90).ttl_seconds == 90

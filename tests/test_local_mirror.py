from rewardapi.config import Settings
from rewardapi.providers.mirror.local_mirror import LocalMirror


class TestLocalMirror:
    def test_put_get_delete(self, mirror, fake_redis):
        assert mirror.put("student_profiles", "s1", {"student_id": "s1", "coins": 3}) is True

        assert mirror.get("student_profiles", "s1") == {"student_id": "s1", "coins": 3}
        assert "test:mirror:student_profiles" in fake_redis.store

        assert mirror.delete("student_profiles", "s1") is True
        assert mirror.get("student_profiles", "s1") is None

    def test_all_returns_every_row_of_table(self, mirror):
        mirror.put("pokemon_pool", "p1", {"id": "p1"})
        mirror.put("pokemon_pool", "p2", {"id": "p2"})
        mirror.put("student_profiles", "s1", {"student_id": "s1"})

        rows = mirror.all("pokemon_pool")

        assert sorted(row["id"] for row in rows) == ["p1", "p2"]

    def test_broken_redis_never_raises(self, broken_mirror):
        mirror = broken_mirror

        assert mirror.put("student_profiles", "s1", {"coins": 1}) is False
        assert mirror.get("student_profiles", "s1") is None
        assert mirror.delete("student_profiles", "s1") is False
        assert mirror.all("student_profiles") == []
        assert mirror.ping() is False

    def test_disabled_mirror_is_a_no_op(self, fake_redis):
        mirror = LocalMirror(Settings(MIRROR_ENABLED=False), client=fake_redis)

        assert mirror.put("student_profiles", "s1", {"coins": 1}) is False
        assert mirror.get("student_profiles", "s1") is None
        assert fake_redis.store == {}

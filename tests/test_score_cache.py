# tests/test_score_cache.py
"""
Score Cache and Scoring Service Tests - TTL, size bound, implicit invalidation
"""

import threading
import time
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from meddpicc_scoring.core.exceptions import ConfigurationNotFoundError
from meddpicc_scoring.models.assessment import QualificationScore
from meddpicc_scoring.models.enumerations import RiskLevel
from meddpicc_scoring.models.response import Response
from meddpicc_scoring.services.redis_cache import RedisCache
from meddpicc_scoring.services.score_cache import CacheSweeper, ScoreCache, responses_digest
from meddpicc_scoring.services.scoring_service import ScoringService

ORG_ID = "org-acme"
ACTOR_ID = "user-admin"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_score(total=50.0):
    return QualificationScore(
        total_score=total,
        risk_level=RiskLevel.MEDIUM,
        per_pillar_breakdown=[],
        config_version_used=1,
    )


def key(cache, entity, version=1, responses=()):
    return cache.make_key(entity, ORG_ID, version, list(responses))


class TestScoreCache:

    def test_hit_within_ttl_and_miss_after(self):
        clock = FakeClock()
        cache = ScoreCache(ttl_seconds=300, max_entries=10, clock=clock)
        k = key(cache, "opp-1")
        stored = cache.put(k, make_score())

        clock.advance(299)
        assert cache.get(k) == stored

        clock.advance(1)
        assert cache.get(k) is None
        assert cache.stats()["expirations"] == 1

    def test_size_never_exceeds_max_and_oldest_evicted(self):
        cache = ScoreCache(ttl_seconds=300, max_entries=3)
        keys = [key(cache, f"opp-{i}") for i in range(5)]
        for k in keys:
            cache.put(k, make_score())
            assert len(cache) <= 3

        assert cache.keys() == keys[2:]
        assert cache.stats()["evictions"] == 2

    def test_recompute_refreshes_position(self):
        cache = ScoreCache(ttl_seconds=300, max_entries=2)
        a, b, c = (key(cache, e) for e in ("a", "b", "c"))
        cache.put(a, make_score())
        cache.put(b, make_score())
        cache.put(a, make_score(60.0))
        cache.put(c, make_score())

        assert cache.keys() == [a, c]

    def test_last_calculated_non_decreasing(self):
        stamps = iter([
            datetime(2026, 1, 1, 12, 0, 5, tzinfo=timezone.utc),
            datetime(2026, 1, 1, 12, 0, 1, tzinfo=timezone.utc),
        ])
        cache = ScoreCache(now=lambda: next(stamps))
        first = cache.put(key(cache, "a"), make_score())
        second = cache.put(key(cache, "b"), make_score())
        assert second.last_calculated >= first.last_calculated

    def test_sweep_removes_expired_only(self):
        clock = FakeClock()
        cache = ScoreCache(ttl_seconds=10, max_entries=10, clock=clock)
        old = key(cache, "old")
        cache.put(old, make_score())
        clock.advance(6)
        fresh = key(cache, "fresh")
        cache.put(fresh, make_score())
        clock.advance(5)

        assert cache.sweep() == 1
        assert cache.keys() == [fresh]

    def test_clear(self):
        cache = ScoreCache()
        cache.put(key(cache, "a"), make_score())
        cache.put(key(cache, "b"), make_score())
        assert cache.clear() == 2
        assert len(cache) == 0

    def test_responses_digest_changes_with_answers(self):
        first = [Response(pillar_id="p", question_id="q", answer="a")]
        second = [Response(pillar_id="p", question_id="q", answer="b")]
        assert responses_digest(first) != responses_digest(second)
        assert responses_digest(first) == responses_digest(list(first))

    def test_max_entries_must_be_positive(self):
        with pytest.raises(ValueError):
            ScoreCache(max_entries=0)

    def test_concurrent_puts_respect_bound(self):
        cache = ScoreCache(ttl_seconds=300, max_entries=50)

        def writer(prefix):
            for i in range(200):
                cache.put(key(cache, f"{prefix}-{i}"), make_score())

        threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 50


class TestCacheSweeper:

    def test_sweeper_runs_and_stops(self):
        cache = MagicMock()
        swept = threading.Event()
        cache.sweep.side_effect = lambda: swept.set()

        sweeper = CacheSweeper(cache, interval_seconds=0.01)
        sweeper.start()
        assert swept.wait(timeout=2)
        sweeper.stop()

        assert not sweeper.is_alive()

    def test_sweep_failure_does_not_kill_thread(self):
        cache = MagicMock()
        calls = []

        def flaky_sweep():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        cache.sweep.side_effect = flaky_sweep
        sweeper = CacheSweeper(cache, interval_seconds=0.01)
        sweeper.start()
        for _ in range(200):
            if len(calls) >= 2:
                break
            time.sleep(0.01)
        sweeper.stop()

        assert len(calls) >= 2


class TestScoringService:

    def responses(self, answer="About $2M per year in lost revenue"):
        return [Response(pillar_id="metrics", question_id="current_cost", answer=answer)]

    def test_second_call_served_from_cache(self, scoring_service, active_balanced):
        with patch.object(
            scoring_service.scorer, "compute_score", wraps=scoring_service.scorer.compute_score
        ) as spy:
            first = scoring_service.get_score("opp-1", self.responses(), ORG_ID)
            second = scoring_service.get_score("opp-1", self.responses(), ORG_ID)

        assert spy.call_count == 1
        assert first == second
        assert first.last_calculated == second.last_calculated
        assert first.config_version_used == 1
        assert first.entity_id == "opp-1"

    def test_changed_responses_recompute(self, scoring_service, active_balanced):
        first = scoring_service.get_score("opp-1", self.responses(), ORG_ID)
        second = scoring_service.get_score("opp-1", self.responses("n/a"), ORG_ID)
        assert len(scoring_service.cache) == 2
        assert first.total_score != second.total_score

    def test_new_active_version_changes_key(self, scoring_service, store, active_balanced, balanced_rubric):
        before = scoring_service.get_score("opp-1", self.responses(), ORG_ID)

        saved = store.save_configuration(ORG_ID, balanced_rubric.pillars, balanced_rubric.thresholds, ACTOR_ID)
        store.activate_configuration(ORG_ID, saved.version, ACTOR_ID)
        after = scoring_service.get_score("opp-1", self.responses(), ORG_ID)

        assert before.config_version_used == 1
        assert after.config_version_used == 2

    def test_cache_failure_degrades_to_recompute(self, store, active_balanced):
        broken = MagicMock(spec=ScoreCache)
        broken.get.side_effect = MemoryError("cache exhausted")
        broken.put.side_effect = MemoryError("cache exhausted")
        broken.ttl_seconds = 300
        service = ScoringService(store=store, cache=broken)

        result = service.get_score("opp-1", self.responses(), ORG_ID)
        assert result.total_score > 0
        assert result.last_calculated.tzinfo is not None

    def test_unknown_organization(self, scoring_service):
        with pytest.raises(ConfigurationNotFoundError):
            scoring_service.get_score("opp-1", [], "org-unknown")

    def test_simple_format_scoring_reports_fallbacks(self, scoring_service, active_balanced):
        result = scoring_service.get_score_from_simple(
            "opp-1",
            {"metrics": "free text without a label", "ghost": "x"},
            ORG_ID,
        )
        assert result.per_pillar_breakdown[0].answered_questions == 1
        assert any("assigned to question current_cost" in w for w in result.warnings)
        assert "Unknown question reference ghost" in result.warnings

    def test_redis_tier_used_when_local_misses(self, store, active_balanced):
        redis_cache = MagicMock()
        redis_cache.get.return_value = None
        service = ScoringService(store=store, cache=ScoreCache(), redis_cache=redis_cache)

        result = service.get_score("opp-1", self.responses(), ORG_ID)

        redis_cache.set.assert_called_once()
        stored_key, stored_value, ttl = redis_cache.set.call_args[0]
        assert stored_key.startswith(f"meddpicc:score:{ORG_ID}:opp-1:v1:")
        assert stored_value == result
        assert ttl == 300

    def test_clear_cache_clears_both_tiers(self, store, active_balanced):
        redis_cache = MagicMock()
        redis_cache.get.return_value = None
        redis_cache.delete_pattern.return_value = 3
        service = ScoringService(store=store, cache=ScoreCache(), redis_cache=redis_cache)
        service.get_score("opp-1", self.responses(), ORG_ID)

        assert service.clear_cache() == 4
        redis_cache.delete_pattern.assert_called_once_with("meddpicc:score:*")

    def test_redis_hit_fills_local_tier(self, store, active_balanced):
        shared = {}
        redis_cache = MagicMock()
        redis_cache.get.side_effect = lambda key, model: shared.get(key)
        redis_cache.set.side_effect = lambda key, value, ttl: shared.__setitem__(key, value)

        ScoringService(store=store, cache=ScoreCache(), redis_cache=redis_cache).get_score(
            "opp-1", self.responses(), ORG_ID
        )
        other = ScoringService(store=store, cache=ScoreCache(), redis_cache=redis_cache)
        with patch.object(other.scorer, "compute_score") as compute:
            first = other.get_score("opp-1", self.responses(), ORG_ID)
            second = other.get_score("opp-1", self.responses(), ORG_ID)

        compute.assert_not_called()
        assert len(other.cache) == 1
        assert redis_cache.get.call_count == 2  # one miss for the first service, one hit for the other
        assert first == second
        assert first.entity_id == "opp-1"
        assert first.total_score > 0

    def test_corrupt_redis_entry_recomputes(self, store, active_balanced):
        with patch("meddpicc_scoring.services.redis_cache.redis.from_url") as from_url:
            client = MagicMock()
            client.get.return_value = '{"total_score": "not a number"}'
            from_url.return_value = client
            service = ScoringService(store=store, cache=ScoreCache(), redis_cache=RedisCache("redis://test"))

            result = service.get_score("opp-1", self.responses(), ORG_ID)

        assert result.total_score > 0
        assert len(service.cache) == 1
        client.setex.assert_called_once()

"""
Scoring Service - MEDDPICC Scoring Engine
meddpicc_scoring/services/scoring_service.py

get_score flow:
  1. Read the organization's active configuration (no cache lock held)
  2. Key = (entity, organization, config version, responses digest)
  3. Fresh local entry → return it
  4. Shared Redis entry (when enabled) → copy it into the local tier, return it
  5. Otherwise compute, store in both tiers, return

Cache failures never fail a score request; they are logged and the score
is recomputed.
"""

from datetime import datetime, timezone
from typing import Dict, Optional, Sequence

import redis
import structlog
from pydantic import ValidationError

from meddpicc_scoring.models.assessment import AssessmentResult, QualificationScore
from meddpicc_scoring.models.configuration import Configuration
from meddpicc_scoring.models.response import Response
from meddpicc_scoring.scoring.qualification_scorer import QualificationScorer
from meddpicc_scoring.scoring.response_normalizer import ParseReport, ResponseNormalizer
from meddpicc_scoring.services.configuration_store import ConfigurationStore
from meddpicc_scoring.services.redis_cache import RedisCache, SCORE_KEY_PREFIX, score_key
from meddpicc_scoring.services.score_cache import CacheEntry, CacheKey, ScoreCache

logger = structlog.get_logger(__name__)


class ScoringService:
    """Get-or-compute qualification scores for business entities."""

    def __init__(
        self,
        store: ConfigurationStore,
        cache: ScoreCache,
        scorer: Optional[QualificationScorer] = None,
        normalizer: Optional[ResponseNormalizer] = None,
        redis_cache: Optional[RedisCache] = None,
    ):
        self.store = store
        self.cache = cache
        self.scorer = scorer or QualificationScorer()
        self.normalizer = normalizer or ResponseNormalizer()
        self.redis_cache = redis_cache

    def get_score(
        self,
        entity_id: str,
        responses: Sequence[Response],
        organization_id: str,
    ) -> AssessmentResult:
        """
        Score responses against the organization's active configuration.

        Raises:
            ConfigurationNotFoundError: the organization has no active configuration
        """
        configuration = self.store.get_active_configuration(organization_id)
        return self._get_or_compute(entity_id, list(responses), configuration)

    def get_score_from_simple(
        self,
        entity_id: str,
        simple_responses: Dict[str, str],
        organization_id: str,
    ) -> AssessmentResult:
        """Parse one text blob per pillar, then score like get_score."""
        configuration = self.store.get_active_configuration(organization_id)
        report = ParseReport()
        responses = []
        for pillar_id, text in simple_responses.items():
            responses.extend(
                self.normalizer.to_comprehensive_format(pillar_id, text, configuration, report)
            )

        result = self._get_or_compute(entity_id, responses, configuration)
        if report.messages:
            result = result.model_copy(update={"warnings": result.warnings + report.messages})
        return result

    def clear_cache(self) -> int:
        """Drop every local entry and, when enabled, the shared score keys."""
        cleared = self.cache.clear()
        if self.redis_cache is not None:
            try:
                cleared += self.redis_cache.delete_pattern(f"{SCORE_KEY_PREFIX}:*")
            except redis.RedisError as e:
                logger.warning("redis_cache_unavailable", operation="clear", error=str(e))
        return cleared

    def _get_or_compute(
        self,
        entity_id: str,
        responses: Sequence[Response],
        configuration: Configuration,
    ) -> AssessmentResult:
        organization_id = configuration.organization_id
        key = ScoreCache.make_key(entity_id, organization_id, configuration.version, responses)

        entry = self._cache_get(key)
        if entry is not None:
            logger.debug("score_cache_hit", entity_id=entity_id, config_version=key.config_version)
            return self._to_result(entry)

        shared = self._redis_get(key)
        if shared is not None:
            logger.debug("score_redis_hit", entity_id=entity_id, config_version=key.config_version)
            score = QualificationScore.model_validate(
                shared.model_dump(include=set(QualificationScore.model_fields))
            )
            entry = self._cache_put(key, score)
            return shared if entry is None else self._to_result(entry)

        score = self.scorer.compute_score(responses, configuration)
        entry = self._cache_put(key, score)
        if entry is None:
            # Local tier unavailable: build the result directly
            result = AssessmentResult(
                **score.model_dump(),
                entity_id=entity_id,
                organization_id=organization_id,
                last_calculated=datetime.now(timezone.utc),
            )
        else:
            result = self._to_result(entry)

        self._redis_set(key, result)
        logger.info(
            "entity_scored",
            entity_id=entity_id,
            organization_id=organization_id,
            config_version=configuration.version,
            total_score=result.total_score,
            risk_level=result.risk_level.value,
        )
        return result

    def _to_result(self, entry: CacheEntry) -> AssessmentResult:
        return AssessmentResult(
            **entry.payload.model_dump(),
            entity_id=entry.key.entity_id,
            organization_id=entry.key.organization_id,
            last_calculated=entry.last_calculated,
        )

    def _cache_get(self, key: CacheKey) -> Optional[CacheEntry]:
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning("score_cache_degraded", operation="get", error=str(e))
            return None

    def _cache_put(self, key: CacheKey, score) -> Optional[CacheEntry]:
        try:
            return self.cache.put(key, score)
        except Exception as e:
            logger.warning("score_cache_degraded", operation="put", error=str(e))
            return None

    def _redis_get(self, key: CacheKey) -> Optional[AssessmentResult]:
        if self.redis_cache is None:
            return None
        try:
            return self.redis_cache.get(self._redis_key(key), AssessmentResult)
        except redis.RedisError as e:
            logger.warning("redis_cache_unavailable", operation="get", error=str(e))
            return None
        except ValidationError as e:
            # Overwritten by the recompute that follows
            logger.warning("redis_cache_corrupt_entry", key=self._redis_key(key), errors=e.error_count())
            return None

    def _redis_set(self, key: CacheKey, result: AssessmentResult) -> None:
        if self.redis_cache is None:
            return
        try:
            self.redis_cache.set(self._redis_key(key), result, int(self.cache.ttl_seconds))
        except redis.RedisError as e:
            logger.warning("redis_cache_unavailable", operation="set", error=str(e))

    @staticmethod
    def _redis_key(key: CacheKey) -> str:
        return score_key(key.entity_id, key.organization_id, key.config_version, key.responses_digest)

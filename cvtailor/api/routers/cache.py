"""
Cache API endpoints.

Routes: GET /cache/stats

Dependencies: cvtailor.application.services.result_cache
System role: Cache monitoring HTTP API
"""

from fastapi import APIRouter, Depends, HTTPException, status

from cvtailor.api.deps import get_result_cache
from cvtailor.application.services.result_cache import CacheStats, ResultCache
from cvtailor.models.analysis import CacheRecommendation, CacheStatsResponse

router = APIRouter(prefix="/cache", tags=["cache"])


def build_recommendations(stats: CacheStats) -> list[CacheRecommendation]:
    """Operational hints derived from cache usage."""
    recommendations = []
    if stats.total_entries == 0:
        recommendations.append(
            CacheRecommendation(
                type="warning",
                message="No cache entries found.",
                action="Verify the database connection and table setup",
            )
        )
    elif stats.hit_rate < 30:
        recommendations.append(
            CacheRecommendation(
                type="warning",
                message="Low cache hit rate. Consider increasing cache expiration time.",
                action="Increase PIPELINE_CACHE_TTL_DAYS",
            )
        )
    elif stats.hit_rate > 60:
        recommendations.append(
            CacheRecommendation(
                type="success",
                message="Excellent cache hit rate! Cache is working well.",
                action="Continue monitoring",
            )
        )
    if stats.expired_entries > 100:
        recommendations.append(
            CacheRecommendation(
                type="info",
                message="Many expired entries detected.",
                action="Check that the job sweeper is running",
            )
        )
    if stats.total_entries > 10000:
        recommendations.append(
            CacheRecommendation(
                type="info",
                message="Large cache size detected.",
                action="Monitor database storage usage and consider a shorter TTL",
            )
        )
    return recommendations


@router.get("/stats", response_model=CacheStatsResponse)
async def get_cache_stats(
    result_cache: ResultCache = Depends(get_result_cache),
) -> CacheStatsResponse:
    """
    Get cache usage statistics.

    Raises:
        HTTPException(503): Cache store unavailable
    """
    stats = await result_cache.stats()
    if stats is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cache statistics unavailable",
        )
    return CacheStatsResponse(
        total_entries=stats.total_entries,
        reused_entries=stats.reused_entries,
        total_hits=stats.total_hits,
        avg_hit_count=stats.avg_hit_count,
        max_hit_count=stats.max_hit_count,
        expired_entries=stats.expired_entries,
        hit_rate=stats.hit_rate,
        recommendations=build_recommendations(stats),
    )

from jobportal.matching.engine import rank_similar, rank_trending, recommend, score_job

__all__ = ["recommend", "rank_trending", "rank_similar", "score_job"]

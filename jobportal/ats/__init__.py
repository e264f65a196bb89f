from jobportal.ats.analyzer import analyze_ats
from jobportal.ats.keywords import extract_keywords, extract_keywords_fallback
from jobportal.ats.scorer import score_resume

__all__ = ["analyze_ats", "extract_keywords", "extract_keywords_fallback", "score_resume"]

"""
Candidate to job match scoring.

All scorers take plain dicts (see ``Job.matching_view`` and
``JobSeekerProfile.matching_view``) so they can be used on ORM rows, request
payloads and test fixtures alike. Text comparisons are case-insensitive
substring matches in either direction.
"""
import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from utils import round_half_up

logger = logging.getLogger(__name__)

WEIGHTS = {
    'skills': 0.4,
    'experience': 0.2,
    'language': 0.2,
    'location': 0.1,
    'salary': 0.1,
}

# Years of experience expected for each job level
EXPERIENCE_RANGES = {
    'entry': (0, 2),
    'mid': (2, 5),
    'senior': (5, 8),
    'lead': (8, 12),
    'executive': (12, 50),
}

SALARY_BUCKETS = {
    '0-40k': (0, 40000),
    '40k-60k': (40000, 60000),
    '60k-80k': (60000, 80000),
    '80k+': (80000, float('inf')),
}

SORT_MODES = ('match-score', 'relevance', 'newest', 'salary-high', 'salary-low')


def _lower(value) -> str:
    return str(value).strip().lower()


def _fuzzy_equal(a, b) -> bool:
    a, b = _lower(a), _lower(b)
    return a in b or b in a


def _num(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0


def _language_name(entry) -> str:
    if isinstance(entry, dict):
        return entry.get('language') or ''
    return entry or ''


def skills_match_score(job_skills: Optional[List[str]], candidate_skills: Optional[List[str]]) -> int:
    """Percentage of the job's skills covered by at least one candidate skill"""
    if not job_skills or not candidate_skills:
        return 0
    matched = [req for req in job_skills
               if any(_fuzzy_equal(req, skill) for skill in candidate_skills)]
    return round_half_up(len(matched) / len(job_skills) * 100)


def experience_match_score(level: Optional[str], years) -> int:
    if not level or years is None:
        return 0
    level = _lower(level)
    years = _num(years)
    if 'entry' in level:
        return 100 if years <= 2 else 80 if years <= 3 else 40
    if 'mid' in level:
        if 2 <= years <= 5:
            return 100
        return 70 if years in (1, 6) else 40
    if 'senior' in level:
        return 100 if years >= 5 else 80 if years >= 4 else 50
    return 60


def language_match_score(preferred: Optional[str], languages) -> int:
    if not preferred or not languages:
        return 0
    names = [_language_name(entry) for entry in languages]
    return 100 if any(name and _fuzzy_equal(name, preferred) for name in names) else 40


def location_match_score(candidate_location: Optional[str], job_location: Optional[str]) -> int:
    if not candidate_location or not job_location:
        return 0
    if _lower(candidate_location) == _lower(job_location):
        return 100
    return 80 if _fuzzy_equal(candidate_location, job_location) else 40


def salary_match_score(candidate_range: Optional[Dict], job_range: Optional[Dict]) -> int:
    if not candidate_range or not job_range:
        return 0
    c_min = _num(candidate_range.get('min'))
    c_max = _num(candidate_range.get('max')) or c_min
    j_min = _num(job_range.get('min'))
    j_max = _num(job_range.get('max')) or j_min

    if c_min == 0 and c_max == 0 and j_min == 0 and j_max == 0:
        return 60
    if c_min >= j_min and c_max <= j_max:
        return 100

    overlap = max(0, min(c_max, j_max) - max(c_min, j_min))
    ratio = max(0, min(1, overlap / max(1, c_max - c_min)))
    return round_half_up(60 + ratio * 40)


def job_type_preference_score(preferred_types: Optional[List[str]], job_type: Optional[str]) -> int:
    if not preferred_types or not job_type:
        return 0
    return 100 if job_type in preferred_types else 40


def match_breakdown(candidate: Dict, job: Dict) -> Dict[str, int]:
    """Component scores and the weighted total, all 0-100"""
    breakdown = {
        'skills': skills_match_score(job.get('skills_required'), candidate.get('skills')),
        'experience': experience_match_score(job.get('experience_level'), candidate.get('experience_years')),
        'language': language_match_score(job.get('preferred_language'), candidate.get('languages')),
        'location': location_match_score(candidate.get('current_location'), job.get('location')),
        'salary': salary_match_score(candidate.get('target_salary_range'), job.get('salary_range')),
    }
    breakdown['total'] = round_half_up(sum(breakdown[key] * weight for key, weight in WEIGHTS.items()))
    return breakdown


def compute_match_score(candidate: Optional[Dict], job: Optional[Dict]) -> int:
    """Weighted 0-100 match score used everywhere a single number is shown"""
    return match_breakdown(candidate or {}, job or {})['total']


def clamped_skill_score(user_skills: Optional[List[str]], job_skills: Optional[List[str]]) -> int:
    """Score shown on job cards: neutral 85 without data, else kept between 60 and 95"""
    if not user_skills or not job_skills:
        return 85
    matched = [skill for skill in user_skills
               if any(_fuzzy_equal(skill, req) for req in job_skills)]
    score = round_half_up(len(matched) / len(job_skills) * 100)
    return min(95, max(60, score))


def match_label(score: int) -> str:
    if score >= 80:
        return 'Excellent'
    if score >= 60:
        return 'Good'
    if score >= 40:
        return 'Fair'
    return 'Poor'


def match_tier(score: int) -> str:
    return match_label(score).lower()


def skill_overlap(job_skills: Optional[List[str]], candidate_skills: Optional[List[str]]) -> Dict:
    job_skills = [_lower(s) for s in job_skills or []]
    candidate_skills = [_lower(s) for s in candidate_skills or []]

    matching = [s for s in candidate_skills if any(_fuzzy_equal(s, req) for req in job_skills)]
    missing = [req for req in job_skills if not any(_fuzzy_equal(s, req) for s in candidate_skills)]
    percentage = 0
    if job_skills:
        percentage = min(100, round_half_up(len(matching) / len(job_skills) * 100))

    return {
        'matching_skills': matching,
        'missing_skills': missing,
        'match_percentage': percentage,
    }


def rank_candidates_for_job(job: Dict, profiles: List[Dict]) -> List[Dict]:
    """Candidates sharing at least one skill with the job, best overlap first"""
    if not job.get('skills_required'):
        return []

    ranked = []
    for profile in profiles:
        if not profile.get('skills'):
            continue
        overlap = skill_overlap(job['skills_required'], profile['skills'])
        if not overlap['matching_skills']:
            continue
        entry = dict(profile)
        entry.update(overlap)
        entry['match_score'] = compute_match_score(profile, job)
        ranked.append(entry)

    ranked.sort(key=lambda c: (c['match_percentage'], c.get('experience_years') or 0), reverse=True)
    return ranked


def match_stats(matches: List[Dict]) -> Dict[str, int]:
    scores = [m.get('match_percentage', 0) for m in matches]
    return {
        'total': len(scores),
        'high': len([s for s in scores if s >= 80]),
        'good': len([s for s in scores if 60 <= s < 80]),
        'low': len([s for s in scores if s < 60]),
    }


# Normalized 0-1 scorer used for recommendations and match reasons

def agent_experience_fit(years, level: Optional[str]) -> float:
    bounds = EXPERIENCE_RANGES.get(level or '')
    if not bounds:
        return 0.5
    low, high = bounds
    years = _num(years)
    if low <= years <= high:
        return 1.0
    if years < low:
        return max(0.0, 1 - (low - years) / low)
    return max(0.7, 1 - (years - high) / 10)


def agent_location_fit(candidate: Dict, job: Dict) -> float:
    current = candidate.get('current_location')
    job_location = job.get('location')
    if not current or not job_location:
        return 0.5
    current, job_location = _lower(current), _lower(job_location)
    if current == job_location:
        return 1.0

    if candidate.get('willing_to_relocate'):
        preferred = candidate.get('preferred_locations') or []
        if any(_fuzzy_equal(loc, job_location) for loc in preferred):
            return 0.9
        return 0.7

    candidate_parts = [p.strip() for p in current.split(',')]
    job_parts = [p.strip() for p in job_location.split(',')]
    shared = any(_fuzzy_equal(c, j) for c in candidate_parts for j in job_parts if c and j)
    return 0.6 if shared else 0.3


def agent_salary_fit(candidate_range: Optional[Dict], job_range: Optional[Dict]) -> float:
    if not candidate_range or not job_range:
        return 0.5
    if job_range.get('type') == 'negotiable':
        return 0.8
    if not candidate_range.get('min') and not candidate_range.get('max'):
        return 0.6

    c_min = _num(candidate_range.get('min'))
    c_max = _num(candidate_range.get('max')) or c_min

    if job_range.get('type') == 'fixed':
        value = _num(job_range.get('fixed') if job_range.get('fixed') is not None else job_range.get('min'))
        if c_min <= value <= c_max:
            return 1.0
        return 0.3 if value < c_min else 0.8

    j_min = _num(job_range.get('min'))
    j_max = _num(job_range.get('max'))
    if c_max >= j_min and c_min <= j_max:
        return 1.0
    if c_min > j_max:
        return 0.2
    return 0.6


def agent_match_score(candidate: Dict, job: Dict) -> float:
    """Weighted average over the dimensions both sides actually provide"""
    score = 0.0
    total_weight = 0.0

    skills = candidate.get('skills') or []
    required = job.get('skills_required') or []
    if skills and required:
        matching = [s for s in skills if s in required]
        score += len(matching) / len(required) * 0.4
        total_weight += 0.4

    if candidate.get('experience_years') is not None and job.get('experience_level'):
        score += agent_experience_fit(candidate['experience_years'], job['experience_level']) * 0.25
        total_weight += 0.25

    preferred_types = candidate.get('preferred_job_types') or []
    if preferred_types:
        score += (1 if job.get('job_type') in preferred_types else 0) * 0.15
        total_weight += 0.15

    if candidate.get('current_location') and job.get('location'):
        score += agent_location_fit(candidate, job) * 0.1
        total_weight += 0.1

    if candidate.get('target_salary_range') and job.get('salary_range'):
        score += agent_salary_fit(candidate['target_salary_range'], job['salary_range']) * 0.1
        total_weight += 0.1

    return score / total_weight if total_weight > 0 else 0


def match_reasons(candidate: Dict, job: Dict, score: float) -> List[str]:
    """Human readable reasons behind an agent score"""
    reasons = []

    skills = candidate.get('skills') or []
    required = job.get('skills_required') or []
    if skills and required:
        matching = [s for s in skills if s in required]
        if matching:
            reasons.append(f"Skills match: {len(matching)}/{len(required)} required skills")

    if candidate.get('experience_years') is not None and job.get('experience_level'):
        fit = agent_experience_fit(candidate['experience_years'], job['experience_level'])
        if fit > 0.8:
            reasons.append('Experience level matches perfectly')
        elif fit > 0.6:
            reasons.append('Experience level is a good fit')

    if job.get('job_type') and job['job_type'] in (candidate.get('preferred_job_types') or []):
        reasons.append('Job type matches your preferences')

    if candidate.get('current_location') and job.get('location'):
        fit = agent_location_fit(candidate, job)
        if fit > 0.8:
            reasons.append('Location is a perfect match')
        elif fit > 0.6:
            reasons.append('Location is a good fit')
        elif candidate.get('willing_to_relocate'):
            reasons.append('You are willing to relocate for this position')

    if score > 0.9:
        reasons.append('Excellent overall match')
    elif score > 0.7:
        reasons.append('Strong match for this position')
    elif score > 0.5:
        reasons.append('Good potential match')

    return reasons


def recommend_jobs(profile: Optional[Dict], jobs: List[Dict], limit: int = 12) -> List[Dict]:
    """Jobs filtered by the candidate's preferences, best match first"""
    candidates = list(jobs)
    if profile:
        job_types = profile.get('preferred_job_types') or []
        if job_types:
            candidates = [j for j in candidates if j.get('job_type') in job_types]

        locations = profile.get('preferred_locations') or []
        if locations:
            candidates = [j for j in candidates
                          if j.get('location') and any(_lower(loc) in _lower(j['location']) for loc in locations)]

        if profile.get('willing_to_relocate') is False:
            candidates = [j for j in candidates if j.get('is_remote')]

    scored = []
    for job in candidates:
        entry = dict(job)
        entry['match_score'] = compute_match_score(profile or {}, job)
        if profile:
            agent_score = agent_match_score(profile, job)
            entry['match_reasons'] = match_reasons(profile, job, agent_score)
        scored.append(entry)

    scored.sort(key=lambda j: j['match_score'], reverse=True)
    return scored[:limit]


def salary_value(salary_range, kind: str = 'max') -> int:
    """Numeric salary bound from a range dict or a display string"""
    if not salary_range:
        return 0

    if isinstance(salary_range, str):
        # Drop thousands separators so "€65,000" reads as one number
        cleaned = re.sub(r'(?<=\d)[,.](?=\d{3}\b)', '', salary_range)
        numbers = re.findall(r'\d+', cleaned)
        if len(numbers) >= 2:
            return int(numbers[1]) if kind == 'max' else int(numbers[0])
        return 0

    if isinstance(salary_range, dict):
        for key in (kind, 'fixed'):
            value = salary_range.get(key)
            if not value:
                continue
            if isinstance(value, str):
                digits = re.sub(r'[^\d]', '', value)
                return int(digits) if digits else 0
            return int(value)

    return 0


def _in_salary_bucket(job: Dict, bucket: str) -> bool:
    bounds = SALARY_BUCKETS.get(bucket)
    if not bounds:
        return True
    job_min = salary_value(job.get('salary_range'), 'min')
    job_max = salary_value(job.get('salary_range'), 'max')
    if job_min == 0 and job_max == 0:
        return False
    low = max(job_min or 0, bounds[0])
    high = min(job_max or job_min or 0, bounds[1])
    return high >= low


def _active(filters: Dict, key: str) -> Optional[str]:
    value = filters.get(key)
    if not value or value == 'all':
        return None
    return value


def filter_jobs(jobs: List[Dict], filters: Optional[Dict]) -> List[Dict]:
    filters = filters or {}
    term = _active(filters, 'search_term')
    location = _active(filters, 'location')
    job_type = _active(filters, 'job_type')
    experience = _active(filters, 'experience')
    language = _active(filters, 'language')
    salary = _active(filters, 'salary')

    results = []
    for job in jobs:
        if term:
            needle = term.lower()
            haystacks = [job.get('title') or '', job.get('company') or '']
            haystacks.extend(job.get('skills_required') or [])
            if not any(needle in str(h).lower() for h in haystacks):
                continue
        if location and location.lower() not in (job.get('location') or '').lower():
            continue
        if job_type and job_type.lower() not in (job.get('job_type') or '').lower():
            continue
        if experience and job.get('experience_level') != experience:
            continue
        if language and job.get('preferred_language') != language:
            continue
        if salary and not _in_salary_bucket(job, salary):
            continue
        results.append(job)
    return results


def _timestamp(value) -> float:
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value).timestamp()
        except ValueError:
            return 0
    return 0


def sort_jobs(jobs: List[Dict], sort_by: str = 'match-score') -> List[Dict]:
    if sort_by == 'relevance':
        return sorted(jobs, key=lambda j: (j.get('match_score') or 0, _timestamp(j.get('created_at'))), reverse=True)
    if sort_by == 'newest':
        return sorted(jobs, key=lambda j: _timestamp(j.get('created_at')), reverse=True)
    if sort_by == 'salary-high':
        return sorted(jobs, key=lambda j: salary_value(j.get('salary_range'), 'max'), reverse=True)
    if sort_by == 'salary-low':
        return sorted(jobs, key=lambda j: salary_value(j.get('salary_range'), 'min'))
    return sorted(jobs, key=lambda j: j.get('match_score') or 0, reverse=True)

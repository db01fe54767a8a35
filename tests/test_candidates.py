# ABOUTME: Tests candidate pool filtering by grade, difficulty, exclusions, and focus concepts.
# ABOUTME: Verifies the pool broadens when the strict filter leaves too few questions.

from src.common.candidates import filter_candidates
from src.common.schemas import CandidateQuestion, RecommendationRequest


def _mk_question(qid, grade="3", difficulty=3, concepts=("fractions",)):
    return CandidateQuestion(id=qid, category="math", difficulty=difficulty, concepts=tuple(concepts), grade=grade)


def _bank():
    return [
        _mk_question(1),
        _mk_question(2, difficulty=5),
        _mk_question(3, grade="6"),
        _mk_question(4, concepts=("decimals",)),
        _mk_question(5, grade="7"),
        _mk_question(6, grade=None, difficulty=2),
    ]


def test_strict_filter_when_pool_is_large_enough():
    request = RecommendationRequest(user_id="u1", target_difficulty=3, exclude_question_ids=(4,))

    pool = filter_candidates(_bank(), "3", request, min_pool_size=2)

    # 2 is too hard, 3 and 5 too far in grade, 4 excluded.
    assert [q.id for q in pool] == [1, 6]


def test_focus_concepts_narrow_strict_pool():
    request = RecommendationRequest(user_id="u1", focus_concepts=("decimals",))

    pool = filter_candidates(_bank(), "3", request, min_pool_size=1)

    assert [q.id for q in pool] == [4]


def test_small_strict_pool_broadens_to_nearby_grades():
    request = RecommendationRequest(user_id="u1", target_difficulty=3, exclude_question_ids=(1,))

    pool = filter_candidates(_bank(), "3", request)

    assert [q.id for q in pool] == [2, 3, 4, 6]


def test_target_difficulty_defaults_to_grade():
    request = RecommendationRequest(user_id="u1")
    bank = [_mk_question(i, grade="1", difficulty=d) for i, d in enumerate([1, 2, 3, 4])]

    pool = filter_candidates(bank, "1", request, min_pool_size=1)

    assert [q.difficulty for q in pool] == [1, 2]

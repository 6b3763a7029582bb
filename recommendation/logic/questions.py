"""
Question Resolver

Builds the ordered questionnaire for one (student, institution) pair:
eight base questions followed by at most one bonus question chosen by
the institution type. The result depends only on the student name, the
institution name and the institution type.
"""

from typing import Dict, List, Optional

from .constants import Category, InstitutionType
from .contracts import InstitutionProfile, Question


# Templates use {student} and {college}; ids are stable and persisted with answers
BASE_QUESTIONS: List[Question] = [
    Question(
        id="academic-1",
        text="How would you describe {student}'s academic performance in your class?",
        category=Category.ACADEMIC,
        required=True,
        follow_up="Can you provide a specific example of their academic excellence or improvement?",
    ),
    Question(
        id="academic-2",
        text="What sets {student} apart academically from other students in their grade?",
        category=Category.ACADEMIC,
        required=True,
    ),
    Question(
        id="character-1",
        text="Describe {student}'s character and personal qualities. What makes them unique as a person?",
        category=Category.CHARACTER,
        required=True,
        follow_up="Can you share a specific story or moment that exemplifies these qualities?",
    ),
    Question(
        id="character-2",
        text="Tell us about a time when {student} showed exceptional integrity or moral character.",
        category=Category.CHARACTER,
        required=True,
    ),
    Question(
        id="leadership-1",
        text="Has {student} demonstrated leadership qualities in your class or school? How?",
        category=Category.LEADERSHIP,
        required=False,
        follow_up="What was the impact of their leadership on others?",
    ),
    Question(
        id="social-1",
        text="How does {student} interact with their peers and contribute to the classroom environment?",
        category=Category.SOCIAL,
        required=True,
    ),
    Question(
        id="personal-1",
        text=(
            "Can you share a memorable moment or story about {student} that shows their personality "
            "or character? (Even small gestures like helping clean the classroom matter!)"
        ),
        category=Category.PERSONAL,
        required=True,
    ),
    Question(
        id="personal-2",
        text=(
            "What would you want admissions officers at {college} to know about {student} that might "
            "not be evident from their grades or test scores?"
        ),
        category=Category.PERSONAL,
        required=True,
    ),
]

BONUS_QUESTIONS: Dict[InstitutionType, Question] = {
    InstitutionType.TECHNICAL: Question(
        id="tech-1",
        text="{college} values innovation and problem-solving. How has {student} demonstrated these qualities?",
        category=Category.EXTRACURRICULAR,
        required=False,
    ),
    InstitutionType.LIBERAL_ARTS: Question(
        id="liberal-1",
        text=(
            "{college} seeks students with intellectual curiosity and critical thinking skills. "
            "How has {student} shown these traits?"
        ),
        category=Category.ACADEMIC,
        required=False,
    ),
    InstitutionType.RESEARCH: Question(
        id="research-1",
        text=(
            "{college} is a research-focused institution. Has {student} shown curiosity for research "
            "or independent inquiry?"
        ),
        category=Category.ACADEMIC,
        required=False,
    ),
    InstitutionType.BUSINESS: Question(
        id="business-1",
        text=(
            "{college} looks for future leaders in business. How has {student} demonstrated "
            "entrepreneurial thinking or business acumen?"
        ),
        category=Category.LEADERSHIP,
        required=False,
    ),
}

QUESTION_CATALOG: Dict[str, Question] = {
    q.id: q for q in [*BASE_QUESTIONS, *BONUS_QUESTIONS.values()]
}


def institution_type_of(raw: Optional[str]) -> Optional[InstitutionType]:
    """Parse an institution type; unknown values map to None."""
    try:
        return InstitutionType(raw)
    except ValueError:
        return None


def category_for_question(question_id: str) -> Optional[Category]:
    """
    Section a question id feeds, from its leading token
    ("leadership-1" -> leadership).

    Institution bonus ids ("tech-1", "business-1") have no section; their
    catalog category only labels the question for display.
    """
    head = question_id.strip().lower().split("-", 1)[0]
    try:
        return Category(head)
    except ValueError:
        return None


def render_question(template: Question, student_name: str, college_name: str) -> Question:
    return template.model_copy(
        update={"text": template.text.format(student=student_name, college=college_name)}
    )


def resolve_question_set(student_name: str, institution: InstitutionProfile) -> List[Question]:
    """
    Ordered questionnaire for a student applying to an institution.

    Args:
        student_name: Interpolated into every question text
        institution: Name is interpolated; type selects the bonus question

    Returns:
        Base questions in fixed order, then the bonus question if the
        institution type has one
    """
    questions = [render_question(q, student_name, institution.name) for q in BASE_QUESTIONS]

    bonus = BONUS_QUESTIONS.get(institution_type_of(institution.type))
    if bonus is not None:
        questions.append(render_question(bonus, student_name, institution.name))

    return questions


def missing_required(questions: List[Question], answered_ids: List[str]) -> List[str]:
    """Ids of required questions without an answer. Informational only."""
    answered = set(answered_ids)
    return [q.id for q in questions if q.required and q.id not in answered]

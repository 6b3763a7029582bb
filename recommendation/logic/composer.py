"""
Letter Composer

Assembles recommendation letter variants from a student profile, a target
institution and the teacher's questionnaire answers.

Pipeline per variant:
1. Opening template for the tone
2. One section per focus area, in fixed section order
3. Institution alignment section
4. Closing template for the tone
Sections are joined with blank lines. Output is byte-identical for
identical input; only the draft id differs between runs.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .constants import (
    BASE_VARIANTS,
    CLOSINGS,
    DEFAULT_FIT_SENTENCE,
    INSTITUTION_FIT_SENTENCES,
    LEADERSHIP_VARIANT,
    LEADERSHIP_VARIANT_THRESHOLD,
    OPENINGS,
    STORY_RESPONSE_LENGTH,
    SUBSTANTIVE_RESPONSE_LENGTH,
    Category,
    Tone,
)
from .contracts import AnswerItem, InstitutionProfile, LetterDraft, StudentProfile
from .questions import category_for_question, institution_type_of

logger = logging.getLogger(__name__)


def normalize_response(text: str) -> str:
    """Trim, capitalize the first letter and make sure the text ends a sentence."""
    processed = text.strip()
    if not processed:
        return processed
    if not processed.endswith((".", "!", "?")):
        processed += "."
    return processed[0].upper() + processed[1:]


def join_with_oxford_comma(items: Sequence[str]) -> str:
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return f"{', '.join(items[:-1])}, and {items[-1]}"


def format_gpa(gpa: float) -> str:
    """Whole GPAs print without a decimal part; others print as stored."""
    return str(int(gpa)) if float(gpa).is_integer() else repr(float(gpa))


def count_words(content: str) -> int:
    return len(content.split())


def has_strong_leadership_answer(answers: Sequence[AnswerItem]) -> bool:
    return any(
        category_for_question(a.question_id) == Category.LEADERSHIP
        and len(a.response) > LEADERSHIP_VARIANT_THRESHOLD
        for a in answers
    )


class LetterComposer:
    """
    Deterministic letter builder for one (student, institution, answers) input.

    Answers are grouped by category once; blank responses count as missing.
    """

    def __init__(
        self,
        student: StudentProfile,
        institution: InstitutionProfile,
        answers: Sequence[AnswerItem],
    ):
        self.student = student
        self.institution = institution
        self.answers = list(answers)
        self._by_category: Dict[Category, List[AnswerItem]] = {c: [] for c in Category}
        for answer in self.answers:
            category = category_for_question(answer.question_id)
            if category is not None and answer.response.strip():
                self._by_category[category].append(answer)

        # Fixed section order; social and leadership share one section
        self._sections: List[Tuple[Tuple[Category, ...], Callable[[], str]]] = [
            ((Category.ACADEMIC,), self._academic_section),
            ((Category.CHARACTER,), self._character_section),
            ((Category.PERSONAL,), self._personal_section),
            ((Category.SOCIAL, Category.LEADERSHIP), self._social_leadership_section),
            ((Category.EXTRACURRICULAR,), self._extracurricular_section),
        ]

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def variants(self) -> List[Tuple[Tone, Tuple[Category, ...]]]:
        variants = list(BASE_VARIANTS)
        if has_strong_leadership_answer(self.answers):
            variants.append(LEADERSHIP_VARIANT)
        return variants

    def compose_all(self) -> List[LetterDraft]:
        letters = [self.compose(tone, focus) for tone, focus in self.variants()]
        logger.info(
            "Composed %d letter variants for %s -> %s",
            len(letters), self.student.name, self.institution.name,
        )
        return letters

    def compose(self, tone: Tone, focus: Sequence[Category]) -> LetterDraft:
        content = self.build_content(tone, focus)
        return LetterDraft(
            id=f"{tone.value}-{uuid.uuid4().hex[:12]}",
            content=content,
            tone=tone,
            focus=list(focus),
            word_count=count_words(content),
            created_at=datetime.now(timezone.utc),
        )

    def build_content(self, tone: Tone, focus: Sequence[Category]) -> str:
        student, college = self.student.name, self.institution.name
        parts = [OPENINGS[tone].format(student=student, college=college)]

        wanted = set(focus)
        for triggers, build in self._sections:
            if wanted.intersection(triggers):
                section = build()
                if section:
                    parts.append(section)

        parts.append(self._institution_section())
        parts.append(CLOSINGS[tone].format(student=student))
        return "\n\n".join(parts)

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _first(self, category: Category) -> Optional[AnswerItem]:
        matches = self._by_category[category]
        return matches[0] if matches else None

    def _academic_section(self) -> str:
        name = self.student.name
        answer = self._first(Category.ACADEMIC)

        if answer is None:
            section = (
                f"Academically, {name} has demonstrated consistent excellence in my class. Their "
                f"dedication to learning and intellectual curiosity set them apart from their peers."
            )
        elif len(answer.response) > SUBSTANTIVE_RESPONSE_LENGTH:
            section = f"Academically, {name} has been exceptional. {normalize_response(answer.response)}"
        else:
            section = (
                f"Academically, {name} has been exceptional. Their performance in my class has been "
                f"consistently outstanding, demonstrating both intellectual ability and genuine curiosity."
            )

        if self.student.gpa is not None:
            section += (
                f" With a GPA of {format_gpa(self.student.gpa)}, {name} ranks among the top "
                f"performers in their cohort."
            )
        if self.student.subjects:
            section += (
                f" Their strength spans across {' and '.join(self.student.subjects[:2])}, showing "
                f"remarkable versatility in their academic pursuits."
            )
        return section

    def _character_section(self) -> str:
        section = f"What truly distinguishes {self.student.name} is their exceptional character. "
        answer = self._first(Category.CHARACTER)

        if answer is None:
            return section + (
                "They demonstrate integrity, respect for others, and a genuine desire to contribute "
                "positively to their community."
            )

        section += normalize_response(answer.response)
        if answer.notes and answer.notes.strip():
            section += f" {normalize_response(answer.notes)}"
        return section

    def _personal_section(self) -> str:
        section = f"To give you a more personal perspective on {self.student.name}, "
        answers = self._by_category[Category.PERSONAL]

        if not answers:
            return section + (
                "I can share that they consistently go above and beyond in small but meaningful ways, "
                "showing consideration for others and genuine care for their learning environment."
            )

        stories = [a for a in answers if len(a.response) > STORY_RESPONSE_LENGTH]
        # max() keeps the earliest answer on ties
        chosen = max(stories, key=lambda a: len(a.response)) if stories else answers[0]
        return section + normalize_response(chosen.response)

    def _social_leadership_section(self) -> str:
        section = "In terms of social and leadership qualities, "
        answers = [
            a for a in self.answers
            if a.response.strip()
            and category_for_question(a.question_id) in (Category.SOCIAL, Category.LEADERSHIP)
        ]

        if not answers:
            return section + (
                f"{self.student.name} demonstrates excellent interpersonal skills and shows natural "
                f"leadership potential through their positive influence on classmates."
            )

        section += normalize_response(answers[0].response)
        if len(answers) > 1:
            section += f" Additionally, {normalize_response(answers[1].response)}"
        return section

    def _extracurricular_section(self) -> str:
        activities = self.student.extracurriculars
        if not activities:
            return ""
        return (
            f"Beyond academics, {self.student.name} is actively involved in "
            f"{join_with_oxford_comma(activities)}. These activities showcase their well-rounded "
            f"nature and commitment to personal growth beyond the classroom."
        )

    def _institution_section(self) -> str:
        name, college = self.student.name, self.institution
        section = f"{name} would be an excellent fit for {college.name}. "

        if college.values:
            section += (
                f"Your institution's emphasis on {' and '.join(college.values[:2])} aligns perfectly "
                f"with {name}'s demonstrated qualities. "
            )

        institution_type = institution_type_of(college.type)
        section += INSTITUTION_FIT_SENTENCES.get(institution_type, DEFAULT_FIT_SENTENCE)
        return section


def generate_letters(
    student: StudentProfile,
    institution: InstitutionProfile,
    answers: Sequence[AnswerItem],
) -> List[LetterDraft]:
    """
    Convenience function to compose every letter variant.

    Returns:
        Three drafts, or four when a leadership answer is longer than the
        variant threshold
    """
    return LetterComposer(student, institution, answers).compose_all()

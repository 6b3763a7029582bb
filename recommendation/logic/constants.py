"""
Letter Engine Constants

Enumerations, thresholds and fixed text fragments used by the question
resolver, the progress tracker and the letter composer.
All values are deterministic; nothing here is learned or randomized.
"""

import os
from enum import Enum
from typing import Dict, List, Tuple


# =============================================================================
# ENUMERATIONS
# =============================================================================

class Category(str, Enum):
    """Question category, also used as a letter focus area."""
    ACADEMIC = "academic"
    CHARACTER = "character"
    LEADERSHIP = "leadership"
    SOCIAL = "social"
    PERSONAL = "personal"
    EXTRACURRICULAR = "extracurricular"


# Focus areas share the category vocabulary
FocusArea = Category


class Tone(str, Enum):
    FORMAL = "formal"
    WARM = "warm"
    ENTHUSIASTIC = "enthusiastic"


class Phase(str, Enum):
    """Workflow stage of a recommendation request."""
    COMMITMENT = "commitment"
    QUESTIONNAIRE = "questionnaire"
    GENERATION = "generation"
    REVIEW = "review"


class RequestStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REVIEWED = "reviewed"


class InstitutionType(str, Enum):
    LIBERAL_ARTS = "liberal-arts"
    RESEARCH = "research"
    TECHNICAL = "technical"
    BUSINESS = "business"
    OTHER = "other"


# =============================================================================
# THRESHOLDS
# =============================================================================

# "Next" is enabled only when the stripped response is longer than this
MIN_RESPONSE_LENGTH = 10

# A response longer than this is quoted instead of replaced by generic prose
SUBSTANTIVE_RESPONSE_LENGTH = 50

# A personal answer longer than this is preferred as the main story
STORY_RESPONSE_LENGTH = 100

# Leadership answers longer than this unlock the fourth letter variant
LEADERSHIP_VARIANT_THRESHOLD = 50

DEFAULT_AUTOSAVE_DEBOUNCE_SECONDS = float(os.getenv("AUTOSAVE_DEBOUNCE_SECONDS", "3.0"))


# =============================================================================
# LETTER VARIANTS
# =============================================================================

BASE_VARIANTS: List[Tuple[Tone, Tuple[Category, ...]]] = [
    (Tone.FORMAL, (Category.ACADEMIC, Category.CHARACTER)),
    (Tone.WARM, (Category.PERSONAL, Category.SOCIAL, Category.CHARACTER)),
    (Tone.ENTHUSIASTIC, (Category.LEADERSHIP, Category.EXTRACURRICULAR, Category.ACADEMIC)),
]

LEADERSHIP_VARIANT: Tuple[Tone, Tuple[Category, ...]] = (
    Tone.WARM,
    (Category.LEADERSHIP, Category.SOCIAL, Category.CHARACTER),
)


# =============================================================================
# TEMPLATES
# =============================================================================

OPENINGS: Dict[Tone, str] = {
    Tone.FORMAL: (
        "Dear Admissions Committee at {college},\n\n"
        "I am writing to provide my strongest recommendation for {student}, who has been a student "
        "in my class. It is my pleasure to recommend {student} for admission to your esteemed institution."
    ),
    Tone.WARM: (
        "Dear Admissions Officers at {college},\n\n"
        "It brings me great joy to write this letter of recommendation for {student}. Having had the "
        "privilege of teaching {student}, I can confidently say that they are among the most remarkable "
        "students I have encountered in my teaching career."
    ),
    Tone.ENTHUSIASTIC: (
        "Dear {college} Admissions Team,\n\n"
        "I am delighted to write this letter of recommendation for {student}! In my years of teaching, "
        "few students have impressed me as much as {student} has. I recommend {student} with "
        "tremendous enthusiasm."
    ),
}

CLOSINGS: Dict[Tone, str] = {
    Tone.FORMAL: (
        "In conclusion, I recommend {student} without reservation. {student} would be an excellent "
        "addition to your academic community and will undoubtedly contribute significantly to your "
        "institution.\n\nSincerely,"
    ),
    Tone.WARM: (
        "I wholeheartedly endorse {student}'s application to your institution. They have the character, "
        "intellect, and drive to excel in your academic environment and beyond.\n\nWith warm regards,"
    ),
    Tone.ENTHUSIASTIC: (
        "{student} is exactly the kind of student who will thrive at your institution and make "
        "meaningful contributions to your community. I give {student} my highest "
        "recommendation!\n\nBest regards,"
    ),
}

INSTITUTION_FIT_SENTENCES: Dict[InstitutionType, str] = {
    InstitutionType.TECHNICAL: (
        "Their analytical thinking and problem-solving abilities make them well-suited for your "
        "rigorous technical programs."
    ),
    InstitutionType.LIBERAL_ARTS: (
        "Their intellectual curiosity and well-rounded perspective align perfectly with your liberal "
        "arts tradition."
    ),
    InstitutionType.RESEARCH: (
        "Their inquisitive nature and academic excellence position them well for your research-focused "
        "environment."
    ),
    InstitutionType.BUSINESS: (
        "Their leadership potential and strategic thinking make them an ideal candidate for your "
        "business programs."
    ),
}

DEFAULT_FIT_SENTENCE = (
    "Their academic excellence and strong character make them well-suited for your institutional values."
)

# Marks the extracurricular paragraph; absent whenever the section is omitted
EXTRACURRICULAR_MARKER = "is actively involved in"

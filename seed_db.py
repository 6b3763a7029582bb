import logging
from sqlalchemy import select
from sqlalchemy.orm import Session
from dotenv import load_dotenv

from db import get_db, init_db
from models.models import College, Question
from recommendation.logic.questions import BASE_QUESTIONS, BONUS_QUESTIONS

load_dotenv()

logger = logging.getLogger(__name__)

SAMPLE_COLLEGES = [
    {
        "name": "MIT",
        "type": "technical",
        "values": ["Innovation", "Problem-solving", "Collaboration"],
        "characteristics": ["Technical excellence", "Creative thinking", "Leadership"],
    },
    {
        "name": "Harvard University",
        "type": "liberal-arts",
        "values": ["Academic excellence", "Leadership", "Service"],
        "characteristics": ["Critical thinking", "Social responsibility", "Innovation"],
    },
    {
        "name": "Stanford University",
        "type": "research",
        "values": ["Innovation", "Research excellence", "Entrepreneurship"],
        "characteristics": ["Research aptitude", "Creative thinking", "Leadership"],
    },
    {
        "name": "University of Pennsylvania (Wharton)",
        "type": "business",
        "values": ["Leadership", "Entrepreneurship", "Global impact"],
        "characteristics": ["Business acumen", "Leadership potential", "Strategic thinking"],
    },
    {
        "name": "Williams College",
        "type": "liberal-arts",
        "values": ["Intellectual curiosity", "Community", "Excellence"],
        "characteristics": ["Critical thinking", "Well-rounded", "Community engagement"],
    },
]


def seed_questions(db: Session) -> int:
    """Upsert the question catalog; returns the number of rows written."""
    catalog = [*BASE_QUESTIONS, *BONUS_QUESTIONS.values()]
    for position, question in enumerate(catalog):
        db.merge(Question(
            id=question.id,
            text=question.text,
            category=question.category.value,
            required=question.required,
            follow_up=question.follow_up,
            position=position,
        ))
    return len(catalog)


def seed_colleges(db: Session) -> int:
    """Insert sample colleges that are not present yet; returns how many were added."""
    existing = set(db.execute(select(College.name)).scalars())
    added = 0
    for data in SAMPLE_COLLEGES:
        if data["name"] in existing:
            continue
        db.add(College(**data))
        existing.add(data["name"])
        added += 1
    db.flush()
    return added


def seed():
    init_db()
    with get_db() as db:
        questions = seed_questions(db)
        colleges = seed_colleges(db)
    logger.info(f"Seeded {questions} questions and {colleges} new colleges")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed()

"""One-time DB setup: create tables and seed a demo author with a sample quiz."""
from quiz_builder.db.session import Base, get_engine, session_scope
from quiz_builder.db.models import Quiz, User
from quiz_builder.core.security import hash_password
from quiz_builder.schemas.quiz import QuestionWrite
from quiz_builder.services.quiz_store import create_quiz

# 1. Create all tables
engine = get_engine()
Base.metadata.create_all(bind=engine)
print("✅ All tables created")

with session_scope() as db:
    # 2. Demo author
    author = db.query(User).filter(User.email == "author@example.com").first()
    if not author:
        author = User(
            email="author@example.com",
            hashed_password=hash_password("author123"),
            name="Demo Author",
        )
        db.add(author)
        db.commit()
        db.refresh(author)
        print("✅ Created author: author@example.com / author123")
    else:
        print("  Demo author already exists")

    # 3. Sample quiz covering every question type
    sample = (
        db.query(Quiz)
        .filter(Quiz.owner_id == author.id, Quiz.title == "Geography warm-up")
        .first()
    )
    if not sample:
        sample = create_quiz(
            db,
            author.id,
            "Geography warm-up",
            "A short sample quiz",
            [
                QuestionWrite(
                    type="single-choice",
                    text="What is the capital of France?",
                    options=["Paris", "London", "Berlin"],
                    answer="Paris",
                ),
                QuestionWrite(
                    type="multi-choice",
                    text="Which of these are in Europe?",
                    options=["Spain", "Peru", "Norway", "Kenya"],
                    answer=["Spain", "Norway"],
                ),
                QuestionWrite(
                    type="true-false",
                    text="The Nile flows into the Mediterranean.",
                    answer="True",
                ),
                QuestionWrite(
                    type="short-answer",
                    text="Largest ocean on Earth?",
                    answer="Pacific",
                ),
                QuestionWrite(
                    type="free-text",
                    text="Describe the climate where you live.",
                ),
            ],
        )
        print(f"✅ Created sample quiz (id={sample.id})")
    else:
        print("  Sample quiz already exists")

print("✅ Seeding complete")

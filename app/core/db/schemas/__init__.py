# Import models so Base metadata is aware of them
from .auth import User  # noqa: F401
from .study_kits import StudyKit, Flashcard, Quiz, QuizQuestion, GenerationStatus  # noqa: F401
from .exams import Exam, ExamQuestion, ExamStatus  # noqa: F401
from .summaries import Summary  # noqa: F401
from .conversations import Conversation, ConversationMessage  # noqa: F401

from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator, model_validator

from errors import ValidationError

REQUIRED_FIELDS_MESSAGE = "Subject, chapter, total questions, and answered questions are required."

NOT_ANSWERED = "উত্তর দেননি"
NO_EXPLANATION = "কোন ব্যাখ্যা নেই।"
UNKNOWN_OPTION = "অজানা বিকল্প"
MISSING_QUESTION = "প্রশ্ন পাওয়া যায়নি"
ALL_CORRECT = "শিক্ষার্থী সব প্রশ্নের সঠিক উত্তর দিয়েছে।"


# ---------- Request models ----------
# Per-record fields are lenient: a malformed wrong-answer record only degrades
# its own block in the prompt, it never rejects the quiz.
def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _as_index(value: Any) -> Any:
    # usable values become int; anything else is kept and renders as unknown
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return value
    return value


class AnswerOption(BaseModel):
    text: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _bare_option(cls, v):
        if isinstance(v, (dict, cls)):
            return v
        return {"text": v}

    @field_validator("text", mode="before")
    @classmethod
    def _text(cls, v):
        return _as_text(v)


class WrongAnswerItem(BaseModel):
    questionText: Optional[str] = None
    options: List[AnswerOption] = []
    selectedIndex: Any = None  # None -> student skipped the question
    correctIndex: Any = None
    explanation: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _non_object_item(cls, v):
        return v if isinstance(v, (dict, cls)) else {}

    @field_validator("questionText", "explanation", mode="before")
    @classmethod
    def _text_fields(cls, v):
        return _as_text(v)

    @field_validator("options", mode="before")
    @classmethod
    def _options(cls, v):
        return v if isinstance(v, list) else []

    @field_validator("selectedIndex", "correctIndex", mode="before")
    @classmethod
    def _indices(cls, v):
        return _as_index(v)


class QuizResult(BaseModel):
    subject: str = Field(min_length=1)
    chapter: str = Field(min_length=1)
    totalQuestions: int = Field(ge=0)
    answeredQuestions: int = Field(ge=0)
    wrongAnswers: List[WrongAnswerItem] = []

    @field_validator("wrongAnswers", mode="before")
    @classmethod
    def _wrong_answers(cls, v):
        return v if isinstance(v, list) else []

    @classmethod
    def from_payload(cls, payload) -> "QuizResult":
        try:
            return cls.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE) from e


# ---------- Prompt rendering ----------
def option_text(options: List[AnswerOption], index: Any) -> str:
    if not isinstance(index, int) or isinstance(index, bool):
        return UNKNOWN_OPTION
    if index < 0 or index >= len(options):
        return UNKNOWN_OPTION
    text = options[index].text
    return text if text is not None else UNKNOWN_OPTION


def render_wrong_answer(position: int, item: WrongAnswerItem) -> str:
    if item.selectedIndex is None:
        selected = NOT_ANSWERED
    else:
        selected = option_text(item.options, item.selectedIndex)

    return f"""
      {position}. প্রশ্ন: {item.questionText or MISSING_QUESTION}
      আপনার উত্তর: {selected}
      সঠিক উত্তর: {option_text(item.options, item.correctIndex)}
      সঠিক উত্তরের ব্যাখ্যা: {item.explanation or NO_EXPLANATION}"""


def build_prompt(quiz: QuizResult) -> str:
    """Render the Bengali teacher prompt for one quiz attempt.

    Never raises: broken wrong-answer records degrade to placeholder text.
    """
    if quiz.wrongAnswers:
        wrong_answers_text = "\n\n".join(
            render_wrong_answer(i, item) for i, item in enumerate(quiz.wrongAnswers, start=1)
        )
    else:
        wrong_answers_text = ALL_CORRECT

    return f"""
    আপনি একজন অভিজ্ঞ শিক্ষক। আপনার কাজ হলো একজন শিক্ষার্থীর পরীক্ষার ফলাফলের উপর ভিত্তি করে একটি বিস্তারিত বিশ্লেষণ ও পরামর্শ তৈরি করা।

    পরীক্ষার বিষয়: {quiz.subject}
    অধ্যায়: {quiz.chapter}
    মোট প্রশ্ন: {quiz.totalQuestions}
    উত্তর দেওয়া প্রশ্ন: {quiz.answeredQuestions}
    ভুল উত্তর বা উত্তর না দেওয়া প্রশ্ন: {len(quiz.wrongAnswers)}

    এখানে সেই প্রশ্নগুলো এবং তাদের সঠিক উত্তরের সাথে শিক্ষার্থীর উত্তর দেওয়া হলো, যেগুলোতে সে ভুল করেছে অথবা উত্তর দেয়নি:

    {wrong_answers_text}

    আপনার বিশ্লেষণটি নিম্নলিখিত কাঠামোতে বাংলায় প্রদান করুন। কোনো অতিরিক্ত কথা লিখবেন না, শুধুমাত্র JSON ফরম্যাটে আউটপুট দিন।

    {{
      "summary": "এই পরীক্ষার সংক্ষিপ্ত সারসংক্ষেপ",
      "weaknesses": [],
      "suggestions": [],
      "encouragement": "শিক্ষার্থীকে উৎসাহিত করার জন্য একটি ছোট বার্তা"
    }}

    যদি কোনো ভুল উত্তর না থাকে, তবে weaknesses, suggestions অ্যারে গুলোকে খালি রাখবেন।
  """

"""Text shown for a question: prompt, options, instruction and audio choices."""

import re
from typing import Any, Dict, Optional

from .models import Question, QuizType, VocabularyEntry

MASK = "_______"
NO_EXAMPLE = "No example available"

_TRAILING_HIRAGANA = re.compile(r"[ぁ-ん]+$")

INSTRUCTIONS = {
    QuizType.WRITTEN_TO_MEANING: "이 단어의 의미는?",
    QuizType.WRITTEN_TO_PHONETIC: "이 단어의 읽는 법은?",
    QuizType.MEANING_TO_WRITTEN: "이 뜻을 가진 단어는?",
    QuizType.PHONETIC_TO_WRITTEN: "이 발음의 단어는?",
    QuizType.WRITTEN_TO_EXAMPLE: "이 단어가 들어갈 알맞은 예문은?",
    QuizType.MEANING_TO_EXAMPLE: "이 뜻에 해당하는 단어의 예문은?",
    QuizType.PHONETIC_TO_EXAMPLE: "이 발음의 단어가 들어갈 예문은?",
    QuizType.EXAMPLE_TO_MEANING: "빈칸에 들어갈 단어의 의미는?",
}
DEFAULT_INSTRUCTION = "알맞은 답을 고르세요"


def mask_word(sentence: Optional[str], entry: VocabularyEntry) -> str:
    """Blank out ``entry`` inside ``sentence``.

    Tries the written form, then its stem without trailing okurigana
    (懐く -> 懐), then the phonetic form.
    """
    if not sentence:
        return ""
    if entry.written_form in sentence:
        return sentence.replace(entry.written_form, MASK)

    trailing = _TRAILING_HIRAGANA.search(entry.written_form)
    if trailing:
        stem = entry.written_form[: trailing.start()]
        if stem and stem in sentence:
            return sentence.replace(stem, MASK)

    if entry.phonetic_form and entry.phonetic_form in sentence:
        return sentence.replace(entry.phonetic_form, MASK)
    return sentence


def prompt_text(question: Question) -> str:
    vocab = question.vocab
    if question.type in (
        QuizType.WRITTEN_TO_MEANING,
        QuizType.WRITTEN_TO_PHONETIC,
        QuizType.WRITTEN_TO_EXAMPLE,
    ):
        return vocab.written_form
    if question.type in (QuizType.MEANING_TO_WRITTEN, QuizType.MEANING_TO_EXAMPLE):
        return vocab.meaning
    if question.type in (QuizType.PHONETIC_TO_WRITTEN, QuizType.PHONETIC_TO_EXAMPLE):
        return vocab.phonetic_form
    if question.type == QuizType.EXAMPLE_TO_MEANING:
        return mask_word(vocab.example, vocab) if vocab.has_example else vocab.written_form
    return ""


def option_text(question: Question, option: VocabularyEntry) -> str:
    if question.type in (QuizType.WRITTEN_TO_MEANING, QuizType.EXAMPLE_TO_MEANING):
        return option.meaning
    if question.type == QuizType.WRITTEN_TO_PHONETIC:
        return option.phonetic_form
    if question.type in (QuizType.MEANING_TO_WRITTEN, QuizType.PHONETIC_TO_WRITTEN):
        return option.written_form
    # Example options are masked too so the learner matches context, not the word.
    return mask_word(option.example, option) if option.has_example else NO_EXAMPLE


def prompt_audio(question: Question) -> Optional[str]:
    """Text to speak for the prompt; None where audio would give the answer away."""
    vocab = question.vocab
    if question.type in (
        QuizType.WRITTEN_TO_MEANING,
        QuizType.WRITTEN_TO_EXAMPLE,
        QuizType.PHONETIC_TO_WRITTEN,
    ):
        return vocab.phonetic_form
    if question.type == QuizType.EXAMPLE_TO_MEANING:
        return vocab.example or None
    return None


def option_audio(question: Question, option: VocabularyEntry) -> Optional[str]:
    if question.type in (
        QuizType.MEANING_TO_WRITTEN,
        QuizType.PHONETIC_TO_WRITTEN,
        QuizType.WRITTEN_TO_PHONETIC,
    ):
        return option.phonetic_form
    if question.type in (
        QuizType.WRITTEN_TO_EXAMPLE,
        QuizType.MEANING_TO_EXAMPLE,
        QuizType.PHONETIC_TO_EXAMPLE,
    ):
        return option.example or None
    return None


def instruction_text(quiz_type: QuizType) -> str:
    return INSTRUCTIONS.get(quiz_type, DEFAULT_INSTRUCTION)


def render_question(question: Question) -> Dict[str, Any]:
    return {
        "type": question.type.value,
        "instruction": instruction_text(question.type),
        "prompt": prompt_text(question),
        "prompt_audio": prompt_audio(question),
        "options": [
            {
                "id": option.id,
                "text": option_text(question, option),
                "audio": option_audio(question, option),
            }
            for option in question.options
        ],
    }

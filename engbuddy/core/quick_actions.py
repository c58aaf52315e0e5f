"""Preset prompts offered next to the input box."""

from dataclasses import dataclass
from typing import List


TEMPLATE_PLACEHOLDER = "(여기에 문장을 입력하세요)"


@dataclass(frozen=True)
class QuickAction:
    label: str
    prompt: str

    @property
    def is_template(self) -> bool:
        """Templates go to the input box for editing instead of being sent."""
        return TEMPLATE_PLACEHOLDER in self.prompt


QUICK_ACTIONS: List[QuickAction] = [
    QuickAction(
        label="주제 추천해줘",
        prompt=(
            "중학교 2학년 수준의 영어 말하기 수행평가 주제 3가지만 추천해줘. "
            "각 주제별로 간단한 이유도 한국어로 설명해줘."
        ),
    ),
    QuickAction(
        label="문법 교정해줘",
        prompt=(
            "내가 쓴 영어 문장을 문법적으로 완벽하게 고쳐주고, 틀린 부분을 설명해줘. "
            f"{TEMPLATE_PLACEHOLDER}"
        ),
    ),
    QuickAction(
        label="표현 다듬기",
        prompt=(
            "내가 쓴 글을 좀 더 원어민스럽고 자연스러운 표현으로 바꿔줘. "
            f"{TEMPLATE_PLACEHOLDER}"
        ),
    ),
    QuickAction(
        label="도움말",
        prompt="EngBuddy, 너는 어떤 기능을 도와줄 수 있어? 사용 방법을 알려줘.",
    ),
]


def fill_template(action: QuickAction, sentence: str) -> str:
    """Put the student's sentence where the placeholder was."""
    return action.prompt.replace(TEMPLATE_PLACEHOLDER, sentence.strip())

# substack/core/sources.py
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from substack.core.categories import UpdateCategory, UpdateImportance


class SourceKind(str, Enum):
    RSS = "rss"
    MANUAL = "manual"
    SOCIAL = "social"


@dataclass(frozen=True)
class ManualEntry:
    """A hardcoded announcement; published `age_hours` before each refresh."""
    title: str
    summary: str
    link: str
    age_hours: float
    category: UpdateCategory = UpdateCategory.GENERAL
    importance: UpdateImportance = UpdateImportance.NORMAL


@dataclass(frozen=True)
class FeedSource:
    name: str
    icon: str
    kind: SourceKind
    url: Optional[str] = None
    category: str = ""
    entries: Tuple[ManualEntry, ...] = ()


def default_sources() -> List[FeedSource]:
    """The feeds the app ships with."""
    return [
        FeedSource("Hacker News", "💻", SourceKind.RSS, url="https://news.ycombinator.com/rss", category="개발"),
        FeedSource("Reddit r/MachineLearning", "🤖", SourceKind.RSS,
                   url="https://www.reddit.com/r/MachineLearning/.rss", category="AI 연구"),
        FeedSource("Reddit AI", "🤖", SourceKind.RSS,
                   url="https://www.reddit.com/r/artificial/.rss", category="AI 커뮤니티"),
        FeedSource("Reddit OpenAI", "🤖", SourceKind.RSS,
                   url="https://www.reddit.com/r/OpenAI/.rss", category="AI 커뮤니티"),
        FeedSource("Reddit LocalLLaMA", "🤖", SourceKind.RSS,
                   url="https://www.reddit.com/r/LocalLLaMA/.rss", category="AI 커뮤니티"),
        FeedSource("OpenAI", "🤖", SourceKind.RSS, url="https://openai.com/blog/rss.xml", category="LLM"),
        FeedSource("Google AI", "🔍", SourceKind.RSS,
                   url="https://ai.googleblog.com/feeds/posts/default", category="LLM"),
        FeedSource("OpenAI", "🤖", SourceKind.MANUAL, category="LLM", entries=(
            ManualEntry(
                title="ChatGPT 음성 기능 무료 사용자에게 공개",
                summary="OpenAI가 ChatGPT의 음성 대화 기능을 무료 사용자에게도 제공하기 시작했습니다. "
                        "iOS와 Android 앱에서 사용 가능합니다.",
                link="https://openai.com",
                age_hours=1,
                category=UpdateCategory.NEW_FEATURE,
                importance=UpdateImportance.CRITICAL,
            ),
        )),
        FeedSource("Claude", "🧠", SourceKind.MANUAL, category="LLM", entries=(
            ManualEntry(
                title="Claude 3.5 Sonnet 성능 개선 업데이트",
                summary="코드 생성 정확도가 15% 향상되었으며, 수학 문제 해결 능력이 강화되었습니다.",
                link="https://anthropic.com",
                age_hours=2,
                category=UpdateCategory.MODEL_UPDATE,
            ),
        )),
        FeedSource("Midjourney", "🎨", SourceKind.MANUAL, category="이미지", entries=(
            ManualEntry(
                title="새로운 --style 파라미터 추가",
                summary="이미지 생성 시 특정 아트 스타일을 쉽게 적용할 수 있는 새로운 파라미터가 추가되었습니다.",
                link="https://midjourney.com",
                age_hours=3,
                category=UpdateCategory.NEW_FEATURE,
            ),
        )),
        # No API keys for these yet; they publish fixed placeholder items.
        FeedSource("X", "🐦", SourceKind.SOCIAL, entries=(
            ManualEntry(
                title="OpenAI DevDay 2025 발표",
                summary="GPT-5 프리뷰와 새로운 API 기능이 공개되었습니다.",
                link="https://x.com/openai",
                age_hours=1,
                category=UpdateCategory.NEW_FEATURE,
                importance=UpdateImportance.CRITICAL,
            ),
        )),
        FeedSource("YouTube", "📺", SourceKind.SOCIAL, entries=(
            ManualEntry(
                title="Two Minute Papers: 새로운 AI 논문 리뷰",
                summary="최신 Diffusion 모델 개선 논문을 다룹니다.",
                link="https://youtube.com",
                age_hours=2,
            ),
        )),
    ]

# substack/core/categories.py
from enum import Enum, IntEnum
from typing import Dict, List, Tuple


class BillingCycle(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def multiplier(self) -> int:
        """Number of payments per year."""
        return BILLING_CYCLE_MULTIPLIERS[self]

    @property
    def label(self) -> str:
        return BILLING_CYCLE_LABELS[self]


BILLING_CYCLE_MULTIPLIERS: Dict[BillingCycle, int] = {
    BillingCycle.WEEKLY: 52,
    BillingCycle.MONTHLY: 12,
    BillingCycle.YEARLY: 1,
}

BILLING_CYCLE_LABELS: Dict[BillingCycle, str] = {
    BillingCycle.WEEKLY: "주간",
    BillingCycle.MONTHLY: "월간",
    BillingCycle.YEARLY: "연간",
}


# --- Merchant categories (transaction detector) ---
class MerchantCategory(str, Enum):
    DEVELOPMENT = "development"
    ENTERTAINMENT = "entertainment"
    DESIGN = "design"
    EDUCATION = "education"
    OTHER = "other"

    @property
    def label(self) -> str:
        return MERCHANT_CATEGORY_LABELS[self]


MERCHANT_CATEGORY_LABELS: Dict[MerchantCategory, str] = {
    MerchantCategory.DEVELOPMENT: "개발",
    MerchantCategory.ENTERTAINMENT: "엔터테인먼트",
    MerchantCategory.DESIGN: "디자인",
    MerchantCategory.EDUCATION: "교육",
    MerchantCategory.OTHER: "기타",
}

# Checked in order; the first rule with a matching keyword wins.
MERCHANT_KEYWORDS: List[Tuple[MerchantCategory, List[str]]] = [
    (MerchantCategory.DEVELOPMENT, ["github", "aws", "vercel", "heroku"]),
    (MerchantCategory.ENTERTAINMENT, ["netflix", "spotify", "youtube"]),
    (MerchantCategory.DESIGN, ["figma", "adobe"]),
    (MerchantCategory.EDUCATION, ["udemy", "coursera"]),
]


def classify_merchant(merchant: str) -> MerchantCategory:
    """Case-insensitive substring match against MERCHANT_KEYWORDS. Defaults to OTHER."""
    lower = merchant.lower()
    for category, keywords in MERCHANT_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category
    return MerchantCategory.OTHER


# --- Feed update categories ---
class UpdateCategory(str, Enum):
    NEW_FEATURE = "newFeature"
    PRICE_CHANGE = "priceChange"
    API_UPDATE = "apiUpdate"
    MODEL_UPDATE = "modelUpdate"
    POLICY = "policy"
    GENERAL = "general"

    @property
    def label(self) -> str:
        return UPDATE_CATEGORY_LABELS[self]


UPDATE_CATEGORY_LABELS: Dict[UpdateCategory, str] = {
    UpdateCategory.NEW_FEATURE: "새 기능",
    UpdateCategory.PRICE_CHANGE: "가격 변경",
    UpdateCategory.API_UPDATE: "API 업데이트",
    UpdateCategory.MODEL_UPDATE: "모델 업데이트",
    UpdateCategory.POLICY: "정책 변경",
    UpdateCategory.GENERAL: "일반",
}


class UpdateImportance(IntEnum):
    CRITICAL = 3
    NORMAL = 2
    MINOR = 1

    @property
    def label(self) -> str:
        return UPDATE_IMPORTANCE_LABELS[self]


UPDATE_IMPORTANCE_LABELS: Dict[UpdateImportance, str] = {
    UpdateImportance.CRITICAL: "중요",
    UpdateImportance.NORMAL: "일반",
    UpdateImportance.MINOR: "마이너",
}


# --- Display tokens ---
DEFAULT_SERVICE_ICON = "📱"
DEFAULT_COLOR = "gray"

SERVICE_ICONS: List[Tuple[str, str]] = [
    ("github", "💻"),
    ("netflix", "🎬"),
    ("spotify", "🎵"),
    ("notion", "📝"),
    ("chatgpt", "🤖"),
    ("claude", "🧠"),
]

CATEGORY_COLORS: Dict[str, str] = {
    "개발": "blue",
    "코딩": "blue",
    "엔터테인먼트": "red",
    "음악": "green",
    "디자인": "purple",
    "교육": "orange",
}


def icon_for_service(name: str) -> str:
    """Emoji for a service name; DEFAULT_SERVICE_ICON when no keyword matches."""
    lower = name.lower()
    for keyword, icon in SERVICE_ICONS:
        if keyword in lower:
            return icon
    return DEFAULT_SERVICE_ICON


def color_for_category(category_label: str) -> str:
    """Color token for a category label; DEFAULT_COLOR for unknown labels."""
    return CATEGORY_COLORS.get(category_label, DEFAULT_COLOR)

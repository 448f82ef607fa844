"""
Rule-based comment sentiment. Deterministic keyword/emoji containment over
the lower-cased text; precedence negative > inquiry > positive > neutral.
"""

from app.models.agent_models import Reaction, Sentiment, SentimentResult


# --- KEYWORDS ---

NEGATIVE_TERMS = [
    "খারাপ", "বাজে", "জঘন্য", "ফ্রড", "প্রতারক", "চোর", "লোভী",
    "scam", "fraud", "fake", "worst", "terrible", "bad",
    "😡", "🤮", "👎",
]

INQUIRY_TERMS = [
    "দাম", "প্রাইস", "কত", "price", "cost", "how much",
    "কিভাবে", "কোথায়", "কবে", "আছে", "পাবো", "দিবেন",
    "?", "inbox", "pm", "dm",
]

POSITIVE_TERMS = [
    "ভালো", "সুন্দর", "অসাধারণ", "চমৎকার", "দারুণ", "মাশাআল্লাহ",
    "wow", "nice", "beautiful", "amazing", "great", "love it",
    "❤️", "😍", "🔥", "👍", "💯",
]

_RULES = [
    (NEGATIVE_TERMS, SentimentResult(Sentiment.NEGATIVE, False, Reaction.NONE)),
    (INQUIRY_TERMS, SentimentResult(Sentiment.INQUIRY, True, Reaction.LIKE)),
    (POSITIVE_TERMS, SentimentResult(Sentiment.POSITIVE, True, Reaction.LOVE)),
]

NEUTRAL = SentimentResult(Sentiment.NEUTRAL, True, Reaction.LIKE)


def analyze_comment_sentiment(comment: str) -> SentimentResult:
    """Classify a comment. Empty or whitespace-only text is neutral."""
    text = (comment or "").lower()
    if not text.strip():
        return NEUTRAL

    for terms, result in _RULES:
        if any(term in text for term in terms):
            return result
    return NEUTRAL

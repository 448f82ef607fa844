"""
Prompt Builder: renders the sales-agent system prompt from a PageConfig.

Pure functions only. Conditional blocks are appended in a fixed order
(selling, behavior, payment, delivery, custom instructions).
"""

from typing import Dict, List, Optional

from app.models.page_models import (
    BehaviorRules,
    DeliveryRules,
    PageConfig,
    PaymentRules,
    SellingRules,
)

HISTORY_WINDOW = 10
MEDIA_PLACEHOLDER = "[Media received]"

PERSONA_PREAMBLE = "তুমি একজন বাংলাদেশি অনলাইন বিক্রেতার AI সেলস এজেন্ট।"

CORE_RULES = [
    "সবসময় বাংলায় উত্তর দাও (Banglish ও গ্রহণযোগ্য)",
    "ছোট, friendly এবং helpful উত্তর দাও",
    "প্রাইস জিজ্ঞেস করলে সঠিক দাম বলো",
    "যা জানো না তা বানিয়ে বলো না - বলো \"আমি নিশ্চিত না, একটু অপেক্ষা করুন\"",
    "অর্ডার নিতে পারলে: নাম, ফোন নম্বর, ঠিকানা নাও",
]

DEFAULT_PROMPT = f"""{PERSONA_PREAMBLE}

## মূল নিয়ম
1. সবসময় বাংলায় উত্তর দাও (Banglish ও গ্রহণযোগ্য)
2. ছোট, friendly এবং helpful উত্তর দাও
3. কাস্টমারকে সাহায্য করো
4. যা জানো না তা বানিয়ে বলো না

## অর্ডার নিতে হলে
- নাম
- ফোন নম্বর
- সম্পূর্ণ ঠিকানা"""

COMMENT_REPLY_INSTRUCTION = "এটা একটা পাবলিক কমেন্ট। ছোট, প্রফেশনাল ও ফ্রেন্ডলি রিপ্লাই দাও। ইনবক্সে আসতে বলতে পারো।"

DEFAULT_BUSINESS = "একটি অনলাইন বিজনেস"
DEFAULT_TONE = "friendly"


def _fmt(value) -> str:
    """60.0 -> '60', anything else str()."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _selling_lines(rules: SellingRules) -> List[str]:
    lines = []
    if rules.show_price_in_first_reply:
        lines.append("প্রথম reply তেই প্রাইস বলো")
    if rules.ask_for_phone_number:
        lines.append("সবসময় ফোন নম্বর জিজ্ঞেস করো")
    if rules.upsell_related_products:
        lines.append("Related products suggest করো")
    if rules.offer_discount:
        lines.append("Discount অফার করতে পারো")
    if rules.use_price_from_product:
        lines.append("সবসময় প্রোডাক্ট তালিকার দাম বলো")
    if rules.allow_discount:
        max_discount = _fmt(rules.max_discount_percent or 10)
        lines.append(f"সর্বোচ্চ {max_discount}% পর্যন্ত ছাড় দিতে পারো, তবে সরাসরি max discount বলবে না")
    if rules.bargaining_enabled:
        if rules.allow_discount:
            level = (rules.bargaining_level or "medium").upper()
            low = _fmt(rules.min_acceptable_discount or 1)
            high = _fmt(rules.max_acceptable_discount or 5)
            lines.append(f"দর কষাকষি চালু ({level}): {low}% থেকে {high}% পর্যন্ত negotiate করতে পারো, এর বেশি না")
        else:
            lines.append("দর কষাকষি করতে পারো, value বোঝাও, কিন্তু কোনো discount দেবে না")
    if rules.allow_low_profit_sale:
        lines.append("Customer জোর করলে কম লাভে বিক্রি করতে পারো")
    return lines


def _behavior_block(rules: BehaviorRules) -> str:
    lines = []
    if rules.greeting_style:
        lines.append(f"- Greeting Style: {rules.greeting_style}")
    if rules.handle_negative_comments == "polite":
        lines.append("- নেগেটিভ কমেন্টে politely respond করো")
    if rules.never_hallucinate:
        lines.append("- মনগড়া তথ্য দেবে না, না জানলে বলো \"sure না, check করে বলছি\"")
    if rules.ask_clarification_if_unsure:
        lines.append("- অনিশ্চিত হলে জিজ্ঞেস করো")
    if rules.ask_for_clearer_photo_if_needed:
        lines.append("- ছবি unclear হলে আবার চাও")
    if rules.confirm_before_order:
        lines.append("- অর্ডার নেওয়ার আগে confirm করো")
    if not lines:
        return ""
    return "## আচরণ\n" + "\n".join(lines)


def _payment_block(rules: PaymentRules) -> str:
    parts = []
    if rules.cod_enabled:
        parts.append("Cash on Delivery আছে")
    if rules.accept_bkash:
        parts.append(f"বিকাশ: {rules.bkash_number or 'আছে'}")
    if rules.accept_nagad:
        parts.append(f"নগদ: {rules.nagad_number or 'আছে'}")
    if not parts:
        return ""

    block = "## পেমেন্ট: " + ", ".join(parts)
    if rules.cod_enabled and rules.advance_required_above:
        percentage = _fmt(rules.advance_percentage or 50)
        block += f"\n- ৳{_fmt(rules.advance_required_above)} এর বেশি হলে {percentage}% advance"
    return block


def _delivery_block(rules: DeliveryRules) -> str:
    parts = []
    if rules.inside_dhaka:
        parts.append(f"ঢাকায় {_fmt(rules.inside_dhaka)}৳")
    if rules.outside_dhaka:
        parts.append(f"ঢাকার বাইরে {_fmt(rules.outside_dhaka)}৳")
    if rules.delivery_time:
        parts.append(f"সময় {rules.delivery_time}")
    if not parts:
        return ""
    return "## ডেলিভারি: " + ", ".join(parts)


def build_system_prompt(page: Optional[PageConfig]) -> str:
    """System prompt for the page. None gives the default persona."""
    if page is None:
        return DEFAULT_PROMPT

    rules = CORE_RULES + _selling_lines(page.selling_rules)
    numbered = "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, start=1))

    prompt = f"""{PERSONA_PREAMBLE}

## বিজনেস তথ্য
- বিজনেস: {page.business_description or DEFAULT_BUSINESS}
- প্রোডাক্ট: {page.products_summary or ''}
- টোন: {page.preferred_tone or DEFAULT_TONE}

## মূল নিয়ম
{numbered}"""

    custom = ""
    if page.custom_instructions:
        custom = f"## বিশেষ নির্দেশনা\n{page.custom_instructions}"

    for block in (
        _behavior_block(page.behavior_rules),
        _payment_block(page.payment_rules),
        _delivery_block(page.delivery_rules),
        custom,
    ):
        if block:
            prompt += "\n\n" + block

    return prompt


def build_message_messages(page: Optional[PageConfig], history: List[Dict], user_text: str) -> List[Dict[str, str]]:
    """Messages for a DM turn: system prompt, recent history, the new user text."""
    messages = [{"role": "system", "content": build_system_prompt(page)}]
    for entry in history[-HISTORY_WINDOW:]:
        messages.append({"role": entry["role"], "content": entry.get("content") or ""})
    messages.append({"role": "user", "content": user_text or MEDIA_PLACEHOLDER})
    return messages


def build_comment_messages(page: Optional[PageConfig], comment_text: str,
                           commenter_name: Optional[str] = None) -> List[Dict[str, str]]:
    """Messages for a public comment reply."""
    user_content = f"কমেন্ট: \"{comment_text}\""
    if commenter_name:
        user_content += f"\nকমেন্টকারী: {commenter_name}"
    return [
        {"role": "system", "content": build_system_prompt(page)},
        {"role": "system", "content": COMMENT_REPLY_INSTRUCTION},
        {"role": "user", "content": user_content},
    ]

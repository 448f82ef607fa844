"""
PageConfig: the per-page automation settings stored in `page_memory`.

Rule groups are stored as JSON objects with camelCase keys written by the
settings UI. They are validated here into typed models so the prompt builder
never touches an untyped dict. Unknown keys are kept (extra="allow") but
nothing in the pipeline reads them.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Amount = Union[int, float, str]


class _RuleGroup(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class SellingRules(_RuleGroup):
    show_price_in_first_reply: bool = False
    ask_for_phone_number: bool = False
    upsell_related_products: bool = False
    offer_discount: bool = False
    use_price_from_product: bool = False
    allow_discount: bool = False
    max_discount_percent: Optional[Amount] = None
    bargaining_enabled: bool = False
    bargaining_level: Optional[str] = None
    min_acceptable_discount: Optional[Amount] = None
    max_acceptable_discount: Optional[Amount] = None
    allow_low_profit_sale: bool = False


class BehaviorRules(_RuleGroup):
    greeting_style: Optional[str] = None
    handle_negative_comments: Optional[str] = None
    never_hallucinate: bool = False
    ask_clarification_if_unsure: bool = False
    ask_for_clearer_photo_if_needed: bool = False
    confirm_before_order: bool = False


class PaymentRules(_RuleGroup):
    accept_cod: bool = Field(False, alias="acceptCOD")
    cod_available: bool = False
    advance_required_above: Optional[Amount] = None
    advance_percentage: Optional[Amount] = None
    accept_bkash: bool = False
    bkash_number: Optional[str] = None
    accept_nagad: bool = False
    nagad_number: Optional[str] = None

    @property
    def cod_enabled(self) -> bool:
        return self.accept_cod or self.cod_available


class DeliveryRules(_RuleGroup):
    inside_dhaka: Optional[Amount] = None
    outside_dhaka: Optional[Amount] = None
    delivery_time: Optional[str] = None


class PageConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    page_id: str
    user_id: str
    page_name: Optional[str] = None

    business_description: Optional[str] = None
    products_summary: Optional[str] = None
    preferred_tone: Optional[str] = None
    custom_instructions: Optional[str] = None

    selling_rules: SellingRules = Field(default_factory=SellingRules)
    behavior_rules: BehaviorRules = Field(default_factory=BehaviorRules)
    payment_rules: PaymentRules = Field(default_factory=PaymentRules)
    delivery_rules: DeliveryRules = Field(default_factory=DeliveryRules)

    is_ai_enabled: bool = False
    auto_like_comments: bool = False
    auto_reply_comments: bool = False
    hide_negative_comments: bool = False

    @field_validator("selling_rules", "behavior_rules", "payment_rules", "delivery_rules", mode="before")
    @classmethod
    def _null_rules_to_empty(cls, value):
        return {} if value is None else value

    @field_validator("is_ai_enabled", "auto_like_comments", "auto_reply_comments",
                     "hide_negative_comments", mode="before")
    @classmethod
    def _null_flags_to_false(cls, value):
        return False if value is None else value

"""Typed ``{action, data}`` envelope accepted by the ingestion endpoint.

Each action has its own payload model; the envelope is a discriminated union
on ``action``. Field names follow the storefront's camelCase wire format.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from scent_analytics.core.exceptions import InvalidPayloadError, UnknownActionError

# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class VisitData(BaseModel):
    sessionId: str | None = None


class PageviewData(BaseModel):
    pageUrl: str
    pageTitle: str | None = None
    referrer: str | None = None
    sessionId: str | None = None
    timeOnPage: int | None = None
    scrollDepth: float | None = None


class CartItem(BaseModel):
    # Storefront items also carry name/image/product_id; keep whatever is sent.
    model_config = ConfigDict(extra="allow")

    productId: str | None = None
    size: str | None = None
    quantity: int = Field(ge=0)
    price: float | None = None


class CartData(BaseModel):
    items: list[CartItem] = []
    subtotal: float = 0.0
    sessionId: str | None = None
    userEmail: str | None = None


class CartConvertedData(BaseModel):
    pass


class EndSessionData(BaseModel):
    sessionId: str | None = None
    duration: int | None = None


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class _Event(BaseModel):
    @field_validator("data", mode="before", check_fields=False)
    @classmethod
    def _null_data_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class VisitEvent(_Event):
    action: Literal["visit"]
    data: VisitData = Field(default_factory=VisitData)


class PageviewEvent(_Event):
    action: Literal["pageview"]
    data: PageviewData


class CartEvent(_Event):
    action: Literal["cart"]
    data: CartData = Field(default_factory=CartData)


class CartConvertedEvent(_Event):
    action: Literal["cart_converted"]
    data: CartConvertedData = Field(default_factory=CartConvertedData)


class EndSessionEvent(_Event):
    action: Literal["end_session"]
    data: EndSessionData = Field(default_factory=EndSessionData)


TrackingEvent = Annotated[
    Union[VisitEvent, PageviewEvent, CartEvent, CartConvertedEvent, EndSessionEvent],
    Field(discriminator="action"),
]

ACTIONS = frozenset({"visit", "pageview", "cart", "cart_converted", "end_session"})

_event_adapter: TypeAdapter[TrackingEvent] = TypeAdapter(TrackingEvent)


def parse_event(payload: Any) -> TrackingEvent:
    """Validate a raw JSON body into one of the event variants.

    Raises UnknownActionError when ``action`` is missing or unrecognised and
    InvalidPayloadError when the action is known but ``data`` does not fit.
    """
    if not isinstance(payload, dict):
        raise InvalidPayloadError()
    action = payload.get("action")
    if not isinstance(action, str) or action not in ACTIONS:
        raise UnknownActionError()
    try:
        return _event_adapter.validate_python(payload)
    except ValidationError as exc:
        raise InvalidPayloadError() from exc

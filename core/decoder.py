"""
Model Decoder

The single entrypoint through which REST responses and stream frames are turned
into typed models. Any validation failure becomes a DecodeError naming the
failing field, so REST and streaming report bad payloads the same way.
"""

from typing import Any, Iterable, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from core.errors import DecodeError


M = TypeVar("M", bound=BaseModel)


def decode_model(data: Any, model: Type[M]) -> M:
    """
    Decode a structural map into a model instance.

    Args:
        data: Parsed JSON object
        model: Target pydantic model class

    Returns:
        An instance of model

    Raises:
        DecodeError: If data doesn't validate; field holds the dotted location
            of the first failing field

    Example:
        >>> decode_model({"orderId": "abc"}, OrderResponse)
        OrderResponse(order_id='abc', ...)
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise DecodeError(
            f"cannot decode {model.__name__}: {first.get('msg')}",
            raw=data,
            field=field
        ) from e


def decode_models(items: Iterable[Any], model: Type[M]) -> List[M]:
    """Decode every element of items, preserving order"""
    return [decode_model(item, model) for item in items]

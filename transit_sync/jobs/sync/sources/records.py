import logging
from typing import Iterable, Type, TypeVar

from pydantic import BaseModel, ValidationError

from transit_sync.core.errors import UpstreamDecodeError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def expect_list(data, *, context: str = "") -> list:
    """None means the upstream had nothing; any other non-list payload is an error body."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise UpstreamDecodeError(
            f"{context}: expected a list of records, got {type(data).__name__}: {str(data)[:200]}"
        )
    return data


def parse_records(model: Type[M], items: Iterable[dict], *, context: str = "") -> list[M]:
    """Validate upstream records one by one; records that fail validation are logged and dropped."""
    out: list[M] = []
    for raw in items or []:
        try:
            out.append(model.model_validate(raw))
        except ValidationError as e:
            logger.info(
                "Dropping %s record%s: %s",
                model.__name__,
                f" ({context})" if context else "",
                e.errors()[0].get("msg") if e.errors() else e,
            )
    return out

from fastapi import Request

from store_rating.core.errors import ValidationError
from store_rating.query.pager import Pager
from store_rating.query.predicates import parse_int


def positive_id(raw, message: str) -> int:
    value = parse_int(raw)
    if value is None or value <= 0:
        raise ValidationError(message)
    return value


def get_pager(request: Request) -> Pager:
    settings = request.app.state.settings
    return Pager.from_query(
        request.query_params.get("page"),
        request.query_params.get("limit"),
        default_limit=settings.DEFAULT_PAGE_SIZE,
        max_limit=settings.MAX_PAGE_SIZE,
    )

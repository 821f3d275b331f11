from typing import Dict, Optional


class DetailLevel:
    """
    OData clauses narrowing a get or list request.
    filter_clause: $filter expression, e.g. "state eq 'active'".
    select_clause: comma-separated properties to return ($select).
    expand_clause: related entities to inline ($expand), e.g. "stats".
    """

    def __init__(
        self,
        filter_clause: Optional[str] = None,
        select_clause: Optional[str] = None,
        expand_clause: Optional[str] = None,
    ):
        self.filter_clause = filter_clause
        self.select_clause = select_clause
        self.expand_clause = expand_clause

    def to_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.filter_clause:
            params["$filter"] = self.filter_clause
        if self.select_clause:
            params["$select"] = self.select_clause
        if self.expand_clause:
            params["$expand"] = self.expand_clause
        return params

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DetailLevel):
            return NotImplemented
        return self.to_params() == other.to_params()

    def __repr__(self) -> str:
        return f"DetailLevel({self.to_params()!r})"


def build_detail_level(
    filter_clause: Optional[str] = None,
    select_clause: Optional[str] = None,
    expand_clause: Optional[str] = None,
) -> Optional[DetailLevel]:
    """Returns None when no clause is given so the request carries no OData options."""
    if not (filter_clause or select_clause or expand_clause):
        return None
    return DetailLevel(filter_clause, select_clause, expand_clause)

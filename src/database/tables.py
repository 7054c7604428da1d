"""
Table descriptors used by the service layer to build SQL
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Table:
    """Name, primary key and column whitelist of a table"""
    name: str
    id_field: str
    columns: Tuple[str, ...]

    def has_column(self, column: str) -> bool:
        return column == self.id_field or column in self.columns


USERS = Table(
    name="users",
    id_field="id",
    columns=("username", "email", "first_name", "age", "created_at"),
)

ADDRESS = Table(
    name="address",
    id_field="id",
    columns=("user_id", "city", "build", "apartment"),
)

CAR = Table(
    name="car",
    id_field="id",
    columns=("model", "release_year"),
)

USERS_CAR = Table(
    name="users_car",
    id_field="id",
    columns=("user_id", "car_id"),
)

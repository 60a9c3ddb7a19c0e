from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class Role(str, Enum):
    """Role a registered user acts under."""

    STUDENT = "student"
    TEACHER = "teacher"


class User(BaseModel):
    """
    Registered account.

    Equality and hashing use the username only, so a user deserialized from
    the users collection matches the copy embedded in a progress record or a
    learning path even though they are different instances.
    """

    username: str = Field(min_length=1)
    password: str
    name: str
    role: str

    def authenticate(self, password: str) -> bool:
        """Plain credential comparison."""
        return self.password == password

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, User):
            return NotImplemented
        return self.username == other.username

    def __hash__(self) -> int:
        return hash(("user", self.username))


class Student(User):
    role: Literal["student"] = "student"


class Teacher(User):
    role: Literal["teacher"] = "teacher"


AnyUser = Annotated[Union[Student, Teacher], Field(discriminator="role")]

USER_ADAPTER: TypeAdapter[Union[Student, Teacher]] = TypeAdapter(AnyUser)


def build_user(username: str, password: str, name: str, role: Role | str) -> User:
    """Instantiate the concrete user class for ``role``."""
    return USER_ADAPTER.validate_python(
        {"username": username, "password": password, "name": name, "role": Role(role).value}
    )

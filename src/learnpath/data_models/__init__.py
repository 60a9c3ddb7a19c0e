from .users import USER_ADAPTER, AnyUser, Role, Student, Teacher, User, build_user

__all__ = [
    "AnyUser",
    "Role",
    "Student",
    "Teacher",
    "User",
    "USER_ADAPTER",
    "build_user",
]

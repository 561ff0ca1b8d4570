"""Column types shared by the models"""
import uuid

from sqlalchemy import TypeDecorator, String


def generate_uuid() -> str:
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """
    UUID stored as a 36 character string.

    Works the same on PostgreSQL and SQLite, and always hands back ``str``
    so ids compare equal regardless of whether a caller passed a UUID.
    """
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else str(value)

from decimal import Decimal
from sqlalchemy.orm import declarative_base

class DictMixin:
    """
    Mixin providing a standardized dictionary serialization for catalog models.
    """
    def to_dict(self):
        out = {}
        for c in self.__table__.columns:
            value = getattr(self, c.key)
            if isinstance(value, Decimal):
                value = float(value)
            elif hasattr(value, "isoformat"):
                value = value.isoformat()
            out[c.key] = value
        return out

Base = declarative_base(cls=DictMixin)

"""Domain models."""

from dataclasses import dataclass


class Base:
    def to_dict(self):
        return dict(self.__dict__)


@dataclass
class User(Base):
    id: int
    name: str

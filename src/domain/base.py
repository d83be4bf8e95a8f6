"""Shared base for domain entities"""

from sqlalchemy import BigInteger, Column, ForeignKey, Integer
from sqlmodel import SQLModel

# BIGINT keys, but SQLite only autoincrements INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(SQLModel):
    pass


def id_column() -> Column:
    return Column(IdType, primary_key=True, autoincrement=True)


def fk_column(target: str, nullable: bool = False, ondelete: str = "CASCADE", **kwargs) -> Column:
    return Column(IdType, ForeignKey(target, ondelete=ondelete), nullable=nullable, **kwargs)

"""Declarative base shared by every storefront model."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass

# models/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
     """
     Base class for all SQLAlchemy models.
     Every model declares its own __tablename__ so names match the existing schema.
     """

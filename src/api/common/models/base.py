from datetime import datetime
from sqlmodel import Field, SQLModel, DateTime
from sqlalchemy.ext.declarative import declared_attr
from src.api.common.utils.datetime import get_current_datetime


class TimestampMixin:
    """Adds created_at / updated_at to a table model"""
    created_at: datetime = Field(
        default_factory=get_current_datetime,
        sa_type=DateTime(timezone=True), nullable=False)
    updated_at: datetime = Field(
        default_factory=get_current_datetime,
        sa_type=DateTime(timezone=True), nullable=False)

    def touch(self) -> None:
        self.updated_at = get_current_datetime()


class BaseModel(SQLModel):
    """Base for table models; the table name is the lowercased class name"""
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

#taskhub/models/tag.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from taskhub.models.base import Base, utcnow


class Tag(Base):
    """
    Tag — метка для задач. Изменять и удалять может только создатель.
    Имя уникально без учёта регистра среди неудалённых тегов (проверяется в crud).
    """
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, index=True, doc="Имя тега")
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, doc="Автор")
    is_deleted = Column(Boolean, default=False, nullable=False, doc="Soft-delete")
    deleted_at = Column(DateTime(timezone=True), nullable=True, doc="Дата удаления")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, doc="Дата создания")
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False, doc="Дата изменения")

    def __repr__(self):
        return f"<Tag(id={self.id}, name='{self.name}', created_by={self.created_by})>"

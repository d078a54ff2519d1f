#taskhub/models/task_tag.py
from sqlalchemy import Column, Integer, ForeignKey
from taskhub.models.base import Base


class TaskTag(Base):
    """
    TaskTag — связь задача↔тег. Уникальная пара, без собственного id.
    Не каскадируется при удалении задачи или тега.
    """
    __tablename__ = "task_tags"

    task_id = Column(Integer, ForeignKey("tasks.id"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id"), primary_key=True, index=True)

    def __repr__(self):
        return f"<TaskTag(task_id={self.task_id}, tag_id={self.tag_id})>"

from .user import User
from .project import Project
from .task import Task
from .tag import Tag
from .task_tag import TaskTag
from .notification import Notification
from .activity_log import ActivityLog, EntityType, EntityRef

# все модели должны быть импортированы здесь, чтобы Base.metadata их видел

# taskhub/core/exceptions.py

from typing import Any, Optional


class BaseAppException(Exception):
    """
    Базовый класс для всех кастомных исключений приложения.
    kind — машиночитаемый код ошибки, status_code — HTTP-статус ответа.
    """
    kind: str = "INTERNAL"
    status_code: int = 500

    def __init__(self, message: str = "App exception", details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

# ==== Валидация ====

class ValidationError(BaseAppException):
    """Ошибка валидации входных данных. details — список ошибок по полям."""
    kind = "VALIDATION"
    status_code = 400

    def __init__(self, message: str = "Validation error", details: Optional[Any] = None, field: Optional[str] = None):
        if details is None and field is not None:
            details = [{"field": field, "message": message}]
        super().__init__(message, details)

class ProjectValidationError(ValidationError):
    """Ошибка валидации проекта."""
    def __init__(self, message: str = "Project validation error", **kwargs):
        super().__init__(message, **kwargs)

class TaskValidationError(ValidationError):
    """Ошибка валидации задачи."""
    def __init__(self, message: str = "Task validation error", **kwargs):
        super().__init__(message, **kwargs)

class TagValidationError(ValidationError):
    """Ошибка валидации тега."""
    def __init__(self, message: str = "Tag validation error", **kwargs):
        super().__init__(message, **kwargs)

class NotificationValidationError(ValidationError):
    """Ошибка валидации запроса к уведомлениям."""
    def __init__(self, message: str = "Notification validation error", **kwargs):
        super().__init__(message, **kwargs)

class UserValidationError(ValidationError):
    """Ошибка валидации пользователя."""
    def __init__(self, message: str = "User validation error", **kwargs):
        super().__init__(message, **kwargs)

# ==== NotFound / нет прав (не различаются, чтобы не раскрывать существование ресурса) ====

class NotFoundOrForbidden(BaseAppException):
    """Ресурс не найден, удалён или недоступен пользователю."""
    kind = "NOT_FOUND_OR_FORBIDDEN"
    status_code = 404

    def __init__(self, message: str = "Resource not found or you do not have permission to access it."):
        super().__init__(message)

class ProjectNotFound(NotFoundOrForbidden):
    """Ошибка: проект не найден."""
    def __init__(self, message: str = "Project not found or you do not have permission to access it."):
        super().__init__(message)

class TaskNotFound(NotFoundOrForbidden):
    """Ошибка: задача не найдена."""
    def __init__(self, message: str = "Task not found or you do not have permission to access it."):
        super().__init__(message)

class TagNotFound(NotFoundOrForbidden):
    """Ошибка: тег не найден."""
    def __init__(self, message: str = "Tag not found or you do not have permission to access it."):
        super().__init__(message)

class TaskTagNotFound(NotFoundOrForbidden):
    """Ошибка: тег не привязан к задаче."""
    def __init__(self, message: str = "Tag not found on this task."):
        super().__init__(message)

class NotificationNotFound(NotFoundOrForbidden):
    """Ошибка: уведомления не найдены."""
    def __init__(self, message: str = "No matching notifications found."):
        super().__init__(message)

# ==== Дубликаты ====

class ConflictError(BaseAppException):
    """Конфликт с текущим состоянием (дубликат)."""
    kind = "CONFLICT"
    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)

class DuplicateTagName(ConflictError):
    """Ошибка: тег с таким именем уже существует."""
    def __init__(self, message: str = "Tag with this name already exists."):
        super().__init__(message)

class DuplicateTaskTag(ConflictError):
    """Ошибка: тег уже привязан к задаче."""
    def __init__(self, message: str = "Tag already associated with this task."):
        super().__init__(message)

class DuplicateUser(ConflictError):
    """Ошибка: пользователь с таким username или email уже существует."""
    def __init__(self, message: str = "User with that email or username already exists."):
        super().__init__(message)

# ==== Авторизация ====

class AuthError(BaseAppException):
    """Ошибка аутентификации (нет или невалидный токен, неверный пароль)."""
    kind = "UNAUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)

class AdminRequired(BaseAppException):
    """Маршрут доступен только администраторам."""
    kind = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "Access denied: Admin role required."):
        super().__init__(message)

# ==== Конфигурация / внутренние ====

class ConfigurationError(BaseAppException):
    """Отсутствует обязательная настройка сервера (фатально при старте)."""
    kind = "CONFIGURATION"
    status_code = 500

    def __init__(self, message: str = "Server configuration error"):
        super().__init__(message)

class InternalError(BaseAppException):
    """Непредвиденная ошибка хранилища или рассылки; детали не раскрываются клиенту."""
    kind = "INTERNAL"
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
